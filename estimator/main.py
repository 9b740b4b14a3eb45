from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .config import settings
from .database import engine, Base, SessionLocal
from .currency import seed_default_rates
from .routers import auth, projects, items, currency, sharing, scenarios, analytics

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("estimator")

# Create tables (handles new tables but won't add columns to existing ones)
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.APP_NAME,
    description="Construction cost estimation: line items, financial rollup, risk, currency, sharing",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(auth.router, prefix="/api")
app.include_router(projects.router, prefix="/api")
app.include_router(items.router, prefix="/api")
app.include_router(currency.router, prefix="/api")
app.include_router(sharing.router, prefix="/api")
app.include_router(scenarios.router, prefix="/api")
app.include_router(analytics.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": "construction-cost-estimator"}


@app.on_event("startup")
def auto_seed():
    """Seed default currency rates on first run."""
    db = SessionLocal()
    try:
        added = seed_default_rates(db)
        if added:
            logger.info("Seeded %d currency rates", added)
    finally:
        db.close()
