import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import require_admin
from ..currency import CurrencyConverter, normalize_code
from ..database import get_db
from ..money import as_float

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/currency", tags=["currency"])


@router.get("/rates", response_model=List[schemas.CurrencyRate])
def list_rates(db: Session = Depends(get_db)):
    return db.query(models.CurrencyRate).order_by(models.CurrencyRate.currency_code).all()


@router.put("/rates", response_model=schemas.CurrencyRate)
def upsert_rate(
    rate: schemas.CurrencyRateUpsert,
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    code = normalize_code(rate.currency_code)
    existing = db.query(models.CurrencyRate).filter(models.CurrencyRate.currency_code == code).first()
    if existing:
        existing.rate_to_usd = rate.rate_to_usd
        existing.last_updated = datetime.utcnow()
    else:
        existing = models.CurrencyRate(currency_code=code, rate_to_usd=rate.rate_to_usd)
        db.add(existing)
    db.commit()
    db.refresh(existing)
    logger.info("Currency rate %s set to %s by user %s", code, rate.rate_to_usd, current_user.id)
    return existing


@router.post("/convert")
def convert(request: schemas.ConvertRequest, db: Session = Depends(get_db)):
    converter = CurrencyConverter.from_db(db)
    from_code = normalize_code(request.from_currency)
    to_code = normalize_code(request.to_currency)
    missing = converter.get_missing_rates(from_code, to_code)
    return {
        "amount": request.amount,
        "from_currency": from_code,
        "to_currency": to_code,
        "converted_amount": as_float(converter.convert(request.amount, from_code, to_code)),
        "missing_rates": missing,
    }
