from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Construction Cost Estimator"
    DATABASE_URL: str = "sqlite:///./estimator.db"
    LOG_LEVEL: str = "INFO"

    # Auth
    JWT_SECRET: str = ""  # REQUIRED in production — fail loudly if missing at auth time
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_EXPIRE_MINUTES: int = 15
    JWT_REFRESH_EXPIRE_DAYS: int = 30

    # New-project defaults
    DEFAULT_CURRENCY: str = "USD"
    DEFAULT_OVERHEAD_PERCENT: float = 10.0
    DEFAULT_CONTINGENCY_PERCENT: float = 5.0
    DEFAULT_MARKUP_PERCENT: float = 15.0
    DEFAULT_TAX_PERCENT: float = 0.0

    # External share links
    SHARE_LINK_MAX_DAYS: int = 90

    class Config:
        env_file = ".env"


settings = Settings()
