"""
Currency conversion over the currency_rates table.

Rates are stored as rate_to_usd per currency code. Converting multiplies by
to_rate / from_rate. A missing rate is not an error: the amount comes back
unconverted and a warning is logged so the UI can flag it.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from . import models
from .money import Number, round_money, to_decimal

logger = logging.getLogger(__name__)

# Seeded on first startup; admins update them through /api/currency/rates
DEFAULT_RATES = {
    "USD": 1.0,
    "EUR": 0.92,
    "GBP": 0.79,
    "CAD": 1.36,
    "AUD": 1.52,
    "JPY": 149.5,
    "MXN": 17.1,
    "INR": 83.2,
}


def normalize_code(currency: Optional[str]) -> str:
    """'usd - US Dollar' → 'USD'."""
    parts = (currency or "").split()
    return parts[0].upper() if parts else ""


class CurrencyConverter:
    def __init__(self, rates: Dict[str, Number]):
        self.rates = {normalize_code(code): to_decimal(rate) for code, rate in rates.items()}

    @classmethod
    def from_db(cls, db: Session) -> "CurrencyConverter":
        rows = db.query(models.CurrencyRate).all()
        return cls({row.currency_code: row.rate_to_usd for row in rows})

    def get_rate(self, currency: Optional[str]) -> Optional[Decimal]:
        return self.rates.get(normalize_code(currency))

    def get_missing_rates(self, from_currency: str, to_currency: str) -> List[str]:
        if from_currency == to_currency:
            return []
        missing = []
        for code in (from_currency, to_currency):
            if self.get_rate(code) is None and code not in missing:
                missing.append(code)
        return missing

    def convert(self, amount: Number, from_currency: str, to_currency: str) -> Decimal:
        value = to_decimal(amount)
        if not value:
            return Decimal("0")
        if normalize_code(from_currency) == normalize_code(to_currency):
            return value

        from_rate = self.get_rate(from_currency)
        to_rate = self.get_rate(to_currency)
        if from_rate is None or to_rate is None:
            logger.warning("Missing conversion rate for %s or %s", from_currency, to_currency)
            return value
        if from_rate.is_zero():
            return Decimal("0")

        return round_money(value * (to_rate / from_rate))


def seed_default_rates(db: Session) -> int:
    """Insert DEFAULT_RATES codes that are not in the table yet. Returns count added."""
    added = 0
    for code, rate in DEFAULT_RATES.items():
        existing = db.query(models.CurrencyRate).filter(models.CurrencyRate.currency_code == code).first()
        if not existing:
            db.add(models.CurrencyRate(currency_code=code, rate_to_usd=rate))
            added += 1
    db.commit()
    return added
