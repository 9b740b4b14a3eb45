"""
Currency conversion.

Tests:
1. test_convert_via_usd_rates — EUR → GBP through rate_to_usd
2. test_same_currency — amount returned unchanged
3. test_missing_rate — amount returned unconverted, warning logged
4. test_zero_rate — converting from a zero-rated currency gives 0
5. test_seed_default_rates — seeding is idempotent
"""

import logging
from decimal import Decimal

from estimator import models
from estimator.currency import DEFAULT_RATES, CurrencyConverter, normalize_code, seed_default_rates


def _sample_converter():
    return CurrencyConverter({"USD": 1.0, "EUR": 0.92, "GBP": 0.79, "XXX": 0})


def test_normalize_code():
    assert normalize_code("eur") == "EUR"
    assert normalize_code("usd - US Dollar") == "USD"
    assert normalize_code(None) == ""


def test_convert_via_usd_rates():
    converter = _sample_converter()
    assert converter.convert(100, "USD", "EUR") == Decimal("92.00")
    assert converter.convert(92, "EUR", "USD") == Decimal("100.00")
    # 100 × 0.79 / 0.92 = 85.869...
    assert converter.convert(100, "EUR", "GBP") == Decimal("85.87")


def test_same_currency():
    assert _sample_converter().convert(123.45, "usd", "USD") == Decimal("123.45")


def test_zero_amount():
    assert _sample_converter().convert(0, "USD", "EUR") == 0
    assert _sample_converter().convert(None, "USD", "EUR") == 0


def test_missing_rate(caplog):
    converter = _sample_converter()
    with caplog.at_level(logging.WARNING, logger="estimator.currency"):
        assert converter.convert(50, "USD", "CHF") == Decimal("50")
    assert "CHF" in caplog.text
    assert converter.get_missing_rates("USD", "CHF") == ["CHF"]
    assert converter.get_missing_rates("CHF", "CHF") == []
    assert converter.get_missing_rates("ABC", "DEF") == ["ABC", "DEF"]


def test_zero_rate():
    assert _sample_converter().convert(100, "XXX", "USD") == 0


def test_seed_default_rates(db):
    assert seed_default_rates(db) == len(DEFAULT_RATES)
    assert seed_default_rates(db) == 0
    converter = CurrencyConverter.from_db(db)
    assert converter.get_rate("JPY") == Decimal("149.5")
    assert db.query(models.CurrencyRate).count() == len(DEFAULT_RATES)
