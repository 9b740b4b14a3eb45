"""
Fixed-point money arithmetic.

Every monetary value in the estimator goes through these helpers so that
repeated additions never drift by a cent. Values are carried as
decimal.Decimal with 20 significant digits and rounded to 2 places with
ROUND_HALF_UP after each operation.

Floats are converted through str(), so 0.1 means the decimal 0.1 and not
0.1000000000000000055511151231257827.
"""

from decimal import Context, Decimal, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[int, float, str, Decimal, None]

PRECISION = 20
ROUNDING = ROUND_HALF_UP
MONEY_PLACES = 2

_CONTEXT = Context(prec=PRECISION, rounding=ROUNDING)
_ZERO = Decimal("0")


def to_decimal(value: Number) -> Decimal:
    """Coerce a number-like value to Decimal. None and "" become 0."""
    if value is None or value == "":
        return _ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def _quantum(decimals: int) -> Decimal:
    return Decimal(1).scaleb(-decimals)


def round_money(value: Number, decimals: int = MONEY_PLACES) -> Decimal:
    """
    Round half-up to `decimals` places (2 by default).

    The quantize context widens with the magnitude of the value, so a huge
    amount keeps all of its integer digits instead of raising
    InvalidOperation. Infinity and NaN collapse to 0.
    """
    amount = to_decimal(value)
    if not amount.is_finite():
        return _ZERO
    digits = max(PRECISION, amount.adjusted() + decimals + 2)
    return amount.quantize(_quantum(decimals), context=Context(prec=digits, rounding=ROUNDING))


def safe_add(*values: Number) -> Decimal:
    total = _ZERO
    for value in values:
        total = _CONTEXT.add(total, to_decimal(value))
    return round_money(total)


def safe_mult(*values: Number) -> Decimal:
    if not values:
        return Decimal(1)
    product = Decimal(1)
    for value in values:
        product = _CONTEXT.multiply(product, to_decimal(value))
    return round_money(product)


def safe_sub(first: Number, *values: Number) -> Decimal:
    result = to_decimal(first)
    for value in values:
        result = _CONTEXT.subtract(result, to_decimal(value))
    return round_money(result)


def safe_div(a: Number, b: Number, decimals: int = MONEY_PLACES) -> Decimal:
    """Divide a by b. Division by zero returns 0 instead of raising."""
    divisor = to_decimal(b)
    if divisor.is_zero():
        return _ZERO
    return round_money(_CONTEXT.divide(to_decimal(a), divisor), decimals)


def percent_of(base: Number, percent: Number) -> Decimal:
    """base × percent / 100, rounded to cents."""
    amount = _CONTEXT.divide(_CONTEXT.multiply(to_decimal(base), to_decimal(percent)), Decimal(100))
    return round_money(amount)


def as_float(value: Optional[Decimal]) -> float:
    """Convert for JSON responses. Values are already rounded, so this is exact to the cent."""
    return float(value) if value is not None else 0.0
