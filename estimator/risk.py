"""Risk contingency weighting — probability label → fixed weight × impact."""

from decimal import Decimal
from typing import Optional

from .money import Number
from .cost_calculator import risk_cost

PROBABILITY_WEIGHTS = {
    "low": Decimal("0.1"),
    "medium": Decimal("0.3"),
    "high": Decimal("0.5"),
}

# Checked in this order so "medium-high" counts as high
_MATCH_ORDER = ("high", "medium", "low")


def get_probability_weight(probability: Optional[str]) -> Decimal:
    label = (probability or "").lower()
    for key in _MATCH_ORDER:
        if key in label:
            return PROBABILITY_WEIGHTS[key]
    return Decimal("0")


def calculate_risk_contingency(impact: Number, probability: Optional[str]) -> Decimal:
    return risk_cost(impact, get_probability_weight(probability))
