"""
Financial rollup — direct costs → overhead/contingency → prime cost → markup
→ bid price → tax → grand total.

Every step is rounded to cents before the next one uses it. Percentages are
not validated here: missing values count as 0 and negatives pass through.
"""

from dataclasses import asdict, dataclass
from decimal import Decimal

from .money import as_float, percent_of, safe_add, to_decimal


@dataclass(frozen=True)
class CostCategoryTotals:
    materials_total: Decimal = Decimal("0")
    labor_total: Decimal = Decimal("0")
    equipment_total: Decimal = Decimal("0")
    additional_total: Decimal = Decimal("0")

    @classmethod
    def from_values(cls, materials=None, labor=None, equipment=None, additional=None) -> "CostCategoryTotals":
        return cls(
            materials_total=to_decimal(materials),
            labor_total=to_decimal(labor),
            equipment_total=to_decimal(equipment),
            additional_total=to_decimal(additional),
        )

    def as_dict(self) -> dict:
        return {name: as_float(value) for name, value in asdict(self).items()}


@dataclass(frozen=True)
class FinancialSettings:
    overhead_percent: Decimal = Decimal("0")
    contingency_percent: Decimal = Decimal("0")
    markup_percent: Decimal = Decimal("0")
    tax_percent: Decimal = Decimal("0")

    @classmethod
    def from_values(cls, overhead=None, contingency=None, markup=None, tax=None) -> "FinancialSettings":
        return cls(
            overhead_percent=to_decimal(overhead),
            contingency_percent=to_decimal(contingency),
            markup_percent=to_decimal(markup),
            tax_percent=to_decimal(tax),
        )

    @classmethod
    def from_mapping(cls, data: dict) -> "FinancialSettings":
        data = data or {}
        return cls.from_values(
            overhead=data.get("overhead_percent"),
            contingency=data.get("contingency_percent"),
            markup=data.get("markup_percent"),
            tax=data.get("tax_percent"),
        )

    @classmethod
    def from_project(cls, project) -> "FinancialSettings":
        return cls.from_values(
            overhead=project.overhead_percent,
            contingency=project.contingency_percent,
            markup=project.markup_percent,
            tax=project.tax_percent,
        )

    def as_dict(self) -> dict:
        return {name: as_float(value) for name, value in asdict(self).items()}


@dataclass(frozen=True)
class FinancialSummary:
    materials_total: Decimal
    labor_total: Decimal
    equipment_total: Decimal
    additional_total: Decimal
    direct_costs: Decimal
    overhead_amount: Decimal
    contingency_amount: Decimal
    prime_cost: Decimal
    markup_amount: Decimal
    bid_price: Decimal
    tax_amount: Decimal
    grand_total: Decimal

    def as_dict(self) -> dict:
        return {name: as_float(value) for name, value in asdict(self).items()}


def calculate_project_financials(totals: CostCategoryTotals, settings: FinancialSettings) -> FinancialSummary:
    materials = to_decimal(totals.materials_total)
    labor = to_decimal(totals.labor_total)
    equipment = to_decimal(totals.equipment_total)
    additional = to_decimal(totals.additional_total)

    direct_costs = safe_add(materials, labor, equipment, additional)
    overhead_amount = percent_of(direct_costs, settings.overhead_percent)
    contingency_amount = percent_of(direct_costs, settings.contingency_percent)
    prime_cost = safe_add(direct_costs, overhead_amount, contingency_amount)
    markup_amount = percent_of(prime_cost, settings.markup_percent)
    bid_price = safe_add(prime_cost, markup_amount)
    tax_amount = percent_of(bid_price, settings.tax_percent)
    grand_total = safe_add(bid_price, tax_amount)

    return FinancialSummary(
        materials_total=materials,
        labor_total=labor,
        equipment_total=equipment,
        additional_total=additional,
        direct_costs=direct_costs,
        overhead_amount=overhead_amount,
        contingency_amount=contingency_amount,
        prime_cost=prime_cost,
        markup_amount=markup_amount,
        bid_price=bid_price,
        tax_amount=tax_amount,
        grand_total=grand_total,
    )
