import math

from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Any, Literal, Union
from datetime import datetime
from .models import ShareRole, RentalOrPurchase

# Input ceilings. Anything larger is a typo, not an estimate.
MAX_AMOUNT = 1e12
MAX_COUNT = 1_000_000
MAX_DAYS = 36_500
MAX_PERCENT = 1000
MAX_RATE = 1e6


# --- Projects ---

class FinancialSettingsBase(BaseModel):
    overhead_percent: float = Field(0.0, ge=0, le=MAX_PERCENT)
    contingency_percent: float = Field(0.0, ge=0, le=MAX_PERCENT)
    markup_percent: float = Field(0.0, ge=0, le=MAX_PERCENT)
    tax_percent: float = Field(0.0, ge=0, le=MAX_PERCENT)


class FinancialSettingsUpdate(BaseModel):
    overhead_percent: Optional[float] = Field(None, ge=0, le=MAX_PERCENT)
    contingency_percent: Optional[float] = Field(None, ge=0, le=MAX_PERCENT)
    markup_percent: Optional[float] = Field(None, ge=0, le=MAX_PERCENT)
    tax_percent: Optional[float] = Field(None, ge=0, le=MAX_PERCENT)


class ProjectBase(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    type: Optional[str] = None
    size: Optional[float] = Field(None, ge=0, le=MAX_AMOUNT)
    size_unit: Optional[str] = None
    location: Optional[str] = None
    client_requirements: Optional[str] = None
    duration_days: Optional[int] = Field(None, ge=0, le=MAX_DAYS)
    duration_unit: Optional[str] = None
    currency: Optional[str] = None


class ProjectCreate(ProjectBase):
    financial_settings: Optional[FinancialSettingsBase] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    type: Optional[str] = None
    size: Optional[float] = Field(None, ge=0, le=MAX_AMOUNT)
    size_unit: Optional[str] = None
    location: Optional[str] = None
    client_requirements: Optional[str] = None
    duration_days: Optional[int] = Field(None, ge=0, le=MAX_DAYS)
    duration_unit: Optional[str] = None
    currency: Optional[str] = None


# --- Groups ---

class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1)
    sort_order: Optional[int] = None


class GroupUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    sort_order: Optional[int] = None


class Group(BaseModel):
    id: int
    project_id: int
    name: str
    sort_order: int

    class Config:
        from_attributes = True


class GroupReorder(BaseModel):
    group_ids: List[int]


# --- Line items ---

class MaterialCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    quantity: float = Field(..., gt=0, le=MAX_AMOUNT)
    unit: str = Field(..., min_length=1)
    unit_price: float = Field(..., gt=0, le=MAX_AMOUNT)
    supplier_options: Optional[Any] = None
    group_id: Optional[int] = None


class MaterialUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    quantity: Optional[float] = Field(None, gt=0, le=MAX_AMOUNT)
    unit: Optional[str] = Field(None, min_length=1)
    unit_price: Optional[float] = Field(None, gt=0, le=MAX_AMOUNT)
    supplier_options: Optional[Any] = None
    group_id: Optional[int] = None


class Material(MaterialCreate):
    id: int
    project_id: int
    created_at: datetime

    class Config:
        from_attributes = True


class LaborCreate(BaseModel):
    worker_type: str = Field(..., min_length=1)
    description: Optional[str] = None
    number_of_workers: int = Field(..., ge=1, le=MAX_COUNT)
    daily_rate: float = Field(..., gt=0, le=MAX_AMOUNT)
    total_days: int = Field(..., ge=1, le=MAX_DAYS)
    group_id: Optional[int] = None


class LaborUpdate(BaseModel):
    worker_type: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    number_of_workers: Optional[int] = Field(None, ge=1, le=MAX_COUNT)
    daily_rate: Optional[float] = Field(None, gt=0, le=MAX_AMOUNT)
    total_days: Optional[int] = Field(None, ge=1, le=MAX_DAYS)
    group_id: Optional[int] = None


class Labor(LaborCreate):
    id: int
    project_id: int
    total_cost: float
    created_at: datetime

    class Config:
        from_attributes = True


class EquipmentCreate(BaseModel):
    name: str = Field(..., min_length=1)
    type: Optional[str] = None
    rental_or_purchase: RentalOrPurchase = RentalOrPurchase.RENTAL
    quantity: int = Field(..., ge=1, le=MAX_COUNT)
    cost_per_period: float = Field(..., gt=0, le=MAX_AMOUNT)
    period_unit: str = "day"
    usage_duration: int = Field(..., ge=1, le=MAX_DAYS)
    maintenance_cost: Optional[float] = Field(0.0, ge=0, le=MAX_AMOUNT)
    fuel_cost: Optional[float] = Field(0.0, ge=0, le=MAX_AMOUNT)
    group_id: Optional[int] = None


class EquipmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    type: Optional[str] = None
    rental_or_purchase: Optional[RentalOrPurchase] = None
    quantity: Optional[int] = Field(None, ge=1, le=MAX_COUNT)
    cost_per_period: Optional[float] = Field(None, gt=0, le=MAX_AMOUNT)
    period_unit: Optional[str] = None
    usage_duration: Optional[int] = Field(None, ge=1, le=MAX_DAYS)
    maintenance_cost: Optional[float] = Field(None, ge=0, le=MAX_AMOUNT)
    fuel_cost: Optional[float] = Field(None, ge=0, le=MAX_AMOUNT)
    group_id: Optional[int] = None


class Equipment(EquipmentCreate):
    id: int
    project_id: int
    total_cost: float
    created_at: datetime

    class Config:
        from_attributes = True


class AdditionalCostCreate(BaseModel):
    category: str = Field(..., min_length=1)
    description: Optional[str] = None
    amount: float = Field(..., gt=0, le=MAX_AMOUNT)
    group_id: Optional[int] = None


class AdditionalCostUpdate(BaseModel):
    category: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    amount: Optional[float] = Field(None, gt=0, le=MAX_AMOUNT)
    group_id: Optional[int] = None


class AdditionalCost(AdditionalCostCreate):
    id: int
    project_id: int
    created_at: datetime

    class Config:
        from_attributes = True


class RiskCreate(BaseModel):
    description: str = Field(..., min_length=1)
    probability: str = Field(..., min_length=1)
    impact_amount: float = Field(..., ge=0, le=MAX_AMOUNT)
    mitigation_plan: Optional[str] = None


class RiskUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1)
    probability: Optional[str] = Field(None, min_length=1)
    impact_amount: Optional[float] = Field(None, ge=0, le=MAX_AMOUNT)
    mitigation_plan: Optional[str] = None


class Risk(RiskCreate):
    id: int
    project_id: int
    contingency_amount: float
    created_at: datetime

    class Config:
        from_attributes = True


# --- Currency ---

class CurrencyRateUpsert(BaseModel):
    currency_code: str = Field(..., min_length=3, max_length=3)
    rate_to_usd: float = Field(..., gt=0, le=MAX_RATE)


class CurrencyRate(BaseModel):
    currency_code: str
    rate_to_usd: float
    last_updated: datetime

    class Config:
        from_attributes = True


class ConvertRequest(BaseModel):
    amount: float = Field(..., ge=-MAX_AMOUNT, le=MAX_AMOUNT)
    from_currency: str
    to_currency: str


# --- Sharing ---

class InternalShareCreate(BaseModel):
    email: str
    role: ShareRole = ShareRole.VIEWER


class InternalShareUpdate(BaseModel):
    role: ShareRole


class ExternalLinkCreate(BaseModel):
    expires_at: datetime
    password: str = Field(..., min_length=4)


class ShareVerifyRequest(BaseModel):
    access_token: Optional[str] = None
    password: Optional[str] = None


# --- Scenarios ---

class ImpactRule(BaseModel):
    item_type: Literal["materials", "labor", "equipment", "additional", "risks", "financial_settings"]
    field: str = Field(..., min_length=1)
    adjustment_type: Literal["percentage_increase", "fixed_increase", "by_id"]
    value: Union[int, float, str] = 0
    filter_name_contains: Optional[str] = None
    filter_category_is: Optional[str] = None
    filter_worker_type_contains: Optional[str] = None


class ImpactRuleIn(ImpactRule):
    @model_validator(mode="after")
    def numeric_adjustment(self):
        """Increases need a finite number; by_id rules carry an item id instead."""
        if self.adjustment_type == "by_id":
            return self
        try:
            amount = float(self.value)
        except (TypeError, ValueError):
            raise ValueError(f"value must be a number for {self.adjustment_type}")
        if not math.isfinite(amount) or abs(amount) > MAX_AMOUNT:
            raise ValueError("value is out of range")
        self.value = amount
        return self


class ScenarioCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    is_public: bool = False
    impact_rules: List[ImpactRuleIn] = Field(..., min_length=1)


class Scenario(BaseModel):
    id: int
    user_id: int
    name: str
    description: Optional[str] = None
    is_public: bool
    impact_rules: List[ImpactRule]
    created_at: datetime

    class Config:
        from_attributes = True


class SimulateRequest(BaseModel):
    scenario_id: Optional[int] = None
    impact_rules: Optional[List[ImpactRuleIn]] = None
