from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, Boolean, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base
import enum


class ShareRole(str, enum.Enum):
    VIEWER = "viewer"
    EDITOR = "editor"


class RentalOrPurchase(str, enum.Enum):
    RENTAL = "rental"
    PURCHASE = "purchase"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    full_name = Column(String, nullable=True)
    default_currency = Column(String, default="USD")
    role = Column(String, default="user")  # 'user' | 'admin'
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    auth_tokens = relationship("AuthToken", back_populates="user", cascade="all, delete-orphan")
    projects = relationship("Project", back_populates="owner")


class AuthToken(Base):
    """JWT refresh token storage — access tokens are stateless."""
    __tablename__ = "auth_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    token_hash = Column(String, nullable=False)
    token_type = Column(String, default="refresh")
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="auth_tokens")


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String, nullable=True)  # residential, commercial, infrastructure...
    size = Column(Float, nullable=True)
    size_unit = Column(String, nullable=True)
    location = Column(String, nullable=True)
    client_requirements = Column(Text, nullable=True)
    duration_days = Column(Integer, nullable=True)
    duration_unit = Column(String, nullable=True)
    currency = Column(String, default="USD", nullable=False)

    # Financial settings — percentages, applied by financials.calculate_project_financials
    overhead_percent = Column(Float, default=0.0)
    contingency_percent = Column(Float, default=0.0)
    markup_percent = Column(Float, default=0.0)
    tax_percent = Column(Float, default=0.0)

    deleted_at = Column(DateTime, nullable=True)  # soft delete
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="projects")
    groups = relationship("ProjectGroup", back_populates="project", cascade="all, delete-orphan",
                          order_by="ProjectGroup.sort_order")
    materials = relationship("MaterialItem", back_populates="project", cascade="all, delete-orphan")
    labor_items = relationship("LaborItem", back_populates="project", cascade="all, delete-orphan")
    equipment_items = relationship("EquipmentItem", back_populates="project", cascade="all, delete-orphan")
    additional_costs = relationship("AdditionalCost", back_populates="project", cascade="all, delete-orphan")
    risks = relationship("Risk", back_populates="project", cascade="all, delete-orphan")
    shares = relationship("ProjectShare", back_populates="project", cascade="all, delete-orphan")
    share_links = relationship("SharedProjectLink", back_populates="project", cascade="all, delete-orphan")


class ProjectGroup(Base):
    """Named section (e.g. 'Foundation', 'Roofing') that line items can be filed under."""
    __tablename__ = "project_groups"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    name = Column(String, nullable=False)
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("Project", back_populates="groups")


# --- Line items ---

class MaterialItem(Base):
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    group_id = Column(Integer, ForeignKey("project_groups.id", ondelete="SET NULL"), nullable=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    quantity = Column(Float, nullable=False, default=0.0)
    unit = Column(String, nullable=False, default="ea")
    unit_price = Column(Float, nullable=False, default=0.0)
    supplier_options = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("Project", back_populates="materials")


class LaborItem(Base):
    __tablename__ = "labor_items"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    group_id = Column(Integer, ForeignKey("project_groups.id", ondelete="SET NULL"), nullable=True)
    worker_type = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    number_of_workers = Column(Integer, nullable=False, default=1)
    daily_rate = Column(Float, nullable=False, default=0.0)
    total_days = Column(Integer, nullable=False, default=1)
    total_cost = Column(Float, default=0.0)  # denormalized, recomputed on every write
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("Project", back_populates="labor_items")


class EquipmentItem(Base):
    __tablename__ = "equipment_items"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    group_id = Column(Integer, ForeignKey("project_groups.id", ondelete="SET NULL"), nullable=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=True)
    rental_or_purchase = Column(String, default=RentalOrPurchase.RENTAL.value)
    quantity = Column(Integer, nullable=False, default=1)
    cost_per_period = Column(Float, nullable=False, default=0.0)
    period_unit = Column(String, default="day")
    usage_duration = Column(Integer, nullable=False, default=1)
    maintenance_cost = Column(Float, nullable=True, default=0.0)
    fuel_cost = Column(Float, nullable=True, default=0.0)
    total_cost = Column(Float, default=0.0)  # denormalized, recomputed on every write
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("Project", back_populates="equipment_items")


class AdditionalCost(Base):
    __tablename__ = "additional_costs"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    group_id = Column(Integer, ForeignKey("project_groups.id", ondelete="SET NULL"), nullable=True)
    category = Column(String, nullable=False)  # permits, insurance, transport...
    description = Column(Text, nullable=True)
    amount = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("Project", back_populates="additional_costs")


class Risk(Base):
    __tablename__ = "risks"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    description = Column(Text, nullable=False)
    probability = Column(String, nullable=False)  # 'low' | 'medium' | 'high' (free text, matched by substring)
    impact_amount = Column(Float, nullable=False, default=0.0)
    mitigation_plan = Column(Text, nullable=True)
    contingency_amount = Column(Float, default=0.0)  # impact × probability weight
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("Project", back_populates="risks")


# --- Reference data ---

class CurrencyRate(Base):
    __tablename__ = "currency_rates"

    id = Column(Integer, primary_key=True, index=True)
    currency_code = Column(String, unique=True, nullable=False)
    rate_to_usd = Column(Float, nullable=False)
    last_updated = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# --- Sharing ---

class ProjectShare(Base):
    """Internal share — another registered user gets viewer or editor rights."""
    __tablename__ = "project_shares"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    shared_with_user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    role = Column(String, nullable=False, default=ShareRole.VIEWER.value)
    created_at = Column(DateTime, default=datetime.utcnow)

    project = relationship("Project", back_populates="shares")
    shared_with = relationship("User")

    __table_args__ = (
        UniqueConstraint("project_id", "shared_with_user_id", name="uq_project_share_user"),
    )


class SharedProjectLink(Base):
    """External read-only link — access token + bcrypt password, expires."""
    __tablename__ = "shared_project_links"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    created_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    access_token = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    project = relationship("Project", back_populates="share_links")


class Scenario(Base):
    """Saved what-if rule set, reusable across the owner's projects."""
    __tablename__ = "scenarios"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    impact_rules = Column(JSON, nullable=False, default=list)
    is_public = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
