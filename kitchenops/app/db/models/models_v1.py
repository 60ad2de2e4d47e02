from __future__ import annotations

from datetime import datetime, date, time, timezone
from decimal import Decimal

from sqlalchemy import (
    String,
    Integer,
    BigInteger,
    DateTime,
    Date,
    Time,
    JSON,
    ForeignKey,
    Numeric,
    Text,
    Enum,
    UniqueConstraint,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kitchenops.app.db.base import Base
from kitchenops.app.db.models.core_types import EventType, POStatus

BUSINESS_WEEK = [1, 2, 3, 4, 5]

# BIGINT en prod; SQLite n'auto-incrémente que INTEGER PRIMARY KEY
PK = BigInteger().with_variant(Integer, "sqlite")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- MASTER DATA ----------
class Organization(Base):
    __tablename__ = "organizations"
    id: Mapped[int] = mapped_column(PK, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), default="Europe/Madrid", nullable=False)


class Unit(Base):
    __tablename__ = "units"
    id: Mapped[int] = mapped_column(PK, primary_key=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    abbreviation: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)


class ProductFamily(Base):
    __tablename__ = "product_families"
    id: Mapped[int] = mapped_column(PK, primary_key=True)
    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id", ondelete="RESTRICT"), nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    # multiplicateur (1.10 = +10%), NULL => défaut applicatif
    safety_buffer_pct: Mapped[Decimal | None] = mapped_column(Numeric(4, 2))

    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_family_org_name"),
        CheckConstraint("safety_buffer_pct >= 1.0", name="ck_family_buffer_ge_one"),
    )


class Supplier(Base):
    __tablename__ = "suppliers"
    id: Mapped[int] = mapped_column(PK, primary_key=True)
    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id", ondelete="RESTRICT"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_email: Mapped[str | None] = mapped_column(String(255))
    contact_phone: Mapped[str | None] = mapped_column(String(64))
    lead_time_days: Mapped[int] = mapped_column(Integer, default=2, nullable=False)  # jours ouvrés
    cut_off_time: Mapped[time | None] = mapped_column(Time)
    delivery_days: Mapped[list[int]] = mapped_column(JSON, default=lambda: list(BUSINESS_WEEK), nullable=False)  # 1=lundi..7=dimanche
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_supplier_org_name"),
        CheckConstraint("lead_time_days >= 0", name="ck_supplier_lead_time_nonneg"),
    )


class Ingredient(Base):
    __tablename__ = "ingredients"
    id: Mapped[int] = mapped_column(PK, primary_key=True)
    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id", ondelete="RESTRICT"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    unit_id: Mapped[int] = mapped_column(ForeignKey("units.id", ondelete="RESTRICT"), nullable=False)
    cost_price: Mapped[Decimal] = mapped_column(Numeric(14, 4), default=0, nullable=False)
    stock_current: Mapped[Decimal] = mapped_column(Numeric(14, 3), default=0, nullable=False)
    family_id: Mapped[int | None] = mapped_column(ForeignKey("product_families.id", ondelete="SET NULL"))
    supplier_id: Mapped[int | None] = mapped_column(ForeignKey("suppliers.id", ondelete="SET NULL"))
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    unit: Mapped[Unit] = relationship()
    family: Mapped[ProductFamily | None] = relationship()
    supplier: Mapped[Supplier | None] = relationship()

    __table_args__ = (
        CheckConstraint("cost_price >= 0", name="ck_ingredient_cost_nonneg"),
        Index("ix_ingredients_org_supplier", "organization_id", "supplier_id"),
    )


# ---------- RECETTES ----------
class Recipe(Base):
    __tablename__ = "recipes"
    id: Mapped[int] = mapped_column(PK, primary_key=True)
    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id", ondelete="RESTRICT"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    servings: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    lines: Mapped[list["RecipeIngredient"]] = relationship(
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.id",
    )

    __table_args__ = (CheckConstraint("servings >= 1", name="ck_recipe_servings_pos"),)


class RecipeIngredient(Base):
    __tablename__ = "recipe_ingredients"
    id: Mapped[int] = mapped_column(PK, primary_key=True)
    recipe_id: Mapped[int] = mapped_column(ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True)
    ingredient_id: Mapped[int] = mapped_column(ForeignKey("ingredients.id", ondelete="RESTRICT"), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)  # par fournée (servings)
    unit_id: Mapped[int] = mapped_column(ForeignKey("units.id", ondelete="RESTRICT"), nullable=False)

    recipe: Mapped[Recipe] = relationship(back_populates="lines")
    ingredient: Mapped[Ingredient] = relationship()
    unit: Mapped[Unit] = relationship()


# ---------- EVENTS ----------
class Event(Base):
    __tablename__ = "events"
    id: Mapped[int] = mapped_column(PK, primary_key=True)
    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id", ondelete="RESTRICT"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    event_type: Mapped[EventType] = mapped_column(Enum(EventType, name="event_type"), nullable=False)
    pax: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    date_start: Mapped[date | None] = mapped_column(Date)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    menus: Mapped[list["EventMenu"]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventMenu.id",
    )
    direct_ingredients: Mapped[list["EventDirectIngredient"]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventDirectIngredient.id",
    )

    __table_args__ = (
        CheckConstraint("pax >= 0", name="ck_event_pax_nonneg"),
        Index("ix_events_org_date", "organization_id", "date_start"),
    )


class EventMenu(Base):
    __tablename__ = "event_menus"
    id: Mapped[int] = mapped_column(PK, primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    recipe_id: Mapped[int | None] = mapped_column(ForeignKey("recipes.id", ondelete="SET NULL"))
    qty_forecast: Mapped[Decimal | None] = mapped_column(Numeric(14, 3))  # A_LA_CARTE uniquement

    event: Mapped[Event] = relationship(back_populates="menus")


class EventDirectIngredient(Base):
    __tablename__ = "event_direct_ingredients"
    id: Mapped[int] = mapped_column(PK, primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    ingredient_id: Mapped[int] = mapped_column(ForeignKey("ingredients.id", ondelete="RESTRICT"), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    unit_id: Mapped[int] = mapped_column(ForeignKey("units.id", ondelete="RESTRICT"), nullable=False)

    event: Mapped[Event] = relationship(back_populates="direct_ingredients")
    ingredient: Mapped[Ingredient] = relationship()
    unit: Mapped[Unit] = relationship()


# ---------- PROCUREMENT ----------
class PurchaseOrder(Base):
    __tablename__ = "purchase_orders"
    id: Mapped[int] = mapped_column(PK, primary_key=True)
    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id", ondelete="RESTRICT"), nullable=False)
    supplier_id: Mapped[int] = mapped_column(ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False)
    event_id: Mapped[int | None] = mapped_column(ForeignKey("events.id", ondelete="SET NULL"), index=True)
    status: Mapped[POStatus] = mapped_column(Enum(POStatus, name="po_status"), default=POStatus.draft, nullable=False)

    order_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    delivery_date_estimated: Mapped[date | None] = mapped_column(Date)
    delivery_date_actual: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    total_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    supplier: Mapped[Supplier] = relationship()
    items: Mapped[list["PurchaseOrderItem"]] = relationship(
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PurchaseOrderItem.id",
    )

    __table_args__ = (
        CheckConstraint("total_cost >= 0", name="ck_po_total_nonneg"),
        Index("ix_purchase_orders_org_supplier", "organization_id", "supplier_id"),
    )


class PurchaseOrderItem(Base):
    __tablename__ = "purchase_order_items"
    id: Mapped[int] = mapped_column(PK, primary_key=True)
    purchase_order_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ingredient_id: Mapped[int] = mapped_column(ForeignKey("ingredients.id", ondelete="RESTRICT"), nullable=False)
    unit_id: Mapped[int] = mapped_column(ForeignKey("units.id", ondelete="RESTRICT"), nullable=False)
    quantity_ordered: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    quantity_received: Mapped[Decimal] = mapped_column(Numeric(14, 3), default=0, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    purchase_order: Mapped[PurchaseOrder] = relationship(back_populates="items")
    ingredient: Mapped[Ingredient] = relationship()
    unit: Mapped[Unit] = relationship()

    __table_args__ = (
        CheckConstraint("quantity_ordered > 0", name="ck_po_item_qty_pos"),
        CheckConstraint("unit_price >= 0", name="ck_po_item_unit_price_nonneg"),
    )
