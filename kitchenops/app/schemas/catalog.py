from __future__ import annotations

from datetime import time
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class RecipeLineRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ingredient_id: int
    quantity: Decimal
    unit_id: int


class RecipeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    servings: int | None
    lines: list[RecipeLineRead] = Field(default_factory=list)


class UnitRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    abbreviation: str


class IngredientRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    supplier_id: int | None
    cost_price: Decimal
    stock_current: Decimal
    family_id: int | None
    unit: UnitRead | None = None


class ProductFamilyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    safety_buffer_pct: Decimal | None


class SupplierRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    lead_time_days: int
    cut_off_time: time | None = None
    delivery_days: list[int] = Field(default_factory=list)


class CutoffStatus(BaseModel):
    minutes_until_cutoff: int | None
    is_delivery_day: bool
    is_urgent: bool
    has_passed: bool
