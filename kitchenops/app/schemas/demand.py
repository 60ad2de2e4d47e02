from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field

from kitchenops.app.db.models.core_types import DemandSource


class DemandLine(BaseModel):
    """Besoin calculé pour un (ingrédient, unité). Jamais persisté tel quel."""

    ingredient_id: int
    ingredient_name: str
    unit_id: int
    unit_abbr: str | None = None
    source: DemandSource = DemandSource.recipe
    quantity_needed: Decimal
    safety_buffer: Decimal = Decimal("1")
    quantity_with_buffer: Decimal


class MissingIngredient(BaseModel):
    ingredient_id: int
    ingredient_name: str
    needed: Decimal
    current: Decimal
    shortage: Decimal


class StockCheck(BaseModel):
    has_sufficient_stock: bool
    missing_ingredients: list[MissingIngredient] = Field(default_factory=list)
