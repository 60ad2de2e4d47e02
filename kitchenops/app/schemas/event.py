from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from kitchenops.app.db.models.core_types import EventType


class MenuLineRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    recipe_id: int | None
    qty_forecast: Decimal | None = None


class DirectIngredientLineRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ingredient_id: int
    quantity: Decimal
    unit_id: int


class EventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    event_type: EventType
    pax: int
    menus: list[MenuLineRead] = Field(default_factory=list)
    direct_ingredients: list[DirectIngredientLineRead] = Field(default_factory=list)
