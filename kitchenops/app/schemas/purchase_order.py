from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from pydantic import BaseModel, ConfigDict, Field

from kitchenops.app.db.models.core_types import POStatus


class PurchaseOrderCreate(BaseModel):
    organization_id: int
    supplier_id: int
    event_id: int | None = None
    status: POStatus = POStatus.draft
    order_date: datetime
    delivery_date_estimated: date | None = None


class PurchaseOrderLineCreate(BaseModel):
    ingredient_id: int
    unit_id: int
    quantity_ordered: Decimal
    unit_price: Decimal

    @property
    def total_price(self) -> Decimal:
        # arrondi au centime, comme total_price en base
        return (self.quantity_ordered * self.unit_price).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class GeneratedItem(BaseModel):
    ingredient_id: int
    ingredient_name: str
    unit_id: int
    unit_abbr: str | None = None
    quantity_ordered: Decimal
    unit_price: Decimal
    total_price: Decimal


class PurchaseOrderSummary(BaseModel):
    id: int
    supplier_id: int
    supplier_name: str
    items: list[GeneratedItem]
    total_cost: Decimal
    delivery_date_estimated: date


class SupplierFailure(BaseModel):
    supplier_id: int
    step: str
    error: str


class GenerationResult(BaseModel):
    orders: list[PurchaseOrderSummary] = Field(default_factory=list)
    failures: list[SupplierFailure] = Field(default_factory=list)


class PurchaseOrderItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ingredient_id: int
    unit_id: int
    quantity_ordered: Decimal
    quantity_received: Decimal
    unit_price: Decimal
    total_price: Decimal


class PurchaseOrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    supplier_id: int
    event_id: int | None
    status: POStatus
    order_date: datetime
    delivery_date_estimated: date | None
    total_cost: Decimal
    items: list[PurchaseOrderItemRead] = Field(default_factory=list)
