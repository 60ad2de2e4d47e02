from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from kitchenops.app.api.deps import get_db, get_organization_id
from kitchenops.app.db.models.core_types import POStatus
from kitchenops.app.db.models.models_v1 import PurchaseOrder
from kitchenops.app.schemas.purchase_order import PurchaseOrderRead

router = APIRouter(prefix="/purchase-orders")


@router.get("")
def list_pos(
    event_id: int | None = None,
    supplier_id: int | None = None,
    status: POStatus | None = None,
    db: Session = Depends(get_db),
    organization_id: int = Depends(get_organization_id),
):
    q = (
        select(PurchaseOrder)
        .where(PurchaseOrder.organization_id == organization_id)
        .where(PurchaseOrder.deleted_at.is_(None))
    )
    if event_id is not None:
        q = q.where(PurchaseOrder.event_id == event_id)
    if supplier_id is not None:
        q = q.where(PurchaseOrder.supplier_id == supplier_id)
    if status is not None:
        q = q.where(PurchaseOrder.status == status)

    rows = db.execute(q.order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc())).scalars().all()
    return [
        {
            "id": po.id,
            "supplier_id": po.supplier_id,
            "event_id": po.event_id,
            "status": po.status,
            "order_date": po.order_date,
            "delivery_date_estimated": po.delivery_date_estimated,
            "total_cost": po.total_cost,
        }
        for po in rows
    ]


@router.get("/{po_id}", response_model=PurchaseOrderRead)
def get_po(
    po_id: int,
    db: Session = Depends(get_db),
    organization_id: int = Depends(get_organization_id),
):
    po = (
        db.execute(
            select(PurchaseOrder)
            .where(PurchaseOrder.id == po_id)
            .where(PurchaseOrder.organization_id == organization_id)
            .where(PurchaseOrder.deleted_at.is_(None))
            .options(selectinload(PurchaseOrder.items))
        )
        .scalars()
        .first()
    )
    if not po:
        raise HTTPException(status_code=404, detail="Purchase order not found")
    return po
