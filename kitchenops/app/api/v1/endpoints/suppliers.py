from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from kitchenops.app.api.deps import get_clock, get_repository
from kitchenops.app.core.clock import Clock
from kitchenops.services.delivery import DeliveryEstimator
from kitchenops.services.errors import InvalidSupplierConfigError, NotFoundError
from kitchenops.services.repository import SqlAlchemyRepository

router = APIRouter(prefix="/suppliers")


@router.get("/cutoff-status/all")
def list_cutoff_status(
    repo: SqlAlchemyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
):
    estimator = DeliveryEstimator(repo, clock)
    now = clock.now()
    return [
        {
            "id": s.id,
            "name": s.name,
            "cut_off_time": s.cut_off_time,
            "delivery_days": s.delivery_days,
            "cutoff_status": estimator.cutoff_status(s, now),
        }
        for s in repo.list_suppliers_with_cutoff()
    ]


@router.get("/{supplier_id}/estimate-delivery")
def estimate_delivery(
    supplier_id: int,
    order_date: datetime | None = None,
    repo: SqlAlchemyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
):
    order_instant = order_date or clock.now()
    try:
        estimated = DeliveryEstimator(repo, clock).estimate_delivery_date(supplier_id, order_instant)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message)
    except InvalidSupplierConfigError as exc:
        raise HTTPException(status_code=400, detail=exc.message)

    return {
        "supplier_id": supplier_id,
        "order_date": order_instant,
        "estimated_delivery": estimated,
    }
