from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from kitchenops.app.api.deps import get_clock, get_db, get_organization_id, get_repository
from kitchenops.app.core.clock import Clock
from kitchenops.services.demand import DemandPlanner
from kitchenops.services.errors import NotFoundError, PersistenceError
from kitchenops.services.procurement import ProcurementOrchestrator
from kitchenops.services.repository import SqlAlchemyRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events")


def _event_header(repo: SqlAlchemyRepository, event_id: int) -> dict:
    ev = repo.get_event(event_id)
    return {"id": ev.id, "name": ev.name, "type": ev.event_type}


@router.get("/{event_id}/demand")
def get_event_demand(event_id: int, repo: SqlAlchemyRepository = Depends(get_repository)):
    try:
        event = _event_header(repo, event_id)
        demands = DemandPlanner(repo).calculate_event_demand(event_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message)
    except PersistenceError:
        logger.exception("Error calculating demand", extra={"event_id": event_id})
        raise HTTPException(status_code=500, detail="Failed to calculate demand")

    return {"event": event, "demands": demands, "total_items": len(demands)}


@router.get("/{event_id}/stock-check")
def get_stock_check(
    event_id: int,
    repo: SqlAlchemyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
):
    try:
        return ProcurementOrchestrator(repo, clock=clock).check_stock_availability(event_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message)
    except PersistenceError:
        logger.exception("Error checking stock", extra={"event_id": event_id})
        raise HTTPException(status_code=500, detail="Failed to check stock")


@router.post("/{event_id}/generate-purchase-orders")
def generate_purchase_orders(
    event_id: int,
    db: Session = Depends(get_db),
    organization_id: int = Depends(get_organization_id),
    clock: Clock = Depends(get_clock),
):
    repo = SqlAlchemyRepository(db, organization_id)
    orchestrator = ProcurementOrchestrator(repo, clock=clock)
    try:
        event = _event_header(repo, event_id)
        stock_status = orchestrator.check_stock_availability(event_id)
        result = orchestrator.generate(event_id, organization_id)
    except NotFoundError as exc:
        db.rollback()
        raise HTTPException(status_code=404, detail=exc.message)
    except PersistenceError:
        db.rollback()
        logger.exception("Error generating purchase orders", extra={"event_id": event_id})
        raise HTTPException(status_code=500, detail="Failed to generate purchase orders")

    db.commit()
    return {
        "event": event,
        "stock_status": stock_status,
        "generated_purchase_orders": result.orders,
        "failed_suppliers": result.failures,
        "total_pos": len(result.orders),
    }
