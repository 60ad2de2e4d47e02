"""
Procurement service.

Transforme un événement en bons de commande (un par fournisseur).

Chaque groupe fournisseur est traité isolément:
    1. fournisseur + date de livraison estimée
    2. en-tête PO (DRAFT)
    3. lignes PO           -> en cas d'échec, suppression compensatoire de l'en-tête
    4. total du PO         -> idem

Un groupe en échec ne laisse AUCUNE trace et n'interrompt pas les autres.
Toute la logique stock est centralisée dans :
    kitchenops.services.inventory
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING

from kitchenops.app.core.clock import Clock, SystemClock
from kitchenops.app.db.models.core_types import POStatus
from kitchenops.app.schemas.demand import DemandLine, StockCheck
from kitchenops.app.schemas.purchase_order import (
    GeneratedItem,
    GenerationResult,
    PurchaseOrderCreate,
    PurchaseOrderLineCreate,
    PurchaseOrderSummary,
    SupplierFailure,
)
from kitchenops.services.delivery import DeliveryEstimator
from kitchenops.services.demand import DemandPlanner
from kitchenops.services.errors import KitchenOpsError, PersistenceError
from kitchenops.services.inventory import check_stock
from kitchenops.services.repository import ProcurementRepository

logger = logging.getLogger(__name__)


# précision de purchase_order_items.quantity_ordered
_QTY = Decimal("0.001")


@dataclass
class _GroupItem:
    demand: DemandLine
    unit_price: Decimal

    @property
    def line(self) -> PurchaseOrderLineCreate:
        # on n'arrondit jamais la quantité commandée vers le bas
        return PurchaseOrderLineCreate(
            ingredient_id=self.demand.ingredient_id,
            unit_id=self.demand.unit_id,
            quantity_ordered=self.demand.quantity_with_buffer.quantize(_QTY, rounding=ROUND_CEILING),
            unit_price=self.unit_price,
        )


class _GroupFailed(Exception):
    def __init__(self, step: str, cause: Exception):
        super().__init__(step)
        self.step = step
        self.cause = cause


class ProcurementOrchestrator:
    def __init__(
        self,
        repo: ProcurementRepository,
        *,
        planner: DemandPlanner | None = None,
        estimator: DeliveryEstimator | None = None,
        clock: Clock | None = None,
    ):
        self.repo = repo
        self.clock = clock or SystemClock()
        self.planner = planner or DemandPlanner(repo)
        self.estimator = estimator or DeliveryEstimator(repo, self.clock)

    def generate_from_event(self, event_id: int, organization_id: int) -> list[PurchaseOrderSummary]:
        return self.generate(event_id, organization_id).orders

    def generate(self, event_id: int, organization_id: int) -> GenerationResult:
        """
        Crée un PO DRAFT par fournisseur. Non idempotent: deux appels => deux séries de PO.

        EventNotFoundError / PersistenceError pendant le calcul de la demande
        remontent à l'appelant; les échecs d'un groupe fournisseur sont contenus.
        """
        logger.info("Generating purchase orders", extra={"event_id": event_id})

        demands = self.planner.calculate_event_demand(event_id)
        result = GenerationResult()
        if not demands:
            logger.warning("No ingredients needed for event", extra={"event_id": event_id})
            return result

        groups = self._group_by_supplier(demands)
        order_instant = self.clock.now()

        for supplier_id, items in groups.items():
            try:
                summary = self._create_supplier_order(
                    event_id=event_id,
                    organization_id=organization_id,
                    supplier_id=supplier_id,
                    items=items,
                    order_instant=order_instant,
                )
            except _GroupFailed as failed:
                logger.error(
                    "Supplier group skipped",
                    exc_info=failed.cause,
                    extra={"event_id": event_id, "supplier_id": supplier_id, "step": failed.step},
                )
                result.failures.append(
                    SupplierFailure(supplier_id=supplier_id, step=failed.step, error=str(failed.cause))
                )
                continue
            result.orders.append(summary)

        return result

    def check_stock_availability(self, event_id: int) -> StockCheck:
        demands = self.planner.calculate_event_demand(event_id)
        return check_stock(self.repo, demands)

    # ---------- GROUPES ----------
    def _group_by_supplier(self, demands: list[DemandLine]) -> dict[int, list[_GroupItem]]:
        by_supplier: dict[int, list[_GroupItem]] = {}
        for demand in demands:
            ingredient = self.repo.get_ingredient(demand.ingredient_id)
            if not ingredient or ingredient.supplier_id is None:
                logger.warning(
                    "Ingredient has no supplier",
                    extra={"ingredient_id": demand.ingredient_id},
                )
                continue
            item = _GroupItem(demand=demand, unit_price=Decimal(ingredient.cost_price))
            if item.line.quantity_ordered <= 0:
                # recette/pax à zéro: contribution vide, pas de ligne PO
                logger.warning(
                    "Zero quantity demand line skipped",
                    extra={"ingredient_id": demand.ingredient_id},
                )
                continue
            by_supplier.setdefault(int(ingredient.supplier_id), []).append(item)
        return by_supplier

    def _create_supplier_order(
        self,
        *,
        event_id: int,
        organization_id: int,
        supplier_id: int,
        items: list[_GroupItem],
        order_instant,
    ) -> PurchaseOrderSummary:
        try:
            supplier = self.repo.get_supplier(supplier_id)
            delivery_date = self.estimator.estimate_for_supplier(supplier, order_instant)
        except KitchenOpsError as exc:
            raise _GroupFailed("supplier", exc) from exc

        try:
            po_id = self.repo.create_purchase_order(
                PurchaseOrderCreate(
                    organization_id=organization_id,
                    supplier_id=supplier_id,
                    event_id=event_id,
                    status=POStatus.draft,
                    order_date=order_instant,
                    delivery_date_estimated=delivery_date,
                )
            )
        except PersistenceError as exc:
            raise _GroupFailed("header", exc) from exc

        lines = [it.line for it in items]
        try:
            self.repo.create_purchase_order_lines(po_id, lines)
        except PersistenceError as exc:
            self._compensate(po_id, supplier_id, event_id)
            raise _GroupFailed("lines", exc) from exc

        total_cost = sum((ln.total_price for ln in lines), Decimal("0"))
        try:
            self.repo.update_purchase_order_total(po_id, total_cost)
        except PersistenceError as exc:
            self._compensate(po_id, supplier_id, event_id)
            raise _GroupFailed("total", exc) from exc

        logger.info(
            "Purchase order created",
            extra={
                "event_id": event_id,
                "supplier_id": supplier_id,
                "purchase_order_id": po_id,
                "total_cost": total_cost,
            },
        )
        return PurchaseOrderSummary(
            id=po_id,
            supplier_id=supplier_id,
            supplier_name=supplier.name,
            items=[
                GeneratedItem(
                    ingredient_id=ln.ingredient_id,
                    ingredient_name=it.demand.ingredient_name,
                    unit_id=ln.unit_id,
                    unit_abbr=it.demand.unit_abbr,
                    quantity_ordered=ln.quantity_ordered,
                    unit_price=ln.unit_price,
                    total_price=ln.total_price,
                )
                for it, ln in zip(items, lines)
            ],
            total_cost=total_cost,
            delivery_date_estimated=delivery_date,
        )

    def _compensate(self, po_id: int, supplier_id: int, event_id: int) -> None:
        try:
            self.repo.delete_purchase_order(po_id)
        except PersistenceError:
            logger.exception(
                "Compensating delete failed, purchase order left behind",
                extra={"event_id": event_id, "supplier_id": supplier_id, "purchase_order_id": po_id},
            )
            return
        logger.warning(
            "Purchase order rolled back",
            extra={"event_id": event_id, "supplier_id": supplier_id, "purchase_order_id": po_id},
        )
