"""
Accès données du coeur achats.

Le coeur (demande, livraison, génération de PO) ne voit jamais la Session:
il passe par ce contrat étroit, qui renvoie des schémas pydantic et
traduit toute erreur SQLAlchemy en PersistenceError.

Chaque écriture tourne dans son propre SAVEPOINT: si l'insertion des lignes
échoue, la session reste utilisable pour la suppression compensatoire de
l'en-tête. Le commit final appartient à l'appelant (endpoint).
"""

from __future__ import annotations

from contextlib import contextmanager
from decimal import Decimal
from typing import Iterator, Protocol, Sequence

from sqlalchemy import select, update, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from kitchenops.app.db.models.models_v1 import (
    Organization,
    Event,
    Recipe,
    Ingredient,
    ProductFamily,
    Supplier,
    Unit,
    PurchaseOrder,
    PurchaseOrderItem,
)
from kitchenops.app.schemas.catalog import (
    IngredientRead,
    ProductFamilyRead,
    RecipeRead,
    SupplierRead,
    UnitRead,
)
from kitchenops.app.schemas.event import EventRead
from kitchenops.app.schemas.purchase_order import PurchaseOrderCreate, PurchaseOrderLineCreate
from kitchenops.services.errors import (
    EventNotFoundError,
    PersistenceError,
    SupplierNotFoundError,
)


class ProcurementRepository(Protocol):
    def get_event(self, event_id: int) -> EventRead: ...

    def get_recipe_with_ingredients(self, recipe_id: int) -> RecipeRead | None: ...

    def get_ingredient(self, ingredient_id: int) -> IngredientRead | None: ...

    def get_unit(self, unit_id: int) -> UnitRead | None: ...

    def get_product_family(self, family_id: int) -> ProductFamilyRead | None: ...

    def get_supplier(self, supplier_id: int) -> SupplierRead: ...

    def list_suppliers_with_cutoff(self) -> list[SupplierRead]: ...

    def get_timezone(self) -> str | None: ...

    def create_purchase_order(self, header: PurchaseOrderCreate) -> int: ...

    def delete_purchase_order(self, purchase_order_id: int) -> None: ...

    def create_purchase_order_lines(
        self, purchase_order_id: int, lines: Sequence[PurchaseOrderLineCreate]
    ) -> None: ...

    def update_purchase_order_total(self, purchase_order_id: int, total: Decimal) -> None: ...


@contextmanager
def _guard(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise PersistenceError(operation, str(exc.__class__.__name__)) from exc


class SqlAlchemyRepository:
    """Implémentation SQL. Lectures limitées à l'organisation, lignes soft-deleted invisibles."""

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id

    # ---------- LECTURES ----------
    def get_event(self, event_id: int) -> EventRead:
        with _guard("get_event"):
            ev = (
                self.db.execute(
                    select(Event)
                    .where(Event.id == event_id)
                    .where(Event.organization_id == self.organization_id)
                    .where(Event.deleted_at.is_(None))
                    .options(selectinload(Event.menus), selectinload(Event.direct_ingredients))
                )
                .scalars()
                .first()
            )
            if not ev:
                raise EventNotFoundError(event_id)
            return EventRead.model_validate(ev)

    def get_recipe_with_ingredients(self, recipe_id: int) -> RecipeRead | None:
        with _guard("get_recipe_with_ingredients"):
            recipe = (
                self.db.execute(
                    select(Recipe)
                    .where(Recipe.id == recipe_id)
                    .where(Recipe.organization_id == self.organization_id)
                    .where(Recipe.deleted_at.is_(None))
                    .options(selectinload(Recipe.lines))
                )
                .scalars()
                .first()
            )
            return RecipeRead.model_validate(recipe) if recipe else None

    def get_ingredient(self, ingredient_id: int) -> IngredientRead | None:
        with _guard("get_ingredient"):
            ing = (
                self.db.execute(
                    select(Ingredient)
                    .where(Ingredient.id == ingredient_id)
                    .where(Ingredient.organization_id == self.organization_id)
                    .where(Ingredient.deleted_at.is_(None))
                    .options(selectinload(Ingredient.unit))
                )
                .scalars()
                .first()
            )
            return IngredientRead.model_validate(ing) if ing else None

    def get_unit(self, unit_id: int) -> UnitRead | None:
        with _guard("get_unit"):
            unit = self.db.get(Unit, unit_id)
            return UnitRead.model_validate(unit) if unit else None

    def get_product_family(self, family_id: int) -> ProductFamilyRead | None:
        with _guard("get_product_family"):
            fam = (
                self.db.execute(
                    select(ProductFamily)
                    .where(ProductFamily.id == family_id)
                    .where(ProductFamily.organization_id == self.organization_id)
                )
                .scalars()
                .first()
            )
            return ProductFamilyRead.model_validate(fam) if fam else None

    def get_supplier(self, supplier_id: int) -> SupplierRead:
        with _guard("get_supplier"):
            s = (
                self.db.execute(
                    select(Supplier)
                    .where(Supplier.id == supplier_id)
                    .where(Supplier.organization_id == self.organization_id)
                    .where(Supplier.deleted_at.is_(None))
                )
                .scalars()
                .first()
            )
            if not s:
                raise SupplierNotFoundError(supplier_id)
            return SupplierRead.model_validate(s)

    def list_suppliers_with_cutoff(self) -> list[SupplierRead]:
        with _guard("list_suppliers_with_cutoff"):
            rows = (
                self.db.execute(
                    select(Supplier)
                    .where(Supplier.organization_id == self.organization_id)
                    .where(Supplier.deleted_at.is_(None))
                    .where(Supplier.cut_off_time.is_not(None))
                    .order_by(Supplier.name)
                )
                .scalars()
                .all()
            )
            return [SupplierRead.model_validate(s) for s in rows]

    def get_timezone(self) -> str | None:
        with _guard("get_timezone"):
            org = self.db.get(Organization, self.organization_id)
            return org.timezone if org else None

    # ---------- ECRITURES ----------
    def create_purchase_order(self, header: PurchaseOrderCreate) -> int:
        with _guard("create_purchase_order"), self.db.begin_nested():
            po = PurchaseOrder(
                organization_id=header.organization_id,
                supplier_id=header.supplier_id,
                event_id=header.event_id,
                status=header.status,
                order_date=header.order_date,
                delivery_date_estimated=header.delivery_date_estimated,
                total_cost=Decimal("0"),
            )
            self.db.add(po)
            self.db.flush()  # get po.id
            return int(po.id)

    def delete_purchase_order(self, purchase_order_id: int) -> None:
        with _guard("delete_purchase_order"), self.db.begin_nested():
            self.db.execute(
                delete(PurchaseOrderItem).where(PurchaseOrderItem.purchase_order_id == purchase_order_id)
            )
            self.db.execute(delete(PurchaseOrder).where(PurchaseOrder.id == purchase_order_id))

    def create_purchase_order_lines(
        self, purchase_order_id: int, lines: Sequence[PurchaseOrderLineCreate]
    ) -> None:
        with _guard("create_purchase_order_lines"), self.db.begin_nested():
            self.db.add_all(
                [
                    PurchaseOrderItem(
                        purchase_order_id=purchase_order_id,
                        ingredient_id=ln.ingredient_id,
                        unit_id=ln.unit_id,
                        quantity_ordered=ln.quantity_ordered,
                        unit_price=ln.unit_price,
                        total_price=ln.total_price,
                    )
                    for ln in lines
                ]
            )
            self.db.flush()

    def update_purchase_order_total(self, purchase_order_id: int, total: Decimal) -> None:
        with _guard("update_purchase_order_total"), self.db.begin_nested():
            self.db.execute(
                update(PurchaseOrder)
                .where(PurchaseOrder.id == purchase_order_id)
                .values(total_cost=total)
            )
