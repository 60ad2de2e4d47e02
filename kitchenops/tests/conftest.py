import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, time, timezone
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from kitchenops.app.db.base import Base
from kitchenops.app.db.models.core_types import EventType
from kitchenops.app.db.models.models_v1 import (
    Organization,
    Unit,
    ProductFamily,
    Supplier,
    Ingredient,
    Recipe,
    RecipeIngredient,
    Event,
    EventMenu,
    EventDirectIngredient,
)
from kitchenops.app.db.session import make_engine
from kitchenops.services.repository import SqlAlchemyRepository

ALL_WEEK = [1, 2, 3, 4, 5, 6, 7]


@pytest.fixture(scope="function")
def db_session() -> Session:
    """
    Session DB isolée par test.

    SQLite en mémoire (StaticPool: une seule connexion partagée, y compris
    avec le thread du TestClient). Le schéma est recréé à chaque test.
    """
    engine = make_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)

    session = Session(bind=engine, autoflush=False)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


class CatalogFactory:
    """Crée les données de référence minimales pour un test."""

    def __init__(self, db: Session):
        self.db = db
        self.org = Organization(name="Hotel Central", timezone="Europe/Madrid")
        self.kg = Unit(name="Kilogram", abbreviation="kg")
        db.add_all([self.org, self.kg])
        db.flush()

    def unit(self, name: str, abbreviation: str) -> Unit:
        unit = Unit(name=name, abbreviation=abbreviation)
        self.db.add(unit)
        self.db.flush()
        return unit

    def soft_delete(self, obj) -> None:
        obj.deleted_at = datetime.now(timezone.utc)
        self.db.flush()

    def family(self, name: str = "Produce", buffer: str | None = "1.10") -> ProductFamily:
        fam = ProductFamily(
            organization_id=self.org.id,
            name=name,
            safety_buffer_pct=Decimal(buffer) if buffer is not None else None,
        )
        self.db.add(fam)
        self.db.flush()
        return fam

    def supplier(
        self,
        name: str = "Mercado Norte",
        *,
        lead_time_days: int = 0,
        cut_off_time: time | None = None,
        delivery_days: list[int] | None = None,
    ) -> Supplier:
        s = Supplier(
            organization_id=self.org.id,
            name=name,
            lead_time_days=lead_time_days,
            cut_off_time=cut_off_time,
            delivery_days=list(delivery_days) if delivery_days is not None else list(ALL_WEEK),
        )
        self.db.add(s)
        self.db.flush()
        return s

    def ingredient(
        self,
        name: str,
        *,
        cost: str = "1",
        stock: str = "0",
        family: ProductFamily | None = None,
        supplier: Supplier | None = None,
    ) -> Ingredient:
        ing = Ingredient(
            organization_id=self.org.id,
            name=name,
            unit_id=self.kg.id,
            cost_price=Decimal(cost),
            stock_current=Decimal(stock),
            family_id=family.id if family else None,
            supplier_id=supplier.id if supplier else None,
        )
        self.db.add(ing)
        self.db.flush()
        return ing

    def recipe(
        self,
        name: str,
        servings: int,
        lines: list[tuple[Ingredient, str]],
        *,
        unit: Unit | None = None,
    ) -> Recipe:
        unit_id = unit.id if unit else self.kg.id
        recipe = Recipe(
            organization_id=self.org.id,
            name=name,
            servings=servings,
            lines=[
                RecipeIngredient(ingredient_id=ing.id, quantity=Decimal(qty), unit_id=unit_id)
                for ing, qty in lines
            ],
        )
        self.db.add(recipe)
        self.db.flush()
        return recipe

    def event(
        self,
        event_type: EventType,
        *,
        pax: int = 0,
        menus: list[tuple[Recipe | None, str | None]] = (),
        direct: list[tuple[Ingredient, str]] = (),
        name: str = "Gala",
    ) -> Event:
        ev = Event(
            organization_id=self.org.id,
            name=name,
            event_type=event_type,
            pax=pax,
            menus=[
                EventMenu(
                    recipe_id=recipe.id if recipe else None,
                    qty_forecast=Decimal(forecast) if forecast is not None else None,
                )
                for recipe, forecast in menus
            ],
            direct_ingredients=[
                EventDirectIngredient(ingredient_id=ing.id, quantity=Decimal(qty), unit_id=self.kg.id)
                for ing, qty in direct
            ],
        )
        self.db.add(ev)
        self.db.flush()
        return ev


@pytest.fixture
def catalog(db_session) -> CatalogFactory:
    return CatalogFactory(db_session)


@pytest.fixture
def repo(db_session, catalog) -> SqlAlchemyRepository:
    return SqlAlchemyRepository(db_session, catalog.org.id)
