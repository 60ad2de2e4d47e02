"""
Calcul de la demande ingrédients d'un événement.

Règles par type d'événement:
    - A_LA_CARTE           : q x (prévision / servings), pax ignoré
    - BANQUET, COFFEE,
      BUFFET, OTHER, ...   : q x (pax / servings)
    - SPORTS_MULTI         : comme BANQUET + ingrédients directs (quantité telle quelle)

Les contributions sont sommées par (ingredient_id, unit_id) AVANT
d'appliquer une seule fois le buffer de sécurité de la famille produit.
Lecture seule: rien n'est écrit.
"""

from __future__ import annotations

import logging
from decimal import Decimal, ROUND_CEILING
from typing import Iterable

from kitchenops.app.core.config import settings
from kitchenops.app.db.models.core_types import DemandSource, EventType
from kitchenops.app.schemas.catalog import IngredientRead
from kitchenops.app.schemas.demand import DemandLine
from kitchenops.app.schemas.event import EventRead
from kitchenops.services.errors import IngredientNotFoundError
from kitchenops.services.repository import ProcurementRepository

logger = logging.getLogger(__name__)

# Types dont les lignes "ingrédient direct" comptent dans la demande
DIRECT_INGREDIENT_EVENT_TYPES: frozenset[EventType] = frozenset({EventType.sports_multi})

FORECAST_EVENT_TYPES: frozenset[EventType] = frozenset({EventType.a_la_carte})

_CENT = Decimal("0.01")


class _Accumulator:
    """Map ordonnée (ingredient_id, unit_id) -> ligne, ordre de première apparition."""

    def __init__(self) -> None:
        self._lines: dict[tuple[int, int], dict] = {}

    def add(
        self,
        *,
        ingredient_id: int,
        unit_id: int,
        quantity: Decimal,
        source: DemandSource,
    ) -> None:
        key = (int(ingredient_id), int(unit_id))
        existing = self._lines.get(key)
        if existing:
            existing["quantity_needed"] += quantity
            return
        self._lines[key] = {
            "ingredient_id": key[0],
            "unit_id": key[1],
            "quantity_needed": quantity,
            "source": source,
        }

    def items(self) -> Iterable[dict]:
        return self._lines.values()


class DemandPlanner:
    def __init__(
        self,
        repo: ProcurementRepository,
        *,
        direct_ingredient_types: Iterable[EventType] = DIRECT_INGREDIENT_EVENT_TYPES,
        default_buffer: Decimal | None = None,
    ):
        self.repo = repo
        self.direct_ingredient_types = frozenset(direct_ingredient_types)
        self.default_buffer = default_buffer if default_buffer is not None else settings.DEFAULT_SAFETY_BUFFER

    def calculate_event_demand(self, event_id: int) -> list[DemandLine]:
        """
        Retourne une DemandLine par (ingrédient, unité).

        Lève EventNotFoundError si l'événement n'existe pas (ou hors organisation).
        Toute PersistenceError interrompt le calcul entier.
        """
        event = self.repo.get_event(event_id)
        acc = _Accumulator()

        if event.event_type in self.direct_ingredient_types:
            self._add_direct_demand(event, acc)

        if event.event_type in FORECAST_EVENT_TYPES:
            self._add_forecast_demand(event, acc)
        else:
            # BANQUET / COFFEE / BUFFET / OTHER / SPORTS_MULTI et tout type futur
            self._add_headcount_demand(event, acc)

        demands = self._apply_safety_buffers(acc)
        logger.debug(
            "Event demand calculated",
            extra={"event_id": event_id, "event_type": event.event_type.value, "lines": len(demands)},
        )
        return demands

    def purchase_quantity(self, ingredient_id: int, quantity: Decimal) -> Decimal:
        """Quantité à commander pour un besoin isolé: buffer appliqué, arrondi au centième supérieur."""
        ingredient = self.repo.get_ingredient(ingredient_id)
        if ingredient is None:
            raise IngredientNotFoundError(ingredient_id)
        buffer = self.safety_buffer_for(ingredient)
        return (Decimal(quantity) * buffer).quantize(_CENT, rounding=ROUND_CEILING)

    def safety_buffer_for(self, ingredient: IngredientRead | None) -> Decimal:
        if ingredient is None or ingredient.family_id is None:
            return self.default_buffer
        family = self.repo.get_product_family(ingredient.family_id)
        if family is None or not family.safety_buffer_pct:
            return self.default_buffer
        return Decimal(family.safety_buffer_pct)

    # ---------- SOURCES ----------
    def _add_headcount_demand(self, event: EventRead, acc: _Accumulator) -> None:
        pax = Decimal(event.pax)
        for menu in event.menus:
            self._add_recipe_demand(menu.recipe_id, pax, acc)

    def _add_forecast_demand(self, event: EventRead, acc: _Accumulator) -> None:
        for menu in event.menus:
            if menu.qty_forecast is None:
                continue
            self._add_recipe_demand(menu.recipe_id, Decimal(menu.qty_forecast), acc)

    def _add_recipe_demand(self, recipe_id: int | None, portions: Decimal, acc: _Accumulator) -> None:
        if recipe_id is None:
            return
        recipe = self.repo.get_recipe_with_ingredients(recipe_id)
        if recipe is None:
            return
        servings = Decimal(recipe.servings or 1)
        for line in recipe.lines:
            acc.add(
                ingredient_id=line.ingredient_id,
                unit_id=line.unit_id,
                quantity=Decimal(line.quantity) * portions / servings,
                source=DemandSource.recipe,
            )

    def _add_direct_demand(self, event: EventRead, acc: _Accumulator) -> None:
        for item in event.direct_ingredients:
            acc.add(
                ingredient_id=item.ingredient_id,
                unit_id=item.unit_id,
                quantity=Decimal(item.quantity),
                source=DemandSource.direct,
            )

    # ---------- BUFFER ----------
    def _apply_safety_buffers(self, acc: _Accumulator) -> list[DemandLine]:
        demands: list[DemandLine] = []
        units: dict[int, str | None] = {}
        for raw in acc.items():
            ingredient = self.repo.get_ingredient(raw["ingredient_id"])
            if ingredient is None:
                # supprimé (soft-delete) ou hors organisation: contribution vide
                logger.warning("Ingredient not found, skipped", extra={"ingredient_id": raw["ingredient_id"]})
                continue
            buffer = self.safety_buffer_for(ingredient)
            if raw["unit_id"] not in units:
                unit = self.repo.get_unit(raw["unit_id"])
                units[raw["unit_id"]] = unit.abbreviation if unit else None
            demands.append(
                DemandLine(
                    ingredient_id=raw["ingredient_id"],
                    ingredient_name=ingredient.name,
                    unit_id=raw["unit_id"],
                    unit_abbr=units[raw["unit_id"]],
                    source=raw["source"],
                    quantity_needed=raw["quantity_needed"],
                    safety_buffer=buffer,
                    quantity_with_buffer=raw["quantity_needed"] * buffer,
                )
            )
        return demands
