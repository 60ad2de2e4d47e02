from __future__ import annotations

from typing import Iterable

from kitchenops.app.schemas.demand import DemandLine, MissingIngredient, StockCheck
from kitchenops.services.repository import ProcurementRepository


def check_stock(repo: ProcurementRepository, demands: Iterable[DemandLine]) -> StockCheck:
    """
    Compare la demande (buffer inclus) au stock courant.

    Règle métier :
        manquant  <=>  stock_current < quantity_with_buffer
        shortage  =    quantity_with_buffer - stock_current

    Propriétés :
    - lecture seule
    - rejouable à volonté
    - un ingrédient introuvable est ignoré (pas de stock connu)
    """

    missing: list[MissingIngredient] = []

    for demand in demands:
        ingredient = repo.get_ingredient(demand.ingredient_id)
        if ingredient is None:
            continue

        if ingredient.stock_current < demand.quantity_with_buffer:
            missing.append(
                MissingIngredient(
                    ingredient_id=demand.ingredient_id,
                    ingredient_name=demand.ingredient_name,
                    needed=demand.quantity_with_buffer,
                    current=ingredient.stock_current,
                    shortage=demand.quantity_with_buffer - ingredient.stock_current,
                )
            )

    return StockCheck(has_sufficient_stock=not missing, missing_ingredients=missing)
