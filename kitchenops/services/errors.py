"""
Exceptions typées du coeur achats.

Chaque exception porte un ``code`` stable (utilisable côté API / logs);
on attrape par type, jamais en parsant le message.
"""

from __future__ import annotations


class KitchenOpsError(Exception):
    code: str = "KITCHENOPS_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(KitchenOpsError):
    code = "NOT_FOUND"


class EventNotFoundError(NotFoundError):
    code = "EVENT_NOT_FOUND"

    def __init__(self, event_id: int):
        self.event_id = event_id
        super().__init__("Event not found")


class SupplierNotFoundError(NotFoundError):
    code = "SUPPLIER_NOT_FOUND"

    def __init__(self, supplier_id: int):
        self.supplier_id = supplier_id
        super().__init__("Supplier not found")


class IngredientNotFoundError(NotFoundError):
    code = "INGREDIENT_NOT_FOUND"

    def __init__(self, ingredient_id: int):
        self.ingredient_id = ingredient_id
        super().__init__("Ingredient not found")


class PersistenceError(KitchenOpsError):
    """Echec d'un accès données. L'erreur SQLAlchemy d'origine est dans __cause__."""

    code = "PERSISTENCE_FAILURE"

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        message = f"{operation} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InvalidSupplierConfigError(KitchenOpsError):
    code = "INVALID_SUPPLIER_CONFIG"
