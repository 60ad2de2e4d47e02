"""
Horloge injectable.

Les services ne lisent jamais ``datetime.now()`` directement: on leur passe
une Clock, ce qui rend les calculs de date de livraison reproductibles en test.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Retourne toujours le même instant (tests)."""

    def __init__(self, fixed: datetime):
        self._fixed = fixed

    def now(self) -> datetime:
        return self._fixed
