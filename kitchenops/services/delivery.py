"""
Estimation de la date de livraison fournisseur.

Deux notions à ne pas confondre:
    - jour ouvré     : lundi..vendredi, sert UNIQUEMENT à compter le lead time
    - jour de livraison : jours déclarés par le fournisseur (1=lundi..7=dimanche)

D'où deux boucles distinctes: add_business_days() puis next_delivery_day().
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, time, timedelta
from typing import Iterable
from zoneinfo import ZoneInfo

from kitchenops.app.core.clock import Clock, SystemClock
from kitchenops.app.core.config import settings
from kitchenops.app.schemas.catalog import CutoffStatus, SupplierRead
from kitchenops.services.errors import InvalidSupplierConfigError
from kitchenops.services.repository import ProcurementRepository

logger = logging.getLogger(__name__)

SATURDAY = 6
SUNDAY = 7


def add_business_days(start: date, days: int) -> date:
    """Avance de `days` jours ouvrés (samedi/dimanche jamais comptés). 0 => start."""
    current = start
    added = 0
    while added < days:
        current += timedelta(days=1)
        if current.isoweekday() not in (SATURDAY, SUNDAY):
            added += 1
    return current


def next_delivery_day(start: date, delivery_days: Iterable[int]) -> date:
    """Premier jour >= start dont le jour de semaine est livrable."""
    allowed = _normalize_delivery_days(delivery_days)
    current = start
    while current.isoweekday() not in allowed:
        current += timedelta(days=1)
    return current


def _normalize_delivery_days(delivery_days: Iterable[int] | None) -> frozenset[int]:
    allowed = frozenset(int(d) for d in (delivery_days or []) if 1 <= int(d) <= 7)
    if not allowed:
        # sinon la recherche du jour de livraison ne termine jamais
        raise InvalidSupplierConfigError("At least one delivery day must be specified")
    return allowed


class DeliveryEstimator:
    def __init__(
        self,
        repo: ProcurementRepository,
        clock: Clock | None = None,
        *,
        timezone: str | None = None,
        urgent_minutes: int | None = None,
    ):
        self.repo = repo
        self.clock = clock or SystemClock()
        self._timezone = timezone
        self.urgent_minutes = urgent_minutes if urgent_minutes is not None else settings.CUTOFF_URGENT_MINUTES

    # ---------- API ----------
    def estimate_delivery_date(self, supplier_id: int, order_instant: datetime | None = None) -> date:
        """Lève SupplierNotFoundError si le fournisseur n'existe pas."""
        supplier = self.repo.get_supplier(supplier_id)
        return self.estimate_for_supplier(supplier, order_instant)

    def estimate_for_supplier(self, supplier: SupplierRead, order_instant: datetime | None = None) -> date:
        local = self._local(order_instant)

        start = local.date()
        if supplier.cut_off_time is not None and local.time().replace(microsecond=0) >= _naive(supplier.cut_off_time):
            start += timedelta(days=1)

        after_lead = add_business_days(start, supplier.lead_time_days)
        estimated = next_delivery_day(after_lead, supplier.delivery_days)

        logger.debug(
            "Delivery estimated",
            extra={
                "supplier_id": supplier.id,
                "order_instant": local,
                "start_date": start,
                "delivery_date": estimated,
            },
        )
        return estimated

    def calculate_time_until_cutoff(self, cutoff_time: time, now: datetime | None = None) -> int:
        """Minutes signées jusqu'au cut-off du jour même (négatif si déjà passé). Pas de bascule au lendemain."""
        local = self._local(now)
        cutoff = datetime.combine(local.date(), _naive(cutoff_time))
        delta = cutoff - local.replace(tzinfo=None)
        return math.floor(delta.total_seconds() / 60)

    def is_delivery_day_today(self, delivery_days: Iterable[int], today: date | None = None) -> bool:
        if today is None:
            today = self._local(None).date()
        return today.isoweekday() in {int(d) for d in delivery_days}

    def cutoff_status(self, supplier: SupplierRead, now: datetime | None = None) -> CutoffStatus:
        local = self._local(now)
        minutes = (
            self.calculate_time_until_cutoff(supplier.cut_off_time, local)
            if supplier.cut_off_time is not None
            else None
        )
        return CutoffStatus(
            minutes_until_cutoff=minutes,
            is_delivery_day=self.is_delivery_day_today(supplier.delivery_days, local.date()),
            is_urgent=minutes is not None and 0 < minutes < self.urgent_minutes,
            has_passed=minutes is not None and minutes < 0,
        )

    # ---------- HELPERS ----------
    @property
    def timezone(self) -> str:
        if self._timezone is None:
            self._timezone = self.repo.get_timezone() or settings.DEFAULT_TIMEZONE
        return self._timezone

    def _local(self, instant: datetime | None) -> datetime:
        """Instant dans le calendrier local. Un datetime naïf est considéré déjà local."""
        if instant is None:
            instant = self.clock.now()
        if instant.tzinfo is None:
            return instant
        return instant.astimezone(ZoneInfo(self.timezone))


def _naive(t: time) -> time:
    return t.replace(tzinfo=None)
