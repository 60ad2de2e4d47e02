from __future__ import annotations

from typing import Generator

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from kitchenops.app.core.clock import Clock, SystemClock
from kitchenops.app.core.config import settings
from kitchenops.app.db.session import SessionLocal
from kitchenops.services.repository import SqlAlchemyRepository


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_organization_id(x_organization_id: int | None = Header(default=None, alias="X-Organization-Id")) -> int:
    return x_organization_id if x_organization_id is not None else settings.DEFAULT_ORGANIZATION_ID


def get_clock() -> Clock:
    return SystemClock()


def get_repository(
    db: Session = Depends(get_db),
    organization_id: int = Depends(get_organization_id),
) -> SqlAlchemyRepository:
    return SqlAlchemyRepository(db, organization_id)
