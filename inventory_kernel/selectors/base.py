"""
Read side of the kernel.

Selectors query catalog, stock, movement and transition tables and hand
back frozen DTOs, never ORM instances. They never add, delete, flush or
commit. ``fetch_page`` is the shared count-then-slice query behind every
paginated listing (movements here, transfers and purchase orders in the
modules).
"""

from abc import ABC
from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


def fetch_page(
    session: Session,
    model: type[ModelType],
    conditions: Sequence[Any],
    order_by: Sequence[Any],
    page: int,
    limit: int,
) -> tuple[list[ModelType], int]:
    """Rows of 1-based ``page`` and the total count matching ``conditions``."""
    total = session.execute(
        select(func.count()).select_from(model).where(*conditions)
    ).scalar_one()
    rows = session.execute(
        select(model)
        .where(*conditions)
        .order_by(*order_by)
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().all()
    return list(rows), total


class BaseSelector(ABC, Generic[ModelType]):

    def __init__(self, session: Session):
        self.session = session
