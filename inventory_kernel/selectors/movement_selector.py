"""
Module: inventory_kernel.selectors.movement_selector
Responsibility: Paginated movement history with warehouse, product, date
    range and direction filters, newest first.
Architecture position: Kernel > Selectors.  Read-only.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import func, select

from inventory_kernel.domain.dtos import MovementRecord, MovementType
from inventory_kernel.exceptions import ValidationError
from inventory_kernel.models.movement import StockMovement
from inventory_kernel.selectors.base import BaseSelector, fetch_page


class MovementDirection(str, Enum):
    ALL = "all"
    IN = "in"
    OUT = "out"
    TRANSFER = "transfer"


@dataclass(frozen=True)
class MovementPage:
    items: tuple[MovementRecord, ...]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.total else 0


class MovementSelector(BaseSelector[StockMovement]):
    """Query the movement log."""

    def history(
        self,
        *,
        warehouse_id: UUID | None = None,
        product_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        direction: MovementDirection = MovementDirection.ALL,
        page: int = 1,
        limit: int = 10,
    ) -> MovementPage:
        if page < 1:
            raise ValidationError("page must be >= 1", field="page")
        if limit < 1:
            raise ValidationError("limit must be >= 1", field="limit")

        conditions = []
        if warehouse_id is not None:
            conditions.append(StockMovement.warehouse_id == warehouse_id)
        if product_id is not None:
            conditions.append(StockMovement.product_id == product_id)
        if start is not None:
            conditions.append(StockMovement.occurred_at >= start)
        if end is not None:
            conditions.append(StockMovement.occurred_at <= end)

        direction = MovementDirection(direction)
        if direction is MovementDirection.IN:
            conditions.append(StockMovement.quantity_delta > 0)
        elif direction is MovementDirection.OUT:
            conditions.append(StockMovement.quantity_delta < 0)
        elif direction is MovementDirection.TRANSFER:
            conditions.append(
                StockMovement.movement_type.in_(
                    [MovementType.TRANSFER_OUT.value, MovementType.TRANSFER_IN.value]
                )
            )

        rows, total = fetch_page(
            self.session, StockMovement, conditions,
            (StockMovement.occurred_at.desc(), StockMovement.created_at.desc()),
            page, limit,
        )

        return MovementPage(
            items=tuple(r.to_dto() for r in rows),
            total=total,
            page=page,
            limit=limit,
        )

    def for_reference(self, reference: str) -> list[MovementRecord]:
        """All movements sharing a reference (transfer or order number)."""
        rows = self.session.execute(
            select(StockMovement)
            .where(StockMovement.reference == reference)
            .order_by(StockMovement.occurred_at, StockMovement.movement_type)
        ).scalars().all()
        return [r.to_dto() for r in rows]

    def net_delta(self, product_id: UUID, warehouse_id: UUID) -> int:
        """Sum of all deltas for a key; equals its current quantity."""
        return self.session.execute(
            select(func.coalesce(func.sum(StockMovement.quantity_delta), 0))
            .where(
                StockMovement.product_id == product_id,
                StockMovement.warehouse_id == warehouse_id,
            )
        ).scalar_one()
