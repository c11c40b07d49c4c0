"""
Module: inventory_kernel.models.movement
Responsibility: ORM model for the append-only movement log.  One row per
    quantity-changing event: adjustments, both legs of a transfer, purchase
    receipts and sale shipments.
Architecture position: Kernel > Models.  Written ONLY by
    inventory_kernel.services.movement_log.MovementLog.

Invariants enforced:
    - Append-only: UPDATE and DELETE are rejected by the ORM listeners in
      inventory_kernel.db.immutability.
    - quantity_after == quantity_before + quantity_delta (validated when the
      row is converted to a MovementRecord).

Audit relevance:
    The movement log is the audit trail of the stock ledger.  Replaying the
    deltas for a (product, warehouse) pair reproduces its current quantity.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase
from inventory_kernel.domain.dtos import MovementRecord, MovementType


class StockMovement(TrackedBase):
    """Immutable movement log entry."""

    __tablename__ = "stock_movements"

    __table_args__ = (
        Index("idx_movement_product_warehouse", "product_id", "warehouse_id"),
        Index("idx_movement_occurred_at", "occurred_at"),
        Index("idx_movement_reference", "reference"),
    )

    movement_type: Mapped[str] = mapped_column(String(32), nullable=False)

    product_id: Mapped[UUID] = mapped_column(nullable=False)
    warehouse_id: Mapped[UUID] = mapped_column(nullable=False)
    related_warehouse_id: Mapped[UUID | None] = mapped_column(nullable=True)

    quantity_delta: Mapped[int] = mapped_column(nullable=False)
    quantity_before: Mapped[int] = mapped_column(nullable=False)
    quantity_after: Mapped[int] = mapped_column(nullable=False)

    reason: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    resulting_status: Mapped[str | None] = mapped_column(String(32), nullable=True)

    actor_id: Mapped[UUID] = mapped_column(nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(nullable=False)

    def to_dto(self) -> MovementRecord:
        return MovementRecord(
            id=self.id,
            movement_type=MovementType(self.movement_type),
            product_id=self.product_id,
            warehouse_id=self.warehouse_id,
            quantity_delta=self.quantity_delta,
            quantity_before=self.quantity_before,
            quantity_after=self.quantity_after,
            actor_id=self.actor_id,
            occurred_at=self.occurred_at,
            reason=self.reason,
            reference=self.reference,
            related_warehouse_id=self.related_warehouse_id,
            notes=self.notes,
            resulting_status=self.resulting_status,
        )

    def __repr__(self) -> str:
        return (
            f"<StockMovement {self.movement_type} product={self.product_id} "
            f"delta={self.quantity_delta:+d}>"
        )
