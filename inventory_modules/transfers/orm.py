"""
SQLAlchemy ORM persistence model for the Transfers module.

Architecture position
---------------------
**Modules layer** -- ORM model consumed by ``TransferService``.  Inherits
from ``TrackedBase`` (kernel db layer).  Catalog references carry no FK,
matching the kernel stock tables.

Invariants enforced
-------------------
* ``transfer_number`` is unique.
* ``quantity > 0`` and ``from_warehouse_id != to_warehouse_id``.
* ``status`` changes only through ``TransitionLog.apply`` (guarded UPDATE).
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase
from inventory_modules.transfers.models import (
    TransferReason,
    TransferRecord,
    TransferStatus,
)


class TransferModel(TrackedBase):
    """Maps to ``TransferRecord``."""

    __tablename__ = "transfers"

    __table_args__ = (
        UniqueConstraint("transfer_number", name="uq_transfer_number"),
        CheckConstraint("quantity > 0", name="quantity_positive"),
        CheckConstraint(
            "from_warehouse_id <> to_warehouse_id", name="distinct_warehouses",
        ),
        Index("idx_transfer_status", "status"),
        Index("idx_transfer_product", "product_id"),
        Index("idx_transfer_from", "from_warehouse_id"),
        Index("idx_transfer_to", "to_warehouse_id"),
        Index("idx_transfer_date", "transfer_date"),
    )

    transfer_number: Mapped[str] = mapped_column(String(50), nullable=False)
    product_id: Mapped[UUID] = mapped_column(nullable=False)
    from_warehouse_id: Mapped[UUID] = mapped_column(nullable=False)
    to_warehouse_id: Mapped[UUID] = mapped_column(nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False)
    reason: Mapped[str] = mapped_column(String(30), nullable=False)
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")

    initiated_by_id: Mapped[UUID] = mapped_column(nullable=False)
    transfer_date: Mapped[datetime] = mapped_column(nullable=False)
    approved_by_id: Mapped[UUID | None]
    approved_at: Mapped[datetime | None]
    completed_by_id: Mapped[UUID | None]
    completed_at: Mapped[datetime | None]
    cancelled_by_id: Mapped[UUID | None]
    cancelled_at: Mapped[datetime | None]

    # Tracking info, set on approval
    carrier: Mapped[str | None] = mapped_column(String(100), nullable=True)
    tracking_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    estimated_delivery: Mapped[date | None] = mapped_column(Date, nullable=True)

    def to_dto(self) -> TransferRecord:
        return TransferRecord(
            id=self.id,
            transfer_number=self.transfer_number,
            product_id=self.product_id,
            from_warehouse_id=self.from_warehouse_id,
            to_warehouse_id=self.to_warehouse_id,
            quantity=self.quantity,
            reason=TransferReason(self.reason),
            status=TransferStatus(self.status),
            initiated_by_id=self.initiated_by_id,
            transfer_date=self.transfer_date,
            notes=self.notes,
            approved_by_id=self.approved_by_id,
            approved_at=self.approved_at,
            completed_by_id=self.completed_by_id,
            completed_at=self.completed_at,
            cancelled_by_id=self.cancelled_by_id,
            cancelled_at=self.cancelled_at,
            carrier=self.carrier,
            tracking_number=self.tracking_number,
            estimated_delivery=self.estimated_delivery,
        )

    def __repr__(self) -> str:
        return f"<TransferModel {self.transfer_number} [{self.status}]>"
