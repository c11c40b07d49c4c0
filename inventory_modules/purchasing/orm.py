"""
SQLAlchemy ORM persistence models for the Purchasing module.

Responsibility
--------------
Database-backed persistence for purchase orders and their lines.

Architecture position
---------------------
**Modules layer** -- ORM models consumed by ``PurchasingService``.
Inherits from ``TrackedBase`` (kernel db layer).  Catalog references
(supplier, warehouse, product) carry no FK, matching the kernel tables.

Invariants enforced
-------------------
* ``order_number`` is unique.
* A product appears at most once per order; line numbers are unique per
  order.
* ``0 <= received_quantity <= quantity`` on every line.
* ``status`` changes only through ``TransitionLog.apply``.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import TrackedBase
from inventory_modules.purchasing.models import (
    ApprovalStatus,
    POStatus,
    Priority,
    PurchaseOrderLineRecord,
    PurchaseOrderRecord,
)


class PurchaseOrderModel(TrackedBase):
    """Maps to ``PurchaseOrderRecord``."""

    __tablename__ = "purchase_orders"

    __table_args__ = (
        UniqueConstraint("order_number", name="uq_purchase_order_number"),
        CheckConstraint("total_amount >= 0", name="total_non_negative"),
        Index("idx_po_status", "status"),
        Index("idx_po_supplier", "supplier_id"),
        Index("idx_po_warehouse", "warehouse_id"),
        Index("idx_po_order_date", "order_date"),
    )

    order_number: Mapped[str] = mapped_column(String(50), nullable=False)
    supplier_id: Mapped[UUID] = mapped_column(nullable=False)
    warehouse_id: Mapped[UUID] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="draft")
    approval_status: Mapped[str] = mapped_column(
        String(30), nullable=False, default="not_submitted",
    )
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="normal")

    subtotal: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    tax: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    discount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))

    order_date: Mapped[datetime] = mapped_column(nullable=False)
    expected_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_delivery_at: Mapped[datetime | None]
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    submitted_at: Mapped[datetime | None]
    approved_by_id: Mapped[UUID | None]
    approved_at: Mapped[datetime | None]
    rejected_by_id: Mapped[UUID | None]
    rejected_at: Mapped[datetime | None]
    rejection_reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    sent_at: Mapped[datetime | None]
    confirmed_at: Mapped[datetime | None]
    cancelled_at: Mapped[datetime | None]

    lines: Mapped[list["PurchaseOrderLineModel"]] = relationship(
        "PurchaseOrderLineModel",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PurchaseOrderLineModel.line_number",
    )

    def to_dto(self) -> PurchaseOrderRecord:
        return PurchaseOrderRecord(
            id=self.id,
            order_number=self.order_number,
            supplier_id=self.supplier_id,
            warehouse_id=self.warehouse_id,
            status=POStatus(self.status),
            approval_status=ApprovalStatus(self.approval_status),
            priority=Priority(self.priority),
            lines=tuple(line.to_dto() for line in self.lines),
            subtotal=self.subtotal,
            tax=self.tax,
            discount=self.discount,
            total_amount=self.total_amount,
            order_date=self.order_date,
            created_by_id=self.created_by_id,
            expected_delivery_date=self.expected_delivery_date,
            actual_delivery_at=self.actual_delivery_at,
            notes=self.notes,
            submitted_at=self.submitted_at,
            approved_by_id=self.approved_by_id,
            approved_at=self.approved_at,
            rejected_by_id=self.rejected_by_id,
            rejected_at=self.rejected_at,
            rejection_reason=self.rejection_reason,
            sent_at=self.sent_at,
            confirmed_at=self.confirmed_at,
            cancelled_at=self.cancelled_at,
        )

    def __repr__(self) -> str:
        return f"<PurchaseOrderModel {self.order_number} [{self.status}]>"


class PurchaseOrderLineModel(TrackedBase):
    """One product line of a purchase order."""

    __tablename__ = "purchase_order_lines"

    __table_args__ = (
        UniqueConstraint("purchase_order_id", "line_number", name="uq_po_line_number"),
        UniqueConstraint("purchase_order_id", "product_id", name="uq_po_line_product"),
        CheckConstraint("quantity >= 1", name="quantity_positive"),
        CheckConstraint("unit_price >= 0", name="price_non_negative"),
        CheckConstraint(
            "received_quantity >= 0 AND received_quantity <= quantity",
            name="received_within_ordered",
        ),
    )

    purchase_order_id: Mapped[UUID] = mapped_column(
        ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False,
    )
    line_number: Mapped[int] = mapped_column(nullable=False)
    product_id: Mapped[UUID] = mapped_column(nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    line_total: Mapped[Decimal] = mapped_column(nullable=False)
    received_quantity: Mapped[int] = mapped_column(nullable=False, default=0)

    purchase_order: Mapped["PurchaseOrderModel"] = relationship(
        "PurchaseOrderModel", back_populates="lines",
    )

    def to_dto(self) -> PurchaseOrderLineRecord:
        return PurchaseOrderLineRecord(
            id=self.id,
            line_number=self.line_number,
            product_id=self.product_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
            line_total=self.line_total,
            received_quantity=self.received_quantity,
        )

    def __repr__(self) -> str:
        return (
            f"<PurchaseOrderLineModel #{self.line_number} product={self.product_id} "
            f"{self.received_quantity}/{self.quantity}>"
        )
