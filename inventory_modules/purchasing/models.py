"""
Purchasing Domain Models (``inventory_modules.purchasing.models``).

Responsibility
--------------
Frozen DTOs and enums for purchase orders: status, approval status,
priority, input lines and the stored order with its lines.

Invariants
----------
- ``PurchaseLine`` requires ``quantity >= 1`` and ``unit_price >= 0``.
- ``PurchaseOrderLineRecord`` requires
  ``0 <= received_quantity <= quantity``.
- All monetary fields are ``Decimal``.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from inventory_kernel.logging_config import get_logger

logger = get_logger("modules.purchasing.models")


class POStatus(str, Enum):
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    SENT = "sent"
    CONFIRMED = "confirmed"
    PARTIAL = "partial"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class ApprovalStatus(str, Enum):
    NOT_SUBMITTED = "not_submitted"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    NOT_REQUIRED = "not_required"


class Priority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


@dataclass(frozen=True)
class PurchaseLine:
    """An order line as supplied by the caller."""
    product_id: UUID
    quantity: int
    unit_price: Decimal

    def __post_init__(self):
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValueError(f"line quantity must be a whole number, got {self.quantity!r}")
        if self.quantity < 1:
            raise ValueError(f"line quantity must be at least 1, got {self.quantity}")
        if not isinstance(self.unit_price, Decimal):
            object.__setattr__(self, "unit_price", Decimal(str(self.unit_price)))
        if not self.unit_price.is_finite():
            raise ValueError(f"unit price must be a finite amount, got {self.unit_price}")
        if self.unit_price < 0:
            logger.warning(
                "purchase_line_negative_price",
                extra={"product_id": str(self.product_id), "unit_price": str(self.unit_price)},
            )
            raise ValueError(f"unit price cannot be negative, got {self.unit_price}")


@dataclass(frozen=True)
class PurchaseOrderLineRecord:
    id: UUID
    line_number: int
    product_id: UUID
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    received_quantity: int = 0

    def __post_init__(self):
        if not 0 <= self.received_quantity <= self.quantity:
            raise ValueError(
                f"line {self.line_number}: received {self.received_quantity} "
                f"outside 0..{self.quantity}"
            )

    @property
    def outstanding_quantity(self) -> int:
        return self.quantity - self.received_quantity

    @property
    def is_fully_received(self) -> bool:
        return self.received_quantity == self.quantity


@dataclass(frozen=True)
class PurchaseOrderRecord:
    """
    A purchase order and its lines.

    Contract: Immutable snapshot.  ``total_amount`` equals
    ``subtotal + tax - discount`` and ``subtotal`` equals the sum of the
    line totals.
    """
    id: UUID
    order_number: str
    supplier_id: UUID
    warehouse_id: UUID
    status: POStatus
    approval_status: ApprovalStatus
    priority: Priority
    lines: tuple[PurchaseOrderLineRecord, ...]
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total_amount: Decimal
    order_date: datetime
    created_by_id: UUID
    expected_delivery_date: date | None = None
    actual_delivery_at: datetime | None = None
    notes: str | None = None
    submitted_at: datetime | None = None
    approved_by_id: UUID | None = None
    approved_at: datetime | None = None
    rejected_by_id: UUID | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    sent_at: datetime | None = None
    confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None

    @property
    def is_editable(self) -> bool:
        return self.status is POStatus.DRAFT

    @property
    def is_fully_received(self) -> bool:
        return bool(self.lines) and all(line.is_fully_received for line in self.lines)

    def line_for(self, product_id: UUID) -> PurchaseOrderLineRecord | None:
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None
