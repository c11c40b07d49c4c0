"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures returned across the kernel's
    persistence boundary: stock levels, movement records, catalog info and
    workflow transition records.  Services and selectors convert ORM rows
    into these before handing them to callers.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies, database access, and external services.

Invariants enforced:
    - StockLevel validates 0 <= reserved_quantity <= quantity at
      construction; a DTO that breaks the ledger invariant cannot exist.
    - MovementRecord validates quantity_after == quantity_before + delta.

Failure modes:
    - ValueError on construction with inconsistent quantities.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from inventory_kernel.logging_config import get_logger

logger = get_logger("domain.dtos")


class MovementType(str, Enum):
    """Kind of quantity-changing event recorded in the movement log."""

    ADJUSTMENT = "adjustment"
    TRANSFER_OUT = "transfer_out"
    TRANSFER_IN = "transfer_in"
    PURCHASE_RECEIPT = "purchase_receipt"
    SALE_SHIPMENT = "sale_shipment"


class UnitOfMeasure(str, Enum):
    PIECE = "piece"
    KG = "kg"
    LITER = "liter"
    METER = "meter"
    BOX = "box"
    DOZEN = "dozen"


@dataclass(frozen=True)
class StockLevel:
    """
    Quantity state of one product in one warehouse.

    Contract: Immutable.  Construction validates the ledger invariant.
    ``available_quantity`` is derived, never stored.

    Raises:
        ValueError: If ``0 <= reserved_quantity <= quantity`` does not hold.
    """

    product_id: UUID
    warehouse_id: UUID
    quantity: int
    reserved_quantity: int = 0
    version: int = 0
    id: UUID | None = None
    aisle: str | None = None
    shelf: str | None = None
    bin: str | None = None
    last_restocked_at: datetime | None = None
    last_sold_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.quantity < 0:
            logger.warning(
                "stock_level_negative_quantity",
                extra={"product_id": str(self.product_id), "quantity": self.quantity},
            )
            raise ValueError("quantity cannot be negative")
        if self.reserved_quantity < 0:
            raise ValueError("reserved_quantity cannot be negative")
        if self.reserved_quantity > self.quantity:
            logger.warning(
                "stock_level_over_reserved",
                extra={
                    "product_id": str(self.product_id),
                    "quantity": self.quantity,
                    "reserved_quantity": self.reserved_quantity,
                },
            )
            raise ValueError("reserved_quantity cannot exceed quantity")

    @property
    def available_quantity(self) -> int:
        return self.quantity - self.reserved_quantity

    @property
    def exists(self) -> bool:
        """False for the zero snapshot of a record that was never stored."""
        return self.id is not None

    @classmethod
    def empty(cls, product_id: UUID, warehouse_id: UUID) -> StockLevel:
        return cls(product_id=product_id, warehouse_id=warehouse_id, quantity=0)


@dataclass(frozen=True)
class MovementRecord:
    """One append-only movement log entry."""

    id: UUID
    movement_type: MovementType
    product_id: UUID
    warehouse_id: UUID
    quantity_delta: int
    quantity_before: int
    quantity_after: int
    actor_id: UUID
    occurred_at: datetime
    reason: str | None = None
    reference: str | None = None
    related_warehouse_id: UUID | None = None
    notes: str | None = None
    resulting_status: str | None = None

    def __post_init__(self) -> None:
        if self.quantity_before + self.quantity_delta != self.quantity_after:
            raise ValueError(
                f"Movement {self.id}: {self.quantity_before} + "
                f"{self.quantity_delta} != {self.quantity_after}"
            )

    @property
    def is_inbound(self) -> bool:
        return self.quantity_delta > 0


@dataclass(frozen=True)
class ProductInfo:
    """Catalog view of a product: identity, pricing and stock thresholds."""

    id: UUID
    sku: str
    name: str
    unit: UnitOfMeasure
    cost_price: Decimal
    selling_price: Decimal
    reorder_level: int
    min_stock_level: int
    max_stock_level: int
    is_active: bool = True


@dataclass(frozen=True)
class WarehouseInfo:
    id: UUID
    code: str
    name: str
    capacity: int
    is_active: bool = True


@dataclass(frozen=True)
class SupplierInfo:
    id: UUID
    name: str
    email: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class TransitionRecord:
    """One status change of a transfer or purchase order."""

    document_type: str
    document_id: UUID
    sequence: int
    action: str
    from_state: str | None
    to_state: str
    actor_id: UUID
    occurred_at: datetime
    note: str | None = None
