"""
Inventory Domain Models (``inventory_modules.inventory.models``).

Responsibility
--------------
Frozen value objects for manual stock operations: adjustment types and
reason codes, bulk set requests and adjustment results.

Architecture
------------
Layer: **Modules** -- pure data structures.  No database identity, no I/O.
"""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from inventory_kernel.domain.dtos import MovementRecord, StockLevel


class AdjustmentType(str, Enum):
    """How the requested quantity is applied to the on-hand quantity."""
    INCREASE = "increase"
    DECREASE = "decrease"
    SET = "set"


class AdjustmentReason(str, Enum):
    """Reason codes.  The last two are used by the workflows only."""
    RECOUNT = "recount"
    DAMAGE = "damage"
    THEFT = "theft"
    EXPIRY = "expiry"
    FOUND = "found"
    CORRECTION = "correction"
    OTHER = "other"
    PURCHASE_RECEIPT = "purchase_receipt"
    SALE_SHIPMENT = "sale_shipment"

    @property
    def is_system(self) -> bool:
        return self in _SYSTEM_REASONS


_SYSTEM_REASONS = frozenset({
    AdjustmentReason.PURCHASE_RECEIPT,
    AdjustmentReason.SALE_SHIPMENT,
})


@dataclass(frozen=True)
class SetAdjustment:
    """One row of a bulk update: set the on-hand quantity of a key."""
    product_id: UUID
    warehouse_id: UUID
    quantity: int
    reason: AdjustmentReason = AdjustmentReason.CORRECTION
    aisle: str | None = None
    shelf: str | None = None
    bin: str | None = None

    @property
    def has_location(self) -> bool:
        return any(v is not None for v in (self.aisle, self.shelf, self.bin))


@dataclass(frozen=True)
class AdjustmentResult:
    """Stock state after an adjustment and the movement it wrote."""
    stock: StockLevel
    movement: MovementRecord

    @property
    def quantity_before(self) -> int:
        return self.movement.quantity_before

    @property
    def quantity_delta(self) -> int:
        return self.movement.quantity_delta


@dataclass(frozen=True)
class ReservationResult:
    """Stock state after a reserve or release.  No movement is written."""
    stock: StockLevel
    reference: str | None
    reserved_delta: int
