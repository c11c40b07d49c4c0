"""
Inventory Module (``inventory_modules.inventory``).

Manual adjustments, bulk set, reservations and shipments over the stock
ledger.  Every quantity change writes one movement entry.
"""

from inventory_modules.inventory.models import (
    AdjustmentReason,
    AdjustmentResult,
    AdjustmentType,
    ReservationResult,
    SetAdjustment,
)
from inventory_modules.inventory.service import InventoryService

__all__ = [
    "AdjustmentReason",
    "AdjustmentResult",
    "AdjustmentType",
    "InventoryService",
    "ReservationResult",
    "SetAdjustment",
]
