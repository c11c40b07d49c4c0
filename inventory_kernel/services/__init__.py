"""Services for the inventory kernel (write side)."""

from inventory_kernel.services.catalog_service import CatalogService
from inventory_kernel.services.movement_log import MovementLog
from inventory_kernel.services.sequence_service import SequenceService
from inventory_kernel.services.stock_store import StockStore
from inventory_kernel.services.transition_log import TransitionLog

__all__ = [
    "CatalogService",
    "MovementLog",
    "SequenceService",
    "StockStore",
    "TransitionLog",
]
