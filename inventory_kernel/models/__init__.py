"""ORM models for the inventory kernel."""

from inventory_kernel.models.catalog import Product, Supplier, Warehouse
from inventory_kernel.models.movement import StockMovement
from inventory_kernel.models.stock_record import StockRecord
from inventory_kernel.models.workflow_transition import WorkflowTransition

__all__ = [
    "Product",
    "Supplier",
    "Warehouse",
    "StockMovement",
    "StockRecord",
    "WorkflowTransition",
]
