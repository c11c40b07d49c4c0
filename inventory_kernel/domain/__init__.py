"""
Pure domain layer.

Immutable DTOs, the workflow state-machine types and the clock
abstraction.  No ORM, no database, no I/O (SystemClock aside).
"""

from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.dtos import (
    MovementRecord,
    MovementType,
    ProductInfo,
    StockLevel,
    SupplierInfo,
    TransitionRecord,
    UnitOfMeasure,
    WarehouseInfo,
)
from inventory_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "MovementRecord",
    "MovementType",
    "ProductInfo",
    "StockLevel",
    "SupplierInfo",
    "TransitionRecord",
    "UnitOfMeasure",
    "WarehouseInfo",
    "Guard",
    "Transition",
    "Workflow",
]
