"""Selectors for the inventory kernel (read side)."""

from inventory_kernel.selectors.catalog_selector import CatalogSelector
from inventory_kernel.selectors.movement_selector import (
    MovementDirection,
    MovementPage,
    MovementSelector,
)
from inventory_kernel.selectors.stock_selector import StockSelector, StockWithProduct
from inventory_kernel.selectors.transition_selector import TransitionSelector

__all__ = [
    "CatalogSelector",
    "MovementDirection",
    "MovementPage",
    "MovementSelector",
    "StockSelector",
    "StockWithProduct",
    "TransitionSelector",
]
