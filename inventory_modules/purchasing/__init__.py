"""
Purchasing Module (``inventory_modules.purchasing``).

Purchase orders from draft through approval, supplier handoff and
receipt.  Receipts post ``purchase_receipt`` movements to the order's
warehouse.
"""

from inventory_modules.purchasing.models import (
    ApprovalStatus,
    POStatus,
    Priority,
    PurchaseLine,
    PurchaseOrderLineRecord,
    PurchaseOrderRecord,
)
from inventory_modules.purchasing.service import PurchasingService
from inventory_modules.purchasing.workflows import PURCHASE_ORDER_WORKFLOW

__all__ = [
    "ApprovalStatus",
    "POStatus",
    "PURCHASE_ORDER_WORKFLOW",
    "Priority",
    "PurchaseLine",
    "PurchaseOrderLineRecord",
    "PurchaseOrderRecord",
    "PurchasingService",
]
