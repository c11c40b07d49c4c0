"""
Inventory Modules.

Orchestration services over the inventory kernel and engines.  Each
service owns its transaction boundary: it commits on success and rolls
back on any exception before re-raising.

Modules:
- inventory: manual adjustments, bulk set, reservations and shipments
- transfers: inter-warehouse transfers with reservation on create
- purchasing: purchase orders from draft through receipt
- reporting: alerts, movement history, valuation and summaries
"""

from inventory_modules._orm_registry import create_all_tables, import_all_orm_models

__all__ = [
    "create_all_tables",
    "import_all_orm_models",
]
