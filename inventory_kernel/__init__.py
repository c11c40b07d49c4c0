"""
Inventory Kernel - stock ledger primitives for the order-workflow engine.

The kernel owns the stock record store, the append-only movement log,
document number sequences, the catalog tables and the workflow transition
history.  Modules compose these primitives; the kernel never imports them.
"""

__version__ = "0.1.0"
