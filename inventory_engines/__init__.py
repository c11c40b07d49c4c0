"""
Module: inventory_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines: stock
    alert classification, purchase order totals, valuation and summary.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import inventory_kernel/domain (and sibling engine modules).
    MUST NOT import inventory_modules or inventory_config.

Invariants enforced:
    - Purity: engines never read the clock or the database.
    - Decimal-only arithmetic for money.
"""

from inventory_engines.alerts import (
    AlertReport,
    AlertSeverity,
    StockAlert,
    StockClassification,
    StockStatus,
    build_alert_report,
    classify_level,
    classify_stock,
)
from inventory_engines.totals import (
    LineAmount,
    OrderTotals,
    compute_order_totals,
    to_money,
)
from inventory_engines.valuation import (
    InventorySummary,
    ValuationMethod,
    ValuationReport,
    summarize_stock,
    value_stock,
)

__all__ = [
    "AlertReport",
    "AlertSeverity",
    "StockAlert",
    "StockClassification",
    "StockStatus",
    "build_alert_report",
    "classify_level",
    "classify_stock",
    "LineAmount",
    "OrderTotals",
    "compute_order_totals",
    "to_money",
    "InventorySummary",
    "ValuationMethod",
    "ValuationReport",
    "summarize_stock",
    "value_stock",
]
