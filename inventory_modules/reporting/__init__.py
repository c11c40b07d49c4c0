"""
Reporting Module (``inventory_modules.reporting``).

Alerts, movement history, valuation, inventory and purchase summaries.
"""

from inventory_modules.reporting.models import PurchaseSummary
from inventory_modules.reporting.service import ReportingService

__all__ = [
    "PurchaseSummary",
    "ReportingService",
]
