"""Report DTOs that are not produced by a pure engine."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class PurchaseSummary:
    """Order count and amounts over a filtered set of purchase orders."""
    order_count: int
    total_amount: Decimal
    average_amount: Decimal
    status_breakdown: dict[str, int] = field(default_factory=dict)
    warehouse_id: UUID | None = None
    start: datetime | None = None
    end: datetime | None = None
