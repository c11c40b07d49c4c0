"""
Transfer Domain Models (``inventory_modules.transfers.models``).

Frozen DTOs and enums for inter-warehouse transfers.  The ORM row lives
in ``inventory_modules.transfers.orm``.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from uuid import UUID


class TransferStatus(str, Enum):
    PENDING = "pending"
    IN_TRANSIT = "in_transit"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TransferReason(str, Enum):
    RESTOCK = "restock"
    RELOCATION = "relocation"
    DEMAND = "demand"
    MAINTENANCE = "maintenance"
    OTHER = "other"


@dataclass(frozen=True)
class TransferRecord:
    """
    A transfer of one product between two warehouses.

    While ``pending`` or ``in_transit`` the quantity is reserved on the
    source warehouse.
    """
    id: UUID
    transfer_number: str
    product_id: UUID
    from_warehouse_id: UUID
    to_warehouse_id: UUID
    quantity: int
    reason: TransferReason
    status: TransferStatus
    initiated_by_id: UUID
    transfer_date: datetime
    notes: str | None = None
    approved_by_id: UUID | None = None
    approved_at: datetime | None = None
    completed_by_id: UUID | None = None
    completed_at: datetime | None = None
    cancelled_by_id: UUID | None = None
    cancelled_at: datetime | None = None
    carrier: str | None = None
    tracking_number: str | None = None
    estimated_delivery: date | None = None

    @property
    def holds_reservation(self) -> bool:
        return self.status in (TransferStatus.PENDING, TransferStatus.IN_TRANSIT)
