"""
Transfers Module (``inventory_modules.transfers``).

Inter-warehouse stock transfers: reserve on create, move on complete,
release on cancel.
"""

from inventory_modules.transfers.models import TransferReason, TransferRecord, TransferStatus
from inventory_modules.transfers.service import TransferService
from inventory_modules.transfers.workflows import TRANSFER_WORKFLOW

__all__ = [
    "TRANSFER_WORKFLOW",
    "TransferReason",
    "TransferRecord",
    "TransferService",
    "TransferStatus",
]
