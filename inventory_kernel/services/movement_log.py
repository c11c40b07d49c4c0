"""
MovementLog -- append-only record of quantity-changing events.

Responsibility:
    Writes one ``StockMovement`` row per stock mutation, in the same
    transaction as the mutation and after it, so that a committed stock
    change always has its movement entry and a rolled-back one never does.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only.

Invariants enforced:
    - MOVEMENT_APPEND_ONLY: this service only inserts.  Updates and deletes
      are blocked by inventory_kernel.db.immutability.
    - quantity_after == quantity_before + quantity_delta.

Audit relevance:
    The log is the audit trail for every adjustment, transfer leg,
    purchase receipt and sale shipment.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import MovementRecord, MovementType, StockLevel
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.movement import StockMovement
from inventory_kernel.services.base import BaseService

logger = get_logger("services.movement_log")


class MovementLog(BaseService[StockMovement]):
    """Inserts immutable movement entries."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def record(
        self,
        movement_type: MovementType,
        after: StockLevel,
        quantity_delta: int,
        *,
        actor_id: UUID,
        reason: str | None = None,
        reference: str | None = None,
        notes: str | None = None,
        related_warehouse_id: UUID | None = None,
        resulting_status: str = "completed",
    ) -> MovementRecord:
        """
        Append a movement for a mutation that produced ``after``.

        ``quantity_before`` is derived from the post-mutation state and the
        signed delta actually applied.  ``resulting_status`` is the status
        of the originating document once the movement is in effect.
        """
        entry = StockMovement(
            movement_type=movement_type.value,
            product_id=after.product_id,
            warehouse_id=after.warehouse_id,
            related_warehouse_id=related_warehouse_id,
            quantity_delta=quantity_delta,
            quantity_before=after.quantity - quantity_delta,
            quantity_after=after.quantity,
            reason=reason,
            reference=reference,
            notes=notes,
            resulting_status=resulting_status,
            actor_id=actor_id,
            occurred_at=self._clock.now(),
            created_by_id=actor_id,
        )
        self.session.add(entry)
        self.session.flush()

        logger.info(
            "movement_recorded",
            extra={
                "movement_id": str(entry.id),
                "movement_type": movement_type.value,
                "product_id": str(after.product_id),
                "warehouse_id": str(after.warehouse_id),
                "quantity_delta": quantity_delta,
                "quantity_after": after.quantity,
                "reference": reference,
            },
        )
        return entry.to_dto()
