"""
Module: inventory_kernel.models.workflow_transition
Responsibility: Append-only status history for transfers and purchase
    orders.  Every successful workflow action writes one row.
Architecture position: Kernel > Models.  Written ONLY by
    inventory_kernel.services.transition_log.TransitionLog.

Invariants enforced:
    - Append-only (see inventory_kernel.db.immutability).
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase
from inventory_kernel.domain.dtos import TransitionRecord


class WorkflowTransition(TrackedBase):
    """One recorded status change of a workflow document."""

    __tablename__ = "workflow_transitions"

    __table_args__ = (
        UniqueConstraint(
            "document_type", "document_id", "sequence",
            name="uq_transition_document_sequence",
        ),
    )

    document_type: Mapped[str] = mapped_column(String(50), nullable=False)
    document_id: Mapped[UUID] = mapped_column(nullable=False)
    sequence: Mapped[int] = mapped_column(nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    from_state: Mapped[str | None] = mapped_column(String(50), nullable=True)
    to_state: Mapped[str] = mapped_column(String(50), nullable=False)
    actor_id: Mapped[UUID] = mapped_column(nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self) -> TransitionRecord:
        return TransitionRecord(
            document_type=self.document_type,
            document_id=self.document_id,
            sequence=self.sequence,
            action=self.action,
            from_state=self.from_state,
            to_state=self.to_state,
            actor_id=self.actor_id,
            occurred_at=self.occurred_at,
            note=self.note,
        )

    def __repr__(self) -> str:
        return (
            f"<WorkflowTransition {self.document_type} {self.document_id} "
            f"{self.from_state}->{self.to_state}>"
        )
