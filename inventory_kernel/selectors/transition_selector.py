"""Status history of workflow documents, in the order it was written."""

from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain.dtos import TransitionRecord
from inventory_kernel.models.workflow_transition import WorkflowTransition
from inventory_kernel.selectors.base import BaseSelector


class TransitionSelector(BaseSelector[WorkflowTransition]):

    def history(self, document_type: str, document_id: UUID) -> list[TransitionRecord]:
        rows = self.session.execute(
            select(WorkflowTransition)
            .where(
                WorkflowTransition.document_type == document_type,
                WorkflowTransition.document_id == document_id,
            )
            .order_by(WorkflowTransition.sequence)
        ).scalars().all()
        return [r.to_dto() for r in rows]
