"""
TransitionLog -- guarded status changes for workflow documents.

Responsibility:
    Applies a document status change as a conditional UPDATE keyed on the
    expected current status, then appends a ``WorkflowTransition`` history
    row.  Two callers racing to transition the same document cannot both
    succeed: the loser's UPDATE matches no row.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only.  Works on any
    mapped document class with ``id`` and ``status`` columns, so module
    ORM models (transfers, purchase orders) need no kernel import cycle.

Invariants enforced:
    - GUARDED_STATUS_CHANGE.
    - History rows are append-only (inventory_kernel.db.immutability).

Failure modes:
    - InvalidStateTransitionError when the stored status is no longer the
      expected from-state.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import TransitionRecord
from inventory_kernel.domain.workflow import Transition, Workflow
from inventory_kernel.exceptions import InvalidStateTransitionError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.workflow_transition import WorkflowTransition
from inventory_kernel.services.base import BaseService

logger = get_logger("services.transition_log")


class TransitionLog(BaseService[WorkflowTransition]):
    """Conditional status updates plus append-only history."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def apply(
        self,
        workflow: Workflow,
        model: type,
        document_id: UUID,
        current_state: str,
        action: str,
        *,
        actor_id: UUID,
        note: str | None = None,
        values: dict[str, Any] | None = None,
    ) -> Transition:
        """
        Move a document along ``workflow`` by ``action``.

        Args:
            workflow: The document's transition table.
            model: Mapped class with ``id`` and ``status`` columns.
            document_id: Document primary key.
            current_state: The status the caller read.
            action: Workflow action name.
            actor_id: Who performed the action.
            note: Free text stored on the history row (e.g. reject reason).
            values: Extra columns written in the same UPDATE.

        Returns:
            The transition that was applied.

        Raises:
            InvalidStateTransitionError: ``action`` is not allowed from
                ``current_state``, or the stored status changed since read.
        """
        transition = workflow.transition_for(current_state, action)

        result = self.session.execute(
            update(model)
            .where(model.id == document_id, model.status == current_state)
            .values(status=transition.to_state, updated_by_id=actor_id, **(values or {}))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            stored = self.session.execute(
                select(model.status).where(model.id == document_id)
            ).scalar_one_or_none()
            logger.warning(
                "workflow_transition_conflict",
                extra={
                    "workflow": workflow.name,
                    "document_id": str(document_id),
                    "expected_state": current_state,
                    "stored_state": stored,
                    "action": action,
                },
            )
            raise InvalidStateTransitionError(
                workflow=workflow.name,
                current_state=stored or current_state,
                action=action,
            )

        self.record(
            workflow.name, document_id, action,
            transition.from_state, transition.to_state,
            actor_id=actor_id, note=note,
        )
        return transition

    def record(
        self,
        document_type: str,
        document_id: UUID,
        action: str,
        from_state: str | None,
        to_state: str,
        *,
        actor_id: UUID,
        note: str | None = None,
    ) -> TransitionRecord:
        """Append a history row (also used for document creation).

        ``sequence`` numbers the rows of one document from 1.  Callers
        hold the document row (via the guarded status UPDATE or the
        creating INSERT) so the count cannot race.
        """
        sequence = self.session.execute(
            select(func.count())
            .select_from(WorkflowTransition)
            .where(
                WorkflowTransition.document_type == document_type,
                WorkflowTransition.document_id == document_id,
            )
        ).scalar_one() + 1
        row = WorkflowTransition(
            sequence=sequence,
            document_type=document_type,
            document_id=document_id,
            action=action,
            from_state=from_state,
            to_state=to_state,
            actor_id=actor_id,
            occurred_at=self._clock.now(),
            note=note,
            created_by_id=actor_id,
        )
        self.session.add(row)
        self.session.flush()
        logger.info(
            "workflow_transition_recorded",
            extra={
                "document_type": document_type,
                "document_id": str(document_id),
                "action": action,
                "from_state": from_state,
                "to_state": to_state,
            },
        )
        return row.to_dto()
