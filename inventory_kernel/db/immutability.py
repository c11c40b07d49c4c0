"""
ORM-Level Immutability Enforcement for append-only records.

===============================================================================
WHAT IS PROTECTED
===============================================================================

Entity               | When Immutable         | Operations blocked
---------------------|------------------------|------------------------------
StockMovement        | ALWAYS (from creation) | UPDATE, DELETE, bulk UPDATE/DELETE
WorkflowTransition   | ALWAYS (from creation) | UPDATE, DELETE, bulk UPDATE/DELETE

Stock records themselves are mutable, but only through the conditional
UPDATE issued by StockStore.

===============================================================================
HOW IT WORKS
===============================================================================

    session.flush()
         |
         v
    [before_update event] --> _check_*_update() --> ImmutabilityViolationError
         |
    [before_delete event] --> _check_*_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

ORM-enabled ``update()`` / ``delete()`` statements do not fire mapper
events, so a ``do_orm_execute`` session listener rejects those as well.

===============================================================================
USAGE
===============================================================================

Called once at startup (and by the test suite's session fixture):

    from inventory_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event
from sqlalchemy.orm import Session

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _append_only_models() -> tuple[type, ...]:
    from inventory_kernel.models.movement import StockMovement
    from inventory_kernel.models.workflow_transition import WorkflowTransition

    return (StockMovement, WorkflowTransition)


def _block(entity_type: str, entity_id: str, operation: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=entity_id,
        reason=f"{entity_type} records are append-only ({operation} rejected)",
    )


def _check_append_only_update(mapper, connection, target):
    """Prevent any UPDATE of an append-only row."""
    _block(type(target).__name__, str(target.id), "UPDATE")


def _check_append_only_delete(mapper, connection, target):
    """Prevent DELETE of an append-only row."""
    _block(type(target).__name__, str(target.id), "DELETE")


def _check_bulk_statements(orm_execute_state):
    """Reject ORM-enabled bulk UPDATE/DELETE against append-only tables."""
    if not (orm_execute_state.is_update or orm_execute_state.is_delete):
        return
    mapper = orm_execute_state.bind_mapper
    if mapper is None or mapper.class_ not in _append_only_models():
        return
    operation = "BULK UPDATE" if orm_execute_state.is_update else "BULK DELETE"
    _block(mapper.class_.__name__, "*", operation)


def register_immutability_listeners() -> None:
    """
    Register all immutability enforcement event listeners.

    Idempotent: listeners already present are not added twice.
    """
    for model in _append_only_models():
        if not event.contains(model, "before_update", _check_append_only_update):
            event.listen(model, "before_update", _check_append_only_update)
        if not event.contains(model, "before_delete", _check_append_only_delete):
            event.listen(model, "before_delete", _check_append_only_delete)

    if not event.contains(Session, "do_orm_execute", _check_bulk_statements):
        event.listen(Session, "do_orm_execute", _check_bulk_statements)

    logger.info(
        "immutability_listeners_registered",
        extra={"models": [m.__name__ for m in _append_only_models()]},
    )


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners() -> None:
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that need to perform a forbidden
    operation deliberately.
    """
    for model in _append_only_models():
        _safe_remove_listener(model, "before_update", _check_append_only_update)
        _safe_remove_listener(model, "before_delete", _check_append_only_delete)
    _safe_remove_listener(Session, "do_orm_execute", _check_bulk_statements)
