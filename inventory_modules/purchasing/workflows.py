"""
Purchase Order Workflow.

State machine for a purchase order from draft to receipt:

    draft --submit--> pending_approval --approve--> approved
      |                      |
      |                      +--reject--> rejected
      +--auto_approve (below threshold)--> approved

    approved --mark_sent--> sent --mark_confirmed--> confirmed
    confirmed|partial --mark_partial--> partial
    confirmed|partial --mark_received--> received
    sent|confirmed|partial --mark_cancelled--> cancelled
"""

from inventory_kernel.domain.workflow import Guard, Transition, Workflow
from inventory_kernel.logging_config import get_logger
from inventory_modules.purchasing.models import POStatus

logger = get_logger("modules.purchasing.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

HAS_LINES = Guard(
    name="has_lines",
    description="Order has at least one line item",
)

BELOW_APPROVAL_THRESHOLD = Guard(
    name="below_approval_threshold",
    description="Approval threshold is configured and the order total is below it",
)

REASON_GIVEN = Guard(
    name="reason_given",
    description="A non-empty rejection reason is supplied",
)

RECEIPT_WITHIN_ORDERED = Guard(
    name="receipt_within_ordered",
    description="Cumulative receipt per line does not exceed the ordered quantity",
)

ALL_LINES_RECEIVED = Guard(
    name="all_lines_received",
    description="Every line's received quantity equals its ordered quantity",
)

logger.info(
    "purchasing_workflow_guards_defined",
    extra={
        "guards": [
            HAS_LINES.name,
            BELOW_APPROVAL_THRESHOLD.name,
            REASON_GIVEN.name,
            RECEIPT_WITHIN_ORDERED.name,
            ALL_LINES_RECEIVED.name,
        ],
    },
)


# -----------------------------------------------------------------------------
# Purchase Order Workflow
# -----------------------------------------------------------------------------

_S = POStatus

PURCHASE_ORDER_WORKFLOW = Workflow(
    name="purchase_order",
    description="Purchase order approval and fulfillment",
    initial_state=_S.DRAFT.value,
    states=tuple(s.value for s in _S),
    transitions=(
        Transition(_S.DRAFT.value, _S.PENDING_APPROVAL.value, action="submit", guard=HAS_LINES),
        Transition(
            _S.DRAFT.value, _S.APPROVED.value,
            action="auto_approve", guard=BELOW_APPROVAL_THRESHOLD,
        ),
        Transition(_S.PENDING_APPROVAL.value, _S.APPROVED.value, action="approve"),
        Transition(_S.PENDING_APPROVAL.value, _S.REJECTED.value, action="reject", guard=REASON_GIVEN),
        Transition(_S.APPROVED.value, _S.SENT.value, action="mark_sent"),
        Transition(_S.SENT.value, _S.CONFIRMED.value, action="mark_confirmed"),
        Transition(
            _S.CONFIRMED.value, _S.PARTIAL.value,
            action="mark_partial", guard=RECEIPT_WITHIN_ORDERED, moves_stock=True,
        ),
        Transition(
            _S.PARTIAL.value, _S.PARTIAL.value,
            action="mark_partial", guard=RECEIPT_WITHIN_ORDERED, moves_stock=True,
        ),
        Transition(
            _S.CONFIRMED.value, _S.RECEIVED.value,
            action="mark_received", guard=ALL_LINES_RECEIVED, moves_stock=True,
        ),
        Transition(
            _S.PARTIAL.value, _S.RECEIVED.value,
            action="mark_received", guard=ALL_LINES_RECEIVED, moves_stock=True,
        ),
        Transition(_S.SENT.value, _S.CANCELLED.value, action="mark_cancelled"),
        Transition(_S.CONFIRMED.value, _S.CANCELLED.value, action="mark_cancelled"),
        Transition(_S.PARTIAL.value, _S.CANCELLED.value, action="mark_cancelled"),
    ),
    terminal_states=(_S.REJECTED.value, _S.RECEIVED.value, _S.CANCELLED.value),
)

logger.info(
    "purchase_order_workflow_registered",
    extra={
        "workflow_name": PURCHASE_ORDER_WORKFLOW.name,
        "state_count": len(PURCHASE_ORDER_WORKFLOW.states),
        "transition_count": len(PURCHASE_ORDER_WORKFLOW.transitions),
        "initial_state": PURCHASE_ORDER_WORKFLOW.initial_state,
    },
)
