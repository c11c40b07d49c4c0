"""
Transfer Workflow.

    pending --approve--> in_transit --complete--> completed
       |                     |
       +------cancel---------+-----------------> cancelled
"""

from inventory_kernel.domain.workflow import Guard, Transition, Workflow
from inventory_kernel.logging_config import get_logger
from inventory_modules.transfers.models import TransferStatus

logger = get_logger("modules.transfers.workflows")

SOURCE_RESERVED = Guard(
    name="source_reserved",
    description="Transfer quantity is still reserved on the source warehouse",
)

_P = TransferStatus.PENDING.value
_T = TransferStatus.IN_TRANSIT.value
_C = TransferStatus.COMPLETED.value
_X = TransferStatus.CANCELLED.value

TRANSFER_WORKFLOW = Workflow(
    name="transfer",
    description="Inter-warehouse stock transfer",
    initial_state=_P,
    states=(_P, _T, _C, _X),
    transitions=(
        Transition(_P, _T, action="approve"),
        Transition(_T, _C, action="complete", guard=SOURCE_RESERVED, moves_stock=True),
        Transition(_P, _X, action="cancel", moves_stock=True),
        Transition(_T, _X, action="cancel", moves_stock=True),
    ),
    terminal_states=(_C, _X),
)

logger.info(
    "transfer_workflow_registered",
    extra={
        "workflow_name": TRANSFER_WORKFLOW.name,
        "state_count": len(TRANSFER_WORKFLOW.states),
        "transition_count": len(TRANSFER_WORKFLOW.transitions),
        "initial_state": TRANSFER_WORKFLOW.initial_state,
    },
)
