"""
Kernel Invariants Contract.

These invariants are structural law for the stock ledger.  No setting in
``inventory_config`` may switch them off.

This module exists solely to declare these invariants explicitly.  The
enforcement is distributed across StockStore, MovementLog, SequenceService,
TransitionLog and the immutability listeners.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel.

    Each value names one structural guarantee that the kernel provides
    unconditionally.
    """

    RESERVATION_BOUNDS = "reservation_bounds"
    """Every stock record satisfies 0 <= reserved_quantity <= quantity.
    Enforced by the WHERE clause of StockStore.apply_delta."""

    ATOMIC_STOCK_UPDATE = "atomic_stock_update"
    """Stock records change only through one conditional UPDATE per call.
    No read-then-write path exists in StockStore."""

    MOVEMENT_APPEND_ONLY = "movement_append_only"
    """Movement log entries are never updated or deleted.  Enforced by
    ORM listeners (inventory_kernel.db.immutability)."""

    GUARDED_STATUS_CHANGE = "guarded_status_change"
    """Document status changes are conditional on the expected current
    status, so two racing callers cannot both transition a document."""

    SEQUENCE_MONOTONICITY = "sequence_monotonicity"
    """Document numbers come from locked counter rows and never repeat
    within a counter."""


# All invariants as a frozenset for programmatic checks.
ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "inventory_engines",
    "inventory_modules",
    "inventory_config",
)
