"""
Canonical workflow types (``inventory_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for document state machines.  Transfers and purchase
orders each declare one ``Workflow`` holding their complete transition
table; ``Workflow.transition_for`` is the single point where an action is
accepted or rejected for a given state.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states have no outgoing transitions.
* At most one transition exists per (from_state, action) pair.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from inventory_kernel.exceptions import InvalidStateTransitionError


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.
    Non-goals: does not evaluate the condition -- the owning service does.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``moves_stock=True`` marks transitions that mutate the stock ledger.
    """
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None
    moves_stock: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    Guarantees: ``initial_state`` is a member of ``states``; no transition
    leaves a state in ``terminal_states``.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()
    _index: dict[tuple[str, str], Transition] = field(
        init=False, repr=False, compare=False,
    )

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state {self.initial_state!r} "
                "is not a declared state"
            )
        index: dict[tuple[str, str], Transition] = {}
        for t in self.transitions:
            for state in (t.from_state, t.to_state):
                if state not in self.states:
                    raise ValueError(
                        f"Workflow {self.name}: transition {t.action!r} "
                        f"references unknown state {state!r}"
                    )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"Workflow {self.name}: terminal state {t.from_state!r} "
                    f"has outgoing transition {t.action!r}"
                )
            key = (t.from_state, t.action)
            if key in index:
                raise ValueError(
                    f"Workflow {self.name}: duplicate transition {key!r}"
                )
            index[key] = t
        object.__setattr__(self, "_index", index)

    def transition_for(self, state: str, action: str) -> Transition:
        """Return the transition for ``action`` from ``state``.

        Raises:
            InvalidStateTransitionError: No such transition is declared.
        """
        transition = self._index.get((state, action))
        if transition is None:
            raise InvalidStateTransitionError(
                workflow=self.name, current_state=state, action=action,
            )
        return transition

    def can(self, state: str, action: str) -> bool:
        return (state, action) in self._index

    def actions_from(self, state: str) -> tuple[str, ...]:
        """Actions available from ``state``, in declaration order."""
        return tuple(
            t.action for t in self.transitions if t.from_state == state
        )

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states
