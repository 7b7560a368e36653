"""
Canonical workflow types (``mfg_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for workflow state machines.  Used by the order
lifecycle and the external job sub-workflow so that Guard, Transition,
and Workflow are defined once.  Transitions declare which roles may fire
them and, optionally, a guard that the workflow executor must see
satisfied first.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* An empty ``roles`` tuple means the transition is not role-restricted.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.
    Non-goals: does not evaluate the condition -- the workflow executor does.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    Contract: frozen.  ``roles`` lists the roles allowed to fire the
    transition; several transitions may share ``(from_state, action)`` when
    the target depends on the acting role.
    """
    from_state: str
    to_state: str
    action: str
    roles: tuple[str, ...] = ()
    guard: Guard | None = None


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    ``terminal_states`` are states with no outgoing transitions (optional).
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    @property
    def actions(self) -> frozenset[str]:
        return frozenset(t.action for t in self.transitions)
