"""
mfg_services.rbac_authority -- Role enforcement at the workflow boundary.

Responsibility:
    Check that an actor's role permits an action.  Workflow transitions
    carry their own allowed roles; the assignment actions that are not
    status transitions are mapped here.

Architecture position:
    Services layer.  Called by WorkflowExecutor before a transition fires
    and by the AssignmentManager before touching an assignment slot.

Invariants:
    - The kernel is actor-agnostic; this module never resolves identity
      (the caller supplies the Actor).
    - An empty role tuple means "no role restriction".
    - The admin flag on an Actor counts as the Admin role only where Admin
      is one of the allowed roles.
"""

from __future__ import annotations

from mfg_kernel.domain.values import Actor, Role

ASSIGN_ENGINEER = "assign_engineer"
CLEAR_ENGINEER = "clear_engineer"
ASSIGN_MANAGER = "assign_manager"
CLEAR_MANAGER = "clear_manager"
TAKE_ORDER = "take_order"
RETURN_TO_QUEUE = "return_to_queue"

_ASSIGNMENT_ROLES: tuple[str, ...] = (Role.SALES.value, Role.ADMIN.value)
_QUEUE_ROLES: tuple[str, ...] = (Role.ENGINEERING.value,)

# Non-transition action -> roles allowed to perform it
ACTION_TO_ROLES: dict[str, tuple[str, ...]] = {
    ASSIGN_ENGINEER: _ASSIGNMENT_ROLES,
    CLEAR_ENGINEER: _ASSIGNMENT_ROLES,
    ASSIGN_MANAGER: _ASSIGNMENT_ROLES,
    CLEAR_MANAGER: _ASSIGNMENT_ROLES,
    TAKE_ORDER: _QUEUE_ROLES,
    RETURN_TO_QUEUE: _QUEUE_ROLES,
}


def get_roles_for_action(action: str) -> tuple[str, ...] | None:
    """Return the roles allowed to perform ``action``, or None if not mapped."""
    return ACTION_TO_ROLES.get(action)


def check_role(actor: Actor, allowed_roles: tuple[str, ...]) -> tuple[bool, str]:
    """Check whether the actor may act under one of ``allowed_roles``.

    Returns:
        (allowed, reason). reason is empty when allowed, or a short message
        when denied.
    """
    if not allowed_roles:
        return (True, "")
    if actor.role in allowed_roles:
        return (True, "")
    if actor.is_admin and Role.ADMIN.value in allowed_roles:
        return (True, "")
    return (
        False,
        f"Role '{actor.role}' is not permitted; requires one of {list(allowed_roles)}",
    )
