"""
Assignment Manager (``mfg_modules.orders.assignment``).

Responsibility
--------------
Owns the engineer and manager assignment slots of an order: manual
assign/clear by Sales or admins, and the two engineering queue actions,
"take order" and "return to queue".  Return to queue also moves the
order back to ``ready_for_engineering`` when engineering had started,
through the same transition path (and history contract) as every other
status change.

Architecture position
---------------------
**Modules layer** -- service facade next to ``OrderService``.  Role
checks come from ``mfg_services.rbac_authority``; status changes go
through ``OrderService.fire_action``.

Invariants enforced
-------------------
* Assignment commands never change status, except return to queue from
  ``in_engineering`` / ``engineering_blocked``.
* Rejections return the input order unchanged.
"""

from __future__ import annotations

from dataclasses import replace

from mfg_kernel.domain.outcomes import CommandResult, Rejection
from mfg_kernel.domain.values import Actor, OrderStatus
from mfg_kernel.logging_config import LogContext, get_logger
from mfg_modules.orders.models import Order
from mfg_modules.orders.service import OrderService
from mfg_modules.orders.workflows import RETURN_TO_QUEUE
from mfg_services.rbac_authority import (
    ASSIGN_ENGINEER,
    ASSIGN_MANAGER,
    CLEAR_ENGINEER,
    CLEAR_MANAGER,
    TAKE_ORDER,
    check_role,
    get_roles_for_action,
)
from mfg_services.rbac_authority import RETURN_TO_QUEUE as RETURN_TO_QUEUE_PERMISSION

logger = get_logger("modules.orders.assignment")

QUEUE_STATUSES: frozenset[OrderStatus] = frozenset({
    OrderStatus.READY_FOR_ENGINEERING,
    OrderStatus.IN_ENGINEERING,
    OrderStatus.ENGINEERING_BLOCKED,
})


class AssignmentManager:
    """Engineer/manager assignment commands.

    Shares the clock, id generator and rules of the ``OrderService`` it is
    built on.
    """

    def __init__(self, order_service: OrderService):
        self._orders = order_service
        self._clock = order_service.clock

    # =========================================================================
    # Queue actions
    # =========================================================================

    def take_order(self, order: Order, actor: Actor) -> CommandResult[Order]:
        """Assign an unassigned order that is ready for engineering to the actor."""
        rejection = self._check(TAKE_ORDER, actor)
        if rejection is None:
            if order.assigned_engineer_id:
                rejection = Rejection.invalid_state(
                    f"Order already assigned to {order.assigned_engineer_name or order.assigned_engineer_id}"
                )
            elif order.status != OrderStatus.READY_FOR_ENGINEERING:
                rejection = Rejection.invalid_state(
                    f"Only orders ready for engineering can be taken (status is '{order.status.value}')"
                )
        if rejection is not None:
            return self._rejected(TAKE_ORDER, order, actor, rejection)

        updated = replace(
            order,
            assigned_engineer_id=actor.actor_id,
            assigned_engineer_name=actor.name,
            assigned_engineer_at=self._clock.now(),
        )
        self._log(TAKE_ORDER, updated, actor)
        return CommandResult(snapshot=updated)

    def return_to_queue(self, order: Order, actor: Actor) -> CommandResult[Order]:
        """Release the actor's engineering assignment.

        From ``in_engineering`` or ``engineering_blocked`` the order also
        goes back to ``ready_for_engineering`` (one history entry); from
        ``ready_for_engineering`` only the assignment is cleared.
        """
        rejection = self._check(RETURN_TO_QUEUE_PERMISSION, actor)
        if rejection is None:
            if order.assigned_engineer_id != actor.actor_id:
                rejection = Rejection.unauthorized(
                    "Only the assigned engineer can return the order to the queue"
                )
            elif order.status not in QUEUE_STATUSES:
                rejection = Rejection.invalid_state(
                    f"Cannot return to queue from status '{order.status.value}'"
                )
        if rejection is not None:
            return self._rejected(RETURN_TO_QUEUE_PERMISSION, order, actor, rejection)

        released = _clear_engineer(order)
        if order.status == OrderStatus.READY_FOR_ENGINEERING:
            self._log(RETURN_TO_QUEUE_PERMISSION, released, actor)
            return CommandResult(snapshot=released)

        result = self._orders.fire_action(released, RETURN_TO_QUEUE, actor)
        if not result.success:
            return CommandResult(snapshot=order, rejection=result.rejection)
        self._log(RETURN_TO_QUEUE_PERMISSION, result.snapshot, actor)
        return result

    # =========================================================================
    # Manual assignment
    # =========================================================================

    def assign_engineer(
        self,
        order: Order,
        actor: Actor,
        engineer_id: str,
        engineer_name: str | None = None,
    ) -> CommandResult[Order]:
        rejection = self._check(ASSIGN_ENGINEER, actor) or _require_assignee(engineer_id)
        if rejection is not None:
            return self._rejected(ASSIGN_ENGINEER, order, actor, rejection)
        updated = replace(
            order,
            assigned_engineer_id=engineer_id,
            assigned_engineer_name=engineer_name,
            assigned_engineer_at=self._clock.now(),
        )
        self._log(ASSIGN_ENGINEER, updated, actor)
        return CommandResult(snapshot=updated)

    def clear_engineer(self, order: Order, actor: Actor) -> CommandResult[Order]:
        rejection = self._check(CLEAR_ENGINEER, actor)
        if rejection is not None:
            return self._rejected(CLEAR_ENGINEER, order, actor, rejection)
        updated = _clear_engineer(order)
        self._log(CLEAR_ENGINEER, updated, actor)
        return CommandResult(snapshot=updated)

    def assign_manager(
        self,
        order: Order,
        actor: Actor,
        manager_id: str,
        manager_name: str | None = None,
    ) -> CommandResult[Order]:
        rejection = self._check(ASSIGN_MANAGER, actor) or _require_assignee(manager_id)
        if rejection is not None:
            return self._rejected(ASSIGN_MANAGER, order, actor, rejection)
        updated = replace(
            order,
            assigned_manager_id=manager_id,
            assigned_manager_name=manager_name,
            assigned_manager_at=self._clock.now(),
        )
        self._log(ASSIGN_MANAGER, updated, actor)
        return CommandResult(snapshot=updated)

    def clear_manager(self, order: Order, actor: Actor) -> CommandResult[Order]:
        rejection = self._check(CLEAR_MANAGER, actor)
        if rejection is not None:
            return self._rejected(CLEAR_MANAGER, order, actor, rejection)
        updated = replace(
            order,
            assigned_manager_id=None,
            assigned_manager_name=None,
            assigned_manager_at=None,
        )
        self._log(CLEAR_MANAGER, updated, actor)
        return CommandResult(snapshot=updated)

    # =========================================================================
    # Internal
    # =========================================================================

    def _check(self, action: str, actor: Actor) -> Rejection | None:
        roles = get_roles_for_action(action) or ()
        allowed, reason = check_role(actor, roles)
        if allowed:
            return None
        return Rejection.unauthorized(reason, required_roles=roles)

    def _rejected(
        self,
        action: str,
        order: Order,
        actor: Actor,
        rejection: Rejection,
    ) -> CommandResult[Order]:
        with LogContext.bind(order_id=order.order_id, actor_id=actor.actor_id):
            logger.warning(
                "assignment_rejected",
                extra={"action": action, "rejection": rejection.code, "reason": rejection.reason},
            )
        return CommandResult(snapshot=order, rejection=rejection)

    def _log(self, action: str, order: Order, actor: Actor) -> None:
        with LogContext.bind(order_id=order.order_id, actor_id=actor.actor_id):
            logger.info(
                "assignment_changed",
                extra={
                    "action": action,
                    "engineer_id": order.assigned_engineer_id,
                    "manager_id": order.assigned_manager_id,
                    "status": order.status,
                },
            )


def _clear_engineer(order: Order) -> Order:
    return replace(
        order,
        assigned_engineer_id=None,
        assigned_engineer_name=None,
        assigned_engineer_at=None,
    )


def _require_assignee(assignee_id: str) -> Rejection | None:
    if not assignee_id:
        return Rejection.invalid_state("An assignee is required; use clear to unassign")
    return None
