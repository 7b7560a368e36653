"""
Order Service (``mfg_modules.orders.service``).

Responsibility
--------------
The authoritative order state machine.  Validates a requested status
change against ``ORDER_WORKFLOW`` (role + readiness gate) and produces the
next order snapshot with its status stamps and new history entry
computed together.  Also derives the set of actions an actor may take,
which replaces per-screen permission flags.

Architecture position
---------------------
**Modules layer** -- service facade.  Delegates transition selection, role
checks and guard evaluation to ``WorkflowExecutor``; readiness to
``mfg_engines.readiness``.  Receives ``Clock`` and ``IdGenerator`` by
injection.

Invariants enforced
-------------------
* The input order is never mutated; a new snapshot is returned.
* On success exactly one history entry is appended, and its status,
  actor and timestamp equal the new ``status_changed_*`` stamps.
* On rejection the returned snapshot is the input, unchanged.
* The requested status is never replaced by a different one.

Failure modes
-------------
* Business refusals are returned as ``Rejection`` values.
* ``UnknownStatusError`` / ``UnknownActionError`` for malformed input.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from enum import Enum
from typing import Callable

from mfg_engines.readiness import evaluate_readiness, next_gate
from mfg_kernel.domain.clock import Clock, SystemClock
from mfg_kernel.domain.identifiers import IdGenerator, UuidIdGenerator
from mfg_kernel.domain.outcomes import (
    CommandResult,
    ReadinessReport,
    Rejection,
    StatusHistoryEntry,
    TransitionResult,
    append_history,
)
from mfg_kernel.domain.rules import WorkflowRules
from mfg_kernel.domain.values import Actor, Gate, OrderStatus, Priority, Role
from mfg_kernel.exceptions import UnknownActionError
from mfg_kernel.logging_config import LogContext, get_logger
from mfg_modules.orders.models import Comment, Order
from mfg_modules.orders.workflows import (
    DEDICATED_COMMANDS,
    ORDER_WORKFLOW,
    RETURN_TO_QUEUE,
    SEND_BACK,
    resolve_send_back_target,
)
from mfg_services.workflow_executor import WorkflowExecutor

logger = get_logger("modules.orders.service")

ENTITY_TYPE = "order"


class OrderAction(str, Enum):
    """Everything an actor can do to an order from its detail view."""

    SEND_TO_ENGINEERING = "send_to_engineering"
    START_ENGINEERING = "start_engineering"
    BLOCK_ENGINEERING = "block_engineering"
    RESUME_ENGINEERING = "resume_engineering"
    SEND_TO_PRODUCTION = "send_to_production"
    SEND_BACK = "send_back"
    START_PRODUCTION = "start_production"
    TAKE_ORDER = "take_order"
    RETURN_TO_QUEUE = "return_to_queue"
    ASSIGN_ENGINEER = "assign_engineer"
    ASSIGN_MANAGER = "assign_manager"


class OrderService:
    """Applies order status transitions.

    Contract:
        Every command returns a ``CommandResult[Order]``.  Persisting the
        returned snapshot (status fields and history tail together) is the
        caller's responsibility.
    """

    def __init__(
        self,
        rules: WorkflowRules,
        clock: Clock | None = None,
        id_generator: IdGenerator | None = None,
        executor: WorkflowExecutor | None = None,
        outcome_sink: Callable[[dict], None] | None = None,
    ):
        self._rules = rules
        self._clock = clock or SystemClock()
        self._ids = id_generator or UuidIdGenerator()
        self._executor = executor or WorkflowExecutor(clock=self._clock)
        self._outcome_sink = outcome_sink

    @property
    def rules(self) -> WorkflowRules:
        return self._rules

    @property
    def clock(self) -> Clock:
        return self._clock

    # =========================================================================
    # Creation
    # =========================================================================

    def create_order(
        self,
        order_number: str,
        customer_name: str,
        actor: Actor,
        priority: Priority = Priority.NORMAL,
        product_name: str | None = None,
        quantity: int | None = None,
        due_date: date | None = None,
        manager_id: str | None = None,
        manager_name: str | None = None,
    ) -> Order:
        """Build a new draft order.

        When no manager is given and the creator is Sales or an admin, the
        creator becomes the assigned manager.  History starts empty.
        """
        now = self._clock.now()
        if manager_id is None and (actor.role == Role.SALES.value or actor.is_administrator):
            manager_id, manager_name = actor.actor_id, actor.name
        order = Order(
            order_id=self._ids.new_id("ord"),
            order_number=order_number,
            customer_name=customer_name,
            status=ORDER_WORKFLOW.initial_state,
            priority=priority,
            product_name=product_name,
            quantity=quantity,
            due_date=due_date,
            assigned_manager_id=manager_id,
            assigned_manager_name=manager_name,
            assigned_manager_at=now if manager_id is not None else None,
        )
        logger.info(
            "order_created",
            extra={
                "order_id": order.order_id,
                "order_number": order_number,
                "created_by": actor.actor_id,
            },
        )
        return order

    # =========================================================================
    # Transitions
    # =========================================================================

    def apply_transition(
        self,
        order: Order,
        requested_status: OrderStatus | str,
        actor: Actor,
    ) -> CommandResult[Order]:
        """Move ``order`` to ``requested_status`` if the actor and gates allow it.

        Rejections: INVALID_STATE when the workflow has no such move,
        UNAUTHORIZED when the actor's role may not make it, NOT_READY when
        a forward gate's readiness criteria are unmet.
        """
        requested = OrderStatus.coerce(requested_status)
        with LogContext.bind(order_id=order.order_id, actor_id=actor.actor_id):
            result = self._executor.execute_status_change(
                workflow=ORDER_WORKFLOW,
                entity_type=ENTITY_TYPE,
                entity_id=order.order_id,
                current_state=order.status,
                requested_state=requested,
                actor=actor,
                context=self._context(order),
                outcome_sink=self._outcome_sink,
            )
            return self._finish(order, result, actor)

    def execute_action(
        self,
        order: Order,
        action: OrderAction | str,
        actor: Actor,
    ) -> CommandResult[Order]:
        """Fire a named workflow action (the button a user pressed).

        ``send_back`` and ``return_to_queue`` are refused with INVALID_STATE:
        they need a reason or release the engineer, so they run through
        their own commands.
        """
        action_name = action.value if isinstance(action, OrderAction) else action
        if action_name not in ORDER_WORKFLOW.actions:
            raise UnknownActionError(action_name, ORDER_WORKFLOW.name)
        if action_name in DEDICATED_COMMANDS:
            return CommandResult(
                snapshot=order,
                rejection=Rejection.invalid_state(
                    f"'{action_name}' cannot be fired directly; use {DEDICATED_COMMANDS[action_name]}"
                ),
            )
        return self.fire_action(order, action_name, actor)

    def fire_action(self, order: Order, action: str, actor: Actor) -> CommandResult[Order]:
        """Run ``action`` through the executor and stamp the result.

        Shared by ``execute_action``, ``send_back`` and
        ``AssignmentManager.return_to_queue``.
        """
        with LogContext.bind(order_id=order.order_id, actor_id=actor.actor_id):
            result = self._executor.execute_transition(
                workflow=ORDER_WORKFLOW,
                entity_type=ENTITY_TYPE,
                entity_id=order.order_id,
                current_state=order.status,
                action=action,
                actor=actor,
                context=self._context(order),
                outcome_sink=self._outcome_sink,
            )
            return self._finish(order, result, actor)

    def send_back(
        self,
        order: Order,
        actor: Actor,
        reason: str | None = None,
        note: str = "",
    ) -> CommandResult[Order]:
        """Return the order one stage (Engineering) or to draft (Sales).

        Requires a configured return reason or a non-blank note.  On success
        a ``Returned: ...`` comment by the actor is appended before the
        status change; on rejection nothing changes.
        """
        note = note.strip()
        if not reason and not note:
            return CommandResult(
                snapshot=order,
                rejection=Rejection.invalid_state("A return reason or note is required"),
            )
        if reason and reason not in self._rules.return_reasons:
            return CommandResult(
                snapshot=order,
                rejection=Rejection.invalid_state(f"Unknown return reason '{reason}'"),
            )

        with LogContext.bind(order_id=order.order_id, actor_id=actor.actor_id):
            result = self._executor.execute_transition(
                workflow=ORDER_WORKFLOW,
                entity_type=ENTITY_TYPE,
                entity_id=order.order_id,
                current_state=order.status,
                action=SEND_BACK,
                actor=actor,
                context=self._context(order),
                outcome_sink=self._outcome_sink,
            )
            if not result.success:
                return self._finish(order, result, actor)

            message = f"Returned: {reason or 'No reason selected'}"
            if note:
                message = f"{message} - {note}"
            comment = Comment(
                comment_id=self._ids.new_id("cmt"),
                message=message,
                author=actor.name,
                author_role=actor.role,
                created_at=self._clock.now(),
            )
            return self._finish(order.with_comment(comment), result, actor)

    # =========================================================================
    # Derived reads
    # =========================================================================

    def send_back_target(self, order: Order, actor: Actor) -> OrderStatus:
        """Status a send back by ``actor`` would land on (for confirmation dialogs)."""
        return resolve_send_back_target(order.status, actor.role)

    def readiness(self, order: Order, gate: Gate | None = None) -> ReadinessReport | None:
        """Preview readiness for ``gate`` (default: the next forward gate)."""
        gate = gate or next_gate(order.status)
        if gate is None:
            return None
        return evaluate_readiness(order, self._rules, gate)

    def permitted_actions(self, order: Order, actor: Actor) -> frozenset[OrderAction]:
        """Actions the actor's role allows in the order's current state.

        Gates are not evaluated: a gated action appears here even when its
        readiness criteria are unmet (the UI shows it disabled).
        """
        actions: set[OrderAction] = {
            OrderAction(t.action)
            for t in self._executor.permitted_transitions(ORDER_WORKFLOW, order.status, actor)
            if t.action != RETURN_TO_QUEUE
        }
        actions |= self._assignment_actions(order, actor)
        return frozenset(actions)

    def available_actions(self, order: Order, actor: Actor) -> frozenset[OrderAction]:
        """Permitted actions whose gates are currently satisfied."""
        context = self._context(order)
        blocked = {
            OrderAction(t.action)
            for t in self._executor.permitted_transitions(ORDER_WORKFLOW, order.status, actor)
            if t.action != RETURN_TO_QUEUE and not self._executor.guard_passes(t, context)
        }
        return self.permitted_actions(order, actor) - blocked

    # =========================================================================
    # Internal
    # =========================================================================

    def _context(self, order: Order) -> dict:
        return {"document": order, "rules": self._rules}

    def _assignment_actions(self, order: Order, actor: Actor) -> set[OrderAction]:
        actions: set[OrderAction] = set()
        is_engineer = actor.role == Role.ENGINEERING.value
        if (
            is_engineer
            and not order.assigned_engineer_id
            and order.status == OrderStatus.READY_FOR_ENGINEERING
        ):
            actions.add(OrderAction.TAKE_ORDER)
        if (
            is_engineer
            and order.assigned_engineer_id == actor.actor_id
            and order.status in (
                OrderStatus.READY_FOR_ENGINEERING,
                OrderStatus.IN_ENGINEERING,
                OrderStatus.ENGINEERING_BLOCKED,
            )
        ):
            actions.add(OrderAction.RETURN_TO_QUEUE)
        if actor.role == Role.SALES.value or actor.is_administrator:
            actions |= {OrderAction.ASSIGN_ENGINEER, OrderAction.ASSIGN_MANAGER}
        return actions

    def _finish(
        self,
        order: Order,
        result: TransitionResult,
        actor: Actor,
    ) -> CommandResult[Order]:
        if not result.success:
            logger.warning(
                "order_transition_rejected",
                extra={
                    "from_status": order.status,
                    "rejection": result.rejection.code if result.rejection else None,
                    "reason": result.reason,
                },
            )
            return CommandResult(snapshot=order, rejection=result.rejection)

        updated, entry = self.stamp_status(order, OrderStatus.coerce(result.new_state), actor)
        logger.info(
            "order_status_changed",
            extra={
                "from_status": order.status,
                "to_status": updated.status,
                "history_entry_id": entry.entry_id,
                "history_length": len(updated.status_history),
            },
        )
        return CommandResult(snapshot=updated, history_entry=entry)

    def stamp_status(
        self,
        order: Order,
        status: OrderStatus,
        actor: Actor,
    ) -> tuple[Order, StatusHistoryEntry]:
        """Set ``status`` with its stamps and append the matching history entry.

        Callers must have validated the move with the workflow executor.
        """
        now = self._clock.now()
        entry = StatusHistoryEntry(
            entry_id=self._ids.new_id("hst"),
            status=status,
            changed_by=actor.name,
            changed_by_role=actor.role,
            changed_at=now,
        )
        updated = replace(
            order,
            status=status,
            status_changed_by=actor.name,
            status_changed_by_role=actor.role,
            status_changed_at=now,
            status_history=append_history(order.status_history, entry),
        )
        return updated, entry
