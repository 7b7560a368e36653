"""
mfg_services.workflow_executor -- Workflow transition execution.

Responsibility:
    Decides whether a state transition may fire: finds the matching
    transition in a declarative workflow, enforces the transition's
    allowed roles, and evaluates its guard.  Thin coordinator -- readiness
    and attachment rules are delegated to the pure engines through
    registered guard evaluators; building the new snapshot and its history
    entry is the calling module service's job.

Architecture position:
    Services layer.  May import from mfg_engines/ (pure engines) and
    mfg_kernel/ (domain, logging).

Invariants enforced:
    - Role check happens before guard evaluation, so an unauthorized actor
      never learns readiness details.
    - Every outcome emits exactly one ``workflow_transition`` trace record.
    - The executor never picks a different target than the one requested.
"""

from __future__ import annotations

import time
from typing import Any, Callable

from mfg_engines.readiness import evaluate_readiness, external_attachments_short
from mfg_kernel.domain.clock import Clock, SystemClock
from mfg_kernel.domain.outcomes import Rejection, TransitionResult
from mfg_kernel.domain.values import Actor, ExternalJobStatus, Gate
from mfg_kernel.domain.workflow import Guard, Transition, Workflow
from mfg_kernel.logging_config import LogContext, get_logger
from mfg_services.rbac_authority import check_role

logger = get_logger("services.workflow_executor")

# Trace message and outcome codes for structured logging and traceability
TRACE_TYPE_WORKFLOW_TRANSITION = "WORKFLOW_TRANSITION"
OUTCOME_SUCCESS = "success"
OUTCOME_GUARD_FAILED = "guard_failed"
OUTCOME_NO_TRANSITION = "no_transition"
OUTCOME_UNAUTHORIZED = "unauthorized"

# Guard names used by the module workflows
ENGINEERING_READY = "engineering_ready"
PRODUCTION_READY = "production_ready"
EXTERNAL_ATTACHMENTS_MET = "external_attachments_met"

GuardEvaluator = Callable[[dict[str, Any]], Rejection | None]


def _emit_workflow_trace(
    clock: Clock,
    workflow_name: str,
    action: str | None,
    entity_type: str,
    entity_id: str,
    from_state: str,
    outcome: str,
    reason: str,
    duration_ms: float,
    actor: Actor,
    to_state: str | None = None,
    outcome_sink: Callable[[dict], None] | None = None,
) -> None:
    """Emit a structured workflow transition record for traceability."""
    record: dict[str, Any] = {
        "trace_type": TRACE_TYPE_WORKFLOW_TRANSITION,
        "ts": clock.now().isoformat(),
        "workflow": workflow_name,
        "action": action,
        "entity_type": entity_type,
        "entity_id": entity_id,
        "from_state": str(getattr(from_state, "value", from_state)),
        "outcome": outcome,
        "reason": reason,
        "duration_ms": round(duration_ms, 3),
        "actor_name": actor.name,
        "actor_role": actor.role,
    }
    if to_state is not None:
        record["to_state"] = str(getattr(to_state, "value", to_state))
    record.update(LogContext.get_all())
    record.setdefault("actor_id", actor.actor_id)
    if outcome == OUTCOME_SUCCESS:
        logger.info("workflow_transition", extra=record)
    else:
        logger.warning("workflow_transition", extra=record)
    if outcome_sink is not None:
        outcome_sink({**record, "message": "workflow_transition"})


# ---------------------------------------------------------------------------
# Guard evaluation
# ---------------------------------------------------------------------------


def _gate_evaluator(gate: Gate) -> GuardEvaluator:
    def evaluate(context: dict[str, Any]) -> Rejection | None:
        report = evaluate_readiness(context["document"], context["rules"], gate)
        if report.ready:
            return None
        return Rejection.not_ready(report)

    return evaluate


def _external_attachments_met(context: dict[str, Any]) -> Rejection | None:
    target = ExternalJobStatus.coerce(context["to_state"])
    short = external_attachments_short(context["document"], context["rules"], target)
    if short == 0:
        return None
    return Rejection.insufficient_attachments(target.value, short)


class GuardExecutor:
    """Evaluates workflow guards against context.

    Guards are declared on transitions (name + description).  This executor
    holds the evaluation logic per guard name.  An evaluator returns None
    when the guard passes, or the Rejection explaining why it does not.
    """

    def __init__(self) -> None:
        self._evaluators: dict[str, GuardEvaluator] = {}

    def register(self, guard_name: str, evaluator: GuardEvaluator) -> None:
        """Register an evaluator for a guard by name."""
        self._evaluators[guard_name] = evaluator

    def evaluate(self, guard: Guard, context: dict[str, Any]) -> Rejection | None:
        fn = self._evaluators.get(guard.name)
        if fn is None:
            logger.warning("guard_no_evaluator", extra={"guard_name": guard.name})
            return Rejection.invalid_state(f"No evaluator registered for guard '{guard.name}'")
        return fn(context)


def default_guard_executor() -> GuardExecutor:
    """Return a GuardExecutor with the built-in evaluators registered."""
    ex = GuardExecutor()
    ex.register(ENGINEERING_READY, _gate_evaluator(Gate.ENGINEERING))
    ex.register(PRODUCTION_READY, _gate_evaluator(Gate.PRODUCTION))
    ex.register(EXTERNAL_ATTACHMENTS_MET, _external_attachments_met)
    return ex


# ---------------------------------------------------------------------------
# WorkflowExecutor
# ---------------------------------------------------------------------------


class WorkflowExecutor:
    """Executes workflow transitions with role and guard enforcement."""

    def __init__(
        self,
        clock: Clock | None = None,
        guard_executor: GuardExecutor | None = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._guard_executor = guard_executor or default_guard_executor()

    def execute_transition(
        self,
        workflow: Workflow,
        entity_type: str,
        entity_id: str,
        current_state: str,
        action: str,
        actor: Actor,
        context: dict[str, Any] | None = None,
        outcome_sink: Callable[[dict], None] | None = None,
    ) -> TransitionResult:
        """Fire ``action`` from ``current_state`` if the actor and guard allow it."""
        candidates = tuple(
            t for t in workflow.transitions
            if t.from_state == current_state and t.action == action
        )
        return self._run(
            workflow, entity_type, entity_id, current_state, actor,
            candidates, context or {}, outcome_sink,
            action=action,
            missing_reason=(
                f"No transition from '{_value(current_state)}' via action '{action}' "
                f"in workflow '{workflow.name}'"
            ),
        )

    def execute_status_change(
        self,
        workflow: Workflow,
        entity_type: str,
        entity_id: str,
        current_state: str,
        requested_state: str,
        actor: Actor,
        context: dict[str, Any] | None = None,
        outcome_sink: Callable[[dict], None] | None = None,
    ) -> TransitionResult:
        """Move from ``current_state`` to exactly ``requested_state``."""
        candidates = tuple(
            t for t in workflow.transitions
            if t.from_state == current_state and t.to_state == requested_state
        )
        return self._run(
            workflow, entity_type, entity_id, current_state, actor,
            candidates, context or {}, outcome_sink,
            action=None,
            missing_reason=(
                f"No transition from '{_value(current_state)}' to '{_value(requested_state)}' "
                f"in workflow '{workflow.name}'"
            ),
        )

    def permitted_transitions(
        self,
        workflow: Workflow,
        current_state: str,
        actor: Actor,
    ) -> tuple[Transition, ...]:
        """Transitions out of ``current_state`` the actor's role allows (guards not evaluated)."""
        return tuple(
            t for t in workflow.transitions
            if t.from_state == current_state and check_role(actor, t.roles)[0]
        )

    def guard_passes(self, transition: Transition, context: dict[str, Any]) -> bool:
        """True if the transition has no guard or its guard is satisfied now."""
        if transition.guard is None:
            return True
        return self._guard_executor.evaluate(
            transition.guard, {**context, "to_state": transition.to_state}
        ) is None

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _run(
        self,
        workflow: Workflow,
        entity_type: str,
        entity_id: str,
        current_state: str,
        actor: Actor,
        candidates: tuple[Transition, ...],
        context: dict[str, Any],
        outcome_sink: Callable[[dict], None] | None,
        action: str | None,
        missing_reason: str,
    ) -> TransitionResult:
        t0 = time.monotonic()

        def trace(outcome: str, reason: str, transition: Transition | None = None) -> None:
            _emit_workflow_trace(
                clock=self._clock,
                workflow_name=workflow.name,
                action=transition.action if transition is not None else action,
                entity_type=entity_type,
                entity_id=entity_id,
                from_state=current_state,
                outcome=outcome,
                reason=reason,
                duration_ms=(time.monotonic() - t0) * 1000,
                actor=actor,
                to_state=transition.to_state if transition is not None else None,
                outcome_sink=outcome_sink,
            )

        # 1. The workflow must declare the move at all
        if not candidates:
            trace(OUTCOME_NO_TRANSITION, missing_reason)
            return TransitionResult(
                success=False,
                rejection=Rejection.invalid_state(missing_reason),
                reason=missing_reason,
            )

        # 2. Role check
        transition = next(
            (t for t in candidates if check_role(actor, t.roles)[0]), None
        )
        if transition is None:
            required = tuple(dict.fromkeys(r for t in candidates for r in t.roles))
            _, reason = check_role(actor, required)
            trace(OUTCOME_UNAUTHORIZED, reason, candidates[0])
            return TransitionResult(
                success=False,
                rejection=Rejection.unauthorized(reason, required_roles=required),
                reason=reason,
            )

        # 3. Guard
        if transition.guard is not None:
            rejection = self._guard_executor.evaluate(
                transition.guard, {**context, "to_state": transition.to_state}
            )
            if rejection is not None:
                reason = f"Guard not satisfied: {transition.guard.name}"
                trace(OUTCOME_GUARD_FAILED, reason, transition)
                return TransitionResult(
                    success=False,
                    transition=transition,
                    rejection=rejection,
                    reason=reason,
                )

        trace(OUTCOME_SUCCESS, "Transition allowed", transition)
        return TransitionResult(
            success=True,
            new_state=transition.to_state,
            transition=transition,
            reason="Transition allowed",
        )


def _value(state: Any) -> str:
    return str(getattr(state, "value", state))
