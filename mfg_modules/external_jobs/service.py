"""
External Job Service (``mfg_modules.external_jobs.service``).

Responsibility
--------------
Creates external jobs under an order and moves them through
``EXTERNAL_JOB_WORKFLOW``.  A status change is refused while the job
carries fewer attachments than the target status requires; on success
exactly one history entry is appended to the job.

Architecture position
---------------------
**Modules layer** -- service facade.  Transition validation goes through
``WorkflowExecutor``; the attachment arithmetic lives in
``mfg_engines.readiness.external_attachments_short``.

Invariants enforced
-------------------
* The parent order's status is never touched by a job command.
* A rejected command returns its input snapshot unchanged.
* The newest job history entry always equals the job's status.

Failure modes
-------------
* ``ExternalJobNotFoundError`` when ``job_id`` is not part of the order.
* ``UnknownStatusError`` for a target that is not an external job status.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Callable

from mfg_engines.readiness import external_attachments_short
from mfg_kernel.domain.clock import Clock, SystemClock
from mfg_kernel.domain.identifiers import IdGenerator, UuidIdGenerator
from mfg_kernel.domain.outcomes import (
    CommandResult,
    Rejection,
    StatusHistoryEntry,
    append_history,
)
from mfg_kernel.domain.rules import WorkflowRules
from mfg_kernel.domain.values import Actor, ExternalJobStatus
from mfg_kernel.logging_config import LogContext, get_logger
from mfg_modules.external_jobs.workflows import EXTERNAL_JOB_WORKFLOW
from mfg_modules.orders.models import ExternalJob, Order
from mfg_services.workflow_executor import WorkflowExecutor

logger = get_logger("modules.external_jobs.service")

ENTITY_TYPE = "external_job"


class ExternalJobService:
    """Status changes and creation of external jobs."""

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

    def create_external_job(
        self,
        order: Order,
        partner_id: str,
        partner_name: str,
        external_order_number: str,
        actor: Actor,
        due_date: date | None = None,
        quantity: int | None = None,
        status: ExternalJobStatus | str = ExternalJobStatus.REQUESTED,
    ) -> CommandResult[Order]:
        """Add a new job to ``order`` with one initial history entry.

        A new job has no attachments, so an initial status with an
        attachment minimum is refused with INSUFFICIENT_ATTACHMENTS.
        """
        initial = ExternalJobStatus.coerce(status)
        job = ExternalJob(
            job_id="",
            order_id=order.order_id,
            partner_id=partner_id,
            partner_name=partner_name,
            external_order_number=external_order_number,
            due_date=due_date,
            quantity=quantity,
            status=initial,
        )
        with LogContext.bind(order_id=order.order_id, actor_id=actor.actor_id):
            short = external_attachments_short(job, self._rules, initial)
            if short:
                rejection = Rejection.insufficient_attachments(initial.value, short)
                logger.warning(
                    "external_job_create_rejected",
                    extra={"status": initial, "attachments_short": short},
                )
                return CommandResult(snapshot=order, rejection=rejection)

            job = replace(job, job_id=self._ids.new_id("ext"))
            job, entry = self._stamp(job, initial, actor)
            logger.info(
                "external_job_created",
                extra={
                    "external_job_id": job.job_id,
                    "partner_id": partner_id,
                    "status": initial,
                },
            )
            return CommandResult(snapshot=order.with_external_job(job), history_entry=entry)

    def apply_external_job_transition(
        self,
        job: ExternalJob,
        target_status: ExternalJobStatus | str,
        actor: Actor,
    ) -> CommandResult[ExternalJob]:
        """Move ``job`` to ``target_status`` if its attachments allow it.

        Rejections: INVALID_STATE when the job is already in the target
        status, INSUFFICIENT_ATTACHMENTS with the shortfall otherwise.
        """
        target = ExternalJobStatus.coerce(target_status)
        with LogContext.bind(
            order_id=job.order_id, external_job_id=job.job_id, actor_id=actor.actor_id
        ):
            if target == job.status:
                rejection = Rejection.invalid_state(
                    f"External job is already '{target.value}'"
                )
                logger.warning(
                    "external_job_transition_rejected",
                    extra={"status": job.status, "rejection": rejection.code},
                )
                return CommandResult(snapshot=job, rejection=rejection)

            result = self._executor.execute_status_change(
                workflow=EXTERNAL_JOB_WORKFLOW,
                entity_type=ENTITY_TYPE,
                entity_id=job.job_id,
                current_state=job.status,
                requested_state=target,
                actor=actor,
                context={"document": job, "rules": self._rules},
                outcome_sink=self._outcome_sink,
            )
            if not result.success:
                logger.warning(
                    "external_job_transition_rejected",
                    extra={
                        "status": job.status,
                        "to_status": target,
                        "rejection": result.rejection.code if result.rejection else None,
                    },
                )
                return CommandResult(snapshot=job, rejection=result.rejection)

            updated, entry = self._stamp(job, target, actor)
            logger.info(
                "external_job_status_changed",
                extra={"from_status": job.status, "to_status": target},
            )
            return CommandResult(snapshot=updated, history_entry=entry)

    def change_external_job_status(
        self,
        order: Order,
        job_id: str,
        target_status: ExternalJobStatus | str,
        actor: Actor,
    ) -> CommandResult[Order]:
        """Apply a job transition and return the order holding the updated job."""
        result = self.apply_external_job_transition(order.external_job(job_id), target_status, actor)
        if not result.success:
            return CommandResult(snapshot=order, rejection=result.rejection)
        return CommandResult(
            snapshot=order.replace_external_job(result.snapshot),
            history_entry=result.history_entry,
        )

    def _stamp(
        self,
        job: ExternalJob,
        status: ExternalJobStatus,
        actor: Actor,
    ) -> tuple[ExternalJob, StatusHistoryEntry]:
        entry = StatusHistoryEntry(
            entry_id=self._ids.new_id("hst"),
            status=status,
            changed_by=actor.name,
            changed_by_role=actor.role,
            changed_at=self._clock.now(),
        )
        return replace(
            job, status=status, status_history=append_history(job.status_history, entry)
        ), entry
