"""
mfg_engines.due_dates -- Due-date indicators for orders and external jobs.

Responsibility:
    Derived reads used by list and dashboard views: whether an order is
    overdue or due soon, and whether any external job of an order is
    overdue while still open.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  ``today`` is always
    passed in by the caller (from an injected Clock).

Invariants enforced:
    - These are reads only; nothing here feeds back into the state machines.
"""

from __future__ import annotations

from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Protocol

from mfg_kernel.domain.rules import WorkflowRules
from mfg_kernel.domain.values import CLOSED_EXTERNAL_JOB_STATUSES, ExternalJobStatus, OrderStatus


class DueState(str, Enum):
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"


class DatedJob(Protocol):
    due_date: date | None
    status: ExternalJobStatus


def due_state(
    due: date | None,
    status: OrderStatus,
    today: date,
    rules: WorkflowRules,
) -> DueState | None:
    """Classify an order's due date.

    Returns None when the indicator is disabled, the status is not one the
    indicator applies to, or there is no due date.
    """
    if not rules.due_indicator_enabled or due is None:
        return None
    if OrderStatus.coerce(status) not in rules.due_indicator_statuses:
        return None
    if due < today:
        return DueState.OVERDUE
    if rules.due_soon_days > 0 and due <= today + timedelta(days=rules.due_soon_days):
        return DueState.DUE_SOON
    return None


def is_external_job_overdue(job: DatedJob, today: date) -> bool:
    """An open job (not delivered/approved/cancelled) past its due date."""
    if job.due_date is None:
        return False
    return job.due_date < today and job.status not in CLOSED_EXTERNAL_JOB_STATUSES


def has_overdue_external_jobs(jobs: Iterable[DatedJob], today: date) -> bool:
    return any(is_external_job_overdue(job, today) for job in jobs)
