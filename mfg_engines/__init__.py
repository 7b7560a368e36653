"""
Pure calculation engines for the order lifecycle.

Engines take kernel domain values and return kernel domain values.  No
clock, no I/O, no persistence.
"""

from mfg_engines.due_dates import DueState, due_state, has_overdue_external_jobs, is_external_job_overdue
from mfg_engines.readiness import (
    checklist_progress,
    evaluate_readiness,
    external_attachments_short,
    is_ready,
    next_gate,
)

__all__ = [
    "DueState",
    "checklist_progress",
    "due_state",
    "evaluate_readiness",
    "external_attachments_short",
    "has_overdue_external_jobs",
    "is_external_job_overdue",
    "is_ready",
    "next_gate",
]
