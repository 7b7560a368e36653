"""
Pure domain layer.

This module contains pure value objects and domain logic with NO
dependencies on:
- Persistence
- Time/clock (injected via ``Clock``)
- I/O

All domain objects are immutable and deterministic.
"""

from mfg_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from mfg_kernel.domain.identifiers import IdGenerator, SequentialIdGenerator, UuidIdGenerator
from mfg_kernel.domain.outcomes import (
    CommandResult,
    ReadinessMissing,
    ReadinessReport,
    Rejection,
    RejectionKind,
    StatusHistoryEntry,
    TransitionResult,
    append_history,
    verify_history,
)
from mfg_kernel.domain.rules import (
    AttachmentCategory,
    ChecklistItem,
    ExternalJobRule,
    WorkflowRules,
)
from mfg_kernel.domain.values import (
    CLOSED_EXTERNAL_JOB_STATUSES,
    Actor,
    ExternalJobStatus,
    Gate,
    OrderStatus,
    Priority,
    Role,
)
from mfg_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    # Clock / ids
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "IdGenerator",
    "SequentialIdGenerator",
    "UuidIdGenerator",
    # Values
    "Actor",
    "CLOSED_EXTERNAL_JOB_STATUSES",
    "ExternalJobStatus",
    "Gate",
    "OrderStatus",
    "Priority",
    "Role",
    # Workflow
    "Guard",
    "Transition",
    "Workflow",
    # Rules
    "AttachmentCategory",
    "ChecklistItem",
    "ExternalJobRule",
    "WorkflowRules",
    # Outcomes
    "CommandResult",
    "ReadinessMissing",
    "ReadinessReport",
    "Rejection",
    "RejectionKind",
    "StatusHistoryEntry",
    "TransitionResult",
    "append_history",
    "verify_history",
]
