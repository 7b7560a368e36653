"""
Order Domain Models (``mfg_modules.orders.models``).

Responsibility
--------------
Frozen value objects representing the nouns of the order lifecycle:
orders, their attachments and comments, and the external (outsourced)
jobs nested under them.

Architecture position
---------------------
**Modules layer** -- pure data definitions.  No I/O, no persistence.
These objects flow *into* ``OrderService`` / ``AssignmentManager`` /
``ExternalJobService`` and *out of* them as new immutable snapshots.

Invariants enforced
-------------------
* All dataclasses are ``frozen=True``; every ``with_*`` helper returns a
  new snapshot and leaves the receiver untouched.
* ``Order.checklist`` is a read-only mapping; checking an item never
  unchecks another one.  Orders are therefore unhashable.
* ``status`` is always an enum member, also when built from stored strings.
* ``status_history`` only ever grows through ``append_history``.

Failure modes
-------------
* ``ExternalJobNotFoundError`` from ``Order.external_job`` and the
  replace/remove helpers when the job is not part of the order.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from types import MappingProxyType
from typing import Mapping

from mfg_kernel.domain.outcomes import StatusHistoryEntry
from mfg_kernel.domain.values import (
    CLOSED_EXTERNAL_JOB_STATUSES,
    ExternalJobStatus,
    OrderStatus,
    Priority,
)
from mfg_kernel.exceptions import ExternalJobNotFoundError


@dataclass(frozen=True)
class Attachment:
    """A file attached to an order or external job.  Only counted by the core."""

    attachment_id: str
    added_by: str
    added_by_role: str
    created_at: datetime
    category: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class Comment:
    """A free-text note on an order.  Content is never inspected by gates."""

    comment_id: str
    message: str
    author: str
    author_role: str
    created_at: datetime


@dataclass(frozen=True)
class ExternalJob:
    """Fabrication work ordered from a third-party partner for one order."""

    job_id: str
    order_id: str
    partner_id: str
    partner_name: str
    external_order_number: str
    due_date: date | None = None
    quantity: int | None = None
    status: ExternalJobStatus = ExternalJobStatus.REQUESTED
    attachments: tuple[Attachment, ...] = ()
    status_history: tuple[StatusHistoryEntry, ...] = ()

    @property
    def is_open(self) -> bool:
        """Still waiting on the partner (not delivered, approved or cancelled)."""
        return self.status not in CLOSED_EXTERNAL_JOB_STATUSES

    def is_overdue(self, today: date) -> bool:
        return self.is_open and self.due_date is not None and self.due_date < today

    def __post_init__(self):
        object.__setattr__(self, "status", ExternalJobStatus.coerce(self.status))

    def with_attachment(self, attachment: Attachment) -> "ExternalJob":
        return replace(self, attachments=(*self.attachments, attachment))


@dataclass(frozen=True)
class Order:
    """A manufacturing order.

    ``status`` and the ``status_changed_*`` stamps change only through
    ``OrderService``; the assignment slots only through
    ``AssignmentManager``.
    """

    order_id: str
    order_number: str
    customer_name: str
    status: OrderStatus = OrderStatus.DRAFT
    priority: Priority = Priority.NORMAL
    product_name: str | None = None
    quantity: int | None = None
    due_date: date | None = None
    assigned_engineer_id: str | None = None
    assigned_engineer_name: str | None = None
    assigned_engineer_at: datetime | None = None
    assigned_manager_id: str | None = None
    assigned_manager_name: str | None = None
    assigned_manager_at: datetime | None = None
    status_changed_by: str | None = None
    status_changed_by_role: str | None = None
    status_changed_at: datetime | None = None
    checklist: Mapping[str, bool] = field(default_factory=dict)
    attachments: tuple[Attachment, ...] = ()
    comments: tuple[Comment, ...] = ()
    status_history: tuple[StatusHistoryEntry, ...] = ()
    external_jobs: tuple[ExternalJob, ...] = ()

    # Unhashable: the checklist is a mappingproxy.
    __hash__ = None

    def __post_init__(self):
        object.__setattr__(self, "status", OrderStatus.coerce(self.status))
        object.__setattr__(self, "priority", Priority(self.priority))
        object.__setattr__(self, "checklist", MappingProxyType(dict(self.checklist)))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def is_checked(self, item_id: str) -> bool:
        return bool(self.checklist.get(item_id, False))

    def external_job(self, job_id: str) -> ExternalJob:
        for job in self.external_jobs:
            if job.job_id == job_id:
                return job
        raise ExternalJobNotFoundError(job_id, self.order_id)

    # ------------------------------------------------------------------
    # Collaborator-facing snapshot helpers
    # ------------------------------------------------------------------

    def with_checklist_item(self, item_id: str, checked: bool = True) -> "Order":
        return replace(self, checklist={**self.checklist, item_id: checked})

    def with_attachment(self, attachment: Attachment) -> "Order":
        return replace(self, attachments=(*self.attachments, attachment))

    def with_comment(self, comment: Comment) -> "Order":
        return replace(self, comments=(*self.comments, comment))

    def with_external_job(self, job: ExternalJob) -> "Order":
        return replace(self, external_jobs=(*self.external_jobs, job))

    def replace_external_job(self, job: ExternalJob) -> "Order":
        self.external_job(job.job_id)
        return replace(
            self,
            external_jobs=tuple(
                job if existing.job_id == job.job_id else existing
                for existing in self.external_jobs
            ),
        )

    def without_external_job(self, job_id: str) -> "Order":
        self.external_job(job_id)
        return replace(
            self,
            external_jobs=tuple(j for j in self.external_jobs if j.job_id != job_id),
        )
