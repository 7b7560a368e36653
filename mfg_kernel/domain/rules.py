"""
Workflow rules (``mfg_kernel.domain.rules``).

Responsibility
--------------
Tenant-configurable policy consumed by the readiness evaluator and the
external job gate: checklist items, minimum attachment counts, comment
requirements, per-external-status attachment minimums, return reasons,
and display settings (labels, due-date indicator, attachment categories).

Architecture position
---------------------
**Kernel domain layer** -- immutable value.  Built by
``mfg_config.loader`` from YAML, or directly in tests.  Injected into
services; never a global.

Invariants enforced
-------------------
* Minimum attachment counts and ``due_soon_days`` are non-negative.
* Checklist item ids are unique; ``required_for`` targets are forward
  statuses only.
* Return reasons are unique.

Failure modes
-------------
* ``InvalidWorkflowRulesError`` at construction, listing every violation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from mfg_kernel.domain.values import ExternalJobStatus, OrderStatus
from mfg_kernel.exceptions import InvalidWorkflowRulesError

# Statuses a checklist item may be required for.
CHECKLIST_TARGET_STATUSES: frozenset[OrderStatus] = frozenset({
    OrderStatus.READY_FOR_ENGINEERING,
    OrderStatus.READY_FOR_PRODUCTION,
    OrderStatus.IN_PRODUCTION,
})


@dataclass(frozen=True)
class ChecklistItem:
    """A checkbox an order must have ticked before reaching a target status."""

    item_id: str
    label: str
    required_for: frozenset[OrderStatus] = frozenset()
    is_active: bool = True


@dataclass(frozen=True)
class ExternalJobRule:
    """Minimum attachments an external job needs before entering ``status``."""

    status: ExternalJobStatus
    min_attachments: int = 0


@dataclass(frozen=True)
class AttachmentCategory:
    category_id: str
    label: str


def _frozen(mapping: Mapping | None) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class WorkflowRules:
    """Per-tenant workflow policy.  Read-only to the core."""

    checklist_items: tuple[ChecklistItem, ...] = ()
    min_attachments_for_engineering: int = 0
    min_attachments_for_production: int = 0
    require_comment_for_engineering: bool = False
    require_comment_for_production: bool = False
    external_job_rules: Mapping[ExternalJobStatus, ExternalJobRule] = field(
        default_factory=dict
    )
    return_reasons: tuple[str, ...] = ()
    due_soon_days: int = 5
    due_indicator_enabled: bool = True
    due_indicator_statuses: frozenset[OrderStatus] = frozenset(OrderStatus)
    status_labels: Mapping[OrderStatus, str] = field(default_factory=dict)
    external_job_status_labels: Mapping[ExternalJobStatus, str] = field(
        default_factory=dict
    )
    assignment_labels: Mapping[str, str] = field(default_factory=dict)
    attachment_categories: tuple[AttachmentCategory, ...] = ()
    attachment_category_defaults: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze mapping fields so the rules cannot drift after injection.
        for name in (
            "external_job_rules",
            "status_labels",
            "external_job_status_labels",
            "assignment_labels",
            "attachment_category_defaults",
        ):
            object.__setattr__(self, name, _frozen(getattr(self, name)))

        errors: list[str] = []
        if self.min_attachments_for_engineering < 0:
            errors.append("min_attachments_for_engineering cannot be negative")
        if self.min_attachments_for_production < 0:
            errors.append("min_attachments_for_production cannot be negative")
        if self.due_soon_days < 0:
            errors.append("due_soon_days cannot be negative")

        seen_ids: set[str] = set()
        for item in self.checklist_items:
            if item.item_id in seen_ids:
                errors.append(f"duplicate checklist item id '{item.item_id}'")
            seen_ids.add(item.item_id)
            invalid = set(item.required_for) - CHECKLIST_TARGET_STATUSES
            if invalid:
                names = sorted(s.value for s in invalid)
                errors.append(
                    f"checklist item '{item.item_id}' required for non-target status(es) {names}"
                )

        for status, rule in self.external_job_rules.items():
            if rule.status != status:
                errors.append(f"external job rule keyed '{status.value}' is for '{rule.status.value}'")
            if rule.min_attachments < 0:
                errors.append(f"external job rule '{status.value}' has negative min_attachments")

        if len(set(self.return_reasons)) != len(self.return_reasons):
            errors.append("return reasons must be unique")

        category_ids = [c.category_id for c in self.attachment_categories]
        if len(set(category_ids)) != len(category_ids):
            errors.append("attachment category ids must be unique")
        for role, category_id in self.attachment_category_defaults.items():
            if category_ids and category_id not in category_ids:
                errors.append(f"default category '{category_id}' for role '{role}' is not defined")

        if errors:
            raise InvalidWorkflowRulesError(errors)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def active_checklist_items(self) -> tuple[ChecklistItem, ...]:
        return tuple(item for item in self.checklist_items if item.is_active)

    def checklist_required_for(self, status: OrderStatus) -> tuple[ChecklistItem, ...]:
        """Active checklist items that must be checked before ``status``."""
        return tuple(
            item for item in self.active_checklist_items if status in item.required_for
        )

    def min_attachments_for_external_status(self, status: ExternalJobStatus) -> int:
        """Configured minimum for ``status``; 0 when no rule exists."""
        rule = self.external_job_rules.get(status)
        return rule.min_attachments if rule is not None else 0

    def status_label(self, status: OrderStatus) -> str:
        return self.status_labels.get(status, status.value)

    def external_job_status_label(self, status: ExternalJobStatus) -> str:
        return self.external_job_status_labels.get(status, status.value)

    def default_attachment_category(self, role: str) -> str | None:
        """Category pre-selected when a user of ``role`` uploads a file."""
        return self.attachment_category_defaults.get(role)
