"""
mfg_engines.readiness -- Pure readiness gate evaluation.

Responsibility:
    Answer "is gate G satisfied?" for an order snapshot: required
    checklist items checked, minimum attachments present, and a comment
    present when the rules demand one.  Also evaluates the attachment
    minimum that gates external job status changes.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import mfg_kernel/domain/ types.

Invariants enforced:
    - The three readiness sub-checks are independent; ``ready`` is their AND.
    - Purity: no clock access, no mutation of the document or the rules.
      Calling twice with the same inputs yields equal reports, so UI layers
      may call it speculatively for next-step previews.

Failure modes:
    - None.  Every input produces a report; unknown checklist ids in the
      document are ignored.
"""

from __future__ import annotations

from typing import Mapping, Protocol, Sequence

from mfg_kernel.domain.outcomes import ReadinessMissing, ReadinessReport
from mfg_kernel.domain.rules import WorkflowRules
from mfg_kernel.domain.values import ExternalJobStatus, Gate, OrderStatus


class GatedDocument(Protocol):
    """Anything carrying the state a readiness gate inspects."""

    checklist: Mapping[str, bool]
    attachments: Sequence
    comments: Sequence


class AttachmentHolder(Protocol):
    attachments: Sequence


# Forward step guarded by a gate, keyed by the status the step starts from.
_NEXT_GATE: dict[OrderStatus, Gate] = {
    OrderStatus.DRAFT: Gate.ENGINEERING,
    OrderStatus.IN_ENGINEERING: Gate.PRODUCTION,
}


def evaluate_readiness(
    document: GatedDocument,
    rules: WorkflowRules,
    gate: Gate,
) -> ReadinessReport:
    """Evaluate all readiness criteria of ``gate`` for ``document``.

    Args:
        document: Order snapshot (checklist, attachments, comments).
        rules: Tenant workflow rules.
        gate: The gate being checked.

    Returns:
        ReadinessReport with ``ready`` and the itemised ``missing`` criteria.
    """
    unchecked = tuple(
        item.item_id
        for item in rules.checklist_required_for(gate.target_status)
        if not document.checklist.get(item.item_id, False)
    )

    if gate is Gate.ENGINEERING:
        min_attachments = rules.min_attachments_for_engineering
        comment_required = rules.require_comment_for_engineering
    else:
        min_attachments = rules.min_attachments_for_production
        comment_required = rules.require_comment_for_production

    attachments_short = max(0, min_attachments - len(document.attachments))
    comment_missing = comment_required and len(document.comments) == 0

    missing = ReadinessMissing(
        checklist=unchecked,
        attachments_short=attachments_short,
        comment_missing=comment_missing,
    )
    return ReadinessReport(gate=gate, ready=missing.is_empty, missing=missing)


def is_ready(document: GatedDocument, rules: WorkflowRules, gate: Gate | str) -> ReadinessReport:
    """Alias of ``evaluate_readiness`` accepting the gate name as a string."""
    return evaluate_readiness(document, rules, Gate(gate))


def next_gate(status: OrderStatus) -> Gate | None:
    """The gate guarding the next forward step from ``status``, if any."""
    return _NEXT_GATE.get(OrderStatus.coerce(status))


def checklist_progress(document: GatedDocument, rules: WorkflowRules) -> tuple[int, int]:
    """Return ``(done, total)`` over the active checklist items."""
    active = rules.active_checklist_items
    done = sum(1 for item in active if document.checklist.get(item.item_id, False))
    return done, len(active)


def external_attachments_short(
    job: AttachmentHolder,
    rules: WorkflowRules,
    target_status: ExternalJobStatus,
) -> int:
    """Attachments still missing before ``job`` may enter ``target_status``.

    Returns 0 when the configured minimum is met (or no rule exists).
    """
    minimum = rules.min_attachments_for_external_status(target_status)
    return max(0, minimum - len(job.attachments))
