"""
Configuration Loader (``mfg_config.loader``).

Responsibility
--------------
Loads workflow rule YAML files and parses them into the immutable
``mfg_kernel.domain.rules.WorkflowRules`` value that services receive by
injection.  Also ships the bundled default rules used for tenants that
have not configured their own.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends on the kernel domain
only; nothing in the kernel or engines depends on it.

Invariants enforced
-------------------
* All parse errors raise ``KeyError``, ``UnknownStatusError`` or
  ``InvalidWorkflowRulesError`` with descriptive messages; no silent
  defaults for the gate settings.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys in parsed dict  -> ``KeyError`` propagates.
* Unknown status names -> ``UnknownStatusError``.
* Rule constraint violations -> ``InvalidWorkflowRulesError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from mfg_kernel.domain.rules import (
    AttachmentCategory,
    ChecklistItem,
    ExternalJobRule,
    WorkflowRules,
)
from mfg_kernel.domain.values import ExternalJobStatus, OrderStatus
from mfg_kernel.logging_config import get_logger

logger = get_logger("config.loader")

DEFAULT_RULES_PATH = Path(__file__).parent / "defaults" / "workflow_rules.yaml"

# Gate settings must be stated explicitly in every rules file.
REQUIRED_KEYS = (
    "min_attachments_for_engineering",
    "min_attachments_for_production",
    "require_comment_for_engineering",
    "require_comment_for_production",
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_checklist_item(data: dict[str, Any]) -> ChecklistItem:
    """Parse a ChecklistItem from a dict."""
    return ChecklistItem(
        item_id=data["id"],
        label=data["label"],
        required_for=frozenset(
            OrderStatus.coerce(s) for s in data.get("required_for", ())
        ),
        is_active=bool(data.get("is_active", True)),
    )


def parse_external_job_rules(
    items: list[dict[str, Any]],
) -> dict[ExternalJobStatus, ExternalJobRule]:
    """Parse the per-status external job rules list into a mapping."""
    rules: dict[ExternalJobStatus, ExternalJobRule] = {}
    for item in items:
        status = ExternalJobStatus.coerce(item["status"])
        rules[status] = ExternalJobRule(
            status=status,
            min_attachments=int(item.get("min_attachments", 0)),
        )
    return rules


def parse_workflow_rules(data: dict[str, Any]) -> WorkflowRules:
    """
    Parse ``WorkflowRules`` from a dict.

    Preconditions:
        - ``data`` must contain every key in ``REQUIRED_KEYS``.
    Raises:
        KeyError: if required keys are missing.
        UnknownStatusError: if a status name is not recognised.
        InvalidWorkflowRulesError: if the resulting rules are inconsistent.
    """
    for key in REQUIRED_KEYS:
        if key not in data:
            raise KeyError(f"workflow rules missing required key '{key}'")

    kwargs: dict[str, Any] = {
        "checklist_items": tuple(
            parse_checklist_item(item) for item in data.get("checklist_items", ())
        ),
        "min_attachments_for_engineering": int(data["min_attachments_for_engineering"]),
        "min_attachments_for_production": int(data["min_attachments_for_production"]),
        "require_comment_for_engineering": bool(data["require_comment_for_engineering"]),
        "require_comment_for_production": bool(data["require_comment_for_production"]),
        "external_job_rules": parse_external_job_rules(data.get("external_job_rules", [])),
        "return_reasons": tuple(data.get("return_reasons", ())),
        "status_labels": {
            OrderStatus.coerce(k): v for k, v in data.get("status_labels", {}).items()
        },
        "external_job_status_labels": {
            ExternalJobStatus.coerce(k): v
            for k, v in data.get("external_job_status_labels", {}).items()
        },
        "assignment_labels": dict(data.get("assignment_labels", {})),
        "attachment_categories": tuple(
            AttachmentCategory(category_id=c["id"], label=c["label"])
            for c in data.get("attachment_categories", ())
        ),
        "attachment_category_defaults": dict(data.get("attachment_category_defaults", {})),
    }
    if "due_soon_days" in data:
        kwargs["due_soon_days"] = int(data["due_soon_days"])
    if "due_indicator_enabled" in data:
        kwargs["due_indicator_enabled"] = bool(data["due_indicator_enabled"])
    if "due_indicator_statuses" in data:
        kwargs["due_indicator_statuses"] = frozenset(
            OrderStatus.coerce(s) for s in data["due_indicator_statuses"]
        )

    return WorkflowRules(**kwargs)


def load_workflow_rules(path: Path) -> WorkflowRules:
    """Load and parse a workflow rules YAML file."""
    rules = parse_workflow_rules(load_yaml_file(path))
    logger.info(
        "workflow_rules_loaded",
        extra={
            "path": str(path),
            "checksum": compute_checksum(rules),
            "checklist_items": len(rules.checklist_items),
            "external_job_rules": len(rules.external_job_rules),
        },
    )
    return rules


def default_workflow_rules() -> WorkflowRules:
    """The bundled default rules."""
    return load_workflow_rules(DEFAULT_RULES_PATH)


def rules_to_dict(rules: WorkflowRules) -> dict[str, Any]:
    """Serialize rules back to the YAML-shaped dict accepted by ``parse_workflow_rules``."""
    return {
        "min_attachments_for_engineering": rules.min_attachments_for_engineering,
        "min_attachments_for_production": rules.min_attachments_for_production,
        "require_comment_for_engineering": rules.require_comment_for_engineering,
        "require_comment_for_production": rules.require_comment_for_production,
        "checklist_items": [
            {
                "id": item.item_id,
                "label": item.label,
                "required_for": sorted(s.value for s in item.required_for),
                "is_active": item.is_active,
            }
            for item in rules.checklist_items
        ],
        "return_reasons": list(rules.return_reasons),
        "external_job_rules": [
            {"status": status.value, "min_attachments": rule.min_attachments}
            for status, rule in sorted(rules.external_job_rules.items(), key=lambda kv: kv[0].value)
        ],
        "due_soon_days": rules.due_soon_days,
        "due_indicator_enabled": rules.due_indicator_enabled,
        "due_indicator_statuses": sorted(s.value for s in rules.due_indicator_statuses),
        "status_labels": {k.value: v for k, v in rules.status_labels.items()},
        "external_job_status_labels": {
            k.value: v for k, v in rules.external_job_status_labels.items()
        },
        "assignment_labels": dict(rules.assignment_labels),
        "attachment_categories": [
            {"id": c.category_id, "label": c.label} for c in rules.attachment_categories
        ],
        "attachment_category_defaults": dict(rules.attachment_category_defaults),
    }


def compute_checksum(rules: WorkflowRules) -> str:
    """Deterministic SHA-256 over the canonical JSON form of ``rules``."""
    canonical = json.dumps(rules_to_dict(rules), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
