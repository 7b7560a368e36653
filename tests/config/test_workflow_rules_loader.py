"""Tests for loading workflow rules from YAML."""

import pytest
import yaml

from mfg_config.loader import (
    DEFAULT_RULES_PATH,
    compute_checksum,
    default_workflow_rules,
    load_workflow_rules,
    parse_workflow_rules,
    rules_to_dict,
)
from mfg_kernel.domain.values import ExternalJobStatus, OrderStatus
from mfg_kernel.exceptions import InvalidWorkflowRulesError, UnknownStatusError

MINIMAL = {
    "min_attachments_for_engineering": 2,
    "min_attachments_for_production": 0,
    "require_comment_for_engineering": False,
    "require_comment_for_production": True,
}


class TestDefaults:

    def test_bundled_file_exists(self):
        assert DEFAULT_RULES_PATH.exists()

    def test_default_values(self):
        rules = default_workflow_rules()
        assert rules.min_attachments_for_engineering == 1
        assert rules.min_attachments_for_production == 1
        assert rules.require_comment_for_engineering
        assert rules.require_comment_for_production
        assert rules.return_reasons == ("Missing info", "Incorrect data", "Awaiting approval")
        assert rules.min_attachments_for_external_status(ExternalJobStatus.DELIVERED) == 1
        assert rules.min_attachments_for_external_status(ExternalJobStatus.ORDERED) == 0
        assert [item.item_id for item in rules.checklist_items] == ["cl-brief", "cl-files"]


class TestParse:

    def test_minimal(self):
        rules = parse_workflow_rules(MINIMAL)
        assert rules.min_attachments_for_engineering == 2
        assert rules.require_comment_for_production
        assert rules.checklist_items == ()
        assert rules.due_soon_days == 5

    @pytest.mark.parametrize("missing", sorted(MINIMAL))
    def test_missing_required_key(self, missing):
        data = {k: v for k, v in MINIMAL.items() if k != missing}
        with pytest.raises(KeyError, match=missing):
            parse_workflow_rules(data)

    def test_checklist_statuses_parsed(self):
        rules = parse_workflow_rules({
            **MINIMAL,
            "checklist_items": [
                {"id": "X", "label": "Brief", "required_for": ["ready_for_engineering"]},
            ],
        })
        assert rules.checklist_items[0].required_for == frozenset({OrderStatus.READY_FOR_ENGINEERING})
        assert rules.checklist_items[0].is_active

    def test_unknown_status_raises(self):
        with pytest.raises(UnknownStatusError):
            parse_workflow_rules({
                **MINIMAL,
                "external_job_rules": [{"status": "shipped", "min_attachments": 1}],
            })

    def test_invalid_values_raise(self):
        with pytest.raises(InvalidWorkflowRulesError):
            parse_workflow_rules({**MINIMAL, "min_attachments_for_engineering": -1})

    def test_round_trip_through_dict(self, default_rules):
        assert parse_workflow_rules(rules_to_dict(default_rules)) == default_rules


class TestLoadFile:

    def test_load_and_log_checksum(self, tmp_path, captured_logs):
        path = tmp_path / "rules.yaml"
        path.write_text(yaml.safe_dump(MINIMAL))

        rules = load_workflow_rules(path)

        assert rules.min_attachments_for_engineering == 2
        records = [r for r in captured_logs() if r["message"] == "workflow_rules_loaded"]
        assert len(records) == 1
        assert records[0]["checksum"] == compute_checksum(rules)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_workflow_rules(tmp_path / "absent.yaml")

    def test_empty_file_is_missing_keys(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        with pytest.raises(KeyError):
            load_workflow_rules(path)


class TestChecksum:

    def test_deterministic(self):
        assert compute_checksum(parse_workflow_rules(MINIMAL)) == compute_checksum(
            parse_workflow_rules(dict(MINIMAL))
        )

    def test_changes_with_content(self):
        changed = parse_workflow_rules({**MINIMAL, "min_attachments_for_engineering": 3})
        assert compute_checksum(changed) != compute_checksum(parse_workflow_rules(MINIMAL))
