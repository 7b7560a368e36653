"""
Tests for the JSON log lines emitted by order and external job commands.

Each test routes the ``mfg_kernel`` tree into an in-memory stream through
``configure_logging`` and reads the records back as dicts.
"""

import json
import logging
from datetime import date, datetime, timezone
from io import StringIO

import pytest

from mfg_kernel.domain.values import CLOSED_EXTERNAL_JOB_STATUSES, ExternalJobStatus, OrderStatus
from mfg_kernel.exceptions import ExternalJobNotFoundError
from mfg_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture
def log_lines():
    """Send mfg_kernel records at INFO and above to a StringIO; return a reader."""
    stream = StringIO()
    reset_logging()
    configure_logging(handler=logging.StreamHandler(stream))

    def _read(message: str | None = None) -> list[dict]:
        records = [json.loads(line) for line in stream.getvalue().splitlines() if line]
        if message is None:
            return records
        return [r for r in records if r["message"] == message]

    yield _read

    reset_logging()
    configure_logging(level=logging.DEBUG)


@pytest.fixture
def order_with_job(external_job_service, make_order, sales_actor):
    order = make_order(status=OrderStatus.IN_ENGINEERING)
    return external_job_service.create_external_job(
        order, "p-1", "Laser Co", "L-100", sales_actor
    ).unwrap()


# =============================================================================
# Order commands
# =============================================================================


class TestOrderRecords:

    def test_status_change_record(self, log_lines, order_service, make_order, sales_actor):
        order_service.apply_transition(make_order(), OrderStatus.READY_FOR_ENGINEERING, sales_actor)

        [record] = log_lines("order_status_changed")
        assert record["level"] == "INFO"
        assert record["logger"] == "mfg_kernel.modules.orders.service"
        assert record["order_id"] == "ord-fixture"
        assert record["actor_id"] == sales_actor.actor_id
        assert record["from_status"] == "draft"
        assert record["to_status"] == "ready_for_engineering"
        assert record["history_entry_id"] == "hst-0001"
        assert record["history_length"] == 1
        assert datetime.fromisoformat(record["ts"]).tzinfo is not None

    def test_rejected_move_traced_as_warning(
        self, log_lines, order_service, make_order, production_actor
    ):
        order_service.apply_transition(make_order(), OrderStatus.READY_FOR_ENGINEERING, production_actor)

        [trace] = log_lines("workflow_transition")
        assert trace["level"] == "WARNING"
        assert trace["outcome"] == "unauthorized"
        assert trace["entity_type"] == "order"
        assert trace["from_state"] == "draft"
        assert trace["order_id"] == "ord-fixture"
        assert trace["actor_role"] == production_actor.role

        [rejected] = log_lines("order_transition_rejected")
        assert rejected["from_status"] == "draft"
        assert not log_lines("order_status_changed")

    def test_send_back_records_carry_actor(
        self, log_lines, order_service, make_order, engineer_actor
    ):
        order = make_order(status=OrderStatus.IN_ENGINEERING)
        order_service.send_back(order, engineer_actor, reason="Missing info")

        [changed] = log_lines("order_status_changed")
        assert changed["actor_id"] == engineer_actor.actor_id
        assert changed["to_status"] == "ready_for_engineering"

    def test_assignment_record(self, log_lines, assignment_manager, make_order, engineer_actor):
        order = make_order(status=OrderStatus.READY_FOR_ENGINEERING)
        assignment_manager.take_order(order, engineer_actor)

        [record] = log_lines("assignment_changed")
        assert record["action"] == "take_order"
        assert record["engineer_id"] == engineer_actor.actor_id
        assert record["status"] == "ready_for_engineering"


# =============================================================================
# External job commands
# =============================================================================


class TestExternalJobRecords:

    def test_created_record(self, log_lines, external_job_service, make_order, sales_actor):
        order = external_job_service.create_external_job(
            make_order(), "p-1", "Laser Co", "L-100", sales_actor
        ).unwrap()

        [record] = log_lines("external_job_created")
        assert record["order_id"] == order.order_id
        assert record["actor_id"] == sales_actor.actor_id
        assert record["external_job_id"] == order.external_jobs[0].job_id
        assert record["partner_id"] == "p-1"
        assert record["status"] == "requested"

    def test_status_change_binds_job_and_order(
        self, log_lines, external_job_service, order_with_job, production_actor
    ):
        job = order_with_job.external_jobs[0]
        external_job_service.apply_external_job_transition(
            job, ExternalJobStatus.ORDERED, production_actor
        )

        [record] = log_lines("external_job_status_changed")
        assert record["external_job_id"] == job.job_id
        assert record["order_id"] == job.order_id
        assert record["actor_id"] == production_actor.actor_id
        assert record["from_status"] == "requested"
        assert record["to_status"] == "ordered"

    def test_gated_change_rejected(
        self, log_lines, external_job_service, order_with_job, production_actor
    ):
        job = order_with_job.external_jobs[0]
        external_job_service.apply_external_job_transition(
            job, ExternalJobStatus.DELIVERED, production_actor
        )

        [record] = log_lines("external_job_transition_rejected")
        assert record["level"] == "WARNING"
        assert record["external_job_id"] == job.job_id
        assert record["rejection"] == "INSUFFICIENT_ATTACHMENTS"

    def test_missing_job_logged_with_identifiers(self, log_lines, order_with_job):
        logger = get_logger("modules.external_jobs.service")
        try:
            order_with_job.external_job("ext-9")
        except ExternalJobNotFoundError:
            logger.exception("external_job_lookup_failed")

        [record] = log_lines("external_job_lookup_failed")
        assert record["level"] == "ERROR"
        assert record["exc_type"] == "ExternalJobNotFoundError"
        assert record["exc_code"] == "EXTERNAL_JOB_NOT_FOUND"
        assert record["exc_job_id"] == "ext-9"
        assert record["exc_order_id"] == order_with_job.order_id
        assert "Traceback" in record["traceback"]


# =============================================================================
# Value rendering
# =============================================================================


class TestValueRendering:

    def test_dates_and_datetimes_are_iso(self, log_lines):
        get_logger("modules.orders.service").info(
            "due_date_checked",
            extra={
                "due_date": date(2024, 4, 1),
                "status_changed_at": datetime(2024, 4, 1, 10, 0, tzinfo=timezone.utc),
            },
        )

        [record] = log_lines("due_date_checked")
        assert record["due_date"] == "2024-04-01"
        assert record["status_changed_at"] == "2024-04-01T10:00:00+00:00"

    def test_status_sets_are_sorted_values(self, log_lines):
        get_logger("modules.external_jobs.service").info(
            "closed_statuses", extra={"closed": CLOSED_EXTERNAL_JOB_STATUSES}
        )

        [record] = log_lines("closed_statuses")
        assert record["closed"] == ["approved", "cancelled", "delivered"]

    def test_unknown_objects_fall_back_to_str(self, log_lines):
        class Partner:
            def __str__(self):
                return "Laser Co"

        get_logger("modules.external_jobs.service").info("partner", extra={"partner": Partner()})
        assert log_lines("partner")[0]["partner"] == "Laser Co"

    def test_formatter_renders_single_line(self, make_order):
        record = logging.makeLogRecord({
            "name": "mfg_kernel.modules.orders.service",
            "levelname": "INFO",
            "msg": "order_created",
            "priority": make_order().priority,
        })
        line = StructuredFormatter().format(record)
        assert "\n" not in line
        assert json.loads(line)["priority"] == "normal"


# =============================================================================
# LogContext
# =============================================================================


class TestLogContext:

    def test_command_restores_outer_context(self, log_lines, order_service, make_order, sales_actor):
        with LogContext.bind(order_id="ord-batch"):
            order_service.apply_transition(
                make_order(), OrderStatus.READY_FOR_ENGINEERING, sales_actor
            )
            assert LogContext.get_all() == {"order_id": "ord-batch"}
        assert LogContext.get_all() == {}

        assert log_lines("order_status_changed")[0]["order_id"] == "ord-fixture"

    def test_bind_skips_none(self):
        with LogContext.bind(order_id="ord-1", external_job_id=None):
            assert LogContext.get_all() == {"order_id": "ord-1"}

    def test_nested_bind(self):
        with LogContext.bind(order_id="ord-1", actor_id="u-sales"):
            with LogContext.bind(external_job_id="ext-1", actor_id="u-prod"):
                assert LogContext.get_all() == {
                    "actor_id": "u-prod",
                    "order_id": "ord-1",
                    "external_job_id": "ext-1",
                }
            assert LogContext.get_all() == {"actor_id": "u-sales", "order_id": "ord-1"}

    def test_set_and_clear(self):
        LogContext.set(order_id="ord-1", actor_id=None)
        assert LogContext.get_all() == {"order_id": "ord-1"}
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_unknown_field_rejected(self):
        with pytest.raises(KeyError):
            LogContext.set(tenant_id="t-1")

    def test_no_context_outside_commands(self, log_lines):
        get_logger("modules.orders.service").info("idle")
        record = log_lines("idle")[0]
        assert "order_id" not in record
        assert "actor_id" not in record


# =============================================================================
# configure_logging
# =============================================================================


class TestConfigureLogging:

    def test_second_call_is_ignored(self, log_lines):
        configure_logging(handler=logging.StreamHandler(StringIO()))
        assert len(logging.getLogger("mfg_kernel").handlers) == 1

    def test_debug_dropped_at_default_level(self, log_lines):
        logger = get_logger("modules.orders.workflows")
        logger.debug("order_workflow_defined")
        logger.info("order_workflow_checked")
        assert [r["message"] for r in log_lines()] == ["order_workflow_checked"]

    def test_get_logger_is_namespaced(self):
        assert get_logger("services.workflow_executor").name == "mfg_kernel.services.workflow_executor"
