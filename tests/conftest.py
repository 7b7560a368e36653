"""
Pytest fixtures for the order lifecycle test suite.

Provides:
- Structured logging configured for the session, with per-test capture
- Deterministic clock and sequential id generation
- One actor per role
- Default (bundled) and minimal workflow rules
- Order / attachment / comment factories
- Wired services (OrderService, AssignmentManager, ExternalJobService)
"""

import json
import logging
from datetime import datetime, timezone
from io import StringIO

import pytest

from mfg_config import default_workflow_rules
from mfg_kernel.domain.clock import DeterministicClock
from mfg_kernel.domain.identifiers import SequentialIdGenerator
from mfg_kernel.domain.rules import ChecklistItem, ExternalJobRule, WorkflowRules
from mfg_kernel.domain.values import Actor, ExternalJobStatus, OrderStatus, Role
from mfg_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from mfg_modules.external_jobs.service import ExternalJobService
from mfg_modules.orders.assignment import AssignmentManager
from mfg_modules.orders.models import Attachment, Comment, Order
from mfg_modules.orders.service import OrderService

FIXED_NOW = datetime(2024, 3, 1, 9, 30, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture mfg_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, order_service, ...):
            order_service.apply_transition(...)
            logs = captured_logs()
            assert any(r["message"] == "order_status_changed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("mfg_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock and identifiers
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(FIXED_NOW)


@pytest.fixture
def id_generator():
    return SequentialIdGenerator()


# =============================================================================
# Actors
# =============================================================================


@pytest.fixture
def sales_actor():
    return Actor(actor_id="u-sales", name="Sam Sales", role=Role.SALES.value)


@pytest.fixture
def engineer_actor():
    return Actor(actor_id="u-eng", name="Erin Engineer", role=Role.ENGINEERING.value)


@pytest.fixture
def other_engineer():
    return Actor(actor_id="u-eng-2", name="Eli Engineer", role=Role.ENGINEERING.value)


@pytest.fixture
def production_actor():
    return Actor(actor_id="u-prod", name="Pat Production", role=Role.PRODUCTION.value)


@pytest.fixture
def admin_actor():
    return Actor(actor_id="u-admin", name="Ada Admin", role=Role.ADMIN.value, is_admin=True)


@pytest.fixture
def actors_by_role(sales_actor, engineer_actor, production_actor, admin_actor):
    return {
        Role.SALES.value: sales_actor,
        Role.ENGINEERING.value: engineer_actor,
        Role.PRODUCTION.value: production_actor,
        Role.ADMIN.value: admin_actor,
    }


# =============================================================================
# Rules
# =============================================================================


@pytest.fixture(scope="session")
def default_rules():
    """The bundled default rules file."""
    return default_workflow_rules()


@pytest.fixture
def open_rules():
    """Rules with no readiness requirements; every gate passes."""
    return WorkflowRules(return_reasons=("Missing info", "Incorrect data"))


@pytest.fixture
def gated_rules():
    """One checklist item per forward gate, one attachment each, no comments."""
    return WorkflowRules(
        checklist_items=(
            ChecklistItem("X", "Brief complete", frozenset({OrderStatus.READY_FOR_ENGINEERING})),
            ChecklistItem("Y", "Files ready", frozenset({OrderStatus.READY_FOR_PRODUCTION})),
        ),
        min_attachments_for_engineering=1,
        min_attachments_for_production=1,
        external_job_rules={
            ExternalJobStatus.DELIVERED: ExternalJobRule(ExternalJobStatus.DELIVERED, 1),
        },
        return_reasons=("Missing info",),
    )


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_attachment():
    counter = iter(range(1, 10_000))

    def _make(role: str = Role.SALES.value, category: str | None = None) -> Attachment:
        n = next(counter)
        return Attachment(
            attachment_id=f"att-{n}",
            added_by="fixture",
            added_by_role=role,
            created_at=FIXED_NOW,
            category=category,
            name=f"file-{n}.pdf",
        )

    return _make


@pytest.fixture
def make_comment():
    counter = iter(range(1, 10_000))

    def _make(message: str = "Looks good") -> Comment:
        return Comment(
            comment_id=f"c-{next(counter)}",
            message=message,
            author="fixture",
            author_role=Role.SALES.value,
            created_at=FIXED_NOW,
        )

    return _make


@pytest.fixture
def make_order(make_attachment, make_comment):
    """Build an Order snapshot directly in any status."""

    def _make(
        status: OrderStatus = OrderStatus.DRAFT,
        checklist: dict | None = None,
        attachments: int = 0,
        comments: int = 0,
        order_number: str = "ORD-0001",
        **overrides,
    ) -> Order:
        return Order(
            order_id=overrides.pop("order_id", "ord-fixture"),
            order_number=order_number,
            customer_name=overrides.pop("customer_name", "Acme Fabrication"),
            status=status,
            checklist=checklist or {},
            attachments=tuple(make_attachment() for _ in range(attachments)),
            comments=tuple(make_comment() for _ in range(comments)),
            **overrides,
        )

    return _make


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def outcome_records():
    return []


@pytest.fixture
def order_service(open_rules, deterministic_clock, id_generator, outcome_records):
    return OrderService(
        open_rules,
        clock=deterministic_clock,
        id_generator=id_generator,
        outcome_sink=outcome_records.append,
    )


@pytest.fixture
def gated_order_service(gated_rules, deterministic_clock, id_generator):
    return OrderService(gated_rules, clock=deterministic_clock, id_generator=id_generator)


@pytest.fixture
def assignment_manager(order_service):
    return AssignmentManager(order_service)


@pytest.fixture
def external_job_service(gated_rules, deterministic_clock, id_generator):
    return ExternalJobService(gated_rules, clock=deterministic_clock, id_generator=id_generator)
