"""Tests for status enums, gates, actors, clocks and id generation."""

from datetime import datetime, timedelta, timezone

import pytest

from mfg_kernel.domain.clock import DeterministicClock
from mfg_kernel.domain.identifiers import SequentialIdGenerator, UuidIdGenerator
from mfg_kernel.domain.values import (
    CLOSED_EXTERNAL_JOB_STATUSES,
    Actor,
    ExternalJobStatus,
    Gate,
    OrderStatus,
    Role,
)
from mfg_kernel.exceptions import UnknownStatusError


class TestStatusCoercion:

    def test_order_status_from_string(self):
        assert OrderStatus.coerce("in_engineering") is OrderStatus.IN_ENGINEERING

    def test_order_status_passthrough(self):
        assert OrderStatus.coerce(OrderStatus.DRAFT) is OrderStatus.DRAFT

    def test_unknown_order_status_raises(self):
        with pytest.raises(UnknownStatusError) as exc_info:
            OrderStatus.coerce("shipped")
        assert exc_info.value.code == "UNKNOWN_STATUS"
        assert exc_info.value.value == "shipped"
        assert exc_info.value.kind == "order"

    def test_unknown_external_status_names_kind(self):
        with pytest.raises(UnknownStatusError) as exc_info:
            ExternalJobStatus.coerce("lost")
        assert exc_info.value.kind == "external job"

    def test_closed_external_statuses(self):
        assert CLOSED_EXTERNAL_JOB_STATUSES == {
            ExternalJobStatus.DELIVERED,
            ExternalJobStatus.APPROVED,
            ExternalJobStatus.CANCELLED,
        }


class TestGate:

    def test_target_status(self):
        assert Gate.ENGINEERING.target_status is OrderStatus.READY_FOR_ENGINEERING
        assert Gate.PRODUCTION.target_status is OrderStatus.READY_FOR_PRODUCTION

    def test_for_target(self):
        assert Gate.for_target(OrderStatus.READY_FOR_PRODUCTION) is Gate.PRODUCTION
        assert Gate.for_target(OrderStatus.IN_ENGINEERING) is None


class TestActor:

    def test_has_role_accepts_enum_and_string(self):
        actor = Actor("u1", "Sam", Role.SALES.value)
        assert actor.has_role(Role.SALES)
        assert actor.has_role("Engineering", "Sales")
        assert not actor.has_role(Role.ENGINEERING)

    def test_admin_flag_counts_as_administrator(self):
        assert Actor("u1", "Sam", Role.SALES.value, is_admin=True).is_administrator
        assert Actor("u2", "Ada", Role.ADMIN.value).is_administrator
        assert not Actor("u3", "Erin", Role.ENGINEERING.value).is_administrator


class TestClocks:

    def test_deterministic_clock_is_stable_until_advanced(self):
        clock = DeterministicClock()
        first = clock.now()
        assert clock.now() == first
        assert clock.tick() == first + timedelta(seconds=1)

    def test_today_is_date_of_now(self):
        clock = DeterministicClock(datetime(2024, 5, 17, 23, 0, tzinfo=timezone.utc))
        assert clock.today().isoformat() == "2024-05-17"

    def test_set_time_and_advance(self):
        clock = DeterministicClock()
        start = datetime(2024, 6, 3, 8, 0, tzinfo=timezone.utc)
        clock.set_time(start)
        clock.advance(90)
        assert clock.now() == start + timedelta(seconds=90)


class TestIdGenerators:

    def test_sequential_ids_share_counter_across_prefixes(self):
        ids = SequentialIdGenerator()
        assert ids.new_id("hst") == "hst-0001"
        assert ids.new_id("cmt") == "cmt-0002"

    def test_uuid_ids_are_prefixed_and_unique(self):
        ids = UuidIdGenerator()
        a, b = ids.new_id("hst"), ids.new_id("hst")
        assert a.startswith("hst-")
        assert a != b
