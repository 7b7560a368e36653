"""Tests for role checks on workflow and assignment actions."""

import pytest

from mfg_kernel.domain.values import Actor, Role
from mfg_services.rbac_authority import (
    ACTION_TO_ROLES,
    ASSIGN_ENGINEER,
    RETURN_TO_QUEUE,
    TAKE_ORDER,
    check_role,
    get_roles_for_action,
)


class TestCheckRole:

    def test_empty_roles_allow_anyone(self, production_actor):
        assert check_role(production_actor, ()) == (True, "")

    def test_matching_role(self, sales_actor):
        assert check_role(sales_actor, ("Sales",))[0]

    def test_denied_reason_names_role(self, engineer_actor):
        allowed, reason = check_role(engineer_actor, ("Sales",))
        assert not allowed
        assert "Engineering" in reason
        assert "Sales" in reason

    def test_admin_flag_counts_only_where_admin_allowed(self):
        flagged = Actor("u1", "Sam", Role.SALES.value, is_admin=True)
        assert check_role(flagged, (Role.ADMIN.value,))[0]
        assert not check_role(flagged, (Role.ENGINEERING.value,))[0]


class TestActionRoles:

    @pytest.mark.parametrize("action", [TAKE_ORDER, RETURN_TO_QUEUE])
    def test_queue_actions_are_engineering_only(self, action):
        assert get_roles_for_action(action) == (Role.ENGINEERING.value,)

    def test_assignment_is_sales_or_admin(self):
        assert set(get_roles_for_action(ASSIGN_ENGINEER)) == {Role.SALES.value, Role.ADMIN.value}

    def test_unmapped_action(self):
        assert get_roles_for_action("send_to_engineering") is None

    def test_every_mapping_is_non_empty(self):
        assert all(ACTION_TO_ROLES.values())
