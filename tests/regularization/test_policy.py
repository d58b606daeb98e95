from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from hr_workflow.core.enums import ApprovalLevel, ApprovalStatus, RequestStatus, RequestType, Role
from hr_workflow.core.exceptions import ValidationError
from hr_workflow.regularization.model import ApprovalRecord, RegularizationRequest
from hr_workflow.regularization.policy import ApprovalPolicy


def _request(level, status=RequestStatus.PENDING) -> RegularizationRequest:
    return RegularizationRequest(
        request_id=1,
        request_code="REG000001",
        employee_id=1,
        employee_role=Role.EMPLOYEE,
        attendance_date=date(2026, 3, 9),
        request_type=RequestType.MISSED_CHECK_IN,
        reason="x",
        status=status,
        current_level=level,
        submitted_date=datetime(2026, 3, 10, 9, 0),
    )


@pytest.mark.parametrize(
    "role, level",
    [
        (Role.EMPLOYEE, ApprovalLevel.TEAM_LEADER),
        (Role.TEAM_LEADER, ApprovalLevel.TEAM_MANAGER),
        (Role.TEAM_MANAGER, ApprovalLevel.HR),
        (Role.HR, ApprovalLevel.VP_ADMIN),
    ],
)
def test_default_first_levels(role, level):
    assert ApprovalPolicy().first_level_for(role) == level


def test_first_level_accepts_role_aliases():
    assert ApprovalPolicy().first_level_for("team lead") == ApprovalLevel.TEAM_MANAGER


@pytest.mark.parametrize("role", [Role.VP, Role.ADMIN])
def test_override_roles_have_no_chain(role):
    with pytest.raises(ValidationError):
        ApprovalPolicy().first_level_for(role)


def test_custom_first_levels_replace_defaults():
    policy = ApprovalPolicy({"Employee": "Team Manager"})
    assert policy.first_level_for(Role.EMPLOYEE) == ApprovalLevel.TEAM_MANAGER
    with pytest.raises(ValidationError):
        policy.first_level_for(Role.TEAM_LEADER)


def test_bad_configuration_is_rejected():
    with pytest.raises(ValidationError):
        ApprovalPolicy({"Employee": "CEO"})
    with pytest.raises(ValidationError):
        ApprovalPolicy({"Janitor": "HR"})


@pytest.mark.parametrize(
    "role, level, allowed",
    [
        (Role.TEAM_LEADER, ApprovalLevel.TEAM_LEADER, True),
        (Role.TEAM_LEADER, ApprovalLevel.TEAM_MANAGER, False),
        (Role.TEAM_MANAGER, ApprovalLevel.TEAM_MANAGER, True),
        (Role.HR, ApprovalLevel.TEAM_LEADER, False),
        (Role.HR, ApprovalLevel.HR, True),
        (Role.EMPLOYEE, ApprovalLevel.HR, False),
        (Role.VP, ApprovalLevel.TEAM_LEADER, True),
        (Role.ADMIN, ApprovalLevel.HR, True),
        (Role.VP, ApprovalLevel.VP_ADMIN, True),
        (Role.HR, ApprovalLevel.VP_ADMIN, False),
        ("Team Lead", ApprovalLevel.TEAM_LEADER, True),
        ("team leader", ApprovalLevel.TEAM_LEADER, True),
        ("Manager", ApprovalLevel.TEAM_MANAGER, True),
        ("HR Manager", ApprovalLevel.HR, True),
        ("Vice President", ApprovalLevel.TEAM_LEADER, True),
        ("Team Lead", ApprovalLevel.TEAM_MANAGER, False),
    ],
)
def test_can_act(role, level, allowed):
    assert ApprovalPolicy().can_act(role, _request(level)) is allowed


@pytest.mark.parametrize("status", [RequestStatus.APPROVED, RequestStatus.REJECTED, RequestStatus.CANCELLED])
def test_nobody_acts_on_terminal_requests(status):
    req = _request(None, status=status)
    assert not ApprovalPolicy().can_act(Role.ADMIN, req)


def test_escalation_order():
    policy = ApprovalPolicy()
    assert policy.next_level_after_approval(ApprovalLevel.TEAM_LEADER) == ApprovalLevel.TEAM_MANAGER
    assert policy.next_level_after_approval(ApprovalLevel.TEAM_MANAGER) == ApprovalLevel.HR
    assert policy.next_level_after_approval(ApprovalLevel.HR) is None
    assert policy.next_level_after_approval(ApprovalLevel.VP_ADMIN) is None


def test_override_approval_is_final():
    policy = ApprovalPolicy()
    assert policy.is_override(Role.VP, ApprovalLevel.TEAM_LEADER)
    assert not policy.is_override(Role.VP, ApprovalLevel.VP_ADMIN)
    assert policy.next_level_for(Role.VP, ApprovalLevel.TEAM_LEADER) is None
    assert policy.next_level_for(Role.TEAM_LEADER, ApprovalLevel.TEAM_LEADER) == ApprovalLevel.TEAM_MANAGER


def test_rejection_is_always_terminal():
    for level in ApprovalLevel:
        assert ApprovalPolicy.on_rejection(level) == RequestStatus.REJECTED


def test_vp_admin_level_records_into_hr_slot():
    assert ApprovalPolicy.approval_field_for(ApprovalLevel.VP_ADMIN) == "hr_approval"
    assert ApprovalPolicy.approval_field_for(ApprovalLevel.TEAM_LEADER) == "team_leader_approval"


def test_levels_and_visibility():
    assert ApprovalPolicy.levels_for(Role.EMPLOYEE) == ()
    assert ApprovalPolicy.levels_for(Role.HR) == (ApprovalLevel.HR,)
    assert set(ApprovalPolicy.levels_for(Role.ADMIN)) == set(ApprovalLevel)
    assert ApprovalPolicy.can_view_all(Role.HR)
    assert not ApprovalPolicy.can_view_all(Role.TEAM_MANAGER)


def test_aliases_resolve_to_the_same_levels():
    assert ApprovalPolicy.levels_for("Team Lead") == (ApprovalLevel.TEAM_LEADER,)
    assert ApprovalPolicy.is_override("Super Admin", ApprovalLevel.HR)
    assert ApprovalPolicy.can_view_all("hr bp")


def test_decided_levels_only_reports_the_actors_own_decided_slot():
    req = replace(
        _request(ApprovalLevel.TEAM_MANAGER, status=RequestStatus.UNDER_REVIEW),
        team_leader_approval=ApprovalRecord(status=ApprovalStatus.APPROVED, approver_id=2),
    )
    assert ApprovalPolicy.decided_levels(Role.TEAM_LEADER, req) == (ApprovalLevel.TEAM_LEADER,)
    assert ApprovalPolicy.decided_levels("Team Lead", req) == (ApprovalLevel.TEAM_LEADER,)
    assert ApprovalPolicy.decided_levels(Role.TEAM_MANAGER, req) == ()
    assert ApprovalPolicy.decided_levels(Role.VP, req) == ()
    assert ApprovalPolicy.decided_levels(Role.TEAM_LEADER, _request(ApprovalLevel.TEAM_MANAGER)) == ()
