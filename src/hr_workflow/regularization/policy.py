"""Approval policy for regularization requests.

Pure decision logic, no I/O. Every "who may do what at which level" question
in the codebase is answered here.
"""
from __future__ import annotations

from typing import Mapping, Optional, Union

from ..core.constants import DEFAULT_FIRST_LEVELS
from ..core.enums import ApprovalLevel, ApprovalStatus, RequestStatus, Role
from ..core.exceptions import ValidationError
from ..core.roles import normalize_role
from .model import RegularizationRequest

LEVEL_ROLES: Mapping[ApprovalLevel, frozenset[Role]] = {
    ApprovalLevel.TEAM_LEADER: frozenset({Role.TEAM_LEADER}),
    ApprovalLevel.TEAM_MANAGER: frozenset({Role.TEAM_MANAGER}),
    ApprovalLevel.HR: frozenset({Role.HR}),
    ApprovalLevel.VP_ADMIN: frozenset({Role.VP, Role.ADMIN}),
}

# May act at any open level as a final override.
OVERRIDE_ROLES = frozenset({Role.VP, Role.ADMIN})

# May read every request.
SUPERVISORY_ROLES = frozenset({Role.HR, Role.VP, Role.ADMIN})

ESCALATION_ORDER = (ApprovalLevel.TEAM_LEADER, ApprovalLevel.TEAM_MANAGER, ApprovalLevel.HR)

APPROVAL_FIELDS: Mapping[ApprovalLevel, str] = {
    ApprovalLevel.TEAM_LEADER: "team_leader_approval",
    ApprovalLevel.TEAM_MANAGER: "team_manager_approval",
    ApprovalLevel.HR: "hr_approval",
    ApprovalLevel.VP_ADMIN: "hr_approval",
}


class ApprovalPolicy:
    def __init__(self, first_levels: Optional[Mapping[Union[str, Role], Union[str, ApprovalLevel]]] = None):
        mapping = DEFAULT_FIRST_LEVELS if first_levels is None else first_levels
        self._first_levels: dict[Role, ApprovalLevel] = {}
        for role, level in mapping.items():
            try:
                self._first_levels[normalize_role(role)] = ApprovalLevel(level)
            except ValueError:
                raise ValidationError(f"Invalid approval level {level!r} configured for role {role!r}")

    def first_level_for(self, requester_role: Role) -> ApprovalLevel:
        role = normalize_role(requester_role)
        level = self._first_levels.get(role)
        if level is None:
            raise ValidationError(f"No approval chain is configured for role {role.value}")
        return level

    @staticmethod
    def roles_for(level: ApprovalLevel) -> frozenset[Role]:
        return LEVEL_ROLES[level]

    @staticmethod
    def levels_for(actor_role: Role) -> tuple[ApprovalLevel, ...]:
        role = normalize_role(actor_role)
        if role in OVERRIDE_ROLES:
            return tuple(ApprovalLevel)
        return tuple(level for level, roles in LEVEL_ROLES.items() if role in roles)

    @staticmethod
    def is_override(actor_role: Role, level: ApprovalLevel) -> bool:
        role = normalize_role(actor_role)
        return role in OVERRIDE_ROLES and role not in LEVEL_ROLES[level]

    @staticmethod
    def can_view_all(actor_role: Role) -> bool:
        return normalize_role(actor_role) in SUPERVISORY_ROLES

    def can_act(self, actor_role: Role, request: RegularizationRequest) -> bool:
        if request.status not in (RequestStatus.PENDING, RequestStatus.UNDER_REVIEW):
            return False
        if request.current_level is None:
            return False
        role = normalize_role(actor_role)
        return role in LEVEL_ROLES[request.current_level] or role in OVERRIDE_ROLES

    @staticmethod
    def decided_levels(actor_role: Role, request: RegularizationRequest) -> tuple[ApprovalLevel, ...]:
        """The actor's own levels whose decision is already on record.

        Override roles own no chain level and always get an empty tuple.
        """
        role = normalize_role(actor_role)
        if role in OVERRIDE_ROLES:
            return ()
        return tuple(
            level
            for level, roles in LEVEL_ROLES.items()
            if role in roles and getattr(request, APPROVAL_FIELDS[level]).status != ApprovalStatus.PENDING
        )

    @staticmethod
    def next_level_after_approval(level: ApprovalLevel) -> Optional[ApprovalLevel]:
        """Next level in the fixed chain, or None when the approval is final."""

        if level not in ESCALATION_ORDER:
            return None
        idx = ESCALATION_ORDER.index(level)
        if idx + 1 < len(ESCALATION_ORDER):
            return ESCALATION_ORDER[idx + 1]
        return None

    def next_level_for(self, actor_role: Role, level: ApprovalLevel) -> Optional[ApprovalLevel]:
        if self.is_override(actor_role, level):
            return None
        return self.next_level_after_approval(level)

    @staticmethod
    def on_rejection(level: ApprovalLevel) -> RequestStatus:
        return RequestStatus.REJECTED

    @staticmethod
    def approval_field_for(level: ApprovalLevel) -> str:
        return APPROVAL_FIELDS[level]
