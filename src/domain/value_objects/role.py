from __future__ import annotations

from enum import Enum

from src.domain.value_objects.approval_type import ApprovalType


class Role(str, Enum):
    OPERATIONS_DIRECTOR = "operations_director"
    ADMINISTRATOR = "administrator"
    PROJECT_MANAGER = "project_manager"
    MANAGER = "manager"
    DISPATCHER = "dispatcher"
    FIELD_AGENT = "field_agent"
    FIELD_ENGINEER = "field_engineer"
    CLIENT = "client"
    CLIENT_ADMINISTRATOR = "client_administrator"
    CLIENT_PROJECT_MANAGER = "client_project_manager"

    def can_review_access_requests(self) -> bool:
        return self in {Role.OPERATIONS_DIRECTOR, Role.ADMINISTRATOR}

    def reviewable_approval_types(self) -> frozenset[ApprovalType]:
        return _REVIEWABLE_TYPES.get(self, frozenset())


_REVIEWABLE_TYPES: dict[Role, frozenset[ApprovalType]] = {
    Role.OPERATIONS_DIRECTOR: frozenset(ApprovalType),
    Role.ADMINISTRATOR: frozenset(
        {
            ApprovalType.ACCESS_REQUEST,
            ApprovalType.USER_DELETION,
            ApprovalType.HIGH_BUDGET_WORK_ORDER,
            ApprovalType.HIGH_BUDGET_PROJECT,
        }
    ),
    Role.PROJECT_MANAGER: frozenset(
        {ApprovalType.HIGH_BUDGET_PROJECT, ApprovalType.ISSUE_ESCALATION}
    ),
    Role.MANAGER: frozenset(
        {
            ApprovalType.OVERTIME_REQUEST,
            ApprovalType.EQUIPMENT_REQUEST,
            ApprovalType.ISSUE_ESCALATION,
        }
    ),
    Role.DISPATCHER: frozenset({ApprovalType.OVERTIME_REQUEST, ApprovalType.EQUIPMENT_REQUEST}),
    Role.FIELD_ENGINEER: frozenset({ApprovalType.EQUIPMENT_REQUEST}),
}
