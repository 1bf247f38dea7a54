from __future__ import annotations

from enum import Enum


class ApprovalType(str, Enum):
    ACCESS_REQUEST = "access_request"
    USER_DELETION = "user_deletion"
    HIGH_BUDGET_WORK_ORDER = "high_budget_work_order"
    HIGH_BUDGET_PROJECT = "high_budget_project"
    ISSUE_ESCALATION = "issue_escalation"
    OVERTIME_REQUEST = "overtime_request"
    EQUIPMENT_REQUEST = "equipment_request"


class ApprovalPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"
