from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict

from src.application.use_cases.approvals.review_approval_request import ReviewDecision
from src.domain.value_objects.approval_type import ApprovalPriority, ApprovalType
from src.domain.value_objects.company_type import CompanyType
from src.domain.value_objects.request_status import AccessRequestStatus, ApprovalStatus
from src.domain.value_objects.role import Role
from src.domain.value_objects.workflow_phase import WorkflowPhase


class AccessRequestSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    requested_role: Role
    status: AccessRequestStatus
    requested_at: datetime
    is_dev_bypass: bool
    testing_goals: str | None = None
    company_name: str | None = None
    company_type: CompanyType | None = None
    username: str | None = None
    intention: str | None = None
    how_heard_about: str | None = None
    skills_description: str | None = None
    notes: str | None = None
    # Console-side workflow state for this request
    phase: WorkflowPhase = WorkflowPhase.IDLE
    busy: bool = False


class ApprovalRequestSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: ApprovalType
    status: ApprovalStatus
    priority: ApprovalPriority
    requested_by: str
    requester_name: str | None = None
    requester_role: str | None = None
    title: str | None = None
    description: str | None = None
    budget_amount: Decimal | None = None
    notes: str | None = None
    created_at: datetime
    reviewed_at: datetime | None = None


class PendingCountSchema(BaseModel):
    pending_access: int
    pending_approvals: int
    total: int


class ApprovalsResponse(BaseModel):
    access_requests: list[AccessRequestSchema]
    approval_requests: list[ApprovalRequestSchema]
    pending: PendingCountSchema


class OverviewResponse(BaseModel):
    pending: PendingCountSchema
    stats: dict[str, Any]
    budget_summary: dict[str, Any]


class ReviewApprovalRequestPayload(BaseModel):
    decision: ReviewDecision
    notes: str | None = None


class RejectAccessRequestPayload(BaseModel):
    notes: str | None = None
