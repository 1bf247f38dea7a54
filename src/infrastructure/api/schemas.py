from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.domain.models.access_request import AccessRequest
from src.domain.models.approval_request import ApprovalRequest
from src.domain.models.company import Company
from src.domain.models.user import User
from src.domain.value_objects.approval_type import ApprovalPriority, ApprovalType
from src.domain.value_objects.company_type import CompanyType
from src.domain.value_objects.request_status import AccessRequestStatus, ApprovalStatus
from src.domain.value_objects.role import Role


class WireModel(BaseModel):
    """Backend JSON is camelCase; fields here are snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class AccessRequestWire(WireModel):
    id: str
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    requested_role: Role
    status: AccessRequestStatus = AccessRequestStatus.PENDING
    # Older rows only carry createdAt
    requested_at: datetime | None = Field(
        default=None, validation_alias=AliasChoices("requestedAt", "createdAt", "requested_at")
    )
    is_dev_bypass: bool = False
    testing_goals: str | None = None
    company_name: str | None = None
    company_type: CompanyType | None = None
    username: str | None = None
    intention: str | None = None
    how_heard_about: str | None = None
    skills_description: str | None = None
    reviewed_at: datetime | None = None
    reviewed_by: str | None = None
    notes: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: object) -> str:
        return str(value)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value

    def to_domain(self) -> AccessRequest:
        return AccessRequest(
            id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            phone=self.phone,
            requested_role=self.requested_role,
            status=self.status,
            requested_at=self.requested_at or datetime.now(timezone.utc),
            is_dev_bypass=self.is_dev_bypass,
            testing_goals=self.testing_goals,
            company_name=self.company_name,
            company_type=self.company_type,
            username=self.username,
            intention=self.intention,
            how_heard_about=self.how_heard_about,
            skills_description=self.skills_description,
            reviewed_at=self.reviewed_at,
            reviewed_by=self.reviewed_by,
            notes=self.notes,
        )


class ApprovalRequestWire(WireModel):
    id: str
    type: ApprovalType
    requested_by: str = Field(
        validation_alias=AliasChoices("requestedById", "requesterId", "requestedBy", "requested_by")
    )
    status: str = "pending"
    priority: ApprovalPriority = ApprovalPriority.NORMAL
    budget_amount: Decimal | None = None
    notes: str | None = None
    title: str | None = None
    description: str | None = None
    requester_name: str | None = None
    requester_role: str | None = None
    created_at: datetime | None = None
    reviewed_at: datetime | None = None

    @field_validator("id", "requested_by", mode="before")
    @classmethod
    def coerce_str(cls, value: object) -> str:
        return str(value)

    @field_validator("priority", mode="before")
    @classmethod
    def default_priority(cls, value: object) -> object:
        return value or ApprovalPriority.NORMAL.value

    def to_domain(self) -> ApprovalRequest:
        return ApprovalRequest(
            id=self.id,
            type=self.type,
            requested_by=self.requested_by,
            created_at=self.created_at or datetime.now(timezone.utc),
            status=ApprovalStatus.parse(self.status),
            priority=self.priority,
            budget_amount=self.budget_amount,
            notes=self.notes,
            title=self.title,
            description=self.description,
            requester_name=self.requester_name,
            requester_role=self.requester_role,
            reviewed_at=self.reviewed_at,
        )


class CompanyWire(WireModel):
    id: str
    name: str
    type: CompanyType = CompanyType.SERVICE

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: object) -> str:
        return str(value)

    @field_validator("type", mode="before")
    @classmethod
    def default_type(cls, value: object) -> object:
        return value or CompanyType.SERVICE.value

    def to_domain(self) -> Company:
        return Company(id=self.id, name=self.name, type=self.type)


class UserWire(WireModel):
    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    username: str | None = None
    company_id: str | None = None
    roles: list[Role] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: object) -> str:
        return str(value)

    def to_domain(self) -> User:
        return User(
            id=self.id,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            username=self.username,
            company_id=self.company_id,
            roles=tuple(self.roles),
        )


class BypassSetupResponseWire(WireModel):
    request: AccessRequestWire = Field(validation_alias=AliasChoices("request", "accessRequest"))
    company: CompanyWire
    admin: UserWire = Field(validation_alias=AliasChoices("admin", "user"))


class ReviewBody(WireModel):
    status: str
    notes: str | None = None


class NewUserBody(WireModel):
    first_name: str
    last_name: str
    email: str
    username: str
    password: str
    company_id: str
    roles: list[str]
    phone: str | None = None


class BypassSetupBody(WireModel):
    company_name: str
    company_type: str
    username: str
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    testing_goals: str | None = None
