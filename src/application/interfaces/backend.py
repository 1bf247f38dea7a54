from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from src.domain.models.access_request import AccessRequest
from src.domain.models.approval_request import ApprovalRequest
from src.domain.models.company import Company
from src.domain.models.user import User
from src.domain.value_objects.company_type import CompanyType
from src.domain.value_objects.role import Role


@dataclass(slots=True, frozen=True)
class NewUser:
    first_name: str
    last_name: str
    email: str
    username: str
    password: str
    company_id: str
    roles: tuple[Role, ...]
    phone: str | None = None


@dataclass(slots=True, frozen=True)
class BypassSetup:
    company_name: str
    company_type: CompanyType
    username: str
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    testing_goals: str | None = None


@dataclass(slots=True, frozen=True)
class BypassResult:
    request: AccessRequest
    company: Company
    admin: User


class FieldOpsBackend(Protocol):
    """REST contract of the FieldOps backend consumed by the console."""

    async def list_access_requests(self) -> list[AccessRequest]: ...

    async def review_access_request(
        self, request_id: str, *, status: str, notes: str | None = None
    ) -> AccessRequest: ...

    async def approve_access_request(self, request_id: str) -> AccessRequest: ...

    async def reject_access_request(self, request_id: str) -> AccessRequest: ...

    async def bypass_setup(self, request_id: str, setup: BypassSetup) -> BypassResult: ...

    async def list_approval_requests(self) -> list[ApprovalRequest]: ...

    async def review_approval_request(
        self, request_id: str, *, status: str, notes: str | None = None
    ) -> ApprovalRequest: ...

    async def list_companies(self) -> list[Company]: ...

    async def create_user(self, user: NewUser) -> User: ...

    async def get_operations_stats(self) -> dict[str, Any]: ...

    async def get_budget_summary(self) -> dict[str, Any]: ...
