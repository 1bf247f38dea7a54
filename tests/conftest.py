from __future__ import annotations

import asyncio
import sys
from collections.abc import AsyncIterator
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(PROJECT_ROOT))

# ruff: noqa: E402
from src.application.errors import NotFound
from src.application.interfaces.backend import BypassResult, BypassSetup, NewUser
from src.application.operator_context import OperatorContext
from src.application.workflow.coordinator import ApprovalWorkflowCoordinator
from src.config.settings import Settings
from src.domain.models.access_request import AccessRequest
from src.domain.models.approval_request import ApprovalRequest
from src.domain.models.company import Company
from src.domain.models.user import User
from src.domain.value_objects.approval_type import ApprovalPriority, ApprovalType
from src.domain.value_objects.company_type import CompanyType
from src.domain.value_objects.request_status import AccessRequestStatus, ApprovalStatus
from src.domain.value_objects.role import Role
from src.infrastructure.cache.query_cache import QueryCache
from src.infrastructure.services.notification_service import NotificationService
from src.interfaces.http.main import create_app

NOW = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


def make_access_request(request_id: str, **overrides: Any) -> AccessRequest:
    data: dict[str, Any] = {
        "id": request_id,
        "first_name": "Ana",
        "last_name": "Lopez",
        "email": f"{request_id}@example.com",
        "requested_role": Role.FIELD_AGENT,
        "requested_at": NOW,
        "phone": "+1 555 0100",
    }
    data.update(overrides)
    return AccessRequest(**data)


def make_approval_request(request_id: str, **overrides: Any) -> ApprovalRequest:
    data: dict[str, Any] = {
        "id": request_id,
        "type": ApprovalType.OVERTIME_REQUEST,
        "requested_by": "u-42",
        "created_at": NOW,
        "priority": ApprovalPriority.NORMAL,
        "budget_amount": Decimal("1200.00"),
        "title": "Weekend shift",
    }
    data.update(overrides)
    return ApprovalRequest(**data)


class FakeBackend:
    """In-memory FieldOps backend. Records every call; failures and pauses can be scripted."""

    def __init__(self) -> None:
        self.access_requests: dict[str, AccessRequest] = {}
        self.approval_requests: dict[str, ApprovalRequest] = {}
        self.companies: list[Company] = [Company(id="c1", name="Acme Field Services")]
        self.users: list[User] = []
        self.calls: list[tuple[str, Any]] = []
        self.failures: dict[str, list[Exception]] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self._next_user = 1

    def add_access_request(self, request: AccessRequest) -> AccessRequest:
        self.access_requests[request.id] = request
        return request

    def add_approval_request(self, request: ApprovalRequest) -> ApprovalRequest:
        self.approval_requests[request.id] = request
        return request

    def fail(self, method: str, exc: Exception) -> None:
        self.failures.setdefault(method, []).append(exc)

    def calls_to(self, method: str) -> list[Any]:
        return [args for name, args in self.calls if name == method]

    async def _enter(self, method: str, args: Any = None) -> None:
        self.calls.append((method, args))
        gate = self.gates.get(method)
        if gate is not None:
            await gate.wait()
        pending = self.failures.get(method)
        if pending:
            raise pending.pop(0)

    def _set_access_status(self, request_id: str, status: AccessRequestStatus) -> AccessRequest:
        current = self.access_requests.get(request_id)
        if current is None:
            raise NotFound("Access request not found")
        updated = replace(current, status=status, reviewed_at=NOW)
        self.access_requests[request_id] = updated
        return replace(updated)

    async def list_access_requests(self) -> list[AccessRequest]:
        await self._enter("list_access_requests")
        return [replace(r) for r in self.access_requests.values()]

    async def review_access_request(
        self, request_id: str, *, status: str, notes: str | None = None
    ) -> AccessRequest:
        await self._enter("review_access_request", (request_id, status, notes))
        return self._set_access_status(request_id, AccessRequestStatus(status))

    async def approve_access_request(self, request_id: str) -> AccessRequest:
        await self._enter("approve_access_request", request_id)
        return self._set_access_status(request_id, AccessRequestStatus.APPROVED)

    async def reject_access_request(self, request_id: str) -> AccessRequest:
        await self._enter("reject_access_request", request_id)
        return self._set_access_status(request_id, AccessRequestStatus.REJECTED)

    async def bypass_setup(self, request_id: str, setup: BypassSetup) -> BypassResult:
        await self._enter("bypass_setup", (request_id, setup))
        company = Company(
            id=f"c{len(self.companies) + 1}", name=setup.company_name, type=setup.company_type
        )
        self.companies.append(company)
        admin = self._store_user(
            email=setup.email,
            first_name=setup.first_name,
            last_name=setup.last_name,
            username=setup.username,
            company_id=company.id,
            roles=(Role.ADMINISTRATOR,),
        )
        request = self._set_access_status(request_id, AccessRequestStatus.APPROVED)
        return BypassResult(request=request, company=company, admin=admin)

    async def list_approval_requests(self) -> list[ApprovalRequest]:
        await self._enter("list_approval_requests")
        return [replace(r) for r in self.approval_requests.values()]

    async def review_approval_request(
        self, request_id: str, *, status: str, notes: str | None = None
    ) -> ApprovalRequest:
        await self._enter("review_approval_request", (request_id, status, notes))
        current = self.approval_requests.get(request_id)
        if current is None:
            raise NotFound("Approval request not found")
        updated = replace(current, status=ApprovalStatus.parse(status), notes=notes)
        self.approval_requests[request_id] = updated
        return replace(updated)

    async def list_companies(self) -> list[Company]:
        await self._enter("list_companies")
        return list(self.companies)

    async def create_user(self, user: NewUser) -> User:
        await self._enter("create_user", user)
        return self._store_user(
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            username=user.username,
            company_id=user.company_id,
            roles=user.roles,
        )

    async def get_operations_stats(self) -> dict[str, Any]:
        await self._enter("get_operations_stats")
        pending = sum(1 for r in self.access_requests.values() if r.is_pending)
        return {"activeWorkOrders": 4, "pendingAccessRequests": pending}

    async def get_budget_summary(self) -> dict[str, Any]:
        await self._enter("get_budget_summary")
        return {"allocated": 50000, "spent": 12000}

    def _store_user(self, **fields: Any) -> User:
        user = User(id=f"u{self._next_user}", **fields)
        self._next_user += 1
        self.users.append(user)
        return user


@pytest.fixture()
def backend() -> FakeBackend:
    fake = FakeBackend()
    fake.add_access_request(make_access_request("r1"))
    fake.add_access_request(
        make_access_request(
            "r2",
            first_name="Bo",
            last_name="Chen",
            is_dev_bypass=True,
            company_name="Chen Testing LLC",
            company_type=CompanyType.CLIENT,
            username="bchen",
            testing_goals="Evaluate dispatch board",
        )
    )
    fake.add_access_request(make_access_request("r3", first_name="Cy", last_name="Diaz"))
    fake.add_approval_request(make_approval_request("a1"))
    fake.add_approval_request(
        make_approval_request("a2", type=ApprovalType.USER_DELETION, title="Remove tech")
    )
    return fake


@pytest.fixture()
def director() -> OperatorContext:
    return OperatorContext(
        user_id="op-1", role=Role.OPERATIONS_DIRECTOR, display_name="Dana Director"
    )


@pytest.fixture()
def test_settings() -> Settings:
    return Settings.model_validate(
        {
            "backend_base_url": "http://backend.test",
            "access_review_mode": "review",
            # Polling stays off in tests; refreshes come from invalidation only
            "poll_interval_seconds": 0,
            "stale_time_seconds": 60,
            "session_header": "X-Console-Session",
            "log_level": "INFO",
            "environment": "test",
        }
    )


@pytest.fixture()
def app(test_settings: Settings, backend: FakeBackend):
    return create_app(settings=test_settings, backend=backend)


@pytest.fixture()
async def client(app) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture()
def session_factory(app, client):
    async def _open(role: Role = Role.OPERATIONS_DIRECTOR, user_id: str = "op-1") -> dict:
        resp = await client.post(
            "/api/v1/sessions", json={"user_id": user_id, "role": role.value}
        )
        assert resp.status_code == 201, resp.text
        return {app.state.settings.session_header: resp.json()["session_id"]}

    return _open


@pytest.fixture()
def coordinator_factory(backend: FakeBackend, director: OperatorContext):
    def _build(
        operator: OperatorContext | None = None, *, legacy_review: bool = False
    ) -> ApprovalWorkflowCoordinator:
        return ApprovalWorkflowCoordinator(
            session_id="s-1",
            operator=operator or director,
            backend=backend,
            cache=QueryCache(stale_time=60),
            notifications=NotificationService(),
            legacy_review=legacy_review,
        )

    return _build
