from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from src.application.errors import (
    AppError,
    AuthError,
    ConflictError,
    InfrastructureError,
    NetworkError,
    NotFound,
    PermissionDenied,
    StateConflictError,
    ValidationError,
)
from src.application.interfaces.backend import BypassResult, BypassSetup, NewUser
from src.domain.models.access_request import AccessRequest
from src.domain.models.approval_request import ApprovalRequest
from src.domain.models.company import Company
from src.domain.models.user import User
from src.infrastructure.api.schemas import (
    AccessRequestWire,
    ApprovalRequestWire,
    BypassSetupBody,
    BypassSetupResponseWire,
    CompanyWire,
    NewUserBody,
    ReviewBody,
    UserWire,
)

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        for key in ("message", "detail", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return response.text or response.reason_phrase


class HttpFieldOpsBackend:
    """FieldOps REST backend over httpx. No retries: failures surface to the operator."""

    def __init__(
        self,
        *,
        base_url: str,
        api_token: str | None = None,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        conflict_error: type[ConflictError] = StateConflictError,
    ) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TimeoutException as exc:
            logger.warning("Backend timeout: %s %s", method, path)
            raise NetworkError("The server took too long to respond") from exc
        except httpx.HTTPError as exc:
            logger.warning("Backend unreachable: %s %s: %s", method, path, exc)
            raise NetworkError("Could not reach the server") from exc

        if response.is_success:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as exc:
                raise InfrastructureError("Backend returned a malformed response") from exc

        message = _error_message(response)
        status = response.status_code
        logger.info("Backend error: %s %s -> %d %s", method, path, status, message)
        details = {"status": status, "path": path}
        error: AppError
        if status == 401:
            error = AuthError(message, details=details)
        elif status == 403:
            error = PermissionDenied(message, details=details)
        elif status == 404:
            error = NotFound(message, details=details)
        elif status == 409:
            error = conflict_error(message, details=details)
        elif status in (400, 422):
            error = ValidationError(message, details=details)
        elif status >= 500:
            error = NetworkError(message, details=details)
        else:
            error = InfrastructureError(message, details=details)
        raise error

    @staticmethod
    def _parse(model, payload: Any):
        try:
            return model.model_validate(payload).to_domain()
        except PydanticValidationError as exc:
            raise InfrastructureError(
                f"Unexpected {model.__name__} payload from backend",
                details={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc

    def _parse_list(self, model, payload: Any) -> list:
        if not isinstance(payload, list):
            raise InfrastructureError(f"Expected a list of {model.__name__} from backend")
        return [self._parse(model, item) for item in payload]

    def _parse_list_lenient(self, model, payload: Any) -> list:
        """Like `_parse_list`, but one unreadable item is logged and skipped."""
        if not isinstance(payload, list):
            raise InfrastructureError(f"Expected a list of {model.__name__} from backend")
        parsed = []
        for item in payload:
            try:
                parsed.append(self._parse(model, item))
            except InfrastructureError as exc:
                item_id = item.get("id") if isinstance(item, dict) else None
                logger.warning(
                    "Skipping unreadable %s item id=%s: %s", model.__name__, item_id, exc.details
                )
        return parsed

    # Access requests

    async def list_access_requests(self) -> list[AccessRequest]:
        payload = await self._request("GET", "/api/access-requests")
        return self._parse_list(AccessRequestWire, payload)

    async def review_access_request(
        self, request_id: str, *, status: str, notes: str | None = None
    ) -> AccessRequest:
        body = ReviewBody(status=status, notes=notes).model_dump(by_alias=True, exclude_none=True)
        payload = await self._request(
            "PATCH", f"/api/access-requests/{request_id}/review", json=body
        )
        return self._parse(AccessRequestWire, payload)

    async def approve_access_request(self, request_id: str) -> AccessRequest:
        payload = await self._request("POST", f"/api/access-requests/{request_id}/approve")
        return self._parse(AccessRequestWire, payload)

    async def reject_access_request(self, request_id: str) -> AccessRequest:
        payload = await self._request("POST", f"/api/access-requests/{request_id}/reject")
        return self._parse(AccessRequestWire, payload)

    async def bypass_setup(self, request_id: str, setup: BypassSetup) -> BypassResult:
        body = BypassSetupBody(
            company_name=setup.company_name,
            company_type=setup.company_type.value,
            username=setup.username,
            first_name=setup.first_name,
            last_name=setup.last_name,
            email=setup.email,
            phone=setup.phone,
            testing_goals=setup.testing_goals,
        ).model_dump(by_alias=True, exclude_none=True)
        payload = await self._request(
            "POST", f"/api/access-requests/{request_id}/bypass-setup", json=body
        )
        try:
            wire = BypassSetupResponseWire.model_validate(payload)
        except PydanticValidationError as exc:
            raise InfrastructureError("Unexpected bypass setup payload from backend") from exc
        return BypassResult(
            request=wire.request.to_domain(),
            company=wire.company.to_domain(),
            admin=wire.admin.to_domain(),
        )

    # Approval requests

    async def list_approval_requests(self) -> list[ApprovalRequest]:
        payload = await self._request("GET", "/api/approval-requests")
        return self._parse_list_lenient(ApprovalRequestWire, payload)

    async def review_approval_request(
        self, request_id: str, *, status: str, notes: str | None = None
    ) -> ApprovalRequest:
        body = ReviewBody(status=status, notes=notes).model_dump(by_alias=True, exclude_none=True)
        payload = await self._request(
            "PATCH", f"/api/approval-requests/{request_id}/review", json=body
        )
        return self._parse(ApprovalRequestWire, payload)

    # Provisioning

    async def list_companies(self) -> list[Company]:
        payload = await self._request("GET", "/api/companies")
        return self._parse_list(CompanyWire, payload)

    async def create_user(self, user: NewUser) -> User:
        body = NewUserBody(
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            username=user.username,
            password=user.password,
            company_id=user.company_id,
            roles=[role.value for role in user.roles],
            phone=user.phone,
        ).model_dump(by_alias=True, exclude_none=True)
        # 409 here means a duplicate username/email, not a reviewed request
        payload = await self._request("POST", "/api/users", json=body, conflict_error=ConflictError)
        return self._parse(UserWire, payload)

    # Aggregates

    async def get_operations_stats(self) -> dict[str, Any]:
        return await self._request("GET", "/api/operations/stats") or {}

    async def get_budget_summary(self) -> dict[str, Any]:
        return await self._request("GET", "/api/operations/budget-summary") or {}
