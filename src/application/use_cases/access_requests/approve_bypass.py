from __future__ import annotations

from src.application.errors import ValidationError
from src.application.interfaces.backend import BypassResult, BypassSetup, FieldOpsBackend
from src.application.operator_context import OperatorContext
from src.domain.models.access_request import AccessRequest
from src.domain.value_objects.company_type import CompanyType


def build_setup(request: AccessRequest) -> BypassSetup:
    missing = {
        name: "This field is required"
        for name, value in (
            ("company_name", request.company_name),
            ("username", request.username),
        )
        if not (value or "").strip()
    }
    if missing:
        raise ValidationError("Dev-bypass request is incomplete", details=missing)
    return BypassSetup(
        company_name=request.company_name.strip(),
        company_type=request.company_type or CompanyType.SERVICE,
        username=request.username.strip(),
        first_name=request.first_name,
        last_name=request.last_name,
        email=request.email,
        phone=request.phone,
        testing_goals=request.testing_goals,
    )


async def execute(
    backend: FieldOpsBackend,
    operator: OperatorContext,
    request: AccessRequest,
) -> BypassResult:
    """Create the company and its administrator and approve the request in one call."""
    operator.require_access_reviewer()
    request.ensure_pending()
    if not request.is_dev_bypass:
        raise ValidationError("Only dev-bypass requests can skip user provisioning")
    setup = build_setup(request)
    return await backend.bypass_setup(request.id, setup)
