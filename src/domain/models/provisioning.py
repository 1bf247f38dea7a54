from __future__ import annotations

from dataclasses import dataclass

from src.domain.models.access_request import AccessRequest
from src.domain.value_objects.role import Role


@dataclass(slots=True, frozen=True)
class ProvisioningPrefill:
    first_name: str
    last_name: str
    email: str
    requested_role: Role
    phone: str | None = None

    @classmethod
    def from_request(cls, request: AccessRequest) -> ProvisioningPrefill:
        return cls(
            first_name=request.first_name,
            last_name=request.last_name,
            email=request.email,
            requested_role=request.requested_role,
            phone=request.phone,
        )


@dataclass(slots=True)
class ProvisioningForm:
    """Fields of the guided user-creation step, pre-filled from the request."""

    first_name: str
    last_name: str
    email: str
    requested_role: Role
    phone: str | None = None
    company_id: str | None = None
    username: str = ""
    password: str = ""
    password_confirmation: str = ""

    @classmethod
    def from_prefill(cls, prefill: ProvisioningPrefill) -> ProvisioningForm:
        return cls(
            first_name=prefill.first_name,
            last_name=prefill.last_name,
            email=prefill.email,
            requested_role=prefill.requested_role,
            phone=prefill.phone,
        )
