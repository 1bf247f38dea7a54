from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from src.domain.models.provisioning import ProvisioningForm
from src.domain.value_objects.company_type import CompanyType
from src.domain.value_objects.role import Role


class CompanySchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    type: CompanyType


class ProvisioningPrefillSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    first_name: str
    last_name: str
    email: str
    requested_role: Role
    phone: str | None = None


class ProvisioningDraftSchema(BaseModel):
    """Last submitted form, passwords left out."""

    model_config = ConfigDict(from_attributes=True)

    first_name: str
    last_name: str
    email: str
    requested_role: Role
    phone: str | None = None
    company_id: str | None = None
    username: str = ""


class ProvisioningStateResponse(BaseModel):
    active: bool
    request_id: str | None = None
    prefill: ProvisioningPrefillSchema | None = None
    draft: ProvisioningDraftSchema | None = None
    created_user_id: str | None = None
    companies: list[CompanySchema] = []


# Format checks happen in the provisioning validator so every field error is reported at once
class ProvisioningFormPayload(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    requested_role: Role
    phone: str | None = None
    company_id: str | None = None
    username: str = ""
    password: str = ""
    password_confirmation: str = ""

    def to_form(self) -> ProvisioningForm:
        return ProvisioningForm(
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            requested_role=self.requested_role,
            phone=self.phone,
            company_id=self.company_id,
            username=self.username,
            password=self.password,
            password_confirmation=self.password_confirmation,
        )
