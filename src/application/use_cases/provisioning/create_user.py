from __future__ import annotations

from typing import Iterable

from src.application.interfaces.backend import FieldOpsBackend, NewUser
from src.application.operator_context import OperatorContext
from src.application.use_cases.provisioning import validate_form
from src.domain.models.company import Company
from src.domain.models.provisioning import ProvisioningForm
from src.domain.models.user import User


def to_new_user(form: ProvisioningForm) -> NewUser:
    phone = (form.phone or "").strip() or None
    return NewUser(
        first_name=form.first_name.strip(),
        last_name=form.last_name.strip(),
        email=form.email.strip(),
        username=form.username.strip(),
        password=form.password,
        company_id=form.company_id or "",
        roles=(form.requested_role,),
        phone=phone,
    )


async def execute(
    backend: FieldOpsBackend,
    operator: OperatorContext,
    form: ProvisioningForm,
    companies: Iterable[Company],
) -> User:
    """Validate the provisioning form locally, then create the account."""
    operator.require_access_reviewer()
    validate_form.validate(form, companies)
    return await backend.create_user(to_new_user(form))
