from __future__ import annotations

import re
from typing import Iterable

from src.application.errors import ValidationError
from src.domain.models.company import Company
from src.domain.models.provisioning import ProvisioningForm

MIN_PASSWORD_LENGTH = 8

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def collect_errors(form: ProvisioningForm, companies: Iterable[Company]) -> dict[str, str]:
    errors: dict[str, str] = {}
    for field_name, label in (
        ("first_name", "First name"),
        ("last_name", "Last name"),
        ("email", "Email"),
        ("username", "Username"),
    ):
        if not (getattr(form, field_name) or "").strip():
            errors[field_name] = f"{label} is required"

    if "email" not in errors and not _EMAIL_RE.match(form.email.strip()):
        errors["email"] = "Invalid email address"

    company_ids = {company.id for company in companies}
    if not form.company_id:
        errors["company_id"] = "Please select a company to assign this user to"
    elif form.company_id not in company_ids:
        errors["company_id"] = "Selected company no longer exists"

    if len(form.password) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    # Compared as-is: no trimming or normalization
    if form.password != form.password_confirmation:
        errors["password_confirmation"] = "Passwords do not match"
    return errors


def validate(form: ProvisioningForm, companies: Iterable[Company]) -> None:
    errors = collect_errors(form, companies)
    if errors:
        raise ValidationError("Please correct the highlighted fields", details=errors)
