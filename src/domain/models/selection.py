from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Union

from src.domain.models.provisioning import ProvisioningForm, ProvisioningPrefill


@dataclass(slots=True, frozen=True)
class NoSelection:
    pass


@dataclass(slots=True, frozen=True)
class Provisioning:
    request_id: str
    prefill: ProvisioningPrefill
    # Last form submitted; kept so a failed submit loses no entered fields
    draft: ProvisioningForm | None = None
    # Set once POST /api/users succeeded; retries only re-run the approval
    created_user_id: str | None = None

    def with_draft(self, draft: ProvisioningForm) -> Provisioning:
        return replace(self, draft=draft)

    def with_created_user(self, user_id: str) -> Provisioning:
        return replace(self, created_user_id=user_id)


Selection = Union[NoSelection, Provisioning]

NO_SELECTION = NoSelection()
