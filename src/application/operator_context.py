from __future__ import annotations

from dataclasses import dataclass

from src.application.errors import PermissionDenied
from src.domain.value_objects.company_type import CompanyType
from src.domain.value_objects.role import Role


@dataclass(slots=True, frozen=True)
class OperatorContext:
    """Acting operator, built once when a console session starts."""

    user_id: str
    role: Role
    company_type: CompanyType = CompanyType.SERVICE
    display_name: str | None = None

    def require_access_reviewer(self) -> None:
        if not self.role.can_review_access_requests():
            raise PermissionDenied(
                "Only operations directors and administrators can review access requests"
            )
