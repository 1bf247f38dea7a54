from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from src.application.errors import InvalidStateError
from src.domain.value_objects.company_type import CompanyType
from src.domain.value_objects.request_status import AccessRequestStatus
from src.domain.value_objects.role import Role


@dataclass(slots=True)
class AccessRequest:
    """
    Pending application for system access awaiting operator review.
    Status moves pending -> approved or pending -> rejected exactly once.
    """

    id: str
    first_name: str
    last_name: str
    email: str
    requested_role: Role
    requested_at: datetime
    status: AccessRequestStatus = AccessRequestStatus.PENDING
    phone: str | None = None

    # Dev-bypass fast path
    is_dev_bypass: bool = False
    testing_goals: str | None = None
    company_name: str | None = None
    company_type: CompanyType | None = None
    username: str | None = None

    intention: str | None = None
    how_heard_about: str | None = None
    skills_description: str | None = None
    reviewed_at: datetime | None = None
    reviewed_by: str | None = None
    notes: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_pending(self) -> bool:
        return self.status is AccessRequestStatus.PENDING

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def ensure_pending(self) -> None:
        if self.is_terminal:
            raise InvalidStateError(
                f"Access request already {self.status.value}",
                details={"request_id": self.id, "status": self.status.value},
            )

    def approve(self, *, reviewer_id: str | None = None, notes: str | None = None) -> None:
        self._finalize(AccessRequestStatus.APPROVED, reviewer_id, notes)

    def reject(self, *, reviewer_id: str | None = None, notes: str | None = None) -> None:
        self._finalize(AccessRequestStatus.REJECTED, reviewer_id, notes)

    def _finalize(
        self, status: AccessRequestStatus, reviewer_id: str | None, notes: str | None
    ) -> None:
        self.ensure_pending()
        self.status = status
        self.reviewed_at = datetime.now(timezone.utc)
        self.reviewed_by = reviewer_id
        if notes is not None:
            self.notes = notes
