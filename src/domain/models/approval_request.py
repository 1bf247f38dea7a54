from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from src.application.errors import InvalidStateError
from src.domain.value_objects.approval_type import ApprovalPriority, ApprovalType
from src.domain.value_objects.request_status import ApprovalStatus


@dataclass(slots=True)
class ApprovalRequest:
    """Non-access approval item: deletions, high-budget items, escalations."""

    id: str
    type: ApprovalType
    requested_by: str
    created_at: datetime
    status: ApprovalStatus = ApprovalStatus.PENDING
    priority: ApprovalPriority = ApprovalPriority.NORMAL
    budget_amount: Decimal | None = None
    notes: str | None = None
    title: str | None = None
    description: str | None = None
    requester_name: str | None = None
    requester_role: str | None = None
    reviewed_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status is ApprovalStatus.PENDING

    def approve(self, notes: str | None = None) -> None:
        self._finalize(ApprovalStatus.APPROVED, notes)

    def deny(self, notes: str | None = None) -> None:
        self._finalize(ApprovalStatus.DENIED, notes)

    def _finalize(self, status: ApprovalStatus, notes: str | None) -> None:
        if self.status.is_terminal:
            raise InvalidStateError(
                f"Approval request already {self.status.value}",
                details={"request_id": self.id, "status": self.status.value},
            )
        self.status = status
        self.reviewed_at = datetime.now(timezone.utc)
        if notes is not None:
            self.notes = notes
