from __future__ import annotations

from enum import Enum


class AccessRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not AccessRequestStatus.PENDING


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"

    @property
    def is_terminal(self) -> bool:
        return self is not ApprovalStatus.PENDING

    @classmethod
    def parse(cls, value: str) -> ApprovalStatus:
        # The backend stores denials as "rejected"
        normalized = value.strip().lower()
        if normalized == "rejected":
            return cls.DENIED
        return cls(normalized)
