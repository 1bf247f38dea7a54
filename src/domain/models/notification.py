from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4


@dataclass(slots=True)
class Notification:
    id: UUID
    session_id: str
    type: str
    title: str
    message: str
    variant: str = "default"  # default | destructive
    data: dict | None = None
    read: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    read_at: datetime | None = None

    @classmethod
    def create(
        cls,
        session_id: str,
        type: str,
        title: str,
        message: str,
        variant: str = "default",
        data: dict | None = None,
    ) -> Notification:
        return cls(
            id=uuid4(),
            session_id=session_id,
            type=type,
            title=title,
            message=message,
            variant=variant,
            data=data,
            read=False,
            created_at=datetime.now(timezone.utc),
            read_at=None,
        )

    @property
    def is_error(self) -> bool:
        return self.variant == "destructive"

    def mark_as_read(self) -> None:
        if not self.read:
            self.read = True
            self.read_at = datetime.now(timezone.utc)
