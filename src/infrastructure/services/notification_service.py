from __future__ import annotations

import logging
from collections import deque

from src.application.notifications.factory import BuiltNotification
from src.domain.models.notification import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """In-memory toast inbox, one bounded queue per console session."""

    def __init__(self, *, max_per_session: int = 50) -> None:
        self.max_per_session = max_per_session
        self._inboxes: dict[str, deque[Notification]] = {}

    def send_notification(self, session_id: str, built: BuiltNotification) -> Notification:
        notification = Notification.create(
            session_id=session_id,
            type=built.type,
            title=built.title,
            message=built.message,
            variant=built.variant,
            data=built.data,
        )
        inbox = self._inboxes.get(session_id)
        if inbox is None:
            inbox = deque(maxlen=self.max_per_session)
            self._inboxes[session_id] = inbox
        inbox.append(notification)
        log = logger.warning if notification.is_error else logger.info
        log(
            "Notification queued: session=%s type=%s message=%s",
            session_id,
            notification.type,
            notification.message,
        )
        return notification

    def list_unread(self, session_id: str) -> list[Notification]:
        return [n for n in self._inboxes.get(session_id, ()) if not n.read]

    def drain(self, session_id: str) -> list[Notification]:
        """Return unread notifications and mark them read."""
        unread = self.list_unread(session_id)
        for notification in unread:
            notification.mark_as_read()
        return unread

    def discard_session(self, session_id: str) -> None:
        self._inboxes.pop(session_id, None)
