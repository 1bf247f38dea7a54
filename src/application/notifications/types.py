from __future__ import annotations


class NotificationType:
    """Canonical notification type names shown to console operators."""

    ACCESS_REQUEST_APPROVED = "access_request_approved"
    ACCESS_REQUEST_REJECTED = "access_request_rejected"
    BYPASS_SETUP_COMPLETED = "bypass_setup_completed"
    APPROVAL_REQUEST_REVIEWED = "approval_request_reviewed"
    VALIDATION_FAILED = "validation_failed"
    STATE_CONFLICT = "state_conflict"
    NETWORK_ERROR = "network_error"
    ACTION_FAILED = "action_failed"


ERROR_TYPES = {
    NotificationType.VALIDATION_FAILED,
    NotificationType.STATE_CONFLICT,
    NotificationType.NETWORK_ERROR,
    NotificationType.ACTION_FAILED,
}
