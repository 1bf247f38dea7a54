from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .types import ERROR_TYPES, NotificationType


@dataclass
class BuiltNotification:
    type: str
    title: str
    message: str
    variant: str
    data: dict[str, Any]


def _short_label(s: str | None, *, max_len: int = 32) -> str | None:
    """Shorten names shown in toast messages to a safe length with ellipsis."""
    if not s:
        return s
    s = str(s)
    return s if len(s) <= max_len else (s[: max(0, max_len - 1)] + "…")


def _variant(ntype: str) -> str:
    return "destructive" if ntype in ERROR_TYPES else "default"


def build_notification(ntype: str, **kwargs: Any) -> BuiltNotification:
    """
    Central place to build toast title/message/data.
    Keep strings easy to find and translate.
    """
    request_id = kwargs.get("request_id")
    data: dict[str, Any] = {"request_id": str(request_id) if request_id is not None else None}

    if ntype == NotificationType.ACCESS_REQUEST_APPROVED:
        name = _short_label(kwargs.get("applicant_name"))
        title = "User Created Successfully"
        message = "Access request has been approved and user account created."
        if name:
            message = f"Access request for {name} has been approved and user account created."
        data["user_id"] = kwargs.get("user_id")
        return BuiltNotification(ntype, title, message, _variant(ntype), data)

    if ntype == NotificationType.BYPASS_SETUP_COMPLETED:
        company_name = _short_label(kwargs.get("company_name"), max_len=40) or "Company"
        username = kwargs.get("username")
        title = "Company & Admin Created"
        message = f"{company_name} was created with administrator {username}."
        data["company_id"] = kwargs.get("company_id")
        data["user_id"] = kwargs.get("user_id")
        return BuiltNotification(ntype, title, message, _variant(ntype), data)

    if ntype == NotificationType.ACCESS_REQUEST_REJECTED:
        title = "Request Rejected"
        message = "Access request has been rejected."
        return BuiltNotification(ntype, title, message, _variant(ntype), data)

    if ntype == NotificationType.APPROVAL_REQUEST_REVIEWED:
        status = kwargs.get("status", "approved")
        title = "Request Processed"
        message = f"Request has been {status} successfully."
        data["status"] = status
        return BuiltNotification(ntype, title, message, _variant(ntype), data)

    if ntype == NotificationType.VALIDATION_FAILED:
        fields = kwargs.get("fields") or {}
        title = "Check the form"
        message = kwargs.get("message") or "Some fields need attention."
        data["fields"] = dict(fields)
        return BuiltNotification(ntype, title, message, _variant(ntype), data)

    if ntype == NotificationType.STATE_CONFLICT:
        title = "Already Reviewed"
        message = (
            kwargs.get("message") or "This request was already reviewed. The list was refreshed."
        )
        return BuiltNotification(ntype, title, message, _variant(ntype), data)

    if ntype == NotificationType.NETWORK_ERROR:
        title = "Connection Problem"
        reason = (kwargs.get("message") or "Could not reach the server").rstrip(".")
        message = f"{reason}. Please try again."
        return BuiltNotification(ntype, title, message, _variant(ntype), data)

    if ntype == NotificationType.ACTION_FAILED:
        title = "Error"
        message = kwargs.get("message") or "An unexpected error occurred"
        return BuiltNotification(ntype, title, message, _variant(ntype), data)

    raise ValueError(f"Unknown notification type: {ntype}")
