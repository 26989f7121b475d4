# backend/rsvp_api/core/errors.py

from __future__ import annotations

import logging
from typing import Any, Optional

from rsvp_api.core.request_context import get_request_id

logger = logging.getLogger("rsvp")


class RsvpError(Exception):
    """
    Base class for errors that are deliberately surfaced to the client.

    `message` is rendered verbatim as {"error": message}, so it must never
    carry internal details.
    """

    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RsvpError):
    status_code = 400
    default_message = "Invalid request."


class AuthError(RsvpError):
    # Wrong password, missing token and bad token all look the same to callers.
    status_code = 401
    default_message = "Unauthorized"


class NotFoundError(RsvpError):
    status_code = 404
    default_message = "Not found"


class RateLimitError(RsvpError):
    status_code = 429
    default_message = "Too many requests, please slow down."


class ServerError(RsvpError):
    status_code = 500
    default_message = "Server error"


class NotificationError(Exception):
    """Raised by the email provider path; only ever seen by the background registry."""


def error_payload(message: str) -> dict[str, Any]:
    return {"error": message}


class RequestIdFilter(logging.Filter):
    """
    Injects request_id into every LogRecord as `record.request_id`.
    Safe in non-request contexts (falls back to "-").
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


def install_request_id_logging(
    logger_name: str = "rsvp",
    *,
    include_root: bool = True,
) -> None:
    """
    Attach RequestIdFilter so logs can include %(request_id)s in the formatter.
    Call once during startup, right after logging.basicConfig().
    """
    filt = RequestIdFilter()

    if include_root:
        root = logging.getLogger()
        for handler in root.handlers:
            handler.addFilter(filt)
        root.addFilter(filt)

    logging.getLogger(logger_name).addFilter(filt)


def log_exception_with_context(
    message: str,
    *,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """
    Log the currently handled exception with its stack trace and request id.

    Example:
        try:
            ...
        except Exception:
            log_exception_with_context(
                "Unhandled error",
                extra={"path": "/public/rsvp", "method": "POST"}
            )
    """
    details = " ".join(f"{k}={v}" for k, v in (extra or {}).items())
    logger.exception("%s request_id=%s %s", message, get_request_id(), details)
