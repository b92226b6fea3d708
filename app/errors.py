"""
API error types

Every error leaving a route is rendered as ``{"success": false, "message": ...}``
by the handlers registered in ``app.main``.
"""

from typing import Any, Optional


class ApiError(Exception):
    """Base error carrying the HTTP status and the message shown to the caller"""

    status_code = 500

    def __init__(self, message: str, error: Any = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.error = error
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> dict:
        payload = {"success": False, "message": self.message}
        if self.error is not None:
            payload["error"] = self.error
        return payload


class BadRequestError(ApiError):
    """Malformed or incomplete inbound request"""

    status_code = 400


class NotInitializedError(ApiError):
    """A collaborator (Scheduler API client, email provider) is not configured"""

    status_code = 503


class UpstreamError(ApiError):
    """An outbound call failed; the provider's error text is relayed as ``error``"""

    status_code = 500
