"""Error taxonomy of the widget core."""

from typing import Optional


class WidgetError(Exception):
    """Base class for widget core errors."""


class StorageUnavailable(WidgetError):
    """Durable key-value store could not be read or written."""


class NetworkFailure(WidgetError):
    """Transport-level failure talking to a collaborator."""


class ServerError(WidgetError):
    """Collaborator answered with a non-success status or an unreadable body."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ValidationError(WidgetError):
    """Local form or precondition check failed before any network call."""


class StaleResponse(WidgetError):
    """Response belongs to a session that is no longer active."""

    def __init__(self, issued_for: str) -> None:
        super().__init__(f"Response issued for superseded session {issued_for!r}")
        self.issued_for = issued_for
