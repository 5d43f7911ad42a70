"""Exceptions raised by the uptime monitoring engine."""


class UptimeMonitorError(Exception):
    """Base class for all errors raised by this package."""


class MessagingError(UptimeMonitorError):
    """Raised when the messaging transport refuses or fails to accept a message."""

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code
