import datetime as dt


class CalendarSyncError(Exception):
    """Base exception for all calendar synchronization errors."""


class InvalidRangeError(CalendarSyncError):
    """Raised when a date range does not satisfy ``start < end``.

    Must not subclass ``ValueError``: ``DateRange`` validation raises it as is.
    """

    def __init__(self, start: dt.datetime, end: dt.datetime) -> None:
        self.start = start
        self.end = end
        super().__init__(f"Invalid range: end {end} is not after start {start}")


class BackendError(CalendarSyncError):
    """Raised when a call to the appointment backend fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ServiceUnavailableError(BackendError):
    """Raised when the backend answers with a 5xx status."""


class BackendRequestError(BackendError):
    """Raised on transport errors and non-5xx error responses."""


class PayloadValidationError(BackendError):
    """Raised when a backend response does not have the expected shape."""
