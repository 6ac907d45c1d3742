"""FilterException hierarchy for controlled pipeline aborts."""

from __future__ import annotations


class FilterException(Exception):
    """Base for all filter pipeline exceptions."""


class FilterAbort(FilterException):
    """Controlled abort with HTTP status code and detail."""

    def __init__(self, detail: str, *, status_code: int = 400) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class Unauthorized(FilterAbort):
    """No usable credentials were presented (401)."""

    def __init__(self, detail: str = "Not authenticated") -> None:
        super().__init__(detail, status_code=401)


class Forbidden(FilterAbort):
    """Authenticated user is not allowed to run the action (403)."""

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(detail, status_code=403)


class Throttled(FilterAbort):
    """Rate limit exceeded (429)."""

    def __init__(
        self, detail: str = "Rate limit exceeded", *, retry_after: int | None = None
    ) -> None:
        super().__init__(detail, status_code=429)
        self.retry_after = retry_after


class FilterInternalError(FilterException):
    """Dispatcher-level error wrapping unexpected exceptions."""

    def __init__(self, detail: str, *, cause: Exception | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.cause = cause


class FilterConfigurationError(FilterException):
    """A filter chain was given something it cannot register."""
