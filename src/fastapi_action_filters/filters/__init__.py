"""Built-in filters."""

from fastapi_action_filters.filters.authorization import (
    APIKeyAuthentication,
    Authorize,
    BearerAuthentication,
)
from fastapi_action_filters.filters.diagnostics import LogActionFilter
from fastapi_action_filters.filters.errors import HandleError
from fastapi_action_filters.filters.headers import NoCache, ResponseHeaders
from fastapi_action_filters.filters.throttling import (
    InMemoryThrottleBackend,
    RateLimit,
    ThrottleBackend,
)

__all__ = [
    "APIKeyAuthentication",
    "Authorize",
    "BearerAuthentication",
    "HandleError",
    "InMemoryThrottleBackend",
    "LogActionFilter",
    "NoCache",
    "RateLimit",
    "ResponseHeaders",
    "ThrottleBackend",
]
