"""FastAPI Action Filters - authorization, action, result and exception filters."""

from fastapi_action_filters.chain import (
    FilterChain,
    FilterPipeline,
    FilterScope,
    ScopedFilter,
)
from fastapi_action_filters.composition import (
    FilterOverride,
    OverrideActionFilters,
    OverrideAuthorization,
    OverrideExceptionFilters,
    OverrideResultFilters,
)
from fastapi_action_filters.config import PipelineSettings
from fastapi_action_filters.context import ActionDescriptor, FilterContext
from fastapi_action_filters.dispatcher import Dispatcher
from fastapi_action_filters.exceptions import (
    FilterAbort,
    FilterConfigurationError,
    FilterException,
    FilterInternalError,
    Forbidden,
    Throttled,
    Unauthorized,
)
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
from fastapi_action_filters.hooks import (
    AfterDispatch,
    AfterFilter,
    BeforeDispatch,
    PipelineHook,
)
from fastapi_action_filters.openapi import enrich_openapi
from fastapi_action_filters.results import error_result, render_result
from fastapi_action_filters.routing import filtered_route, get_filter_context, use_filters
from fastapi_action_filters.stages import (
    ActionFilter,
    AuthorizationFilter,
    ExceptionFilter,
    Filter,
    FilterStage,
    ResultFilter,
)
from fastapi_action_filters.trace import DispatchTrace, TraceEntry

__all__ = [
    "APIKeyAuthentication",
    "ActionDescriptor",
    "ActionFilter",
    "AfterDispatch",
    "AfterFilter",
    "AuthorizationFilter",
    "Authorize",
    "BearerAuthentication",
    "BeforeDispatch",
    "DispatchTrace",
    "Dispatcher",
    "ExceptionFilter",
    "Filter",
    "FilterAbort",
    "FilterChain",
    "FilterConfigurationError",
    "FilterContext",
    "FilterException",
    "FilterInternalError",
    "FilterOverride",
    "FilterPipeline",
    "FilterScope",
    "FilterStage",
    "Forbidden",
    "HandleError",
    "InMemoryThrottleBackend",
    "LogActionFilter",
    "NoCache",
    "OverrideActionFilters",
    "OverrideAuthorization",
    "OverrideExceptionFilters",
    "OverrideResultFilters",
    "PipelineHook",
    "PipelineSettings",
    "RateLimit",
    "ResponseHeaders",
    "ResultFilter",
    "ScopedFilter",
    "ThrottleBackend",
    "Throttled",
    "TraceEntry",
    "Unauthorized",
    "enrich_openapi",
    "error_result",
    "filtered_route",
    "get_filter_context",
    "render_result",
    "use_filters",
]
