"""Shared pytest fixtures for fastapi-action-filters tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest
from starlette.requests import Request

from fastapi_action_filters.config import PipelineSettings
from fastapi_action_filters.context import FilterContext
from fastapi_action_filters.dispatcher import Dispatcher
from fastapi_action_filters.stages import (
    ActionFilter,
    AuthorizationFilter,
    ExceptionFilter,
    ResultFilter,
)


@pytest.fixture
def make_request() -> Any:
    """Factory for creating Starlette Request objects."""

    def _make(
        method: str = "GET",
        path: str = "/",
        headers: dict[str, str] | None = None,
        query_string: str = "",
        client: tuple[str, int] | None = None,
    ) -> Request:
        scope: dict[str, Any] = {
            "type": "http",
            "method": method,
            "path": path,
            "query_string": query_string.encode(),
            "headers": [
                (k.lower().encode(), v.encode()) for k, v in (headers or {}).items()
            ],
            "root_path": "",
            "client": client,
        }
        return Request(scope)

    return _make


@pytest.fixture
def make_ctx(make_request: Any) -> Any:
    """Factory for FilterContext objects around a fresh request."""

    def _make(**request_kwargs: Any) -> FilterContext:
        return FilterContext(request=make_request(**request_kwargs))

    return _make


@pytest.fixture
def settings() -> PipelineSettings:
    return PipelineSettings(debug=False, wrap_unhandled_errors=True)


@pytest.fixture
def dispatcher(settings: PipelineSettings) -> Dispatcher:
    return Dispatcher(settings=settings)


@pytest.fixture
def mock_decode() -> AsyncMock:
    """Mock async token decode callback that returns a sample user dict."""
    mock = AsyncMock()
    mock.return_value = {"sub": "user-123", "email": "test@example.com"}
    return mock


@pytest.fixture
def mock_validate() -> AsyncMock:
    """Mock async API key validation callback."""
    mock = AsyncMock()
    mock.return_value = {"id": "service-789", "name": "API Service"}
    return mock


@pytest.fixture
def sample_user() -> dict[str, Any]:
    return {
        "sub": "user-123",
        "email": "test@example.com",
        "roles": ["admin", "user"],
        "permissions": ["tickets.read", "tickets.write"],
    }


class RecordingFilter(AuthorizationFilter, ActionFilter, ResultFilter, ExceptionFilter):
    """Appends every callback it receives to a shared log."""

    def __init__(self, name: str, log: list[str], *, order: int = -1) -> None:
        self.name = name
        self.log = log
        self.order = order

    async def on_authorization(self, ctx: FilterContext) -> None:
        self.log.append(f"{self.name}.authorization")

    async def on_action_executing(self, ctx: FilterContext) -> None:
        self.log.append(f"{self.name}.action_executing")

    async def on_action_executed(self, ctx: FilterContext) -> None:
        self.log.append(f"{self.name}.action_executed")

    async def on_result_executing(self, ctx: FilterContext) -> None:
        self.log.append(f"{self.name}.result_executing")

    async def on_result_executed(self, ctx: FilterContext) -> None:
        self.log.append(f"{self.name}.result_executed")

    async def on_exception(self, ctx: FilterContext) -> None:
        self.log.append(f"{self.name}.exception")


@pytest.fixture
def recording_filter() -> type[RecordingFilter]:
    return RecordingFilter
