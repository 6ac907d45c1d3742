"""Tests for HandleError."""

from __future__ import annotations

import json
from typing import Any

from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from starlette.responses import RedirectResponse

from fastapi_action_filters.exceptions import Forbidden
from fastapi_action_filters.filters.errors import HandleError


def _failed_ctx(make_ctx: Any, exc: BaseException) -> Any:
    ctx = make_ctx()
    ctx.exception = exc
    return ctx


class TestHandleError:
    async def test_handles_with_error_result(self, make_ctx: Any) -> None:
        ctx = _failed_ctx(make_ctx, RuntimeError("boom"))
        await HandleError().on_exception(ctx)
        assert ctx.exception_handled is True
        assert ctx.result.status_code == 500
        assert json.loads(ctx.result.body) == {"detail": "Internal server error"}

    async def test_redirect(self, make_ctx: Any) -> None:
        ctx = _failed_ctx(make_ctx, RuntimeError("boom"))
        await HandleError(redirect_to="/error").on_exception(ctx)
        assert isinstance(ctx.result, RedirectResponse)
        assert ctx.result.status_code == 303
        assert ctx.result.headers["location"] == "/error"

    async def test_custom_status_and_detail(self, make_ctx: Any) -> None:
        ctx = _failed_ctx(make_ctx, TimeoutError())
        await HandleError(
            TimeoutError, status_code=503, detail="Try again later"
        ).on_exception(ctx)
        assert ctx.result.status_code == 503
        assert json.loads(ctx.result.body) == {"detail": "Try again later"}

    async def test_ignores_non_matching_types(self, make_ctx: Any) -> None:
        ctx = _failed_ctx(make_ctx, KeyError("x"))
        await HandleError(TimeoutError).on_exception(ctx)
        assert ctx.exception_handled is False
        assert ctx.result is None

    async def test_ignores_http_exceptions(self, make_ctx: Any) -> None:
        ctx = _failed_ctx(make_ctx, HTTPException(status_code=404))
        await HandleError().on_exception(ctx)
        assert ctx.exception_handled is False

    async def test_ignores_validation_errors(self, make_ctx: Any) -> None:
        ctx = _failed_ctx(make_ctx, RequestValidationError([]))
        await HandleError().on_exception(ctx)
        assert ctx.exception_handled is False

    async def test_ignores_filter_aborts(self, make_ctx: Any) -> None:
        ctx = _failed_ctx(make_ctx, Forbidden())
        await HandleError().on_exception(ctx)
        assert ctx.exception_handled is False

    async def test_leaves_already_handled_alone(self, make_ctx: Any) -> None:
        ctx = _failed_ctx(make_ctx, RuntimeError("boom"))
        ctx.exception_handled = True
        ctx.result = {"kept": True}
        await HandleError(redirect_to="/error").on_exception(ctx)
        assert ctx.result == {"kept": True}

    async def test_no_exception_is_noop(self, make_ctx: Any) -> None:
        ctx = make_ctx()
        await HandleError().on_exception(ctx)
        assert ctx.exception_handled is False
