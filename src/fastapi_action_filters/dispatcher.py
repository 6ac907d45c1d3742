"""Dispatcher — drives the filter pipeline around an action handler."""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, Literal

from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import Response

from fastapi_action_filters._types import ActionHandler
from fastapi_action_filters.chain import ChainItem, FilterChain, FilterPipeline, FilterScope
from fastapi_action_filters.config import PipelineSettings
from fastapi_action_filters.context import ActionDescriptor, FilterContext
from fastapi_action_filters.exceptions import (
    FilterAbort,
    FilterException,
    FilterInternalError,
    Throttled,
)
from fastapi_action_filters.hooks import PipelineHook
from fastapi_action_filters.results import render_result
from fastapi_action_filters.stages import Filter, FilterStage
from fastapi_action_filters.trace import DispatchTrace, TraceEntry

logger = logging.getLogger(__name__)

# request.state attribute holding the live FilterContext
CONTEXT_STATE_KEY = "filter_context"

# Exceptions the host framework already knows how to turn into responses
_PASSTHROUGH = (StarletteHTTPException, RequestValidationError, FilterException)

_SHORT_CIRCUIT_CHECKS: dict[str, Callable[[FilterContext], bool]] = {
    "on_authorization": lambda ctx: ctx.result is not None,
    "on_action_executing": lambda ctx: ctx.result is not None,
    "on_result_executing": lambda ctx: ctx.result_canceled,
}


class Dispatcher:
    """Owns the global filters and runs pipelines for individual actions."""

    def __init__(
        self,
        *filters: ChainItem,
        settings: PipelineSettings | None = None,
    ) -> None:
        self.settings = settings if settings is not None else PipelineSettings()
        self._global = FilterChain(
            *filters, scope=FilterScope.GLOBAL, debug=self.settings.debug
        )
        self._security_schemes: dict[str, Any] = {}

    @property
    def global_filters(self) -> FilterChain:
        return self._global

    def add_filter(self, *items: ChainItem) -> Dispatcher:
        self._global.add(*items)
        return self

    def add_hook(self, hook: PipelineHook) -> Dispatcher:
        self._global.add_hook(hook)
        return self

    @property
    def security_schemes(self) -> dict[str, Any]:
        """OpenAPI security schemes used by routes built on this dispatcher."""
        return dict(self._security_schemes)

    def register_security_schemes(self, schemes: dict[str, Any]) -> None:
        self._security_schemes.update(schemes)

    def build_pipeline(self, *chains: FilterChain) -> FilterPipeline:
        """Resolve the global filters together with narrower-scoped chains."""
        return FilterChain(self._global, *chains, scope=FilterScope.GLOBAL).resolve()

    def pipeline_for(self, action: ActionDescriptor) -> FilterPipeline:
        return self.build_pipeline(
            FilterChain(*action.filters, scope=FilterScope.ACTION)
        )

    async def dispatch(
        self,
        request: Request,
        action: ActionDescriptor,
        pipeline: FilterPipeline | None = None,
    ) -> Response:
        if pipeline is None:
            pipeline = self.pipeline_for(action)
        run = _DispatchRun(self.settings, pipeline, action, request)
        return await run.execute()

    def endpoint(
        self,
        handler: ActionHandler,
        *filters: ChainItem,
        name: str | None = None,
    ) -> Callable[[Request], Awaitable[Response]]:
        """Wrap ``handler`` as a Starlette endpoint running the pipeline.

        The pipeline is resolved once, here; global filters added afterwards
        do not reach endpoints that already exist.
        """
        action = ActionDescriptor(
            name=name or handler.__name__, handler=handler, filters=filters
        )
        pipeline = self.pipeline_for(action)

        async def endpoint(request: Request) -> Response:
            return await self.dispatch(request, action, pipeline)

        endpoint.__name__ = action.name
        endpoint.__qualname__ = action.name
        return endpoint


class _DispatchRun:
    """State of a single dispatch through a resolved pipeline."""

    def __init__(
        self,
        settings: PipelineSettings,
        pipeline: FilterPipeline,
        action: ActionDescriptor,
        request: Request,
    ) -> None:
        self.settings = settings
        self.pipeline = pipeline
        self.action = action
        self.ctx = FilterContext(request=request, action=action)
        setattr(request.state, CONTEXT_STATE_KEY, self.ctx)
        self.trace = DispatchTrace() if pipeline.debug else None
        self._outcome: Literal["OK", "SHORT_CIRCUIT", "HANDLED", "ERROR"] = "OK"
        self._error: BaseException | None = None

    async def execute(self) -> Response:
        ctx = self.ctx
        started = time.perf_counter()

        try:
            for hook in self.pipeline.hooks:
                await hook.on_dispatch_start(ctx)

            try:
                response = await self._run_stages()
            except Exception as exc:
                response = await self._handle_exception(exc)
        finally:
            self._finish_trace(started)
            for hook in self.pipeline.hooks:
                await hook.on_dispatch_end(ctx)

        return response

    async def _run_stages(self) -> Response:
        ctx = self.ctx
        for f in self.pipeline.authorization:
            if await self._invoke(f, FilterStage.AUTHORIZATION, "on_authorization"):
                logger.debug(
                    "Authorization filter %s short-circuited action %s",
                    type(f).__name__,
                    self.action.name,
                )
                self._outcome = "SHORT_CIRCUIT"
                return render_result(ctx.result)

        await self._run_action_stage()
        return await self._run_result_stage()

    async def _run_action_stage(self) -> None:
        ctx = self.ctx
        executed: list[Filter] = []
        try:
            for f in self.pipeline.action:
                if await self._invoke(f, FilterStage.ACTION, "on_action_executing"):
                    logger.debug(
                        "Action filter %s short-circuited action %s",
                        type(f).__name__,
                        self.action.name,
                    )
                    ctx.action_canceled = True
                    self._outcome = "SHORT_CIRCUIT"
                    break
                executed.append(f)
            else:
                ctx.result = await self.action.handler(ctx)
        except Exception as exc:
            ctx.exception = exc
            ctx.exception_handled = False

        await self._unwind(executed, FilterStage.ACTION, "on_action_executed")

    async def _run_result_stage(self) -> Response:
        ctx = self.ctx
        executed: list[Filter] = []
        try:
            for f in self.pipeline.result:
                if await self._invoke(f, FilterStage.RESULT, "on_result_executing"):
                    logger.debug(
                        "Result filter %s canceled rendering for action %s",
                        type(f).__name__,
                        self.action.name,
                    )
                    ctx.response = Response(status_code=204)
                    break
                executed.append(f)
            else:
                ctx.response = render_result(ctx.result)
        except Exception as exc:
            ctx.exception = exc
            ctx.exception_handled = False

        await self._unwind(executed, FilterStage.RESULT, "on_result_executed")

        if ctx.response is None:
            ctx.response = render_result(ctx.result)
        return ctx.response

    async def _unwind(
        self, executed: list[Filter], stage: FilterStage, method: str
    ) -> None:
        """Run the after-callbacks in reverse, then re-raise what is left."""
        ctx = self.ctx
        for f in reversed(executed):
            try:
                await self._invoke(f, stage, method)
            except Exception as exc:
                ctx.exception = exc
                ctx.exception_handled = False

        if ctx.exception is not None and not ctx.exception_handled:
            raise ctx.exception
        if ctx.exception is not None:
            self._outcome = "HANDLED"

    async def _handle_exception(self, exc: Exception) -> Response:
        ctx = self.ctx
        ctx.exception = exc
        ctx.exception_handled = False
        ctx.result = None
        ctx.response = None
        self._outcome = "ERROR"
        self._error = exc

        for f in reversed(self.pipeline.exception):
            try:
                await self._invoke(f, FilterStage.EXCEPTION, "on_exception")
            except Exception as filter_exc:
                logger.error(
                    "Exception filter %s failed while handling %s in action %s",
                    type(f).__name__,
                    type(exc).__name__,
                    self.action.name,
                    exc_info=filter_exc,
                )

        if ctx.exception_handled:
            logger.info(
                "%s raised in action %s was handled by an exception filter",
                type(exc).__name__,
                self.action.name,
            )
            self._outcome = "HANDLED"
            ctx.response = render_result(ctx.result)
            return ctx.response

        if isinstance(exc, FilterAbort):
            headers = None
            if isinstance(exc, Throttled) and exc.retry_after is not None:
                headers = {"Retry-After": str(exc.retry_after)}
            raise HTTPException(
                status_code=exc.status_code, detail=exc.detail, headers=headers
            ) from exc
        if isinstance(exc, _PASSTHROUGH) or not self.settings.wrap_unhandled_errors:
            raise exc

        logger.warning(
            "Unhandled %s in action %s", type(exc).__name__, self.action.name, exc_info=exc
        )
        wrapped = FilterInternalError(self.settings.internal_error_detail, cause=exc)
        wrapped.__cause__ = exc
        raise HTTPException(status_code=500, detail=wrapped.detail) from wrapped

    async def _invoke(self, f: Filter, stage: FilterStage, method: str) -> bool:
        """Run one filter callback; return True when it short-circuited."""
        started = time.perf_counter()
        try:
            await getattr(f, method)(self.ctx)
        except Exception as exc:
            self._record(f, stage, method, started, "FAILED", str(exc))
            await self._notify(f, stage, exc)
            raise

        check = _SHORT_CIRCUIT_CHECKS.get(method)
        short = check is not None and check(self.ctx)
        self._record(f, stage, method, started, "SHORT_CIRCUIT" if short else "OK")
        await self._notify(f, stage, None)
        return short

    async def _notify(
        self, f: Filter, stage: FilterStage, error: BaseException | None
    ) -> None:
        for hook in self.pipeline.hooks:
            await hook.on_filter(self.ctx, f, stage, error)

    def _record(
        self,
        f: Filter,
        stage: FilterStage,
        method: str,
        started: float,
        outcome: Literal["OK", "SHORT_CIRCUIT", "FAILED"],
        reason: str | None = None,
    ) -> None:
        if self.trace is None:
            return
        self.trace.entries.append(
            TraceEntry(
                filter_name=type(f).__name__,
                stage=stage,
                method=method,
                duration_ms=(time.perf_counter() - started) * 1000,
                outcome=outcome,
                reason=reason,
            )
        )

    def _finish_trace(self, started: float) -> None:
        if self.trace is None:
            return
        self.trace.total_duration_ms = (time.perf_counter() - started) * 1000
        self.trace.outcome = self._outcome
        self.trace.error = self._error
        self.ctx.state["trace"] = self.trace
        setattr(self.ctx.request.state, self.settings.trace_state_key, self.trace)
        logger.debug(
            "Dispatch of %s finished %s in %.2fms (%d filter calls)",
            self.action.name,
            self.trace.outcome,
            self.trace.total_duration_ms,
            len(self.trace.entries),
        )
