"""LogActionFilter — logs every action and result callback with timings."""

from __future__ import annotations

import logging
import time

from fastapi_action_filters.context import FilterContext
from fastapi_action_filters.stages import ActionFilter, ResultFilter

_default_logger = logging.getLogger(__name__)

_ACTION_STARTED = "log_action_filter.action_started"
_RESULT_STARTED = "log_action_filter.result_started"


class LogActionFilter(ActionFilter, ResultFilter):
    """Logs action execution and result rendering for the wrapped action."""

    allow_multiple = False

    def __init__(
        self,
        logger: logging.Logger | None = None,
        *,
        level: int = logging.INFO,
        order: int = -1,
    ) -> None:
        self._logger = logger or _default_logger
        self._level = level
        self.order = order

    async def on_action_executing(self, ctx: FilterContext) -> None:
        ctx.state[_ACTION_STARTED] = time.perf_counter()
        self._logger.log(
            self._level,
            "Executing action %s (%s %s)",
            ctx.action_name,
            ctx.request.method,
            ctx.request.url.path,
        )

    async def on_action_executed(self, ctx: FilterContext) -> None:
        elapsed = _elapsed_ms(ctx, _ACTION_STARTED)
        if ctx.exception is not None and not ctx.exception_handled:
            self._logger.log(
                self._level,
                "Action %s raised %s after %.1fms",
                ctx.action_name,
                type(ctx.exception).__name__,
                elapsed,
            )
            return
        self._logger.log(
            self._level, "Executed action %s in %.1fms", ctx.action_name, elapsed
        )

    async def on_result_executing(self, ctx: FilterContext) -> None:
        ctx.state[_RESULT_STARTED] = time.perf_counter()
        self._logger.log(
            self._level,
            "Rendering %s result for action %s",
            type(ctx.result).__name__,
            ctx.action_name,
        )

    async def on_result_executed(self, ctx: FilterContext) -> None:
        status = ctx.response.status_code if ctx.response is not None else None
        self._logger.log(
            self._level,
            "Rendered result for action %s with status %s in %.1fms",
            ctx.action_name,
            status,
            _elapsed_ms(ctx, _RESULT_STARTED),
        )


def _elapsed_ms(ctx: FilterContext, key: str) -> float:
    started = ctx.state.get(key)
    if started is None:
        return 0.0
    return (time.perf_counter() - started) * 1000
