"""PipelineHook base and convenience hook classes."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi_action_filters.context import FilterContext
from fastapi_action_filters.stages import Filter, FilterStage


class PipelineHook:
    """Base abstraction for lifecycle hooks. All methods are no-op by default."""

    async def on_dispatch_start(self, ctx: FilterContext) -> None:
        pass

    async def on_dispatch_end(self, ctx: FilterContext) -> None:
        pass

    async def on_filter(
        self,
        ctx: FilterContext,
        filter: Filter,
        stage: FilterStage,
        error: BaseException | None,
    ) -> None:
        pass


class BeforeDispatch(PipelineHook):
    """Convenience hook that only fires on dispatch start."""

    def __init__(self, callback: Callable[[FilterContext], Awaitable[None]]) -> None:
        self._callback = callback

    async def on_dispatch_start(self, ctx: FilterContext) -> None:
        await self._callback(ctx)


class AfterDispatch(PipelineHook):
    """Convenience hook that only fires on dispatch end."""

    def __init__(self, callback: Callable[[FilterContext], Awaitable[None]]) -> None:
        self._callback = callback

    async def on_dispatch_end(self, ctx: FilterContext) -> None:
        await self._callback(ctx)


class AfterFilter(PipelineHook):
    """Convenience hook that fires after each filter callback."""

    def __init__(
        self,
        callback: Callable[
            [FilterContext, Filter, FilterStage, BaseException | None],
            Awaitable[None],
        ],
    ) -> None:
        self._callback = callback

    async def on_filter(
        self,
        ctx: FilterContext,
        filter: Filter,
        stage: FilterStage,
        error: BaseException | None,
    ) -> None:
        await self._callback(ctx, filter, stage, error)
