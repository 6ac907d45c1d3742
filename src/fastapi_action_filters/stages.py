"""Filter base classes and the FilterStage enum."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, ClassVar

from fastapi_action_filters.context import FilterContext


class FilterStage(Enum):
    """Pipeline stages, defining strict execution order."""

    AUTHORIZATION = "authorization"
    ACTION = "action"
    RESULT = "result"
    EXCEPTION = "exception"

    @property
    def order(self) -> int:
        _ORDER = {
            "authorization": 1,
            "action": 2,
            "result": 3,
            "exception": 4,
        }
        return _ORDER[self.value]


class Filter:
    """Base for every filter.

    Concrete filters derive from one or more of the stage bases below. Lower
    ``order`` values run first; ``allow_multiple = False`` keeps only the most
    specific registration of the filter type.
    """

    order: int = -1
    allow_multiple: ClassVar[bool] = True

    def stages(self) -> tuple[FilterStage, ...]:
        found = [
            stage
            for stage, base in _STAGE_BASES.items()
            if isinstance(self, base)
        ]
        return tuple(sorted(found, key=lambda s: s.order))

    def openapi_spec(self) -> dict[str, Any] | None:
        return None


class AuthorizationFilter(Filter, ABC):
    """Runs before anything else; setting ``ctx.result`` short-circuits."""

    @abstractmethod
    async def on_authorization(self, ctx: FilterContext) -> None: ...


class ActionFilter(Filter):
    """Wraps the handler invocation. Both callbacks are no-op by default."""

    async def on_action_executing(self, ctx: FilterContext) -> None:
        pass

    async def on_action_executed(self, ctx: FilterContext) -> None:
        pass


class ResultFilter(Filter):
    """Wraps result rendering. Both callbacks are no-op by default."""

    async def on_result_executing(self, ctx: FilterContext) -> None:
        pass

    async def on_result_executed(self, ctx: FilterContext) -> None:
        pass


class ExceptionFilter(Filter, ABC):
    """Sees exceptions escaping the other stages."""

    @abstractmethod
    async def on_exception(self, ctx: FilterContext) -> None: ...


_STAGE_BASES: dict[FilterStage, type[Filter]] = {
    FilterStage.AUTHORIZATION: AuthorizationFilter,
    FilterStage.ACTION: ActionFilter,
    FilterStage.RESULT: ResultFilter,
    FilterStage.EXCEPTION: ExceptionFilter,
}
