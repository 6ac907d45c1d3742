"""Result filters that decorate rendered responses."""

from __future__ import annotations

from collections.abc import Mapping

from fastapi_action_filters.context import FilterContext
from fastapi_action_filters.stages import ResultFilter


class ResponseHeaders(ResultFilter):
    """Sets fixed headers on the rendered response."""

    def __init__(
        self, headers: Mapping[str, str], *, overwrite: bool = True, order: int = -1
    ) -> None:
        self._headers = dict(headers)
        self._overwrite = overwrite
        self.order = order

    async def on_result_executed(self, ctx: FilterContext) -> None:
        if ctx.response is None:
            return
        for name, value in self._headers.items():
            if self._overwrite or name not in ctx.response.headers:
                ctx.response.headers[name] = value


class NoCache(ResponseHeaders):
    """Marks the response as not cacheable."""

    allow_multiple = False

    def __init__(self, *, order: int = -1) -> None:
        super().__init__(
            {"Cache-Control": "no-store, no-cache, must-revalidate", "Pragma": "no-cache"},
            order=order,
        )
