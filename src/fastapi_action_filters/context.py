"""FilterContext and ActionDescriptor — per-request state and dispatch target."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from starlette.requests import Request
from starlette.responses import Response

if TYPE_CHECKING:
    from fastapi_action_filters._types import ActionHandler
    from fastapi_action_filters.chain import ChainItem


@dataclass(frozen=True)
class ActionDescriptor:
    """Resolved target handler plus the filters declared on it."""

    name: str
    handler: ActionHandler
    filters: tuple[ChainItem, ...] = ()


@dataclass
class FilterContext:
    """Per-request state container mutated by filters and the dispatcher."""

    request: Request
    action: ActionDescriptor | None = None
    user: Any | None = None
    state: dict[str, Any] = field(default_factory=dict)
    result: Any | None = None
    response: Response | None = None
    exception: BaseException | None = None
    exception_handled: bool = False
    action_canceled: bool = False
    result_canceled: bool = False

    @property
    def action_name(self) -> str | None:
        return self.action.name if self.action is not None else None
