"""FastAPI integration — filtered route classes and per-endpoint filters."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from fastapi.routing import APIRoute
from starlette.requests import Request
from starlette.responses import Response

from fastapi_action_filters.chain import ChainItem, FilterChain, FilterScope
from fastapi_action_filters.context import ActionDescriptor, FilterContext
from fastapi_action_filters.dispatcher import CONTEXT_STATE_KEY, Dispatcher
from fastapi_action_filters.exceptions import FilterConfigurationError
from fastapi_action_filters.openapi import apply_route_metadata, collect_openapi_metadata

ACTION_FILTERS_ATTR = "__action_filters__"

EndpointT = TypeVar("EndpointT", bound=Callable[..., Any])


def get_filter_context(request: Request) -> FilterContext:
    """FastAPI dependency returning the FilterContext of the current request."""
    ctx: FilterContext | None = getattr(request.state, CONTEXT_STATE_KEY, None)
    if ctx is None:
        raise FilterConfigurationError(
            f"Route {request.url.path} is not dispatched through a filter pipeline"
        )
    return ctx


def use_filters(*items: ChainItem) -> Callable[[EndpointT], EndpointT]:
    """Attach action-scope filters to an endpoint.

    Must sit below the route decorator so it runs before the route is built.
    Stacked decorators keep top-to-bottom order.
    """

    def decorator(endpoint: EndpointT) -> EndpointT:
        FilterChain(*items)  # validates the items
        existing = getattr(endpoint, ACTION_FILTERS_ATTR, ())
        setattr(endpoint, ACTION_FILTERS_ATTR, (*items, *existing))
        return endpoint

    return decorator


def filtered_route(dispatcher: Dispatcher, *items: ChainItem) -> type[APIRoute]:
    """Return an APIRoute class running ``dispatcher``'s pipeline.

    ``items`` are registered at controller scope for every route built with
    the class, e.g. ``APIRouter(route_class=filtered_route(d, NoCache()))``.
    """
    controller = FilterChain(*items, scope=FilterScope.CONTROLLER)

    class FilteredRoute(APIRoute):
        def __init__(self, path: str, endpoint: Callable[..., Any], **kwargs: Any) -> None:
            action_items: tuple[ChainItem, ...] = getattr(
                endpoint, ACTION_FILTERS_ATTR, ()
            )
            self.action_filters = action_items
            self.filter_pipeline = dispatcher.build_pipeline(
                controller, FilterChain(*action_items, scope=FilterScope.ACTION)
            )
            self.filter_metadata = collect_openapi_metadata(self.filter_pipeline)
            dispatcher.register_security_schemes(
                self.filter_metadata.get("security_schemes", {})
            )
            apply_route_metadata(kwargs, self.filter_metadata)
            super().__init__(path, endpoint, **kwargs)

        def get_route_handler(self) -> Callable[[Request], Awaitable[Response]]:
            fastapi_handler = super().get_route_handler()

            async def invoke(ctx: FilterContext) -> Response:
                return await fastapi_handler(ctx.request)

            action = ActionDescriptor(
                name=self.name, handler=invoke, filters=self.action_filters
            )
            pipeline = self.filter_pipeline

            async def route_handler(request: Request) -> Response:
                return await dispatcher.dispatch(request, action, pipeline)

            return route_handler

    return FilteredRoute
