"""Integration tests for OpenAPI enrichment."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

from fastapi import APIRouter, FastAPI
from httpx import ASGITransport, AsyncClient

from fastapi_action_filters.config import PipelineSettings
from fastapi_action_filters.dispatcher import Dispatcher
from fastapi_action_filters.filters.authorization import (
    APIKeyAuthentication,
    Authorize,
    BearerAuthentication,
)
from fastapi_action_filters.filters.throttling import RateLimit
from fastapi_action_filters.openapi import enrich_openapi
from fastapi_action_filters.routing import filtered_route, use_filters


async def _get_schema(app: FastAPI) -> dict[str, Any]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/openapi.json")
        return resp.json()


def _make_app(*controller_filters: Any, action_filters: tuple[Any, ...] = ()) -> FastAPI:
    app = FastAPI()
    dispatcher = Dispatcher(settings=PipelineSettings())
    router = APIRouter(route_class=filtered_route(dispatcher, *controller_filters))

    @router.get("/test", responses={404: {"description": "Not here"}})
    @use_filters(*action_filters)
    async def endpoint() -> dict[str, Any]:
        return {"ok": True}

    app.include_router(router)
    enrich_openapi(app, dispatcher)
    return app


class TestOpenAPIEnrichment:
    async def test_bearer_adds_security_scheme(self) -> None:
        app = _make_app(BearerAuthentication(decode=AsyncMock()))
        schema = await _get_schema(app)
        operation = schema["paths"]["/test"]["get"]
        assert {"Bearer": []} in operation["security"]
        assert "Bearer" in schema["components"]["securitySchemes"]
        assert "401" in operation["responses"]

    async def test_api_key_scheme(self) -> None:
        app = _make_app(APIKeyAuthentication(validate=AsyncMock()))
        schema = await _get_schema(app)
        scheme = schema["components"]["securitySchemes"]["ApiKeyAuth"]
        assert scheme == {"type": "apiKey", "in": "header", "name": "X-API-Key"}

    async def test_authorize_adds_403_and_extensions(self) -> None:
        app = _make_app(action_filters=(Authorize(roles=["admin"], permissions=["t.read"]),))
        schema = await _get_schema(app)
        operation = schema["paths"]["/test"]["get"]
        assert "403" in operation["responses"]
        assert operation["x-roles"] == ["admin"]
        assert operation["x-permissions"] == ["t.read"]

    async def test_rate_limit_adds_429(self) -> None:
        app = _make_app(RateLimit(rate=10))
        schema = await _get_schema(app)
        assert "429" in schema["paths"]["/test"]["get"]["responses"]

    async def test_explicit_route_responses_kept(self) -> None:
        app = _make_app(BearerAuthentication(decode=AsyncMock()))
        schema = await _get_schema(app)
        responses = schema["paths"]["/test"]["get"]["responses"]
        assert responses["404"]["description"] == "Not here"
        assert "200" in responses

    async def test_no_filters_no_security(self) -> None:
        app = _make_app()
        schema = await _get_schema(app)
        assert "security" not in schema["paths"]["/test"]["get"]
        assert "securitySchemes" not in schema.get("components", {})

    def test_enrich_ignores_non_fastapi(self) -> None:
        enrich_openapi(object())

    async def test_nested_included_routers(self) -> None:
        app = FastAPI()
        dispatcher = Dispatcher(settings=PipelineSettings())
        inner = APIRouter(
            route_class=filtered_route(
                dispatcher, APIKeyAuthentication(validate=AsyncMock(), header="X-Token")
            )
        )

        @inner.get("/keys")
        async def keys() -> list[str]:
            return []

        outer = APIRouter(prefix="/v1")
        outer.include_router(inner)
        app.include_router(outer)
        enrich_openapi(app, dispatcher)

        schema = await _get_schema(app)
        assert schema["components"]["securitySchemes"]["ApiKeyAuth"]["name"] == "X-Token"
        assert {"ApiKeyAuth": []} in schema["paths"]["/v1/keys"]["get"]["security"]

    async def test_app_level_routes_found_without_dispatcher(self) -> None:
        app = FastAPI()
        app.router.route_class = filtered_route(
            Dispatcher(settings=PipelineSettings()),
            BearerAuthentication(decode=AsyncMock()),
        )

        @app.get("/direct")
        async def direct() -> dict[str, bool]:
            return {"ok": True}

        enrich_openapi(app)
        schema = await _get_schema(app)
        assert "Bearer" in schema["components"]["securitySchemes"]

    async def test_routes_added_after_enrich_are_included(self) -> None:
        app = FastAPI()
        dispatcher = Dispatcher(settings=PipelineSettings())
        enrich_openapi(app, dispatcher)

        router = APIRouter(
            route_class=filtered_route(dispatcher, BearerAuthentication(decode=AsyncMock()))
        )

        @router.get("/late")
        async def late() -> dict[str, bool]:
            return {"ok": True}

        app.include_router(router)
        schema = await _get_schema(app)
        assert "Bearer" in schema["components"]["securitySchemes"]


class TestDispatcherSecuritySchemes:
    def test_routes_register_schemes_on_build(self) -> None:
        dispatcher = Dispatcher(settings=PipelineSettings())
        router = APIRouter(
            route_class=filtered_route(dispatcher, BearerAuthentication(decode=AsyncMock()))
        )
        assert dispatcher.security_schemes == {}

        @router.get("/x")
        async def x() -> None:
            return None

        assert dispatcher.security_schemes["Bearer"]["scheme"] == "bearer"

    def test_security_schemes_is_a_copy(self) -> None:
        dispatcher = Dispatcher(settings=PipelineSettings())
        dispatcher.register_security_schemes({"Bearer": {"type": "http"}})
        dispatcher.security_schemes.clear()
        assert "Bearer" in dispatcher.security_schemes
