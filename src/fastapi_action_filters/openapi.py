"""OpenAPI schema enrichment — collects metadata from pipeline filters."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from fastapi_action_filters.chain import FilterPipeline

if TYPE_CHECKING:
    from fastapi_action_filters.dispatcher import Dispatcher


def collect_openapi_metadata(pipeline: FilterPipeline) -> dict[str, Any]:
    """Collect and merge OpenAPI metadata from all filters in a pipeline."""
    security_schemes: dict[str, Any] = {}
    security: list[dict[str, list[str]]] = []
    responses: dict[str, Any] = {}
    parameters: list[dict[str, Any]] = []
    extensions: dict[str, list[str]] = {}

    for f in pipeline.filters:
        spec = f.openapi_spec()
        if spec is None:
            continue

        if "security_schemes" in spec:
            security_schemes.update(spec["security_schemes"])
        if "security" in spec:
            for sec in spec["security"]:
                if sec not in security:
                    security.append(sec)
        if "responses" in spec:
            responses.update(spec["responses"])
        if "parameters" in spec:
            parameters.extend(spec["parameters"])

        # Vendor extensions (x-roles, x-permissions, ...)
        for key, value in spec.items():
            if key.startswith("x-") and isinstance(value, list):
                extensions.setdefault(key, []).extend(value)

    result: dict[str, Any] = {}
    if security_schemes:
        result["security_schemes"] = security_schemes
    if security:
        result["security"] = security
    if responses:
        result["responses"] = responses
    if parameters:
        result["parameters"] = parameters
    if extensions:
        result.update(extensions)

    return result


def apply_route_metadata(kwargs: dict[str, Any], metadata: dict[str, Any]) -> None:
    """Fold collected metadata into APIRoute constructor arguments.

    Responses declared explicitly on the route win over filter defaults.
    """
    if "responses" in metadata:
        responses = dict(kwargs.get("responses") or {})
        for code, resp in metadata["responses"].items():
            if isinstance(resp, str):
                resp = {"description": resp}
            if int(code) not in responses and str(code) not in responses:
                responses[int(code)] = resp
        kwargs["responses"] = responses

    extra = dict(kwargs.get("openapi_extra") or {})
    if "security" in metadata:
        extra.setdefault("security", metadata["security"])
    if "parameters" in metadata:
        extra.setdefault("parameters", metadata["parameters"])
    for key, value in metadata.items():
        if key.startswith("x-"):
            extra.setdefault(key, value)
    if extra:
        kwargs["openapi_extra"] = extra


def _route_schemes(routes: Iterable[Any], seen: set[int]) -> dict[str, Any]:
    """Collect security schemes from filtered routes, descending into sub-routers."""
    schemes: dict[str, Any] = {}
    for route in routes:
        if id(route) in seen:
            continue
        seen.add(id(route))
        meta: dict[str, Any] | None = getattr(route, "filter_metadata", None)
        if meta and "security_schemes" in meta:
            schemes.update(meta["security_schemes"])
        children = getattr(route, "routes", None)
        if children is None:
            children = getattr(getattr(route, "router", None), "routes", None)
        if children:
            schemes.update(_route_schemes(children, seen))
    return schemes


def enrich_openapi(app: Any, *dispatchers: Dispatcher) -> None:
    """Register the security schemes used by filtered routes.

    Schemes come from every ``dispatcher`` given, which records them as routes
    are built, and from filtered routes reachable through ``app.routes``.
    They are gathered when the schema is generated, so routes registered
    after this call are included.
    """
    from fastapi import FastAPI

    if not isinstance(app, FastAPI):
        return

    original_schema = app.openapi

    def custom_openapi() -> dict[str, Any]:
        schema: dict[str, Any] = original_schema()
        all_schemes: dict[str, Any] = {}
        for dispatcher in dispatchers:
            all_schemes.update(dispatcher.security_schemes)
        all_schemes.update(_route_schemes(app.routes, set()))
        if all_schemes:
            components = schema.setdefault("components", {})
            components.setdefault("securitySchemes", {}).update(all_schemes)
        return schema

    app.openapi = custom_openapi  # type: ignore[method-assign]
