"""Turning action results into Starlette responses."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from fastapi.encoders import jsonable_encoder
from starlette.responses import JSONResponse, Response


def render_result(result: Any) -> Response:
    """Render an action result.

    Responses pass through, ``None`` becomes an empty 204 and anything else
    is JSON encoded the way FastAPI encodes endpoint return values.
    """
    if isinstance(result, Response):
        return result
    if result is None:
        return Response(status_code=204)
    return JSONResponse(jsonable_encoder(result))


def error_result(
    status_code: int,
    detail: Any,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """Build the ``{"detail": ...}`` body FastAPI uses for HTTP errors."""
    return JSONResponse(
        {"detail": detail},
        status_code=status_code,
        headers=dict(headers) if headers else None,
    )
