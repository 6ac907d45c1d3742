"""Authorization filters — Bearer token, API key, Authorize."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from fastapi_action_filters._types import DecodeCallback, ValidateCallback
from fastapi_action_filters.context import FilterContext
from fastapi_action_filters.exceptions import Forbidden, Unauthorized
from fastapi_action_filters.results import error_result
from fastapi_action_filters.stages import AuthorizationFilter


class BearerAuthentication(AuthorizationFilter):
    """Extracts a bearer token from the Authorization header and decodes it.

    The decoded value becomes ``ctx.user``. A missing or rejected token
    short-circuits with a 401 result unless ``optional`` is set, in which
    case the request continues anonymously.
    """

    order = -100
    allow_multiple = False

    def __init__(
        self,
        decode: DecodeCallback,
        *,
        scheme: str = "Bearer",
        header: str = "Authorization",
        optional: bool = False,
    ) -> None:
        self._decode = decode
        self._scheme = scheme
        self._header = header
        self._optional = optional

    async def on_authorization(self, ctx: FilterContext) -> None:
        auth_value = ctx.request.headers.get(self._header)
        if not auth_value:
            self._reject(ctx, Unauthorized())
            return

        parts = auth_value.split(" ", 1)
        if len(parts) != 2 or parts[0].lower() != self._scheme.lower():
            self._reject(ctx, Unauthorized("Invalid authentication scheme"))
            return

        try:
            ctx.user = await self._decode(parts[1])
        except Unauthorized as exc:
            self._reject(ctx, exc)
        except Exception:
            self._reject(ctx, Unauthorized("Invalid token"))

    def _reject(self, ctx: FilterContext, exc: Unauthorized) -> None:
        if self._optional:
            return
        ctx.result = error_result(
            exc.status_code, exc.detail, {"WWW-Authenticate": self._scheme}
        )

    def openapi_spec(self) -> dict[str, Any] | None:
        return {
            "security_schemes": {
                self._scheme: {
                    "type": "http",
                    "scheme": self._scheme.lower(),
                }
            },
            "security": [{self._scheme: []}],
            "responses": {"401": {"description": "Not authenticated"}},
        }


class APIKeyAuthentication(AuthorizationFilter):
    """Extracts an API key from a header and validates it via callback."""

    order = -100
    allow_multiple = False

    def __init__(
        self,
        validate: ValidateCallback,
        *,
        header: str = "X-API-Key",
        optional: bool = False,
    ) -> None:
        self._validate = validate
        self._header = header
        self._optional = optional

    async def on_authorization(self, ctx: FilterContext) -> None:
        key = ctx.request.headers.get(self._header)
        detail = "Not authenticated"
        if key:
            try:
                ctx.user = await self._validate(key)
                return
            except Unauthorized as exc:
                detail = exc.detail
            except Exception:
                detail = "Invalid API key"

        if not self._optional:
            ctx.result = error_result(401, detail)

    def openapi_spec(self) -> dict[str, Any] | None:
        return {
            "security_schemes": {
                "ApiKeyAuth": {
                    "type": "apiKey",
                    "in": "header",
                    "name": self._header,
                }
            },
            "security": [{"ApiKeyAuth": []}],
            "responses": {"401": {"description": "Not authenticated"}},
        }


def _get_collection(user: object, attr: str) -> Iterable[str] | None:
    """Extract a collection from user by dict key or attribute."""
    if isinstance(user, dict):
        val: Iterable[str] | None = user.get(attr)
        return val
    return getattr(user, attr, None)


def _get_identity(user: object) -> str | None:
    if isinstance(user, dict):
        value = user.get("sub", user.get("id"))
    else:
        value = getattr(user, "sub", getattr(user, "id", None))
    return None if value is None else str(value)


class Authorize(AuthorizationFilter):
    """Requires an authenticated user, optionally with roles or permissions.

    No user gives 401. A user missing any listed role or permission, or not
    among ``users`` when that is given, gives 403.
    """

    def __init__(
        self,
        *,
        roles: Iterable[str] = (),
        permissions: Iterable[str] = (),
        users: Iterable[str] = (),
        order: int = -1,
    ) -> None:
        self._roles = tuple(roles)
        self._permissions = tuple(permissions)
        self._users = tuple(users)
        self.order = order

    async def on_authorization(self, ctx: FilterContext) -> None:
        user = ctx.user
        if user is None:
            exc = Unauthorized()
            ctx.result = error_result(exc.status_code, exc.detail)
            return

        if self._users and _get_identity(user) not in self._users:
            self._forbid(ctx)
            return

        if self._roles:
            roles = _get_collection(user, "roles") or ()
            if not all(role in roles for role in self._roles):
                self._forbid(ctx)
                return

        if self._permissions:
            permissions = _get_collection(user, "permissions") or ()
            if not all(perm in permissions for perm in self._permissions):
                self._forbid(ctx)

    @staticmethod
    def _forbid(ctx: FilterContext) -> None:
        exc = Forbidden()
        ctx.result = error_result(exc.status_code, exc.detail)

    def openapi_spec(self) -> dict[str, Any] | None:
        spec: dict[str, Any] = {
            "responses": {"401": {"description": "Not authenticated"}},
        }
        if self._roles or self._permissions or self._users:
            spec["responses"]["403"] = {"description": "Forbidden"}
        if self._roles:
            spec["x-roles"] = list(self._roles)
        if self._permissions:
            spec["x-permissions"] = list(self._permissions)
        return spec
