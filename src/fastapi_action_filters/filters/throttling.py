"""Throttling filters — RateLimit, ThrottleBackend, InMemoryThrottleBackend."""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from fastapi_action_filters.context import FilterContext
from fastapi_action_filters.exceptions import Throttled
from fastapi_action_filters.results import error_result
from fastapi_action_filters.stages import AuthorizationFilter


@runtime_checkable
class ThrottleBackend(Protocol):
    """Pluggable storage interface for rate limit counters."""

    async def increment(self, key: str, window_seconds: int) -> tuple[int, int]: ...
    async def reset(self, key: str) -> None: ...


@dataclass
class _Window:
    expires: float
    hits: int = 0


class InMemoryThrottleBackend:
    """Fixed-window counters kept in process memory.

    Not shared between workers; use a networked backend for that. Expired
    windows are swept at most once every ``sweep_interval`` seconds.
    """

    sweep_interval: float = 60.0

    def __init__(self) -> None:
        self._windows: dict[str, _Window] = {}
        self._next_sweep = time.monotonic() + self.sweep_interval

    async def increment(self, key: str, window_seconds: int) -> tuple[int, int]:
        now = time.monotonic()
        if now >= self._next_sweep:
            self._sweep(now)
        window = self._windows.get(key)
        if window is None or now >= window.expires:
            window = self._windows[key] = _Window(expires=now + window_seconds)
        window.hits += 1
        return window.hits, max(math.ceil(window.expires - now), 1)

    async def reset(self, key: str) -> None:
        self._windows.pop(key, None)

    def _sweep(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if now >= window.expires]
        for key in expired:
            del self._windows[key]
        self._next_sweep = now + self.sweep_interval


def _default_key_func(ctx: FilterContext) -> str:
    """Derive rate limit key from action, then user identity or client IP."""
    prefix = ctx.action_name or ctx.request.url.path
    if ctx.user is not None:
        return f"{prefix}:user:{ctx.user}"
    forwarded = ctx.request.headers.get("x-forwarded-for")
    if forwarded:
        return f"{prefix}:ip:{forwarded.split(',')[0].strip()}"
    client = ctx.request.client
    if client is not None:
        return f"{prefix}:ip:{client.host}"
    return f"{prefix}:ip:unknown"


class RateLimit(AuthorizationFilter):
    """Short-circuits with 429 once ``rate`` requests hit the window."""

    # After authentication so the key can use ctx.user
    order = 100

    def __init__(
        self,
        rate: int,
        window_seconds: int = 60,
        *,
        key_func: Callable[[FilterContext], str] | None = None,
        backend: ThrottleBackend | None = None,
    ) -> None:
        self._rate = rate
        self._window_seconds = window_seconds
        self._key_func = key_func or _default_key_func
        self._backend: ThrottleBackend = backend or InMemoryThrottleBackend()

    async def on_authorization(self, ctx: FilterContext) -> None:
        key = self._key_func(ctx)
        count, ttl = await self._backend.increment(key, self._window_seconds)
        if count > self._rate:
            exc = Throttled(retry_after=ttl)
            ctx.result = error_result(
                exc.status_code, exc.detail, {"Retry-After": str(exc.retry_after)}
            )

    def openapi_spec(self) -> dict[str, Any] | None:
        return {
            "responses": {
                "429": {
                    "description": "Rate limit exceeded",
                    "headers": {
                        "Retry-After": {
                            "description": "Seconds until rate limit resets",
                            "schema": {"type": "integer"},
                        }
                    },
                }
            },
        }
