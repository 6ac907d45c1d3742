"""Shared type aliases and protocols."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fastapi_action_filters.context import FilterContext

# Callback types used by authorization filters
DecodeCallback = Callable[[str], Awaitable[Any]]
ValidateCallback = Callable[[str], Awaitable[Any]]

# Target handler invoked by the dispatcher between the action filters
ActionHandler = Callable[["FilterContext"], Awaitable[Any]]
