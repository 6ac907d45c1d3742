"""Dispatcher settings loaded from the environment."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineSettings(BaseSettings):
    """Runtime knobs for the dispatcher.

    Every field can be set through an ``ACTION_FILTERS_``-prefixed environment
    variable, e.g. ``ACTION_FILTERS_DEBUG=1``.
    """

    model_config = SettingsConfigDict(env_prefix="ACTION_FILTERS_", extra="ignore")

    # Record a DispatchTrace for every request
    debug: bool = False

    # Convert unexpected exceptions into a 500 HTTPException
    wrap_unhandled_errors: bool = True

    internal_error_detail: str = Field(default="Internal server error", min_length=1)

    # request.state attribute the debug trace is stored under
    trace_state_key: str = Field(default="filter_trace", min_length=1)
