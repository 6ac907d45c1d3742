"""DispatchTrace and TraceEntry — debug execution recording."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from fastapi_action_filters.stages import FilterStage


@dataclass(frozen=True)
class TraceEntry:
    """Single filter callback execution record."""

    filter_name: str
    stage: FilterStage
    method: str
    duration_ms: float
    outcome: Literal["OK", "SHORT_CIRCUIT", "FAILED"]
    reason: str | None = None


@dataclass
class DispatchTrace:
    """Structured record of a single dispatch."""

    entries: list[TraceEntry] = field(default_factory=list)
    total_duration_ms: float = 0.0
    outcome: Literal["OK", "SHORT_CIRCUIT", "HANDLED", "ERROR"] = "OK"
    error: BaseException | None = None
