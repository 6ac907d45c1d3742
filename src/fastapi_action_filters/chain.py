"""FilterChain — scoped, nestable filter container and its resolved pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Union

from fastapi_action_filters.composition import FilterOverride
from fastapi_action_filters.exceptions import FilterConfigurationError
from fastapi_action_filters.stages import Filter, FilterStage

if TYPE_CHECKING:
    from fastapi_action_filters.hooks import PipelineHook


class FilterScope(IntEnum):
    """Where a filter was registered. Narrower scopes have higher values."""

    FIRST = 0
    GLOBAL = 10
    CONTROLLER = 20
    ACTION = 30
    LAST = 100


@dataclass(frozen=True)
class ScopedFilter:
    """A filter together with the scope it was registered at."""

    filter: Filter
    scope: FilterScope


@dataclass(frozen=True)
class FilterPipeline:
    """Immutable, pre-computed execution plan."""

    authorization: tuple[Filter, ...] = ()
    action: tuple[Filter, ...] = ()
    result: tuple[Filter, ...] = ()
    exception: tuple[Filter, ...] = ()
    hooks: tuple[PipelineHook, ...] = ()
    debug: bool = False

    def for_stage(self, stage: FilterStage) -> tuple[Filter, ...]:
        return {
            FilterStage.AUTHORIZATION: self.authorization,
            FilterStage.ACTION: self.action,
            FilterStage.RESULT: self.result,
            FilterStage.EXCEPTION: self.exception,
        }[stage]

    @property
    def filters(self) -> tuple[Filter, ...]:
        """Every distinct filter in the pipeline, in stage order."""
        seen: list[Filter] = []
        for stage in FilterStage:
            for f in self.for_stage(stage):
                if not any(f is s for s in seen):
                    seen.append(f)
        return tuple(seen)


ChainItem = Union[Filter, "FilterChain", FilterOverride]


class FilterChain:
    """Ordered container of filters registered at one scope.

    Chains nest: a nested chain keeps its own scope, which is how global,
    controller and action filters end up in one pipeline.
    """

    def __init__(
        self,
        *items: ChainItem,
        scope: FilterScope = FilterScope.ACTION,
        debug: bool = False,
    ) -> None:
        self._scope = scope
        self._items: list[ChainItem] = []
        self._hooks: list[PipelineHook] = []
        self._debug = debug
        self._resolved: FilterPipeline | None = None
        self.add(*items)

    @property
    def scope(self) -> FilterScope:
        return self._scope

    @property
    def debug(self) -> bool:
        return self._debug

    def add(self, *items: ChainItem) -> FilterChain:
        for item in items:
            if not isinstance(item, (Filter, FilterChain, FilterOverride)):
                raise FilterConfigurationError(
                    f"Cannot register {item!r} in a filter chain"
                )
        self._items.extend(items)
        self._resolved = None
        return self

    def add_hook(self, hook: PipelineHook) -> FilterChain:
        self._hooks.append(hook)
        self._resolved = None
        return self

    def resolve(self) -> FilterPipeline:
        if self._resolved is not None:
            return self._resolved

        registrations: list[ScopedFilter] = []
        overrides: list[tuple[FilterStage, FilterScope]] = []
        hooks: list[PipelineHook] = []
        debug = self._collect(self, registrations, overrides, hooks)

        per_stage: dict[FilterStage, tuple[Filter, ...]] = {}
        for stage in FilterStage:
            floor = max(
                (scope for ov_stage, scope in overrides if ov_stage is stage),
                default=None,
            )
            candidates = [
                sf
                for sf in registrations
                if stage in sf.filter.stages() and (floor is None or sf.scope >= floor)
            ]
            candidates = _drop_duplicates(candidates)
            ordered = sorted(candidates, key=lambda sf: (sf.filter.order, sf.scope))
            per_stage[stage] = tuple(sf.filter for sf in ordered)

        self._resolved = FilterPipeline(
            authorization=per_stage[FilterStage.AUTHORIZATION],
            action=per_stage[FilterStage.ACTION],
            result=per_stage[FilterStage.RESULT],
            exception=per_stage[FilterStage.EXCEPTION],
            hooks=tuple(hooks),
            debug=debug,
        )
        return self._resolved

    @staticmethod
    def _collect(
        chain: FilterChain,
        registrations: list[ScopedFilter],
        overrides: list[tuple[FilterStage, FilterScope]],
        hooks: list[PipelineHook],
    ) -> bool:
        debug = chain._debug
        hooks.extend(chain._hooks)
        for item in chain._items:
            if isinstance(item, FilterChain):
                debug = FilterChain._collect(item, registrations, overrides, hooks) or debug
            elif isinstance(item, FilterOverride):
                overrides.append((item.stage, chain._scope))
            else:
                registrations.append(ScopedFilter(item, chain._scope))
        return debug


def _drop_duplicates(candidates: list[ScopedFilter]) -> list[ScopedFilter]:
    """Keep only the most specific registration of single-use filter types."""
    winners: dict[type[Filter], int] = {}
    for index, sf in enumerate(candidates):
        kind = type(sf.filter)
        if kind.allow_multiple:
            continue
        current = winners.get(kind)
        if current is None or sf.scope >= candidates[current].scope:
            winners[kind] = index

    return [
        sf
        for index, sf in enumerate(candidates)
        if type(sf.filter).allow_multiple or winners[type(sf.filter)] == index
    ]
