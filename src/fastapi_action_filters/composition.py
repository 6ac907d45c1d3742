"""Filter overrides — drop filters registered at broader scopes."""

from __future__ import annotations

from fastapi_action_filters.stages import FilterStage


class FilterOverride:
    """Composition directive that removes broader-scoped filters of a stage.

    Registered at scope S, it removes every filter of ``stage`` registered at
    a scope lower than S. Filters at S or narrower are kept, so an override on
    an action can be combined with the action's own replacement filters.
    """

    def __init__(self, stage: FilterStage) -> None:
        self.stage = stage

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.stage.name})"


class OverrideAuthorization(FilterOverride):
    def __init__(self) -> None:
        super().__init__(FilterStage.AUTHORIZATION)


class OverrideActionFilters(FilterOverride):
    def __init__(self) -> None:
        super().__init__(FilterStage.ACTION)


class OverrideResultFilters(FilterOverride):
    def __init__(self) -> None:
        super().__init__(FilterStage.RESULT)


class OverrideExceptionFilters(FilterOverride):
    def __init__(self) -> None:
        super().__init__(FilterStage.EXCEPTION)
