"""Tests for LogActionFilter."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from fastapi_action_filters.config import PipelineSettings
from fastapi_action_filters.context import ActionDescriptor, FilterContext
from fastapi_action_filters.dispatcher import Dispatcher
from fastapi_action_filters.filters.diagnostics import LogActionFilter
from fastapi_action_filters.filters.errors import HandleError
from fastapi_action_filters.stages import FilterStage

_LOGGER = "fastapi_action_filters.filters.diagnostics"


async def _list_tickets(ctx: FilterContext) -> list[int]:
    return [1, 2]


async def _broken(ctx: FilterContext) -> None:
    raise RuntimeError("db down")


class TestLogActionFilter:
    def test_stages(self) -> None:
        assert LogActionFilter().stages() == (FilterStage.ACTION, FilterStage.RESULT)

    async def test_logs_all_four_callbacks(
        self, make_request: Any, caplog: pytest.LogCaptureFixture
    ) -> None:
        dispatcher = Dispatcher(LogActionFilter(), settings=PipelineSettings())
        action = ActionDescriptor(name="list_tickets", handler=_list_tickets)

        with caplog.at_level(logging.INFO, logger=_LOGGER):
            await dispatcher.dispatch(make_request(path="/tickets"), action)

        messages = [r.getMessage() for r in caplog.records if r.name == _LOGGER]
        assert len(messages) == 4
        assert messages[0] == "Executing action list_tickets (GET /tickets)"
        assert messages[1].startswith("Executed action list_tickets in ")
        assert messages[2] == "Rendering list result for action list_tickets"
        assert messages[3].startswith(
            "Rendered result for action list_tickets with status 200"
        )

    async def test_logs_exception_from_action(
        self, make_request: Any, caplog: pytest.LogCaptureFixture
    ) -> None:
        dispatcher = Dispatcher(
            LogActionFilter(), HandleError(), settings=PipelineSettings()
        )
        action = ActionDescriptor(name="broken", handler=_broken)

        with caplog.at_level(logging.INFO, logger=_LOGGER):
            await dispatcher.dispatch(make_request(), action)

        messages = [r.getMessage() for r in caplog.records if r.name == _LOGGER]
        assert messages[-1].startswith("Action broken raised RuntimeError after ")

    async def test_custom_logger_and_level(
        self, make_ctx: Any, caplog: pytest.LogCaptureFixture
    ) -> None:
        logger = logging.getLogger("tests.audit")
        f = LogActionFilter(logger, level=logging.WARNING)
        with caplog.at_level(logging.WARNING, logger="tests.audit"):
            await f.on_action_executing(make_ctx())
        assert caplog.records[0].levelno == logging.WARNING
        assert caplog.records[0].name == "tests.audit"

    async def test_executed_without_executing_reports_zero(
        self, make_ctx: Any, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger=_LOGGER):
            await LogActionFilter().on_action_executed(make_ctx())
        assert caplog.records[0].getMessage().endswith("in 0.0ms")
