"""HandleError — substitutes a redirect or error result for unhandled exceptions."""

from __future__ import annotations

import logging

from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from starlette.responses import RedirectResponse

from fastapi_action_filters.context import FilterContext
from fastapi_action_filters.exceptions import FilterAbort
from fastapi_action_filters.results import error_result
from fastapi_action_filters.stages import ExceptionFilter

logger = logging.getLogger(__name__)

# Errors that already map onto a deliberate HTTP response
_IGNORED = (HTTPException, RequestValidationError, FilterAbort)


class HandleError(ExceptionFilter):
    """Marks matching exceptions handled and replaces the result.

    With ``redirect_to`` the client is redirected (303) there, otherwise it
    gets a ``status_code`` JSON error. Exceptions another filter already
    handled are left alone.
    """

    def __init__(
        self,
        *exception_types: type[BaseException],
        redirect_to: str | None = None,
        status_code: int = 500,
        detail: str = "Internal server error",
        order: int = -1,
    ) -> None:
        self._exception_types = exception_types or (Exception,)
        self._redirect_to = redirect_to
        self._status_code = status_code
        self._detail = detail
        self.order = order

    async def on_exception(self, ctx: FilterContext) -> None:
        exc = ctx.exception
        if ctx.exception_handled or exc is None:
            return
        if isinstance(exc, _IGNORED) or not isinstance(exc, self._exception_types):
            return

        logger.error(
            "Action %s failed with %s", ctx.action_name, type(exc).__name__, exc_info=exc
        )
        if self._redirect_to is not None:
            ctx.result = RedirectResponse(self._redirect_to, status_code=303)
        else:
            ctx.result = error_result(self._status_code, self._detail)
        ctx.exception_handled = True
