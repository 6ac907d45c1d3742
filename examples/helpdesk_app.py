"""
Helpdesk API example.

Demonstrates:
- Global filters registered on the dispatcher (logging, error handling)
- Controller filters on a router (Bearer authentication, NoCache)
- Per-endpoint filters with use_filters (Authorize, RateLimit)
- Dropping inherited authorization with OverrideAuthorization
- Reading the FilterContext inside an endpoint
- A custom action filter that short-circuits from a cache

Run with: uvicorn examples.helpdesk_app:app --reload
"""

from dataclasses import dataclass, field
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException

from fastapi_action_filters import (
    ActionFilter,
    Authorize,
    BearerAuthentication,
    Dispatcher,
    FilterContext,
    HandleError,
    LogActionFilter,
    NoCache,
    OverrideAuthorization,
    PipelineSettings,
    RateLimit,
    Unauthorized,
    enrich_openapi,
    filtered_route,
    get_filter_context,
    use_filters,
)

# ========== Domain Models ==========


@dataclass
class Agent:
    """Helpdesk agent."""

    id: int
    name: str
    roles: list[str]
    permissions: list[str] = field(default_factory=list)


TOKENS = {
    "alice-token": Agent(id=1, name="alice", roles=["admin"], permissions=["tickets.delete"]),
    "bob-token": Agent(id=2, name="bob", roles=["agent"]),
}

TICKETS: dict[int, dict[str, Any]] = {
    1: {"id": 1, "subject": "Printer on fire", "status": "open"},
    2: {"id": 2, "subject": "VPN drops hourly", "status": "pending"},
}


async def decode_token(token: str) -> Agent:
    agent = TOKENS.get(token)
    if agent is None:
        raise Unauthorized("Unknown token")
    return agent


# ========== Custom Filters ==========


class CachedStats(ActionFilter):
    """Serve the statistics payload from memory once computed."""

    def __init__(self) -> None:
        self._cached: dict[str, int] | None = None

    async def on_action_executing(self, ctx: FilterContext) -> None:
        if self._cached is not None:
            ctx.result = self._cached

    async def on_action_executed(self, ctx: FilterContext) -> None:
        if ctx.exception is None:
            self._cached = ctx.result


# ========== Application ==========

dispatcher = Dispatcher(
    LogActionFilter(),
    HandleError(status_code=500, detail="Helpdesk is having trouble"),
    settings=PipelineSettings(),
)

app = FastAPI(title="Helpdesk")

tickets = APIRouter(
    prefix="/tickets",
    route_class=filtered_route(dispatcher, BearerAuthentication(decode_token), NoCache()),
)


@tickets.get("/")
@use_filters(Authorize())
async def list_tickets() -> list[dict[str, Any]]:
    return list(TICKETS.values())


@tickets.get("/stats/summary")
@use_filters(OverrideAuthorization(), CachedStats())
async def ticket_stats() -> dict[str, int]:
    return {
        "open": sum(1 for t in TICKETS.values() if t["status"] == "open"),
        "total": len(TICKETS),
    }


@tickets.get("/{ticket_id}")
@use_filters(Authorize(), RateLimit(rate=30, window_seconds=60))
async def get_ticket(
    ticket_id: int,
    ctx: FilterContext = Depends(get_filter_context),  # noqa: B008
) -> dict[str, Any]:
    ticket = TICKETS.get(ticket_id)
    if ticket is None:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return {**ticket, "viewer": ctx.user.name}


@tickets.delete("/{ticket_id}")
@use_filters(Authorize(roles=["admin"], permissions=["tickets.delete"]))
async def delete_ticket(ticket_id: int) -> None:
    TICKETS.pop(ticket_id, None)


app.include_router(tickets)
enrich_openapi(app, dispatcher)
