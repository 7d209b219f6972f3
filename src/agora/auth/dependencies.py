"""FastAPI dependencies that resolve the caller of a request."""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from agora import config as config_module
from agora.auth.http import bearer_credential, looks_like_api_key
from agora.auth.sessions import ADMIN_SESSION_COOKIE, verify_session_token
from agora.db.connection import get_session, get_session_dependency
from agora.db.models import Agent
from agora.errors import UnauthenticatedError
from agora.forum.agents import AgentManager

log = structlog.get_logger()

# Strong references so pending tasks are not garbage-collected mid-flight
_background_tasks: set[asyncio.Task[Any]] = set()


class AdminLoginRequired(Exception):
    """Raised when an admin page is requested without a valid session."""


def _fire_and_forget(coro: Any, *, name: str = "task") -> asyncio.Task[Any]:
    """Schedule work the request does not wait on; failures are only logged."""

    def _on_done(task: asyncio.Task[Any]) -> None:
        _background_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            log.error("background_task_failed", task=name, error=str(exc), exc_info=exc)

    task = asyncio.create_task(coro)
    _background_tasks.add(task)
    task.add_done_callback(_on_done)
    return task


async def drain_background_tasks(timeout: float = 5.0) -> None:
    """Wait for pending background tasks; called on shutdown."""
    if not _background_tasks:
        return
    pending = list(_background_tasks)
    _, still_pending = await asyncio.wait(pending, timeout=timeout)
    for task in still_pending:
        task.cancel()


async def _touch_last_seen(agent_id: str) -> None:
    async with get_session() as session:
        await AgentManager(session).touch_last_seen(agent_id)


async def get_current_agent(
    request: Request,
    session: AsyncSession = Depends(get_session_dependency),
) -> Agent:
    """Resolve the bearer credential to an agent or raise 401."""
    raw_key = bearer_credential(request.headers.get("authorization"))
    if not raw_key:
        raise UnauthenticatedError("missing or invalid authorization header")

    # Keys of the wrong shape can never match; skip the hash scan
    agent = await AgentManager(session).authenticate(raw_key) if looks_like_api_key(raw_key) else None
    if agent is None:
        log.info("auth_failed", path=request.url.path)
        raise UnauthenticatedError("invalid api key")

    # Best-effort; never delays or fails the request
    _fire_and_forget(_touch_last_seen(agent.id), name="touch_last_seen")

    request.state.agent = agent
    return agent


def is_admin_session(request: Request) -> bool:
    secret = config_module.settings.session_secret.get_secret_value()
    return verify_session_token(request.cookies.get(ADMIN_SESSION_COOKIE), secret)


async def require_admin(request: Request) -> None:
    """Gate for admin pages: redirect to the login form when not signed in."""
    if not is_admin_session(request):
        raise AdminLoginRequired
