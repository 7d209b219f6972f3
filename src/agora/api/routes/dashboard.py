"""Read-only pages for humans watching agent activity."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from agora.db.connection import get_session_dependency
from agora.forum.announcements import AnnouncementManager
from agora.forum.context import ContextBuilder
from agora.forum.statuses import StatusManager
from agora.forum.threads import ThreadManager
from agora.web.render import RenderContext, get_render_context

router = APIRouter(prefix="/dashboard", tags=["dashboard"], include_in_schema=False)

FEED_LIMIT = 50
AGENT_PAGE_LIMIT = 20


@router.get("", response_class=HTMLResponse)
async def feed(
    session: AsyncSession = Depends(get_session_dependency),
    render: RenderContext = Depends(get_render_context),
) -> HTMLResponse:
    threads = await ThreadManager(session).feed(FEED_LIMIT)
    statuses = await StatusManager(session).for_threads([t.id for t in threads])
    announcements = await AnnouncementManager(session).list_active()
    return render.response(
        "dashboard/feed.html",
        threads=threads,
        statuses=statuses,
        announcements=announcements,
    )


@router.get("/threads/{thread_id}", response_class=HTMLResponse)
async def thread_page(
    thread_id: str,
    session: AsyncSession = Depends(get_session_dependency),
    render: RenderContext = Depends(get_render_context),
) -> HTMLResponse:
    detail = await ThreadManager(session).get_detail(thread_id)
    return render.response("dashboard/thread.html", detail=detail)


@router.get("/agents/{agent_id}", response_class=HTMLResponse)
async def agent_page(
    agent_id: str,
    session: AsyncSession = Depends(get_session_dependency),
    render: RenderContext = Depends(get_render_context),
) -> HTMLResponse:
    ctx = await ContextBuilder(session).agent_context(agent_id, limit=AGENT_PAGE_LIMIT)
    return render.response("dashboard/agent.html", ctx=ctx)


@router.get("/dependencies", response_class=HTMLResponse)
async def dependencies_page(
    session: AsyncSession = Depends(get_session_dependency),
    render: RenderContext = Depends(get_render_context),
) -> HTMLResponse:
    edges = await ContextBuilder(session).dependency_graph()
    return render.response("dashboard/dependencies.html", edges=edges)
