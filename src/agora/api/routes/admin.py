"""Session-authenticated moderation panel.

Every page except the login form depends on `require_admin`, which turns a
missing or forged session cookie into a redirect to /admin/login.
"""

import hmac

import structlog
from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from agora import config as config_module
from agora.api.rate_limit import limiter, login_rate_limit
from agora.auth.dependencies import is_admin_session, require_admin
from agora.auth.sessions import ADMIN_SESSION_COOKIE, create_session_token
from agora.db.connection import get_session_dependency
from agora.errors import ConflictError, ValidationError
from agora.forum.agents import AgentManager
from agora.forum.announcements import AnnouncementManager
from agora.forum.replies import ReplyManager
from agora.forum.statuses import StatusManager
from agora.forum.threads import ThreadManager, clamp_pagination
from agora.web.render import RenderContext, get_render_context

log = structlog.get_logger()

router = APIRouter(prefix="/admin", tags=["admin"], include_in_schema=False)
panel = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
    include_in_schema=False,
)

ADMIN_THREADS_PER_PAGE = 25
RECENT_THREADS = 10


def _redirect(path: str) -> RedirectResponse:
    return RedirectResponse(path, status_code=status.HTTP_303_SEE_OTHER)


def _credentials_match(username: str, password: str) -> bool:
    settings = config_module.settings
    user_ok = hmac.compare_digest(username.encode(), settings.admin_user.encode())
    pass_ok = hmac.compare_digest(
        password.encode(), settings.admin_pass.get_secret_value().encode()
    )
    return user_ok and pass_ok


# ============================================================================
# Login / logout
# ============================================================================


@router.get("/login", response_class=HTMLResponse)
async def login_page(
    request: Request,
    render: RenderContext = Depends(get_render_context),
):
    if is_admin_session(request):
        return _redirect("/admin")
    return render.response("admin/login.html", error=None)


@router.post("/login", response_class=HTMLResponse)
@limiter.limit(login_rate_limit)
async def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    render: RenderContext = Depends(get_render_context),
):
    if not _credentials_match(username, password):
        log.warning("admin_login_failed", username=username)
        return render.response(
            "admin/login.html",
            status_code=status.HTTP_401_UNAUTHORIZED,
            error="Invalid username or password",
        )

    settings = config_module.settings
    response = _redirect("/admin")
    response.set_cookie(
        ADMIN_SESSION_COOKIE,
        create_session_token(settings.session_secret.get_secret_value()),
        httponly=True,
        samesite="lax",
        secure=bool(settings.cookie_secure),
        path="/",
    )
    log.info("admin_login", username=username)
    return response


@router.post("/logout")
async def logout():
    response = _redirect("/admin/login")
    response.delete_cookie(ADMIN_SESSION_COOKIE, path="/")
    return response


# ============================================================================
# Panel pages
# ============================================================================


@panel.get("", response_class=HTMLResponse)
async def admin_dashboard(
    session: AsyncSession = Depends(get_session_dependency),
    render: RenderContext = Depends(get_render_context),
):
    counts = {
        "agents": await AgentManager(session).count(),
        "threads": await ThreadManager(session).count(),
        "replies": await ReplyManager(session).count(),
        "statuses": await StatusManager(session).count(),
    }
    recent = await ThreadManager(session).recent(RECENT_THREADS)
    return render.response("admin/dashboard.html", counts=counts, recent=recent)


@panel.get("/threads", response_class=HTMLResponse)
async def admin_threads(
    page: str | None = None,
    session: AsyncSession = Depends(get_session_dependency),
    render: RenderContext = Depends(get_render_context),
):
    page_no, _ = clamp_pagination(page, None)
    # One extra row tells us whether an older page exists
    rows = await ThreadManager(session).recent(
        ADMIN_THREADS_PER_PAGE + 1, offset=(page_no - 1) * ADMIN_THREADS_PER_PAGE
    )
    return render.response(
        "admin/threads.html",
        threads=rows[:ADMIN_THREADS_PER_PAGE],
        page=page_no,
        has_next=len(rows) > ADMIN_THREADS_PER_PAGE,
    )


@panel.post("/threads/{thread_id}/pin")
async def toggle_pin(thread_id: str, session: AsyncSession = Depends(get_session_dependency)):
    await ThreadManager(session).toggle_pinned(thread_id)
    return _redirect("/admin/threads")


@panel.post("/threads/{thread_id}/archive")
async def toggle_archive(thread_id: str, session: AsyncSession = Depends(get_session_dependency)):
    await ThreadManager(session).toggle_archived(thread_id)
    return _redirect("/admin/threads")


@panel.post("/threads/{thread_id}/delete")
async def delete_thread(thread_id: str, session: AsyncSession = Depends(get_session_dependency)):
    await ThreadManager(session).force_delete(thread_id)
    return _redirect("/admin/threads")


async def _render_agents(
    session: AsyncSession,
    render: RenderContext,
    *,
    status_code: int = status.HTTP_200_OK,
    **context,
) -> HTMLResponse:
    agents = await AgentManager(session).list_all()
    context.setdefault("new_key", None)
    context.setdefault("new_agent_name", None)
    context.setdefault("error", None)
    return render.response(
        "admin/agents.html", status_code=status_code, agents=agents, **context
    )


@panel.get("/agents", response_class=HTMLResponse)
async def admin_agents(
    session: AsyncSession = Depends(get_session_dependency),
    render: RenderContext = Depends(get_render_context),
):
    return await _render_agents(session, render)


@panel.post("/agents", response_class=HTMLResponse)
async def create_agent(
    name: str = Form(""),
    owner: str = Form(""),
    session: AsyncSession = Depends(get_session_dependency),
    render: RenderContext = Depends(get_render_context),
):
    """Create an agent and show its key once, in this response only."""
    try:
        agent, raw_key = await AgentManager(session).create(name=name, owner=owner)
    except ValidationError as e:
        return await _render_agents(
            session, render, status_code=status.HTTP_400_BAD_REQUEST, error=e.message
        )
    except ConflictError as e:
        return await _render_agents(
            session, render, status_code=status.HTTP_409_CONFLICT, error=e.message
        )
    return await _render_agents(
        session, render, new_key=raw_key, new_agent_name=agent.name
    )


@panel.post("/agents/{agent_id}/revoke")
async def revoke_agent(agent_id: str, session: AsyncSession = Depends(get_session_dependency)):
    await AgentManager(session).revoke(agent_id)
    return _redirect("/admin/agents")


@panel.get("/announcements", response_class=HTMLResponse)
async def admin_announcements(
    session: AsyncSession = Depends(get_session_dependency),
    render: RenderContext = Depends(get_render_context),
):
    announcements = await AnnouncementManager(session).list_all()
    return render.response(
        "admin/announcements.html", announcements=announcements, error=None
    )


@panel.post("/announcements", response_class=HTMLResponse)
async def create_announcement(
    title: str = Form(""),
    body: str = Form(""),
    session: AsyncSession = Depends(get_session_dependency),
    render: RenderContext = Depends(get_render_context),
):
    manager = AnnouncementManager(session)
    try:
        await manager.create(title=title, body=body)
    except ValidationError as e:
        return render.response(
            "admin/announcements.html",
            status_code=status.HTTP_400_BAD_REQUEST,
            announcements=await manager.list_all(),
            error=e.message,
        )
    return _redirect("/admin/announcements")


@panel.post("/announcements/{announcement_id}/toggle")
async def toggle_announcement(
    announcement_id: str, session: AsyncSession = Depends(get_session_dependency)
):
    await AnnouncementManager(session).toggle(announcement_id)
    return _redirect("/admin/announcements")

