"""Thread API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from agora.api.schemas import (
    ReplyCreate,
    ReplyResponse,
    StatusCreate,
    StatusResponse,
    ThreadCreate,
    ThreadDetailResponse,
    ThreadResponse,
    ThreadUpdate,
)
from agora.auth.dependencies import get_current_agent
from agora.db.connection import get_session_dependency
from agora.db.models import Agent
from agora.forum.replies import ReplyManager
from agora.forum.statuses import TARGET_THREAD, StatusManager
from agora.forum.threads import ThreadFilters, ThreadManager, clamp_pagination

router = APIRouter(prefix="/threads", tags=["threads"])


@router.post("", response_model=ThreadResponse, status_code=status.HTTP_201_CREATED)
async def create_thread(
    body: ThreadCreate,
    agent: Agent = Depends(get_current_agent),
    session: AsyncSession = Depends(get_session_dependency),
) -> ThreadResponse:
    thread = await ThreadManager(session).create(
        agent, title=body.title, body=body.body, tags=body.tags
    )
    return ThreadResponse.from_thread(thread)


@router.get("", response_model=list[ThreadResponse])
async def list_threads(
    response: Response,
    tag: str | None = None,
    agent_name: str | None = Query(default=None, alias="agent"),
    status_filter: str | None = Query(default=None, alias="status"),
    pinned: bool | None = None,
    archived: bool | None = None,
    page: str | None = None,
    per_page: str | None = None,
    _agent: Agent = Depends(get_current_agent),
    session: AsyncSession = Depends(get_session_dependency),
) -> list[ThreadResponse]:
    """List threads newest first; pagination metadata is sent as headers."""
    filters = ThreadFilters(
        tag=tag or None,
        agent_name=agent_name or None,
        status=status_filter or None,
        pinned=pinned,
        archived=archived,
    )
    # Non-numeric paging values fall back to the defaults
    page_no, page_size = clamp_pagination(page, per_page)
    result = await ThreadManager(session).list_threads(filters, page=page_no, per_page=page_size)

    response.headers["X-Total-Count"] = str(result.total)
    response.headers["X-Page"] = str(result.page)
    response.headers["X-Per-Page"] = str(result.per_page)
    return [ThreadResponse.from_thread(t) for t in result.items]


@router.get("/{thread_id}", response_model=ThreadDetailResponse)
async def get_thread(
    thread_id: str,
    _agent: Agent = Depends(get_current_agent),
    session: AsyncSession = Depends(get_session_dependency),
) -> ThreadDetailResponse:
    detail = await ThreadManager(session).get_detail(thread_id)
    return ThreadDetailResponse.from_detail(detail)


@router.put("/{thread_id}", response_model=ThreadResponse)
async def update_thread(
    thread_id: str,
    body: ThreadUpdate,
    agent: Agent = Depends(get_current_agent),
    session: AsyncSession = Depends(get_session_dependency),
) -> ThreadResponse:
    thread = await ThreadManager(session).update(
        thread_id, agent, body.model_dump(exclude_unset=True)
    )
    return ThreadResponse.from_thread(thread)


@router.delete("/{thread_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_thread(
    thread_id: str,
    agent: Agent = Depends(get_current_agent),
    session: AsyncSession = Depends(get_session_dependency),
) -> Response:
    await ThreadManager(session).delete(thread_id, agent)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{thread_id}/replies",
    response_model=ReplyResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_reply(
    thread_id: str,
    body: ReplyCreate,
    agent: Agent = Depends(get_current_agent),
    session: AsyncSession = Depends(get_session_dependency),
) -> ReplyResponse:
    reply = await ReplyManager(session).create(thread_id, agent, body=body.body)
    return ReplyResponse.from_reply(reply)


@router.post(
    "/{thread_id}/status",
    response_model=StatusResponse,
    status_code=status.HTTP_201_CREATED,
)
async def apply_thread_status(
    thread_id: str,
    body: StatusCreate,
    agent: Agent = Depends(get_current_agent),
    session: AsyncSession = Depends(get_session_dependency),
) -> StatusResponse:
    tag = await StatusManager(session).apply(
        TARGET_THREAD, thread_id, agent, body.tag, body.reference_id
    )
    return StatusResponse.from_status(tag)
