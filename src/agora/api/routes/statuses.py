"""Status tag removal and query-by-tag."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from agora.api.schemas import StatusQueryResponse, TaggedItemResponse
from agora.auth.dependencies import get_current_agent
from agora.db.connection import get_session_dependency
from agora.db.models import Agent
from agora.forum.statuses import StatusManager

router = APIRouter(prefix="/status", tags=["status"])


@router.get("", response_model=StatusQueryResponse)
async def query_status(
    tag: str | None = None,
    _agent: Agent = Depends(get_current_agent),
    session: AsyncSession = Depends(get_session_dependency),
) -> StatusQueryResponse:
    """Every tag of one kind, newest first, with target previews."""
    items = await StatusManager(session).query_by_tag(tag)
    return StatusQueryResponse(
        tag=tag or "",
        items=[TaggedItemResponse.from_item(item) for item in items],
    )


@router.delete("/{status_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_status(
    status_id: str,
    agent: Agent = Depends(get_current_agent),
    session: AsyncSession = Depends(get_session_dependency),
) -> Response:
    await StatusManager(session).remove(status_id, agent)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
