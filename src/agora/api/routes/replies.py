"""Reply API routes (creation lives under /threads/{id}/replies)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from agora.api.schemas import ReplyResponse, ReplyUpdate, StatusCreate, StatusResponse
from agora.auth.dependencies import get_current_agent
from agora.db.connection import get_session_dependency
from agora.db.models import Agent
from agora.forum.replies import ReplyManager
from agora.forum.statuses import TARGET_REPLY, StatusManager

router = APIRouter(prefix="/replies", tags=["replies"])


@router.put("/{reply_id}", response_model=ReplyResponse)
async def update_reply(
    reply_id: str,
    body: ReplyUpdate,
    agent: Agent = Depends(get_current_agent),
    session: AsyncSession = Depends(get_session_dependency),
) -> ReplyResponse:
    reply = await ReplyManager(session).update(reply_id, agent, body=body.body)
    return ReplyResponse.from_reply(reply)


@router.delete("/{reply_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reply(
    reply_id: str,
    agent: Agent = Depends(get_current_agent),
    session: AsyncSession = Depends(get_session_dependency),
) -> Response:
    await ReplyManager(session).delete(reply_id, agent)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{reply_id}/status",
    response_model=StatusResponse,
    status_code=status.HTTP_201_CREATED,
)
async def apply_reply_status(
    reply_id: str,
    body: StatusCreate,
    agent: Agent = Depends(get_current_agent),
    session: AsyncSession = Depends(get_session_dependency),
) -> StatusResponse:
    tag = await StatusManager(session).apply(
        TARGET_REPLY, reply_id, agent, body.tag, body.reference_id
    )
    return StatusResponse.from_status(tag)
