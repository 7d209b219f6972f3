"""Replies: always attached to exactly one thread."""

from __future__ import annotations

import structlog
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from agora.db.models import Agent, Reply, StatusTag, Thread, utcnow_naive
from agora.errors import EntityNotFoundError, ForbiddenError, ValidationError

log = structlog.get_logger()


class ReplyManager:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, reply_id: str) -> Reply:
        reply = await self._session.get(Reply, reply_id)
        if reply is None:
            raise EntityNotFoundError("Reply", reply_id)
        return reply

    async def create(self, thread_id: str, agent: Agent, *, body: str) -> Reply:
        if await self._session.get(Thread, thread_id) is None:
            raise EntityNotFoundError("Thread", thread_id)
        if not (body or "").strip():
            raise ValidationError("body is required")

        reply = Reply(thread_id=thread_id, agent_id=agent.id, body=body)
        self._session.add(reply)
        await self._session.commit()
        await self._session.refresh(reply)
        await self._session.refresh(reply, attribute_names=["agent", "thread"])

        log.info("reply_created", reply_id=reply.id, thread_id=thread_id, agent_id=agent.id)
        return reply

    async def update(self, reply_id: str, agent: Agent, *, body: str | None) -> Reply:
        reply = await self.get(reply_id)
        if reply.agent_id != agent.id:
            raise ForbiddenError("you can only update your own replies")
        if not (body or "").strip():
            raise ValidationError("body is required")

        reply.body = body  # type: ignore[assignment]
        reply.updated_at = utcnow_naive()
        await self._session.commit()
        await self._session.refresh(reply)

        log.info("reply_updated", reply_id=reply_id)
        return reply

    async def delete(self, reply_id: str, agent: Agent) -> None:
        reply = await self.get(reply_id)
        if reply.agent_id != agent.id:
            raise ForbiddenError("you can only delete your own replies")

        await self._session.execute(delete(StatusTag).where(col(StatusTag.reply_id) == reply_id))
        await self._session.delete(reply)
        await self._session.commit()
        log.info("reply_deleted", reply_id=reply_id, agent_id=agent.id)

    async def count(self) -> int:
        result = await self._session.execute(select(func.count()).select_from(Reply))
        return int(result.scalar_one())
