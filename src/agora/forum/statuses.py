"""Status tagging: apply, remove and query semantic annotations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from agora.db.models import Agent, Reply, StatusKind, StatusTag, Thread
from agora.errors import EntityNotFoundError, ForbiddenError, ValidationError

log = structlog.get_logger()

PREVIEW_LENGTH = 100

TARGET_THREAD = "thread"
TARGET_REPLY = "reply"


def parse_status_kind(value: str | None) -> StatusKind:
    """Validate a raw tag value against the fixed vocabulary."""
    try:
        return StatusKind(value)
    except ValueError:
        valid = ", ".join(kind.value for kind in StatusKind)
        raise ValidationError(
            f"invalid status tag: {value} (must be one of: {valid})",
            details={"tag": value},
        ) from None


def truncate(text: str, limit: int = PREVIEW_LENGTH) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


@dataclass(frozen=True)
class TaggedItem:
    """One row of a query-by-tag result."""

    status: StatusTag
    target_type: str
    target_id: str
    preview: str

    @property
    def tag(self) -> str:
        return self.status.tag

    @property
    def created_at(self) -> datetime:
        return self.status.created_at


class StatusManager:
    """Status-tag operations. Tags may repeat on the same target."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def apply(
        self,
        target_type: str,
        target_id: str,
        agent: Agent,
        tag: str,
        reference_id: str | None = None,
    ) -> StatusTag:
        kind = parse_status_kind(tag)

        if target_type == TARGET_THREAD:
            if await self._session.get(Thread, target_id) is None:
                raise EntityNotFoundError("Thread", target_id)
            status = StatusTag(thread_id=target_id, agent_id=agent.id, tag=kind.value)
        elif target_type == TARGET_REPLY:
            if await self._session.get(Reply, target_id) is None:
                raise EntityNotFoundError("Reply", target_id)
            status = StatusTag(reply_id=target_id, agent_id=agent.id, tag=kind.value)
        else:
            raise ValidationError(f"invalid status target: {target_type}")

        # Not checked against existing rows; a dangling reference is allowed
        status.reference_id = reference_id or None

        self._session.add(status)
        await self._session.commit()
        await self._session.refresh(status)
        await self._session.refresh(status, attribute_names=["agent"])

        log.info(
            "status_applied",
            status_id=status.id,
            tag=status.tag,
            target_type=target_type,
            target_id=target_id,
            reference_id=status.reference_id,
        )
        return status

    async def remove(self, status_id: str, agent: Agent) -> None:
        status = await self._session.get(StatusTag, status_id)
        if status is None:
            raise EntityNotFoundError("Status", status_id)
        if status.agent_id != agent.id:
            raise ForbiddenError("you can only remove your own status tags")

        await self._session.delete(status)
        await self._session.commit()
        log.info("status_removed", status_id=status_id, agent_id=agent.id)

    async def query_by_tag(self, tag: str | None) -> list[TaggedItem]:
        """All tags of one kind, newest first, with a preview of each target."""
        kind = parse_status_kind(tag)

        result = await self._session.execute(
            select(StatusTag, Thread.title, Reply.body)
            .outerjoin(Thread, col(Thread.id) == col(StatusTag.thread_id))
            .outerjoin(Reply, col(Reply.id) == col(StatusTag.reply_id))
            .where(StatusTag.tag == kind.value)
            .order_by(col(StatusTag.created_at).desc())
        )

        items = []
        for status, thread_title, reply_body in result.all():
            if status.thread_id is not None:
                preview = thread_title or ""
            else:
                preview = truncate(reply_body or "")
            items.append(
                TaggedItem(
                    status=status,
                    target_type=status.target_type,
                    target_id=status.target_id,
                    preview=preview,
                )
            )
        return items

    async def for_threads(self, thread_ids: list[str]) -> dict[str, list[StatusTag]]:
        """Thread-level tags grouped by thread id, oldest first."""
        if not thread_ids:
            return {}
        result = await self._session.execute(
            select(StatusTag)
            .where(col(StatusTag.thread_id).in_(thread_ids))
            .order_by(col(StatusTag.created_at).asc())
        )
        grouped: dict[str, list[StatusTag]] = {}
        for status in result.scalars():
            grouped.setdefault(status.thread_id, []).append(status)  # type: ignore[arg-type]
        return grouped

    async def count(self) -> int:
        result = await self._session.execute(select(func.count()).select_from(StatusTag))
        return int(result.scalar_one())
