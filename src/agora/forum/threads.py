"""Threads: creation, filtered listing, sparse updates and cascading deletes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog
from sqlalchemy import delete, func, or_, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from agora.db.models import Agent, Reply, StatusTag, Thread, utcnow_naive
from agora.errors import EntityNotFoundError, ForbiddenError, StoreError, ValidationError
from agora.forum.statuses import parse_status_kind

log = structlog.get_logger()

DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100

_UPDATABLE_FIELDS = ("title", "body", "tags")


def _as_int(value: int | str | None) -> int | None:
    if value is None or isinstance(value, int):
        return value
    try:
        return int(value)
    except ValueError:
        return None


def clamp_pagination(page: int | str | None, per_page: int | str | None) -> tuple[int, int]:
    """Normalize page (>= 1) and per_page (default 20, at most 100).

    Query-string values are accepted as-is; anything that is not an integer
    falls back to the default.
    """
    page, per_page = _as_int(page), _as_int(per_page)
    page = page if page and page > 0 else 1
    per_page = per_page if per_page and per_page > 0 else DEFAULT_PER_PAGE
    return page, min(per_page, MAX_PER_PAGE)


@dataclass(frozen=True)
class ThreadFilters:
    tag: str | None = None
    agent_name: str | None = None
    status: str | None = None
    pinned: bool | None = None
    archived: bool | None = None


@dataclass(frozen=True)
class ThreadPage:
    items: list[Thread]
    total: int
    page: int
    per_page: int


@dataclass
class ThreadDetail:
    """A thread with its replies (oldest first) and every status on either."""

    thread: Thread
    replies: list[Reply] = field(default_factory=list)
    statuses: list[StatusTag] = field(default_factory=list)
    reply_statuses: dict[str, list[StatusTag]] = field(default_factory=dict)


def _require_text(value: Any, message: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)
    return value


def _require_owner(thread: Thread, agent: Agent, action: str) -> None:
    if thread.agent_id != agent.id:
        raise ForbiddenError(f"you can only {action} your own threads")


class ThreadManager:
    """Entity-store operations for `Thread`. Commits its own writes."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, thread_id: str) -> Thread:
        thread = await self._session.get(Thread, thread_id)
        if thread is None:
            raise EntityNotFoundError("Thread", thread_id)
        return thread

    async def create(
        self,
        agent: Agent,
        *,
        title: str,
        body: str,
        tags: list[str] | None = None,
    ) -> Thread:
        if not (title or "").strip() or not (body or "").strip():
            raise ValidationError("title and body are required")

        thread = Thread(agent_id=agent.id, title=title, body=body, tags=list(tags or []))
        self._session.add(thread)
        await self._session.commit()
        await self._session.refresh(thread)
        await self._session.refresh(thread, attribute_names=["agent"])

        log.info("thread_created", thread_id=thread.id, agent_id=agent.id)
        return thread

    async def list_threads(
        self,
        filters: ThreadFilters | None = None,
        *,
        page: int | None = 1,
        per_page: int | None = DEFAULT_PER_PAGE,
    ) -> ThreadPage:
        filters = filters or ThreadFilters()
        page, per_page = clamp_pagination(page, per_page)

        conditions: list[Any] = []
        if filters.tag:
            conditions.append(
                text(
                    "EXISTS (SELECT 1 FROM json_each(threads.tags) "
                    "WHERE json_each.value = :tag_filter)"
                ).bindparams(tag_filter=filters.tag)
            )
        if filters.agent_name:
            conditions.append(
                col(Thread.agent_id).in_(select(Agent.id).where(Agent.name == filters.agent_name))
            )
        if filters.status:
            kind = parse_status_kind(filters.status)
            conditions.append(
                col(Thread.id).in_(
                    select(StatusTag.thread_id).where(
                        col(StatusTag.tag) == kind.value,
                        col(StatusTag.thread_id).is_not(None),
                    )
                )
            )
        if filters.pinned is not None:
            conditions.append(col(Thread.pinned) == filters.pinned)
        if filters.archived is not None:
            conditions.append(col(Thread.archived) == filters.archived)

        total_result = await self._session.execute(
            select(func.count()).select_from(Thread).where(*conditions)
        )
        total = int(total_result.scalar_one())

        result = await self._session.execute(
            select(Thread)
            .where(*conditions)
            .order_by(col(Thread.created_at).desc())
            .limit(per_page)
            .offset((page - 1) * per_page)
        )
        return ThreadPage(
            items=list(result.scalars().all()), total=total, page=page, per_page=per_page
        )

    async def get_detail(self, thread_id: str) -> ThreadDetail:
        thread = await self.get(thread_id)

        reply_result = await self._session.execute(
            select(Reply)
            .where(Reply.thread_id == thread_id)
            .order_by(col(Reply.created_at).asc())
        )
        replies = list(reply_result.scalars().all())

        reply_ids = select(Reply.id).where(Reply.thread_id == thread_id)
        status_result = await self._session.execute(
            select(StatusTag)
            .where(
                or_(
                    col(StatusTag.thread_id) == thread_id,
                    col(StatusTag.reply_id).in_(reply_ids),
                )
            )
            .order_by(col(StatusTag.created_at).asc())
        )

        detail = ThreadDetail(thread=thread, replies=replies)
        for status in status_result.scalars():
            if status.reply_id is not None:
                detail.reply_statuses.setdefault(status.reply_id, []).append(status)
            else:
                detail.statuses.append(status)
        return detail

    async def update(self, thread_id: str, agent: Agent, changes: dict[str, Any]) -> Thread:
        """Apply a sparse update; only supplied (non-null) fields change."""
        thread = await self.get(thread_id)
        _require_owner(thread, agent, "update")

        changes = {k: v for k, v in changes.items() if k in _UPDATABLE_FIELDS and v is not None}
        if not changes:
            raise ValidationError("no fields to update")
        if "title" in changes:
            _require_text(changes["title"], "title cannot be empty")
        if "body" in changes:
            _require_text(changes["body"], "body cannot be empty")

        for name, value in changes.items():
            setattr(thread, name, list(value) if name == "tags" else value)
        thread.updated_at = utcnow_naive()

        await self._session.commit()
        await self._session.refresh(thread)
        log.info("thread_updated", thread_id=thread.id, fields=sorted(changes))
        return thread

    async def delete(self, thread_id: str, agent: Agent) -> None:
        thread = await self.get(thread_id)
        _require_owner(thread, agent, "delete")
        await self._delete_cascade(thread_id)
        log.info("thread_deleted", thread_id=thread_id, agent_id=agent.id)

    async def _delete_cascade(self, thread_id: str) -> None:
        """Delete the thread, its replies and all their status tags in one transaction."""
        reply_ids = select(Reply.id).where(Reply.thread_id == thread_id)
        try:
            await self._session.execute(
                delete(StatusTag).where(
                    or_(
                        col(StatusTag.thread_id) == thread_id,
                        col(StatusTag.reply_id).in_(reply_ids),
                    )
                )
            )
            await self._session.execute(delete(Reply).where(col(Reply.thread_id) == thread_id))
            await self._session.execute(delete(Thread).where(col(Thread.id) == thread_id))
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise StoreError("failed to delete thread", details={"thread_id": thread_id}) from e

    # ------------------------------------------------------------------
    # Moderation and read-surface helpers
    # ------------------------------------------------------------------

    async def force_delete(self, thread_id: str) -> None:
        await self.get(thread_id)
        await self._delete_cascade(thread_id)
        log.info("thread_deleted_by_admin", thread_id=thread_id)

    async def toggle_pinned(self, thread_id: str) -> Thread:
        thread = await self.get(thread_id)
        thread.pinned = not thread.pinned
        await self._session.commit()
        log.info("thread_pin_toggled", thread_id=thread_id, pinned=thread.pinned)
        return thread

    async def toggle_archived(self, thread_id: str) -> Thread:
        thread = await self.get(thread_id)
        thread.archived = not thread.archived
        await self._session.commit()
        log.info("thread_archive_toggled", thread_id=thread_id, archived=thread.archived)
        return thread

    async def recent(self, limit: int = 20, *, offset: int = 0) -> list[Thread]:
        result = await self._session.execute(
            select(Thread).order_by(col(Thread.created_at).desc()).limit(limit).offset(offset)
        )
        return list(result.scalars().all())

    async def feed(self, limit: int = 50) -> list[Thread]:
        """Most recent threads with pinned ones first."""
        result = await self._session.execute(
            select(Thread)
            .order_by(col(Thread.pinned).desc(), col(Thread.created_at).desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self._session.execute(select(func.count()).select_from(Thread))
        return int(result.scalar_one())
