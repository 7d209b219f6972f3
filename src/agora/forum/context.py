"""Derived read views over the store.

Three aggregates are built here:

- agent context: what one agent has posted, replied to and tagged
- active context: announcements plus in-progress / needs-review / blocked
  threads and the most recent activity
- dependency graph: every depends-on / blocked tag that carries a reference,
  read as a directed edge from the tagged item to the referenced item

All three are read-only and computed per call; nothing is cached.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased
from sqlmodel import col, select

from agora.db.models import (
    DEPENDENCY_KINDS,
    Agent,
    Announcement,
    Reply,
    StatusKind,
    StatusTag,
    Thread,
)
from agora.errors import EntityNotFoundError

AGENT_CONTEXT_LIMIT = 10
RECENT_THREADS_LIMIT = 20


@dataclass(frozen=True)
class ReplyWithThread:
    reply: Reply
    thread_title: str


@dataclass
class AgentContext:
    agent: Agent
    threads: list[Thread] = field(default_factory=list)
    replies: list[ReplyWithThread] = field(default_factory=list)
    statuses: list[StatusTag] = field(default_factory=list)


@dataclass
class ActiveContext:
    announcements: list[Announcement] = field(default_factory=list)
    in_progress: list[Thread] = field(default_factory=list)
    needs_review: list[Thread] = field(default_factory=list)
    blocked: list[Thread] = field(default_factory=list)
    recent_threads: list[Thread] = field(default_factory=list)


@dataclass(frozen=True)
class DependencyNode:
    id: str
    title: str
    agent_name: str


@dataclass(frozen=True)
class DependencyEdge:
    status_id: str
    source: DependencyNode
    target: DependencyNode
    relation: str
    created_at: datetime


class ContextBuilder:
    """Builds the aggregate views for both the API and the dashboard."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def agent_context(self, agent_id: str, limit: int = AGENT_CONTEXT_LIMIT) -> AgentContext:
        agent = await self._session.get(Agent, agent_id)
        if agent is None:
            raise EntityNotFoundError("Agent", agent_id)

        threads = await self._session.execute(
            select(Thread)
            .where(Thread.agent_id == agent_id)
            .order_by(col(Thread.created_at).desc())
            .limit(limit)
        )
        replies = await self._session.execute(
            select(Reply, Thread.title)
            .join(Thread, col(Thread.id) == col(Reply.thread_id))
            .where(Reply.agent_id == agent_id)
            .order_by(col(Reply.created_at).desc())
            .limit(limit)
        )
        statuses = await self._session.execute(
            select(StatusTag)
            .where(StatusTag.agent_id == agent_id)
            .order_by(col(StatusTag.created_at).desc())
        )

        return AgentContext(
            agent=agent,
            threads=list(threads.scalars().all()),
            replies=[ReplyWithThread(reply=r, thread_title=t) for r, t in replies.all()],
            statuses=list(statuses.scalars().all()),
        )

    async def _threads_tagged(self, kind: StatusKind) -> list[Thread]:
        # IN (subquery) keeps a thread tagged twice with the same kind distinct
        result = await self._session.execute(
            select(Thread)
            .where(
                col(Thread.id).in_(
                    select(StatusTag.thread_id).where(
                        StatusTag.tag == kind.value,
                        col(StatusTag.thread_id).is_not(None),
                    )
                )
            )
            .order_by(col(Thread.created_at).desc())
        )
        return list(result.scalars().all())

    async def active_context(self) -> ActiveContext:
        announcements = await self._session.execute(
            select(Announcement)
            .where(col(Announcement.active).is_(True))
            .order_by(col(Announcement.created_at).desc())
        )
        recent = await self._session.execute(
            select(Thread).order_by(col(Thread.created_at).desc()).limit(RECENT_THREADS_LIMIT)
        )
        return ActiveContext(
            announcements=list(announcements.scalars().all()),
            in_progress=await self._threads_tagged(StatusKind.IN_PROGRESS),
            needs_review=await self._threads_tagged(StatusKind.NEEDS_REVIEW),
            blocked=await self._threads_tagged(StatusKind.BLOCKED),
            recent_threads=list(recent.scalars().all()),
        )

    async def dependency_graph(self) -> list[DependencyEdge]:
        """One edge per dependency tag with a reference, newest tag first.

        A tag on a reply is labelled with the parent thread's title and the
        reply author's name. A reference that resolves to nothing still
        yields an edge, with empty title and agent name.
        """
        src_thread = aliased(Thread)
        src_thread_agent = aliased(Agent)
        src_reply = aliased(Reply)
        src_reply_thread = aliased(Thread)
        src_reply_agent = aliased(Agent)
        ref_thread = aliased(Thread)
        ref_thread_agent = aliased(Agent)
        ref_reply = aliased(Reply)
        ref_reply_thread = aliased(Thread)
        ref_reply_agent = aliased(Agent)

        stmt = (
            select(
                StatusTag.id,
                StatusTag.tag,
                StatusTag.created_at,
                func.coalesce(StatusTag.thread_id, StatusTag.reply_id),
                func.coalesce(src_thread.title, src_reply_thread.title, ""),
                func.coalesce(src_thread_agent.name, src_reply_agent.name, ""),
                StatusTag.reference_id,
                func.coalesce(ref_thread.title, ref_reply_thread.title, ""),
                func.coalesce(ref_thread_agent.name, ref_reply_agent.name, ""),
            )
            .select_from(StatusTag)
            .outerjoin(src_thread, src_thread.id == StatusTag.thread_id)
            .outerjoin(src_thread_agent, src_thread_agent.id == src_thread.agent_id)
            .outerjoin(src_reply, src_reply.id == StatusTag.reply_id)
            .outerjoin(src_reply_thread, src_reply_thread.id == src_reply.thread_id)
            .outerjoin(src_reply_agent, src_reply_agent.id == src_reply.agent_id)
            .outerjoin(ref_thread, ref_thread.id == StatusTag.reference_id)
            .outerjoin(ref_thread_agent, ref_thread_agent.id == ref_thread.agent_id)
            .outerjoin(ref_reply, ref_reply.id == StatusTag.reference_id)
            .outerjoin(ref_reply_thread, ref_reply_thread.id == ref_reply.thread_id)
            .outerjoin(ref_reply_agent, ref_reply_agent.id == ref_reply.agent_id)
            .where(
                col(StatusTag.tag).in_([kind.value for kind in DEPENDENCY_KINDS]),
                col(StatusTag.reference_id).is_not(None),
            )
            .order_by(col(StatusTag.created_at).desc())
        )
        result = await self._session.execute(stmt)

        return [
            DependencyEdge(
                status_id=status_id,
                source=DependencyNode(id=source_id, title=source_title, agent_name=source_agent),
                target=DependencyNode(id=reference_id, title=target_title, agent_name=target_agent),
                relation=tag,
                created_at=created_at,
            )
            for (
                status_id,
                tag,
                created_at,
                source_id,
                source_title,
                source_agent,
                reference_id,
                target_title,
                target_agent,
            ) in result.all()
        ]
