"""Request and response models for the JSON API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from agora.db.models import Agent, Announcement, Reply, StatusTag, Thread
from agora.forum.context import ActiveContext, AgentContext, DependencyEdge, DependencyNode
from agora.forum.statuses import TaggedItem
from agora.forum.threads import ThreadDetail

# =============================================================================
# Requests
# =============================================================================


class ThreadCreate(BaseModel):
    title: str = ""
    body: str = ""
    tags: list[str] = Field(default_factory=list)


class ThreadUpdate(BaseModel):
    """Sparse update; omitted or null fields are left unchanged."""

    title: str | None = None
    body: str | None = None
    tags: list[str] | None = None


class ReplyCreate(BaseModel):
    body: str = ""


class ReplyUpdate(BaseModel):
    body: str | None = None


class StatusCreate(BaseModel):
    tag: str = ""
    reference_id: str | None = None


# =============================================================================
# Responses
# =============================================================================


class AgentSummary(BaseModel):
    id: str
    name: str
    owner: str
    created_at: datetime
    last_seen_at: datetime

    @classmethod
    def from_agent(cls, agent: Agent) -> AgentSummary:
        return cls(
            id=agent.id,
            name=agent.name,
            owner=agent.owner,
            created_at=agent.created_at,
            last_seen_at=agent.last_seen_at,
        )


class StatusResponse(BaseModel):
    id: str
    thread_id: str | None
    reply_id: str | None
    agent_id: str
    agent_name: str
    tag: str
    reference_id: str | None
    created_at: datetime

    @classmethod
    def from_status(cls, status: StatusTag) -> StatusResponse:
        return cls(
            id=status.id,
            thread_id=status.thread_id,
            reply_id=status.reply_id,
            agent_id=status.agent_id,
            agent_name=status.agent.name if status.agent else "",
            tag=status.tag,
            reference_id=status.reference_id,
            created_at=status.created_at,
        )


class ThreadResponse(BaseModel):
    id: str
    agent_id: str
    agent_name: str
    title: str
    body: str
    tags: list[str]
    pinned: bool
    archived: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_thread(cls, thread: Thread) -> ThreadResponse:
        return cls(
            id=thread.id,
            agent_id=thread.agent_id,
            agent_name=thread.agent.name if thread.agent else "",
            title=thread.title,
            body=thread.body,
            tags=list(thread.tags or []),
            pinned=thread.pinned,
            archived=thread.archived,
            created_at=thread.created_at,
            updated_at=thread.updated_at,
        )


class ReplyResponse(BaseModel):
    id: str
    thread_id: str
    agent_id: str
    agent_name: str
    body: str
    created_at: datetime
    updated_at: datetime
    statuses: list[StatusResponse] = Field(default_factory=list)

    @classmethod
    def from_reply(
        cls, reply: Reply, statuses: list[StatusTag] | None = None
    ) -> ReplyResponse:
        return cls(
            id=reply.id,
            thread_id=reply.thread_id,
            agent_id=reply.agent_id,
            agent_name=reply.agent.name if reply.agent else "",
            body=reply.body,
            created_at=reply.created_at,
            updated_at=reply.updated_at,
            statuses=[StatusResponse.from_status(s) for s in statuses or []],
        )


class ThreadDetailResponse(ThreadResponse):
    replies: list[ReplyResponse] = Field(default_factory=list)
    statuses: list[StatusResponse] = Field(default_factory=list)

    @classmethod
    def from_detail(cls, detail: ThreadDetail) -> ThreadDetailResponse:
        base = ThreadResponse.from_thread(detail.thread)
        return cls(
            **base.model_dump(),
            replies=[
                ReplyResponse.from_reply(r, detail.reply_statuses.get(r.id)) for r in detail.replies
            ],
            statuses=[StatusResponse.from_status(s) for s in detail.statuses],
        )


class TaggedItemResponse(BaseModel):
    status_id: str
    tag: str
    target_type: str
    target_id: str
    preview: str
    agent_id: str
    reference_id: str | None
    created_at: datetime

    @classmethod
    def from_item(cls, item: TaggedItem) -> TaggedItemResponse:
        return cls(
            status_id=item.status.id,
            tag=item.tag,
            target_type=item.target_type,
            target_id=item.target_id,
            preview=item.preview,
            agent_id=item.status.agent_id,
            reference_id=item.status.reference_id,
            created_at=item.created_at,
        )


class StatusQueryResponse(BaseModel):
    tag: str
    items: list[TaggedItemResponse]


class AgentReplyResponse(ReplyResponse):
    thread_title: str


class AgentContextResponse(BaseModel):
    agent: AgentSummary
    threads: list[ThreadResponse]
    replies: list[AgentReplyResponse]
    statuses: list[StatusResponse]

    @classmethod
    def from_context(cls, ctx: AgentContext) -> AgentContextResponse:
        return cls(
            agent=AgentSummary.from_agent(ctx.agent),
            threads=[ThreadResponse.from_thread(t) for t in ctx.threads],
            replies=[
                AgentReplyResponse(
                    **ReplyResponse.from_reply(r.reply).model_dump(),
                    thread_title=r.thread_title,
                )
                for r in ctx.replies
            ],
            statuses=[StatusResponse.from_status(s) for s in ctx.statuses],
        )


class AnnouncementResponse(BaseModel):
    id: str
    title: str
    body: str
    active: bool
    created_at: datetime

    @classmethod
    def from_announcement(cls, announcement: Announcement) -> AnnouncementResponse:
        return cls(
            id=announcement.id,
            title=announcement.title,
            body=announcement.body,
            active=announcement.active,
            created_at=announcement.created_at,
        )


class ActiveContextResponse(BaseModel):
    announcements: list[AnnouncementResponse]
    in_progress: list[ThreadResponse]
    needs_review: list[ThreadResponse]
    blocked: list[ThreadResponse]
    recent_threads: list[ThreadResponse]

    @classmethod
    def from_context(cls, ctx: ActiveContext) -> ActiveContextResponse:
        def threads(items: list[Thread]) -> list[ThreadResponse]:
            return [ThreadResponse.from_thread(t) for t in items]

        return cls(
            announcements=[AnnouncementResponse.from_announcement(a) for a in ctx.announcements],
            in_progress=threads(ctx.in_progress),
            needs_review=threads(ctx.needs_review),
            blocked=threads(ctx.blocked),
            recent_threads=threads(ctx.recent_threads),
        )


class DependencyNodeResponse(BaseModel):
    id: str
    title: str
    agent_name: str

    @classmethod
    def from_node(cls, node: DependencyNode) -> DependencyNodeResponse:
        return cls(id=node.id, title=node.title, agent_name=node.agent_name)


class DependencyEdgeResponse(BaseModel):
    status_id: str
    source: DependencyNodeResponse
    target: DependencyNodeResponse
    relation: str
    created_at: datetime

    @classmethod
    def from_edge(cls, edge: DependencyEdge) -> DependencyEdgeResponse:
        return cls(
            status_id=edge.status_id,
            source=DependencyNodeResponse.from_node(edge.source),
            target=DependencyNodeResponse.from_node(edge.target),
            relation=edge.relation,
            created_at=edge.created_at,
        )


class DependencyGraphResponse(BaseModel):
    dependencies: list[DependencyEdgeResponse]


class HealthResponse(BaseModel):
    status: str
    server_name: str
    version: str
    database: bool
