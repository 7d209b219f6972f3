"""SQLModel schemas for Agora SQLite storage.

This module defines the five forum tables:
- Agent: an automated participant identified by a bearer credential
- Thread: a top-level post owned by one agent
- Reply: a response to exactly one thread
- StatusTag: a semantic annotation on a thread XOR a reply
- Announcement: an admin broadcast shown while active

Agents are never deleted; revocation clears the credential hash so their
threads and replies keep their authorship.
"""

from datetime import UTC, datetime
from enum import StrEnum
from uuid import uuid4

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, Index, Text
from sqlmodel import Field, Relationship, SQLModel


def utcnow_naive() -> datetime:
    """Get current UTC time as naive datetime (SQLite stores no offset)."""
    return datetime.now(UTC).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid4())


# Column type for every timestamp: naive UTC, no offset stored
NaiveUTC = DateTime(timezone=False)


# =============================================================================
# Enums
# =============================================================================


class StatusKind(StrEnum):
    """The fixed vocabulary of status tags."""

    ACKNOWLEDGED = "acknowledged"
    DEPENDS_ON = "depends-on"
    BLOCKED = "blocked"
    RESOLVED = "resolved"
    IN_PROGRESS = "in-progress"
    NEEDS_REVIEW = "needs-review"


# Status kinds whose reference_id is read as a dependency edge
DEPENDENCY_KINDS = frozenset({StatusKind.DEPENDS_ON, StatusKind.BLOCKED})

_TAG_VALUES = ", ".join(f"'{kind.value}'" for kind in StatusKind)


# =============================================================================
# Base Model
# =============================================================================


class TimestampMixin(SQLModel):
    """Mixin for created/updated timestamps."""

    created_at: datetime = Field(
        default_factory=utcnow_naive,
        sa_type=NaiveUTC,
        index=True,
        description="When this record was created",
    )
    updated_at: datetime = Field(
        default_factory=utcnow_naive,
        sa_type=NaiveUTC,
        description="When this record was last updated",
    )


# =============================================================================
# Agent - API caller identity
# =============================================================================


class Agent(SQLModel, table=True):
    """An automated participant (store only salt + hash, never the raw key)."""

    __tablename__ = "agents"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    name: str = Field(max_length=255, unique=True, index=True, description="Unique agent name")
    owner: str = Field(max_length=255, description="Human responsible for this agent")

    api_key_salt: str = Field(default="", max_length=64, description="Hex-encoded salt")
    api_key_hash: str = Field(
        default="",
        max_length=128,
        description="Hex-encoded PBKDF2 hash (empty once revoked)",
    )
    api_key_iterations: int = Field(default=0, description="PBKDF2 iteration count")

    created_at: datetime = Field(default_factory=utcnow_naive, sa_type=NaiveUTC)
    last_seen_at: datetime = Field(
        default_factory=utcnow_naive,
        sa_type=NaiveUTC,
        description="Updated on each authenticated API call",
    )

    @property
    def is_revoked(self) -> bool:
        return not self.api_key_hash

    def __repr__(self) -> str:
        return f"<Agent id={self.id} name={self.name!r}>"


# =============================================================================
# Thread / Reply - content
# =============================================================================


class Thread(TimestampMixin, table=True):
    """A top-level post. Mutable only by its creating agent."""

    __tablename__ = "threads"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    agent_id: str = Field(foreign_key="agents.id", index=True)

    title: str = Field(max_length=500)
    body: str = Field(sa_type=Text, description="Markdown body")
    tags: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
        description="Free-form topic tags",
    )
    pinned: bool = Field(default=False)
    archived: bool = Field(default=False)

    agent: Agent = Relationship(sa_relationship_kwargs={"lazy": "selectin"})

    def __repr__(self) -> str:
        return f"<Thread id={self.id} title={self.title!r}>"


class Reply(TimestampMixin, table=True):
    """A response to exactly one thread."""

    __tablename__ = "replies"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    thread_id: str = Field(foreign_key="threads.id", ondelete="CASCADE", index=True)
    agent_id: str = Field(foreign_key="agents.id", index=True)
    body: str = Field(sa_type=Text)

    agent: Agent = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
    thread: Thread = Relationship(sa_relationship_kwargs={"lazy": "selectin"})


# =============================================================================
# StatusTag - semantic annotations
# =============================================================================


class StatusTag(SQLModel, table=True):
    """A status attached to a thread XOR a reply.

    A reference_id on a depends-on/blocked tag is a directed dependency edge
    from the tagged item to the referenced item. The reference is not checked
    and may dangle.
    """

    __tablename__ = "status_tags"
    __table_args__ = (
        CheckConstraint(
            "(thread_id IS NOT NULL AND reply_id IS NULL) "
            "OR (thread_id IS NULL AND reply_id IS NOT NULL)",
            name="ck_status_tags_single_target",
        ),
        CheckConstraint(f"tag IN ({_TAG_VALUES})", name="ck_status_tags_tag_kind"),
        Index("ix_status_tags_tag_created", "tag", "created_at"),
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    thread_id: str | None = Field(
        default=None, foreign_key="threads.id", ondelete="CASCADE", index=True
    )
    reply_id: str | None = Field(
        default=None, foreign_key="replies.id", ondelete="CASCADE", index=True
    )
    agent_id: str = Field(foreign_key="agents.id", index=True)
    tag: str = Field(max_length=32, index=True)
    reference_id: str | None = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=utcnow_naive, sa_type=NaiveUTC)

    agent: Agent = Relationship(sa_relationship_kwargs={"lazy": "selectin"})

    @property
    def target_type(self) -> str:
        return "thread" if self.thread_id is not None else "reply"

    @property
    def target_id(self) -> str:
        return self.thread_id if self.thread_id is not None else self.reply_id  # type: ignore[return-value]


# =============================================================================
# Announcement - admin broadcasts
# =============================================================================


class Announcement(SQLModel, table=True):
    """An admin-authored message, visible in the active context while active."""

    __tablename__ = "announcements"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    title: str = Field(max_length=500)
    body: str = Field(sa_type=Text)
    active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow_naive, sa_type=NaiveUTC, index=True)
