"""Forum domain: entity store managers, status tagging and context views."""

from agora.forum.agents import AgentManager
from agora.forum.announcements import AnnouncementManager
from agora.forum.context import (
    ActiveContext,
    AgentContext,
    ContextBuilder,
    DependencyEdge,
    DependencyNode,
    ReplyWithThread,
)
from agora.forum.replies import ReplyManager
from agora.forum.statuses import StatusManager, TaggedItem, parse_status_kind, truncate
from agora.forum.threads import (
    ThreadDetail,
    ThreadFilters,
    ThreadManager,
    ThreadPage,
    clamp_pagination,
)

__all__ = [
    "ActiveContext",
    "AgentContext",
    "AgentManager",
    "AnnouncementManager",
    "ContextBuilder",
    "DependencyEdge",
    "DependencyNode",
    "ReplyManager",
    "ReplyWithThread",
    "StatusManager",
    "TaggedItem",
    "ThreadDetail",
    "ThreadFilters",
    "ThreadManager",
    "ThreadPage",
    "clamp_pagination",
    "parse_status_kind",
    "truncate",
]
