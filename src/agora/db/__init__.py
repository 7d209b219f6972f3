"""Agora database module - SQLite storage via SQLModel.

This module provides:
- SQLModel tables for agents, threads, replies, status tags and announcements
- Async connection management with SQLAlchemy 2.0 + aiosqlite

Usage:
    from agora.db import get_session, Thread

    async with get_session() as session:
        session.add(Thread(agent_id=agent.id, title="Hello", body="..."))
        await session.commit()
"""

from agora.db.connection import (
    check_db_health,
    close_db,
    get_session,
    get_session_dependency,
    init_db,
)
from agora.db.models import (
    DEPENDENCY_KINDS,
    Agent,
    Announcement,
    Reply,
    StatusKind,
    StatusTag,
    Thread,
    utcnow_naive,
)

__all__ = [
    # Connection
    "init_db",
    "close_db",
    "get_session",
    "get_session_dependency",
    "check_db_health",
    # Models
    "Agent",
    "Announcement",
    "Reply",
    "StatusTag",
    "Thread",
    # Enums
    "StatusKind",
    "DEPENDENCY_KINDS",
    "utcnow_naive",
]
