"""Admin announcements."""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from agora.db.models import Announcement
from agora.errors import EntityNotFoundError, ValidationError

log = structlog.get_logger()


class AnnouncementManager:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, title: str, body: str) -> Announcement:
        if not (title or "").strip() or not (body or "").strip():
            raise ValidationError("title and body are required")

        announcement = Announcement(title=title.strip(), body=body)
        self._session.add(announcement)
        await self._session.commit()
        log.info("announcement_created", announcement_id=announcement.id)
        return announcement

    async def list_all(self) -> list[Announcement]:
        result = await self._session.execute(
            select(Announcement).order_by(col(Announcement.created_at).desc())
        )
        return list(result.scalars().all())

    async def list_active(self) -> list[Announcement]:
        result = await self._session.execute(
            select(Announcement)
            .where(col(Announcement.active).is_(True))
            .order_by(col(Announcement.created_at).desc())
        )
        return list(result.scalars().all())

    async def toggle(self, announcement_id: str) -> Announcement:
        announcement = await self._session.get(Announcement, announcement_id)
        if announcement is None:
            raise EntityNotFoundError("Announcement", announcement_id)
        announcement.active = not announcement.active
        await self._session.commit()
        log.info(
            "announcement_toggled",
            announcement_id=announcement_id,
            active=announcement.active,
        )
        return announcement
