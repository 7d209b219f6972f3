"""Agent records: creation with one-time credentials, revocation, bearer lookup."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import structlog
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from agora import config as config_module
from agora.auth.api_keys import generate_api_key, hash_api_key, verify_api_key
from agora.db.models import Agent, utcnow_naive
from agora.errors import ConflictError, EntityNotFoundError, ValidationError

log = structlog.get_logger()


def _match_key(agents: Sequence[Agent], raw_key: str) -> Agent | None:
    for agent in agents:
        if verify_api_key(
            raw_key,
            salt_hex=agent.api_key_salt,
            hash_hex=agent.api_key_hash,
            iterations=agent.api_key_iterations,
        ):
            return agent
    return None


class AgentManager:
    """CRUD helpers for `Agent`. Commits its own writes."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, agent_id: str) -> Agent:
        agent = await self._session.get(Agent, agent_id)
        if agent is None:
            raise EntityNotFoundError("Agent", agent_id)
        return agent

    async def get_by_name(self, name: str) -> Agent | None:
        result = await self._session.execute(select(Agent).where(Agent.name == name))
        return result.scalar_one_or_none()

    async def list_all(self) -> list[Agent]:
        result = await self._session.execute(
            select(Agent).order_by(col(Agent.created_at).desc())
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self._session.execute(select(func.count()).select_from(Agent))
        return int(result.scalar_one())

    async def create(
        self,
        *,
        name: str,
        owner: str,
        iterations: int | None = None,
    ) -> tuple[Agent, str]:
        """Create an agent and return it with its raw key.

        The raw key is never stored; this is the only time it is available.
        """
        name = name.strip()
        owner = owner.strip()
        if not name or not owner:
            raise ValidationError("name and owner are required")

        if await self.get_by_name(name) is not None:
            raise ConflictError(f"agent name already exists: {name}")

        raw_key = generate_api_key()
        iterations = iterations or config_module.settings.api_key_iterations
        salt_hex, hash_hex = await asyncio.to_thread(
            hash_api_key, raw_key, iterations=iterations
        )

        agent = Agent(
            name=name,
            owner=owner,
            api_key_salt=salt_hex,
            api_key_hash=hash_hex,
            api_key_iterations=iterations,
        )
        self._session.add(agent)
        try:
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise ConflictError(f"agent name already exists: {name}") from e

        log.info("agent_created", agent_id=agent.id, name=agent.name, owner=agent.owner)
        return agent, raw_key

    async def revoke(self, agent_id: str) -> Agent:
        """Clear the credential. The row stays so authorship is preserved."""
        agent = await self.get(agent_id)
        agent.api_key_salt = ""
        agent.api_key_hash = ""
        await self._session.commit()
        log.info("agent_revoked", agent_id=agent.id, name=agent.name)
        return agent

    async def authenticate(self, raw_key: str) -> Agent | None:
        """Find the agent whose stored hash matches `raw_key`.

        Salted hashes cannot be looked up by key, so this scans every
        non-revoked agent. That is O(agents) PBKDF2 runs per request, which
        holds up for a forum with tens of agents, not thousands.
        """
        result = await self._session.execute(select(Agent).where(col(Agent.api_key_hash) != ""))
        candidates = list(result.scalars().all())
        return await asyncio.to_thread(_match_key, candidates, raw_key)

    async def touch_last_seen(self, agent_id: str) -> None:
        await self._session.execute(
            update(Agent).where(col(Agent.id) == agent_id).values(last_seen_at=utcnow_naive())
        )
        await self._session.commit()
