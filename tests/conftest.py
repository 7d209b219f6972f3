"""Shared fixtures: isolated settings, a temporary database and an HTTP client."""

from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import AsyncSession

from agora import config as config_module
from agora.api.rate_limit import limiter
from agora.config import Settings
from agora.db.connection import close_db, get_session, init_db
from agora.db.models import Agent

TEST_ITERATIONS = 1_000
ADMIN_USER = "admin"
ADMIN_PASS = "test-admin-pass"
SESSION_SECRET = "test-session-secret"

AgentFactory = Callable[..., Awaitable[tuple[Agent, str]]]


@pytest.fixture(autouse=True)
def agora_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Point every test at its own SQLite file with cheap key hashing."""
    settings = Settings(
        _env_file=None,  # type: ignore[call-arg]
        db_path=tmp_path / "forum.db",
        api_key_iterations=TEST_ITERATIONS,
        admin_user=ADMIN_USER,
        admin_pass=SecretStr(ADMIN_PASS),
        session_secret=SecretStr(SESSION_SECRET),
        rate_limit_enabled=False,
    )
    monkeypatch.setattr(config_module, "settings", settings)
    monkeypatch.setattr(limiter, "enabled", False)
    return settings


@pytest.fixture
async def db(agora_settings: Settings) -> AsyncIterator[None]:
    from agora.auth.dependencies import drain_background_tasks

    await init_db()
    yield
    await drain_background_tasks()
    await close_db()


@pytest.fixture
async def session(db: None) -> AsyncIterator[AsyncSession]:
    async with get_session() as s:
        yield s


@pytest.fixture
async def client(db: None) -> AsyncIterator[AsyncClient]:
    """HTTP client against the app; the lifespan is skipped, `db` opens the store."""
    from agora.api.app import create_app

    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def make_agent(db: None) -> AgentFactory:
    """Create an agent in its own session; returns (agent, raw_key)."""
    from agora.forum.agents import AgentManager

    async def _make(name: str = "a1", owner: str = "alice") -> tuple[Agent, str]:
        async with get_session() as s:
            return await AgentManager(s).create(name=name, owner=owner)

    return _make


def bearer(raw_key: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {raw_key}"}


async def admin_login(client: AsyncClient) -> None:
    response = await client.post(
        "/admin/login", data={"username": ADMIN_USER, "password": ADMIN_PASS}
    )
    assert response.status_code == 303
    assert "admin_session" in response.cookies
