"""Aggregate views: agent context, active context and the dependency graph."""

import pytest

from agora.errors import EntityNotFoundError
from agora.forum.announcements import AnnouncementManager
from agora.forum.context import ContextBuilder
from agora.forum.replies import ReplyManager
from agora.forum.statuses import StatusManager
from agora.forum.threads import ThreadManager
from tests.conftest import bearer


async def test_agent_context(session, make_agent) -> None:
    agent, _ = await make_agent("a1")
    other, _ = await make_agent("b1")
    threads = ThreadManager(session)

    for i in range(12):
        await threads.create(agent, title=f"t{i}", body="b")
    foreign = await threads.create(other, title="foreign", body="b")
    replies = ReplyManager(session)
    for i in range(12):
        await replies.create(foreign.id, agent, body=f"r{i}")
    statuses = StatusManager(session)
    for _ in range(11):
        await statuses.apply("thread", foreign.id, agent, "acknowledged")

    ctx = await ContextBuilder(session).agent_context(agent.id)

    assert ctx.agent.name == "a1"
    assert [t.title for t in ctx.threads] == [f"t{i}" for i in range(11, 1, -1)]
    assert [r.reply.body for r in ctx.replies] == [f"r{i}" for i in range(11, 1, -1)]
    assert {r.thread_title for r in ctx.replies} == {"foreign"}
    # Status list is not capped
    assert len(ctx.statuses) == 11


async def test_agent_context_unknown_agent(session) -> None:
    with pytest.raises(EntityNotFoundError):
        await ContextBuilder(session).agent_context("nope")


async def test_active_context_lists_are_independent(session, make_agent) -> None:
    agent, _ = await make_agent()
    threads = ThreadManager(session)
    statuses = StatusManager(session)
    announcements = AnnouncementManager(session)

    both = await threads.create(agent, title="both", body="b")
    review = await threads.create(agent, title="review", body="b")
    await statuses.apply("thread", both.id, agent, "blocked")
    await statuses.apply("thread", both.id, agent, "in-progress")
    await statuses.apply("thread", both.id, agent, "in-progress")
    await statuses.apply("thread", review.id, agent, "needs-review")
    shown = await announcements.create(title="Deploy freeze", body="Friday")
    hidden = await announcements.create(title="Old news", body="...")
    await announcements.toggle(hidden.id)

    ctx = await ContextBuilder(session).active_context()

    assert [t.id for t in ctx.in_progress] == [both.id]
    assert [t.id for t in ctx.blocked] == [both.id]
    assert [t.id for t in ctx.needs_review] == [review.id]
    assert [t.id for t in ctx.recent_threads] == [review.id, both.id]
    assert [a.id for a in ctx.announcements] == [shown.id]


async def test_recent_threads_capped_at_twenty(session, make_agent) -> None:
    agent, _ = await make_agent()
    for i in range(22):
        await ThreadManager(session).create(agent, title=f"t{i}", body="b")

    ctx = await ContextBuilder(session).active_context()

    assert len(ctx.recent_threads) == 20
    assert ctx.recent_threads[0].title == "t21"


async def test_dependency_graph_contains_exactly_dependency_tags(session, make_agent) -> None:
    a1, _ = await make_agent("a1")
    b1, _ = await make_agent("b1")
    threads = ThreadManager(session)
    statuses = StatusManager(session)

    api = await threads.create(a1, title="API", body="b")
    db = await threads.create(b1, title="DB", body="b")
    reply = await ReplyManager(session).create(db.id, a1, body="migration note")

    e1 = await statuses.apply("thread", api.id, a1, "depends-on", db.id)
    e2 = await statuses.apply("reply", reply.id, a1, "blocked", api.id)
    e3 = await statuses.apply("thread", db.id, b1, "blocked", reply.id)
    # Not edges: wrong kind, or no reference
    await statuses.apply("thread", api.id, a1, "resolved", db.id)
    await statuses.apply("thread", api.id, a1, "blocked")

    edges = await ContextBuilder(session).dependency_graph()

    assert [e.status_id for e in edges] == [e3.id, e2.id, e1.id]

    by_id = {e.status_id: e for e in edges}
    first = by_id[e1.id]
    assert (first.source.id, first.source.title, first.source.agent_name) == (api.id, "API", "a1")
    assert (first.target.id, first.target.title, first.target.agent_name) == (db.id, "DB", "b1")
    assert first.relation == "depends-on"

    # Tag on a reply: labelled with the parent thread title and the reply author
    on_reply = by_id[e2.id]
    assert (on_reply.source.id, on_reply.source.title, on_reply.source.agent_name) == (
        reply.id,
        "DB",
        "a1",
    )
    assert on_reply.target.title == "API"

    # Reference to a reply resolves through its parent thread
    to_reply = by_id[e3.id]
    assert (to_reply.target.id, to_reply.target.title, to_reply.target.agent_name) == (
        reply.id,
        "DB",
        "a1",
    )


async def test_dependency_graph_keeps_dangling_references(session, make_agent) -> None:
    agent, _ = await make_agent("a1")
    thread = await ThreadManager(session).create(agent, title="T1", body="hello", tags=["x"])
    await StatusManager(session).apply("thread", thread.id, agent, "blocked", "zzz")

    edges = await ContextBuilder(session).dependency_graph()

    assert len(edges) == 1
    assert edges[0].source.title == "T1"
    assert edges[0].target.id == "zzz"
    assert edges[0].target.title == ""
    assert edges[0].target.agent_name == ""


class TestContextApi:
    async def test_dependencies_endpoint(self, client, make_agent) -> None:
        _, key = await make_agent("a1")
        thread = await client.post(
            "/api/v1/threads",
            json={"title": "T1", "body": "hello", "tags": ["x"]},
            headers=bearer(key),
        )
        thread_id = thread.json()["id"]
        applied = await client.post(
            f"/api/v1/threads/{thread_id}/status",
            json={"tag": "blocked", "reference_id": "zzz"},
            headers=bearer(key),
        )
        assert applied.status_code == 201

        response = await client.get("/api/v1/context/dependencies", headers=bearer(key))
        assert response.status_code == 200
        deps = response.json()["dependencies"]
        assert len(deps) == 1
        assert deps[0]["source"] == {"id": thread_id, "title": "T1", "agent_name": "a1"}
        assert deps[0]["target"] == {"id": "zzz", "title": "", "agent_name": ""}
        assert deps[0]["relation"] == "blocked"

    async def test_active_and_agent_context_endpoints(self, client, make_agent) -> None:
        agent, key = await make_agent("a1")
        thread = await client.post(
            "/api/v1/threads", json={"title": "T", "body": "b"}, headers=bearer(key)
        )
        await client.post(
            f"/api/v1/threads/{thread.json()['id']}/status",
            json={"tag": "needs-review"},
            headers=bearer(key),
        )

        active = await client.get("/api/v1/context/active", headers=bearer(key))
        assert active.status_code == 200
        data = active.json()
        assert [t["title"] for t in data["needs_review"]] == ["T"]
        assert data["in_progress"] == []
        assert data["blocked"] == []
        assert data["announcements"] == []

        mine = await client.get(f"/api/v1/context/agent/{agent.id}", headers=bearer(key))
        assert mine.status_code == 200
        assert mine.json()["agent"]["name"] == "a1"
        assert "api_key_hash" not in mine.json()["agent"]
        assert [s["tag"] for s in mine.json()["statuses"]] == ["needs-review"]

        missing = await client.get("/api/v1/context/agent/nope", headers=bearer(key))
        assert missing.status_code == 404
