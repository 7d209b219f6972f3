"""Status tagging engine and its API surface."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from agora.db.models import StatusKind, StatusTag
from agora.errors import EntityNotFoundError, ForbiddenError, ValidationError
from agora.forum.replies import ReplyManager
from agora.forum.statuses import StatusManager, parse_status_kind, truncate
from agora.forum.threads import ThreadManager
from tests.conftest import bearer


def test_parse_status_kind_accepts_the_six_kinds() -> None:
    values = ["acknowledged", "depends-on", "blocked", "resolved", "in-progress", "needs-review"]
    assert [parse_status_kind(v) for v in values] == list(StatusKind)


@pytest.mark.parametrize("value", ["done", "", None, "Blocked"])
def test_parse_status_kind_rejects_others(value) -> None:
    with pytest.raises(ValidationError):
        parse_status_kind(value)


def test_truncate() -> None:
    assert truncate("short") == "short"
    assert truncate("x" * 100) == "x" * 100
    assert truncate("x" * 101) == "x" * 100 + "..."


async def _status_count(session) -> int:
    result = await session.execute(select(func.count()).select_from(StatusTag))
    return result.scalar_one()


async def test_apply_sets_exactly_one_target(session, make_agent) -> None:
    agent, _ = await make_agent()
    thread = await ThreadManager(session).create(agent, title="T", body="b")
    reply = await ReplyManager(session).create(thread.id, agent, body="r")
    statuses = StatusManager(session)

    on_thread = await statuses.apply("thread", thread.id, agent, "in-progress")
    on_reply = await statuses.apply("reply", reply.id, agent, "needs-review")

    assert (on_thread.thread_id, on_thread.reply_id) == (thread.id, None)
    assert (on_reply.thread_id, on_reply.reply_id) == (None, reply.id)
    assert on_thread.target_type == "thread"
    assert on_reply.target_id == reply.id


async def test_invalid_tag_persists_nothing(session, make_agent) -> None:
    agent, _ = await make_agent()
    thread = await ThreadManager(session).create(agent, title="T", body="b")

    with pytest.raises(ValidationError):
        await StatusManager(session).apply("thread", thread.id, agent, "done")

    assert await _status_count(session) == 0


async def test_missing_target_is_not_found(session, make_agent) -> None:
    agent, _ = await make_agent()
    with pytest.raises(EntityNotFoundError):
        await StatusManager(session).apply("thread", "nope", agent, "blocked")
    with pytest.raises(EntityNotFoundError):
        await StatusManager(session).apply("reply", "nope", agent, "blocked")


async def test_duplicates_are_allowed_and_reference_is_not_checked(session, make_agent) -> None:
    agent, _ = await make_agent()
    thread = await ThreadManager(session).create(agent, title="T", body="b")
    statuses = StatusManager(session)

    await statuses.apply("thread", thread.id, agent, "blocked", "zzz")
    await statuses.apply("thread", thread.id, agent, "blocked", "zzz")

    assert await _status_count(session) == 2


async def test_only_applier_may_remove(session, make_agent) -> None:
    owner, _ = await make_agent("a1")
    other, _ = await make_agent("b1")
    thread = await ThreadManager(session).create(owner, title="T", body="b")
    statuses = StatusManager(session)
    # Anyone may tag anyone's thread; removal is limited to the applier
    status = await statuses.apply("thread", thread.id, other, "acknowledged")

    with pytest.raises(ForbiddenError):
        await statuses.remove(status.id, owner)
    await statuses.remove(status.id, other)

    assert await _status_count(session) == 0
    with pytest.raises(EntityNotFoundError):
        await statuses.remove(status.id, other)


async def test_query_by_tag_is_newest_first_with_previews(session, make_agent) -> None:
    agent, _ = await make_agent()
    thread = await ThreadManager(session).create(agent, title="Thread title", body="b")
    long_body = "r" * 150
    reply = await ReplyManager(session).create(thread.id, agent, body=long_body)
    statuses = StatusManager(session)

    first = await statuses.apply("thread", thread.id, agent, "blocked")
    second = await statuses.apply("reply", reply.id, agent, "blocked")
    await statuses.apply("thread", thread.id, agent, "resolved")

    items = await statuses.query_by_tag("blocked")

    assert [i.status.id for i in items] == [second.id, first.id]
    assert items[0].target_type == "reply"
    assert items[0].preview == "r" * 100 + "..."
    assert items[1].target_type == "thread"
    assert items[1].preview == "Thread title"
    assert items[0].created_at >= items[1].created_at


async def test_query_by_tag_rejects_unknown_kind(session) -> None:
    with pytest.raises(ValidationError):
        await StatusManager(session).query_by_tag("later")


async def test_store_rejects_status_with_both_or_neither_target(session, make_agent) -> None:
    agent, _ = await make_agent()
    thread = await ThreadManager(session).create(agent, title="T", body="b")
    reply = await ReplyManager(session).create(thread.id, agent, body="r")
    # Rollback expires loaded objects; keep plain ids
    thread_id, reply_id, agent_id = thread.id, reply.id, agent.id

    session.add(StatusTag(agent_id=agent_id, tag="blocked"))
    with pytest.raises(IntegrityError):
        await session.commit()
    await session.rollback()

    session.add(StatusTag(thread_id=thread_id, reply_id=reply_id, agent_id=agent_id, tag="blocked"))
    with pytest.raises(IntegrityError):
        await session.commit()
    await session.rollback()


async def test_store_rejects_unknown_tag_kind(session, make_agent) -> None:
    agent, _ = await make_agent()
    thread = await ThreadManager(session).create(agent, title="T", body="b")

    session.add(StatusTag(thread_id=thread.id, agent_id=agent.id, tag="done"))
    with pytest.raises(IntegrityError):
        await session.commit()
    await session.rollback()


class TestStatusApi:
    async def test_apply_remove_and_query(self, client, make_agent) -> None:
        _, key_a = await make_agent("a1")
        _, key_b = await make_agent("b1")
        thread = await client.post(
            "/api/v1/threads", json={"title": "T", "body": "b"}, headers=bearer(key_a)
        )
        thread_id = thread.json()["id"]

        applied = await client.post(
            f"/api/v1/threads/{thread_id}/status",
            json={"tag": "in-progress"},
            headers=bearer(key_a),
        )
        assert applied.status_code == 201
        status = applied.json()
        assert status["thread_id"] == thread_id
        assert status["reply_id"] is None
        assert status["agent_name"] == "a1"

        query = await client.get("/api/v1/status", params={"tag": "in-progress"}, headers=bearer(key_b))
        assert query.status_code == 200
        items = query.json()["items"]
        assert [i["status_id"] for i in items] == [status["id"]]
        assert items[0]["preview"] == "T"

        forbidden = await client.delete(f"/api/v1/status/{status['id']}", headers=bearer(key_b))
        assert forbidden.status_code == 403
        removed = await client.delete(f"/api/v1/status/{status['id']}", headers=bearer(key_a))
        assert removed.status_code == 204

    async def test_invalid_tag_is_rejected(self, client, make_agent) -> None:
        _, key = await make_agent()
        thread = await client.post(
            "/api/v1/threads", json={"title": "T", "body": "b"}, headers=bearer(key)
        )
        thread_id = thread.json()["id"]

        response = await client.post(
            f"/api/v1/threads/{thread_id}/status", json={"tag": "done"}, headers=bearer(key)
        )
        assert response.status_code == 400
        assert "invalid status tag" in response.json()["error"]

        detail = await client.get(f"/api/v1/threads/{thread_id}", headers=bearer(key))
        assert detail.json()["statuses"] == []

    async def test_query_requires_valid_tag(self, client, make_agent) -> None:
        _, key = await make_agent()
        response = await client.get("/api/v1/status", headers=bearer(key))
        assert response.status_code == 400

    async def test_reply_status_appears_in_thread_detail(self, client, make_agent) -> None:
        _, key = await make_agent()
        thread = await client.post(
            "/api/v1/threads", json={"title": "T", "body": "b"}, headers=bearer(key)
        )
        thread_id = thread.json()["id"]
        reply = await client.post(
            f"/api/v1/threads/{thread_id}/replies", json={"body": "r"}, headers=bearer(key)
        )
        reply_id = reply.json()["id"]
        await client.post(
            f"/api/v1/replies/{reply_id}/status", json={"tag": "resolved"}, headers=bearer(key)
        )

        detail = (await client.get(f"/api/v1/threads/{thread_id}", headers=bearer(key))).json()
        assert detail["statuses"] == []
        assert [s["tag"] for s in detail["replies"][0]["statuses"]] == ["resolved"]
