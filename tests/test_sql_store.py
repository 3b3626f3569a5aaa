import asyncio
from datetime import datetime

import pytest

from gymbuddy.services import chat_service, like_service, message_service
from gymbuddy.services.context import SessionContext
from gymbuddy.store import (
    SERVER_TIMESTAMP,
    AlreadyExists,
    Direction,
    DocumentNotFound,
    PermissionDenied,
    Query,
)


@pytest.mark.asyncio
async def test_set_and_get(sql_store):
    written = await sql_store.set(
        "users/alice",
        {"name": "Alice", "tags": ["am", "pm"], "createdAt": SERVER_TIMESTAMP},
    )

    snapshot = await sql_store.get("users/alice")

    assert snapshot.exists
    assert snapshot.get("name") == "Alice"
    assert snapshot.get("tags") == ["am", "pm"]
    created_at = snapshot.get("createdAt")
    assert isinstance(created_at, datetime)
    assert created_at.tzinfo is not None
    assert created_at == written.get("createdAt")


@pytest.mark.asyncio
async def test_missing_document(sql_store):
    snapshot = await sql_store.get("users/nobody")

    assert not snapshot.exists
    assert snapshot.data is None


@pytest.mark.asyncio
async def test_merge_keeps_other_fields(sql_store):
    await sql_store.set("users/alice", {"name": "Alice", "timing": "Morning"})
    await sql_store.set("users/alice", {"timing": "Evening"}, merge=True)

    snapshot = await sql_store.get("users/alice")

    assert snapshot.to_dict() == {"name": "Alice", "timing": "Evening"}


@pytest.mark.asyncio
async def test_set_without_merge_replaces(sql_store):
    await sql_store.set("users/alice", {"name": "Alice", "timing": "Morning"})
    await sql_store.set("users/alice", {"name": "Alice B."})

    snapshot = await sql_store.get("users/alice")

    assert snapshot.to_dict() == {"name": "Alice B."}


@pytest.mark.asyncio
async def test_create_if_absent(sql_store):
    first = await sql_store.create("matches/alice_bob", {"users": ["alice", "bob"]})

    with pytest.raises(AlreadyExists):
        await sql_store.create("matches/alice_bob", {"users": ["alice", "bob"]})

    snapshot = await sql_store.get("matches/alice_bob")
    assert snapshot.update_time == first.update_time


@pytest.mark.asyncio
async def test_update_missing_document(sql_store):
    with pytest.raises(DocumentNotFound):
        await sql_store.update("users/nobody", {"name": "x"})


@pytest.mark.asyncio
async def test_add_and_query(sql_store):
    await sql_store.add("matches", {"users": ["alice", "bob"], "createdAt": SERVER_TIMESTAMP})
    await sql_store.add("matches", {"users": ["carol", "dave"], "createdAt": SERVER_TIMESTAMP})
    await sql_store.add("matches", {"users": ["alice", "carol"], "createdAt": SERVER_TIMESTAMP})

    query = (
        Query("matches")
        .where("users", "array-contains", "alice")
        .order_by("createdAt", Direction.DESCENDING)
    )
    results = await sql_store.query(query, auth="alice")

    assert [r.get("users") for r in results] == [["alice", "carol"], ["alice", "bob"]]
    assert all(len(r.id) == 20 for r in results)


@pytest.mark.asyncio
async def test_subcollections_are_separate(sql_store):
    await sql_store.set("users/alice/likes/bob", {"liked": True})
    await sql_store.set("users/bob/likes/alice", {"liked": True})

    alice_likes = await sql_store.query(Query("users/alice/likes"))

    assert [d.id for d in alice_likes] == ["bob"]


@pytest.mark.asyncio
async def test_policy_applies(sql_store):
    with pytest.raises(PermissionDenied):
        await sql_store.set("users/alice", {"name": "Mallory"}, auth="mallory")


@pytest.mark.asyncio
async def test_listener_sees_writes(sql_store):
    subscription = sql_store.listen(Query("users"))
    assert len(await asyncio.wait_for(anext(subscription), timeout=1)) == 0

    await sql_store.set("users/alice", {"name": "Alice"})
    snapshot = await asyncio.wait_for(anext(subscription), timeout=1)

    assert snapshot.ids == ["alice"]
    subscription.cancel()


@pytest.mark.asyncio
async def test_full_protocol(sql_store):
    async with SessionContext(sql_store, "alice") as alice, SessionContext(sql_store, "bob") as bob:
        first = await like_service.like_user(alice, "bob")
        second = await like_service.like_user(bob, "alice")
        await chat_service.bootstrap_channel(bob, "alice")
        await message_service.send_to(bob, "alice", "Deadlifts tomorrow?")
        await message_service.send_to(alice, "bob", "Sure")

        messages = await chat_service.get_messages(alice, "bob")
        chats = await chat_service.list_chats(alice)

    assert not first.matched
    assert second.matched
    assert second.match_id == "alice_bob"
    assert [m.text for m in messages] == ["Deadlifts tomorrow?", "Sure"]
    assert chats[0].last_message == "Sure"
