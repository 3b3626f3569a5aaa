import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from gymbuddy.core.exceptions import SubscriptionError
from gymbuddy.services.context import SessionContext
from gymbuddy.store import (
    ChangeType,
    Direction,
    Query,
    StoreUnavailable,
    SubscriptionState,
)


@pytest.mark.asyncio
async def test_first_snapshot_lists_current_documents(store):
    await store.set("users/alice", {"name": "Alice"})
    await store.set("users/bob", {"name": "Bob"})

    async with store.listen(Query("users")) as subscription:
        snapshot = await asyncio.wait_for(anext(subscription), timeout=1)

    assert snapshot.ids == ["alice", "bob"]
    assert [c.type for c in snapshot.changes] == [ChangeType.ADDED, ChangeType.ADDED]
    assert subscription.state == SubscriptionState.CANCELLED


@pytest.mark.asyncio
async def test_changes_describe_each_write(store):
    subscription = store.listen(Query("users"))
    await asyncio.wait_for(anext(subscription), timeout=1)

    await store.set("users/alice", {"name": "Alice"})
    added = await asyncio.wait_for(anext(subscription), timeout=1)
    await store.set("users/alice", {"gymName": "Core Club"}, merge=True)
    modified = await asyncio.wait_for(anext(subscription), timeout=1)

    assert [(c.type, c.document.id) for c in added.changes] == [(ChangeType.ADDED, "alice")]
    assert [(c.type, c.document.id) for c in modified.changes] == [(ChangeType.MODIFIED, "alice")]
    assert modified.documents[0].to_dict() == {"name": "Alice", "gymName": "Core Club"}
    subscription.cancel()


@pytest.mark.asyncio
async def test_snapshot_is_ordered(store):
    query = Query("users").order_by("createdAt", Direction.DESCENDING)
    await store.set("users/a", {"createdAt": 1})
    await store.set("users/b", {"createdAt": 3})
    await store.set("users/c", {})
    await store.set("users/d", {"createdAt": 3})

    async with store.listen(query) as subscription:
        snapshot = await asyncio.wait_for(anext(subscription), timeout=1)

    # Ties by id, documents without the field last
    assert snapshot.ids == ["b", "d", "a", "c"]


@pytest.mark.asyncio
async def test_no_delivery_after_cancel(store):
    subscription = store.listen(Query("users"))
    await asyncio.wait_for(anext(subscription), timeout=1)

    subscription.cancel()
    await store.set("users/alice", {"name": "Alice"})
    await asyncio.sleep(0.05)

    with pytest.raises(StopAsyncIteration):
        await anext(subscription)


@pytest.mark.asyncio
async def test_in_flight_snapshot_dropped_on_cancel(store):
    subscription = store.listen(Query("users"))
    await asyncio.wait_for(anext(subscription), timeout=1)

    await store.set("users/alice", {"name": "Alice"})
    # The snapshot for this write is queued but not yet consumed
    await asyncio.sleep(0.05)
    subscription.cancel()

    with pytest.raises(StopAsyncIteration):
        await anext(subscription)


@pytest.mark.asyncio
async def test_cancel_wakes_waiting_consumer(store):
    subscription = store.listen(Query("users"))
    await asyncio.wait_for(anext(subscription), timeout=1)

    async def next_snapshot():
        return await anext(subscription)

    waiting = asyncio.create_task(next_snapshot())
    await asyncio.sleep(0.01)
    subscription.cancel()

    with pytest.raises(StopAsyncIteration):
        await asyncio.wait_for(waiting, timeout=1)


@pytest.mark.asyncio
async def test_failure_is_terminal(store):
    subscription = store.listen(Query("users"))

    with patch.object(store, "_scan", AsyncMock(side_effect=StoreUnavailable("down"))):
        with pytest.raises(SubscriptionError) as exc_info:
            await asyncio.wait_for(anext(subscription), timeout=1)

    assert exc_info.value.metadata == {"query": "users"}
    assert subscription.state == SubscriptionState.FAILED

    # Later writes do not revive it
    await store.set("users/alice", {"name": "Alice"})
    with pytest.raises(StopAsyncIteration):
        await anext(subscription)


@pytest.mark.asyncio
async def test_restart_after_failure(store):
    await store.set("users/alice", {"name": "Alice"})
    subscription = store.listen(Query("users"))

    with patch.object(store, "_scan", AsyncMock(side_effect=StoreUnavailable("down"))):
        with pytest.raises(SubscriptionError):
            await asyncio.wait_for(anext(subscription), timeout=1)

    restarted = subscription.restart()
    snapshot = await asyncio.wait_for(anext(restarted), timeout=1)

    assert snapshot.ids == ["alice"]
    restarted.cancel()


@pytest.mark.asyncio
async def test_policy_denied_query_fails_subscription(store):
    subscription = store.listen(Query("matches"), auth="alice")

    with pytest.raises(SubscriptionError):
        await asyncio.wait_for(anext(subscription), timeout=1)


@pytest.mark.asyncio
async def test_session_close_cancels_all_subscriptions(store):
    ctx = SessionContext(store, "alice")
    users = ctx.db.listen(Query("users"))
    matches = ctx.db.listen(Query("matches").where("users", "array-contains", "alice"))
    await asyncio.wait_for(anext(users), timeout=1)
    await asyncio.wait_for(anext(matches), timeout=1)
    assert len(ctx.scope) == 2

    ctx.close()

    assert users.state == SubscriptionState.CANCELLED
    assert matches.state == SubscriptionState.CANCELLED
    assert len(ctx.scope) == 0
    with pytest.raises(SubscriptionError):
        ctx.db.listen(Query("users"))


@pytest.mark.asyncio
async def test_session_context_manager_closes(store):
    async with SessionContext(store, "alice") as ctx:
        subscription = ctx.db.listen(Query("users"))
        await asyncio.wait_for(anext(subscription), timeout=1)

    assert ctx.closed
    assert subscription.state == SubscriptionState.CANCELLED
