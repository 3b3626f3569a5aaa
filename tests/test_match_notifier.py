import asyncio
import contextlib

import pytest

from gymbuddy.services import like_service, match_service


async def _settle() -> None:
    # Let subscription pumps deliver pending snapshots
    await asyncio.sleep(0.05)


async def _next(feed):
    return await anext(feed)


async def _stop(task: asyncio.Task) -> None:
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


async def _match(first, second) -> None:
    await like_service.like_user(first, second.uid)
    await like_service.like_user(second, first.uid)


@pytest.mark.asyncio
async def test_new_match_is_notified_to_both_sides(alice, bob):
    alice_feed = match_service.watch_matches(alice)
    bob_feed = match_service.watch_matches(bob)
    alice_next = asyncio.create_task(_next(alice_feed))
    bob_next = asyncio.create_task(_next(bob_feed))
    await _settle()

    await _match(alice, bob)

    alice_note = await asyncio.wait_for(alice_next, timeout=1)
    bob_note = await asyncio.wait_for(bob_next, timeout=1)
    assert alice_note.match_id == bob_note.match_id == "alice_bob"
    assert alice_note.other_user_id == "bob"
    assert bob_note.other_user_id == "alice"

    await alice_feed.aclose()
    await bob_feed.aclose()


@pytest.mark.asyncio
async def test_existing_matches_are_skipped_by_default(alice, bob, carol):
    await _match(alice, bob)

    feed = match_service.watch_matches(alice)
    pending = asyncio.create_task(_next(feed))
    await _settle()
    assert not pending.done()

    await _match(carol, alice)

    note = await asyncio.wait_for(pending, timeout=1)
    assert note.other_user_id == "carol"
    await feed.aclose()


@pytest.mark.asyncio
async def test_existing_matches_included_on_request(alice, bob):
    await _match(alice, bob)

    feed = match_service.watch_matches(alice, include_existing=True)
    note = await asyncio.wait_for(_next(feed), timeout=1)

    assert note.match_id == "alice_bob"
    await feed.aclose()


@pytest.mark.asyncio
async def test_each_match_notified_once(session_factory, alice, bob, carol):
    dave = session_factory("dave")
    feed = match_service.watch_matches(alice)
    notes = []

    async def collect():
        async for note in feed:
            notes.append(note)

    collector = asyncio.create_task(collect())
    await _settle()

    await _match(alice, bob)
    await _settle()
    # Unrelated match in the same collection triggers a re-query
    await _match(carol, dave)
    await _match(alice, carol)
    await _settle()

    assert [n.other_user_id for n in notes] == ["bob", "carol"]
    await _stop(collector)


@pytest.mark.asyncio
async def test_stopping_feed_cancels_subscription(alice):
    feed = match_service.watch_matches(alice)
    pending = asyncio.create_task(_next(feed))
    await _settle()
    assert len(alice.scope) == 1

    await _stop(pending)

    assert len(alice.scope) == 0


@pytest.mark.asyncio
async def test_closing_session_ends_feed(alice):
    feed = match_service.watch_matches(alice)
    pending = asyncio.create_task(_next(feed))
    await _settle()

    alice.close()

    with pytest.raises(StopAsyncIteration):
        await asyncio.wait_for(pending, timeout=1)
