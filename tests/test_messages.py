import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from gymbuddy.core.exceptions import (
    EmptyMessage,
    InvalidIdentity,
    MessageNotSent,
    ValidationError,
    WriteDenied,
)
from gymbuddy.services import chat_service, message_service
from gymbuddy.services.paths import chat_path
from gymbuddy.store import PermissionDenied, StoreUnavailable


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   ", "\n\t "])
async def test_empty_message_performs_no_store_access(store, alice, text):
    fetch, write = AsyncMock(), AsyncMock()

    with patch.object(store, "_fetch", fetch), patch.object(store, "_write", write):
        with pytest.raises(EmptyMessage):
            await message_service.send_message(alice, "bob_alice", "alice", "bob", text)

    fetch.assert_not_called()
    write.assert_not_called()
    assert store.count("chats") == 0


@pytest.mark.asyncio
async def test_send_appends_message_and_updates_summary(store, alice):
    await chat_service.bootstrap_channel(alice, "bob")

    message = await message_service.send_message(
        alice, "bob_alice", "alice", "bob", "  Squats at 6?  "
    )

    assert message.text == "Squats at 6?"
    assert message.sender_id == "alice"
    assert message.receiver_id == "bob"
    assert message.created_at is not None
    chat = await store.get(chat_path("bob_alice"))
    assert chat.get("lastMessage") == "Squats at 6?"
    assert chat.get("lastMessageTimestamp") is not None
    assert store.count("chats/bob_alice/messages") == 1


@pytest.mark.asyncio
async def test_send_recreates_missing_channel(store, alice):
    await message_service.send_to(alice, "bob", "Hello")

    chat = await store.get(chat_path("bob_alice"))
    assert chat.get("users") == ["alice", "bob"]
    assert chat.get("createdAt") is not None
    assert chat.get("lastMessage") == "Hello"


@pytest.mark.asyncio
async def test_summary_reflects_last_send(store, alice, bob):
    await message_service.send_to(alice, "bob", "first")
    await message_service.send_to(bob, "alice", "second")

    chat = await store.get(chat_path("bob_alice"))

    assert chat.get("lastMessage") == "second"


@pytest.mark.asyncio
async def test_near_simultaneous_messages_both_land_in_order(store, alice, bob):
    await chat_service.bootstrap_channel(alice, "bob")

    await asyncio.gather(
        message_service.send_to(alice, "bob", "on my way"),
        message_service.send_to(bob, "alice", "warming up"),
    )

    messages = await chat_service.get_messages(alice, "bob")
    assert sorted(m.text for m in messages) == ["on my way", "warming up"]
    timestamps = [m.created_at for m in messages]
    assert timestamps == sorted(timestamps)

    chat = await store.get(chat_path("bob_alice"))
    assert chat.get("lastMessage") in ("on my way", "warming up")


@pytest.mark.asyncio
async def test_timestamp_ties_ordered_by_document_id(clock, alice, bob):
    await chat_service.bootstrap_channel(alice, "bob")
    clock.freeze()

    for text in ["one", "two", "three"]:
        await message_service.send_to(alice, "bob", text)

    messages = await chat_service.get_messages(bob, "alice")
    assert len({m.created_at for m in messages}) == 1
    assert [m.id for m in messages] == sorted(m.id for m in messages)


@pytest.mark.asyncio
async def test_failed_send_carries_unsent_text(store, alice):
    await chat_service.bootstrap_channel(alice, "bob")

    with patch.object(store, "_write", AsyncMock(side_effect=StoreUnavailable("down"))):
        with pytest.raises(MessageNotSent) as exc_info:
            await message_service.send_to(alice, "bob", "Bench press later?")

    assert exc_info.value.text == "Bench press later?"
    assert exc_info.value.metadata == {"text": "Bench press later?"}


@pytest.mark.asyncio
async def test_failed_append_heals_on_next_send(store, alice):
    await chat_service.bootstrap_channel(alice, "bob")
    original_write = store._write

    async def fail_messages(collection, *args, **kwargs):
        if collection.endswith("/messages"):
            raise StoreUnavailable("down")
        return await original_write(collection, *args, **kwargs)

    with patch.object(store, "_write", side_effect=fail_messages):
        with pytest.raises(MessageNotSent):
            await message_service.send_to(alice, "bob", "lost")

    chat = await store.get(chat_path("bob_alice"))
    assert chat.get("lastMessage") == "lost"
    assert store.count("chats/bob_alice/messages") == 0

    await message_service.send_to(alice, "bob", "again")

    chat = await store.get(chat_path("bob_alice"))
    assert chat.get("lastMessage") == "again"
    assert store.count("chats/bob_alice/messages") == 1


@pytest.mark.asyncio
async def test_send_as_someone_else_denied(store, alice):
    with pytest.raises(WriteDenied):
        await message_service.send_message(alice, "bob_alice", "bob", "alice", "hi")

    assert store.count("chats") == 0


@pytest.mark.asyncio
async def test_send_to_wrong_channel_rejected(alice):
    with pytest.raises(InvalidIdentity):
        await message_service.send_message(alice, "carol_alice", "alice", "bob", "hi")


@pytest.mark.asyncio
async def test_too_long_message_rejected(store, alice):
    with pytest.raises(ValidationError):
        await message_service.send_to(alice, "bob", "x" * 2001)

    assert store.count("chats") == 0


@pytest.mark.asyncio
async def test_outsider_cannot_read_messages(alice, carol):
    await message_service.send_to(alice, "bob", "private")

    with pytest.raises(PermissionDenied):
        await carol.db.query(chat_service.messages_query("bob_alice"))
