"""
Chat channels between matched users.

A channel lives at ``chats/{key}`` where the key is derived from the two
participant ids, so both sides address the same document without a lookup.
The channel document is created lazily the first time either side opens the
chat and is only merge-updated afterwards. Messages can only be written once
it exists, which is why ``open_chat`` bootstraps before subscribing.
"""

import logging
from dataclasses import dataclass
from typing import AsyncIterator

from gymbuddy.core.exceptions import ChannelBootstrapFailed, WriteDenied
from gymbuddy.schemas.chat import ChatPreview, ChatResponse, MessageResponse
from gymbuddy.services import profile_service
from gymbuddy.services.context import SessionContext
from gymbuddy.services.paths import (
    CHATS,
    PAIR_SEPARATOR,
    chat_path,
    messages_collection,
    validate_pair,
)
from gymbuddy.store import (
    SERVER_TIMESTAMP,
    AlreadyExists,
    Direction,
    DocumentSnapshot,
    PermissionDenied,
    Query,
    StoreError,
    Subscription,
)

logger = logging.getLogger(__name__)


def derive_channel_key(user_a: str, user_b: str) -> str:
    """Order-independent channel key: larger id first."""
    low, high = validate_pair(user_a, user_b)
    return f"{high}{PAIR_SEPARATOR}{low}"


def messages_query(channel_key: str) -> Query:
    return Query(messages_collection(channel_key)).order_by("createdAt", Direction.ASCENDING)


def chats_query(uid: str) -> Query:
    return (
        Query(CHATS)
        .where("users", "array-contains", uid)
        .order_by("lastMessageTimestamp", Direction.DESCENDING)
    )


async def bootstrap_channel(ctx: SessionContext, other: str) -> ChatResponse:
    """
    Make sure chats/{key} exists and lists both participants.

    Safe to call on every chat open: an existing channel with the right
    participants is left untouched. A new channel is created with
    create-if-absent, so a first message sent by the other side in the
    meantime keeps its ``createdAt`` and ``lastMessageTimestamp``.
    """
    users = list(validate_pair(ctx.uid, other))
    key = derive_channel_key(ctx.uid, other)
    path = chat_path(key)

    try:
        existing = await ctx.db.get(path)
        if existing.exists and existing.get("users") == users:
            return ChatResponse.from_snapshot(existing)

        snapshot = None
        if not existing.exists:
            try:
                snapshot = await ctx.db.create(path, {
                    "users": users,
                    "createdAt": SERVER_TIMESTAMP,
                    "lastMessageTimestamp": SERVER_TIMESTAMP,
                })
            except AlreadyExists:
                logger.info("Chat channel %s created concurrently", key)
        if snapshot is None:
            snapshot = await ctx.db.set(path, {"users": users}, merge=True)
    except PermissionDenied as e:
        raise WriteDenied(path=path) from e
    except StoreError as e:
        logger.warning("Chat channel %s bootstrap failed: %s", key, e)
        raise ChannelBootstrapFailed(channel=key) from e

    logger.info("Chat channel %s bootstrapped", key)
    return ChatResponse.from_snapshot(snapshot)


@dataclass
class ChatChannel:
    """An open chat: the channel key plus its live message subscription."""

    key: str
    other_user_id: str
    subscription: Subscription

    async def snapshots(self) -> AsyncIterator[list[MessageResponse]]:
        """Full ordered message list after every change."""
        async for snapshot in self.subscription:
            yield [MessageResponse.from_snapshot(d) for d in snapshot.documents]

    def close(self) -> None:
        self.subscription.cancel()


async def open_chat(ctx: SessionContext, other: str) -> ChatChannel:
    await bootstrap_channel(ctx, other)
    key = derive_channel_key(ctx.uid, other)
    return ChatChannel(
        key=key,
        other_user_id=other,
        subscription=ctx.db.listen(messages_query(key)),
    )


async def get_messages(ctx: SessionContext, other: str) -> list[MessageResponse]:
    """Current ordered messages of the chat with ``other``; empty if it was never opened."""
    key = derive_channel_key(ctx.uid, other)
    chat = await ctx.db.get(chat_path(key))
    if not chat.exists:
        return []

    snapshots = await ctx.db.query(messages_query(key))
    return [MessageResponse.from_snapshot(s) for s in snapshots]


async def _to_previews(ctx: SessionContext, snapshots: list[DocumentSnapshot]) -> list[ChatPreview]:
    previews = []
    for snapshot in snapshots:
        other = next((u for u in snapshot.get("users") or [] if u != ctx.uid), None)
        if other is None:
            continue
        previews.append(ChatPreview(
            id=snapshot.id,
            other_user_id=other,
            other_user_profile=await profile_service.get_profile_brief(ctx, other),
            last_message=snapshot.get("lastMessage"),
            last_message_at=snapshot.get("lastMessageTimestamp"),
        ))
    return previews


async def list_chats(ctx: SessionContext) -> list[ChatPreview]:
    """Chats of the current user, most recent message first."""
    return await _to_previews(ctx, await ctx.db.query(chats_query(ctx.uid)))


async def watch_chats(ctx: SessionContext) -> AsyncIterator[list[ChatPreview]]:
    subscription = ctx.db.listen(chats_query(ctx.uid))
    try:
        async for snapshot in subscription:
            yield await _to_previews(ctx, snapshot.documents)
    finally:
        subscription.cancel()
