import logging

from gymbuddy.config import settings
from gymbuddy.core.exceptions import (
    EmptyMessage,
    InvalidIdentity,
    MessageNotSent,
    ValidationError,
    WriteDenied,
)
from gymbuddy.schemas.chat import MessageResponse
from gymbuddy.services.chat_service import derive_channel_key
from gymbuddy.services.context import SessionContext
from gymbuddy.services.paths import chat_path, messages_collection, validate_pair
from gymbuddy.store import SERVER_TIMESTAMP, PermissionDenied, StoreError

logger = logging.getLogger(__name__)


async def send_message(
    ctx: SessionContext,
    channel_key: str,
    sender: str,
    recipient: str,
    text: str,
) -> MessageResponse:
    """
    Append a message to a chat channel.

    The channel summary is written first (with the participant list, so a
    missing channel comes back), then the message itself. The two writes are
    not atomic: if the append fails the summary is ahead of the message list
    until the next successful send.
    """
    original = text
    text = (text or "").strip()
    if not text:
        raise EmptyMessage()
    if len(text) > settings.MAX_MESSAGE_LENGTH:
        raise ValidationError(
            f"Message is longer than {settings.MAX_MESSAGE_LENGTH} characters", field="text"
        )
    if sender != ctx.uid:
        raise WriteDenied("Messages can only be sent as yourself", path=messages_collection(channel_key))

    users = list(validate_pair(sender, recipient))
    if derive_channel_key(sender, recipient) != channel_key:
        raise InvalidIdentity("Channel does not belong to this pair", field="channel_key")

    path = chat_path(channel_key)
    try:
        chat = await ctx.db.get(path)
        summary = {
            "users": users,
            "lastMessage": text,
            "lastMessageTimestamp": SERVER_TIMESTAMP,
        }
        if not chat.exists:
            summary["createdAt"] = SERVER_TIMESTAMP
        await ctx.db.set(path, summary, merge=True)

        snapshot = await ctx.db.add(
            messages_collection(channel_key),
            {
                "text": text,
                "senderId": sender,
                "receiverId": recipient,
                "createdAt": SERVER_TIMESTAMP,
            },
        )
    except PermissionDenied as e:
        raise WriteDenied(path=path) from e
    except StoreError as e:
        logger.warning("Message to %s not sent: %s", channel_key, e)
        raise MessageNotSent(original) from e

    return MessageResponse.from_snapshot(snapshot)


async def send_to(ctx: SessionContext, recipient: str, text: str) -> MessageResponse:
    """Send from the current user to ``recipient`` in their shared channel."""
    return await send_message(
        ctx, derive_channel_key(ctx.uid, recipient), ctx.uid, recipient, text
    )
