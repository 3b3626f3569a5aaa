"""Chat channel and message schemas."""

from datetime import datetime

from pydantic import BaseModel

from gymbuddy.schemas.profile import ProfileBrief
from gymbuddy.store import DocumentSnapshot


class ChatResponse(BaseModel):
    """Chat channel document."""
    id: str
    users: list[str]
    created_at: datetime | None = None
    last_message: str | None = None
    last_message_at: datetime | None = None

    @classmethod
    def from_snapshot(cls, snapshot: DocumentSnapshot) -> "ChatResponse":
        return cls(
            id=snapshot.id,
            users=snapshot.get("users") or [],
            created_at=snapshot.get("createdAt"),
            last_message=snapshot.get("lastMessage"),
            last_message_at=snapshot.get("lastMessageTimestamp"),
        )


class ChatPreview(BaseModel):
    """Preview of a chat for the chat list."""
    id: str
    other_user_id: str
    other_user_profile: ProfileBrief | None = None
    last_message: str | None
    last_message_at: datetime | None


class ChatListResponse(BaseModel):
    chats: list[ChatPreview]


class MessageCreate(BaseModel):
    """Create a new message. Blank text is rejected by the chat service."""
    text: str


class MessageResponse(BaseModel):
    id: str
    text: str
    sender_id: str
    receiver_id: str
    created_at: datetime | None

    @classmethod
    def from_snapshot(cls, snapshot: DocumentSnapshot) -> "MessageResponse":
        return cls(
            id=snapshot.id,
            text=snapshot.get("text", ""),
            sender_id=snapshot.get("senderId", ""),
            receiver_id=snapshot.get("receiverId", ""),
            created_at=snapshot.get("createdAt"),
        )


class MessageListResponse(BaseModel):
    chat_id: str
    messages: list[MessageResponse]
