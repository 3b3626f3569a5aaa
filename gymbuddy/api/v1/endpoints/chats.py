from fastapi import APIRouter, status

from gymbuddy.api.v1.deps import Session
from gymbuddy.schemas.chat import (
    ChatListResponse,
    ChatResponse,
    MessageCreate,
    MessageListResponse,
    MessageResponse,
)
from gymbuddy.services import chat_service, message_service

router = APIRouter(prefix="", tags=["chats"])


@router.get("/", response_model=ChatListResponse)
async def get_my_chats(ctx: Session) -> ChatListResponse:
    """Chat previews, most recent message first."""
    return ChatListResponse(chats=await chat_service.list_chats(ctx))


@router.post("/{other_id}", response_model=ChatResponse)
async def open_chat(other_id: str, ctx: Session) -> ChatResponse:
    """Open the chat with another user, creating the channel on first open."""
    return await chat_service.bootstrap_channel(ctx, other_id)


@router.get("/{other_id}/messages", response_model=MessageListResponse)
async def get_messages(other_id: str, ctx: Session) -> MessageListResponse:
    return MessageListResponse(
        chat_id=chat_service.derive_channel_key(ctx.uid, other_id),
        messages=await chat_service.get_messages(ctx, other_id),
    )


@router.post(
    "/{other_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(other_id: str, data: MessageCreate, ctx: Session) -> MessageResponse:
    return await message_service.send_to(ctx, other_id, data.text)
