from gymbuddy.schemas.account import AccountCreate, AccountResponse, Token, TokenPayload
from gymbuddy.schemas.chat import (
    ChatListResponse,
    ChatPreview,
    ChatResponse,
    MessageCreate,
    MessageListResponse,
    MessageResponse,
)
from gymbuddy.schemas.match import (
    DetectionOutcome,
    MatchListResponse,
    MatchNotification,
    MatchResponse,
    SwipeResponse,
)
from gymbuddy.schemas.profile import (
    ProfileBrief,
    ProfileCreate,
    ProfileListResponse,
    ProfileResponse,
    ProfileUpdate,
)

__all__ = [
    "AccountCreate",
    "AccountResponse",
    "Token",
    "TokenPayload",
    "ProfileCreate",
    "ProfileUpdate",
    "ProfileResponse",
    "ProfileBrief",
    "ProfileListResponse",
    "DetectionOutcome",
    "SwipeResponse",
    "MatchResponse",
    "MatchListResponse",
    "MatchNotification",
    "ChatResponse",
    "ChatPreview",
    "ChatListResponse",
    "MessageCreate",
    "MessageResponse",
    "MessageListResponse",
]
