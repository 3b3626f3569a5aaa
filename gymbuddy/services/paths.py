"""Document paths of the directory and pair-key helpers."""

from gymbuddy.core.exceptions import InvalidIdentity

USERS = "users"
MATCHES = "matches"
CHATS = "chats"

PAIR_SEPARATOR = "_"


def user_path(uid: str) -> str:
    return f"{USERS}/{uid}"


def likes_collection(uid: str) -> str:
    return f"{USERS}/{uid}/likes"


def like_path(actor: str, target: str) -> str:
    return f"{likes_collection(actor)}/{target}"


def match_path(match_id: str) -> str:
    return f"{MATCHES}/{match_id}"


def chat_path(channel_key: str) -> str:
    return f"{CHATS}/{channel_key}"


def messages_collection(channel_key: str) -> str:
    return f"{chat_path(channel_key)}/messages"


def validate_identity(uid: str, field: str | None = None) -> str:
    if not isinstance(uid, str) or not uid:
        raise InvalidIdentity("User id is empty", field=field)
    if PAIR_SEPARATOR in uid or "/" in uid:
        raise InvalidIdentity(
            f"User id must not contain {PAIR_SEPARATOR!r} or '/'", field=field
        )
    return uid


def validate_pair(user_a: str, user_b: str) -> tuple[str, str]:
    """Return the pair in sorted order."""
    validate_identity(user_a, "user_a")
    validate_identity(user_b, "user_b")
    if user_a == user_b:
        raise InvalidIdentity("A pair needs two different users")
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)
