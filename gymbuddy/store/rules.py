"""
Access policy enforced by the directory store.

Every operation made on behalf of an authenticated user (``auth`` set) is
checked here. Operations without ``auth`` are trusted server-side calls and
bypass the policy.

    users/{uid}                         read: any user; write: uid only
    users/{uid}/likes/{target}          read: uid or target; write: uid only
    matches/{id}                        read/create: listed participants; never updated
    chats/{key}                         read/write: listed participants
    chats/{key}/messages/{id}           read/create: participants of chats/{key};
                                        senderId must be the caller; never updated
"""

from typing import TYPE_CHECKING, Any

from gymbuddy.store.documents import DocumentSnapshot, Query, split_document_path
from gymbuddy.store.errors import PermissionDenied

if TYPE_CHECKING:
    from gymbuddy.store.base import DirectoryStore


def _participants(data: dict[str, Any] | None) -> list:
    if not data:
        return []
    users = data.get("users")
    return users if isinstance(users, list) else []


class AccessPolicy:
    async def check_read(
        self,
        store: "DirectoryStore",
        auth: str | None,
        snapshot: DocumentSnapshot,
    ) -> None:
        if auth is None:
            return
        parts = snapshot.path.split("/")

        if len(parts) == 2 and parts[0] == "users":
            return
        if len(parts) == 4 and parts[0] == "users" and parts[2] == "likes":
            if auth in (parts[1], parts[3]):
                return
        elif len(parts) == 2 and parts[0] in ("matches", "chats"):
            # Reading a missing document reveals nothing
            if not snapshot.exists or auth in _participants(snapshot.data):
                return
        elif len(parts) == 4 and parts[0] == "chats" and parts[2] == "messages":
            if await self._chat_lists(store, parts[1], auth):
                return

        raise PermissionDenied("Read denied", path=snapshot.path)

    async def check_write(
        self,
        store: "DirectoryStore",
        auth: str | None,
        path: str,
        before: dict[str, Any] | None,
        after: dict[str, Any],
    ) -> None:
        if auth is None:
            return
        parts = path.split("/")

        if len(parts) == 2 and parts[0] == "users":
            if auth == parts[1]:
                return
        elif len(parts) == 4 and parts[0] == "users" and parts[2] == "likes":
            if auth == parts[1]:
                return
        elif len(parts) == 2 and parts[0] == "matches":
            users = _participants(after)
            if before is None and auth in users and len(set(users)) == 2:
                return
        elif len(parts) == 2 and parts[0] == "chats":
            if auth in _participants(after) and (before is None or auth in _participants(before)):
                return
        elif len(parts) == 4 and parts[0] == "chats" and parts[2] == "messages":
            if (
                before is None
                and after.get("senderId") == auth
                and await self._chat_lists(store, parts[1], auth)
            ):
                return

        raise PermissionDenied("Write denied", path=path)

    async def check_query(
        self,
        store: "DirectoryStore",
        auth: str | None,
        query: Query,
    ) -> None:
        if auth is None:
            return
        parts = query.collection.split("/")

        if parts == ["users"]:
            return
        if len(parts) == 3 and parts[0] == "users" and parts[2] == "likes":
            if auth == parts[1]:
                return
        elif parts in (["matches"], ["chats"]):
            # Only queries provably restricted to the caller's own documents
            if query.filter_value("users", "array-contains") == auth:
                return
        elif len(parts) == 3 and parts[0] == "chats" and parts[2] == "messages":
            if await self._chat_lists(store, parts[1], auth):
                return

        raise PermissionDenied("Query denied", path=query.collection)

    async def _chat_lists(self, store: "DirectoryStore", chat_id: str, auth: str) -> bool:
        collection, doc_id = split_document_path(f"chats/{chat_id}")
        chat = await store._fetch(collection, doc_id)
        return auth in _participants(chat.data)
