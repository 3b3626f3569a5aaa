from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gymbuddy.store.base import DirectoryStore
from gymbuddy.store.client import StoreClient
from gymbuddy.store.documents import (
    SERVER_TIMESTAMP,
    Direction,
    DocumentSnapshot,
    FieldFilter,
    Query,
)
from gymbuddy.store.errors import (
    AlreadyExists,
    DocumentNotFound,
    PermissionDenied,
    StoreError,
    StoreUnavailable,
)
from gymbuddy.store.listen import (
    ChangeType,
    DocumentChange,
    QuerySnapshot,
    Subscription,
    SubscriptionScope,
    SubscriptionState,
)
from gymbuddy.store.memory import InMemoryDirectoryStore
from gymbuddy.store.rules import AccessPolicy
from gymbuddy.store.sql import SqlDirectoryStore


def create_store(
    backend: str,
    session_maker: async_sessionmaker[AsyncSession] | None = None,
) -> DirectoryStore:
    if backend == "memory":
        return InMemoryDirectoryStore()
    if backend == "sql":
        if session_maker is None:
            raise ValueError("The sql store backend needs a session maker")
        return SqlDirectoryStore(session_maker)
    raise ValueError(f"Unknown store backend: {backend!r}")


__all__ = [
    "SERVER_TIMESTAMP",
    "AccessPolicy",
    "AlreadyExists",
    "ChangeType",
    "DirectoryStore",
    "Direction",
    "DocumentChange",
    "DocumentNotFound",
    "DocumentSnapshot",
    "FieldFilter",
    "InMemoryDirectoryStore",
    "PermissionDenied",
    "Query",
    "QuerySnapshot",
    "SqlDirectoryStore",
    "StoreClient",
    "StoreError",
    "StoreUnavailable",
    "Subscription",
    "SubscriptionScope",
    "SubscriptionState",
    "create_store",
]
