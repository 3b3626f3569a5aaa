"""
Directory store contract.

The store is a document database with point reads, full and merge writes,
create-if-absent writes, auto-id appends, single-collection queries and live
subscriptions. Writes to one document are serialized; there are no
cross-document transactions. Every write stamps ``SERVER_TIMESTAMP`` fields
with the store clock, which never goes backwards.

Backends implement the four storage primitives (``_fetch``, ``_scan``,
``_write`` and ``close``); this class owns locking, timestamps, the access
policy and change notification.
"""

import asyncio
import logging
import weakref
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Callable

from gymbuddy.store.documents import (
    DocumentSnapshot,
    Query,
    new_document_id,
    resolve_server_timestamps,
    split_document_path,
    validate_collection_path,
)
from gymbuddy.store.errors import AlreadyExists, DocumentNotFound
from gymbuddy.store.listen import Subscription
from gymbuddy.store.rules import AccessPolicy

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DirectoryStore(ABC):
    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        policy: AccessPolicy | None = None,
    ):
        self._clock = clock
        self._policy = policy or AccessPolicy()
        self._last_timestamp: datetime | None = None
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()
        self._listeners: dict[str, set[Subscription]] = defaultdict(set)

    # Storage primitives

    @abstractmethod
    async def _fetch(self, collection: str, doc_id: str) -> DocumentSnapshot:
        """Return the stored document, or a snapshot with ``data=None``."""

    @abstractmethod
    async def _scan(self, collection: str) -> list[DocumentSnapshot]:
        """Return every document in a collection, unordered."""

    @abstractmethod
    async def _write(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        create_time: datetime,
        update_time: datetime,
        *,
        create: bool,
    ) -> None:
        """Persist a document. With ``create`` set, raise AlreadyExists on conflict."""

    async def close(self) -> None:
        for subscriptions in list(self._listeners.values()):
            for subscription in list(subscriptions):
                subscription.cancel()

    # Reads

    async def get(self, path: str, *, auth: str | None = None) -> DocumentSnapshot:
        collection, doc_id = split_document_path(path)
        snapshot = await self._fetch(collection, doc_id)
        await self._policy.check_read(self, auth, snapshot)
        return snapshot

    async def query(self, query: Query, *, auth: str | None = None) -> list[DocumentSnapshot]:
        await self._policy.check_query(self, auth, query)
        return query.apply(await self._scan(query.collection))

    def listen(self, query: Query, *, auth: str | None = None) -> Subscription:
        return Subscription(self, query, auth)

    # Writes

    async def set(
        self,
        path: str,
        data: dict[str, Any],
        *,
        merge: bool = False,
        auth: str | None = None,
    ) -> DocumentSnapshot:
        """Write a document. With ``merge`` only the given top-level fields change."""
        return await self._commit(path, data, "merge" if merge else "set", auth)

    async def update(
        self, path: str, data: dict[str, Any], *, auth: str | None = None
    ) -> DocumentSnapshot:
        return await self._commit(path, data, "update", auth)

    async def create(
        self, path: str, data: dict[str, Any], *, auth: str | None = None
    ) -> DocumentSnapshot:
        return await self._commit(path, data, "create", auth)

    async def add(
        self, collection: str, data: dict[str, Any], *, auth: str | None = None
    ) -> DocumentSnapshot:
        collection = validate_collection_path(collection)
        return await self._commit(f"{collection}/{new_document_id()}", data, "create", auth)

    async def _commit(
        self,
        path: str,
        data: dict[str, Any],
        mode: str,
        auth: str | None,
    ) -> DocumentSnapshot:
        collection, doc_id = split_document_path(path)

        async with self._lock_for(f"{collection}/{doc_id}"):
            before = await self._fetch(collection, doc_id)
            if mode == "create" and before.exists:
                raise AlreadyExists("Document already exists", path=before.path)
            if mode == "update" and not before.exists:
                raise DocumentNotFound("No document to update", path=before.path)

            now = self._server_now()
            resolved = resolve_server_timestamps(data, now)
            if mode in ("merge", "update") and before.exists:
                after = {**before.data, **resolved}
            else:
                after = resolved

            await self._policy.check_write(self, auth, before.path, before.data, after)

            create_time = before.create_time if before.exists else now
            await self._write(
                collection, doc_id, after, create_time, now, create=(mode == "create")
            )

        self._notify(collection)
        return DocumentSnapshot(
            id=doc_id,
            collection=collection,
            data=after,
            create_time=create_time,
            update_time=now,
        )

    # Internals

    def _server_now(self) -> datetime:
        now = self._clock()
        if self._last_timestamp is not None and now < self._last_timestamp:
            now = self._last_timestamp
        self._last_timestamp = now
        return now

    def _lock_for(self, path: str) -> asyncio.Lock:
        lock = self._locks.get(path)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[path] = lock
        return lock

    def _register(self, subscription: Subscription) -> None:
        self._listeners[subscription.query.collection].add(subscription)

    def _unregister(self, subscription: Subscription) -> None:
        listeners = self._listeners.get(subscription.query.collection)
        if listeners is not None:
            listeners.discard(subscription)
            if not listeners:
                del self._listeners[subscription.query.collection]

    def _notify(self, collection: str) -> None:
        for subscription in list(self._listeners.get(collection, ())):
            subscription.invalidate()
