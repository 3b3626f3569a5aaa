import asyncio
import copy
from datetime import datetime
from typing import Any, Callable

from gymbuddy.store.base import DirectoryStore, utc_now
from gymbuddy.store.documents import DocumentSnapshot
from gymbuddy.store.errors import AlreadyExists
from gymbuddy.store.rules import AccessPolicy


class InMemoryDirectoryStore(DirectoryStore):
    """
    Process-local store.

    Every storage primitive yields to the event loop once (or sleeps for
    ``latency`` seconds), so concurrent sessions interleave the way remote
    round trips would.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        policy: AccessPolicy | None = None,
        latency: float = 0,
    ):
        super().__init__(clock=clock, policy=policy)
        self._latency = latency
        self._documents: dict[str, dict[str, DocumentSnapshot]] = {}

    async def _fetch(self, collection: str, doc_id: str) -> DocumentSnapshot:
        await asyncio.sleep(self._latency)
        stored = self._documents.get(collection, {}).get(doc_id)
        if stored is None:
            return DocumentSnapshot(id=doc_id, collection=collection)
        return copy.deepcopy(stored)

    async def _scan(self, collection: str) -> list[DocumentSnapshot]:
        await asyncio.sleep(self._latency)
        return [copy.deepcopy(d) for d in self._documents.get(collection, {}).values()]

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
        documents = self._documents.setdefault(collection, {})
        if create and doc_id in documents:
            raise AlreadyExists("Document already exists", path=f"{collection}/{doc_id}")
        documents[doc_id] = DocumentSnapshot(
            id=doc_id,
            collection=collection,
            data=copy.deepcopy(data),
            create_time=create_time,
            update_time=update_time,
        )

    def count(self, collection: str) -> int:
        return len(self._documents.get(collection, {}))
