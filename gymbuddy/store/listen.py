"""
Live query subscriptions.

A :class:`Subscription` is an async iterator of :class:`QuerySnapshot`
objects. It starts lazily on first iteration, delivers the full ordered
result set after every change to the watched collection, and stops for good
when cancelled or when the underlying query fails. Cancellation is
synchronous: once ``cancel()`` returns, no snapshot is delivered, including
one that was already queued.

Usage::

    async with store.listen(query, auth=uid) as subscription:
        async for snapshot in subscription:
            render(snapshot.documents)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Callable

from gymbuddy.core.exceptions import SubscriptionError
from gymbuddy.store.documents import DocumentSnapshot, Query

if TYPE_CHECKING:
    from gymbuddy.store.base import DirectoryStore

logger = logging.getLogger(__name__)


class ChangeType(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True)
class DocumentChange:
    type: ChangeType
    document: DocumentSnapshot


@dataclass(frozen=True)
class QuerySnapshot:
    documents: list[DocumentSnapshot]
    changes: list[DocumentChange] = field(default_factory=list)
    read_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __len__(self) -> int:
        return len(self.documents)

    @property
    def ids(self) -> list[str]:
        return [d.id for d in self.documents]


class SubscriptionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    CANCELLED = "cancelled"
    FAILED = "failed"


_CLOSED = object()


class _Failure:
    def __init__(self, error: BaseException):
        self.error = error


class Subscription:
    def __init__(self, store: "DirectoryStore", query: Query, auth: str | None = None):
        self._store = store
        self._query = query
        self._auth = auth
        self._queue: asyncio.Queue = asyncio.Queue()
        self._state = SubscriptionState.IDLE
        self._dirty = False
        self._pump: asyncio.Task | None = None
        self._previous: dict[str, DocumentSnapshot] | None = None
        self._cancel_callbacks: list[Callable[["Subscription"], None]] = []

    @property
    def query(self) -> Query:
        return self._query

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state in (SubscriptionState.IDLE, SubscriptionState.ACTIVE)

    def start(self) -> None:
        if self._state != SubscriptionState.IDLE:
            return
        self._state = SubscriptionState.ACTIVE
        self._store._register(self)
        self.invalidate()

    def invalidate(self) -> None:
        """Mark the result set stale; called by the store after each write."""
        if self._state != SubscriptionState.ACTIVE:
            return
        self._dirty = True
        if self._pump is None or self._pump.done():
            self._pump = asyncio.get_running_loop().create_task(self._run())

    def cancel(self) -> None:
        if self._state == SubscriptionState.CANCELLED:
            return
        self._state = SubscriptionState.CANCELLED
        self._store._unregister(self)
        if self._pump is not None and not self._pump.done():
            self._pump.cancel()
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)
        callbacks, self._cancel_callbacks = self._cancel_callbacks, []
        for callback in callbacks:
            callback(self)

    def on_cancel(self, callback: Callable[["Subscription"], None]) -> None:
        self._cancel_callbacks.append(callback)

    def restart(self) -> "Subscription":
        """Return a fresh subscription over the same query and identity."""
        self.cancel()
        return self._store.listen(self._query, auth=self._auth)

    async def _run(self) -> None:
        while self._dirty and self._state == SubscriptionState.ACTIVE:
            self._dirty = False
            try:
                documents = await self._store.query(self._query, auth=self._auth)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self._fail(exc)
                return
            if self._state != SubscriptionState.ACTIVE:
                return
            snapshot = self._diff(documents)
            if snapshot is not None:
                self._queue.put_nowait(snapshot)

    def _diff(self, documents: list[DocumentSnapshot]) -> QuerySnapshot | None:
        current = {d.id: d for d in documents}
        previous = self._previous
        changes = []
        for doc in documents:
            before = previous.get(doc.id) if previous is not None else None
            if before is None:
                changes.append(DocumentChange(ChangeType.ADDED, doc))
            elif before.update_time != doc.update_time or before.data != doc.data:
                changes.append(DocumentChange(ChangeType.MODIFIED, doc))
        if previous is not None:
            for doc_id, before in previous.items():
                if doc_id not in current:
                    changes.append(DocumentChange(ChangeType.REMOVED, before))
            if not changes and list(previous) == list(current):
                return None
        self._previous = current
        return QuerySnapshot(documents=documents, changes=changes)

    def _fail(self, error: BaseException) -> None:
        logger.warning("Subscription on %s failed: %s", self._query, error)
        self._state = SubscriptionState.FAILED
        self._store._unregister(self)
        self._queue.put_nowait(_Failure(error))

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> QuerySnapshot:
        if self._state == SubscriptionState.IDLE:
            self.start()
        if self._state == SubscriptionState.CANCELLED:
            raise StopAsyncIteration
        if self._state == SubscriptionState.FAILED and self._queue.empty():
            raise StopAsyncIteration

        item = await self._queue.get()

        if self._state == SubscriptionState.CANCELLED or item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, _Failure):
            raise SubscriptionError(query=str(self._query)) from item.error
        return item

    async def __aenter__(self) -> "Subscription":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.cancel()


class SubscriptionScope:
    """Owns subscriptions opened for one session or view; closing cancels them all."""

    def __init__(self):
        self._subscriptions: set[Subscription] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._subscriptions)

    def track(self, subscription: Subscription) -> Subscription:
        if self._closed:
            subscription.cancel()
            raise SubscriptionError("Session is closed", query=str(subscription.query))
        self._subscriptions.add(subscription)
        subscription.on_cancel(self._subscriptions.discard)
        return subscription

    def close(self) -> None:
        self._closed = True
        for subscription in list(self._subscriptions):
            subscription.cancel()
        self._subscriptions.clear()
