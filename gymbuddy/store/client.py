from typing import Any

from gymbuddy.store.base import DirectoryStore
from gymbuddy.store.documents import DocumentSnapshot, Query
from gymbuddy.store.listen import Subscription, SubscriptionScope


class StoreClient:
    """Store handle acting on behalf of one authenticated user."""

    def __init__(self, store: DirectoryStore, uid: str, scope: SubscriptionScope):
        self.store = store
        self.uid = uid
        self._scope = scope

    async def get(self, path: str) -> DocumentSnapshot:
        return await self.store.get(path, auth=self.uid)

    async def query(self, query: Query) -> list[DocumentSnapshot]:
        return await self.store.query(query, auth=self.uid)

    async def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> DocumentSnapshot:
        return await self.store.set(path, data, merge=merge, auth=self.uid)

    async def update(self, path: str, data: dict[str, Any]) -> DocumentSnapshot:
        return await self.store.update(path, data, auth=self.uid)

    async def create(self, path: str, data: dict[str, Any]) -> DocumentSnapshot:
        return await self.store.create(path, data, auth=self.uid)

    async def add(self, collection: str, data: dict[str, Any]) -> DocumentSnapshot:
        return await self.store.add(collection, data, auth=self.uid)

    def listen(self, query: Query) -> Subscription:
        """Open a subscription owned by this session's scope."""
        return self._scope.track(self.store.listen(query, auth=self.uid))
