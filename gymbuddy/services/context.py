from gymbuddy.config import settings
from gymbuddy.store import DirectoryStore, StoreClient, SubscriptionScope


class SessionContext:
    """
    Per-session handle passed to every service call.

    Binds the shared directory store to the signed-in user and owns every
    live subscription opened during the session; ``close()`` cancels them all.
    """

    def __init__(
        self,
        store: DirectoryStore,
        uid: str,
        match_strategy: str | None = None,
    ):
        self.uid = uid
        self.scope = SubscriptionScope()
        self.db = StoreClient(store, uid, self.scope)
        self.match_strategy = match_strategy or settings.MATCH_STRATEGY

    @property
    def store(self) -> DirectoryStore:
        return self.db.store

    @property
    def closed(self) -> bool:
        return self.scope.closed

    def close(self) -> None:
        self.scope.close()

    async def __aenter__(self) -> "SessionContext":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()
