from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request

from gymbuddy.api.v1.endpoints.auth import get_current_user
from gymbuddy.schemas.account import AccountResponse
from gymbuddy.services.context import SessionContext
from gymbuddy.store import DirectoryStore


def get_store(request: Request) -> DirectoryStore:
    """Directory store created in the application lifespan."""
    return request.app.state.store


async def get_session(
    current_user: Annotated[AccountResponse, Depends(get_current_user)],
    store: Annotated[DirectoryStore, Depends(get_store)],
) -> AsyncGenerator[SessionContext, None]:
    async with SessionContext(store, current_user.id) as ctx:
        yield ctx


Session = Annotated[SessionContext, Depends(get_session)]
