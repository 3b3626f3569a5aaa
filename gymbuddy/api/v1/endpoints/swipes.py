from fastapi import APIRouter

from gymbuddy.api.v1.deps import Session
from gymbuddy.core.exceptions import NotFoundError
from gymbuddy.schemas.match import SwipeResponse
from gymbuddy.services import like_service, profile_service

router = APIRouter(prefix="", tags=["swipes"])


@router.post("/{target_id}/like", response_model=SwipeResponse)
async def like(target_id: str, ctx: Session) -> SwipeResponse:
    """
    Right swipe on a profile.

    Records the like and checks for a mutual like. When the other user
    already liked back the response carries the id of the match.
    """
    if not await profile_service.get_profile_snapshot(ctx, target_id):
        raise NotFoundError("Profile not found", resource="profile")

    result = await like_service.like_user(ctx, target_id)
    return SwipeResponse(
        target_id=target_id,
        outcome=result.outcome,
        match_id=result.match_id,
    )
