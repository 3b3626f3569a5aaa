from fastapi import APIRouter

from gymbuddy.api.v1.deps import Session
from gymbuddy.schemas.match import MatchListResponse
from gymbuddy.services import match_service

router = APIRouter(prefix="", tags=["matches"])


@router.get("/", response_model=MatchListResponse)
async def get_my_matches(ctx: Session) -> MatchListResponse:
    """Matched users with their profiles, newest match first."""
    matches = await match_service.get_user_matches(ctx)
    return MatchListResponse(matches=matches, total=len(matches))
