from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from gymbuddy.schemas.profile import ProfileBrief


class DetectionOutcome(str, Enum):
    not_reciprocated = "not_reciprocated"
    already_matched = "already_matched"
    matched = "matched"


class SwipeResponse(BaseModel):
    """Result of a right swipe"""

    target_id: str
    liked: bool = True
    outcome: DetectionOutcome
    match_id: str | None = None


class MatchResponse(BaseModel):
    id: str
    users: list[str]
    created_at: datetime | None

    # Profile of the other person in the match
    other_user_id: str
    other_user_profile: ProfileBrief | None = None


class MatchListResponse(BaseModel):
    matches: list[MatchResponse]
    total: int


class MatchNotification(BaseModel):
    """A match the user has not been told about yet"""

    match_id: str
    other_user_id: str
    other_user_profile: ProfileBrief | None = None
