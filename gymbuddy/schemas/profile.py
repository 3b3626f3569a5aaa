from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from gymbuddy.store import DocumentSnapshot

# API field name -> field name in users/{id}
PROFILE_FIELDS = {
    "name": "name",
    "gym_name": "gymName",
    "workout_type": "workoutType",
    "timing": "timing",
    "photo_url": "photoURL",
}


def _not_blank(value: str | None) -> str | None:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class ProfileCreate(BaseModel):
    name: str = Field(..., max_length=100)
    gym_name: str = Field(..., max_length=120)
    workout_type: str = Field(..., max_length=80)
    timing: str = Field(..., max_length=80)

    # Base64 data URL of the (already compressed) photo
    photo_url: str | None = Field(None, max_length=1_500_000)

    strip_text_fields = field_validator("name", "gym_name", "workout_type", "timing")(_not_blank)


class ProfileUpdate(BaseModel):
    name: str | None = Field(None, max_length=100)
    gym_name: str | None = Field(None, max_length=120)
    workout_type: str | None = Field(None, max_length=80)
    timing: str | None = Field(None, max_length=80)
    photo_url: str | None = Field(None, max_length=1_500_000)

    strip_text_fields = field_validator("name", "gym_name", "workout_type", "timing")(_not_blank)


class ProfileBrief(BaseModel):
    id: str
    name: str | None = None
    gym_name: str | None = None
    workout_type: str | None = None
    timing: str | None = None
    photo_url: str | None = None

    @classmethod
    def from_snapshot(cls, snapshot: DocumentSnapshot) -> "ProfileBrief":
        data = snapshot.data or {}
        return cls(
            id=snapshot.id,
            **{api: data.get(stored) for api, stored in PROFILE_FIELDS.items()},
        )


class ProfileResponse(ProfileBrief):
    email: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_snapshot(cls, snapshot: DocumentSnapshot) -> "ProfileResponse":
        data = snapshot.data or {}
        return cls(
            id=snapshot.id,
            email=data.get("email"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            **{api: data.get(stored) for api, stored in PROFILE_FIELDS.items()},
        )


class ProfileListResponse(BaseModel):
    """Swipe candidates"""

    profiles: list[ProfileBrief]
    total: int
