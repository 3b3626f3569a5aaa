from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from gymbuddy.api.v1.deps import Session
from gymbuddy.api.v1.endpoints.auth import get_current_user
from gymbuddy.config import settings
from gymbuddy.core.exceptions import NotFoundError
from gymbuddy.schemas.account import AccountResponse
from gymbuddy.schemas.profile import (
    ProfileCreate,
    ProfileListResponse,
    ProfileResponse,
    ProfileUpdate,
)
from gymbuddy.services import profile_service

router = APIRouter(prefix="", tags=["profiles"])


@router.post("/", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(
    profile_data: ProfileCreate,
    current_user: Annotated[AccountResponse, Depends(get_current_user)],
    ctx: Session,
) -> ProfileResponse:
    """Profile setup after registration."""
    return await profile_service.create_profile(ctx, profile_data, email=current_user.email)


@router.get("/", response_model=ProfileListResponse)
async def get_candidates(
    ctx: Session,
    limit: int = Query(settings.DISCOVERY_PAGE_SIZE, ge=1, le=200),
) -> ProfileListResponse:
    """Discovery feed: profiles of everyone else."""
    profiles = await profile_service.list_candidates(ctx, limit)
    return ProfileListResponse(profiles=profiles, total=len(profiles))


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(ctx: Session) -> ProfileResponse:
    profile = await profile_service.get_profile(ctx, ctx.uid)
    if not profile:
        raise NotFoundError("Profile not found", resource="profile")
    return profile


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(profile_data: ProfileUpdate, ctx: Session) -> ProfileResponse:
    """Update only the submitted fields of the current user's profile."""
    return await profile_service.update_profile(ctx, profile_data)


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(user_id: str, ctx: Session) -> ProfileResponse:
    profile = await profile_service.get_profile(ctx, user_id)
    if not profile:
        raise NotFoundError("Profile not found", resource="profile")
    return profile
