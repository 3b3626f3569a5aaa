import logging

from gymbuddy.core.exceptions import (
    AlreadyExistsError,
    NotFoundError,
    RetryableError,
    WriteDenied,
)
from gymbuddy.schemas.profile import (
    PROFILE_FIELDS,
    ProfileBrief,
    ProfileCreate,
    ProfileResponse,
    ProfileUpdate,
)
from gymbuddy.services.context import SessionContext
from gymbuddy.services.paths import USERS, user_path
from gymbuddy.store import (
    SERVER_TIMESTAMP,
    DocumentSnapshot,
    Direction,
    PermissionDenied,
    Query,
    StoreError,
)

logger = logging.getLogger(__name__)


def _to_document(data: ProfileCreate | ProfileUpdate, exclude_unset: bool = False) -> dict:
    values = data.model_dump(exclude_unset=exclude_unset)
    return {PROFILE_FIELDS[name]: value for name, value in values.items()}


async def _save(ctx: SessionContext, document: dict, merge: bool) -> DocumentSnapshot:
    path = user_path(ctx.uid)
    try:
        return await ctx.db.set(path, document, merge=merge)
    except PermissionDenied as e:
        raise WriteDenied(path=path) from e
    except StoreError as e:
        logger.warning("Profile write for %s failed: %s", ctx.uid, e)
        raise RetryableError("Failed to save profile. Try again") from e


async def get_profile_snapshot(ctx: SessionContext, uid: str) -> DocumentSnapshot | None:
    snapshot = await ctx.db.get(user_path(uid))
    return snapshot if snapshot.exists else None


async def get_profile(ctx: SessionContext, uid: str) -> ProfileResponse | None:
    """Get a full profile by user id."""
    snapshot = await get_profile_snapshot(ctx, uid)
    return ProfileResponse.from_snapshot(snapshot) if snapshot else None


async def get_profile_brief(ctx: SessionContext, uid: str) -> ProfileBrief | None:
    snapshot = await get_profile_snapshot(ctx, uid)
    return ProfileBrief.from_snapshot(snapshot) if snapshot else None


async def create_profile(
    ctx: SessionContext,
    data: ProfileCreate,
    email: str | None = None,
) -> ProfileResponse:
    """Profile setup: writes the whole users/{uid} document."""
    if await get_profile_snapshot(ctx, ctx.uid):
        raise AlreadyExistsError("Profile already exists for this user")

    document = _to_document(data)
    document.update(
        userId=ctx.uid,
        email=email,
        createdAt=SERVER_TIMESTAMP,
    )
    snapshot = await _save(ctx, document, merge=False)
    logger.info("Profile created for %s", ctx.uid)
    return ProfileResponse.from_snapshot(snapshot)


async def update_profile(ctx: SessionContext, data: ProfileUpdate) -> ProfileResponse:
    """Profile edit: merge-writes only the submitted fields."""
    if not await get_profile_snapshot(ctx, ctx.uid):
        raise NotFoundError("Profile not found", resource="profile")

    document = _to_document(data, exclude_unset=True)
    document.update(userId=ctx.uid, updatedAt=SERVER_TIMESTAMP)
    snapshot = await _save(ctx, document, merge=True)
    return ProfileResponse.from_snapshot(snapshot)


async def list_candidates(ctx: SessionContext, limit: int = 50) -> list[ProfileBrief]:
    """Discovery feed: every profile except the caller's, oldest first."""
    snapshots = await ctx.db.query(Query(USERS).order_by("createdAt", Direction.ASCENDING))
    candidates = [ProfileBrief.from_snapshot(s) for s in snapshots if s.id != ctx.uid]
    return candidates[:limit]
