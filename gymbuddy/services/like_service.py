import logging

from gymbuddy.core.exceptions import LikeNotRecorded, WriteDenied
from gymbuddy.services import match_service
from gymbuddy.services.context import SessionContext
from gymbuddy.services.paths import like_path, validate_pair
from gymbuddy.store import SERVER_TIMESTAMP, PermissionDenied, StoreError

logger = logging.getLogger(__name__)


async def record_like(ctx: SessionContext, actor: str, target: str) -> None:
    """
    Write the like edge actor -> target. Re-liking overwrites the same edge
    with a fresh timestamp, so the call is idempotent. Never creates a match.
    """
    if actor != ctx.uid:
        raise WriteDenied("Likes can only be recorded for yourself", path=like_path(actor, target))
    validate_pair(actor, target)

    path = like_path(actor, target)
    try:
        await ctx.db.set(path, {"liked": True, "timestamp": SERVER_TIMESTAMP})
    except PermissionDenied as e:
        raise WriteDenied(path=path) from e
    except StoreError as e:
        logger.warning("Like %s -> %s not recorded: %s", actor, target, e)
        raise LikeNotRecorded() from e


async def has_liked(ctx: SessionContext, actor: str, target: str) -> bool:
    snapshot = await ctx.db.get(like_path(actor, target))
    return match_service.is_like(snapshot)


async def like_user(ctx: SessionContext, target: str) -> match_service.DetectionResult:
    """Right swipe: record the like, then check for a mutual like."""
    await record_like(ctx, ctx.uid, target)
    return await match_service.detect_match(ctx, ctx.uid, target)
