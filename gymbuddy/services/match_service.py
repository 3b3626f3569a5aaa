"""
Mutual-match detection.

Runs in the liking user's session right after the like edge is written:

1. read the reciprocal like (target -> actor); absent means no match yet
2. look for an existing match of the pair; present means nothing to do
3. create the match

Nothing is written before step 3, so any read failure aborts with
``DetectionFailed`` and the whole sequence can be retried.

Two strategies exist for steps 2-3:

- ``deterministic``: the match id is derived from the sorted pair and the
  match is created with create-if-absent, so concurrent detections from both
  sides collapse to a single document.
- ``query``: query the actor's matches, scan for the target, then append a
  match with an auto id. Two sessions detecting at the same time can both
  pass the check and create two matches for the same pair.
"""

import logging
from dataclasses import dataclass
from typing import AsyncIterator

from gymbuddy.core.exceptions import DetectionFailed, WriteDenied
from gymbuddy.schemas.match import DetectionOutcome, MatchNotification, MatchResponse
from gymbuddy.services import profile_service
from gymbuddy.services.context import SessionContext
from gymbuddy.services.paths import MATCHES, like_path, match_path, validate_pair
from gymbuddy.store import (
    SERVER_TIMESTAMP,
    AlreadyExists,
    ChangeType,
    Direction,
    DocumentSnapshot,
    PermissionDenied,
    Query,
    StoreError,
)

logger = logging.getLogger(__name__)

STRATEGY_DETERMINISTIC = "deterministic"
STRATEGY_QUERY = "query"


@dataclass(frozen=True)
class DetectionResult:
    outcome: DetectionOutcome
    match_id: str | None = None

    @property
    def matched(self) -> bool:
        return self.outcome == DetectionOutcome.matched


def derive_match_key(user_a: str, user_b: str) -> str:
    low, high = validate_pair(user_a, user_b)
    return f"{low}_{high}"


def is_like(snapshot: DocumentSnapshot) -> bool:
    """A like edge counts only while it exists and carries ``liked``."""
    return snapshot.exists and bool(snapshot.get("liked"))


def _other_user(snapshot: DocumentSnapshot, uid: str) -> str | None:
    return next((u for u in snapshot.get("users") or [] if u != uid), None)


def _matches_query(uid: str) -> Query:
    return Query(MATCHES).where("users", "array-contains", uid)


async def detect_match(
    ctx: SessionContext,
    actor: str,
    target: str,
    strategy: str | None = None,
) -> DetectionResult:
    strategy = strategy or ctx.match_strategy
    pair = validate_pair(actor, target)

    try:
        reciprocal = await ctx.db.get(like_path(target, actor))
    except StoreError as e:
        logger.warning("Reciprocal like lookup %s -> %s failed: %s", target, actor, e)
        raise DetectionFailed() from e

    if not is_like(reciprocal):
        return DetectionResult(DetectionOutcome.not_reciprocated)

    if strategy == STRATEGY_DETERMINISTIC:
        return await _create_keyed_match(ctx, pair)
    if strategy == STRATEGY_QUERY:
        return await _query_then_create_match(ctx, actor, target, pair)
    raise ValueError(f"Unknown match strategy: {strategy!r}")


async def _create_keyed_match(ctx: SessionContext, pair: tuple[str, str]) -> DetectionResult:
    match_id = derive_match_key(*pair)
    path = match_path(match_id)

    try:
        existing = await ctx.db.get(path)
    except StoreError as e:
        logger.warning("Match lookup %s failed: %s", match_id, e)
        raise DetectionFailed() from e

    if existing.exists:
        return DetectionResult(DetectionOutcome.already_matched, match_id)

    try:
        await ctx.db.create(path, {"users": list(pair), "createdAt": SERVER_TIMESTAMP})
    except AlreadyExists:
        # The other participant's session created it first
        logger.info("Match %s created concurrently by the other session", match_id)
        return DetectionResult(DetectionOutcome.already_matched, match_id)
    except PermissionDenied as e:
        raise WriteDenied(path=path) from e
    except StoreError as e:
        logger.warning("Match create %s failed: %s", match_id, e)
        raise DetectionFailed() from e

    logger.info("Match %s created", match_id)
    return DetectionResult(DetectionOutcome.matched, match_id)


async def _query_then_create_match(
    ctx: SessionContext,
    actor: str,
    target: str,
    pair: tuple[str, str],
) -> DetectionResult:
    try:
        existing = await ctx.db.query(_matches_query(actor))
    except StoreError as e:
        logger.warning("Existing matches query for %s failed: %s", actor, e)
        raise DetectionFailed() from e

    for snapshot in existing:
        if target in (snapshot.get("users") or []):
            return DetectionResult(DetectionOutcome.already_matched, snapshot.id)

    try:
        created = await ctx.db.add(MATCHES, {"users": list(pair), "createdAt": SERVER_TIMESTAMP})
    except PermissionDenied as e:
        raise WriteDenied(path=MATCHES) from e
    except StoreError as e:
        logger.warning("Match create for %s failed: %s", pair, e)
        raise DetectionFailed() from e

    logger.info("Match %s created", created.id)
    return DetectionResult(DetectionOutcome.matched, created.id)


async def get_user_matches(ctx: SessionContext) -> list[MatchResponse]:
    """
    Matches of the current user, newest first, one per partner.
    A partner with duplicate match documents is listed once, under the oldest.
    """
    snapshots = await ctx.db.query(
        _matches_query(ctx.uid).order_by("createdAt", Direction.DESCENDING)
    )

    by_partner: dict[str, DocumentSnapshot] = {}
    for snapshot in reversed(snapshots):
        other = _other_user(snapshot, ctx.uid)
        if other and other not in by_partner:
            by_partner[other] = snapshot

    responses = []
    for other, snapshot in sorted(
        by_partner.items(), key=lambda item: snapshots.index(item[1])
    ):
        responses.append(MatchResponse(
            id=snapshot.id,
            users=snapshot.get("users"),
            created_at=snapshot.get("createdAt"),
            other_user_id=other,
            other_user_profile=await profile_service.get_profile_brief(ctx, other),
        ))
    return responses


async def watch_matches(
    ctx: SessionContext,
    include_existing: bool = False,
) -> AsyncIterator[MatchNotification]:
    """
    Yield a notification for every match of the current user created while
    watching. Matches already present in the first snapshot are only reported
    with ``include_existing``. Each match is reported once per call.
    """
    seen: set[str] = set()
    first = True
    subscription = ctx.db.listen(_matches_query(ctx.uid))
    try:
        async for snapshot in subscription:
            for change in snapshot.changes:
                if change.type != ChangeType.ADDED:
                    continue
                match_id = change.document.id
                if match_id in seen:
                    continue
                seen.add(match_id)
                if first and not include_existing:
                    continue

                other = _other_user(change.document, ctx.uid)
                if other is None:
                    continue
                yield MatchNotification(
                    match_id=match_id,
                    other_user_id=other,
                    other_user_profile=await profile_service.get_profile_brief(ctx, other),
                )
            first = False
    finally:
        subscription.cancel()
