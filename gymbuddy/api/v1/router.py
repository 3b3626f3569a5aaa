from fastapi import APIRouter

from gymbuddy.api.v1.endpoints import auth, chats, matches, profiles, swipes

router = APIRouter()

router.include_router(auth.router, prefix="/auth")
router.include_router(profiles.router, prefix="/profiles")
router.include_router(swipes.router, prefix="/swipes")
router.include_router(matches.router, prefix="/matches")
router.include_router(chats.router, prefix="/chats")
