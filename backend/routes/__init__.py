"""FastAPI API endpoints under /api.

Endpoint groups: health/settings, games (catalogue, chat turn, session
state, tool-result reconciliation), profiles (discovered cities, recent chat
topics).
"""

from fastapi import APIRouter

from .games import router as games_router
from .profiles import router as profiles_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(games_router)
router.include_router(profiles_router)
