"""Health check and settings endpoints."""

from fastapi import APIRouter, Depends

from falastin_games.config import Settings

from backend.deps import get_settings

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings")
async def read_settings(settings: Settings = Depends(get_settings)):
    """Non-secret upstream settings (model, base URL, whether a key is set)."""
    return settings.public()
