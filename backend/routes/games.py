"""Game catalogue, chat turn and game session endpoints."""

import json
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse

from falastin_games.config import Settings
from falastin_games.data.games import GAME_CONFIGS, get_game_config
from falastin_games.orchestrator import (
    GameChatRequest,
    GameRequestError,
    GameTransportError,
    StreamEvent,
    stream_game_turn,
    validate_game_request,
)
from falastin_games.storage import KeyValueStore, RewardsStore

from backend.deps import get_session, get_settings, get_store, resolve_llm

from .models import ResetBody, ToolResultBody

router = APIRouter()


def _line(payload: dict) -> str:
    return json.dumps(payload, ensure_ascii=False) + "\n"


async def _ndjson(events: AsyncIterator[StreamEvent]) -> AsyncIterator[str]:
    try:
        async for event in events:
            yield _line(event.to_dict())
    except GameTransportError as e:
        yield _line({"type": "error", "message": e.user_message})


@router.get("/games")
async def list_games():
    """All games with their rounds, scoring and tool set."""
    return [config.to_json_dict() for config in GAME_CONFIGS.values()]


@router.get("/games/{game_id}")
async def get_game(game_id: str):
    config = get_game_config(game_id)
    if not config:
        raise HTTPException(404, "Game not found")
    return config.to_json_dict()


@router.post("/games/chat")
async def game_chat(
    request: Request, body: GameChatRequest, settings: Settings = Depends(get_settings)
):
    """Run one assistant turn. Streams NDJSON events: start, text-delta, tool-result, finish.

    Tool results are not applied to the session here; the client posts them
    to /games/{game_id}/tool-results in the order they arrive.
    """
    try:
        validate_game_request(body)
    except GameRequestError as e:
        return JSONResponse({"error": e.message, "field": e.field}, status_code=400)

    # resolved after validation so a bad request is a 400 even without a key
    llm = resolve_llm(request)
    events = stream_game_turn(body, llm, max_steps=settings.max_tool_steps)
    return StreamingResponse(_ndjson(events), media_type="application/x-ndjson")


@router.get("/games/{game_id}/state")
async def get_state(request: Request, game_id: str, profile_id: str | None = None):
    """Current session state; resumes a saved game that is still in progress."""
    session = get_session(request, game_id, profile_id)
    return {
        "state": session.state.to_json_dict(),
        "summary": session.summary.to_json_dict() if session.summary else None,
    }


@router.post("/games/{game_id}/reset")
async def reset_game(
    request: Request, game_id: str, body: ResetBody | None = None, profile_id: str | None = None
):
    """Start the game over (optionally at a new difficulty)."""
    session = get_session(request, game_id, profile_id)
    state = session.reset(body.difficulty if body else None)
    return {"state": state.to_json_dict(), "summary": None}


@router.post("/games/{game_id}/tool-results")
async def post_tool_result(
    request: Request,
    game_id: str,
    body: ToolResultBody,
    profile_id: str | None = None,
    store: KeyValueStore = Depends(get_store),
):
    """Reconcile one tool result into the session. Unrecognised results change nothing.

    Also reports the profile's rewards and, for the city explorer, the city
    this result revealed.
    """
    session = get_session(request, game_id, profile_id)
    result = session.process_tool_result(body.tool_name, body.output)
    return {
        "applied": result.changed,
        "state": result.state.to_json_dict(),
        "summary": result.summary.to_json_dict() if result.summary else None,
        "discoveredCityId": session.discovered_city_id,
        "rewards": RewardsStore(store, profile_id).get().to_json_dict(),
    }
