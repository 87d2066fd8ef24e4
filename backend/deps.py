"""Shared request dependencies: store, settings, LLM client and live sessions."""

import logging
from collections import OrderedDict

from fastapi import HTTPException, Request

from falastin_games.config import Settings
from falastin_games.llm import ChatLLM, HttpChatLLM
from falastin_games.session import GameSession, state_key
from falastin_games.storage import KeyValueStore

logger = logging.getLogger(__name__)

MAX_LIVE_SESSIONS = 256

_llm: ChatLLM | None = None


def get_llm(settings: Settings) -> ChatLLM:
    """The upstream client, built once per process on first use."""
    global _llm
    if _llm is None:
        if not settings.api_key:
            raise HTTPException(500, "Missing OpenAI API key.")
        _llm = HttpChatLLM(
            base_url=settings.base_url,
            api_key=settings.api_key,
            model=settings.model,
            timeout=settings.timeout,
        )
    return _llm


def reset_llm() -> None:
    global _llm
    _llm = None


def resolve_llm(request: Request) -> ChatLLM:
    override = request.app.state.llm
    if override is not None:
        return override
    return get_llm(request.app.state.settings)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> KeyValueStore:
    return request.app.state.store


def get_session(request: Request, game_id: str, profile_id: str | None) -> GameSession:
    """Live session for (game, profile), resumed from storage the first time.

    At most MAX_LIVE_SESSIONS stay in memory; the least recently used one is
    dropped first. A dropped session in progress resumes from its snapshot;
    a dropped finished one starts over, as it would after a restart.
    """
    sessions: OrderedDict[str, GameSession] = request.app.state.sessions
    key = state_key(game_id, profile_id)
    session = sessions.get(key)
    if session is not None:
        sessions.move_to_end(key)
        return session

    try:
        session = GameSession(game_id, get_store(request), profile_id=profile_id)
    except ValueError:
        raise HTTPException(404, "Game not found")
    session.resume()
    sessions[key] = session
    while len(sessions) > MAX_LIVE_SESSIONS:
        evicted, _ = sessions.popitem(last=False)
        logger.debug("evicted live session %s", evicted)
    return session
