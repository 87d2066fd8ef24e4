"""Game turn orchestration.

One request runs one assistant turn:

  1. Validate the request (before any LLM call).
  2. Scanner: completed-round count and used cities from history.
  3. Seeder: round key → the round's city.
  4. Composer: system prompt for this round.
  5. Compactor (games that opt in): fold finished rounds into a summary.
  6. Tool loop: call the LLM, execute the tools it asks for, feed results
     back, until it answers without tools or the step limit is hit.

Nothing here touches GameState. Tool results are handed to the caller in
emission order, and reconciling them is the session's job.

Used cities are scanned only up to the last completed round. The round in
progress may already mention its own city (a correct guess, a tour message)
and must keep the same target until a round marker closes it.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from pydantic import Field

from falastin_games.compactor import compact
from falastin_games.data.cities import CITY_BY_ID
from falastin_games.data.games import get_game_config
from falastin_games.llm import ChatLLM, LLMError
from falastin_games.messages import assistant_message, tool_message, to_chat_messages
from falastin_games.models import (
    CamelModel,
    City,
    Difficulty,
    GameConfig,
    KidsChatContext,
    KidsProfile,
    TextPart,
    ToolInvocationPart,
    Turn,
)
from falastin_games.prompts import build_game_prompt
from falastin_games.scanner import (
    EntityDetector,
    completed_rounds_prefix,
    count_completed_rounds,
    extract_used_entity_ids,
)
from falastin_games.seeder import compute_round_key, select_city_for_round
from falastin_games.tools import execute_tool, tools_for_game

logger = logging.getLogger(__name__)

TRANSPORT_ERROR_MESSAGE = "حدث خطأ. يرجى المحاولة مرة أخرى."
DEFAULT_MAX_STEPS = 7


class GameRequestError(ValueError):
    """The request is missing or has an invalid field. Nothing was sent to the LLM."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class GameTransportError(RuntimeError):
    """The LLM call failed. ``user_message`` is safe to show to the player."""

    def __init__(self, user_message: str = TRANSPORT_ERROR_MESSAGE) -> None:
        super().__init__(user_message)
        self.user_message = user_message


class GameChatRequest(CamelModel):
    messages: list[Turn] = Field(default_factory=list)
    game_id: str | None = None
    difficulty: Difficulty | None = None
    chat_context: KidsChatContext | None = None
    kids_profile: KidsProfile | None = None
    discovered_city_ids: list[str] | None = None
    session_seed: int | None = None


def validate_game_request(request: GameChatRequest) -> GameConfig:
    if not request.game_id:
        raise GameRequestError("gameId", "Game ID is required")
    if not request.messages:
        raise GameRequestError("messages", "At least one message is required")
    config = get_game_config(request.game_id)
    if config is None:
        raise GameRequestError("gameId", f"Unknown game: {request.game_id}")
    return config


@dataclass(frozen=True)
class PreparedGameRequest:
    config: GameConfig
    system: str
    turns: list[Turn]
    tools: list[dict[str, Any]]
    round_number: int
    round_key: int
    excluded_ids: frozenset[str]
    target: City | None = None


def prepare_game_request(
    request: GameChatRequest, detector: EntityDetector | None = None
) -> PreparedGameRequest:
    """Everything the tool loop needs, computed purely from the request."""
    config = validate_game_request(request)
    turns = request.messages

    round_number = count_completed_rounds(turns)
    round_key = compute_round_key(request.session_seed or 0, round_number)
    excluded = frozenset(
        extract_used_entity_ids(
            completed_rounds_prefix(turns),
            detector=detector,
            persisted=request.discovered_city_ids or (),
        )
    )

    profile = request.kids_profile
    system = build_game_prompt(
        config.id,
        difficulty=request.difficulty,
        chat_context=request.chat_context,
        player_age=profile.age if profile else None,
        player_name=profile.name if profile else None,
        excluded_ids=excluded,
        round_key=round_key,
    )

    target = None
    if config.tool_set == "explorer":
        target = select_city_for_round(round_key, excluded).city

    forwarded = list(turns)
    if config.trim_completed_rounds:
        names = sorted(CITY_BY_ID[i].name_ar for i in excluded if i in CITY_BY_ID)
        forwarded = compact(turns, round_number, names)

    logger.debug(
        "prepared %s: round=%d key=%d excluded=%d turns=%d→%d",
        config.id, round_number, round_key, len(excluded), len(turns), len(forwarded),
    )
    return PreparedGameRequest(
        config=config,
        system=system,
        turns=forwarded,
        tools=tools_for_game(config),
        round_number=round_number,
        round_key=round_key,
        excluded_ids=excluded,
        target=target,
    )


# ---------------------------------------------------------------------------
# Stream events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TurnStarted:
    turn_id: str
    round_number: int
    round_key: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "start",
            "turnId": self.turn_id,
            "roundNumber": self.round_number,
            "roundKey": self.round_key,
        }


@dataclass(frozen=True)
class TextDelta:
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "text-delta", "text": self.text}


@dataclass(frozen=True)
class ToolResultEvent:
    part: ToolInvocationPart

    def to_dict(self) -> dict[str, Any]:
        return {**self.part.to_json_dict(), "type": "tool-result"}


@dataclass(frozen=True)
class TurnFinished:
    turn: Turn
    steps: int = 0
    tool_results: list[ToolInvocationPart] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"type": "finish", "turn": self.turn.to_json_dict(), "steps": self.steps}


StreamEvent = TurnStarted | TextDelta | ToolResultEvent | TurnFinished


async def stream_game_turn(
    request: GameChatRequest,
    llm: ChatLLM,
    max_steps: int = DEFAULT_MAX_STEPS,
    detector: EntityDetector | None = None,
) -> AsyncIterator[StreamEvent]:
    """Run the tool loop for one assistant turn, yielding events as they happen.

    Raises GameRequestError before the first event when the request is
    invalid, and GameTransportError when the LLM call fails.
    """
    prepared = prepare_game_request(request, detector=detector)
    turn_id = uuid.uuid4().hex
    yield TurnStarted(turn_id, prepared.round_number, prepared.round_key)

    messages = to_chat_messages(prepared.turns)
    parts: list[TextPart | ToolInvocationPart] = []
    results: list[ToolInvocationPart] = []
    steps = 0

    while steps < max_steps:
        steps += 1
        try:
            completion = await llm(f"game:{steps}", prepared.system, messages, prepared.tools)
        except LLMError as e:
            logger.warning("llm call failed for %s at step %d: %s", prepared.config.id, steps, e)
            raise GameTransportError() from e

        if completion.text:
            parts.append(TextPart(text=completion.text))
            yield TextDelta(completion.text)
        if not completion.tool_calls:
            break

        messages.append(assistant_message(completion))
        for call in completion.tool_calls:
            output = execute_tool(
                call.name, call.arguments, target=prepared.target, round_key=prepared.round_key
            )
            part = ToolInvocationPart(
                tool_call_id=call.id, tool_name=call.name, input=call.arguments, output=output
            )
            parts.append(part)
            results.append(part)
            messages.append(tool_message(call.id, output))
            yield ToolResultEvent(part)
    else:
        logger.warning("tool loop for %s stopped at the %d-step limit", prepared.config.id, max_steps)

    turn = Turn(id=turn_id, role="assistant", parts=parts)
    logger.info(
        "game turn finished: game=%s round=%d steps=%d tools=%d",
        prepared.config.id, prepared.round_number + 1, steps, len(results),
    )
    yield TurnFinished(turn=turn, steps=steps, tool_results=results)


async def run_game_turn(
    request: GameChatRequest,
    llm: ChatLLM,
    max_steps: int = DEFAULT_MAX_STEPS,
    detector: EntityDetector | None = None,
) -> Turn:
    """Collect the stream and return the finished assistant turn."""
    async for event in stream_game_turn(request, llm, max_steps=max_steps, detector=detector):
        if isinstance(event, TurnFinished):
            return event.turn
    raise RuntimeError("game turn ended without a finish event")

