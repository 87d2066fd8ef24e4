"""Game tools offered to the model.

Tool names are a contract shared by the prompt composer (which tells the model
when to call what) and the reconciler (which turns results into state
changes); rename them in both places or not at all.

Each tool's input is a pydantic model; its JSON schema is what the model sees,
and validation failures come back to the model as an ``error`` output so it
can retry. Execution is local and cheap: game tools echo their validated
input, ``present_options`` makes sure the round's answer is among the choices.
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from falastin_games.models import City, GameConfig

logger = logging.getLogger(__name__)

CHECK_ANSWER = "check_answer"
GIVE_HINT = "give_hint"
ADVANCE_ROUND = "advance_round"
END_GAME = "end_game"
PRESENT_OPTIONS = "present_options"


class _ToolInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CheckAnswerInput(_ToolInput):
    correct: bool = Field(description="Whether the answer is correct")
    explanation: str = Field(description="Brief explanation in Palestinian Arabic")
    fun_fact: str | None = Field(default=None, description="Optional fun fact to share")
    points_earned: float = Field(description="Points earned for this answer (0 if wrong)")


class GiveHintInput(_ToolInput):
    hint: str = Field(description="The hint text in Palestinian Arabic")
    hint_number: int = Field(default=1, description="Which hint this is (1, 2, 3...)")
    points_deduction: float = Field(description="Points deducted for this hint")


class AdvanceRoundInput(_ToolInput):
    round_completed: int = Field(description="The round number just completed")
    feedback: str = Field(description="Encouraging feedback on the player's contribution")
    points_earned: float = Field(description="Points earned for this round")


class EndGameInput(_ToolInput):
    reason: Literal["completed", "quit", "time_up"] = Field(description="Why the game ended")
    final_message: str = Field(description="Celebratory final message in Palestinian Arabic")
    total_score: float = Field(description="The final total score")
    correct_answers: int = Field(description="Total correct answers")
    total_rounds: int = Field(description="Total rounds played")


class PresentOptionsInput(_ToolInput):
    options: list[str] = Field(min_length=2, max_length=6, description="Option texts without numbers")
    allow_hint: bool = Field(default=False, description="Show the hint button?")


TOOL_DEFINITIONS: dict[str, tuple[str, type[_ToolInput]]] = {
    CHECK_ANSWER: (
        "Evaluate the player's answer. Declare if it's correct or incorrect, "
        "give a brief explanation, and optionally share a fun fact.",
        CheckAnswerInput,
    ),
    GIVE_HINT: (
        "Give the player a hint. Hints are progressive (first vague, then more specific).",
        GiveHintInput,
    ),
    ADVANCE_ROUND: (
        "Move to the next round. Call once when the current round is finished.",
        AdvanceRoundInput,
    ),
    END_GAME: (
        "End the game when all rounds are done or the player wants to stop.",
        EndGameInput,
    ),
    PRESENT_OPTIONS: (
        "Show clickable options. The correct answer MUST be included. The UI adds numbers.",
        PresentOptionsInput,
    ),
}

TOOL_SETS: dict[str, tuple[str, ...]] = {
    "quiz": (CHECK_ANSWER, GIVE_HINT, END_GAME),
    "word": (CHECK_ANSWER, GIVE_HINT, END_GAME),
    "creative": (ADVANCE_ROUND, END_GAME),
    "explorer": (CHECK_ANSWER, GIVE_HINT, ADVANCE_ROUND, END_GAME),
}


def tool_names_for_game(config: GameConfig) -> list[str]:
    names = list(TOOL_SETS[config.tool_set])
    if config.has_options:
        names.append(PRESENT_OPTIONS)
    return names


def tool_schema(name: str) -> dict[str, Any]:
    """OpenAI function-tool definition for one tool."""
    description, model = TOOL_DEFINITIONS[name]
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": model.model_json_schema(by_alias=True),
        },
    }


def tools_for_game(config: GameConfig) -> list[dict[str, Any]]:
    return [tool_schema(name) for name in tool_names_for_game(config)]


def _inject_answer(options: list[str], answer: str, round_key: int) -> list[str]:
    if answer in options:
        return options
    # Deterministic position so replays show the same list.
    position = abs(round_key) % (len(options) + 1)
    logger.warning("present_options missing the answer; injected at position %d", position)
    return [*options[:position], answer, *options[position:]]


def execute_tool(
    name: str,
    arguments: dict[str, Any],
    target: City | None = None,
    round_key: int = 0,
) -> dict[str, Any]:
    """Run a tool call and return its output for the model and the client."""
    definition = TOOL_DEFINITIONS.get(name)
    if definition is None:
        logger.warning("model called unknown tool %r", name)
        return {"error": f"Unknown tool: {name}"}

    _, model = definition
    try:
        parsed = model.model_validate(arguments)
    except ValidationError as e:
        logger.warning("invalid arguments for tool %s: %s", name, e.errors(include_url=False))
        return {"error": f"Invalid arguments for {name}: {e.error_count()} problem(s)"}

    output = parsed.model_dump(by_alias=True, exclude_none=True)
    if isinstance(parsed, PresentOptionsInput):
        if target is not None:
            output["options"] = _inject_answer(parsed.options, target.name_ar, round_key)
        output["displayed"] = True
    elif isinstance(parsed, GiveHintInput) and target is not None:
        output["targetCityId"] = target.id
    return output
