"""Tool result reconciler.

Turns tool results emitted by the model into GameState transitions. Results
are decoded at the boundary into one of a few tagged events (name match first,
then output-shape heuristics); anything that does not decode cleanly becomes
``Ignored`` and leaves the state alone. A misbehaving model can stall scoring
but can never wedge a session.

Transitions (only while status == "playing"):
  AnswerChecked(correct)   score += round(points × multiplier), correct += 1, round += 1
  AnswerChecked(incorrect) wrong += 1, round += 1
  HintGiven                hints += 1, score = max(0, score − deduction)
  RoundAdvanced            score += points, round += 1
  GameEnded                status → finished, finishedAt = now, summary emitted

Round never exceeds totalRounds + 1. Once finished, every result is ignored.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Any

from falastin_games.data.games import get_game_config
from falastin_games.models import GameSessionSummary, GameState
from falastin_games.tools import ADVANCE_ROUND, CHECK_ANSWER, END_GAME, GIVE_HINT

logger = logging.getLogger(__name__)

DIFFICULTY_MULTIPLIERS: dict[str, float] = {"easy": 1, "medium": 1.5, "hard": 2}
DEFAULT_HINT_DEDUCTION = 2
DEFAULT_POINTS_PER_CORRECT = 10
BONUS_THRESHOLD = 0.7


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AnswerChecked:
    correct: bool
    points_earned: float | None = None


@dataclass(frozen=True)
class HintGiven:
    points_deduction: float | None = None


@dataclass(frozen=True)
class RoundAdvanced:
    points_earned: float | None = None


@dataclass(frozen=True)
class GameEnded:
    reason: str = "completed"


@dataclass(frozen=True)
class Ignored:
    reason: str


ToolEvent = AnswerChecked | HintGiven | RoundAdvanced | GameEnded | Ignored


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def _kind_from_shape(output: dict[str, Any]) -> str | None:
    """Guess the tool from its output when the name is not one of ours."""
    if "roundCompleted" in output:
        return ADVANCE_ROUND
    if isinstance(output.get("correct"), bool) and "explanation" in output:
        return CHECK_ANSWER
    if "hintNumber" in output or ("hint" in output and "pointsDeduction" in output):
        return GIVE_HINT
    if "finalMessage" in output and "reason" in output:
        return END_GAME
    return None


def classify_tool_result(tool_name: str, output: Any) -> ToolEvent:
    if not isinstance(output, dict):
        return Ignored(f"{tool_name}: output is not an object")
    if "error" in output:
        return Ignored(f"{tool_name}: tool reported an error")

    if tool_name in (CHECK_ANSWER, GIVE_HINT, ADVANCE_ROUND, END_GAME):
        kind = tool_name
    else:
        kind = _kind_from_shape(output)
        if kind is None:
            return Ignored(f"unrecognized tool {tool_name!r}")

    if kind == CHECK_ANSWER:
        correct = output.get("correct")
        if not isinstance(correct, bool):
            return Ignored("check_answer without a boolean 'correct'")
        return AnswerChecked(correct=correct, points_earned=_number(output.get("pointsEarned")))
    if kind == GIVE_HINT:
        return HintGiven(points_deduction=_number(output.get("pointsDeduction")))
    if kind == ADVANCE_ROUND:
        return RoundAdvanced(points_earned=_number(output.get("pointsEarned")))
    reason = output.get("reason")
    return GameEnded(reason=reason if isinstance(reason, str) else "completed")


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReconcileResult:
    state: GameState
    event: ToolEvent
    summary: GameSessionSummary | None = None

    @property
    def changed(self) -> bool:
        return not isinstance(self.event, Ignored)


def difficulty_multiplier(state: GameState) -> float:
    return DIFFICULTY_MULTIPLIERS.get(state.difficulty or "", 1)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _next_round(state: GameState) -> int:
    return min(state.round + 1, state.total_rounds + 1)


def _non_negative(value: float | None, default: float) -> float:
    if value is None:
        return default
    return max(0.0, value)


def build_summary(state: GameState) -> GameSessionSummary:
    ratio = state.correct_answers / state.total_rounds if state.total_rounds > 0 else 0
    earned = ratio >= BONUS_THRESHOLD
    return GameSessionSummary(
        game_id=state.game_id,
        score=state.score,
        correct_answers=state.correct_answers,
        total_rounds=state.total_rounds,
        hints_used=state.hints_used,
        difficulty=state.difficulty,
        duration=max(0, (state.finished_at or state.started_at) - state.started_at),
        bonus_earned=earned,
        sticker_unlocked=earned,
    )


def apply_event(state: GameState, event: ToolEvent, now: int | None = None) -> ReconcileResult:
    if isinstance(event, Ignored):
        return ReconcileResult(state=state, event=event)
    if state.status != "playing":
        return ReconcileResult(state=state, event=Ignored("game already finished"))

    if isinstance(event, AnswerChecked):
        if event.correct:
            config = get_game_config(state.game_id)
            default = config.points_per_correct if config else DEFAULT_POINTS_PER_CORRECT
            base = _non_negative(event.points_earned, default)
            gained = _round_half_up(base * difficulty_multiplier(state))
            new_state = state.model_copy(update={
                "score": state.score + gained,
                "correct_answers": state.correct_answers + 1,
                "round": _next_round(state),
            })
        else:
            new_state = state.model_copy(update={
                "wrong_answers": state.wrong_answers + 1,
                "round": _next_round(state),
            })
        return ReconcileResult(state=new_state, event=event)

    if isinstance(event, HintGiven):
        deduction = _round_half_up(_non_negative(event.points_deduction, DEFAULT_HINT_DEDUCTION))
        new_state = state.model_copy(update={
            "hints_used": state.hints_used + 1,
            "score": max(0, state.score - deduction),
        })
        return ReconcileResult(state=new_state, event=event)

    if isinstance(event, RoundAdvanced):
        gained = _round_half_up(_non_negative(event.points_earned, 0))
        new_state = state.model_copy(update={
            "score": state.score + gained,
            "round": _next_round(state),
        })
        return ReconcileResult(state=new_state, event=event)

    finished_at = now if now is not None else int(time.time() * 1000)
    new_state = state.model_copy(update={"status": "finished", "finished_at": finished_at})
    return ReconcileResult(state=new_state, event=event, summary=build_summary(new_state))


def apply_tool_result(
    state: GameState, tool_name: str, output: Any, now: int | None = None
) -> ReconcileResult:
    """Decode one tool result and apply it. Never raises on model output."""
    event = classify_tool_result(tool_name, output)
    result = apply_event(state, event, now=now)
    if isinstance(result.event, Ignored):
        logger.debug("tool result ignored: %s", result.event.reason)
    else:
        logger.debug(
            "tool %s applied: score=%d round=%d status=%s",
            tool_name, result.state.score, result.state.round, result.state.status,
        )
    return result
