"""History compaction for completed rounds.

Everything up to and including the last round marker is replaced with one
synthetic user turn. The per-round facts the model needs (target city,
excluded cities) are re-injected by the system prompt, so the transcript of
finished rounds only costs tokens. The round in progress is never touched.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from falastin_games.models import TextPart, Turn
from falastin_games.scanner import (
    SUMMARY_ROUNDS_KEY,
    count_completed_rounds,
    last_round_marker_index,
)

logger = logging.getLogger(__name__)

SUMMARY_TURN_ID = "round-summary"
NO_DISCOVERIES = "لسا ما في"


def summary_text(current_round_number: int, discovered_names: Sequence[str]) -> str:
    names = "، ".join(discovered_names) if discovered_names else NO_DISCOVERIES
    return (
        f"[Game progress] We are now on round {current_round_number + 1}. "
        f"Cities discovered so far: {names}. "
        "Continue the game from here."
    )


def compact(
    turns: Sequence[Turn], current_round_number: int, discovered_names: Sequence[str]
) -> list[Turn]:
    """Collapse completed rounds into a single summary turn.

    ``current_round_number`` is zero-based (the completed-round count); the
    summary states the one-based round being played.
    """
    marker = last_round_marker_index(turns)
    if marker is None:
        return list(turns)

    head = turns[: marker + 1]
    summary = Turn(
        id=SUMMARY_TURN_ID,
        role="user",
        parts=[TextPart(text=summary_text(current_round_number, discovered_names))],
        metadata={
            SUMMARY_ROUNDS_KEY: count_completed_rounds(head),
            "discoveredNames": list(discovered_names),
        },
    )
    logger.debug(
        "compacted %d turns into round summary (round=%d)", len(head), current_round_number + 1
    )
    return [summary, *turns[marker + 1 :]]
