"""Conversation history scanner.

Pure folds over the turn log. Nothing here keeps state between calls; round
progress and the set of used cities are recomputed from history on every
request.

Round markers: an assistant turn counts as one completed round when any of its
resolved tool invocations is named ``advance_round`` or has an output carrying
``roundCompleted``. Several matching parts in one turn still count once.

Round-summary turns written by the compactor carry the number of rounds they
replaced in ``metadata["compactedRounds"]`` so the count survives compaction.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Protocol

from falastin_games.data.cities import CITIES
from falastin_games.models import City, Turn

ROUND_ADVANCE_TOOL = "advance_round"
ROUND_MARKER_FIELD = "roundCompleted"
SUMMARY_ROUNDS_KEY = "compactedRounds"

# Tool output fields that name the city a round was about.
ENTITY_OUTPUT_FIELDS = ("explanation", "feedback")


# ---------------------------------------------------------------------------
# Round markers
# ---------------------------------------------------------------------------

def is_round_marker_turn(turn: Turn) -> bool:
    if turn.role != "assistant":
        return False
    for part in turn.tool_invocations():
        if not part.resolved:
            continue
        if part.tool_name == ROUND_ADVANCE_TOOL:
            return True
        if isinstance(part.output, dict) and ROUND_MARKER_FIELD in part.output:
            return True
    return False


def summary_rounds(turn: Turn) -> int:
    """Rounds folded into a compactor summary turn; 0 for ordinary turns."""
    value = turn.metadata.get(SUMMARY_ROUNDS_KEY)
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return 0


def is_summary_turn(turn: Turn) -> bool:
    return SUMMARY_ROUNDS_KEY in turn.metadata


def count_completed_rounds(turns: Sequence[Turn]) -> int:
    count = 0
    for turn in turns:
        if is_round_marker_turn(turn):
            count += 1
        else:
            count += summary_rounds(turn)
    return count


def last_round_marker_index(turns: Sequence[Turn]) -> int | None:
    """Index of the most recent assistant turn holding a round marker."""
    for i in range(len(turns) - 1, -1, -1):
        if is_round_marker_turn(turns[i]):
            return i
    return None


def completed_rounds_prefix(turns: Sequence[Turn]) -> list[Turn]:
    """Turns up to and including the last round marker (or summary turn).

    Everything after belongs to the round in progress.
    """
    end = -1
    for i, turn in enumerate(turns):
        if is_round_marker_turn(turn) or is_summary_turn(turn):
            end = i
    return list(turns[: end + 1])


# ---------------------------------------------------------------------------
# Entity detection
# ---------------------------------------------------------------------------

class EntityDetector(Protocol):
    def __call__(self, text: str) -> set[str]: ...


class GazetteerDetector:
    """Finds city ids by name lookup.

    Arabic names match as substrings so attached prefixes ("بنابلس",
    "والقدس") are still found. Latin names match on word boundaries,
    case-insensitively, so "acre" does not fire inside "acres".

    Oblique mentions ("the city of knafeh") are not detected; callers must
    tolerate false negatives.
    """

    def __init__(self, cities: Iterable[City] = CITIES) -> None:
        self._arabic: list[tuple[str, str]] = []
        self._latin: list[tuple[re.Pattern[str], str]] = []
        for city in cities:
            for name in city.names:
                if name.isascii():
                    pattern = re.compile(rf"\b{re.escape(name)}\b", re.IGNORECASE)
                    self._latin.append((pattern, city.id))
                else:
                    self._arabic.append((name, city.id))

    def __call__(self, text: str) -> set[str]:
        if not text:
            return set()
        found = {city_id for name, city_id in self._arabic if name in text}
        found.update(city_id for pattern, city_id in self._latin if pattern.search(text))
        return found


_default_detector: GazetteerDetector | None = None


def default_detector() -> GazetteerDetector:
    global _default_detector
    if _default_detector is None:
        _default_detector = GazetteerDetector()
    return _default_detector


def _turn_texts(turn: Turn) -> list[str]:
    texts = [turn.text()]
    for part in turn.tool_invocations():
        if not isinstance(part.output, dict):
            continue
        for field in ENTITY_OUTPUT_FIELDS:
            value = part.output.get(field)
            if isinstance(value, str):
                texts.append(value)
    return texts


def extract_used_entity_ids(
    turns: Sequence[Turn],
    detector: EntityDetector | None = None,
    persisted: Iterable[str] = (),
) -> set[str]:
    """Union of city ids mentioned by the assistant and ids persisted earlier."""
    detect = detector or default_detector()
    used = set(persisted)
    for turn in turns:
        if turn.role != "assistant" and not is_summary_turn(turn):
            continue
        for text in _turn_texts(turn):
            used |= detect(text)
    return used
