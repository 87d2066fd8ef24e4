"""Game session state machine.

    playing ──(game ended)──▶ finished
       ▲                         │
       └────────(reset)──────────┘

A session owns one ``GameState`` and persists it under
``falastin_game_state_<profile>_<game>`` after every change. Resuming picks
the snapshot back up only while it is still ``playing``; a finished game
always starts over. Persistence failures are logged and the session carries
on in memory.

Applied results also feed the profile's rewards wallet and, in the city
explorer, its discovered cities.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from falastin_games.data.cities import CITIES
from falastin_games.data.games import get_game_config
from falastin_games.models import Difficulty, GameSessionSummary, GameState
from falastin_games.reconciler import AnswerChecked, ReconcileResult, RoundAdvanced, apply_tool_result
from falastin_games.scanner import EntityDetector, default_detector
from falastin_games.storage import (
    DiscoveredCities,
    KeyValueStore,
    RewardsStore,
    safe_read,
    safe_write,
)

logger = logging.getLogger(__name__)

STATE_KEY_PREFIX = "falastin_game_state"


def state_key(game_id: str, profile_id: str | None = None) -> str:
    if profile_id:
        return f"{STATE_KEY_PREFIX}_{profile_id}_{game_id}"
    return f"{STATE_KEY_PREFIX}_{game_id}"


def _now_ms() -> int:
    return int(time.time() * 1000)


class GameSession:
    def __init__(
        self,
        game_id: str,
        store: KeyValueStore,
        profile_id: str | None = None,
        difficulty: Difficulty | None = None,
        clock: Callable[[], int] | None = None,
        detector: EntityDetector | None = None,
    ) -> None:
        config = get_game_config(game_id)
        if config is None:
            raise ValueError(f"Unknown game: {game_id}")
        self.config = config
        self.profile_id = profile_id
        self.key = state_key(game_id, profile_id)
        self._store = store
        self._clock = clock or _now_ms
        self._difficulty = difficulty
        self.state = self._fresh_state(difficulty)
        self.summary: GameSessionSummary | None = None
        self._detector = detector or default_detector()
        self.discovered_city_id: str | None = None

    def _fresh_state(self, difficulty: Difficulty | None) -> GameState:
        return GameState(
            game_id=self.config.id,
            total_rounds=self.config.rounds,
            difficulty=difficulty if self.config.has_difficulty else None,
            started_at=self._clock(),
        )

    def _persist(self) -> None:
        safe_write(self._store, self.key, self.state.to_json_dict())

    def _forget(self) -> None:
        try:
            self._store.delete(self.key)
        except OSError as e:
            logger.warning("could not delete %s: %s", self.key, e)

    @property
    def is_finished(self) -> bool:
        return self.state.status == "finished"

    def resume(self) -> GameState:
        """Continue a saved game that is still in progress, or start a new one."""
        stored = safe_read(self._store, self.key)
        saved: GameState | None = None
        if isinstance(stored, dict):
            try:
                saved = GameState.model_validate(stored)
            except ValidationError:
                logger.warning("discarding malformed game state at %s", self.key)

        if saved is not None and saved.status == "playing" and saved.game_id == self.config.id:
            self.state = saved
            logger.debug("resumed %s at round %d", self.key, saved.round)
        else:
            self.state = self._fresh_state(self._difficulty)
        self.summary = None
        self._persist()
        return self.state

    def reset(self, difficulty: Difficulty | None = None) -> GameState:
        if difficulty is not None:
            self._difficulty = difficulty
        self._forget()
        self.state = self._fresh_state(self._difficulty)
        self.summary = None
        self._persist()
        return self.state

    def _discovered_city(self, result: ReconcileResult, output: Any) -> str | None:
        """City named by a correct answer or a round's closing feedback (explorer only)."""
        if self.config.tool_set != "explorer" or not isinstance(output, dict):
            return None
        event = result.event
        if isinstance(event, AnswerChecked) and event.correct:
            text = output.get("explanation")
        elif isinstance(event, RoundAdvanced):
            text = output.get("feedback")
        else:
            return None
        found = self._detector(text) if isinstance(text, str) else set()
        return next((city.id for city in CITIES if city.id in found), None)

    def _credit_rewards(self, before: GameState, result: ReconcileResult) -> None:
        rewards = RewardsStore(self._store, self.profile_id)
        gained = result.state.score - before.score
        if gained > 0:
            kind = "correct" if isinstance(result.event, AnswerChecked) else "round"
            rewards.credit(gained, f"game_{kind}_{self.config.id}")
        summary = result.summary
        if summary is not None and (summary.bonus_earned or summary.sticker_unlocked):
            rewards.credit(
                self.config.bonus_points if summary.bonus_earned else 0,
                f"game_bonus_{self.config.id}",
                sticker=summary.sticker_unlocked,
            )

    def process_tool_result(self, tool_name: str, output: Any) -> ReconcileResult:
        """Apply one tool result and write the new state through.

        Score gained is credited to the profile's rewards wallet, plus the
        game's bonus when the finished game earned it. In the city explorer a
        correct answer or a round's feedback that names a city marks it
        discovered for the profile.
        """
        self.discovered_city_id = None
        before = self.state
        result = apply_tool_result(before, tool_name, output, now=self._clock())
        if not result.changed:
            return result

        self.state = result.state
        self._credit_rewards(before, result)
        city_id = self._discovered_city(result, output)
        if city_id is not None:
            DiscoveredCities(self._store, self.profile_id).add(city_id)
            self.discovered_city_id = city_id
            logger.debug("%s discovered %s", self.key, city_id)

        if result.summary is not None:
            self.summary = result.summary
            self._forget()
            logger.info(
                "game %s finished: score=%d correct=%d/%d",
                self.config.id, self.summary.score,
                self.summary.correct_answers, self.summary.total_rounds,
            )
        else:
            self._persist()
        return result
