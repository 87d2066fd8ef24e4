"""Key-value persistence.

Stands in for the browser's localStorage: string keys, JSON-compatible values.
All state is stored in flat JSON files under a configurable base directory,
one file per key. There is no database; reads and writes go through plain
helpers that load and dump JSON.

    {base}/
      falastin_game_state_<profile>_<game>.json   ← GameState snapshot
      falastin_discovered_cities_<profile>.json   ← list of city ids
      falastin_kids_chat_context_<profile>.json   ← recent chat topics
      falastin_kids_rewards_<profile>.json        ← points wallet

Durability is best effort. Callers that write treat failures as degraded
durability, not as errors: they log and carry on in memory.
"""

from __future__ import annotations

import json
import logging
import re
import time
from pathlib import Path
from typing import Any, Protocol

from falastin_games.data.cities import CITIES
from falastin_games.models import KidsChatContext, RewardState

logger = logging.getLogger(__name__)

# Errors a failed write can raise: disk/permission problems and values that
# are not JSON-serialisable.
WRITE_ERRORS = (OSError, TypeError, ValueError)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any | None: ...
    def set(self, key: str, value: Any) -> None: ...
    def delete(self, key: str) -> None: ...


class JsonFileStore:
    def __init__(self, base_path: Path) -> None:
        self._base = base_path
        self._base.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self._base / f"{safe}.json"

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.is_file():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def set(self, key: str, value: Any) -> None:
        self._path(key).write_text(
            json.dumps(value, indent=2, ensure_ascii=False), encoding="utf-8"
        )

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class MemoryStore:
    """In-process store; values go through JSON so they behave like stored ones."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value, ensure_ascii=False)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


def profile_key(prefix: str, profile_id: str | None) -> str:
    return f"{prefix}_{profile_id}" if profile_id else prefix


def safe_write(store: KeyValueStore, key: str, value: Any) -> bool:
    """Write, logging instead of raising. Returns False when the write failed."""
    try:
        store.set(key, value)
    except WRITE_ERRORS as e:
        logger.warning("could not persist %s: %s", key, e)
        return False
    return True


def safe_read(store: KeyValueStore, key: str) -> Any | None:
    try:
        return store.get(key)
    except (OSError, ValueError) as e:
        logger.warning("could not read %s: %s", key, e)
        return None


# ---------------------------------------------------------------------------
# Discovered cities (per profile, across game sessions)
# ---------------------------------------------------------------------------

DISCOVERED_CITIES_KEY = "falastin_discovered_cities"


class DiscoveredCities:
    """City ids a profile has already found. Cities don't repeat until all are found."""

    def __init__(self, store: KeyValueStore, profile_id: str | None = None) -> None:
        self._store = store
        self._key = profile_key(DISCOVERED_CITIES_KEY, profile_id)
        stored = safe_read(store, self._key)
        self._ids: list[str] = (
            [i for i in stored if isinstance(i, str)] if isinstance(stored, list) else []
        )

    @property
    def ids(self) -> list[str]:
        return list(self._ids)

    @property
    def total(self) -> int:
        return len(CITIES)

    @property
    def all_discovered(self) -> bool:
        return len(self._ids) >= self.total

    def add(self, city_id: str) -> list[str]:
        if city_id not in self._ids:
            self._ids.append(city_id)
            safe_write(self._store, self._key, self._ids)
        return self.ids

    def reset(self) -> None:
        self._ids = []
        safe_write(self._store, self._key, [])


# ---------------------------------------------------------------------------
# Recent chat topics (fed into the prompt's chat-context section)
# ---------------------------------------------------------------------------

CHAT_CONTEXT_KEY = "falastin_kids_chat_context"
MAX_TOPICS = 5


class ChatContextStore:
    def __init__(self, store: KeyValueStore, profile_id: str | None = None) -> None:
        self._store = store
        self._key = profile_key(CHAT_CONTEXT_KEY, profile_id)

    def get(self) -> KidsChatContext:
        stored = safe_read(self._store, self._key)
        if isinstance(stored, dict):
            try:
                return KidsChatContext.model_validate(stored)
            except ValueError:
                logger.warning("discarding malformed chat context at %s", self._key)
        return KidsChatContext()

    def add_topic(self, topic: str) -> KidsChatContext:
        """Move ``topic`` to the front, keeping the five most recent."""
        current = self.get()
        topics = [topic, *(t for t in current.recent_topics if t != topic)][:MAX_TOPICS]
        context = KidsChatContext(recent_topics=topics, last_updated=int(time.time() * 1000))
        safe_write(self._store, self._key, context.to_json_dict())
        return context


# ---------------------------------------------------------------------------
# Rewards wallet (per profile, across game sessions)
# ---------------------------------------------------------------------------

REWARDS_KEY = "falastin_kids_rewards"

# (level id, minimum points), highest first
REWARD_LEVELS: list[tuple[str, int]] = [
    ("knight", 301),
    ("hero", 151),
    ("friend", 51),
    ("explorer", 0),
]


def level_for_points(points: int) -> str:
    return next(level for level, minimum in REWARD_LEVELS if points >= minimum)


class RewardsStore:
    """Points, level and sticker count. Games credit it as results come in."""

    def __init__(self, store: KeyValueStore, profile_id: str | None = None) -> None:
        self._store = store
        self._key = profile_key(REWARDS_KEY, profile_id)

    def get(self) -> RewardState:
        stored = safe_read(self._store, self._key)
        if isinstance(stored, dict):
            try:
                return RewardState.model_validate(stored)
            except ValueError:
                logger.warning("discarding malformed rewards at %s", self._key)
        return RewardState()

    def credit(self, points: int, reason: str, sticker: bool = False) -> RewardState:
        current = self.get()
        if points <= 0 and not sticker:
            return current
        total = current.points + max(0, points)
        rewards = RewardState(
            points=total,
            level=level_for_points(total),
            stickers_earned=current.stickers_earned + (1 if sticker else 0),
            last_reward_at=int(time.time() * 1000),
        )
        safe_write(self._store, self._key, rewards.to_json_dict())
        logger.debug("credited %d (%s) to %s: total=%d", points, reason, self._key, total)
        return rewards
