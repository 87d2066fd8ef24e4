"""Deterministic round seeding.

The client picks a session seed once at game start and sends it with every
request. Adding the completed-round count gives the round key, and the round
key alone (with the excluded set) decides which city the round is about, so
replaying the same history always lands on the same city while different
sessions diverge.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from dataclasses import dataclass
from typing import Protocol, TypeVar

from falastin_games.data.cities import CITIES
from falastin_games.models import City


class HasId(Protocol):
    @property
    def id(self) -> str: ...


E = TypeVar("E", bound=HasId)


def compute_round_key(session_seed: int, round_number: int) -> int:
    return session_seed + round_number


def select_entity(
    round_key: int, excluded_ids: Collection[str], pool: Sequence[E]
) -> E | None:
    """Pick from the pool minus the excluded ids; None when nothing is left."""
    candidates = [entity for entity in pool if entity.id not in excluded_ids]
    if not candidates:
        return None
    return candidates[abs(round_key) % len(candidates)]


@dataclass(frozen=True)
class RoundCity:
    city: City
    is_review_mode: bool


def select_city_for_round(round_key: int, excluded_ids: Collection[str]) -> RoundCity:
    """City for the round; once every city is discovered, replay from the full list."""
    city = select_entity(round_key, excluded_ids, CITIES)
    if city is not None:
        return RoundCity(city=city, is_review_mode=False)
    return RoundCity(city=select_entity(round_key, (), CITIES), is_review_mode=True)
