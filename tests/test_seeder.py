"""Tests for falastin_games.seeder — round keys and deterministic selection."""

from dataclasses import dataclass

from falastin_games.data.cities import CITIES
from falastin_games.seeder import compute_round_key, select_city_for_round, select_entity


@dataclass(frozen=True)
class Item:
    id: str


POOL = [Item(f"c{i}") for i in range(10)]


def test_round_key_is_seed_plus_round():
    assert compute_round_key(7, 0) == 7
    assert compute_round_key(7, 3) == 10
    assert compute_round_key(0, 0) == 0


def test_empty_history_seed_7_picks_index_7():
    round_key = compute_round_key(7, 0)
    assert select_entity(round_key, set(), POOL) == POOL[7]


def test_key_wraps_around_pool():
    assert select_entity(23, set(), POOL) == POOL[3]


def test_negative_key_uses_absolute_value():
    assert select_entity(-4, set(), POOL) == POOL[4]


def test_excluded_ids_are_skipped():
    # Candidates are c1..c9; 0 % 9 → c1
    assert select_entity(0, {"c0"}, POOL) == POOL[1]


def test_all_excluded_returns_none():
    assert select_entity(5, {item.id for item in POOL}, POOL) is None


def test_empty_pool_returns_none():
    assert select_entity(5, set(), []) is None


def test_selection_is_deterministic():
    picks = {select_entity(12345, {"c2", "c7"}, POOL) for _ in range(20)}
    assert len(picks) == 1


def test_different_seeds_diverge():
    picks = {select_entity(compute_round_key(seed, 0), set(), POOL).id for seed in range(10)}
    assert len(picks) == 10


def test_city_for_round_not_review():
    selection = select_city_for_round(2, {"jerusalem"})
    assert not selection.is_review_mode
    assert selection.city.id != "jerusalem"


def test_city_for_round_review_mode_when_all_found():
    selection = select_city_for_round(10, {city.id for city in CITIES})
    assert selection.is_review_mode
    assert selection.city == CITIES[10 % len(CITIES)]
