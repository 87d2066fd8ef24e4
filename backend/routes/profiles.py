"""Per-profile progress: discovered cities, rewards and recent chat topics."""

from fastapi import APIRouter, Depends, HTTPException

from falastin_games.data.cities import CITY_BY_ID
from falastin_games.storage import ChatContextStore, DiscoveredCities, KeyValueStore, RewardsStore

from backend.deps import get_store

from .models import AddCityBody, AddTopicBody

router = APIRouter()


def _discovered_payload(discovered: DiscoveredCities) -> dict:
    return {
        "ids": discovered.ids,
        "total": discovered.total,
        "allDiscovered": discovered.all_discovered,
    }


@router.get("/profiles/{profile_id}/discovered-cities")
async def get_discovered(profile_id: str, store: KeyValueStore = Depends(get_store)):
    """City ids this profile has found so far."""
    return _discovered_payload(DiscoveredCities(store, profile_id))


@router.post("/profiles/{profile_id}/discovered-cities")
async def add_discovered(
    profile_id: str, body: AddCityBody, store: KeyValueStore = Depends(get_store)
):
    if body.city_id not in CITY_BY_ID:
        raise HTTPException(404, "City not found")
    discovered = DiscoveredCities(store, profile_id)
    discovered.add(body.city_id)
    return _discovered_payload(discovered)


@router.delete("/profiles/{profile_id}/discovered-cities")
async def reset_discovered(profile_id: str, store: KeyValueStore = Depends(get_store)):
    """Forget every discovered city so the explorer starts from the full list."""
    discovered = DiscoveredCities(store, profile_id)
    discovered.reset()
    return _discovered_payload(discovered)


@router.get("/profiles/{profile_id}/rewards")
async def get_rewards(profile_id: str, store: KeyValueStore = Depends(get_store)):
    """Points, level and stickers earned across all games."""
    return RewardsStore(store, profile_id).get().to_json_dict()


@router.get("/profiles/{profile_id}/chat-context")
async def get_chat_context(profile_id: str, store: KeyValueStore = Depends(get_store)):
    return ChatContextStore(store, profile_id).get().to_json_dict()


@router.post("/profiles/{profile_id}/chat-context")
async def add_chat_topic(
    profile_id: str, body: AddTopicBody, store: KeyValueStore = Depends(get_store)
):
    """Remember a topic the child talked about (five most recent are kept)."""
    return ChatContextStore(store, profile_id).add_topic(body.topic).to_json_dict()
