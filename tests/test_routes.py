"""Tests for the FastAPI surface in backend/ (TestClient, stub LLM, temp data dir)."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from backend import deps
from backend.app import create_app
from falastin_games.llm import ChatCompletion, HttpChatLLM, LLMError, ToolCall
from falastin_games.orchestrator import TRANSPORT_ERROR_MESSAGE


class StubChatLLM:
    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.calls = 0

    async def __call__(self, stage, system, messages, tools) -> ChatCompletion:
        self.calls += 1
        if not self.responses:
            return ChatCompletion(text="🌟")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _client(data_dir: Path, llm=None) -> TestClient:
    return TestClient(create_app(data_dir=data_dir, llm=llm or StubChatLLM()))


def _lines(resp) -> list[dict]:
    return [json.loads(line) for line in resp.text.splitlines() if line.strip()]


def _chat_body(**overrides) -> dict:
    body = {
        "gameId": "riddles",
        "messages": [{"id": "1", "role": "user", "parts": [{"type": "text", "text": "يلا نلعب"}]}],
        "sessionSeed": 3,
    }
    body.update(overrides)
    return body


# ── health / settings / catalogue ──────────────────────────


def test_health(tmp_path):
    assert _client(tmp_path).get("/api/health").json() == {"status": "ok"}


def test_settings_hide_the_key(tmp_path, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-secret")
    data = _client(tmp_path).get("/api/settings").json()
    assert data["hasApiKey"] is True
    assert "sk-secret" not in json.dumps(data)


def test_list_games(tmp_path):
    games = _client(tmp_path).get("/api/games").json()
    assert len(games) == 6
    explorer = next(g for g in games if g["id"] == "city-explorer")
    assert explorer["pointsPerCorrect"] == 15
    assert explorer["rounds"] == 5


def test_unknown_game_404(tmp_path):
    assert _client(tmp_path).get("/api/games/chess").status_code == 404


# ── chat ───────────────────────────────────────────────────


def test_chat_streams_ndjson(tmp_path):
    llm = StubChatLLM(
        ChatCompletion(tool_calls=[ToolCall("c1", "give_hint", {"hint": "حلو", "pointsDeduction": 1})]),
        ChatCompletion(text="جرّب! 😊"),
    )
    resp = _client(tmp_path, llm).post("/api/games/chat", json=_chat_body())
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/x-ndjson")

    events = _lines(resp)
    assert [e["type"] for e in events] == ["start", "tool-result", "text-delta", "finish"]
    assert events[0]["roundKey"] == 3
    assert events[1]["toolName"] == "give_hint"
    assert events[1]["output"]["pointsDeduction"] == 1
    assert events[-1]["turn"]["role"] == "assistant"


def test_chat_missing_game_id(tmp_path):
    llm = StubChatLLM()
    body = _chat_body()
    del body["gameId"]
    resp = _client(tmp_path, llm).post("/api/games/chat", json=body)
    assert resp.status_code == 400
    assert resp.json()["field"] == "gameId"
    assert llm.calls == 0


def test_chat_empty_messages(tmp_path):
    resp = _client(tmp_path).post("/api/games/chat", json=_chat_body(messages=[]))
    assert resp.status_code == 400
    assert resp.json() == {"error": "At least one message is required", "field": "messages"}


def test_chat_transport_error_is_last_event(tmp_path):
    llm = StubChatLLM(LLMError("Cannot connect to LLM backend"))
    resp = _client(tmp_path, llm).post("/api/games/chat", json=_chat_body())
    assert resp.status_code == 200
    events = _lines(resp)
    assert events[0]["type"] == "start"
    assert events[-1] == {"type": "error", "message": TRANSPORT_ERROR_MESSAGE}


def test_chat_without_api_key(tmp_path, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    client = TestClient(create_app(data_dir=tmp_path))
    resp = client.post("/api/games/chat", json=_chat_body())
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Missing OpenAI API key."


def test_invalid_request_is_400_even_without_api_key(tmp_path, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    client = TestClient(create_app(data_dir=tmp_path))
    body = _chat_body()
    del body["gameId"]
    resp = client.post("/api/games/chat", json=body)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Game ID is required", "field": "gameId"}


@pytest.mark.parametrize(
    "upstream",
    [[], {"choices": ["x"]}, {"choices": [{"message": {"content": "", "tool_calls": ["bad"]}}]}],
)
def test_wrongly_shaped_upstream_reply_ends_with_error_event(tmp_path, upstream):
    reply = MagicMock()
    reply.json.return_value = upstream
    reply.raise_for_status = MagicMock()
    llm = HttpChatLLM(base_url="http://localhost:8080", api_key="k")
    with patch("httpx.AsyncClient.post", AsyncMock(return_value=reply)):
        resp = _client(tmp_path, llm).post("/api/games/chat", json=_chat_body())
    assert resp.status_code == 200
    events = _lines(resp)
    assert events[0]["type"] == "start"
    assert events[-1] == {"type": "error", "message": TRANSPORT_ERROR_MESSAGE}


# ── game sessions ──────────────────────────────────────────


def _tool_result(client, game_id, tool_name, output, profile_id="p1"):
    return client.post(
        f"/api/games/{game_id}/tool-results",
        params={"profile_id": profile_id},
        json={"toolName": tool_name, "output": output},
    ).json()


def test_state_starts_fresh(tmp_path):
    data = _client(tmp_path).get("/api/games/riddles/state", params={"profile_id": "p1"}).json()
    assert data["state"]["round"] == 1
    assert data["state"]["status"] == "playing"
    assert data["summary"] is None


def test_state_unknown_game(tmp_path):
    assert _client(tmp_path).get("/api/games/chess/state").status_code == 404


def test_tool_results_update_state(tmp_path):
    client = _client(tmp_path)
    data = _tool_result(client, "riddles", "check_answer", {"correct": True, "explanation": "صح", "pointsEarned": 10})
    assert data["applied"] is True
    assert data["state"]["score"] == 10
    assert data["state"]["round"] == 2

    ignored = _tool_result(client, "riddles", "present_options", {"options": ["a", "b"]})
    assert ignored["applied"] is False
    assert ignored["state"]["score"] == 10


def test_state_survives_restart(tmp_path):
    _tool_result(_client(tmp_path), "riddles", "check_answer", {"correct": True, "explanation": "صح", "pointsEarned": 10})
    data = _client(tmp_path).get("/api/games/riddles/state", params={"profile_id": "p1"}).json()
    assert data["state"]["score"] == 10


def test_finished_game_stays_finished_until_reset(tmp_path):
    client = _client(tmp_path)
    ended = _tool_result(client, "riddles", "end_game", {"reason": "quit"})
    assert ended["state"]["status"] == "finished"
    assert ended["summary"]["bonusEarned"] is False

    after = _tool_result(client, "riddles", "check_answer", {"correct": True, "explanation": "صح"})
    assert after["applied"] is False
    state = client.get("/api/games/riddles/state", params={"profile_id": "p1"}).json()
    assert state["state"]["status"] == "finished"
    assert state["summary"]["gameId"] == "riddles"

    reset = client.post(
        "/api/games/riddles/reset", params={"profile_id": "p1"}, json={"difficulty": "hard"}
    ).json()
    assert reset["state"]["status"] == "playing"
    assert reset["state"]["score"] == 0


def test_reset_without_body(tmp_path):
    resp = _client(tmp_path).post("/api/games/palestine-quiz/reset")
    assert resp.status_code == 200
    assert resp.json()["state"]["round"] == 1


def test_tool_results_credit_rewards_and_discover_cities(tmp_path):
    client = _client(tmp_path)
    data = _tool_result(
        client, "city-explorer", "check_answer",
        {"correct": True, "explanation": "صح! هي يافا 🍊", "pointsEarned": 15},
    )
    assert data["discoveredCityId"] == "jaffa"
    assert data["rewards"]["points"] == 15

    assert client.get("/api/profiles/p1/discovered-cities").json()["ids"] == ["jaffa"]
    assert client.get("/api/profiles/p1/rewards").json()["points"] == 15


def test_live_sessions_are_bounded(tmp_path, monkeypatch):
    monkeypatch.setattr(deps, "MAX_LIVE_SESSIONS", 2)
    app = create_app(data_dir=tmp_path, llm=StubChatLLM())
    client = TestClient(app)
    for profile in ("a", "b", "c"):
        client.get("/api/games/riddles/state", params={"profile_id": profile})
    assert list(app.state.sessions) == [
        "falastin_game_state_b_riddles",
        "falastin_game_state_c_riddles",
    ]


# ── profiles ───────────────────────────────────────────────


def test_discovered_cities(tmp_path):
    client = _client(tmp_path)
    url = "/api/profiles/p1/discovered-cities"
    assert client.get(url).json() == {"ids": [], "total": 8, "allDiscovered": False}

    assert client.post(url, json={"cityId": "gaza"}).json()["ids"] == ["gaza"]
    assert client.post(url, json={"cityId": "atlantis"}).status_code == 404
    assert client.get(url).json()["ids"] == ["gaza"]

    assert client.delete(url).json()["ids"] == []


def test_chat_context_topics(tmp_path):
    client = _client(tmp_path)
    url = "/api/profiles/p1/chat-context"
    client.post(url, json={"topic": "الزيتون"})
    data = client.post(url, json={"topic": "البحر"}).json()
    assert data["recentTopics"] == ["البحر", "الزيتون"]
    assert client.get(url).json()["recentTopics"] == ["البحر", "الزيتون"]
