"""Tests for falastin_games.llm — HttpChatLLM and EchoChatLLM."""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from falastin_games.llm import ChatCompletion, EchoChatLLM, HttpChatLLM, LLMError, ToolCall

SYSTEM = "You are Medhat!"
MESSAGES = [{"role": "user", "content": "مرحبا"}]
TOOLS = [{"type": "function", "function": {"name": "give_hint", "parameters": {}}}]


# ---------------------------------------------------------------------------
# EchoChatLLM
# ---------------------------------------------------------------------------

class TestEchoChatLLM:
    async def test_returns_last_user_message(self) -> None:
        llm = EchoChatLLM()
        messages = [
            {"role": "user", "content": "first"},
            {"role": "assistant", "content": "reply"},
            {"role": "user", "content": "second"},
        ]
        result = await llm("game:1", SYSTEM, messages, TOOLS)
        assert result == ChatCompletion(text="second")

    async def test_never_calls_tools(self) -> None:
        result = await EchoChatLLM()("game:1", SYSTEM, MESSAGES, TOOLS)
        assert result.tool_calls == []

    async def test_no_user_message(self) -> None:
        assert await EchoChatLLM()("game:1", SYSTEM, [], TOOLS) == ChatCompletion()


# ---------------------------------------------------------------------------
# HttpChatLLM
# ---------------------------------------------------------------------------

def _mock_response(body: object, status: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body
    resp.raise_for_status = MagicMock(
        side_effect=None if status < 400 else httpx.HTTPStatusError(
            "", request=MagicMock(), response=resp
        )
    )
    return resp


def _completion(content: str | None = "ok", tool_calls: list | None = None) -> dict:
    message: dict = {"role": "assistant", "content": content}
    if tool_calls is not None:
        message["tool_calls"] = tool_calls
    return {"choices": [{"message": message}]}


class TestHttpChatLLM:
    @pytest.fixture
    def llm(self) -> HttpChatLLM:
        return HttpChatLLM(base_url="http://localhost:8080", api_key="", model="gpt-5-mini")

    async def test_happy_path(self, llm: HttpChatLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response(_completion("يلا نلعب! 🎉")))
        with patch("httpx.AsyncClient.post", mock_post):
            result = await llm("game:1", SYSTEM, MESSAGES, TOOLS)
        assert result == ChatCompletion(text="يلا نلعب! 🎉")

    async def test_posts_to_chat_completions(self, llm: HttpChatLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response(_completion()))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("game:1", SYSTEM, MESSAGES, TOOLS)
        url = mock_post.call_args[0][0]
        assert url == "http://localhost:8080/v1/chat/completions"

    async def test_system_prompt_goes_first(self, llm: HttpChatLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response(_completion()))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("game:1", SYSTEM, MESSAGES, TOOLS)
        sent_body = mock_post.call_args.kwargs["json"]
        assert sent_body["messages"][0] == {"role": "system", "content": SYSTEM}
        assert sent_body["messages"][1:] == MESSAGES
        assert sent_body["model"] == "gpt-5-mini"
        assert sent_body["tools"] == TOOLS

    async def test_tools_omitted_when_empty(self, llm: HttpChatLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response(_completion()))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("game:1", SYSTEM, MESSAGES, [])
        assert "tools" not in mock_post.call_args.kwargs["json"]

    async def test_bearer_token_sent_when_api_key_set(self) -> None:
        llm = HttpChatLLM(base_url="http://localhost:8080", api_key="secret")
        mock_post = AsyncMock(return_value=_mock_response(_completion()))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("game:1", SYSTEM, MESSAGES, TOOLS)
        headers = mock_post.call_args.kwargs["headers"]
        assert headers.get("Authorization") == "Bearer secret"

    async def test_no_auth_header_when_no_api_key(self, llm: HttpChatLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response(_completion()))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("game:1", SYSTEM, MESSAGES, TOOLS)
        assert "Authorization" not in mock_post.call_args.kwargs["headers"]

    async def test_trailing_slash_stripped_from_url(self) -> None:
        llm = HttpChatLLM(base_url="http://localhost:8080/")
        mock_post = AsyncMock(return_value=_mock_response(_completion()))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("game:1", SYSTEM, MESSAGES, TOOLS)
        assert mock_post.call_args[0][0] == "http://localhost:8080/v1/chat/completions"

    async def test_parses_tool_calls(self, llm: HttpChatLLM) -> None:
        body = _completion(None, [
            {
                "id": "call_1",
                "type": "function",
                "function": {"name": "give_hint", "arguments": '{"hint": "بحر", "pointsDeduction": 1}'},
            },
        ])
        mock_post = AsyncMock(return_value=_mock_response(body))
        with patch("httpx.AsyncClient.post", mock_post):
            result = await llm("game:1", SYSTEM, MESSAGES, TOOLS)
        assert result.text == ""
        assert result.tool_calls == [
            ToolCall(id="call_1", name="give_hint", arguments={"hint": "بحر", "pointsDeduction": 1})
        ]

    async def test_malformed_tool_arguments_become_empty(self, llm: HttpChatLLM) -> None:
        body = _completion("", [
            {"id": "call_1", "type": "function", "function": {"name": "end_game", "arguments": "{oops"}},
        ])
        mock_post = AsyncMock(return_value=_mock_response(body))
        with patch("httpx.AsyncClient.post", mock_post):
            result = await llm("game:1", SYSTEM, MESSAGES, TOOLS)
        assert result.tool_calls[0].arguments == {}

    async def test_connect_error_raises_llm_error(self, llm: HttpChatLLM) -> None:
        mock_post = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError, match="Cannot connect"):
                await llm("game:1", SYSTEM, MESSAGES, TOOLS)

    async def test_timeout_raises_llm_error(self, llm: HttpChatLLM) -> None:
        mock_post = AsyncMock(side_effect=httpx.TimeoutException("timeout"))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError, match="timed out"):
                await llm("game:1", SYSTEM, MESSAGES, TOOLS)

    async def test_http_error_raises_llm_error(self, llm: HttpChatLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response({}, status=429))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError, match="HTTP 429"):
                await llm("game:1", SYSTEM, MESSAGES, TOOLS)

    async def test_malformed_response_raises_llm_error(self, llm: HttpChatLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"results": [{"text": "wrong api"}]}))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError, match="Unexpected response format"):
                await llm("game:1", SYSTEM, MESSAGES, TOOLS)

    async def test_non_json_body_raises_llm_error(self, llm: HttpChatLLM) -> None:
        resp = _mock_response({})
        resp.json.side_effect = ValueError("not json")
        mock_post = AsyncMock(return_value=resp)
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError, match="non-JSON"):
                await llm("game:1", SYSTEM, MESSAGES, TOOLS)

    @pytest.mark.parametrize(
        "body",
        [
            [],
            {"choices": ["x"]},
            {"choices": []},
            {"choices": [{"message": "hi"}]},
            {"choices": [{"message": {"content": 42}}]},
            {"choices": [{"message": {"content": "", "tool_calls": ["bad"]}}]},
            {"choices": [{"message": {"content": "", "tool_calls": [{"id": "c1", "function": "x"}]}}]},
            {"choices": [{"message": {"content": "", "tool_calls": {"id": "c1"}}}]},
        ],
    )
    async def test_wrongly_shaped_body_raises_llm_error(self, llm: HttpChatLLM, body: object) -> None:
        mock_post = AsyncMock(return_value=_mock_response(body))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(LLMError, match="Unexpected"):
                await llm("game:1", SYSTEM, MESSAGES, TOOLS)
