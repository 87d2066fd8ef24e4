"""LLM client — HTTP connection to a chat-completions backend.

The orchestrator injects an LLM callable matching the protocol:

    async def __call__(self, stage, system, messages, tools) -> ChatCompletion: ...

`stage` identifies which step of the tool loop is calling (e.g. "game:1",
"game:2"). The implementation may use it for logging; the simplest
implementation ignores it.

Two implementations are provided:

    HttpChatLLM  — real HTTP client for OpenAI-compatible backends
                   (POST /v1/chat/completions with function tools).
    EchoChatLLM  — answers with the last user message and never calls
                   tools. Useful for smoke-testing the wiring without a
                   running model.

Production code constructs an HttpChatLLM from settings. Tests use
StubChatLLM (defined in the test modules) instead.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolCall:
    id: str
    name: str
    arguments: dict[str, Any]


@dataclass(frozen=True)
class ChatCompletion:
    text: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Protocol — every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class ChatLLM(Protocol):
    async def __call__(
        self,
        stage: str,
        system: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> ChatCompletion: ...


# ---------------------------------------------------------------------------
# HttpChatLLM — connects to a real backend
# ---------------------------------------------------------------------------

class HttpChatLLM:
    """Async HTTP client for OpenAI-compatible chat completions.

    Request:  POST {base_url}/v1/chat/completions
              {"model", "messages": [system, ...], "tools"}
    Response: {"choices": [{"message": {"content", "tool_calls"}}]}

    Args:
        base_url: Base URL of the backend, e.g. "https://api.openai.com".
        api_key:  Bearer token, or empty string if not required.
        model:    Model identifier.
        timeout:  HTTP timeout in seconds. Defaults to 120.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        model: str = "",
        timeout: float = 120.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._model = model
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_body(
        self, system: str, messages: list[dict[str, Any]], tools: list[dict[str, Any]]
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"messages": [{"role": "system", "content": system}, *messages]}
        if self._model:
            body["model"] = self._model
        if tools:
            body["tools"] = tools
        return body

    def _parse_tool_call(self, raw: Any) -> ToolCall:
        function = raw.get("function") if isinstance(raw, dict) else None
        if not isinstance(function, dict):
            raise LLMError("Unexpected tool call format from chat completions backend")
        arguments = function.get("arguments") or "{}"
        try:
            parsed = json.loads(arguments) if isinstance(arguments, str) else arguments
        except json.JSONDecodeError:
            logger.warning("tool call %s had malformed arguments", function.get("name"))
            parsed = {}
        if not isinstance(parsed, dict):
            parsed = {}
        return ToolCall(
            id=str(raw.get("id") or ""), name=str(function.get("name") or ""), arguments=parsed
        )

    def _parse_response(self, data: Any) -> ChatCompletion:
        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            raise LLMError("Unexpected response format from chat completions backend")
        message = choices[0].get("message")
        if not isinstance(message, dict):
            raise LLMError("Unexpected response format from chat completions backend")
        content = message.get("content")
        if content is not None and not isinstance(content, str):
            raise LLMError("Unexpected content type from chat completions backend")
        raw_calls = message.get("tool_calls") or []
        if not isinstance(raw_calls, list):
            raise LLMError("Unexpected tool call format from chat completions backend")
        calls = [self._parse_tool_call(c) for c in raw_calls]
        return ChatCompletion(text=content or "", tool_calls=calls)

    async def __call__(
        self,
        stage: str,
        system: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> ChatCompletion:
        url = f"{self._base_url}/v1/chat/completions"
        body = self._build_body(system, messages, tools)
        logger.debug(
            "llm call stage=%s url=%s system_len=%d messages=%d tools=%d",
            stage, url, len(system), len(messages), len(tools),
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(
                f"LLM backend returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM backend timed out after {self._timeout}s") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("LLM backend returned a non-JSON body") from e
        completion = self._parse_response(data)
        logger.debug(
            "llm response stage=%s len=%d tool_calls=%d",
            stage, len(completion.text), len(completion.tool_calls),
        )
        return completion


# ---------------------------------------------------------------------------
# EchoChatLLM — no network; echoes the last user message
# ---------------------------------------------------------------------------

class EchoChatLLM:
    """Replies with the latest user message and never calls a tool."""

    async def __call__(
        self,
        stage: str,
        system: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> ChatCompletion:
        logger.debug("EchoChatLLM stage=%s messages=%d", stage, len(messages))
        for message in reversed(messages):
            if message.get("role") == "user":
                content = message.get("content")
                return ChatCompletion(text=content if isinstance(content, str) else "")
        return ChatCompletion()


# ---------------------------------------------------------------------------
# LLMError — raised by HttpChatLLM for all connection and protocol failures
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""
