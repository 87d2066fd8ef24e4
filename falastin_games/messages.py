"""Turn log ⇄ OpenAI chat messages."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from falastin_games.llm import ChatCompletion
from falastin_games.models import Turn


def tool_message(tool_call_id: str, output: Any) -> dict[str, Any]:
    return {
        "role": "tool",
        "tool_call_id": tool_call_id,
        "content": json.dumps(output, ensure_ascii=False),
    }


def assistant_message(completion: ChatCompletion) -> dict[str, Any]:
    message: dict[str, Any] = {"role": "assistant", "content": completion.text or None}
    if completion.tool_calls:
        message["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {
                    "name": call.name,
                    "arguments": json.dumps(call.arguments, ensure_ascii=False),
                },
            }
            for call in completion.tool_calls
        ]
    return message


def to_chat_messages(turns: Sequence[Turn]) -> list[dict[str, Any]]:
    """Convert turns for the model.

    Assistant tool invocations become ``tool_calls`` followed by one
    ``tool`` message per result. Unresolved invocations and file parts are
    dropped; the model cannot use either.
    """
    messages: list[dict[str, Any]] = []
    for turn in turns:
        text = turn.text()
        if turn.role != "assistant":
            if text:
                messages.append({"role": turn.role, "content": text})
            continue

        resolved = [p for p in turn.tool_invocations() if p.resolved]
        if not text and not resolved:
            continue
        message: dict[str, Any] = {"role": "assistant", "content": text or None}
        if resolved:
            message["tool_calls"] = [
                {
                    "id": p.tool_call_id,
                    "type": "function",
                    "function": {
                        "name": p.tool_name,
                        "arguments": json.dumps(p.input, ensure_ascii=False),
                    },
                }
                for p in resolved
            ]
        messages.append(message)
        messages.extend(tool_message(p.tool_call_id, p.output) for p in resolved)
    return messages
