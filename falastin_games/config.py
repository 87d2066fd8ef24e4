"""Process settings, read from the environment (``.env`` is loaded by the app)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"
DEFAULT_BASE_URL = "https://api.openai.com"
DEFAULT_MODEL = "gpt-5-mini"
DEFAULT_TIMEOUT = 120.0
DEFAULT_MAX_TOOL_STEPS = 7


@dataclass(frozen=True)
class Settings:
    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    timeout: float = DEFAULT_TIMEOUT
    data_dir: Path = DEFAULT_DATA_DIR
    max_tool_steps: int = DEFAULT_MAX_TOOL_STEPS

    def public(self) -> dict[str, object]:
        """Settings safe to show to clients (no key)."""
        return {
            "baseUrl": self.base_url,
            "model": self.model,
            "timeout": self.timeout,
            "maxToolSteps": self.max_tool_steps,
            "hasApiKey": bool(self.api_key),
        }


def load_settings() -> Settings:
    return Settings(
        api_key=os.getenv("OPENAI_API_KEY", ""),
        base_url=os.getenv("OPENAI_BASE_URL", DEFAULT_BASE_URL),
        model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
        timeout=float(os.getenv("LLM_TIMEOUT", str(DEFAULT_TIMEOUT))),
        data_dir=Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR))),
        max_tool_steps=int(os.getenv("MAX_TOOL_STEPS", str(DEFAULT_MAX_TOOL_STEPS))),
    )
