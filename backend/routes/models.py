"""Pydantic request models for API endpoints.

Bodies accept camelCase (what the web client sends) as well as snake_case.
"""

from typing import Any

from falastin_games.models import CamelModel, Difficulty


class ResetBody(CamelModel):
    difficulty: Difficulty | None = None


class ToolResultBody(CamelModel):
    tool_name: str
    output: Any = None


class AddCityBody(CamelModel):
    city_id: str


class AddTopicBody(CamelModel):
    topic: str
