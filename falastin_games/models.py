"""Core domain models.

Conversation turns, game state and the static table types all live here.
Pydantic is used for validation and serialisation at every data boundary;
JSON produced for clients and for the key-value store uses camelCase aliases
(``toolCallId``, ``correctAnswers``) while Python code uses snake_case.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Role = Literal["user", "assistant", "system"]
Difficulty = Literal["easy", "medium", "hard"]
GameStatus = Literal["playing", "finished"]
GameCategory = Literal["educational", "classic", "creative"]
Region = Literal["north", "center", "south", "coast"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Conversation turns
# ---------------------------------------------------------------------------

class TextPart(CamelModel):
    type: Literal["text"] = "text"
    text: str


class ToolInvocationPart(CamelModel):
    """A tool call made by the model. ``output`` is None until resolved."""

    type: Literal["tool-invocation"] = "tool-invocation"
    tool_call_id: str
    tool_name: str
    input: dict[str, Any] = Field(default_factory=dict)
    output: Any = None

    @property
    def resolved(self) -> bool:
        return self.output is not None


class FilePart(CamelModel):
    type: Literal["file"] = "file"
    url: str
    media_type: str = ""


Part = Annotated[TextPart | ToolInvocationPart | FilePart, Field(discriminator="type")]


class Turn(CamelModel):
    """One message in the conversation; the ordered list of turns is the game log."""

    id: str
    role: Role
    parts: list[Part] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    def text(self) -> str:
        return "\n".join(p.text for p in self.parts if isinstance(p, TextPart))

    def tool_invocations(self) -> list[ToolInvocationPart]:
        return [p for p in self.parts if isinstance(p, ToolInvocationPart)]


# ---------------------------------------------------------------------------
# Players
# ---------------------------------------------------------------------------

class KidsProfile(CamelModel):
    id: str
    name: str
    age: int | None = None


class KidsChatContext(CamelModel):
    recent_topics: list[str] = Field(default_factory=list)
    last_updated: int = 0


# ---------------------------------------------------------------------------
# Game state
# ---------------------------------------------------------------------------

class GameState(CamelModel):
    """Mutable session record. Only the reconciler produces new versions of it."""

    game_id: str
    score: int = Field(default=0, ge=0)
    round: int = Field(default=1, ge=1)
    total_rounds: int = Field(ge=1)
    correct_answers: int = 0
    wrong_answers: int = 0
    hints_used: int = 0
    status: GameStatus = "playing"
    difficulty: Difficulty | None = None
    started_at: int
    finished_at: int | None = None


class GameSessionSummary(CamelModel):
    """Snapshot taken once when a game ends."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    game_id: str
    score: int
    correct_answers: int
    total_rounds: int
    hints_used: int
    difficulty: Difficulty | None = None
    duration: int  # milliseconds
    bonus_earned: bool
    sticker_unlocked: bool


class RewardState(CamelModel):
    """A profile's points wallet, kept across games."""

    points: int = Field(default=0, ge=0)
    level: str = "explorer"
    stickers_earned: int = 0
    last_reward_at: int | None = None


# ---------------------------------------------------------------------------
# Static tables
# ---------------------------------------------------------------------------

class GameConfig(CamelModel):
    id: str
    name: str
    name_ar: str
    emoji: str
    category: GameCategory
    description_ar: str
    rounds: int
    has_difficulty: bool
    points_per_correct: int
    bonus_points: int
    tool_set: Literal["quiz", "creative", "explorer", "word"]
    has_options: bool = False
    trim_completed_rounds: bool = False


class City(CamelModel):
    id: str
    name: str
    name_ar: str
    emoji: str
    region: Region
    lat: float
    lng: float
    fact: str
    facts: list[str]
    description_ar: str
    food: str
    landmark: str
    craft: str
    variants: list[str] = Field(default_factory=list)

    @property
    def names(self) -> list[str]:
        """Every spelling that identifies this city, canonical names first."""
        return [self.name_ar, self.name, *self.variants]
