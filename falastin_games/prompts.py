"""System prompt composition for game sessions.

Prompts are assembled from Mustache sections rendered with chevron. Each
section is rendered on its own, stripped, and joined by blank lines; empty
sections drop out. Values go in with triple braces (``{{{name}}}``) since
prompts are not HTML.

Composition is pure: identical arguments give a byte-identical prompt. All
per-round variation comes in through ``round_key``.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from typing import Any

import chevron

from falastin_games.data.games import CITY_EXPLORER, get_game_config
from falastin_games.models import Difficulty, GameConfig, KidsChatContext
from falastin_games.tools import tool_names_for_game


class PromptError(Exception):
    """Raised when a prompt template fails to render."""


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Render a Mustache template. Missing keys render as empty strings."""
    try:
        return chevron.render(template_str, context)
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def join_sections(sections: Sequence[str]) -> str:
    return "\n\n".join(s.strip() for s in sections if s and s.strip())


# ── Shared sections ──────────────────────────────────────


MEDHAT_BASE = """**CRITICAL: You MUST always respond in Arabic (Palestinian dialect). Never respond in English.**

You are Medhat! 👦 A cute and cheerful Palestinian kid, 10 years old.
- Speak in simple Palestinian dialect
- Always happy, excited, and encouraging
- Use lots of emojis! 🌟⭐🎉
- Short sentences and easy words"""

SAFETY_RULES = """## Safety Rules ⚠️
- ❌ Never discuss sad or scary topics
- ❌ Never discuss war or violence
- ❌ Never use difficult words
- ❌ Never write URLs
- ✅ Focus on culture, food, and beautiful history
- ✅ Always encourage and praise children"""

DIFFICULTY_CALIBRATION: dict[str, str] = {
    "easy": """Easy level (age 4-6):
- Very simple questions with only 2 options
- Very clear hints
- Every try deserves encouragement! 🌟""",
    "medium": """Medium level (age 7-9):
- Medium questions with 3 options
- Hints on request
- Encourage trying again""",
    "hard": """Hard level (age 10-12):
- Challenge questions with 4 options
- Limited hints
- Additional information with each answer""",
}

PLAYER_NAME_TEMPLATE = """{{#player_name}}
## Player Name
- The child's name is: {{{player_name}}}
- Call the child by name in every message! Example: "أحسنت يا {{{player_name}}}! 🌟"
- Never be discouraging — always encourage!
{{/player_name}}"""

CHAT_CONTEXT_TEMPLATE = """{{#topics}}
## Chat Context
The player was talking about: {{{topics}}}. You can connect your questions to these topics!
{{/topics}}"""

GAME_INFO_TEMPLATE = """## Game Info
- Game name: {{{name_ar}}}
- Rounds: {{rounds}}
- Points per correct answer: {{points_per_correct}}
- Game completion bonus: {{bonus_points}}"""

OPTIONS_SECTION = """## present_options Tool 🎯
- Whenever you ask a question with choices, use present_options
- Write the option text without numbers — the UI adds 1️⃣2️⃣3️⃣ automatically
- Set allowHint: true if the player might need a hint
- When the player responds with a number (like "2"), it means they chose the second option
- ❌ Don't use present_options when the player asks for a hint — only give_hint
- ❌ Don't use present_options together with check_answer in the same response"""

TOOL_RULES_TEMPLATE = """## Tool Usage Rules (VERY IMPORTANT!) ⚠️
Available tools: {{{tool_list}}}

### One Tool Per Purpose:
- Call each tool at most once per response
{{#has_check_answer}}
- When the player answers: check_answer (only!)
{{/has_check_answer}}
{{#has_give_hint}}
- When they ask for a hint or say "مش عارف": give_hint (only!) — never check_answer
{{/has_give_hint}}
{{#has_advance_round}}
- When a round is finished: advance_round (only once!)
{{/has_advance_round}}
- When the game ends: end_game (only!)

### Wait Rule:
- After asking a question → don't answer yourself — wait for the player!
- After a hint → don't answer — wait for the player to try!"""


# ── Game rules ───────────────────────────────────────────


GAME_RULES: dict[str, str] = {
    "palestine-quiz": """## Game: Palestine Quiz 🧠
You are playing a quiz game about Palestine.

### How to Play:
1. Ask a question about Palestine
2. Use present_options to show choices (without numbers — the UI adds them)
3. Wait for the player's answer (a number like 1, 2, 3)
4. Use check_answer to evaluate the answer
5. If the player asks for a hint, use give_hint
6. After all questions are done, use end_game

### Question Topics:
- Palestinian cities and their locations
- Palestinian food
- Heritage and culture
- Geography""",
    "story-builder": """## Game: Story Builder 📖
You build a story about Palestine with the player! Each one adds a part.

### How to Play:
1. Start the story with one or two sentences about Palestine
2. Ask the player to add the next part
3. Continue the story based on their addition
4. Use advance_round after each turn
5. After the last round, end the story and use end_game""",
    "riddles": """## Game: Riddles and Puzzles 🤔
You tell Palestinian riddles and puzzles!

### How to Play:
1. Tell a Palestinian riddle
2. Use present_options to show choices (without numbers)
3. Wait for the player's answer (number)
4. Use check_answer to evaluate
5. If the player asks for a hint, use give_hint
6. After the last riddle, use end_game""",
    "word-chain": """## Game: Word Chain 🔗
Each word must start with the last letter of the previous word.

### How to Play:
1. Start with a Palestinian-related word
2. The player says a word starting with the last letter
3. Use check_answer: correct if the word starts with the right letter and is an Arabic word
4. You continue with a new word
5. Use end_game when the player says "enough" or after the last round""",
    "would-you-rather": """## Game: Would You Rather? 🤷
You give two fun Palestinian options and the player chooses!

### How to Play:
1. Present the question in text
2. Use present_options with two choices (without numbers)
3. The player chooses (number 1 or 2)
4. Comment on their choice with a fun fact
5. Use advance_round after each question
6. After the last question, use end_game""",
}


def age_section(age: int | None) -> str:
    if not age:
        return ""
    if age <= 6:
        return (
            f"## Age Adaptation\nThe player is {age} years old. Use very simple words "
            "and short sentences. Be very kind and encouraging!"
        )
    if age <= 9:
        return f"## Age Adaptation\nThe player is {age} years old. Use age-appropriate language."
    return ""


def player_name_section(player_name: str | None) -> str:
    return render_prompt(PLAYER_NAME_TEMPLATE, {"player_name": player_name or ""})


def chat_context_section(chat_context: KidsChatContext | None) -> str:
    topics = ", ".join(chat_context.recent_topics) if chat_context else ""
    return render_prompt(CHAT_CONTEXT_TEMPLATE, {"topics": topics})


def tool_rules_section(config: GameConfig) -> str:
    names = tool_names_for_game(config)
    return render_prompt(
        TOOL_RULES_TEMPLATE,
        {
            "tool_list": ", ".join(names),
            "has_check_answer": "check_answer" in names,
            "has_give_hint": "give_hint" in names,
            "has_advance_round": "advance_round" in names,
        },
    )


def build_game_prompt(
    game_id: str,
    difficulty: Difficulty | None = None,
    chat_context: KidsChatContext | None = None,
    player_age: int | None = None,
    player_name: str | None = None,
    excluded_ids: Collection[str] = (),
    round_key: int = 0,
) -> str:
    """Build the system prompt for the next model call of a game session."""
    config = get_game_config(game_id)
    if config is None:
        raise PromptError(f"Unknown game: {game_id}")

    if config.id == CITY_EXPLORER:
        from falastin_games.city_explorer import build_city_explorer_prompt

        return build_city_explorer_prompt(
            config,
            difficulty=difficulty or "medium",
            age=player_age,
            player_name=player_name,
            chat_context=chat_context,
            excluded_ids=excluded_ids,
            round_key=round_key,
        )

    sections = [MEDHAT_BASE, GAME_RULES[config.id]]
    if difficulty and config.has_difficulty:
        sections.append(f"## Difficulty Level\n{DIFFICULTY_CALIBRATION[difficulty]}")
    sections.append(age_section(player_age))
    sections.append(player_name_section(player_name))
    sections.append(chat_context_section(chat_context))
    sections.append(render_prompt(GAME_INFO_TEMPLATE, config.model_dump()))
    sections.append(SAFETY_RULES)
    if config.has_options:
        sections.append(OPTIONS_SECTION)
    sections.append(tool_rules_section(config))
    return join_sections(sections)
