"""City explorer prompt.

The round's city comes from the seeder. The prompt carries everything the
model needs to run the round (region, facts, food/landmark/craft) but never
the city's name as written: the answer key is spelled out letter by letter
and every name or variant inside the facts is replaced with a neutral phrase.
"""

from __future__ import annotations

import math
from collections.abc import Collection

from falastin_games.data.cities import CITY_BY_ID, REGIONS
from falastin_games.models import City, Difficulty, GameConfig, KidsChatContext
from falastin_games.prompts import (
    MEDHAT_BASE,
    SAFETY_RULES,
    chat_context_section,
    join_sections,
    render_prompt,
    tool_rules_section,
)
from falastin_games.seeder import select_city_for_round

DEFAULT_AGE = 8
REDACTED_NAME = "هالمدينة"

CORE_RULES = """## Game: City Explorer 🗺️

### Flow:
QUIZ → correct → TOUR (food → landmark → craft) → NEXT CITY → QUIZ

### QUIZ Phase:
1. Read City Data → give a hint from fact #1 → call present_options + give_hint together
2. Player answers → check_answer (accept typed city names too!)
3. Wrong answer → short encouragement "قريب! جرّب كمان 😊" (no new options)
4. "I don't know" → give_hint
5. Correct → welcome to the city (rephrase the description). ALWAYS write the city's Arabic name in the check_answer explanation

### TOUR Phase:
- ONE category per message: food → landmark → craft
- When the player wants the next question → advance_round once (feedback names the city), then the next hint

### Critical Rules:
✅ Use ONLY City Data facts — never invent facts
✅ The correct city MUST be in present_options
❌ NEVER mention coordinates
❌ NEVER say the city's name before the player guesses it"""

CITY_DATA_TEMPLATE = """## City Data{{#review}} (REVIEW - all cities discovered! 🎉){{/review}}

🔑 Answer key (spelled letter by letter, join the letters, never show it before a correct guess): {{{answer_key}}}
📍 Region: {{{region}}}

📝 Facts (use for hints):
{{{facts}}}

📖 Description: {{{description}}}

🍽️ Food: {{{food}}}
🏛️ Landmark: {{{landmark}}}
🎨 Craft: {{{craft}}}"""

EXCLUDED_TEMPLATE = """{{#excluded}}
## Already Discovered (do NOT pick these again)
{{{excluded}}}
{{/excluded}}"""

DIFFICULTY_TEMPLATE = """## Difficulty: {{{label}}} (Level {{level}}/10)
{{{guidance}}}
- Options: {{options}} | Hint cost: {{{hint_cost}}}"""

AGE_TEMPLATE = """## Age: {{age}}y ({{{group}}})
- Max {{max_sentences}} sentences ({{max_words}} words)
- {{{vocabulary}}}
- {{{hints}}}
- Options: {{max_options}} max"""

GAME_LINE_TEMPLATE = "## Game: {{{name_ar}}} | Rounds: {{rounds}} | Points: {{points_per_correct}}/correct | Bonus: {{bonus_points}}"

CHECKLIST = """⚠️ CHECKLIST before responding:
✅ Is the hint about the City Data city? (not other cities!)
✅ Is the City Data city in present_options? (player must be able to win!)
✅ Tour: ONE category per message?
✅ Did you keep the answer hidden until the player guessed it?"""

HINT_DEDUCTION: dict[str, int] = {"easy": 0, "medium": 1, "hard": 2}
OPTION_COUNT: dict[str, int] = {"easy": 2, "medium": 3, "hard": 4}


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def content_complexity(age: int, difficulty: Difficulty) -> int:
    """1–10 clue difficulty from the player's age and the chosen level."""
    clamped = max(4, min(12, age))
    age_base = 1 + ((clamped - 4) / 8) * 5
    offset = {"easy": 0.0, "medium": 1.5, "hard": 3.0}[difficulty]
    return max(1, min(10, _round_half_up(age_base + offset)))


def complexity_guidance(level: int) -> str:
    if level <= 3:
        return f"Complexity {level}/10: Obvious clues (sea, oranges, famous sweets)"
    if level <= 5:
        return f"Complexity {level}/10: Known features (famous food, famous crafts)"
    if level <= 7:
        return f"Complexity {level}/10: Regional + cultural (north + olives)"
    return f"Complexity {level}/10: Historical context (old trade centre, ancient port)"


def age_settings(age: int) -> dict[str, object]:
    if age <= 5:
        return {"group": "Preschool 👶", "max_sentences": 2, "max_words": 15, "max_options": 2,
                "vocabulary": "simple", "hints": "obvious"}
    if age <= 7:
        return {"group": "Young 🧒", "max_sentences": 2, "max_words": 20, "max_options": 2,
                "vocabulary": "simple", "hints": "obvious"}
    if age <= 9:
        return {"group": "Child 🧒", "max_sentences": 3, "max_words": 30, "max_options": 3,
                "vocabulary": "moderate", "hints": "moderate"}
    return {"group": "Pre-teen 🧑", "max_sentences": 4, "max_words": 50, "max_options": 4,
            "vocabulary": "rich", "hints": "subtle"}


_VOCABULARY = {
    "simple": "Simple words only (بحر، أكل، شجرة). No abstract concepts.",
    "moderate": "Everyday words. Can mention simple history.",
    "rich": "Rich vocabulary. Can use historical context.",
}

_HINTS = {
    "obvious": "Hints: OBVIOUS (colors, shapes, food, animals). Give away gently.",
    "moderate": "Hints: Start general, then specific (region → landmark → food).",
    "subtle": "Hints: Make them think! Reference geography, history, culture.",
}


def spell_answer(name: str) -> str:
    """Spell a name out so it never appears verbatim: 'بيت لحم' → 'ب-ي-ت / ل-ح-م'."""
    return " / ".join("-".join(word) for word in name.split())


def redact(text: str, city: City) -> str:
    # Longest first so "القدس الشريف" is not left as "هالمدينة الشريف".
    for name in sorted(city.names, key=len, reverse=True):
        text = text.replace(name, REDACTED_NAME)
    return text


def city_data_section(city: City, is_review_mode: bool) -> str:
    facts = "\n".join(f"{i}. {redact(fact, city)}" for i, fact in enumerate(city.facts, start=1))
    return render_prompt(
        CITY_DATA_TEMPLATE,
        {
            "review": is_review_mode,
            "answer_key": spell_answer(city.name_ar),
            "region": REGIONS[city.region]["name_ar"],
            "facts": facts,
            "description": redact(city.description_ar, city),
            "food": redact(city.food, city),
            "landmark": redact(city.landmark, city),
            "craft": redact(city.craft, city),
        },
    )


def excluded_section(excluded_ids: Collection[str], is_review_mode: bool) -> str:
    if is_review_mode:
        return ""
    known = sorted(i for i in excluded_ids if i in CITY_BY_ID)
    lines = "\n".join(f"- {i} ({CITY_BY_ID[i].name_ar})" for i in known)
    return render_prompt(EXCLUDED_TEMPLATE, {"excluded": lines})


def difficulty_section(difficulty: Difficulty, age: int) -> str:
    level = content_complexity(age, difficulty)
    deduction = HINT_DEDUCTION[difficulty]
    return render_prompt(
        DIFFICULTY_TEMPLATE,
        {
            "label": difficulty.upper(),
            "level": level,
            "guidance": complexity_guidance(level),
            "options": OPTION_COUNT[difficulty],
            "hint_cost": "FREE (pointsDeduction: 0)" if deduction == 0
            else f"{deduction} pt (pointsDeduction: {deduction})",
        },
    )


def age_section(age: int) -> str:
    settings = age_settings(age)
    return render_prompt(
        AGE_TEMPLATE,
        {
            **settings,
            "age": age,
            "vocabulary": _VOCABULARY[settings["vocabulary"]],
            "hints": _HINTS[settings["hints"]],
        },
    )


def build_city_explorer_prompt(
    config: GameConfig,
    difficulty: Difficulty,
    age: int | None,
    player_name: str | None,
    chat_context: KidsChatContext | None,
    excluded_ids: Collection[str],
    round_key: int,
) -> str:
    selection = select_city_for_round(round_key, excluded_ids)
    city = selection.city
    age = age or DEFAULT_AGE
    region = REGIONS[city.region]["name_ar"]

    sections = [
        # Start and end of the prompt get the most attention.
        f"⚠️ TARGET CITY: see City Data (answer key) | Region: {region}",
        MEDHAT_BASE,
        CORE_RULES,
        city_data_section(city, selection.is_review_mode),
        excluded_section(excluded_ids, selection.is_review_mode),
        difficulty_section(difficulty, age),
        age_section(age),
        f"## Player: {player_name}\nAddress by name in EVERY response." if player_name else "",
        chat_context_section(chat_context),
        render_prompt(GAME_LINE_TEMPLATE, config.model_dump()),
        SAFETY_RULES,
        tool_rules_section(config),
        CHECKLIST,
    ]
    return join_sections(sections)
