"""Game catalogue: rounds, scoring and which tool set each game gets."""

from falastin_games.models import GameConfig

CITY_EXPLORER = "city-explorer"

GAME_CONFIGS: dict[str, GameConfig] = {
    "palestine-quiz": GameConfig(
        id="palestine-quiz",
        name="Palestine Quiz",
        name_ar="مسابقة فلسطين",
        emoji="🧠",
        category="educational",
        description_ar="أسئلة حلوة عن فلسطين!",
        rounds=10,
        has_difficulty=True,
        points_per_correct=10,
        bonus_points=20,
        tool_set="quiz",
        has_options=True,
    ),
    CITY_EXPLORER: GameConfig(
        id=CITY_EXPLORER,
        name="City Explorer",
        name_ar="مستكشف المدن",
        emoji="🗺️",
        category="educational",
        description_ar="اكتشف مدن فلسطين من التلميحات!",
        rounds=5,
        has_difficulty=True,
        points_per_correct=15,
        bonus_points=25,
        tool_set="explorer",
        has_options=True,
        trim_completed_rounds=True,
    ),
    "story-builder": GameConfig(
        id="story-builder",
        name="Story Builder",
        name_ar="ابني قصة",
        emoji="📖",
        category="creative",
        description_ar="نبني قصة عن فلسطين مع بعض!",
        rounds=8,
        has_difficulty=False,
        points_per_correct=10,
        bonus_points=20,
        tool_set="creative",
    ),
    "riddles": GameConfig(
        id="riddles",
        name="Riddles",
        name_ar="حزازير",
        emoji="🤔",
        category="classic",
        description_ar="حزازير وألغاز فلسطينية!",
        rounds=8,
        has_difficulty=True,
        points_per_correct=10,
        bonus_points=20,
        tool_set="quiz",
        has_options=True,
    ),
    "word-chain": GameConfig(
        id="word-chain",
        name="Word Chain",
        name_ar="سلسلة الكلمات",
        emoji="🔗",
        category="classic",
        description_ar="كل كلمة بتبلش بآخر حرف من الكلمة اللي قبلها!",
        rounds=20,
        has_difficulty=False,
        points_per_correct=5,
        bonus_points=15,
        tool_set="word",
    ),
    "would-you-rather": GameConfig(
        id="would-you-rather",
        name="Would You Rather?",
        name_ar="شو بتفضّل؟",
        emoji="🤷",
        category="creative",
        description_ar="اختار بين شغلتين حلوين!",
        rounds=8,
        has_difficulty=False,
        points_per_correct=5,
        bonus_points=15,
        tool_set="creative",
        has_options=True,
    ),
}


def get_game_config(game_id: str) -> GameConfig | None:
    return GAME_CONFIGS.get(game_id)
