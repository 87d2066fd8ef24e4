"""Palestinian cities used by the city-explorer game, plus the name gazetteer.

The list order is part of the contract: round selection indexes into it, so
appending a city is safe but reordering changes every seeded session.
"""

from falastin_games.models import City

REGIONS: dict[str, dict[str, str]] = {
    "north": {"name": "North", "name_ar": "الشمال"},
    "center": {"name": "Center", "name_ar": "الوسط"},
    "south": {"name": "South", "name_ar": "الجنوب"},
    "coast": {"name": "Coast", "name_ar": "الساحل"},
}

CITIES: list[City] = [
    City(
        id="jerusalem",
        name="Jerusalem",
        name_ar="القدس",
        emoji="🕌",
        region="center",
        lat=31.7683,
        lng=35.2137,
        fact="أولى القبلتين وثالث الحرمين",
        facts=[
            "فيها قبة ذهبية لامعة بتشوفها من بعيد",
            "أولى القبلتين وثالث الحرمين",
            "بلدتها القديمة محاطة بسور عظيم إله أبواب كثيرة",
        ],
        description_ar="مدينة قديمة كتير وقلب فلسطين، أسواقها مليانة ريحة البهارات والكعك.",
        food="الكعك بالسمسم",
        landmark="المسجد الأقصى وقبة الصخرة",
        craft="الصدف والفسيفساء",
        variants=["القدس الشريف", "بيت المقدس"],
    ),
    City(
        id="gaza",
        name="Gaza",
        name_ar="غزة",
        emoji="🌊",
        region="coast",
        lat=31.5017,
        lng=34.4668,
        fact="مدينة على شاطئ البحر",
        facts=[
            "مدينة على شاطئ البحر المتوسط",
            "فيها ميناء صيادين قديم وقوارب ملوّنة",
            "مشهورة بالفخار الأحمر",
        ],
        description_ar="مدينة بحرية جميلة، أهلها بحبوا البحر والسمك والفخار.",
        food="الصيادية",
        landmark="المسجد العمري الكبير",
        craft="الفخار",
    ),
    City(
        id="nablus",
        name="Nablus",
        name_ar="نابلس",
        emoji="🏔️",
        region="north",
        lat=32.2211,
        lng=35.2544,
        fact="مشهورة بالكنافة اللذيذة!",
        facts=[
            "مشهورة بالكنافة اللذيذة",
            "بتقع بين جبلين كبار",
            "فيها مصانع صابون زيت الزيتون القديمة",
        ],
        description_ar="مدينة بين الجبال، بلدتها القديمة مليانة حلويات وصابون زيت زيتون.",
        food="الكنافة",
        landmark="البلدة القديمة وخان التجار",
        craft="صناعة الصابون",
        variants=["جبل النار"],
    ),
    City(
        id="bethlehem",
        name="Bethlehem",
        name_ar="بيت لحم",
        emoji="⭐",
        region="center",
        lat=31.7054,
        lng=35.2024,
        fact="مدينة السلام",
        facts=[
            "مدينة السلام",
            "فيها كنيسة قديمة كتير مشهورة بكل العالم",
            "مشهورة بالتحف المصنوعة من خشب الزيتون",
        ],
        description_ar="مدينة صغيرة وحلوة، بيجيها زوار من كل العالم.",
        food="المقلوبة",
        landmark="كنيسة المهد",
        craft="خشب الزيتون",
    ),
    City(
        id="hebron",
        name="Hebron",
        name_ar="الخليل",
        emoji="🏺",
        region="south",
        lat=31.5326,
        lng=35.0998,
        fact="مشهورة بالزجاج والخزف",
        facts=[
            "مشهورة بالزجاج والخزف الملوّن",
            "فيها كروم عنب كتير",
            "أكبر مدينة بجنوب الضفة",
        ],
        description_ar="مدينة العنب والزجاج الملوّن، أسواقها القديمة مليانة حرف يدوية.",
        food="العنب والدبس",
        landmark="الحرم الإبراهيمي",
        craft="الزجاج اليدوي",
        variants=["خليل الرحمن"],
    ),
    City(
        id="ramallah",
        name="Ramallah",
        name_ar="رام الله",
        emoji="🏛️",
        region="center",
        lat=31.9038,
        lng=35.2034,
        fact="مدينة الثقافة والفن",
        facts=[
            "مدينة الثقافة والفن",
            "جوّها لطيف لأنها على تلال عالية",
            "فيها مسارح ومراكز ثقافية كتير",
        ],
        description_ar="مدينة نشيطة على التلال، فيها مسارح وموسيقى ومهرجانات.",
        food="المسخّن",
        landmark="دوار المنارة",
        craft="التطريز الفلاحي",
    ),
    City(
        id="jaffa",
        name="Jaffa",
        name_ar="يافا",
        emoji="🍊",
        region="coast",
        lat=32.0504,
        lng=34.7522,
        fact="عروس البحر - مشهورة بالبرتقال",
        facts=[
            "بسمّوها عروس البحر",
            "مشهورة بالبرتقال الطيّب",
            "من أقدم موانئ العالم",
        ],
        description_ar="مدينة على البحر، برتقالها مشهور بكل الدنيا.",
        food="البرتقال",
        landmark="برج الساعة والميناء القديم",
        craft="صناعة القوارب",
    ),
    City(
        id="acre",
        name="Acre",
        name_ar="عكا",
        emoji="⚓",
        region="north",
        lat=32.9226,
        lng=35.0694,
        fact="مدينة الميناء التاريخية",
        facts=[
            "مدينة الميناء التاريخية",
            "بيحيط فيها سور عظيم على البحر",
            "فيها جامع كبير بقبة خضرا",
        ],
        description_ar="مدينة بحرية قديمة بسورها القوي وأزقّتها الضيقة.",
        food="السمك المشوي",
        landmark="سور المدينة على البحر",
        craft="صيد السمك",
        variants=["عكة"],
    ),
]

CITY_BY_ID: dict[str, City] = {city.id: city for city in CITIES}


def get_city(city_id: str) -> City | None:
    return CITY_BY_ID.get(city_id)
