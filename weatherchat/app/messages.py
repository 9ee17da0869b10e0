"""Localized fixed replies."""

from weatherchat.app.models.common import Language

GENERIC_APOLOGY = {
    Language.en: "Sorry, an error occurred. Please try again.",
    Language.ja: "すみません、エラーが発生しました。もう一度お試しください。",
}

WEATHER_UNAVAILABLE = {
    Language.en: "Sorry, I couldn't get weather information. Please try different city names.",
    Language.ja: "申し訳ございませんが、天気情報を取得できませんでした。別の都市名をお試しください。",
}

LOCATION_CLARIFICATION = {
    Language.en: "Which city would you like the weather for?",
    Language.ja: "どの都市の天気を知りたいですか？",
}

GREETING = {
    Language.en: "Hello! Ask me anything about weather, travel, or fashion recommendations.",
    Language.ja: "こんにちは！天気や旅行、ファッションについて何でもお聞きください。",
}


def localized(table: dict[Language, str], language: Language) -> str:
    """Pick the message for a language, falling back to English."""
    return table.get(language, table[Language.en])
