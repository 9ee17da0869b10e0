"""Tests for context resolution and intent inference."""

import pytest

from weatherchat.app.context.resolver import (
    contextualize_query,
    has_location_indicators,
    infer_intent,
    resolve_context,
)
from weatherchat.app.models import Language, QueryIntent


class TestLocationIndicators:
    @pytest.mark.parametrize(
        "query",
        ["Weather in Tokyo", "What about at home", "forecast for Paris", "weather?"],
    )
    def test_english_markers(self, query: str) -> None:
        assert has_location_indicators(query, Language.en)

    @pytest.mark.parametrize("query", ["hi", "Tomorrow?", "and now"])
    def test_short_queries_without_markers(self, query: str) -> None:
        assert not has_location_indicators(query, Language.en)

    def test_long_query_counts_as_located(self) -> None:
        assert has_location_indicators("Is it going to be hot", Language.en)

    def test_japanese_markers(self) -> None:
        assert has_location_indicators("東京の天気", Language.ja)
        assert has_location_indicators("大阪で", Language.ja)
        assert not has_location_indicators("明日は？", Language.ja)


class TestContextualize:
    def test_english_template(self) -> None:
        assert contextualize_query("Tomorrow?", "Varanasi", Language.en) == "Tomorrow? in Varanasi"

    def test_japanese_template(self) -> None:
        assert contextualize_query("明日は？", "東京", Language.ja) == "東京の明日は？"


class TestResolveContext:
    @pytest.mark.asyncio
    async def test_fresh_session_short_query_needs_location(self, registry) -> None:
        session = await registry.create()

        resolution = resolve_context(session, "hi", Language.en)

        assert resolution.needs_location_input is True
        assert resolution.needs_time_input is False
        assert resolution.contextual_query == "hi"

    def test_no_session_needs_location(self) -> None:
        resolution = resolve_context(None, "hi", Language.en)
        assert resolution.needs_location_input is True
        assert resolution.session is None

    @pytest.mark.asyncio
    async def test_stored_location_is_spliced_in(self, registry, varanasi) -> None:
        session = await registry.create()
        await registry.update_location(session.session_id, varanasi)

        resolution = resolve_context(session, "Tomorrow?", Language.en)

        assert resolution.needs_location_input is False
        assert resolution.contextual_query == "Tomorrow? in Varanasi"

    @pytest.mark.asyncio
    async def test_located_query_is_unchanged(self, registry, varanasi) -> None:
        session = await registry.create()
        await registry.update_location(session.session_id, varanasi)

        resolution = resolve_context(session, "Weather in Tokyo", Language.en)

        assert resolution.needs_location_input is False
        assert resolution.contextual_query == "Weather in Tokyo"


@pytest.mark.parametrize(
    ("query", "tool_count", "expected"),
    [
        ("Weather in Tokyo", 1, QueryIntent.weather),
        ("Tokyo and London", 2, QueryIntent.comparison),
        ("Is Tokyo warmer than Paris", 1, QueryIntent.comparison),
        ("What should I wear in Tokyo", 1, QueryIntent.clothing),
        ("Planning a trip to Rome", 1, QueryIntent.travel),
        ("Thanks!", 0, QueryIntent.general),
    ],
)
def test_infer_intent(query: str, tool_count: int, expected: QueryIntent) -> None:
    assert infer_intent(query, tool_count) == expected
