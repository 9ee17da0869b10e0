"""Context resolution: does this turn carry a place, or should we splice one in?

The lexical test is coarse. The completion provider does the
fine-grained understanding (e.g. reading "Tomorrow?" as a forecast request);
this module only avoids asking for a city the user already gave, and avoids
guessing when no city was ever given.
"""

import re
from dataclasses import dataclass

from weatherchat.app.models.common import Language, QueryIntent
from weatherchat.app.sessions.registry import Session

# Queries longer than this are assumed to name a place
_LONG_QUERY_CHARS = 10

_EN_LOCATION_MARKERS = re.compile(r"in |at |for |weather")
_JA_LOCATION_MARKERS = re.compile(r"の天気|で|に")

_COMPARISON_WORDS = re.compile(r"\b(compare|comparison|vs\.?|versus|warmer|colder)\b|比較|比べ")
_CLOTHING_WORDS = re.compile(
    r"\b(wear|clothes|clothing|outfit|jacket|coat|umbrella|dress)\b|服|着|傘|コーデ"
)
_TRAVEL_WORDS = re.compile(r"\b(travel|trip|visit|sightseeing|vacation|holiday)\b|旅行|観光|出張")


@dataclass(frozen=True)
class ContextResolution:
    """Outcome of resolving implicit context for one query."""

    session: Session | None
    needs_location_input: bool
    needs_time_input: bool
    contextual_query: str


def has_location_indicators(query: str, language: Language) -> bool:
    """Lightweight locative-marker test plus a length signal."""
    if language == Language.ja:
        return bool(_JA_LOCATION_MARKERS.search(query)) or len(query) > _LONG_QUERY_CHARS
    return bool(_EN_LOCATION_MARKERS.search(query.lower())) or len(query) > _LONG_QUERY_CHARS


def contextualize_query(query: str, city: str, language: Language) -> str:
    """Splice a stored city into the query using a language-specific template."""
    if language == Language.ja:
        return f"{city}の{query}"
    return f"{query} in {city}"


def resolve_context(session: Session | None, query: str, language: Language) -> ContextResolution:
    """Decide whether the query needs a location and rewrite it if one is stored.

    A missing session is treated as a conversation with no stored context.
    Time input is never requested: absent a date, the current timeframe applies.
    """
    if has_location_indicators(query, language):
        return ContextResolution(
            session=session,
            needs_location_input=False,
            needs_time_input=False,
            contextual_query=query,
        )

    current = session.store.current_location if session is not None else None
    if current is None:
        return ContextResolution(
            session=session,
            needs_location_input=True,
            needs_time_input=False,
            contextual_query=query,
        )

    return ContextResolution(
        session=session,
        needs_location_input=False,
        needs_time_input=False,
        contextual_query=contextualize_query(query, current.city, language),
    )


def infer_intent(query: str, tool_count: int) -> QueryIntent:
    """Coarse intent of a query, given how many lookups it triggered."""
    lowered = query.lower()
    if tool_count > 1 or _COMPARISON_WORDS.search(lowered):
        return QueryIntent.comparison
    if _CLOTHING_WORDS.search(lowered):
        return QueryIntent.clothing
    if _TRAVEL_WORDS.search(lowered):
        return QueryIntent.travel
    if tool_count > 0:
        return QueryIntent.weather
    return QueryIntent.general
