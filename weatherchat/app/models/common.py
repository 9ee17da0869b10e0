"""Common types and enums shared across all models."""

from enum import Enum

from pydantic import BaseModel, Field


class Geo(BaseModel):
    """Geographic coordinates (WGS84)."""

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class Language(str, Enum):
    """Supported response languages."""

    en = "en"
    ja = "ja"


class DateType(str, Enum):
    """Classification of a weather query by date."""

    current = "current"
    historical = "historical"
    forecast = "forecast"


class QueryIntent(str, Enum):
    """Coarse intent of the last weather-related query."""

    weather = "weather"
    clothing = "clothing"
    travel = "travel"
    comparison = "comparison"
    general = "general"


class FlowKind(str, Enum):
    """Kind of entry in the conversation flow log."""

    location = "location"
    date = "date"
    intent = "intent"


class Units(str, Enum):
    """Measurement system preference."""

    metric = "metric"
    imperial = "imperial"


class DetailLevel(str, Enum):
    """How much detail the user wants in answers."""

    basic = "basic"
    detailed = "detailed"
