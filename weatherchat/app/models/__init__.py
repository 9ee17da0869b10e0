"""Models package - re-exports for convenience."""

from weatherchat.app.models.chat import ChatMessage, ChatRequest, ChatResponse
from weatherchat.app.models.common import (
    DateType,
    DetailLevel,
    FlowKind,
    Geo,
    Language,
    QueryIntent,
    Units,
)
from weatherchat.app.models.context import (
    ContextUpdate,
    ConversationContext,
    FlowEntry,
    LocationData,
    LocationState,
    RecentDate,
    SessionInfo,
    TemporalContext,
    UserPreferences,
    WeatherContext,
)
from weatherchat.app.models.tools import ToolCallLog, ToolCallResult, ToolInvocation
from weatherchat.app.models.weather import (
    DateClassification,
    WeatherLookup,
    WeatherObservation,
    WeatherToolParams,
)

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "ContextUpdate",
    "ConversationContext",
    "DateClassification",
    "DateType",
    "DetailLevel",
    "FlowEntry",
    "FlowKind",
    "Geo",
    "Language",
    "LocationData",
    "LocationState",
    "QueryIntent",
    "RecentDate",
    "SessionInfo",
    "TemporalContext",
    "ToolCallLog",
    "ToolCallResult",
    "ToolInvocation",
    "Units",
    "UserPreferences",
    "WeatherContext",
    "WeatherLookup",
    "WeatherObservation",
    "WeatherToolParams",
]
