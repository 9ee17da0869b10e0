"""Conversational context models.

The aggregate root is WeatherContext. It is persisted as JSON, so every
sub-record has bounded defaults and the snapshot carries a schema version.
"""

from datetime import UTC, date, datetime

from pydantic import BaseModel, Field

from weatherchat.app.models.common import (
    DateType,
    DetailLevel,
    FlowKind,
    Language,
    QueryIntent,
    Units,
)

CONTEXT_SCHEMA_VERSION = 1

MAX_RECENT_LOCATIONS = 5
MAX_RECENT_DATES = 10
MAX_FLOW_ENTRIES = 20


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(UTC)


class LocationData(BaseModel):
    """A resolved place. Identity is the (city, country) pair."""

    city: str
    country: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    timezone: str | None = None
    confidence: float | None = Field(None, ge=0.0, le=1.0)
    last_used_at: datetime | None = None

    @property
    def identity(self) -> tuple[str, str]:
        return (self.city, self.country)

    @property
    def label(self) -> str:
        return f"{self.city}, {self.country}"


class LocationState(BaseModel):
    """Current location plus the MRU list of recent ones."""

    current: LocationData | None = None
    recent: list[LocationData] = Field(default_factory=list)


class RecentDate(BaseModel):
    """A non-current date the user asked about."""

    date: date
    type: DateType
    last_used_at: datetime


class TemporalContext(BaseModel):
    """Timeframe of the conversation."""

    current_timeframe: DateType = DateType.current
    target_date: date | None = None
    recent_dates: list[RecentDate] = Field(default_factory=list)
    relative_date_hint: str | None = None


class FlowEntry(BaseModel):
    """One entry in the conversation flow log."""

    kind: FlowKind
    value: str
    timestamp: datetime


class ConversationContext(BaseModel):
    """What was asked last and how the conversation has moved."""

    last_query: str = ""
    query_intent: QueryIntent = QueryIntent.general
    follow_up_hint: str | None = None
    flow: list[FlowEntry] = Field(default_factory=list)
    last_response: str | None = None


class UserPreferences(BaseModel):
    """Per-conversation user preferences."""

    language: Language = Language.en
    units: Units = Units.metric
    detail_level: DetailLevel = DetailLevel.detailed
    favorite_locations: list[LocationData] = Field(default_factory=list)
    default_location: LocationData | None = None


class SessionInfo(BaseModel):
    """Activity bookkeeping for the conversation."""

    start_time: datetime = Field(default_factory=utcnow)
    last_activity_time: datetime = Field(default_factory=utcnow)
    message_count: int = Field(0, ge=0)


class WeatherContext(BaseModel):
    """Aggregate conversational state for one conversation."""

    version: int = CONTEXT_SCHEMA_VERSION
    location: LocationState = Field(default_factory=LocationState)
    temporal: TemporalContext = Field(default_factory=TemporalContext)
    conversation: ConversationContext = Field(default_factory=ConversationContext)
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    session: SessionInfo = Field(default_factory=SessionInfo)


class ContextUpdate(BaseModel):
    """Partial update: each present sub-record replaces the owned one."""

    location: LocationState | None = None
    temporal: TemporalContext | None = None
    conversation: ConversationContext | None = None
    preferences: UserPreferences | None = None
