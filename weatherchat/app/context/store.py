"""Context store: owns one WeatherContext and keeps it bounded and persisted.

Bounding rules applied on every write:
- location.recent: deduplicated by (city, country), newest first, at most 5
- temporal.recent_dates: deduplicated by date, newest first, at most 10,
  only historical/forecast entries
- temporal.target_date is None whenever the timeframe is current
- conversation.flow: last 20 entries
"""

import logging
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from typing import Any

from pydantic import ValidationError

from weatherchat.app.context.persistence import ContextPersistence
from weatherchat.app.errors import ContextPersistenceError
from weatherchat.app.models.common import DateType, FlowKind, Language, QueryIntent
from weatherchat.app.models.context import (
    CONTEXT_SCHEMA_VERSION,
    MAX_FLOW_ENTRIES,
    MAX_RECENT_DATES,
    MAX_RECENT_LOCATIONS,
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
    utcnow,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def bound_recent_locations(locations: list[LocationData]) -> list[LocationData]:
    """Deduplicate by identity keeping the first (newest) occurrence, then cap."""
    seen: set[tuple[str, str]] = set()
    bounded: list[LocationData] = []
    for loc in locations:
        if loc.identity in seen:
            continue
        seen.add(loc.identity)
        bounded.append(loc)
    return bounded[:MAX_RECENT_LOCATIONS]


def bound_recent_dates(entries: list[RecentDate]) -> list[RecentDate]:
    """Deduplicate by date keeping the first (newest) occurrence, then cap."""
    seen: set[date] = set()
    bounded: list[RecentDate] = []
    for entry in entries:
        if entry.type == DateType.current or entry.date in seen:
            continue
        seen.add(entry.date)
        bounded.append(entry)
    return bounded[:MAX_RECENT_DATES]


def apply_bounds(context: WeatherContext) -> WeatherContext:
    """Return a copy of the context with every bounding rule enforced."""
    temporal = context.temporal
    target_date = None if temporal.current_timeframe == DateType.current else temporal.target_date
    location = context.location
    # The current location always heads the MRU list
    recent = [location.current, *location.recent] if location.current else location.recent

    return context.model_copy(
        update={
            "location": location.model_copy(update={"recent": bound_recent_locations(recent)}),
            "temporal": temporal.model_copy(
                update={
                    "target_date": target_date,
                    "recent_dates": bound_recent_dates(temporal.recent_dates),
                }
            ),
            "conversation": context.conversation.model_copy(
                update={"flow": context.conversation.flow[-MAX_FLOW_ENTRIES:]}
            ),
        }
    )


class ContextStore:
    """Typed, mergeable conversational state with an optional persistence hook."""

    def __init__(
        self,
        persistence: ContextPersistence | None = None,
        *,
        expiry_hours: int = 24,
        clock: Clock = utcnow,
        default_language: Language = Language.en,
        restore: bool = True,
    ) -> None:
        """Initialize store.

        Args:
            persistence: Durable snapshot backend (None = in-memory only)
            expiry_hours: Persisted snapshots older than this are discarded on load
            clock: Source of the current time
            default_language: Language preference of a fresh context
            restore: Load a persisted snapshot immediately when one exists
        """
        self._persistence = persistence
        self._expiry = timedelta(hours=expiry_hours)
        self._clock = clock
        self._default_language = default_language
        self._context = self.initialize()
        if restore and persistence is not None:
            self.load()

    # Lifecycle

    def initialize(self) -> WeatherContext:
        """Fresh context with default sub-records."""
        now = self._clock()
        return WeatherContext(
            preferences=UserPreferences(language=self._default_language),
            session=SessionInfo(start_time=now, last_activity_time=now, message_count=0),
        )

    def load(self) -> bool:
        """Restore a persisted snapshot.

        Returns:
            True if a fresh, valid snapshot replaced the current state
        """
        if self._persistence is None:
            return False

        try:
            raw = self._persistence.load()
        except ContextPersistenceError as e:
            logger.warning(f"Failed to load persisted context: {e}")
            return False

        if raw is None:
            return False

        try:
            restored = WeatherContext.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Persisted context failed validation, discarding: {e.error_count()} errors")
            self._clear_persisted()
            return False

        if restored.version != CONTEXT_SCHEMA_VERSION:
            logger.warning(
                f"Persisted context has schema version {restored.version}, "
                f"expected {CONTEXT_SCHEMA_VERSION}; starting fresh"
            )
            self._clear_persisted()
            return False

        now = self._clock()
        last_activity = _as_aware(restored.session.last_activity_time)
        if now - last_activity >= self._expiry:
            logger.info("Stored context expired, starting fresh")
            self._clear_persisted()
            return False

        restored = apply_bounds(restored)
        self._context = restored
        logger.info("Context restored from storage")
        return True

    def reset(self) -> None:
        """Return to fresh defaults and clear any persisted copy."""
        self._context = self.initialize()
        self._clear_persisted()
        logger.info("Context cleared")

    def discard_persisted(self) -> None:
        """Clear the persisted copy without touching in-memory state."""
        self._clear_persisted()

    # Reads

    def snapshot(self) -> WeatherContext:
        """Read-only deep copy of the owned context."""
        return self._context.model_copy(deep=True)

    @property
    def current_location(self) -> LocationData | None:
        return self._context.location.current

    @property
    def recent_locations(self) -> list[LocationData]:
        return list(self._context.location.recent)

    @property
    def last_activity_time(self) -> datetime:
        return _as_aware(self._context.session.last_activity_time)

    def summarize(self) -> str:
        """Compact digest used as a hint in the completion instruction preamble."""
        ctx = self._context
        location = ctx.location.current
        temporal = ctx.temporal
        timeframe = temporal.current_timeframe.value
        if temporal.target_date:
            timeframe += f" ({temporal.target_date.isoformat()})"
        recent = ", ".join(loc.city for loc in ctx.location.recent[:3])

        return (
            "Current Context:\n"
            f"- Location: {location.label if location else 'Not set'}\n"
            f"- Timeframe: {timeframe}\n"
            f"- Last Query: {ctx.conversation.last_query or 'None'}\n"
            f"- Intent: {ctx.conversation.query_intent.value}\n"
            f"- Recent Locations: {recent or 'None'}\n"
            f"- Session: {ctx.session.message_count} messages"
        )

    # Writes

    def merge(self, partial: ContextUpdate) -> WeatherContext:
        """Shallow-merge a partial update, re-apply bounds and persist."""
        updates = {
            name: value.model_copy(deep=True)
            for name, value in (
                ("location", partial.location),
                ("temporal", partial.temporal),
                ("conversation", partial.conversation),
                ("preferences", partial.preferences),
            )
            if value is not None
        }
        self._context = apply_bounds(self._context.model_copy(update=updates))
        self._touch()
        self._persist()
        return self.snapshot()

    def update_location(self, location: LocationData) -> None:
        """Make a location current and move it to the front of the recent list."""
        now = self._clock()
        logger.info(f"Updating location context: {location.city}")

        current = location.model_copy(
            update={
                "last_used_at": now,
                "confidence": location.confidence if location.confidence is not None else 1.0,
            }
        )
        recent = bound_recent_locations([current, *self._context.location.recent])
        self._context.location = LocationState(current=current, recent=recent)

        self._append_flow(FlowKind.location, current.label, now)
        self._touch(now)
        self._persist()

    def update_temporal(
        self,
        timeframe: DateType,
        target_date: date | None = None,
        relative_date_hint: str | None = None,
    ) -> None:
        """Set the timeframe; non-current target dates join the recent-dates list."""
        now = self._clock()
        logger.info(f"Updating temporal context: {timeframe.value} {target_date}")

        temporal = self._context.temporal
        if timeframe == DateType.current:
            target_date = None

        recent_dates = temporal.recent_dates
        if target_date is not None:
            recent_dates = bound_recent_dates(
                [RecentDate(date=target_date, type=timeframe, last_used_at=now), *recent_dates]
            )
            self._append_flow(FlowKind.date, relative_date_hint or target_date.isoformat(), now)

        self._context.temporal = TemporalContext(
            current_timeframe=timeframe,
            target_date=target_date,
            recent_dates=recent_dates,
            relative_date_hint=relative_date_hint,
        )
        self._touch(now)
        self._persist()

    def update_conversation(
        self,
        query: str,
        intent: QueryIntent,
        follow_up_hint: str | None = None,
        last_response: str | None = None,
    ) -> None:
        """Record the latest query and its intent."""
        now = self._clock()
        logger.info(f"Updating conversation context: {intent.value}")

        conversation = self._context.conversation
        self._context.conversation = ConversationContext(
            last_query=query,
            query_intent=intent,
            follow_up_hint=follow_up_hint,
            flow=conversation.flow,
            last_response=last_response if last_response is not None else conversation.last_response,
        )
        self._append_flow(FlowKind.intent, intent.value, now)
        self._touch(now)
        self._persist()

    def update_preferences(self, **changes: Any) -> None:
        """Update individual preference fields (validated)."""
        merged = {**self._context.preferences.model_dump(), **changes}
        self._context.preferences = UserPreferences.model_validate(merged)
        self._touch()
        self._persist()

    def record_message(self) -> None:
        """Count one processed message."""
        self._context.session.message_count += 1
        self._touch()
        self._persist()

    # Internals

    def _append_flow(self, kind: FlowKind, value: str, now: datetime) -> None:
        flow = [*self._context.conversation.flow, FlowEntry(kind=kind, value=value, timestamp=now)]
        self._context.conversation.flow = flow[-MAX_FLOW_ENTRIES:]

    def _touch(self, now: datetime | None = None) -> None:
        self._context.session.last_activity_time = now or self._clock()

    def _persist(self) -> None:
        if self._persistence is None:
            return
        try:
            self._persistence.save(self._context.model_dump_json())
        except ContextPersistenceError as e:
            logger.warning(f"Failed to persist context: {e}")

    def _clear_persisted(self) -> None:
        if self._persistence is None:
            return
        try:
            self._persistence.clear()
        except ContextPersistenceError as e:
            logger.warning(f"Failed to clear persisted context: {e}")
