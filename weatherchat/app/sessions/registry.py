"""In-memory session registry with sliding TTL expiry.

Each session owns one ContextStore. Unknown or expired identifiers yield None
(never an exception); callers fall back to stateless handling. Mutations are
serialized per session with an asyncio.Lock and applied to the latest state.
"""

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from weatherchat.app.context.persistence import PersistenceFactory
from weatherchat.app.context.store import Clock, ContextStore
from weatherchat.app.models.common import DateType, Language, QueryIntent
from weatherchat.app.models.context import ContextUpdate, LocationData, WeatherContext, utcnow
from weatherchat.app.models.weather import WeatherLookup
from weatherchat.app.orchestration.dates import relative_date_hint
from weatherchat.app.utils.metrics import sessions_active, sessions_evicted_total

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Server-side state bucket for one conversation."""

    session_id: str
    store: ContextStore
    last_activity_time: datetime
    expires_at: datetime

    @property
    def context(self) -> WeatherContext:
        return self.store.snapshot()

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


class SessionRegistry:
    """Keyed store of sessions with lazy and periodic eviction."""

    def __init__(
        self,
        *,
        ttl_hours: int = 24,
        context_expiry_hours: int | None = None,
        clock: Clock = utcnow,
        persistence_factory: PersistenceFactory | None = None,
        default_language: Language = Language.en,
    ) -> None:
        """Initialize registry.

        Args:
            ttl_hours: Inactivity window after which a session expires
            context_expiry_hours: Age limit of restored snapshots (defaults to ttl_hours)
            clock: Source of the current time (injectable for tests)
            persistence_factory: Builds a snapshot backend per session id (optional)
            default_language: Language preference of new sessions
        """
        self._ttl = timedelta(hours=ttl_hours)
        self._context_expiry_hours = context_expiry_hours or ttl_hours
        self._clock = clock
        self._persistence_factory = persistence_factory
        self._default_language = default_language
        self._sessions: dict[str, Session] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @staticmethod
    def generate_session_id() -> str:
        return f"session_{uuid.uuid4().hex}"

    async def create(self, seed: ContextUpdate | None = None) -> Session:
        """Insert a fresh session, optionally seeded with a partial context."""
        session_id = self.generate_session_id()
        store = self._new_store(session_id, restore=False)
        if seed is not None:
            store.merge(seed)

        now = self._clock()
        session = Session(
            session_id=session_id,
            store=store,
            last_activity_time=now,
            expires_at=now + self._ttl,
        )
        self._sessions[session_id] = session
        sessions_active.set(len(self._sessions))
        logger.info(f"Created new session: {session_id}")
        return session

    async def get(self, session_id: str) -> Session | None:
        """Return the live session, or None if unknown or expired.

        Reading does not slide the expiry.
        """
        return self._lookup(session_id, self._clock())

    async def update(self, session_id: str, partial: ContextUpdate) -> Session | None:
        """Merge a partial context, count the message and slide the expiry."""
        return await self._mutate(session_id, lambda store: store.merge(partial))

    async def update_location(self, session_id: str, location: LocationData) -> Session | None:
        return await self._mutate(session_id, lambda store: store.update_location(location))

    async def update_temporal(
        self,
        session_id: str,
        timeframe: DateType,
        target_date: date | None = None,
        relative_date_hint: str | None = None,
    ) -> Session | None:
        return await self._mutate(
            session_id,
            lambda store: store.update_temporal(timeframe, target_date, relative_date_hint),
        )

    async def update_conversation(
        self,
        session_id: str,
        query: str,
        intent: QueryIntent,
        follow_up_hint: str | None = None,
    ) -> Session | None:
        return await self._mutate(
            session_id,
            lambda store: store.update_conversation(query, intent, follow_up_hint),
        )

    async def record_turn(
        self,
        session_id: str,
        *,
        lookups: list[WeatherLookup],
        query: str,
        intent: QueryIntent,
        language: Language,
        response: str | None,
    ) -> Session | None:
        """Apply everything a completed tool turn resolved as one mutation.

        Locations are applied in request order, so the last lookup becomes
        current; the temporal context follows the last lookup too.
        """

        def apply(store: ContextStore) -> None:
            for lookup in lookups:
                store.update_location(lookup.location)
            if lookups:
                last = lookups[-1]
                store.update_temporal(
                    last.classification.date_type,
                    last.classification.target_date,
                    relative_date_hint(last.requested_date),
                )
            store.update_conversation(query, intent, last_response=response)
            if store.snapshot().preferences.language != language:
                store.update_preferences(language=language)

        return await self._mutate(session_id, apply)

    async def delete(self, session_id: str) -> bool:
        """Evict a session explicitly. Returns False if it was not live."""
        async with self.lock(session_id):
            session = self._lookup(session_id, self._clock())
            if session is None:
                return False
            self._evict(session, reason="deleted")
            return True

    def sweep(self) -> int:
        """Remove every expired session. Returns the number removed."""
        now = self._clock()
        expired = [s for s in self._sessions.values() if s.is_expired(now)]
        for session in expired:
            self._evict(session, reason="sweep")

        if expired:
            logger.info(f"Cleaned up {len(expired)} expired sessions")
        return len(expired)

    def stats(self) -> dict[str, int]:
        """Total sessions held and how many are still live."""
        now = self._clock()
        active = sum(1 for s in self._sessions.values() if not s.is_expired(now))
        return {"total_sessions": len(self._sessions), "active_sessions": active}

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        """Hold the per-session mutation lock."""
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        try:
            async with lock:
                yield
        finally:
            # Locks of unknown or evicted ids are dropped once released
            if session_id not in self._sessions and not lock.locked():
                if self._locks.get(session_id) is lock:
                    del self._locks[session_id]

    # Internals

    def _new_store(self, session_id: str, *, restore: bool) -> ContextStore:
        persistence = self._persistence_factory(session_id) if self._persistence_factory else None
        return ContextStore(
            persistence,
            expiry_hours=self._context_expiry_hours,
            clock=self._clock,
            default_language=self._default_language,
            restore=restore,
        )

    def _lookup(self, session_id: str, now: datetime) -> Session | None:
        session = self._sessions.get(session_id)

        if session is None:
            return self._restore(session_id, now)

        if session.is_expired(now):
            logger.info(f"Session expired: {session_id}")
            self._evict(session, reason="expired")
            return None

        return session

    def _restore(self, session_id: str, now: datetime) -> Session | None:
        if self._persistence_factory is None:
            logger.info(f"Session not found: {session_id}")
            return None

        store = self._new_store(session_id, restore=False)
        if not store.load():
            logger.info(f"Session not found: {session_id}")
            return None

        # Expiry stays anchored to the last persisted mutation
        last_activity = store.last_activity_time
        session = Session(
            session_id=session_id,
            store=store,
            last_activity_time=last_activity,
            expires_at=last_activity + self._ttl,
        )
        if session.is_expired(now):
            logger.info(f"Session expired: {session_id}")
            store.discard_persisted()
            return None

        self._sessions[session_id] = session
        sessions_active.set(len(self._sessions))
        logger.info(f"Restored session from storage: {session_id}")
        return session

    def _evict(self, session: Session, *, reason: str) -> None:
        self._sessions.pop(session.session_id, None)
        lock = self._locks.get(session.session_id)
        if lock is not None and not lock.locked():
            del self._locks[session.session_id]
        session.store.discard_persisted()
        sessions_evicted_total.labels(reason=reason).inc()
        sessions_active.set(len(self._sessions))

    async def _mutate(
        self, session_id: str, apply: Callable[[ContextStore], object]
    ) -> Session | None:
        async with self.lock(session_id):
            now = self._clock()
            session = self._lookup(session_id, now)
            if session is None:
                return None

            apply(session.store)
            session.store.record_message()
            session.last_activity_time = now
            session.expires_at = now + self._ttl
            logger.info(f"Updated session: {session_id}")
            return session
