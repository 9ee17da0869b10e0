"""Pluggable durable storage for context snapshots.

A backend stores one serialized WeatherContext under one key. Failures surface
as ContextPersistenceError so the store can degrade to in-memory state.
"""

from collections.abc import Callable
from typing import Protocol

import redis

from weatherchat.app.errors import ContextPersistenceError


class ContextPersistence(Protocol):
    """Storage for a single serialized context snapshot."""

    def load(self) -> str | None:
        """Return the stored snapshot, or None when nothing is stored."""
        ...

    def save(self, payload: str) -> None:
        """Store the snapshot, replacing any previous one."""
        ...

    def clear(self) -> None:
        """Remove the stored snapshot."""
        ...


class InMemoryContextPersistence:
    """Process-local backend, mostly useful in tests."""

    def __init__(self, payload: str | None = None) -> None:
        self._payload = payload

    def load(self) -> str | None:
        return self._payload

    def save(self, payload: str) -> None:
        self._payload = payload

    def clear(self) -> None:
        self._payload = None


class RedisContextPersistence:
    """Redis-backed snapshot storage (GET / SET EX / DEL on one key)."""

    def __init__(self, client: redis.Redis, key: str, ttl_seconds: int | None = None) -> None:
        """Initialize backend.

        Args:
            client: Redis client
            key: Storage key for this snapshot
            ttl_seconds: Optional expiry applied on every save
        """
        self._redis = client
        self._key = key
        self._ttl_seconds = ttl_seconds

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> str | None:
        try:
            value = self._redis.get(self._key)
        except redis.RedisError as e:
            raise ContextPersistenceError(f"redis GET {self._key} failed: {e}") from e
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def save(self, payload: str) -> None:
        try:
            self._redis.set(self._key, payload, ex=self._ttl_seconds)
        except redis.RedisError as e:
            raise ContextPersistenceError(f"redis SET {self._key} failed: {e}") from e

    def clear(self) -> None:
        try:
            self._redis.delete(self._key)
        except redis.RedisError as e:
            raise ContextPersistenceError(f"redis DEL {self._key} failed: {e}") from e


PersistenceFactory = Callable[[str], ContextPersistence]


def make_session_key(base_key: str, session_id: str) -> str:
    """Storage key for a server-side session snapshot."""
    return f"{base_key}:{session_id}"


def redis_persistence_factory(
    client: redis.Redis, base_key: str, ttl_seconds: int | None = None
) -> PersistenceFactory:
    """Build a factory that gives each session its own Redis key."""

    def factory(session_id: str) -> ContextPersistence:
        return RedisContextPersistence(
            client, make_session_key(base_key, session_id), ttl_seconds=ttl_seconds
        )

    return factory
