"""Tests for context snapshot backends."""

from unittest.mock import MagicMock

import pytest
import redis

from weatherchat.app.context.persistence import (
    InMemoryContextPersistence,
    RedisContextPersistence,
    make_session_key,
    redis_persistence_factory,
)
from weatherchat.app.errors import ContextPersistenceError


def test_in_memory_round_trip() -> None:
    backend = InMemoryContextPersistence()
    assert backend.load() is None

    backend.save('{"version": 1}')
    assert backend.load() == '{"version": 1}'

    backend.clear()
    assert backend.load() is None


def test_session_key_format() -> None:
    assert make_session_key("weather-app-context", "session_abc") == "weather-app-context:session_abc"


class TestRedisContextPersistence:
    def test_save_sets_key_with_ttl(self) -> None:
        client = MagicMock()
        backend = RedisContextPersistence(client, "ctx:1", ttl_seconds=3600)

        backend.save("{}")

        client.set.assert_called_once_with("ctx:1", "{}", ex=3600)

    def test_load_decodes_bytes(self) -> None:
        client = MagicMock()
        client.get.return_value = b'{"version": 1}'

        assert RedisContextPersistence(client, "ctx:1").load() == '{"version": 1}'

    def test_load_missing_key(self) -> None:
        client = MagicMock()
        client.get.return_value = None

        assert RedisContextPersistence(client, "ctx:1").load() is None

    def test_clear_deletes_key(self) -> None:
        client = MagicMock()
        RedisContextPersistence(client, "ctx:1").clear()
        client.delete.assert_called_once_with("ctx:1")

    @pytest.mark.parametrize("method", ["load", "save", "clear"])
    def test_redis_errors_are_wrapped(self, method: str) -> None:
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError("down")
        client.set.side_effect = redis.ConnectionError("down")
        client.delete.side_effect = redis.ConnectionError("down")
        backend = RedisContextPersistence(client, "ctx:1")

        with pytest.raises(ContextPersistenceError):
            if method == "save":
                backend.save("{}")
            else:
                getattr(backend, method)()


def test_factory_gives_each_session_its_own_key() -> None:
    client = MagicMock()
    factory = redis_persistence_factory(client, "weather-app-context", ttl_seconds=60)

    backend = factory("session_abc")

    assert isinstance(backend, RedisContextPersistence)
    assert backend.key == "weather-app-context:session_abc"
