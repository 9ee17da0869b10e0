"""Shared pytest fixtures for all test suites."""

import json
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from weatherchat.app.adapters.fixtures import FixtureWeatherService
from weatherchat.app.llm.client import CompletionResult, ScriptedCompletionClient
from weatherchat.app.models import LocationData, ToolInvocation
from weatherchat.app.orchestration.turn import WeatherChatOrchestrator
from weatherchat.app.sessions.registry import SessionRegistry

FIXED_NOW = datetime(2025, 6, 1, 9, 0, tzinfo=UTC)


class FakeClock:
    """Settable clock for TTL and date tests."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> SessionRegistry:
    return SessionRegistry(ttl_hours=24, clock=clock)


@pytest.fixture
def weather_service(clock: FakeClock) -> FixtureWeatherService:
    return FixtureWeatherService(clock=clock)


@pytest.fixture
def completions() -> ScriptedCompletionClient:
    return ScriptedCompletionClient()


@pytest.fixture
def orchestrator(
    completions: ScriptedCompletionClient,
    weather_service: FixtureWeatherService,
    registry: SessionRegistry,
    clock: FakeClock,
) -> WeatherChatOrchestrator:
    return WeatherChatOrchestrator(completions, weather_service, registry, clock=clock)


@pytest.fixture
def tool_calls() -> Callable[..., CompletionResult]:
    """Build a completion that requests one get_weather call per location."""

    def build(*locations: str | tuple[str, str]) -> CompletionResult:
        invocations = []
        for i, item in enumerate(locations):
            arguments: dict[str, Any]
            if isinstance(item, tuple):
                arguments = {"location": item[0], "date": item[1]}
            else:
                arguments = {"location": item}
            invocations.append(
                ToolInvocation(id=f"call_{i}", name="get_weather", arguments=json.dumps(arguments))
            )
        return CompletionResult(content=None, tool_calls=invocations)

    return build


@pytest.fixture
def tokyo() -> LocationData:
    return LocationData(city="Tokyo", country="Japan", latitude=35.6762, longitude=139.6503)


@pytest.fixture
def varanasi() -> LocationData:
    return LocationData(city="Varanasi", country="India", latitude=25.3176, longitude=82.9739)


@pytest.fixture
def london() -> LocationData:
    return LocationData(city="London", country="UK", latitude=51.5074, longitude=-0.1278)
