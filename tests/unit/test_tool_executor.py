"""Tests for concurrent get_weather execution (fail-fast join)."""

import asyncio
import json
import logging

import pytest

from weatherchat.app.errors import (
    LocationNotFoundError,
    ToolArgumentError,
    ToolExecutionError,
)
from weatherchat.app.models import ToolCallLog, ToolInvocation, WeatherLookup, WeatherToolParams
from weatherchat.app.orchestration.tools import execute_tool_calls


def invocation(call_id: str, location: str, date: str | None = None) -> ToolInvocation:
    arguments = {"location": location}
    if date is not None:
        arguments["date"] = date
    return ToolInvocation(id=call_id, name="get_weather", arguments=json.dumps(arguments))


class DelayedWeatherService:
    """Wraps a service, delaying lookups per city and tracking cancellation."""

    def __init__(self, inner, delays: dict[str, float]) -> None:
        self.inner = inner
        self.delays = delays
        self.cancelled: list[str] = []

    async def lookup(self, params: WeatherToolParams) -> WeatherLookup:
        try:
            await asyncio.sleep(self.delays.get(params.location, 0))
        except asyncio.CancelledError:
            self.cancelled.append(params.location)
            raise
        return await self.inner.lookup(params)


class ExplodingWeatherService:
    async def lookup(self, params: WeatherToolParams) -> WeatherLookup:
        raise KeyError("temperature_2m")


@pytest.mark.asyncio
async def test_results_keep_request_order(weather_service) -> None:
    service = DelayedWeatherService(weather_service, {"Tokyo": 0.05, "London": 0.0})
    logs: list[ToolCallLog] = []

    results = await execute_tool_calls(
        [invocation("call_a", "Tokyo"), invocation("call_b", "London")],
        service,
        logs=logs,
        trace_id="trace",
    )

    assert [r.call_id for r in results] == ["call_a", "call_b"]
    assert [r.lookup.observation.city for r in results] == ["Tokyo", "London"]
    assert {log.call_id for log in logs} == {"call_a", "call_b"}
    assert all(log.success for log in logs)


@pytest.mark.asyncio
async def test_tool_message_carries_call_id(weather_service) -> None:
    results = await execute_tool_calls(
        [invocation("call_a", "Paris", "tomorrow")], weather_service, logs=[], trace_id="t"
    )

    message = results[0].to_tool_message()
    assert message["role"] == "tool"
    assert message["tool_call_id"] == "call_a"
    payload = json.loads(message["content"])
    assert payload["city"] == "Paris"
    assert payload["dateType"] == "forecast"
    assert payload["targetDate"] == "2025-06-02"


@pytest.mark.asyncio
async def test_first_failure_cancels_siblings(weather_service) -> None:
    service = DelayedWeatherService(weather_service, {"Tokyo": 5.0, "Atlantis": 0.0})

    with pytest.raises(LocationNotFoundError) as exc_info:
        await execute_tool_calls(
            [invocation("call_a", "Tokyo"), invocation("call_b", "Atlantis")],
            service,
            logs=[],
            trace_id="trace",
        )

    assert exc_info.value.call_id == "call_b"
    assert service.cancelled == ["Tokyo"]


@pytest.mark.asyncio
async def test_malformed_arguments_fail_the_batch(weather_service) -> None:
    with pytest.raises(ToolArgumentError):
        await execute_tool_calls(
            [
                invocation("call_a", "Tokyo"),
                ToolInvocation(id="call_b", name="get_weather", arguments="{broken"),
            ],
            weather_service,
            logs=[],
            trace_id="trace",
        )


@pytest.mark.asyncio
async def test_unexpected_errors_become_tool_errors() -> None:
    logs: list[ToolCallLog] = []

    with pytest.raises(ToolExecutionError) as exc_info:
        await execute_tool_calls(
            [invocation("call_a", "Tokyo")], ExplodingWeatherService(), logs=logs, trace_id="t"
        )

    assert type(exc_info.value) is ToolExecutionError
    assert exc_info.value.call_id == "call_a"
    assert logs[0].success is False


@pytest.mark.asyncio
async def test_attempts_are_logged_with_structure(weather_service, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="weatherchat.app.utils.logging"):
        await execute_tool_calls(
            [invocation("call_a", "Tokyo")],
            weather_service,
            logs=[],
            trace_id="trace-1",
            session_id="session_x",
        )

    records = [r for r in caplog.records if r.name == "weatherchat.app.utils.logging"]
    assert len(records) == 1
    structured = records[0].structured
    assert structured["trace_id"] == "trace-1"
    assert structured["session_id"] == "session_x"
    assert structured["call_id"] == "call_a"
    assert structured["outcome"] == "success"
