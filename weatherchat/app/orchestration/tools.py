"""get_weather tool: schema, argument parsing, and concurrent execution."""

import asyncio
import json
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

from pydantic import ValidationError

from weatherchat.app.adapters.weather import WeatherService
from weatherchat.app.errors import ToolArgumentError, ToolExecutionError
from weatherchat.app.models.tools import JsonValue, ToolCallLog, ToolCallResult, ToolInvocation
from weatherchat.app.models.weather import WeatherLookup, WeatherToolParams
from weatherchat.app.utils.logging import StructuredToolLogger, ToolContext
from weatherchat.app.utils.metrics import PrometheusTurnMetrics

T = TypeVar("T")

WEATHER_TOOL_NAME = "get_weather"

WEATHER_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": WEATHER_TOOL_NAME,
        "description": (
            "Get current weather, forecast, or historical weather data for any city worldwide. "
            "Supports natural language dates like 'today', 'tomorrow', 'yesterday', "
            "or specific dates."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "location": {
                    "type": "string",
                    "description": (
                        "City name (e.g., 'Tokyo', 'Varanasi', 'New York', 'London'). "
                        "Can be just city name or 'City, Country'."
                    ),
                },
                "date": {
                    "type": "string",
                    "description": (
                        "Date for weather data. Options: 'today' (default), 'tomorrow', "
                        "'yesterday', or YYYY-MM-DD format. For historical data, use dates "
                        "in the past."
                    ),
                },
            },
            "required": ["location"],
        },
    },
}


def parse_tool_invocation(invocation: ToolInvocation) -> WeatherToolParams:
    """Validate a requested invocation into typed weather arguments.

    Raises:
        ToolArgumentError: Unknown tool name, invalid JSON, or schema mismatch
    """
    if invocation.name != WEATHER_TOOL_NAME:
        raise ToolArgumentError(f"Unknown tool requested: {invocation.name}", call_id=invocation.id)

    try:
        raw = json.loads(invocation.arguments or "{}")
    except json.JSONDecodeError as e:
        raise ToolArgumentError(
            f"Tool arguments are not valid JSON: {e}", call_id=invocation.id
        ) from e

    if not isinstance(raw, dict):
        raise ToolArgumentError("Tool arguments must be a JSON object", call_id=invocation.id)

    try:
        return WeatherToolParams.model_validate(raw)
    except ValidationError as e:
        raise ToolArgumentError(
            f"Tool arguments failed validation: {e.error_count()} errors",
            call_id=invocation.id,
            location=raw.get("location") if isinstance(raw.get("location"), str) else None,
        ) from e


async def run_tool(
    *,
    name: str,
    logs: list[ToolCallLog],
    call: Callable[[], Awaitable[T]],
    call_id: str | None = None,
    input_summary: dict[str, JsonValue] | None = None,
    output_counter: Callable[[T], dict[str, JsonValue]] | None = None,
) -> T:
    """Execute a tool call with structured logging.

    Wraps any async tool call to capture timing, success/failure, and
    small input/output summaries. Appends a ToolCallLog to `logs`.

    Raises:
        Exception: Re-raises any exception from the tool call after logging
    """
    started_at = datetime.now(UTC)
    success = False
    error: str | None = None
    result: T | None = None

    try:
        result = await call()
        success = True
    except Exception as e:
        error = str(e)
        raise
    finally:
        finished_at = datetime.now(UTC)
        duration_ms = int((finished_at - started_at).total_seconds() * 1000)

        output_summary: dict[str, JsonValue] = {}
        if success and output_counter is not None and result is not None:
            output_summary = output_counter(result)

        logs.append(
            ToolCallLog(
                name=name,
                call_id=call_id,
                started_at=started_at,
                finished_at=finished_at,
                duration_ms=duration_ms,
                success=success,
                error=error,
                input_summary=input_summary or {},
                output_summary=output_summary,
            )
        )

    return result


def _summarize_lookup(lookup: WeatherLookup) -> dict[str, JsonValue]:
    return {
        "city": lookup.observation.city,
        "date_type": lookup.classification.date_type.value,
        "temperature": lookup.observation.temperature,
    }


async def execute_tool_calls(
    invocations: list[ToolInvocation],
    service: WeatherService,
    *,
    logs: list[ToolCallLog],
    trace_id: str,
    session_id: str | None = None,
    tool_logger: StructuredToolLogger | None = None,
    metrics: PrometheusTurnMetrics | None = None,
) -> list[ToolCallResult]:
    """Run every invocation concurrently and join fail-fast.

    Results keep the order of `invocations`. The first failure cancels the
    lookups still in flight and is raised; no partial results are returned.

    Raises:
        ToolExecutionError: Any single invocation failed
    """
    tool_logger = tool_logger or StructuredToolLogger()
    metrics = metrics or PrometheusTurnMetrics()

    async def execute_one(invocation: ToolInvocation) -> ToolCallResult:
        ctx = ToolContext(
            trace_id=trace_id,
            session_id=session_id,
            tool_name=invocation.name,
            call_id=invocation.id,
        )
        start = time.monotonic()
        date_type = "unknown"
        try:
            params = parse_tool_invocation(invocation)
            lookup = await run_tool(
                name=invocation.name,
                logs=logs,
                call=lambda: service.lookup(params),
                call_id=invocation.id,
                input_summary={"location": params.location, "date": params.date},
                output_counter=_summarize_lookup,
            )
        except ToolExecutionError as e:
            if e.call_id is None:
                e.call_id = invocation.id
            latency_ms = (time.monotonic() - start) * 1000
            tool_logger.log_attempt(ctx, "error", latency_ms, error_reason=type(e).__name__)
            metrics.record_lookup(date_type, "error", latency_ms)
            raise
        except Exception as e:
            latency_ms = (time.monotonic() - start) * 1000
            tool_logger.log_attempt(ctx, "error", latency_ms, error_reason=type(e).__name__)
            metrics.record_lookup(date_type, "error", latency_ms)
            raise ToolExecutionError(
                f"Weather lookup failed: {e}", call_id=invocation.id
            ) from e

        date_type = lookup.classification.date_type.value
        latency_ms = (time.monotonic() - start) * 1000
        tool_logger.log_attempt(ctx, "success", latency_ms, city=lookup.observation.city)
        metrics.record_lookup(date_type, "success", latency_ms)
        return ToolCallResult(call_id=invocation.id, lookup=lookup)

    tasks = [asyncio.create_task(execute_one(invocation)) for invocation in invocations]
    try:
        results = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        # Drain cancelled/failed siblings so their exceptions are retrieved
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    return list(results)
