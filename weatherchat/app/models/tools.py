"""Tool invocation and tool call logging models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from weatherchat.app.models.weather import WeatherLookup

# JSON-serializable value type
JsonValue = str | int | float | bool | None | dict[str, Any] | list[Any]


class ToolInvocation(BaseModel):
    """A tool call requested by the completion provider (arguments still raw JSON)."""

    id: str
    name: str
    arguments: str = ""


class ToolCallResult(BaseModel):
    """Correlates a requested invocation with its lookup outcome."""

    call_id: str
    lookup: WeatherLookup

    def to_tool_message(self) -> dict[str, Any]:
        """Tool-result message for the second completion request."""
        return {
            "role": "tool",
            "tool_call_id": self.call_id,
            "content": self.lookup.observation.model_dump_json(by_alias=True),
        }


class ToolCallLog(BaseModel):
    """Log entry for a single tool call.

    Captures timing, success/failure, and small input/output summaries
    for observability without storing full payloads.
    """

    name: str = Field(..., description="Tool name (e.g. 'get_weather')")
    call_id: str | None = Field(None, description="Provider call identifier")
    started_at: datetime = Field(..., description="UTC timestamp when call started")
    finished_at: datetime = Field(..., description="UTC timestamp when call finished")
    duration_ms: int = Field(..., description="Duration in milliseconds")
    success: bool = Field(..., description="True if call succeeded, False if error")
    error: str | None = Field(None, description="Error message if call failed")
    input_summary: dict[str, JsonValue] = Field(
        default_factory=dict,
        description="Small summary of inputs (non-PII, key scalars only)",
    )
    output_summary: dict[str, JsonValue] = Field(
        default_factory=dict,
        description="Small summary of outputs (counts/aggregates only)",
    )
