"""Structured logging for tool execution."""

import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolContext:
    """Context for tool execution with tracing."""

    trace_id: str
    session_id: str | None
    tool_name: str
    call_id: str


class StructuredToolLogger:
    """Structured logger for tool execution."""

    def log_attempt(
        self,
        ctx: ToolContext,
        outcome: str,
        latency_ms: float,
        error_reason: str | None = None,
        **fields: Any,
    ) -> None:
        """Log tool execution attempt with structured data."""
        log_data: dict[str, Any] = {
            "trace_id": ctx.trace_id,
            "session_id": ctx.session_id,
            "tool": ctx.tool_name,
            "call_id": ctx.call_id,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
            **fields,
        }

        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Tool execution: {ctx.tool_name} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
