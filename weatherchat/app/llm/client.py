"""Completion client with OpenAI tool-calling integration.

Security: Reads API key from settings (environment) only, never hardcoded.
No automatic retries: one failed request ends the turn.
"""

import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol

import openai
from openai import AsyncOpenAI

from weatherchat.app.config import Settings
from weatherchat.app.errors import ConfigurationError, UpstreamCompletionError
from weatherchat.app.models.tools import ToolInvocation

logger = logging.getLogger(__name__)


@dataclass
class CompletionResult:
    """Parsed completion: either text content or requested tool invocations."""

    content: str | None
    tool_calls: list[ToolInvocation] = field(default_factory=list)

    @property
    def wants_tools(self) -> bool:
        return bool(self.tool_calls)

    def assistant_message(self) -> dict[str, Any]:
        """The assistant message to echo back in a follow-up request."""
        message: dict[str, Any] = {"role": "assistant", "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in self.tool_calls
            ]
        return message


class CompletionClient(Protocol):
    """Protocol for completion provider implementations."""

    async def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
        stage: str = "first",
    ) -> CompletionResult:
        """Submit a message sequence (plus optional tool schema).

        Raises:
            UpstreamCompletionError: Non-success status or transport failure
        """
        ...


class OpenAICompletionClient:
    """OpenAI-backed completion client."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-3.5-turbo",
        temperature: float = 0.7,
        timeout_seconds: float = 30.0,
    ):
        """Initialize OpenAI client.

        Args:
            api_key: OpenAI API key (read from environment)
            model: Model name to use
            temperature: Sampling temperature for both round trips
            timeout_seconds: Per-request timeout
        """
        self.client = AsyncOpenAI(api_key=api_key, timeout=timeout_seconds, max_retries=0)
        self.model = model
        self.temperature = temperature

    async def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
        stage: str = "first",
    ) -> CompletionResult:
        """Generate a completion using the OpenAI chat completions API."""
        request: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }
        if tools:
            request["tools"] = tools
            request["tool_choice"] = "auto"

        try:
            response = await self.client.chat.completions.create(**request)
        except openai.OpenAIError as e:
            logger.error(f"OpenAI API call failed ({stage}): {e}")
            raise UpstreamCompletionError(f"OpenAI API error: {e}", stage=stage) from e

        if not response.choices:
            raise UpstreamCompletionError("OpenAI returned no choices", stage=stage)

        message = response.choices[0].message
        tool_calls = [
            ToolInvocation(
                id=call.id,
                name=call.function.name,
                arguments=call.function.arguments or "",
            )
            for call in (message.tool_calls or [])
            if getattr(call, "function", None) is not None
        ]
        return CompletionResult(content=message.content, tool_calls=tool_calls)


class ScriptedCompletionClient:
    """Deterministic client that replays queued results (evals and tests).

    Every request is recorded in `requests` for inspection.
    """

    def __init__(self, results: Iterable[CompletionResult | Exception] = ()) -> None:
        self._queue: deque[CompletionResult | Exception] = deque(results)
        self.requests: list[dict[str, Any]] = []

    def enqueue(self, *results: CompletionResult | Exception) -> None:
        self._queue.extend(results)

    async def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
        stage: str = "first",
    ) -> CompletionResult:
        self.requests.append({"messages": messages, "tools": tools, "stage": stage})
        if not self._queue:
            raise UpstreamCompletionError("No scripted completion left", stage=stage)
        result = self._queue.popleft()
        if isinstance(result, Exception):
            raise result
        return result


def get_completion_client(settings: Settings) -> CompletionClient:
    """Build the completion client configured in settings.

    Raises:
        ConfigurationError: No OpenAI API key configured
    """
    api_key = settings.openai_api_key
    if api_key is None or not api_key.get_secret_value():
        raise ConfigurationError("OpenAI API key not found")

    logger.info(f"Using OpenAI client ({settings.openai_model})")
    return OpenAICompletionClient(
        api_key=api_key.get_secret_value(),
        model=settings.openai_model,
        temperature=settings.openai_temperature,
        timeout_seconds=settings.openai_timeout_seconds,
    )
