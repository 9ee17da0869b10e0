"""Turn orchestrator: one user message in, one rendered answer out.

States: AWAIT_FIRST_COMPLETION -> DIRECT_ANSWER | EXECUTE_TOOLS ->
AWAIT_SECOND_COMPLETION -> DONE | FAILED. NEEDS_LOCATION short-circuits
before any provider call when no place can be inferred.
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from weatherchat.app.adapters.weather import WeatherService
from weatherchat.app.context.resolver import ContextResolution, infer_intent, resolve_context
from weatherchat.app.context.store import Clock
from weatherchat.app.errors import ToolExecutionError, UpstreamCompletionError
from weatherchat.app.llm.client import CompletionClient, CompletionResult
from weatherchat.app.llm.prompts import build_formatting_prompt, build_tool_selection_prompt
from weatherchat.app.messages import (
    GENERIC_APOLOGY,
    GREETING,
    LOCATION_CLARIFICATION,
    WEATHER_UNAVAILABLE,
    localized,
)
from weatherchat.app.models.chat import ChatMessage, ChatRequest, ChatResponse
from weatherchat.app.models.common import Language
from weatherchat.app.models.context import utcnow
from weatherchat.app.models.tools import ToolCallLog
from weatherchat.app.orchestration.tools import WEATHER_TOOL, execute_tool_calls
from weatherchat.app.sessions.registry import Session, SessionRegistry
from weatherchat.app.utils.logging import StructuredToolLogger
from weatherchat.app.utils.metrics import PrometheusTurnMetrics

logger = logging.getLogger(__name__)


class TurnState(str, Enum):
    AWAIT_FIRST_COMPLETION = "await_first_completion"
    DIRECT_ANSWER = "direct_answer"
    EXECUTE_TOOLS = "execute_tools"
    AWAIT_SECOND_COMPLETION = "await_second_completion"
    DONE = "done"
    FAILED = "failed"
    NEEDS_LOCATION = "needs_location"


@dataclass
class TurnOutcome:
    """Final answer of a turn plus what the HTTP layer needs to send it."""

    response: ChatResponse
    state: TurnState
    status_code: int = 200
    tool_calls: list[ToolCallLog] = field(default_factory=list)


class WeatherChatOrchestrator:
    """Drives the two-round-trip tool-calling protocol for one turn."""

    def __init__(
        self,
        completion_client: CompletionClient | None,
        weather_service: WeatherService,
        registry: SessionRegistry,
        *,
        clock: Clock = utcnow,
        metrics: PrometheusTurnMetrics | None = None,
        tool_logger: StructuredToolLogger | None = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            completion_client: Provider client, or None when no credential is configured
            weather_service: Executes get_weather lookups
            registry: Session registry for context reads and writes
            clock: Source of "today" for prompts and date classification
            metrics: Turn metrics sink
            tool_logger: Structured logger for weather lookups
        """
        self.completion_client = completion_client
        self.weather_service = weather_service
        self.registry = registry
        self._clock = clock
        self.metrics = metrics or PrometheusTurnMetrics()
        self.tool_logger = tool_logger or StructuredToolLogger()

    async def handle_turn(self, request: ChatRequest) -> TurnOutcome:
        """Process one turn and convert every failure into a response."""
        trace_id = uuid.uuid4().hex[:12]
        language = request.language
        tool_logs: list[ToolCallLog] = []

        if self.completion_client is None:
            logger.error(f"Turn {trace_id}: configuration error: OpenAI API key not found")
            self.metrics.record_turn("config_error")
            return self._failure(GENERIC_APOLOGY, language, None, 500, tool_logs)

        session = await self.registry.get(request.session_id) if request.session_id else None
        session_id = session.session_id if session is not None else None
        if request.session_id and session is None:
            logger.info(f"Turn {trace_id}: session {request.session_id} not found, stateless turn")

        user_message = request.last_user_message
        if user_message is None or not (user_message.content or "").strip():
            self.metrics.record_turn("greeting")
            return TurnOutcome(
                response=ChatResponse(response=localized(GREETING, language), session_id=session_id),
                state=TurnState.DONE,
            )

        query = (user_message.content or "").strip()
        resolution = resolve_context(session, query, language)
        if resolution.needs_location_input:
            self.metrics.record_turn("needs_location")
            return TurnOutcome(
                response=ChatResponse(
                    response=localized(LOCATION_CLARIFICATION, language),
                    needs_location=True,
                    session_id=session_id,
                ),
                state=TurnState.NEEDS_LOCATION,
            )

        try:
            return await self._run(
                request,
                session=session,
                query=query,
                resolution=resolution,
                trace_id=trace_id,
                tool_logs=tool_logs,
            )
        except UpstreamCompletionError as e:
            logger.error(f"Turn {trace_id}: completion failed at {e.stage} request: {e}")
            self.metrics.record_turn("upstream_error")
            return self._failure(GENERIC_APOLOGY, language, session_id, 502, tool_logs)
        except ToolExecutionError as e:
            logger.warning(
                f"Turn {trace_id}: weather lookup failed (call_id={e.call_id}): {e}"
            )
            self.metrics.record_turn("tool_error")
            return self._failure(WEATHER_UNAVAILABLE, language, session_id, 200, tool_logs)

    async def _run(
        self,
        request: ChatRequest,
        *,
        session: Session | None,
        query: str,
        resolution: ContextResolution,
        trace_id: str,
        tool_logs: list[ToolCallLog],
    ) -> TurnOutcome:
        language = request.language
        session_id = session.session_id if session is not None else None
        history = self._history(request.messages, resolution.contextual_query)
        summary = session.store.summarize() if session is not None else None

        # AWAIT_FIRST_COMPLETION
        first_messages = [
            {
                "role": "system",
                "content": build_tool_selection_prompt(self._clock().date(), language, summary),
            },
            *history,
        ]
        first = await self._complete(first_messages, tools=[WEATHER_TOOL], stage="first")

        if not first.wants_tools:
            self.metrics.record_turn("direct")
            return TurnOutcome(
                response=ChatResponse(response=first.content or "", session_id=session_id),
                state=TurnState.DIRECT_ANSWER,
            )

        # EXECUTE_TOOLS
        logger.info(f"Turn {trace_id}: executing {len(first.tool_calls)} weather lookups")
        results = await execute_tool_calls(
            first.tool_calls,
            self.weather_service,
            logs=tool_logs,
            trace_id=trace_id,
            session_id=session_id,
            tool_logger=self.tool_logger,
            metrics=self.metrics,
        )
        lookups = [result.lookup for result in results]

        # AWAIT_SECOND_COMPLETION
        second_messages = [
            {"role": "system", "content": build_formatting_prompt(language, len(lookups))},
            *history,
            first.assistant_message(),
            *(result.to_tool_message() for result in results),
        ]
        second = await self._complete(second_messages, tools=None, stage="second")
        text = second.content or ""

        if session is not None:
            await self.registry.record_turn(
                session.session_id,
                lookups=lookups,
                query=query,
                intent=infer_intent(query, len(lookups)),
                language=language,
                response=text,
            )

        self.metrics.record_turn("tools")
        return TurnOutcome(
            response=ChatResponse(
                response=text,
                weather_data=[lookup.observation for lookup in lookups],
                tools_used=len(lookups),
                multi_city=len(lookups) > 1,
                session_id=session_id,
            ),
            state=TurnState.DONE,
            tool_calls=tool_logs,
        )

    async def _complete(
        self,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None,
        stage: str,
    ) -> CompletionResult:
        assert self.completion_client is not None
        try:
            result = await self.completion_client.complete(messages, tools=tools, stage=stage)
        except UpstreamCompletionError:
            self.metrics.record_completion(stage, "error")
            raise
        self.metrics.record_completion(stage, "success")
        return result

    @staticmethod
    def _history(messages: list[ChatMessage], contextual_query: str) -> list[dict[str, Any]]:
        """Client history without system messages, last user message rewritten."""
        history = [m.to_provider_dict() for m in messages if m.role != "system"]
        history[-1] = {"role": "user", "content": contextual_query}
        return history

    @staticmethod
    def _failure(
        table: dict[Language, str],
        language: Language,
        session_id: str | None,
        status_code: int,
        tool_logs: list[ToolCallLog],
    ) -> TurnOutcome:
        return TurnOutcome(
            response=ChatResponse(
                response=localized(table, language), error=True, session_id=session_id
            ),
            state=TurnState.FAILED,
            status_code=status_code,
            tool_calls=tool_logs,
        )
