"""Inbound turn request and outbound turn response."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from weatherchat.app.models.common import Language
from weatherchat.app.models.weather import WeatherObservation


class ChatMessage(BaseModel):
    """One message of the conversation history."""

    role: Literal["system", "user", "assistant", "tool"]
    content: str | None = None
    tool_call_id: str | None = None
    tool_calls: list[dict[str, Any]] | None = None

    def to_provider_dict(self) -> dict[str, Any]:
        """Message in the shape the completion provider expects."""
        message: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_call_id is not None:
            message["tool_call_id"] = self.tool_call_id
        if self.tool_calls:
            message["tool_calls"] = self.tool_calls
        return message


class ChatRequest(BaseModel):
    """One turn: full message history, target language, optional session."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    messages: list[ChatMessage] = Field(default_factory=list)
    language: Language = Language.en
    session_id: str | None = None

    @property
    def last_user_message(self) -> ChatMessage | None:
        if self.messages and self.messages[-1].role == "user":
            return self.messages[-1]
        return None


class ChatResponse(BaseModel):
    """Rendered answer for one turn.

    On failure `error` is True and `response` holds a localized apology.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    response: str
    weather_data: list[WeatherObservation] | None = None
    tools_used: int | None = None
    multi_city: bool | None = None
    error: bool | None = None
    needs_location: bool | None = None
    session_id: str | None = None
