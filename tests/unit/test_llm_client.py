"""Tests for the completion client.

All tests are deterministic and do not make real network calls.
"""

from unittest.mock import AsyncMock, MagicMock

import openai
import pytest
from pydantic import SecretStr

from weatherchat.app.config import Settings
from weatherchat.app.errors import ConfigurationError, UpstreamCompletionError
from weatherchat.app.llm.client import (
    CompletionResult,
    OpenAICompletionClient,
    ScriptedCompletionClient,
    get_completion_client,
)
from weatherchat.app.models import ToolInvocation
from weatherchat.app.orchestration.tools import WEATHER_TOOL


def make_tool_call(call_id: str, arguments: str) -> MagicMock:
    call = MagicMock()
    call.id = call_id
    call.function.name = "get_weather"
    call.function.arguments = arguments
    return call


def make_response(content: str | None, tool_calls: list[MagicMock] | None = None) -> MagicMock:
    mock_response = MagicMock()
    mock_response.choices = [MagicMock()]
    mock_response.choices[0].message.content = content
    mock_response.choices[0].message.tool_calls = tool_calls
    return mock_response


@pytest.mark.asyncio
async def test_openai_client_returns_content() -> None:
    client = OpenAICompletionClient(api_key="test_key")
    mock_openai_client = AsyncMock()
    mock_openai_client.chat.completions.create = AsyncMock(return_value=make_response("Hello!"))
    client.client = mock_openai_client

    result = await client.complete([{"role": "user", "content": "hi"}])

    assert result.content == "Hello!"
    assert result.wants_tools is False
    kwargs = mock_openai_client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-3.5-turbo"
    assert kwargs["temperature"] == 0.7
    assert "tools" not in kwargs


@pytest.mark.asyncio
async def test_openai_client_parses_tool_calls() -> None:
    client = OpenAICompletionClient(api_key="test_key")
    response = make_response(
        None,
        [
            make_tool_call("call_a", '{"location": "Tokyo"}'),
            make_tool_call("call_b", '{"location": "London", "date": "tomorrow"}'),
        ],
    )
    mock_openai_client = AsyncMock()
    mock_openai_client.chat.completions.create = AsyncMock(return_value=response)
    client.client = mock_openai_client

    result = await client.complete([{"role": "user", "content": "Tokyo vs London"}], tools=[WEATHER_TOOL])

    assert result.wants_tools is True
    assert [c.id for c in result.tool_calls] == ["call_a", "call_b"]
    assert result.tool_calls[1].arguments == '{"location": "London", "date": "tomorrow"}'
    kwargs = mock_openai_client.chat.completions.create.call_args.kwargs
    assert kwargs["tools"] == [WEATHER_TOOL]
    assert kwargs["tool_choice"] == "auto"


@pytest.mark.asyncio
async def test_openai_client_wraps_sdk_errors() -> None:
    client = OpenAICompletionClient(api_key="test_key")
    mock_openai_client = AsyncMock()
    mock_openai_client.chat.completions.create = AsyncMock(side_effect=openai.OpenAIError("boom"))
    client.client = mock_openai_client

    with pytest.raises(UpstreamCompletionError) as exc_info:
        await client.complete([{"role": "user", "content": "hi"}], stage="second")

    assert exc_info.value.stage == "second"


@pytest.mark.asyncio
async def test_openai_client_rejects_empty_choices() -> None:
    client = OpenAICompletionClient(api_key="test_key")
    mock_response = MagicMock()
    mock_response.choices = []
    mock_openai_client = AsyncMock()
    mock_openai_client.chat.completions.create = AsyncMock(return_value=mock_response)
    client.client = mock_openai_client

    with pytest.raises(UpstreamCompletionError):
        await client.complete([{"role": "user", "content": "hi"}])


def test_assistant_message_echoes_tool_calls() -> None:
    result = CompletionResult(
        content=None,
        tool_calls=[ToolInvocation(id="call_1", name="get_weather", arguments='{"location": "Paris"}')],
    )

    message = result.assistant_message()

    assert message["role"] == "assistant"
    assert message["tool_calls"] == [
        {
            "id": "call_1",
            "type": "function",
            "function": {"name": "get_weather", "arguments": '{"location": "Paris"}'},
        }
    ]


def test_get_completion_client_requires_key() -> None:
    with pytest.raises(ConfigurationError, match="OpenAI API key not found"):
        get_completion_client(Settings(openai_api_key=None))

    with pytest.raises(ConfigurationError):
        get_completion_client(Settings(openai_api_key=SecretStr("")))


def test_get_completion_client_uses_settings() -> None:
    client = get_completion_client(
        Settings(openai_api_key=SecretStr("sk-test"), openai_model="gpt-4o-mini", openai_temperature=0.2)
    )

    assert isinstance(client, OpenAICompletionClient)
    assert client.model == "gpt-4o-mini"
    assert client.temperature == 0.2


@pytest.mark.asyncio
async def test_scripted_client_replays_and_records() -> None:
    scripted = ScriptedCompletionClient([CompletionResult(content="one")])
    scripted.enqueue(UpstreamCompletionError("down", stage="second"))

    first = await scripted.complete([{"role": "user", "content": "a"}])
    assert first.content == "one"

    with pytest.raises(UpstreamCompletionError):
        await scripted.complete([{"role": "user", "content": "b"}], stage="second")

    with pytest.raises(UpstreamCompletionError, match="No scripted completion"):
        await scripted.complete([])

    assert [r["stage"] for r in scripted.requests] == ["first", "second", "first"]
