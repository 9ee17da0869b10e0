"""Error taxonomy for turn processing.

Every error raised while handling a turn derives from WeatherChatError and is
converted to the outbound response shape by the orchestrator. Unknown or
expired sessions are not errors: the registry returns None for them.
"""


class WeatherChatError(Exception):
    """Base class for weather chat failures."""

    pass


class ConfigurationError(WeatherChatError):
    """Required provider credential or setting is missing."""

    pass


class UpstreamCompletionError(WeatherChatError):
    """Completion provider returned a non-success status or was unreachable."""

    def __init__(self, message: str, *, stage: str = "first") -> None:
        super().__init__(message)
        self.stage = stage


class ToolExecutionError(WeatherChatError):
    """A requested weather lookup could not be completed."""

    def __init__(self, message: str, *, call_id: str | None = None, location: str | None = None):
        super().__init__(message)
        self.call_id = call_id
        self.location = location


class ToolArgumentError(ToolExecutionError):
    """Tool invocation named an unknown tool or carried malformed arguments."""

    pass


class LocationNotFoundError(ToolExecutionError):
    """Location name could not be resolved to coordinates."""

    pass


class WeatherDataUnavailableError(ToolExecutionError):
    """Weather provider failed or returned no usable data."""

    pass


class ContextPersistenceError(WeatherChatError):
    """Durable context storage failed; callers degrade to in-memory state."""

    pass
