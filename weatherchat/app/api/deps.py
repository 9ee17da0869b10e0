"""Request dependencies resolved from app.state (built once by create_app)."""

from fastapi import Request

from weatherchat.app.config import Settings
from weatherchat.app.orchestration.turn import WeatherChatOrchestrator
from weatherchat.app.sessions.registry import SessionRegistry


def get_app_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def get_registry(request: Request) -> SessionRegistry:
    registry: SessionRegistry = request.app.state.registry
    return registry


def get_orchestrator(request: Request) -> WeatherChatOrchestrator:
    orchestrator: WeatherChatOrchestrator = request.app.state.orchestrator
    return orchestrator
