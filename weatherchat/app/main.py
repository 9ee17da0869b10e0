"""FastAPI application."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis
from fastapi import FastAPI

from weatherchat.app.adapters.weather import OpenMeteoWeatherService, WeatherService
from weatherchat.app.api.routes.chat import router as chat_router
from weatherchat.app.api.routes.health import router as health_router
from weatherchat.app.api.routes.metrics import router as metrics_router
from weatherchat.app.api.routes.sessions import router as sessions_router
from weatherchat.app.config import Settings, get_settings
from weatherchat.app.context.persistence import redis_persistence_factory
from weatherchat.app.errors import ConfigurationError
from weatherchat.app.llm.client import CompletionClient, get_completion_client
from weatherchat.app.models.common import Language
from weatherchat.app.orchestration.turn import WeatherChatOrchestrator
from weatherchat.app.sessions.registry import SessionRegistry
from weatherchat.app.sessions.sweeper import run_periodic_sweep

logger = logging.getLogger(__name__)


def build_registry(settings: Settings) -> SessionRegistry:
    """Session registry, backed by Redis snapshots when a URL is configured."""
    persistence_factory = None
    if settings.redis_url:
        client = redis.from_url(settings.redis_url, decode_responses=True)  # type: ignore[no-untyped-call]
        persistence_factory = redis_persistence_factory(
            client,
            settings.context_storage_key,
            ttl_seconds=settings.context_expiry_hours * 3600,
        )
        logger.info("Context snapshots persisted to Redis")

    return SessionRegistry(
        ttl_hours=settings.session_ttl_hours,
        context_expiry_hours=settings.context_expiry_hours,
        persistence_factory=persistence_factory,
        default_language=Language(settings.default_language),
    )


def create_app(
    settings: Settings | None = None,
    *,
    completion_client: CompletionClient | None = None,
    weather_service: WeatherService | None = None,
    registry: SessionRegistry | None = None,
) -> FastAPI:
    """Build the application and its collaborators.

    Args:
        settings: Settings (defaults to environment)
        completion_client: Completion client override (tests, evals)
        weather_service: Weather service override (tests, evals)
        registry: Session registry override

    Returns:
        Configured FastAPI app with collaborators on app.state
    """
    settings = settings or get_settings()

    if completion_client is None:
        try:
            completion_client = get_completion_client(settings)
        except ConfigurationError as e:
            # Turns fail with 500 until a key is configured
            logger.warning(f"Completion client unavailable: {e}")

    owned_service: OpenMeteoWeatherService | None = None
    if weather_service is None:
        owned_service = OpenMeteoWeatherService(
            forecast_url=settings.weather_forecast_url,
            archive_url=settings.weather_archive_url,
            geocoding_url=settings.geocoding_url,
            timeout_seconds=settings.http_timeout_seconds,
        )
        weather_service = owned_service

    registry = registry or build_registry(settings)
    orchestrator = WeatherChatOrchestrator(completion_client, weather_service, registry)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweeper = asyncio.create_task(
            run_periodic_sweep(registry, settings.session_sweep_interval_seconds)
        )
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            if owned_service is not None:
                await owned_service.aclose()

    app = FastAPI(title="Weather Chat API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry
    app.state.orchestrator = orchestrator

    # Register routes
    app.include_router(health_router, tags=["health"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(chat_router)
    app.include_router(sessions_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {"message": "Weather Chat API", "version": "0.1.0"}

    return app


app = create_app()
