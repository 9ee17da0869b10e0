"""Health check endpoints.

- /health: liveness, always 200
- /healthz: readiness, checks Redis when configured and reports whether
  the completion provider credential is present
"""

import json
from typing import Annotated, Any

import redis
from fastapi import APIRouter, Depends, Response

from weatherchat.app.api.deps import get_app_settings
from weatherchat.app.config import Settings

router = APIRouter()


async def check_redis(settings: Settings) -> tuple[bool, str]:
    """Check Redis connectivity.

    Returns:
        (is_ok, status_message)
    """
    if not settings.redis_url:
        return (True, "not_configured")

    try:
        client = redis.from_url(settings.redis_url, decode_responses=True)  # type: ignore[no-untyped-call]
        client.ping()
        return (True, "ok")
    except (redis.RedisError, ValueError) as e:
        return (False, f"error: {type(e).__name__}")


def check_completion_provider(settings: Settings) -> str:
    """Report whether an OpenAI key is configured (never its value)."""
    key = settings.openai_api_key
    if key is None or not key.get_secret_value():
        return "not_configured"
    return "configured"


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/healthz", response_model=None)
async def healthz(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> dict[str, Any] | Response:
    """Readiness check.

    Returns:
        200 with component status if Redis is reachable (or not configured)
        503 if a configured Redis cannot be reached
    """
    redis_ok, redis_status = await check_redis(settings)

    response_body = {
        "status": "ok" if redis_ok else "degraded",
        "components": {
            "redis": redis_status,
            "completion_provider": check_completion_provider(settings),
        },
    }

    if not redis_ok:
        return Response(
            content=json.dumps(response_body),
            status_code=503,
            media_type="application/json",
        )

    return response_body
