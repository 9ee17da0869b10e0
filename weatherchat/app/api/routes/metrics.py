"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes all registered Prometheus metrics including:
    - chat_turns_total{outcome}
    - completion_requests_total{stage, outcome}
    - weather_lookup_latency_ms{date_type, outcome}
    - sessions_active, sessions_evicted_total{reason}
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
