"""Session endpoints - create, inspect, delete, stats."""

import logging
from typing import Annotated

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from weatherchat.app.api.deps import get_registry
from weatherchat.app.models.context import ContextUpdate, WeatherContext
from weatherchat.app.sessions.registry import Session, SessionRegistry

router = APIRouter(prefix="/api/sessions", tags=["sessions"])
logger = logging.getLogger(__name__)


class SessionView(BaseModel):
    """Session snapshot as returned to clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: str
    context: WeatherContext
    summary: str


class SessionStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_sessions: int
    active_sessions: int


def _view(session: Session) -> SessionView:
    return SessionView(
        session_id=session.session_id,
        context=session.context,
        summary=session.store.summarize(),
    )


@router.post("", response_model=SessionView, status_code=status.HTTP_201_CREATED)
async def create_session(
    registry: Annotated[SessionRegistry, Depends(get_registry)],
    seed: Annotated[ContextUpdate | None, Body()] = None,
) -> SessionView:
    """Create a session, optionally seeded with a partial context."""
    session = await registry.create(seed)
    logger.info(f"[POST /api/sessions] session_id={session.session_id}")
    return _view(session)


@router.get("/stats", response_model=SessionStats)
async def session_stats(
    registry: Annotated[SessionRegistry, Depends(get_registry)],
) -> SessionStats:
    """Total sessions held and how many are still live."""
    return SessionStats.model_validate(registry.stats())


@router.get("/{session_id}", response_model=SessionView)
async def get_session(
    session_id: str,
    registry: Annotated[SessionRegistry, Depends(get_registry)],
) -> SessionView:
    """Return the context snapshot of a live session.

    Raises:
        HTTPException: 404 if the session is unknown or expired
    """
    session = await registry.get(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return _view(session)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    registry: Annotated[SessionRegistry, Depends(get_registry)],
) -> None:
    """Evict a session.

    Raises:
        HTTPException: 404 if the session is unknown or expired
    """
    if not await registry.delete(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    logger.info(f"[DELETE /api/sessions/{session_id}] evicted")
