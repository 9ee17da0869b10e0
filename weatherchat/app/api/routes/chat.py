"""Chat endpoint - POST /api/chat."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from weatherchat.app.api.deps import get_orchestrator
from weatherchat.app.models.chat import ChatRequest, ChatResponse
from weatherchat.app.orchestration.turn import WeatherChatOrchestrator

router = APIRouter(prefix="/api", tags=["chat"])
logger = logging.getLogger(__name__)


@router.post("/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(
    request: ChatRequest,
    orchestrator: Annotated[WeatherChatOrchestrator, Depends(get_orchestrator)],
) -> JSONResponse:
    """Run one conversational turn.

    Args:
        request: Message history, language, optional session id

    Returns:
        ChatResponse as camelCase JSON. Status is 200 for answers and tool
        failures (error: true), 502 when the completion provider fails and
        500 when the provider is not configured.
    """
    logger.info(
        f"[POST /api/chat] session_id={request.session_id}, "
        f"language={request.language.value}, messages={len(request.messages)}"
    )

    outcome = await orchestrator.handle_turn(request)

    logger.info(
        f"[POST /api/chat] state={outcome.state.value}, status={outcome.status_code}, "
        f"tools_used={outcome.response.tools_used or 0}"
    )

    return JSONResponse(
        status_code=outcome.status_code,
        content=outcome.response.model_dump(mode="json", by_alias=True, exclude_none=True),
    )
