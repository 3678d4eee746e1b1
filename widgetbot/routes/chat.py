"""
Text chat endpoints: send a message, read or clear a session's history.
"""

from fastapi import APIRouter, HTTPException, Request
from loguru import logger

from widgetbot.middleware.throttle import CHAT_LIMIT, limiter
from widgetbot.models.schemas import ChatRequest, ChatResponse, HistoryResponse, MessageResponse
from widgetbot.services.completion_client import CompletionClient
from widgetbot.services.corpus_store import corpus_store
from widgetbot.services.session import SessionRegistry

router = APIRouter(prefix="/api/chat", tags=["chat"])

# In-memory chat sessions keyed by session_id
sessions = SessionRegistry(completion_client=CompletionClient())


@router.post("/message", response_model=ChatResponse)
@limiter.limit(CHAT_LIMIT)
async def send_message(request: Request, req: ChatRequest):
    """
    Send one message and get the bot's reply. Rejected messages (empty,
    too long, throttled) come back with a warning and no reply.
    """
    session = sessions.get_or_create(req.session_id)
    resolution = await session.send(req.message, corpus_store.get())

    if resolution.warning and resolution.outcome is None:
        logger.info(f"Chat [{session.session_id[:8]}] rejected: {resolution.warning}")
        return ChatResponse(
            session_id=session.session_id,
            warning=resolution.warning,
            retry_after_seconds=resolution.retry_after_seconds,
        )

    return ChatResponse(
        session_id=session.session_id,
        reply=resolution.outcome.text,
        source=resolution.outcome.source,
        thinking_delay_ms=round(resolution.thinking_delay_ms, 1),
    )


@router.get("/{session_id}/history", response_model=HistoryResponse)
async def get_history(session_id: str):
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return HistoryResponse(
        session_id=session_id,
        messages=[MessageResponse.model_validate(m, from_attributes=True) for m in session.history],
    )


@router.delete("/{session_id}/history")
async def clear_history(session_id: str):
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    session.clear_history()
    return {"status": "cleared", "session_id": session_id}
