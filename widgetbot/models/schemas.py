"""
Pydantic request / response schemas for the API.
"""

from pydantic import BaseModel
from typing import Optional, List


# ── Chat ─────────────────────────────────────────────────
class ChatRequest(BaseModel):
    message: str
    session_id: Optional[str] = None


class ChatResponse(BaseModel):
    session_id: str
    reply: Optional[str] = None
    source: Optional[str] = None
    warning: Optional[str] = None
    retry_after_seconds: Optional[int] = None
    thinking_delay_ms: float = 0.0


class MessageResponse(BaseModel):
    text: str
    sender: str
    timestamp: str

    class Config:
        from_attributes = True


class HistoryResponse(BaseModel):
    session_id: str
    messages: List[MessageResponse] = []


# ── Knowledge Base ───────────────────────────────────────
class CorpusRefreshResponse(BaseModel):
    status: str
    faqs: int
    knowledge: int
    message: str
