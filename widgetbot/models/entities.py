"""
Domain records: corpus entries, chat messages and resolution results.
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Literal, Optional

from loguru import logger
from pydantic import BaseModel, ValidationError, field_validator

from widgetbot.errors import CorpusError


# ── Corpus ───────────────────────────────────────────────
class FaqEntry(BaseModel):
    question: str
    keywords: str = ""
    answer: str = ""

    class Config:
        frozen = True

    @field_validator("question")
    @classmethod
    def _question_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("question must not be blank")
        return value


class KnowledgeEntry(BaseModel):
    title: str
    content: str = ""

    class Config:
        frozen = True

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be blank")
        return value


def _parse_entries(model, raw_entries: Any, kind: str) -> list:
    if raw_entries is None:
        return []
    if not isinstance(raw_entries, list):
        logger.warning(f"Corpus '{kind}' is not a list, ignoring it")
        return []

    entries = []
    for position, raw in enumerate(raw_entries):
        try:
            if not isinstance(raw, dict):
                raise CorpusError(f"{kind}[{position}] is not an object")
            try:
                entries.append(model.model_validate(raw))
            except ValidationError as exc:
                raise CorpusError(f"{kind}[{position}] is malformed: {exc.error_count()} error(s)") from exc
        except CorpusError as exc:
            logger.warning(f"Skipping corpus entry: {exc}")
    return entries


class TrainingCorpus(BaseModel):
    faqs: List[FaqEntry] = []
    knowledge: List[KnowledgeEntry] = []
    instructions: str = ""

    class Config:
        frozen = True

    @classmethod
    def from_payload(cls, payload: Any, default_instructions: str = "") -> "TrainingCorpus":
        """
        Build a corpus from a decoded JSON document.
        Malformed entries are skipped; everything else is kept.
        """
        if not isinstance(payload, dict):
            raise CorpusError("training corpus must be a JSON object")

        instructions = payload.get("instructions")
        if not isinstance(instructions, str) or not instructions.strip():
            instructions = default_instructions

        return cls(
            faqs=_parse_entries(FaqEntry, payload.get("faqs"), "faqs"),
            knowledge=_parse_entries(KnowledgeEntry, payload.get("knowledge"), "knowledge"),
            instructions=instructions,
        )


# ── Chat ─────────────────────────────────────────────────
def display_time(moment: Optional[datetime] = None) -> str:
    """Format like the widget's bubble clock, e.g. '9:05 AM'."""
    moment = moment or datetime.now()
    return f"{moment.hour % 12 or 12}:{moment:%M %p}"


class Message(BaseModel):
    text: str
    sender: Literal["user", "bot"]
    timestamp: str

    class Config:
        frozen = True

    @classmethod
    def now(cls, text: str, sender: str) -> "Message":
        return cls(text=text, sender=sender, timestamp=display_time())


class MatchResult(BaseModel):
    entry: Any  # FaqEntry or KnowledgeEntry
    score: int


class ResolutionOutcome(BaseModel):
    text: str
    source: Literal["faq", "knowledge", "completion", "fallback"]


class ResolutionState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    RATE_CHECKING = "rate_checking"
    MATCHING = "matching"
    COMPLETING = "completing"
    FALLBACK = "fallback"
    SHAPING = "shaping"
    DONE = "done"
    ERROR = "error"


class Resolution(BaseModel):
    state: ResolutionState = ResolutionState.IDLE
    outcome: Optional[ResolutionOutcome] = None
    warning: Optional[str] = None
    retry_after_seconds: Optional[int] = None
    user_message: Optional[Message] = None
    reply: Optional[Message] = None
    thinking_delay_ms: float = 0.0

    @property
    def accepted(self) -> bool:
        return self.user_message is not None
