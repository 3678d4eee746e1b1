"""
Per-session state: the rate limiter, the orchestrator and the bounded
message history. Nothing here is shared between sessions.
"""

import asyncio
import uuid
from collections import OrderedDict
from typing import List, Optional

from loguru import logger

from widgetbot.config import Settings, settings as default_settings
from widgetbot.models.entities import Message, Resolution, TrainingCorpus
from widgetbot.services.completion_client import CompletionClient
from widgetbot.services.orchestrator import Orchestrator
from widgetbot.services.rate_limiter import RateLimiter


class ChatSession:
    def __init__(
        self,
        session_id: str,
        config: Optional[Settings] = None,
        completion_client: Optional[CompletionClient] = None,
        orchestrator: Optional[Orchestrator] = None,
    ):
        self.session_id = session_id
        self.config = config or default_settings
        self.rate_limiter = RateLimiter(
            max_messages=self.config.MAX_MESSAGES_PER_WINDOW,
            window_ms=self.config.RATE_LIMIT_WINDOW_MS,
            cooldown_ms=self.config.RATE_LIMIT_COOLDOWN_MS,
        )
        self.orchestrator = orchestrator or Orchestrator(
            self.rate_limiter,
            completion_client=completion_client,
            config=self.config,
        )
        self.history: List[Message] = []
        # one resolution in flight per session
        self.lock = asyncio.Lock()

    def _append(self, message: Message) -> None:
        self.history.append(message)
        overflow = len(self.history) - self.config.MAX_STORED_MESSAGES
        if overflow > 0:
            del self.history[:overflow]

    async def send(self, raw_text: str, corpus: TrainingCorpus) -> Resolution:
        async with self.lock:
            resolution = await self.orchestrator.resolve(raw_text, corpus, list(self.history))
            if resolution.user_message is not None:
                self._append(resolution.user_message)
            if resolution.reply is not None:
                self._append(resolution.reply)
            return resolution

    def clear_history(self) -> None:
        self.history = []


class SessionRegistry:
    def __init__(self, config: Optional[Settings] = None, completion_client: Optional[CompletionClient] = None):
        self.config = config or default_settings
        self.completion_client = completion_client
        self._sessions: "OrderedDict[str, ChatSession]" = OrderedDict()

    def get_or_create(self, session_id: Optional[str] = None) -> ChatSession:
        session_id = session_id or str(uuid.uuid4())
        session = self.get(session_id)
        if session is None:
            # least recently used sessions go first
            while self._sessions and len(self._sessions) >= self.config.MAX_SESSIONS:
                evicted_id, _ = self._sessions.popitem(last=False)
                logger.info(f"Evicted idle chat session [{evicted_id[:8]}]")
            session = ChatSession(session_id, config=self.config, completion_client=self.completion_client)
            self._sessions[session_id] = session
            logger.info(f"New chat session [{session_id[:8]}]")
        return session

    def get(self, session_id: str) -> Optional[ChatSession]:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    def __len__(self) -> int:
        return len(self._sessions)
