"""
Sliding-window message throttle with a cooldown, one instance per chat session.
"""

import math
import threading
import time
from collections import deque
from typing import Optional

from loguru import logger
from pydantic import BaseModel


class RateLimitDecision(BaseModel):
    allowed: bool
    reason: Optional[str] = None
    retry_after_seconds: int = 0


def _now_ms() -> float:
    return time.monotonic() * 1000


class RateLimiter:
    """
    Allows at most ``max_messages`` accepted messages per ``window_ms``.
    Exceeding the limit starts a cooldown of ``cooldown_ms`` during which
    every send is rejected, independent of the window.

    ``can_send`` and ``record_message`` are separate calls; the caller must
    record exactly once per accepted message.
    """

    def __init__(self, max_messages: int = 10, window_ms: int = 60000, cooldown_ms: int = 30000):
        self.max_messages = max_messages
        self.window_ms = window_ms
        self.cooldown_ms = cooldown_ms
        self.recent_timestamps: deque = deque()
        self.cooldown_until: float = 0.0
        self._lock = threading.Lock()

    def _purge(self, now: float) -> None:
        self.recent_timestamps = deque(ts for ts in self.recent_timestamps if now - ts < self.window_ms)

    def can_send(self, now: Optional[float] = None) -> RateLimitDecision:
        now = _now_ms() if now is None else now
        with self._lock:
            if now < self.cooldown_until:
                remaining = math.ceil((self.cooldown_until - now) / 1000)
                return RateLimitDecision(
                    allowed=False,
                    reason=f"Too many messages. Please wait {remaining}s",
                    retry_after_seconds=remaining,
                )

            self._purge(now)
            if len(self.recent_timestamps) >= self.max_messages:
                self.cooldown_until = now + self.cooldown_ms
                # a fresh window starts once the cooldown is over
                self.recent_timestamps.clear()
                cooldown_s = math.ceil(self.cooldown_ms / 1000)
                logger.warning(f"Rate limit hit ({self.max_messages}/{self.window_ms}ms), cooling down {cooldown_s}s")
                return RateLimitDecision(
                    allowed=False,
                    reason=f"Rate limit exceeded. Please wait {cooldown_s}s",
                    retry_after_seconds=cooldown_s,
                )

            return RateLimitDecision(allowed=True)

    def record_message(self, now: Optional[float] = None) -> None:
        now = _now_ms() if now is None else now
        with self._lock:
            self.recent_timestamps.append(now)
