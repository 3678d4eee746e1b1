"""
Per-IP request throttling for the HTTP surface (slowapi).
Per-session message limits live in services/rate_limiter.py.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from widgetbot.config import settings

limiter = Limiter(key_func=get_remote_address)

CHAT_LIMIT = f"{settings.RATE_LIMIT_PER_MINUTE}/minute"
