"""
Error taxonomy for message resolution.
"""

from typing import Optional


class WidgetBotError(Exception):
    """Base class for every error raised by the resolution pipeline."""


class MessageValidationError(WidgetBotError):
    """Raw input is empty or longer than the hard cap."""


class RateLimitError(WidgetBotError):
    def __init__(self, reason: str, retry_after_seconds: int = 0):
        super().__init__(reason)
        self.reason = reason
        self.retry_after_seconds = retry_after_seconds


class CorpusError(WidgetBotError):
    """A corpus entry is malformed and has to be skipped."""


class CompletionError(WidgetBotError):
    """The completion service produced no usable answer."""


class CompletionTimeoutError(CompletionError, TimeoutError):
    pass


class NetworkError(CompletionError):
    pass


class ServiceError(CompletionError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
