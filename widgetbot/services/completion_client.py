"""
Chat-completion client used when the corpus has no answer.
Every failure is mapped onto the CompletionError family so the caller can
fall back to canned replies.
"""

import asyncio
from typing import Dict, List, Optional, Sequence

import openai
from loguru import logger

from widgetbot.config import settings
from widgetbot.errors import CompletionTimeoutError, NetworkError, ServiceError
from widgetbot.models.entities import Message

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."
HISTORY_WINDOW = 5


# ── Key validation ────────────────────────────────────────
def _is_real_api_key(key: Optional[str]) -> bool:
    """Return False for empty keys and the 'sk-your-…' style placeholders."""
    if not key or not key.strip():
        return False
    if "your" in key.lower():
        return False
    return True


def is_configured(enabled: bool, credential: Optional[str]) -> bool:
    return bool(enabled) and _is_real_api_key(credential)


def build_messages(
    system_instructions: Optional[str],
    recent_history: Sequence[Message],
    user_message: str,
) -> List[Dict[str, str]]:
    messages = [{"role": "system", "content": system_instructions or DEFAULT_SYSTEM_PROMPT}]
    for msg in list(recent_history)[-HISTORY_WINDOW:]:
        role = "user" if msg.sender == "user" else "assistant"
        messages.append({"role": role, "content": msg.text})
    messages.append({"role": "user", "content": user_message})
    return messages


class CompletionClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        base_url: Optional[str] = None,
        client=None,
    ):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.model = model or settings.OPENAI_MODEL
        self.max_tokens = max_tokens or settings.COMPLETION_MAX_TOKENS
        self.temperature = temperature if temperature is not None else settings.COMPLETION_TEMPERATURE
        self.base_url = base_url if base_url is not None else settings.OPENAI_BASE_URL
        self._client = client

    def _get_client(self):
        if self._client is None:
            self._client = openai.AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url or None,
                max_retries=0,
            )
        return self._client

    async def complete(
        self,
        system_instructions: Optional[str],
        recent_history: Sequence[Message],
        user_message: str,
        timeout_ms: Optional[int] = None,
    ) -> str:
        timeout_s = (timeout_ms or settings.REQUEST_TIMEOUT_MS) / 1000
        messages = build_messages(system_instructions, recent_history, user_message)

        try:
            response = await asyncio.wait_for(
                self._get_client().chat.completions.create(
                    model=self.model,
                    messages=messages,
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                    timeout=timeout_s,
                ),
                timeout=timeout_s,
            )
        except (asyncio.TimeoutError, openai.APITimeoutError) as e:
            raise CompletionTimeoutError(f"completion timed out after {timeout_s:.1f}s") from e
        except openai.APIStatusError as e:
            raise ServiceError(f"completion service responded with status {e.status_code}", e.status_code) from e
        except openai.APIConnectionError as e:
            raise NetworkError(f"completion request failed: {e}") from e
        except openai.OpenAIError as e:
            raise ServiceError(f"completion service error: {type(e).__name__}: {e}") from e

        try:
            text = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise ServiceError("completion response has no choices") from e
        if not isinstance(text, str) or not text.strip():
            raise ServiceError("completion response is empty")

        logger.info(f"Completion ok ({len(text)} chars, model={self.model})")
        return text
