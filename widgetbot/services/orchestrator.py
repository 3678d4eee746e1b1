"""
End-to-end resolution of one user message into a bot reply.

    validate → rate check → FAQ → knowledge → completion → fallback → shape

Expected misses (no match, completion unavailable or failing in any way)
fall through to the next step. Only unexpected faults after admission end in
the ERROR state, and even then the user gets an apology reply.
"""

import random
from typing import Callable, List, Optional, Sequence

from loguru import logger

from widgetbot.config import Settings, settings as default_settings
from widgetbot.errors import CompletionError, MessageValidationError, RateLimitError
from widgetbot.models.entities import (
    Message,
    Resolution,
    ResolutionOutcome,
    ResolutionState,
    TrainingCorpus,
)
from widgetbot.services import fallback_responder, matcher, response_shaper
from widgetbot.services.completion_client import CompletionClient, is_configured
from widgetbot.services.rate_limiter import RateLimiter
from widgetbot.services.sanitizer import MAX_MESSAGE_LENGTH, is_valid_message, sanitize

ERROR_REPLY = "Sorry, something went wrong. Please try again."
TOO_LONG_WARNING = f"Message too long. Maximum {MAX_MESSAGE_LENGTH} characters."
EMPTY_WARNING = "Message is empty."


class Orchestrator:
    def __init__(
        self,
        rate_limiter: RateLimiter,
        completion_client: Optional[CompletionClient] = None,
        config: Optional[Settings] = None,
        simulate_thinking: Optional[bool] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.config = config or default_settings
        self.rate_limiter = rate_limiter
        self.completion_client = completion_client
        self.simulate_thinking = self.config.SIMULATE_THINKING if simulate_thinking is None else simulate_thinking
        self.rng = rng or random.Random()
        self.clock = clock
        self.state = ResolutionState.IDLE

    # ── Gates ────────────────────────────────────────────
    def _validate(self, raw_text: str) -> None:
        self.state = ResolutionState.VALIDATING
        if not is_valid_message(raw_text):
            if isinstance(raw_text, str) and len(raw_text) > MAX_MESSAGE_LENGTH:
                raise MessageValidationError(TOO_LONG_WARNING)
            raise MessageValidationError(EMPTY_WARNING)

    def _admit(self) -> None:
        self.state = ResolutionState.RATE_CHECKING
        now = self.clock() if self.clock else None
        decision = self.rate_limiter.can_send(now)
        if not decision.allowed:
            raise RateLimitError(decision.reason, decision.retry_after_seconds)
        self.rate_limiter.record_message(now)

    # ── Try-steps ────────────────────────────────────────
    async def _try_faq(self, query, corpus, history) -> Optional[ResolutionOutcome]:
        self.state = ResolutionState.MATCHING
        result = matcher.match_faq(query, corpus.faqs)
        if result and result.entry.answer:
            return ResolutionOutcome(text=result.entry.answer, source="faq")
        return None

    async def _try_knowledge(self, query, corpus, history) -> Optional[ResolutionOutcome]:
        self.state = ResolutionState.MATCHING
        result = matcher.match_knowledge(query, corpus.knowledge)
        if result and result.entry.content:
            return ResolutionOutcome(text=result.entry.content, source="knowledge")
        return None

    async def _try_completion(self, query, corpus, history) -> Optional[ResolutionOutcome]:
        if self.completion_client is None:
            return None
        if not is_configured(self.config.COMPLETION_ENABLED, self.completion_client.api_key):
            return None

        self.state = ResolutionState.COMPLETING
        try:
            text = await self.completion_client.complete(
                corpus.instructions,
                history,
                query,
                timeout_ms=self.config.REQUEST_TIMEOUT_MS,
            )
        except CompletionError as e:
            logger.warning(f"Completion unavailable ({type(e).__name__}: {e}), using fallback replies")
            return None
        except Exception as e:
            logger.error(f"Completion failed unexpectedly ({type(e).__name__}: {e}), using fallback replies")
            return None
        return ResolutionOutcome(text=text, source="completion")

    async def _try_fallback(self, query, corpus, history) -> Optional[ResolutionOutcome]:
        self.state = ResolutionState.FALLBACK
        return ResolutionOutcome(text=fallback_responder.respond(query, self.rng), source="fallback")

    @property
    def steps(self) -> List[Callable]:
        return [self._try_faq, self._try_knowledge, self._try_completion, self._try_fallback]

    # ── Shaping ──────────────────────────────────────────
    def _shape(self, outcome: ResolutionOutcome) -> tuple:
        self.state = ResolutionState.SHAPING
        text = response_shaper.limit_response(outcome.text, self.config.RESPONSE_MAX_LENGTH)
        delay = 0.0
        if self.simulate_thinking:
            delay = response_shaper.thinking_delay(
                text,
                min_ms=self.config.THINKING_TIME_MIN,
                max_ms=self.config.THINKING_TIME_MAX,
                words_per_ms=self.config.WORDS_PER_MS,
                rng=self.rng,
            )
        return ResolutionOutcome(text=text, source=outcome.source), delay

    # ── Entry point ──────────────────────────────────────
    async def resolve(
        self,
        raw_text: str,
        corpus: TrainingCorpus,
        history: Sequence[Message] = (),
    ) -> Resolution:
        """
        Resolve one message. Returns a warning-only Resolution when the
        message is rejected; otherwise the user Message, the bot reply and
        the outcome with its source.
        """
        self.state = ResolutionState.IDLE
        try:
            self._validate(raw_text)
            self._admit()
        except MessageValidationError as e:
            self.state = ResolutionState.DONE
            return Resolution(state=self.state, warning=str(e))
        except RateLimitError as e:
            self.state = ResolutionState.DONE
            return Resolution(state=self.state, warning=e.reason, retry_after_seconds=e.retry_after_seconds)

        query = sanitize(raw_text)
        user_message = Message.now(query, "user")

        try:
            outcome = None
            for step in self.steps:
                outcome = await step(query, corpus, history)
                if outcome is not None:
                    break
            if outcome is None:
                raise RuntimeError("no resolution step produced a reply")

            outcome, delay = self._shape(outcome)
        except Exception:
            logger.exception(f"Unexpected failure while resolving '{query[:40]}'")
            self.state = ResolutionState.ERROR
            outcome = ResolutionOutcome(text=ERROR_REPLY, source="fallback")
            return Resolution(
                state=self.state,
                outcome=outcome,
                user_message=user_message,
                reply=Message.now(outcome.text, "bot"),
            )

        self.state = ResolutionState.DONE
        logger.info(f"Resolved via {outcome.source}: '{query[:40]}' -> '{outcome.text[:50]}'")
        return Resolution(
            state=self.state,
            outcome=outcome,
            user_message=user_message,
            reply=Message.now(outcome.text, "bot"),
            thinking_delay_ms=delay,
        )
