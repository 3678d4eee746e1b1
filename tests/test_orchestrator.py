import asyncio
import random
from typing import Optional

from widgetbot.config import Settings
from widgetbot.errors import CompletionTimeoutError, NetworkError
from widgetbot.models.entities import (
    FaqEntry,
    KnowledgeEntry,
    Message,
    ResolutionState,
    TrainingCorpus,
)
from widgetbot.services.orchestrator import (
    EMPTY_WARNING,
    ERROR_REPLY,
    TOO_LONG_WARNING,
    Orchestrator,
)
from widgetbot.services import response_shaper
from widgetbot.services.rate_limiter import RateLimiter

HOURS_CORPUS = TrainingCorpus(
    faqs=[FaqEntry(question="what are your hours", keywords="hours,open", answer="9am-5pm")],
    knowledge=[KnowledgeEntry(title="Shipping policy", content="Ships in 3-5 days.")],
    instructions="You are the Example Co. assistant.",
)
EMPTY_CORPUS = TrainingCorpus()


class FakeCompletionClient:
    def __init__(self, reply: str = "From the model.", exc: Optional[Exception] = None) -> None:
        self.api_key = "sk-test-key"
        self.reply = reply
        self.exc = exc
        self.calls: list[tuple] = []

    async def complete(self, system_instructions, recent_history, user_message, timeout_ms=None) -> str:
        self.calls.append((system_instructions, list(recent_history), user_message, timeout_ms))
        if self.exc is not None:
            raise self.exc
        return self.reply


def _orchestrator(
    limiter: Optional[RateLimiter] = None,
    client: Optional[FakeCompletionClient] = None,
    **overrides,
) -> Orchestrator:
    config = Settings(**overrides)
    return Orchestrator(
        limiter or RateLimiter(),
        completion_client=client,
        config=config,
        simulate_thinking=False,
        rng=random.Random(0),
        clock=lambda: 0.0,
    )


def _resolve(orchestrator: Orchestrator, text, corpus=EMPTY_CORPUS, history=()):
    return asyncio.run(orchestrator.resolve(text, corpus, history))


def test_faq_question_with_trailing_punctuation() -> None:
    resolution = _resolve(_orchestrator(), "What are your hours?", HOURS_CORPUS)

    assert resolution.state == ResolutionState.DONE
    assert resolution.outcome.source == "faq"
    assert resolution.outcome.text == "9am-5pm"
    assert resolution.user_message.text == "What are your hours?"
    assert resolution.user_message.sender == "user"
    assert resolution.reply.sender == "bot"
    assert resolution.reply.text == "9am-5pm"


def test_single_word_query_matches_faq() -> None:
    resolution = _resolve(_orchestrator(), "hours", HOURS_CORPUS)
    assert resolution.outcome.text == "9am-5pm"


def test_knowledge_is_used_when_no_faq_matches() -> None:
    resolution = _resolve(_orchestrator(), "tell me about shipping", HOURS_CORPUS)
    assert resolution.outcome.source == "knowledge"
    assert resolution.outcome.text == "Ships in 3-5 days."


def test_empty_corpus_without_completion_uses_greeting() -> None:
    resolution = _resolve(_orchestrator(), "hello there")

    assert resolution.outcome.source == "fallback"
    assert resolution.outcome.text == "Hello! 👋 How can I assist you today?"
    assert resolution.thinking_delay_ms == 0


def test_too_long_message_is_rejected_without_recording() -> None:
    limiter = RateLimiter()
    resolution = _resolve(_orchestrator(limiter), "a" * 2001)

    assert resolution.warning == TOO_LONG_WARNING
    assert resolution.outcome is None
    assert resolution.user_message is None
    assert resolution.reply is None
    assert resolution.state == ResolutionState.DONE
    assert len(limiter.recent_timestamps) == 0


def test_blank_message_is_rejected() -> None:
    resolution = _resolve(_orchestrator(), "   ")
    assert resolution.warning == EMPTY_WARNING
    assert not resolution.accepted


def test_throttled_message_is_rejected_without_recording() -> None:
    limiter = RateLimiter(max_messages=2, window_ms=60000, cooldown_ms=30000)
    orchestrator = _orchestrator(limiter)

    assert _resolve(orchestrator, "hi").accepted
    assert _resolve(orchestrator, "hi again").accepted
    resolution = _resolve(orchestrator, "one more")

    assert resolution.outcome is None
    assert resolution.warning == "Rate limit exceeded. Please wait 30s"
    assert resolution.retry_after_seconds == 30
    assert len(limiter.recent_timestamps) == 0
    assert limiter.cooldown_until == 30000


def test_each_accepted_message_is_recorded_once() -> None:
    limiter = RateLimiter()
    orchestrator = _orchestrator(limiter)
    for text in ("hello", "what are your hours", "thanks"):
        _resolve(orchestrator, text, HOURS_CORPUS)
    assert len(limiter.recent_timestamps) == 3


def test_completion_used_when_enabled_and_nothing_matches() -> None:
    client = FakeCompletionClient()
    history = [Message(text="earlier", sender="user", timestamp="9:00 AM")]
    orchestrator = _orchestrator(client=client, COMPLETION_ENABLED=True, REQUEST_TIMEOUT_MS=1234)

    resolution = _resolve(orchestrator, "explain quantum tunnelling", HOURS_CORPUS, history)

    assert resolution.outcome.source == "completion"
    assert resolution.outcome.text == "From the model."
    instructions, sent_history, user_message, timeout_ms = client.calls[0]
    assert instructions == "You are the Example Co. assistant."
    assert sent_history == history
    assert user_message == "explain quantum tunnelling"
    assert timeout_ms == 1234


def test_completion_not_called_when_corpus_matches() -> None:
    client = FakeCompletionClient()
    resolution = _resolve(_orchestrator(client=client, COMPLETION_ENABLED=True), "hours", HOURS_CORPUS)
    assert resolution.outcome.source == "faq"
    assert client.calls == []


def test_completion_not_called_when_disabled() -> None:
    client = FakeCompletionClient()
    resolution = _resolve(_orchestrator(client=client, COMPLETION_ENABLED=False), "hello there")
    assert resolution.outcome.source == "fallback"
    assert client.calls == []


def test_completion_not_called_with_placeholder_key() -> None:
    client = FakeCompletionClient()
    client.api_key = "sk-your-api-key-here"
    resolution = _resolve(_orchestrator(client=client, COMPLETION_ENABLED=True), "hello there")
    assert resolution.outcome.source == "fallback"
    assert client.calls == []


def test_completion_timeout_falls_back() -> None:
    client = FakeCompletionClient(exc=CompletionTimeoutError("timed out"))
    resolution = _resolve(_orchestrator(client=client, COMPLETION_ENABLED=True), "hello there")

    assert resolution.state == ResolutionState.DONE
    assert resolution.outcome.source == "fallback"
    assert resolution.outcome.text == "Hello! 👋 How can I assist you today?"


def test_completion_network_error_falls_back() -> None:
    client = FakeCompletionClient(exc=NetworkError("down"))
    resolution = _resolve(_orchestrator(client=client, COMPLETION_ENABLED=True), "qwerty")
    assert resolution.outcome.source == "fallback"
    assert resolution.outcome.text


def test_unexpected_completion_failure_falls_back() -> None:
    client = FakeCompletionClient(exc=RuntimeError("bug"))
    resolution = _resolve(_orchestrator(client=client, COMPLETION_ENABLED=True), "hello there")

    assert resolution.state == ResolutionState.DONE
    assert resolution.outcome.source == "fallback"
    assert resolution.outcome.text == "Hello! 👋 How can I assist you today?"


def test_unexpected_failure_ends_in_error_state_with_apology(monkeypatch) -> None:
    def broken_limit(text, max_length=500):
        raise RuntimeError("bug")

    monkeypatch.setattr(response_shaper, "limit_response", broken_limit)
    resolution = _resolve(_orchestrator(), "qwerty")

    assert resolution.state == ResolutionState.ERROR
    assert resolution.outcome.text == ERROR_REPLY
    assert resolution.user_message is not None
    assert resolution.reply.text == ERROR_REPLY


def test_long_answers_are_shaped() -> None:
    corpus = TrainingCorpus(faqs=[FaqEntry(question="tell me everything", answer="x" * 1000)])
    resolution = _resolve(_orchestrator(RESPONSE_MAX_LENGTH=100), "tell me everything", corpus)
    assert resolution.outcome.text == "x" * 97 + "..."


def test_thinking_delay_reported_when_simulated() -> None:
    orchestrator = Orchestrator(RateLimiter(), config=Settings(), simulate_thinking=True, rng=random.Random(0))
    resolution = _resolve(orchestrator, "hello there")
    assert 800 <= resolution.thinking_delay_ms <= 2500


def test_user_text_is_sanitized_before_matching() -> None:
    resolution = _resolve(_orchestrator(), "<b>hours</b>", HOURS_CORPUS)
    assert resolution.user_message.text == "&lt;b&gt;hours&lt;&#x2F;b&gt;"


def test_valid_messages_always_get_a_reply() -> None:
    rng = random.Random(5)
    orchestrator = _orchestrator(RateLimiter(max_messages=1000))
    alphabet = "abcdefghij ;'\"<>-=/?!"
    for _ in range(100):
        text = "".join(rng.choice(alphabet) for _ in range(rng.randint(1, 60)))
        if not text.strip():
            continue
        resolution = _resolve(orchestrator, text, HOURS_CORPUS)
        assert resolution.outcome.text
