import random

from widgetbot.services.fallback_responder import _FALLBACK, respond


def test_greeting() -> None:
    assert respond("hello there") == "Hello! 👋 How can I assist you today?"
    assert respond("Hey!") == "Hello! 👋 How can I assist you today?"


def test_greeting_must_start_the_message() -> None:
    assert respond("this is it") in _FALLBACK


def test_rules_in_order() -> None:
    assert respond("can you help me") == "I'm here to help! What do you need?"
    assert respond("what features do you have") == "✨ I can answer questions, provide info, and assist with various topics!"
    assert respond("what does it cost") == "💰 Please contact our sales team for pricing info."
    assert respond("what is your email") == "📧 You can reach us at support@example.com"
    assert respond("ok bye") == "Goodbye! 👋 Have a great day!"
    assert respond("thanks a lot") == "You're welcome! 😊"


def test_generic_reply_is_one_of_three() -> None:
    rng = random.Random(0)
    replies = {respond("qwerty", rng) for _ in range(100)}
    assert replies == set(_FALLBACK)


def test_empty_message_still_gets_a_reply() -> None:
    assert respond("") in _FALLBACK
    assert respond(None) in _FALLBACK
