"""
Rule-based replies, used when neither the corpus nor the completion service
produced an answer. Never fails.
"""

import random
import re

# ─────────────────────────────────────────────────────────
#  CONVERSATIONAL PATTERNS (checked in order)
# ─────────────────────────────────────────────────────────

_RULES = [
    (re.compile(r"^(hi|hello|hey)", re.IGNORECASE), "Hello! 👋 How can I assist you today?"),
    (re.compile(r"help|assist", re.IGNORECASE), "I'm here to help! What do you need?"),
    (re.compile(r"feature|capabilit", re.IGNORECASE), "✨ I can answer questions, provide info, and assist with various topics!"),
    (re.compile(r"pricing|price|cost", re.IGNORECASE), "💰 Please contact our sales team for pricing info."),
    (re.compile(r"contact|email|phone", re.IGNORECASE), "📧 You can reach us at support@example.com"),
    (re.compile(r"bye|goodbye", re.IGNORECASE), "Goodbye! 👋 Have a great day!"),
    (re.compile(r"thank", re.IGNORECASE), "You're welcome! 😊"),
]

_FALLBACK = [
    "I'm not sure about that. Could you rephrase?",
    "Thanks for sharing! What can I help you with?",
    "Got it! Is there anything specific you'd like help with?",
]


def respond(message: str, rng: random.Random = None) -> str:
    text = (message or "").lower()
    for pattern, reply in _RULES:
        if pattern.search(text):
            return reply
    return (rng or random).choice(_FALLBACK)
