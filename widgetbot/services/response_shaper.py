"""
Output shaping: length limiting and the artificial "thinking" delay.
"""

import random
import re

ELLIPSIS = "..."
_WHITESPACE = re.compile(r"\s")


def limit_response(text: str, max_length: int = 500) -> str:
    """
    Trim ``text`` to at most ``max_length`` characters.

    Cuts after the last sentence terminator past the halfway mark if there is
    one, otherwise at the last whitespace past the halfway mark (plus an
    ellipsis), otherwise hard-cuts and appends an ellipsis. The result never
    exceeds ``max_length``, so applying it twice changes nothing.
    """
    if not isinstance(text, str):
        return ""
    if len(text) <= max_length:
        return text
    if max_length <= len(ELLIPSIS):
        return text[:max_length]

    half = max_length * 0.5
    truncated = text[:max_length]

    last_sentence = max(truncated.rfind("."), truncated.rfind("?"), truncated.rfind("!"))
    if last_sentence > half:
        return truncated[: last_sentence + 1]

    # whitespace has to leave room for the ellipsis
    room = truncated[: max_length - len(ELLIPSIS) + 1]
    spaces = [m.start() for m in _WHITESPACE.finditer(room)]
    if spaces and spaces[-1] > half:
        return room[: spaces[-1]] + ELLIPSIS

    return text[: max_length - len(ELLIPSIS)] + ELLIPSIS


def thinking_delay(
    response_text: str,
    min_ms: float = 800,
    max_ms: float = 2500,
    words_per_ms: float = 0.05,
    rng: random.Random = None,
) -> float:
    """Milliseconds to show the typing indicator before a reply of this length."""
    length_factor = len(response_text or "") * words_per_ms
    jitter = (rng or random).uniform(-300, 300)
    return min(max(min_ms + length_factor + jitter, min_ms), max_ms)

