"""
Input sanitization and validation for user chat messages.
"""

import re

MAX_MESSAGE_LENGTH = 2000

_HTML_ENTITIES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
    "`": "&#x60;",
    "=": "&#x3D;",
}
_HTML_PATTERN = re.compile(r"[&<>\"'`=/]")

# Removed literally (not escaped), in this order
_INJECTION_PATTERNS = [
    re.compile(r"\b(SELECT|INSERT|UPDATE|DELETE|DROP|CREATE|ALTER|TRUNCATE|EXEC|UNION|FROM|WHERE)\b", re.IGNORECASE),
    re.compile(r"(--|;|/\*|\*/|@@|@)"),
    re.compile(r"\b(OR|AND)\b\s+\d+\s*=\s*\d+", re.IGNORECASE),
    re.compile(r"['\"\\]"),
]


def escape_html(text: str) -> str:
    if not isinstance(text, str):
        return ""
    return _HTML_PATTERN.sub(lambda m: _HTML_ENTITIES[m.group(0)], text)


def strip_injection(text: str) -> str:
    """Drop SQL/script-looking tokens and trim the result."""
    if not isinstance(text, str):
        return ""
    for pattern in _INJECTION_PATTERNS:
        text = pattern.sub("", text)
    return text.strip()


def sanitize(text: str) -> str:
    return escape_html(strip_injection(text))


def is_valid_message(text: str) -> bool:
    """
    Check the *raw* input: rejects non-strings, blank text and anything
    longer than MAX_MESSAGE_LENGTH characters.
    """
    if not isinstance(text, str):
        return False
    if not text.strip():
        return False
    if len(text) > MAX_MESSAGE_LENGTH:
        return False
    return True
