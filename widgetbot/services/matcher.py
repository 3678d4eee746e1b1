"""
Heuristic FAQ / knowledge matching.

Scores a query against every corpus entry and keeps the best one at or above
MATCH_THRESHOLD. Exact and substring hits rank highest, then keyword hits,
then plain word overlap. Everything here is pure: the same query and corpus
always give the same result.
"""

from typing import Iterable, List, Optional

from loguru import logger

from widgetbot.errors import CorpusError
from widgetbot.models.entities import MatchResult

MATCH_THRESHOLD = 30
MAX_SCORE = 100


# ─────────────────────────────────────────────────────────
#  HELPERS
# ─────────────────────────────────────────────────────────

def _normalize(query: str) -> str:
    return (query or "").lower().strip()


def _words(text: str) -> List[str]:
    """Whitespace tokens longer than 2 characters, first occurrence order."""
    return list(dict.fromkeys(w for w in text.split() if len(w) > 2))


def _common_words(query: str, candidate: str) -> List[str]:
    candidate_words = set(_words(candidate))
    return [w for w in _words(query) if w in candidate_words]


def _field(entry, name: str) -> str:
    value = getattr(entry, name, None)
    if not isinstance(value, str) or not value.strip():
        raise CorpusError(f"entry has no usable '{name}'")
    return value.lower()


def _ladder(query: str, candidate: str) -> int:
    if query == candidate:
        return 100
    if candidate in query:
        return 80
    if query in candidate and len(query) > 3:
        return 60
    return 0


def _keyword_score(query: str, keywords) -> int:
    if not isinstance(keywords, str) or not keywords:
        return 0
    matched = [kw for kw in (k.strip() for k in keywords.lower().split(",")) if len(kw) > 2 and kw in query]
    if matched:
        return 40 + 10 * len(matched)
    return 0


# ─────────────────────────────────────────────────────────
#  SCORING
# ─────────────────────────────────────────────────────────

def score_faq(query: str, entry) -> int:
    query = _normalize(query)
    question = _field(entry, "question")

    score = _ladder(query, question)
    if score == 0:
        score = _keyword_score(query, getattr(entry, "keywords", ""))

    common = _common_words(query, question)
    if len(common) >= 2:
        score = max(score, 30 + 10 * len(common))
    return min(score, MAX_SCORE)


def score_knowledge(query: str, entry) -> int:
    query = _normalize(query)
    title = _field(entry, "title")

    score = _ladder(query, title)

    common = _common_words(query, title)
    if len(common) >= 1:
        score = max(score, 40 + 15 * len(common))
    return min(score, MAX_SCORE)


def _best_match(query: str, entries: Iterable, scorer, kind: str) -> Optional[MatchResult]:
    best = None
    best_score = 0

    for position, entry in enumerate(entries or []):
        try:
            score = scorer(query, entry)
        except CorpusError as e:
            logger.warning(f"Skipping {kind} entry #{position}: {e}")
            continue
        if score > best_score:
            best, best_score = entry, score

    if best is not None and best_score >= MATCH_THRESHOLD:
        logger.debug(f"{kind} match score={best_score} for '{query[:40]}'")
        return MatchResult(entry=best, score=best_score)
    return None


def match_faq(query: str, faqs: Iterable) -> Optional[MatchResult]:
    return _best_match(query, faqs, score_faq, "faq")


def match_knowledge(query: str, knowledge: Iterable) -> Optional[MatchResult]:
    return _best_match(query, knowledge, score_knowledge, "knowledge")
