"""
Training corpus endpoints.
"""

from fastapi import APIRouter

from widgetbot.models.schemas import CorpusRefreshResponse
from widgetbot.services.corpus_store import corpus_store

router = APIRouter(prefix="/api/knowledge", tags=["knowledge"])


@router.post("/refresh", response_model=CorpusRefreshResponse)
def refresh():
    corpus = corpus_store.refresh()
    return CorpusRefreshResponse(
        status="ok",
        faqs=len(corpus.faqs),
        knowledge=len(corpus.knowledge),
        message=f"Training corpus reloaded from {corpus_store.path}",
    )
