"""
Chat Widget Bot, FastAPI entry point.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from loguru import logger

from widgetbot.config import settings
from widgetbot.middleware.error_handler import global_exception_handler
from widgetbot.middleware.logging_middleware import logging_middleware
from widgetbot.middleware.throttle import limiter
from widgetbot.services.completion_client import is_configured
from widgetbot.services.corpus_store import corpus_store

# ── Routes ───────────────────────────────────────────────
from widgetbot.routes.chat import router as chat_router
from widgetbot.routes.knowledge import router as knowledge_router


# ── Lifespan ─────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    corpus_store.get()
    if is_configured(settings.COMPLETION_ENABLED, settings.OPENAI_API_KEY):
        logger.info(f"Completion service enabled (model={settings.OPENAI_MODEL})")
    else:
        logger.info("Completion service disabled, unmatched messages get rule-based replies")
    yield
    logger.info("Shutting down")


# ── App ──────────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Chat widget message resolution API",
    lifespan=lifespan,
)

# ── Rate Limiter ─────────────────────────────────────────
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# ── CORS ─────────────────────────────────────────────────
origins = settings.CORS_ORIGINS.split(",") if settings.CORS_ORIGINS != "*" else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Custom Middleware ────────────────────────────────────
app.middleware("http")(global_exception_handler)
app.middleware("http")(logging_middleware)

# ── Register Routers ────────────────────────────────────
app.include_router(chat_router)
app.include_router(knowledge_router)


# ── Health Check ─────────────────────────────────────────
@app.get("/api/health", tags=["health"])
async def health():
    corpus = corpus_store.get()
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "faqs": len(corpus.faqs),
        "knowledge": len(corpus.knowledge),
    }


# ── Run ──────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "widgetbot.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info",
    )
