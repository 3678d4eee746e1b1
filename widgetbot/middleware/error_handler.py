"""
Global exception handler middleware.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger

from widgetbot.errors import WidgetBotError


async def global_exception_handler(request: Request, call_next):
    try:
        return await call_next(request)
    except WidgetBotError as exc:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc), "type": type(exc).__name__},
        )
    except Exception as exc:
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "type": type(exc).__name__,
            },
        )
