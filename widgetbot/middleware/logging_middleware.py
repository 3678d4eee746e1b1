"""
Request / response logging middleware.
"""

import time
from fastapi import Request
from loguru import logger


async def logging_middleware(request: Request, call_next):
    start = time.perf_counter()
    client = request.client.host if request.client else "unknown"
    logger.debug(f"→ {request.method} {request.url.path} from {client}")

    response = await call_next(request)

    elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
    log = logger.warning if response.status_code >= 400 else logger.info
    log(f"← {request.method} {request.url.path} [{response.status_code}] {elapsed_ms}ms")

    return response
