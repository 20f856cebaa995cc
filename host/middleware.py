"""
Request logging for the host's HTTP routes.
"""
import logging
import time

from fastapi import Request

logger = logging.getLogger(__name__)

# Polled by supervisors; logging every probe drowns the useful lines
QUIET_PATHS = ("/health",)


async def log_requests_middleware(request: Request, call_next):
    """Log method, path, status and duration of every non-probe request

    Only the path is logged: the OAuth redirect carries the token in its query.
    """
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started

    if request.url.path not in QUIET_PATHS:
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(level, f"{request.method} {request.url.path} - {response.status_code} - {elapsed:.3f}s")

    return response
