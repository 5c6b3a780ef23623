"""Request logging middleware."""
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from core.logging import log_request, log_warning

WORKSPACE_PREFIX = "/api/v1/workspace/"


def _session_id(path: str):
    if not path.startswith(WORKSPACE_PREFIX):
        return None
    return path[len(WORKSPACE_PREFIX):].split("/", 1)[0] or None


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs every API request with its duration; failed requests also get a warning."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        duration = (time.perf_counter() - started) * 1000

        path = request.url.path
        if path.startswith("/api"):
            log_request(request.method, path, response.status_code, duration)
            if response.status_code >= 400:
                session = _session_id(path)
                suffix = f" (session {session})" if session else ""
                log_warning(f"{request.method} {path} failed with {response.status_code}{suffix}", "http")

        return response
