"""
HTTP middleware: correlation ids and request logging.
"""
import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from levelup.core.config import settings
from levelup.core.logging import format_actor, log_context, request_id_var

request_logger = logging.getLogger("request_logging")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Reads or generates X-Request-ID and exposes it and the caller to log records."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(settings.request_id_header) or str(uuid.uuid4())
        actor = format_actor(request.headers.get(settings.user_role_header),
                             request.headers.get(settings.user_id_header))
        token = request_id_var.set(request_id)
        try:
            with log_context(actor=actor):
                response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[settings.request_id_header] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        latency_ms = (time.time() - start_time) * 1000
        response.headers["X-Process-Time"] = f"{latency_ms:.2f}"
        request_logger.info(
            "request_completed",
            extra={
                "endpoint": request.url.path,
                "method": request.method,
                "actor_role": request.headers.get(settings.user_role_header, "anonymous"),
                "status_code": response.status_code,
                "latency_ms": round(latency_ms, 2),
            }
        )
        return response
