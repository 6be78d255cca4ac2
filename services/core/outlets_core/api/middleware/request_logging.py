"""Request logging and metrics middleware."""

import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from outlets_core.observability.logging import (
    RequestContext,
    get_logger,
    reset_request_context,
    set_request_context,
)
from outlets_core.observability.metrics import get_collector

logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request and records request metrics."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        context = RequestContext(
            request_id=request_id,
            path=request.url.path,
            method=request.method,
        )
        token = set_request_context(context)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.error("Request failed", exc_info=True)
            get_collector().increment(
                "http_requests_total",
                labels={"method": request.method, "status": "500"},
            )
            raise
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            reset_request_context(token)

        labels = {"method": request.method, "status": str(response.status_code)}
        collector = get_collector()
        collector.increment("http_requests_total", labels=labels)
        collector.record_histogram(
            "http_request_duration_ms", duration_ms, labels={"method": request.method}
        )
        logger.info(
            "Request completed",
            context=context,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        response.headers["X-Request-Id"] = request_id
        return response
