"""API key gate middleware.

Rejects requests without the shared X-API-Key when a key is configured,
and binds the caller's org and user headers to the logging context.
"""

import secrets

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from outlets_core.config import get_settings
from outlets_core.observability.logging import (
    RequestContext,
    get_request_context,
    reset_request_context,
    set_request_context,
)


# Paths that bypass the API key gate
BYPASS_PATHS = {
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
}


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """Middleware that requires X-API-Key on every non-public path."""

    async def dispatch(self, request: Request, call_next):
        """Process the request."""
        context = get_request_context() or RequestContext(
            path=request.url.path, method=request.method
        )
        context.org_id = request.headers.get("x-org-id")
        context.user_id = request.headers.get("x-user-id")
        token = set_request_context(context)
        try:
            if self._is_allowed(request):
                return await call_next(request)
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Unauthorized"},
            )
        finally:
            reset_request_context(token)

    def _is_allowed(self, request: Request) -> bool:
        if request.url.path in BYPASS_PATHS:
            return True

        # Skip for OPTIONS requests (CORS preflight)
        if request.method == "OPTIONS":
            return True

        # An empty key disables the gate
        expected = get_settings().api_key
        if not expected:
            return True

        provided = request.headers.get("x-api-key") or ""
        return secrets.compare_digest(provided.encode(), expected.encode())
