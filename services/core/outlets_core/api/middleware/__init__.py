"""API middleware."""

from outlets_core.api.middleware.api_key import ApiKeyMiddleware
from outlets_core.api.middleware.request_logging import RequestLoggingMiddleware

__all__ = ["ApiKeyMiddleware", "RequestLoggingMiddleware"]
