"""API schemas."""

from outlets_core.api.schemas.common import (
    CamelModel,
    ErrorResponse,
    HealthResponse,
    ensure_utc,
)

__all__ = [
    "CamelModel",
    "ErrorResponse",
    "HealthResponse",
    "ensure_utc",
]
