"""API routes."""

from outlets_core.api.routes import (
    categories,
    domain_rating,
    health,
    internal,
    outlets,
    views,
)

__all__ = ["categories", "domain_rating", "health", "internal", "outlets", "views"]
