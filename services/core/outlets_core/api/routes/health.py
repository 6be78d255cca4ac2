"""Health and metrics routes."""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter

from outlets_core.api.schemas.common import HealthResponse
from outlets_core.config import get_settings
from outlets_core.observability.metrics import get_collector

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint (public, no API key required)."""
    return HealthResponse(status="ok", service=get_settings().service_name)


@router.get("/metrics")
async def get_metrics() -> dict[str, Any]:
    """Get the in-process metrics snapshot (requires the API key)."""
    return {
        "collected_at": datetime.now(timezone.utc).isoformat(),
        "application": get_collector().get_all(),
    }
