"""Outlet view routes.

Provides endpoints for:
- GET /outlets/status - Ledger entries with outlet name and URL
- GET /outlets/has-topics-articles - Outlets queued for topic article refresh
- GET /outlets/has-recent-articles - Outlets queued for recent article search
- GET /outlets/has-journalists - Outlets queued for journalist coverage
"""

from typing import Optional

from fastapi import APIRouter, Query

from outlets_core.api.deps import OutletRegistryDep, RelevanceLedgerDep
from outlets_core.api.schemas.common import ensure_utc
from outlets_core.api.schemas.outlets import (
    CoverageListResponse,
    CoverageOutlet,
    LedgerStatusListResponse,
    LedgerStatusRow,
)
from outlets_core.domain.services.outlets import OutletRegistry

router = APIRouter(prefix="/outlets", tags=["views"])


@router.get(
    "/status",
    response_model=LedgerStatusListResponse,
    summary="Outlet targeting status",
    description="Ledger entries with outlet name and URL, highest score first.",
)
async def get_outlet_status(
    ledger: RelevanceLedgerDep,
    campaign_id: Optional[str] = Query(default=None, alias="campaignId"),
):
    entries = ledger.list_entries(campaign_id=campaign_id)
    return LedgerStatusListResponse(
        outlets=[
            LedgerStatusRow(
                campaign_id=e.campaign_id,
                outlet_id=e.outlet_id,
                outlet_name=e.outlet.outlet_name,
                outlet_url=e.outlet.outlet_url,
                relevance_score=e.relevance_score,
                why_relevant=e.why_relevant,
                why_not_relevant=e.why_not_relevant,
                outlet_status=e.status,
                overall_relevance=e.overall_relevance,
                relevance_rationale=e.relevance_rationale,
                ended_at=ensure_utc(e.ended_at),
                updated_at=ensure_utc(e.updated_at),
            )
            for e in entries
        ]
    )


def _coverage(registry: OutletRegistry) -> CoverageListResponse:
    return CoverageListResponse(
        outlets=[
            CoverageOutlet(
                outlet_id=o.id,
                outlet_name=o.outlet_name,
                outlet_url=o.outlet_url,
                outlet_domain=o.outlet_domain,
                updated_at=ensure_utc(o.updated_at),
            )
            for o in registry.list_active()
        ]
    )


@router.get(
    "/has-topics-articles",
    response_model=CoverageListResponse,
    summary="Outlets queued for topic articles",
)
async def get_has_topics_articles(registry: OutletRegistryDep):
    return _coverage(registry)


@router.get(
    "/has-recent-articles",
    response_model=CoverageListResponse,
    summary="Outlets queued for recent articles",
)
async def get_has_recent_articles(registry: OutletRegistryDep):
    return _coverage(registry)


@router.get(
    "/has-journalists",
    response_model=CoverageListResponse,
    summary="Outlets queued for journalist coverage",
)
async def get_has_journalists(registry: OutletRegistryDep):
    return _coverage(registry)
