"""Outlet API routes.

Provides endpoints for:
- POST /outlets - Create an outlet with its campaign relevance
- POST /outlets/bulk - Create many outlets in one transaction
- GET /outlets - List outlets joined with their ledger entries
- POST /outlets/search - Search outlets by name or URL
- GET /outlets/{id} - Get outlet by ID
- PATCH /outlets/{id} - Update outlet fields
- PATCH /outlets/{id}/status - Update the ledger status for a campaign
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from outlets_core.api.deps import (
    OutletRegistryDep,
    RelevanceLedgerDep,
    http_error,
)
from outlets_core.api.schemas.common import ensure_utc
from outlets_core.api.schemas.outlets import (
    BulkCreateOutletsRequest,
    BulkCreateOutletsResponse,
    BulkOutletResult,
    CampaignOutletResponse,
    CreateOutletRequest,
    ListOutletsResponse,
    OutletResponse,
    OutletStatusLiteral,
    OutletStatusResponse,
    SearchOutletsRequest,
    SearchOutletsResponse,
    UpdateOutletRequest,
    UpdateOutletStatusRequest,
)
from outlets_core.domain.errors import OutletsServiceError
from outlets_core.domain.models import CampaignOutlet, PressOutlet
from outlets_core.domain.services.ledger import RelevanceEntry

router = APIRouter(prefix="/outlets", tags=["outlets"])
logger = logging.getLogger(__name__)


# =============================================================================
# RESPONSE HELPERS
# =============================================================================


def build_outlet_response(outlet: PressOutlet) -> OutletResponse:
    return OutletResponse(
        id=outlet.id,
        outlet_name=outlet.outlet_name,
        outlet_url=outlet.outlet_url,
        outlet_domain=outlet.outlet_domain,
        status=outlet.status,
        created_at=ensure_utc(outlet.created_at),
        updated_at=ensure_utc(outlet.updated_at),
    )


def build_campaign_outlet_response(
    outlet: PressOutlet, entry: CampaignOutlet
) -> CampaignOutletResponse:
    return CampaignOutletResponse(
        **build_outlet_response(outlet).model_dump(),
        campaign_id=entry.campaign_id,
        why_relevant=entry.why_relevant,
        why_not_relevant=entry.why_not_relevant,
        relevance_score=entry.relevance_score,
        outlet_status=entry.status,
        overall_relevance=entry.overall_relevance,
        relevance_rationale=entry.relevance_rationale,
        ended_at=ensure_utc(entry.ended_at),
    )


def to_entry(request: CreateOutletRequest) -> RelevanceEntry:
    return RelevanceEntry(
        outlet_name=request.outlet_name,
        outlet_url=request.outlet_url,
        outlet_domain=request.outlet_domain,
        campaign_id=request.campaign_id,
        why_relevant=request.why_relevant,
        why_not_relevant=request.why_not_relevant,
        relevance_score=request.relevance_score,
        status=request.status,
        overall_relevance=request.overall_relevance,
        relevance_rationale=request.relevance_rationale,
    )


# =============================================================================
# CREATE
# =============================================================================


@router.post(
    "",
    response_model=CampaignOutletResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create outlet",
    description="Upsert an outlet by URL and its relevance for a campaign, atomically.",
)
async def create_outlet(request: CreateOutletRequest, ledger: RelevanceLedgerDep):
    """Create or merge an outlet and its ledger entry."""
    try:
        outlet, entry = ledger.create_outlet_with_relevance(to_entry(request))
    except OutletsServiceError as e:
        raise http_error(e) from e
    return build_campaign_outlet_response(outlet, entry)


@router.post(
    "/bulk",
    response_model=BulkCreateOutletsResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Bulk create outlets",
    description="Create up to 500 outlets in one transaction; any failure rolls back all.",
)
async def bulk_create_outlets(request: BulkCreateOutletsRequest, ledger: RelevanceLedgerDep):
    """Create many outlets in one transaction."""
    try:
        results = ledger.bulk_upsert([to_entry(o) for o in request.outlets])
    except OutletsServiceError as e:
        raise http_error(e) from e
    return BulkCreateOutletsResponse(
        outlets=[
            BulkOutletResult(
                id=r.outlet_id,
                outlet_name=r.outlet_name,
                outlet_url=r.outlet_url,
                campaign_id=r.campaign_id,
            )
            for r in results
        ],
        count=len(results),
    )


# =============================================================================
# LIST / SEARCH
# =============================================================================


@router.get(
    "",
    response_model=ListOutletsResponse,
    summary="List outlets",
    description="List outlets joined with their campaign ledger entries, newest first.",
)
async def list_outlets(
    registry: OutletRegistryDep,
    campaign_id: Optional[str] = Query(default=None, alias="campaignId"),
    status_filter: Optional[OutletStatusLiteral] = Query(default=None, alias="status"),
    limit: int = Query(default=100, ge=1, le=1000, description="Maximum results"),
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
):
    """List outlets with optional campaign and status filters."""
    try:
        rows, total = registry.list_by_filter(
            campaign_id=campaign_id, status=status_filter, limit=limit, offset=offset
        )
    except OutletsServiceError as e:
        raise http_error(e) from e
    return ListOutletsResponse(
        outlets=[build_campaign_outlet_response(o, e) for o, e in rows],
        total=total,
    )


@router.post(
    "/search",
    response_model=SearchOutletsResponse,
    summary="Search outlets",
    description="Case-insensitive substring search on outlet name or URL.",
)
async def search_outlets(request: SearchOutletsRequest, registry: OutletRegistryDep):
    """Search outlets by name or URL."""
    try:
        outlets = registry.search_by_text(
            request.query, campaign_id=request.campaign_id, limit=request.limit
        )
    except OutletsServiceError as e:
        raise http_error(e) from e
    return SearchOutletsResponse(
        outlets=[build_outlet_response(o) for o in outlets],
        total=len(outlets),
    )


# =============================================================================
# GET / UPDATE
# =============================================================================


@router.get(
    "/{outlet_id}",
    response_model=OutletResponse,
    summary="Get outlet by ID",
)
async def get_outlet(outlet_id: str, registry: OutletRegistryDep):
    """Get an outlet by ID."""
    outlet = registry.get_outlet(outlet_id)
    if outlet is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Outlet not found: {outlet_id}",
        )
    return build_outlet_response(outlet)


@router.patch(
    "/{outlet_id}",
    response_model=OutletResponse,
    summary="Update outlet",
    description="Update any of name, URL and domain.",
)
async def update_outlet(
    outlet_id: str, request: UpdateOutletRequest, registry: OutletRegistryDep
):
    """Apply a partial update to an outlet."""
    if not request.model_fields_set:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update",
        )
    try:
        outlet = registry.update_fields(
            outlet_id,
            name=request.outlet_name,
            url=request.outlet_url,
            domain=request.outlet_domain,
        )
    except OutletsServiceError as e:
        raise http_error(e) from e
    return build_outlet_response(outlet)


@router.patch(
    "/{outlet_id}/status",
    response_model=OutletStatusResponse,
    summary="Update outlet campaign status",
    description="Set the ledger status of an outlet for a campaign. "
    "Ending stamps endedAt; a reason replaces the stored rationale.",
)
async def update_outlet_status(
    outlet_id: str,
    request: UpdateOutletStatusRequest,
    ledger: RelevanceLedgerDep,
    campaign_id: Optional[str] = Query(default=None, alias="campaignId"),
):
    """Update a ledger entry's status."""
    if not campaign_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="campaignId query parameter required",
        )
    try:
        entry = ledger.update_status(
            outlet_id, campaign_id, request.status, reason=request.reason
        )
    except OutletsServiceError as e:
        raise http_error(e) from e
    return OutletStatusResponse(
        outlet_id=entry.outlet_id,
        campaign_id=entry.campaign_id,
        status=entry.status,
        reason=entry.relevance_rationale,
        ended_at=ensure_utc(entry.ended_at),
        updated_at=ensure_utc(entry.updated_at),
    )
