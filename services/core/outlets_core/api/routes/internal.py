"""Internal API routes for other services.

Provides endpoints for:
- GET /internal/outlets/by-ids - Batch lookup by IDs
- GET /internal/outlets/by-campaign/{campaignId} - Campaign outlets with domain ratings
"""

from fastapi import APIRouter, Query

from outlets_core.api.deps import FreshnessClassifierDep, OutletRegistryDep
from outlets_core.api.routes.outlets import (
    build_campaign_outlet_response,
    build_outlet_response,
)
from outlets_core.api.schemas.common import ensure_utc
from outlets_core.api.schemas.outlets import (
    CampaignOutletWithRatingListResponse,
    CampaignOutletWithRatingResponse,
    OutletListResponse,
)

router = APIRouter(prefix="/internal", tags=["internal"])


@router.get(
    "/outlets/by-ids",
    response_model=OutletListResponse,
    summary="Get outlets by IDs",
    description="Comma-separated IDs; unknown IDs are skipped.",
)
async def get_outlets_by_ids(
    registry: OutletRegistryDep,
    ids: str = Query(..., min_length=1, description="Comma-separated outlet IDs"),
):
    outlet_ids = [i.strip() for i in ids.split(",") if i.strip()]
    return OutletListResponse(
        outlets=[build_outlet_response(o) for o in registry.get_by_ids(outlet_ids)]
    )


@router.get(
    "/outlets/by-campaign/{campaign_id}",
    response_model=CampaignOutletWithRatingListResponse,
    summary="Get campaign outlets with domain ratings",
)
async def get_outlets_by_campaign(campaign_id: str, classifier: FreshnessClassifierDep):
    rows = classifier.list_campaign_outlets(campaign_id)
    return CampaignOutletWithRatingListResponse(
        outlets=[
            CampaignOutletWithRatingResponse(
                **build_campaign_outlet_response(r.outlet, r.entry).model_dump(),
                latest_valid_rating=r.latest_valid_rating,
                latest_valid_rating_date=ensure_utc(r.latest_valid_rating_date),
                needs_update=r.needs_update,
                has_low_rating=r.has_low_rating,
            )
            for r in rows
        ]
    )
