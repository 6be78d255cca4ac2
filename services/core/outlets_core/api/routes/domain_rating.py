"""Domain rating API routes.

Provides endpoints for:
- GET /outlets/dr-status - Freshness of every outlet
- GET /outlets/dr-stale - Outlets needing a domain rating fetch
- GET /outlets/low-domain-rating - Outlets with a low domain rating
- GET /outlets/campaign-categories-dr-status - Freshness rollup per category
- PATCH /outlets/{id}/domain-rating - Record a measurement
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query

from outlets_core.api.deps import (
    DomainRatingStoreDep,
    FreshnessClassifierDep,
    http_error,
)
from outlets_core.api.schemas.common import ensure_utc
from outlets_core.api.schemas.domain_rating import (
    CategoryFreshnessListResponse,
    CategoryFreshnessResponse,
    DomainRatingRecordedResponse,
    FreshnessListResponse,
    FreshnessRowResponse,
    UpdateDomainRatingRequest,
)
from outlets_core.domain.errors import OutletsServiceError
from outlets_core.domain.services.domain_rating import MEASUREMENT_FIELDS
from outlets_core.domain.services.freshness import FreshnessRow

router = APIRouter(prefix="/outlets", tags=["domain-rating"])
logger = logging.getLogger(__name__)


def build_freshness_response(row: FreshnessRow) -> FreshnessRowResponse:
    return FreshnessRowResponse(
        outlet_id=row.outlet_id,
        outlet_name=row.outlet_name,
        outlet_url=row.outlet_url,
        outlet_domain=row.outlet_domain,
        state=row.state,
        needs_update=row.needs_update,
        update_reason=row.update_reason,
        latest_measurement_date=ensure_utc(row.latest_measurement_date),
        latest_valid_rating=row.latest_valid_rating,
        latest_valid_rating_date=ensure_utc(row.latest_valid_rating_date),
        has_low_rating=row.has_low_rating,
    )


@router.get(
    "/dr-status",
    response_model=FreshnessListResponse,
    summary="Domain rating status",
    description="Every outlet that is not soft-deleted, latest measurement first.",
)
async def get_dr_status(classifier: FreshnessClassifierDep):
    return FreshnessListResponse(
        outlets=[build_freshness_response(r) for r in classifier.list_all()]
    )


@router.get(
    "/dr-stale",
    response_model=FreshnessListResponse,
    summary="Outlets needing a domain rating fetch",
    description="Outlets with no data, a failed attempt due for retry, or an "
    "outdated rating. Most overdue first.",
)
async def get_dr_stale(classifier: FreshnessClassifierDep):
    return FreshnessListResponse(
        outlets=[build_freshness_response(r) for r in classifier.list_needing_update()]
    )


@router.get(
    "/low-domain-rating",
    response_model=FreshnessListResponse,
    summary="Outlets with a low domain rating",
)
async def get_low_domain_rating(classifier: FreshnessClassifierDep):
    return FreshnessListResponse(
        outlets=[build_freshness_response(r) for r in classifier.list_low_rating()]
    )


@router.get(
    "/campaign-categories-dr-status",
    response_model=CategoryFreshnessListResponse,
    summary="Domain rating rollup per category",
)
async def get_campaign_categories_dr_status(
    classifier: FreshnessClassifierDep,
    campaign_id: Optional[str] = Query(default=None, alias="campaignId"),
):
    """Per-category counts of rated, low-rated and stale outlets."""
    rollup = classifier.rollup_by_category(campaign_id=campaign_id)
    return CategoryFreshnessListResponse(
        categories=[
            CategoryFreshnessResponse(
                category_id=c.category_id,
                category_name=c.category_name,
                campaign_id=c.campaign_id,
                total_outlets=c.total_outlets,
                outlets_with_rating=c.outlets_with_rating,
                outlets_low_rating=c.outlets_low_rating,
                outlets_needing_update=c.outlets_needing_update,
                avg_domain_rating=c.avg_domain_rating,
            )
            for c in rollup
        ]
    )


@router.patch(
    "/{outlet_id}/domain-rating",
    response_model=DomainRatingRecordedResponse,
    summary="Record a domain rating measurement",
    description="Append a measurement and link it to the outlet in one transaction.",
)
async def update_domain_rating(
    outlet_id: str,
    request: UpdateDomainRatingRequest,
    store: DomainRatingStoreDep,
):
    """Record an authority or traffic measurement for an outlet."""
    measurements = {
        name: getattr(request, name)
        for name in MEASUREMENT_FIELDS
        if getattr(request, name) is not None
    }
    try:
        record = store.record_measurement(
            outlet_id=outlet_id,
            data_type=request.data_type,
            url_input=request.url_input,
            domain=request.domain,
            data_captured_at=request.data_captured_at,
            raw_data=request.raw_data,
            **measurements,
        )
    except OutletsServiceError as e:
        raise http_error(e) from e
    return DomainRatingRecordedResponse(
        outlet_id=outlet_id,
        record_id=record.id,
        data_type=record.data_type,
        authority_domain_rating=record.authority_domain_rating,
        data_captured_at=ensure_utc(record.data_captured_at),
    )
