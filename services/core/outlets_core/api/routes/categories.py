"""Press category API routes.

Provides endpoints for:
- POST /categories - Create a category
- GET /categories - List a campaign's categories
- PATCH /categories/{id} - Update a category
- PATCH /categories/{id}/status - Update a category's relevance
- POST /categories/{id}/outlets - Link an outlet to a category
- GET /categories/{id}/outlets - List a category's outlets
"""

from typing import Optional

from fastapi import APIRouter, Query, status

from outlets_core.api.deps import CategoryLinksDep, CategoryRegistryDep, http_error
from outlets_core.api.schemas.categories import (
    CategoryLinkListResponse,
    CategoryLinkResponse,
    CategoryListResponse,
    CategoryRelevanceResponse,
    CategoryResponse,
    CreateCategoryRequest,
    UpdateCategoryRelevanceRequest,
    UpdateCategoryRequest,
    UpsertCategoryLinkRequest,
)
from outlets_core.api.schemas.common import ensure_utc
from outlets_core.domain.errors import OutletsServiceError
from outlets_core.domain.models import CampaignCategoryOutlet, PressCategory

router = APIRouter(prefix="/categories", tags=["categories"])


def build_category_response(category: PressCategory) -> CategoryResponse:
    return CategoryResponse(
        id=category.id,
        campaign_id=category.campaign_id,
        category_name=category.category_name,
        scope=category.scope,
        region=category.region,
        example_outlets=category.example_outlets,
        why_relevant=category.why_relevant,
        why_not_relevant=category.why_not_relevant,
        relevance_score=category.relevance_score,
        created_at=ensure_utc(category.created_at),
        updated_at=ensure_utc(category.updated_at),
    )


def build_link_response(link: CampaignCategoryOutlet) -> CategoryLinkResponse:
    return CategoryLinkResponse(
        campaign_id=link.campaign_id,
        category_id=link.category_id,
        outlet_id=link.outlet_id,
        outlet_name=link.outlet.outlet_name if link.outlet else None,
        outlet_url=link.outlet.outlet_url if link.outlet else None,
        why_relevant=link.why_relevant,
        why_not_relevant=link.why_not_relevant,
        relevance_score=link.relevance_score,
        created_at=ensure_utc(link.created_at),
        updated_at=ensure_utc(link.updated_at),
    )


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create category",
)
async def create_category(request: CreateCategoryRequest, categories: CategoryRegistryDep):
    """Create a press category for a campaign."""
    try:
        category = categories.create_category(
            campaign_id=request.campaign_id,
            category_name=request.category_name,
            scope=request.scope,
            region=request.region,
            example_outlets=request.example_outlets,
            why_relevant=request.why_relevant,
            why_not_relevant=request.why_not_relevant,
            relevance_score=request.relevance_score,
        )
    except OutletsServiceError as e:
        raise http_error(e) from e
    return build_category_response(category)


@router.get(
    "",
    response_model=CategoryListResponse,
    summary="List categories",
    description="Categories of a campaign, newest first.",
)
async def list_categories(
    categories: CategoryRegistryDep,
    campaign_id: str = Query(..., alias="campaignId", min_length=1),
):
    return CategoryListResponse(
        categories=[build_category_response(c) for c in categories.list_by_campaign(campaign_id)]
    )


@router.patch(
    "/{category_id}",
    response_model=CategoryResponse,
    summary="Update category",
)
async def update_category(
    category_id: str, request: UpdateCategoryRequest, categories: CategoryRegistryDep
):
    """Apply the fields present in the body."""
    try:
        category = categories.update_category(
            category_id, request.model_dump(exclude_unset=True)
        )
    except OutletsServiceError as e:
        raise http_error(e) from e
    return build_category_response(category)


@router.patch(
    "/{category_id}/status",
    response_model=CategoryRelevanceResponse,
    summary="Update category relevance",
    description="Update only the score and rationale of a category.",
)
async def update_category_status(
    category_id: str,
    request: UpdateCategoryRelevanceRequest,
    categories: CategoryRegistryDep,
):
    try:
        category = categories.update_relevance(
            category_id, request.model_dump(exclude_unset=True, exclude_none=True)
        )
    except OutletsServiceError as e:
        raise http_error(e) from e
    return CategoryRelevanceResponse(
        id=category.id,
        campaign_id=category.campaign_id,
        category_name=category.category_name,
        relevance_score=category.relevance_score,
        updated_at=ensure_utc(category.updated_at),
    )


@router.post(
    "/{category_id}/outlets",
    response_model=CategoryLinkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Link outlet to category",
    description="Insert or overwrite an outlet's relevance for a category.",
)
async def upsert_category_outlet(
    category_id: str, request: UpsertCategoryLinkRequest, links: CategoryLinksDep
):
    try:
        link = links.upsert_link(
            campaign_id=request.campaign_id,
            category_id=category_id,
            outlet_id=request.outlet_id,
            why_relevant=request.why_relevant,
            why_not_relevant=request.why_not_relevant,
            relevance_score=request.relevance_score,
        )
    except OutletsServiceError as e:
        raise http_error(e) from e
    return build_link_response(link)


@router.get(
    "/{category_id}/outlets",
    response_model=CategoryLinkListResponse,
    summary="List category outlets",
)
async def list_category_outlets(
    category_id: str,
    links: CategoryLinksDep,
    campaign_id: Optional[str] = Query(default=None, alias="campaignId"),
):
    try:
        rows = links.list_links(category_id, campaign_id=campaign_id)
    except OutletsServiceError as e:
        raise http_error(e) from e
    return CategoryLinkListResponse(outlets=[build_link_response(link) for link in rows])
