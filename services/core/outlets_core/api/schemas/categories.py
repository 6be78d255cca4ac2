"""Press category API schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from outlets_core.api.schemas.common import CamelModel

ScopeLiteral = Literal[
    "city",
    "state_or_province",
    "country",
    "multi-country_region",
    "international",
]


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================


class CreateCategoryRequest(CamelModel):
    campaign_id: str = Field(..., min_length=1, description="Campaign ID")
    category_name: str = Field(..., min_length=1, description="Category name")
    scope: Optional[ScopeLiteral] = Field(default=None, description="Geographic scope")
    region: Optional[str] = None
    example_outlets: Optional[str] = None
    why_relevant: str = ""
    why_not_relevant: str = ""
    relevance_score: float = Field(default=0, ge=0, le=100)


class UpdateCategoryRequest(CamelModel):
    """Partial update; only fields present in the body are applied.

    region and exampleOutlets may be set to null.
    """

    category_name: Optional[str] = Field(default=None, min_length=1)
    scope: Optional[ScopeLiteral] = None
    region: Optional[str] = None
    example_outlets: Optional[str] = None
    why_relevant: Optional[str] = None
    why_not_relevant: Optional[str] = None
    relevance_score: Optional[float] = Field(default=None, ge=0, le=100)


class UpdateCategoryRelevanceRequest(CamelModel):
    why_relevant: Optional[str] = None
    why_not_relevant: Optional[str] = None
    relevance_score: Optional[float] = Field(default=None, ge=0, le=100)


class UpsertCategoryLinkRequest(CamelModel):
    campaign_id: str = Field(..., min_length=1)
    outlet_id: str = Field(..., min_length=1)
    why_relevant: str
    why_not_relevant: str
    relevance_score: float = Field(..., ge=0, le=100)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================


class CategoryResponse(CamelModel):
    id: str
    campaign_id: str
    category_name: str
    scope: Optional[str] = None
    region: Optional[str] = None
    example_outlets: Optional[str] = None
    why_relevant: str
    why_not_relevant: str
    relevance_score: float
    created_at: datetime
    updated_at: datetime


class CategoryListResponse(CamelModel):
    categories: list[CategoryResponse]


class CategoryRelevanceResponse(CamelModel):
    id: str
    campaign_id: str
    category_name: str
    relevance_score: float
    updated_at: datetime


class CategoryLinkResponse(CamelModel):
    campaign_id: str
    category_id: str
    outlet_id: str
    outlet_name: Optional[str] = None
    outlet_url: Optional[str] = None
    why_relevant: str
    why_not_relevant: str
    relevance_score: float
    created_at: datetime
    updated_at: datetime


class CategoryLinkListResponse(CamelModel):
    outlets: list[CategoryLinkResponse]
