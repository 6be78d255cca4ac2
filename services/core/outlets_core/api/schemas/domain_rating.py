"""Domain rating API schemas."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import Field

from outlets_core.api.schemas.common import CamelModel


class UpdateDomainRatingRequest(CamelModel):
    """A measurement captured by the rating provider.

    Typed fields left out or null mean measured but unavailable.
    """

    url_input: str = Field(..., min_length=1, description="URL sent to the provider")
    domain: str = Field(..., min_length=1, description="Domain the provider resolved")
    data_captured_at: datetime = Field(..., description="When the provider captured the data")
    data_type: Literal["authority", "traffic"] = Field(..., description="Measurement kind")
    raw_data: Optional[Any] = Field(default=None, description="Opaque provider payload")

    authority_domain_rating: Optional[float] = Field(default=None, ge=0, le=100)
    authority_url_rating: Optional[int] = Field(default=None, ge=0)
    authority_backlinks: Optional[int] = Field(default=None, ge=0)
    authority_refdomains: Optional[int] = Field(default=None, ge=0)
    authority_dofollow_backlinks: Optional[int] = Field(default=None, ge=0)
    authority_dofollow_refdomains: Optional[int] = Field(default=None, ge=0)

    traffic_monthly_avg: Optional[int] = Field(default=None, ge=0)
    cost_monthly_avg: Optional[int] = Field(default=None, ge=0)
    traffic_history: Optional[list[Any]] = None
    traffic_top_pages: Optional[list[Any]] = None
    traffic_top_countries: Optional[list[Any]] = None
    traffic_top_keywords: Optional[list[Any]] = None


class DomainRatingRecordedResponse(CamelModel):
    outlet_id: str
    record_id: str
    data_type: str
    authority_domain_rating: Optional[float] = None
    data_captured_at: datetime


class FreshnessRowResponse(CamelModel):
    """Domain rating freshness of one outlet."""

    outlet_id: str
    outlet_name: str
    outlet_url: str
    outlet_domain: str
    state: str = Field(..., description="no_data, retry_due, stale, fresh or pending")
    needs_update: bool
    update_reason: Optional[str] = None
    latest_measurement_date: Optional[datetime] = None
    latest_valid_rating: Optional[float] = None
    latest_valid_rating_date: Optional[datetime] = None
    has_low_rating: bool


class FreshnessListResponse(CamelModel):
    outlets: list[FreshnessRowResponse]


class CategoryFreshnessResponse(CamelModel):
    category_id: str
    category_name: str
    campaign_id: str
    total_outlets: int
    outlets_with_rating: int
    outlets_low_rating: int
    outlets_needing_update: int
    avg_domain_rating: Optional[float] = None


class CategoryFreshnessListResponse(CamelModel):
    categories: list[CategoryFreshnessResponse]
