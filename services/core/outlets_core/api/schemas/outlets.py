"""Outlet and campaign relevance API schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field, field_validator

from outlets_core.api.schemas.common import CamelModel

OutletStatusLiteral = Literal["open", "ended", "denied"]


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================


class CreateOutletRequest(CamelModel):
    """Request schema for creating an outlet with its campaign relevance."""

    outlet_name: str = Field(..., min_length=1, description="Display name")
    outlet_url: str = Field(..., min_length=1, description="Canonical absolute URL")
    outlet_domain: Optional[str] = Field(
        default=None, description="Domain (derived from the URL when omitted)"
    )
    campaign_id: str = Field(..., min_length=1, description="Campaign ID")
    why_relevant: str = Field(..., description="Why the outlet fits the campaign")
    why_not_relevant: str = Field(..., description="Why it may not fit")
    relevance_score: float = Field(..., ge=0, le=100, description="Score from 0 to 100")
    status: OutletStatusLiteral = Field(default="open", description="Ledger status")
    overall_relevance: Optional[str] = Field(default=None, description="Overall relevance")
    relevance_rationale: Optional[str] = Field(default=None, description="Rationale")


class BulkCreateOutletsRequest(CamelModel):
    """Request schema for creating outlets in one transaction."""

    outlets: list[CreateOutletRequest] = Field(..., min_length=1, max_length=500)


class UpdateOutletRequest(CamelModel):
    """Request schema for a partial outlet update."""

    outlet_name: Optional[str] = Field(default=None, min_length=1)
    outlet_url: Optional[str] = Field(default=None, min_length=1)
    outlet_domain: Optional[str] = Field(default=None, min_length=1)

    @field_validator("outlet_name", "outlet_url", "outlet_domain")
    @classmethod
    def reject_null(cls, v: Optional[str]) -> str:
        """Fields may be omitted but not set to null."""
        if v is None:
            raise ValueError("must not be null")
        return v


class UpdateOutletStatusRequest(CamelModel):
    """Request schema for changing a ledger entry's status."""

    status: OutletStatusLiteral = Field(..., description="New status")
    reason: Optional[str] = Field(
        default=None, description="Replaces the stored rationale when given"
    )


class SearchOutletsRequest(CamelModel):
    """Request schema for name/URL search."""

    query: str = Field(..., min_length=1, description="Substring to match")
    campaign_id: Optional[str] = Field(default=None, description="Restrict to a campaign")
    limit: int = Field(default=20, ge=1, le=100, description="Maximum results")


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================


class OutletResponse(CamelModel):
    """An outlet."""

    id: str
    outlet_name: str
    outlet_url: str
    outlet_domain: str
    status: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CampaignOutletResponse(OutletResponse):
    """An outlet joined with its ledger entry for one campaign."""

    campaign_id: str
    why_relevant: str
    why_not_relevant: str
    relevance_score: float
    outlet_status: str
    overall_relevance: Optional[str] = None
    relevance_rationale: Optional[str] = None
    ended_at: Optional[datetime] = None


class CampaignOutletWithRatingResponse(CampaignOutletResponse):
    """Ledger row with the outlet's domain rating freshness."""

    latest_valid_rating: Optional[float] = None
    latest_valid_rating_date: Optional[datetime] = None
    needs_update: Optional[bool] = None
    has_low_rating: Optional[bool] = None


class ListOutletsResponse(CamelModel):
    outlets: list[CampaignOutletResponse]
    total: int = Field(..., description="Total matching rows (for pagination)")


class OutletListResponse(CamelModel):
    outlets: list[OutletResponse]


class SearchOutletsResponse(CamelModel):
    outlets: list[OutletResponse]
    total: int


class BulkOutletResult(CamelModel):
    id: str
    outlet_name: str
    outlet_url: str
    campaign_id: str


class BulkCreateOutletsResponse(CamelModel):
    outlets: list[BulkOutletResult]
    count: int


class OutletStatusResponse(CamelModel):
    outlet_id: str
    campaign_id: str
    status: str
    reason: Optional[str] = None
    ended_at: Optional[datetime] = None
    updated_at: datetime


class LedgerStatusRow(CamelModel):
    """Ledger entry with outlet name and URL."""

    campaign_id: str
    outlet_id: str
    outlet_name: str
    outlet_url: str
    relevance_score: float
    why_relevant: str
    why_not_relevant: str
    outlet_status: str
    overall_relevance: Optional[str] = None
    relevance_rationale: Optional[str] = None
    ended_at: Optional[datetime] = None
    updated_at: datetime


class LedgerStatusListResponse(CamelModel):
    outlets: list[LedgerStatusRow]


class CampaignOutletWithRatingListResponse(CamelModel):
    outlets: list[CampaignOutletWithRatingResponse]


class CoverageOutlet(CamelModel):
    """Outlet queued for a coverage refresh."""

    outlet_id: str
    outlet_name: str
    outlet_url: str
    outlet_domain: str
    updated_at: datetime


class CoverageListResponse(CamelModel):
    outlets: list[CoverageOutlet]
