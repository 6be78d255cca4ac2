"""Domain models for the outlets service.

SQLAlchemy ORM models for press outlets, their per-campaign relevance
ledger, press categories and the domain-rating measurements captured for
each outlet.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


def utcnow() -> datetime:
    """Current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


# =============================================================================
# ENUMS
# =============================================================================


class OutletStatus(str):
    """Campaign relevance ledger status values."""

    OPEN = "open"
    ENDED = "ended"
    DENIED = "denied"


class CategoryScope(str):
    """Geographic scope of a press category."""

    CITY = "city"
    STATE_OR_PROVINCE = "state_or_province"
    COUNTRY = "country"
    MULTI_COUNTRY_REGION = "multi-country_region"
    INTERNATIONAL = "international"


class DomainRatingType(str):
    """Domain rating record discriminator."""

    AUTHORITY = "authority"
    TRAFFIC = "traffic"


OUTLET_STATUSES = (OutletStatus.OPEN, OutletStatus.ENDED, OutletStatus.DENIED)
CATEGORY_SCOPES = (
    CategoryScope.CITY,
    CategoryScope.STATE_OR_PROVINCE,
    CategoryScope.COUNTRY,
    CategoryScope.MULTI_COUNTRY_REGION,
    CategoryScope.INTERNATIONAL,
)
DOMAIN_RATING_TYPES = (DomainRatingType.AUTHORITY, DomainRatingType.TRAFFIC)

# MySQL only accepts expression defaults on TEXT columns
EMPTY_TEXT_DEFAULT = text("('')")

# Fixed-point scores come back as floats
Score = Numeric(5, 2, asdecimal=False)


# =============================================================================
# MODELS
# =============================================================================


class PressOutlet(Base):
    """A press publication, keyed for writes by its canonical URL."""

    __tablename__ = "press_outlets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    outlet_name: Mapped[str] = mapped_column(Text, nullable=False)
    outlet_url: Mapped[str] = mapped_column(String(768), nullable=False, unique=True)
    outlet_domain: Mapped[str] = mapped_column(String(255), nullable=False)

    # Free-form lifecycle status; the soft-delete marker hides the outlet
    # from domain rating freshness views.
    status: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (Index("idx_press_outlets_domain", "outlet_domain"),)

    # Relationships
    campaign_links: Mapped[list["CampaignOutlet"]] = relationship(
        back_populates="outlet", cascade="all, delete-orphan", passive_deletes=True
    )
    category_links: Mapped[list["CampaignCategoryOutlet"]] = relationship(
        back_populates="outlet", cascade="all, delete-orphan", passive_deletes=True
    )
    domain_rating_links: Mapped[list["OutletDomainRating"]] = relationship(
        back_populates="outlet", cascade="all, delete-orphan", passive_deletes=True
    )


class CampaignOutlet(Base):
    """Relevance judgment of one outlet for one campaign."""

    __tablename__ = "campaign_outlets"

    campaign_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    outlet_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("press_outlets.id", ondelete="CASCADE"),
        primary_key=True,
    )
    why_relevant: Mapped[str] = mapped_column(Text, nullable=False)
    why_not_relevant: Mapped[str] = mapped_column(Text, nullable=False)
    relevance_score: Mapped[float] = mapped_column(Score, nullable=False)
    status: Mapped[str] = mapped_column(
        Enum(*OUTLET_STATUSES, name="outlet_status_enum"),
        nullable=False,
        default=OutletStatus.OPEN,
    )
    overall_relevance: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    relevance_rationale: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ended_at is stamped when status becomes "ended" and never cleared
    started_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    ended_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_campaign_outlets_campaign", "campaign_id"),
        Index("idx_campaign_outlets_outlet", "outlet_id"),
    )

    outlet: Mapped["PressOutlet"] = relationship(back_populates="campaign_links")


class PressCategory(Base):
    """A topical press category evaluated for a campaign."""

    __tablename__ = "press_categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    campaign_id: Mapped[str] = mapped_column(String(36), nullable=False)
    category_name: Mapped[str] = mapped_column(Text, nullable=False)
    scope: Mapped[Optional[str]] = mapped_column(
        Enum(*CATEGORY_SCOPES, name="press_category_scope_enum"), nullable=True
    )
    region: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    example_outlets: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    why_relevant: Mapped[str] = mapped_column(
        Text, nullable=False, default="", server_default=EMPTY_TEXT_DEFAULT
    )
    why_not_relevant: Mapped[str] = mapped_column(
        Text, nullable=False, default="", server_default=EMPTY_TEXT_DEFAULT
    )
    relevance_score: Mapped[float] = mapped_column(
        Score, nullable=False, default=0, server_default="0"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (Index("idx_press_categories_campaign", "campaign_id"),)

    outlet_links: Mapped[list["CampaignCategoryOutlet"]] = relationship(
        back_populates="category", cascade="all, delete-orphan", passive_deletes=True
    )


class CampaignCategoryOutlet(Base):
    """Relevance of an outlet to a category, within a campaign.

    Independent of the outlet's direct campaign judgment.
    """

    __tablename__ = "campaigns_categories_outlets"

    campaign_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    category_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("press_categories.id", ondelete="CASCADE"),
        primary_key=True,
    )
    outlet_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("press_outlets.id", ondelete="CASCADE"),
        primary_key=True,
    )
    why_relevant: Mapped[str] = mapped_column(Text, nullable=False)
    why_not_relevant: Mapped[str] = mapped_column(Text, nullable=False)
    relevance_score: Mapped[float] = mapped_column(Score, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_campaigns_categories_outlets_outlet", "outlet_id"),
        Index("idx_campaigns_categories_outlets_category", "category_id"),
    )

    category: Mapped["PressCategory"] = relationship(back_populates="outlet_links")
    outlet: Mapped["PressOutlet"] = relationship(back_populates="category_links")


class DomainRatingRecord(Base):
    """One captured authority or traffic measurement. Append-only."""

    __tablename__ = "domain_rating_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    url_input: Mapped[str] = mapped_column(Text, nullable=False)
    domain: Mapped[str] = mapped_column(String(255), nullable=False)
    data_captured_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    data_type: Mapped[str] = mapped_column(
        Enum(*DOMAIN_RATING_TYPES, name="domain_rating_type_enum"), nullable=False
    )
    raw_data: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    # Authority measurements (null = measured but unavailable)
    authority_domain_rating: Mapped[Optional[float]] = mapped_column(
        Score, nullable=True
    )
    authority_url_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    authority_backlinks: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    authority_refdomains: Mapped[Optional[int]] = mapped_column(
        BigInteger, nullable=True
    )
    authority_dofollow_backlinks: Mapped[Optional[int]] = mapped_column(
        BigInteger, nullable=True
    )
    authority_dofollow_refdomains: Mapped[Optional[int]] = mapped_column(
        BigInteger, nullable=True
    )

    # Traffic measurements
    traffic_monthly_avg: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    cost_monthly_avg: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    traffic_history: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    traffic_top_pages: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    traffic_top_countries: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    traffic_top_keywords: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_domain_rating_records_captured", "data_type", "data_captured_at"),
    )

    outlet_links: Mapped[list["OutletDomainRating"]] = relationship(
        back_populates="record", cascade="all, delete-orphan", passive_deletes=True
    )


class OutletDomainRating(Base):
    """Association between an outlet and a domain rating record."""

    __tablename__ = "outlet_domain_ratings"

    outlet_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("press_outlets.id", ondelete="CASCADE"),
        primary_key=True,
    )
    record_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("domain_rating_records.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (Index("idx_outlet_domain_ratings_record", "record_id"),)

    outlet: Mapped["PressOutlet"] = relationship(back_populates="domain_rating_links")
    record: Mapped["DomainRatingRecord"] = relationship(back_populates="outlet_links")


__all__ = [
    "Base",
    "utcnow",
    "new_id",
    "OutletStatus",
    "CategoryScope",
    "DomainRatingType",
    "OUTLET_STATUSES",
    "CATEGORY_SCOPES",
    "DOMAIN_RATING_TYPES",
    "PressOutlet",
    "CampaignOutlet",
    "PressCategory",
    "CampaignCategoryOutlet",
    "DomainRatingRecord",
    "OutletDomainRating",
]
