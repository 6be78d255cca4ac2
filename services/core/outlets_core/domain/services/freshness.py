"""Domain rating freshness classifier.

Derives, for every outlet that is not soft-deleted, whether its domain
rating data is missing, due for a retry, outdated, recently attempted or
fresh. Nothing is stored: every call recomputes the classification from
the outlets and their authority measurements in a single query.

Classification, first match wins:

    no latest measurement                          -> "No DR fetched yet"
    no valid rating, latest older than 1 month     -> "DR fetch to retry"
    valid rating older than 1 year                 -> "DR outdated"
    valid rating within 1 year                     -> "DR exists < 1 year"
    no valid rating, latest within 1 month         -> "DR attempt < 1 month"

A "valid" measurement is one whose domain rating is not null.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import and_, case, distinct, func, or_, select
from sqlalchemy.orm import Session

from outlets_core.domain.models import (
    CampaignCategoryOutlet,
    CampaignOutlet,
    DomainRatingRecord,
    DomainRatingType,
    OutletDomainRating,
    PressCategory,
    PressOutlet,
)
from outlets_core.domain.services.outlets import DEFAULT_SOFT_DELETE_STATUS


# =============================================================================
# CONSTANTS
# =============================================================================


class FreshnessState(str):
    """Freshness states and their update reason labels."""

    NO_DATA = "no_data"
    RETRY_DUE = "retry_due"
    STALE = "stale"
    FRESH = "fresh"
    PENDING = "pending"


UPDATE_REASONS = {
    FreshnessState.NO_DATA: "No DR fetched yet",
    FreshnessState.RETRY_DUE: "DR fetch to retry",
    FreshnessState.STALE: "DR outdated",
    FreshnessState.FRESH: "DR exists < 1 year",
    FreshnessState.PENDING: "DR attempt < 1 month",
}
STATES_BY_REASON = {label: state for state, label in UPDATE_REASONS.items()}

NEEDS_UPDATE_REASONS = (
    UPDATE_REASONS[FreshnessState.NO_DATA],
    UPDATE_REASONS[FreshnessState.RETRY_DUE],
    UPDATE_REASONS[FreshnessState.STALE],
)

DEFAULT_LOW_RATING_THRESHOLD = 10
DEFAULT_RETRY_AFTER_MONTHS = 1
DEFAULT_STALE_AFTER_YEARS = 1


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class FreshnessRow:
    """Classification of one outlet."""

    outlet_id: str
    outlet_name: str
    outlet_url: str
    outlet_domain: str
    state: str
    needs_update: bool
    update_reason: Optional[str]
    latest_measurement_date: Optional[datetime]
    latest_valid_rating: Optional[float]
    latest_valid_rating_date: Optional[datetime]
    has_low_rating: bool


@dataclass
class CategoryFreshness:
    """Freshness rollup for the outlets linked to one category."""

    category_id: str
    category_name: str
    campaign_id: str
    total_outlets: int
    outlets_with_rating: int
    outlets_low_rating: int
    outlets_needing_update: int
    avg_domain_rating: Optional[float]


@dataclass
class CampaignOutletRating:
    """Ledger entry of a campaign joined with its outlet's freshness."""

    outlet: PressOutlet
    entry: CampaignOutlet
    latest_valid_rating: Optional[float]
    latest_valid_rating_date: Optional[datetime]
    needs_update: Optional[bool]
    has_low_rating: Optional[bool]


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands timestamps back naive; they are stored as UTC
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def round_half_up(value: float) -> float:
    """Round to one decimal with ties going up (42.25 -> 42.3)."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


# =============================================================================
# SERVICE
# =============================================================================


class FreshnessClassifier:
    """Read-only freshness view over outlets and their measurements."""

    def __init__(
        self,
        db: Session,
        soft_delete_status: str = DEFAULT_SOFT_DELETE_STATUS,
        low_rating_threshold: float = DEFAULT_LOW_RATING_THRESHOLD,
        retry_after_months: int = DEFAULT_RETRY_AFTER_MONTHS,
        stale_after_years: int = DEFAULT_STALE_AFTER_YEARS,
        now: Optional[datetime] = None,
    ):
        """Initialize the classifier.

        Args:
            db: SQLAlchemy database session.
            soft_delete_status: Outlet status excluded from the view.
            low_rating_threshold: Ratings strictly below this are low.
            retry_after_months: Age after which a failed attempt is retried.
            stale_after_years: Age after which a valid rating is outdated.
            now: Fixed clock for the classification (defaults to the
                current time at each call).
        """
        self.db = db
        self.soft_delete_status = soft_delete_status
        self.low_rating_threshold = low_rating_threshold
        self.retry_after_months = retry_after_months
        self.stale_after_years = stale_after_years
        self.now = now

    # =========================================================================
    # QUERY CONSTRUCTION
    # =========================================================================

    def _ranked_measurements(self, valid_only: bool):
        """Authority measurements per outlet, ranked newest first."""
        rank = (
            func.row_number()
            .over(
                partition_by=OutletDomainRating.outlet_id,
                order_by=(
                    DomainRatingRecord.data_captured_at.desc(),
                    DomainRatingRecord.created_at.desc(),
                    DomainRatingRecord.id.desc(),
                ),
            )
            .label("rn")
        )
        stmt = (
            select(
                OutletDomainRating.outlet_id.label("outlet_id"),
                DomainRatingRecord.data_captured_at.label("captured_at"),
                DomainRatingRecord.authority_domain_rating.label("rating"),
                rank,
            )
            .join(DomainRatingRecord, DomainRatingRecord.id == OutletDomainRating.record_id)
            .where(DomainRatingRecord.data_type == DomainRatingType.AUTHORITY)
        )
        if valid_only:
            stmt = stmt.where(DomainRatingRecord.authority_domain_rating.is_not(None))
        return stmt.subquery("valid" if valid_only else "latest")

    def _classified(self):
        """Select of one classified row per outlet that is not soft-deleted."""
        now = self.now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        now = now.astimezone(timezone.utc)
        retry_cutoff = now - relativedelta(months=self.retry_after_months)
        stale_cutoff = now - relativedelta(years=self.stale_after_years)

        latest = self._ranked_measurements(valid_only=False)
        valid = self._ranked_measurements(valid_only=True)

        reason = case(
            (latest.c.captured_at.is_(None), UPDATE_REASONS[FreshnessState.NO_DATA]),
            (
                and_(valid.c.captured_at.is_(None), latest.c.captured_at < retry_cutoff),
                UPDATE_REASONS[FreshnessState.RETRY_DUE],
            ),
            (valid.c.captured_at < stale_cutoff, UPDATE_REASONS[FreshnessState.STALE]),
            (valid.c.captured_at.is_not(None), UPDATE_REASONS[FreshnessState.FRESH]),
            else_=UPDATE_REASONS[FreshnessState.PENDING],
        ).label("update_reason")

        return (
            select(
                PressOutlet.id.label("outlet_id"),
                PressOutlet.outlet_name.label("outlet_name"),
                PressOutlet.outlet_url.label("outlet_url"),
                PressOutlet.outlet_domain.label("outlet_domain"),
                reason,
                latest.c.captured_at.label("latest_measurement_date"),
                valid.c.rating.label("latest_valid_rating"),
                valid.c.captured_at.label("latest_valid_rating_date"),
            )
            .outerjoin(latest, and_(latest.c.outlet_id == PressOutlet.id, latest.c.rn == 1))
            .outerjoin(valid, and_(valid.c.outlet_id == PressOutlet.id, valid.c.rn == 1))
            .where(
                or_(
                    PressOutlet.status.is_(None),
                    PressOutlet.status != self.soft_delete_status,
                )
            )
        )

    def _to_row(self, row) -> FreshnessRow:
        rating = row.latest_valid_rating
        rating = float(rating) if rating is not None else None
        reason = row.update_reason
        return FreshnessRow(
            outlet_id=row.outlet_id,
            outlet_name=row.outlet_name,
            outlet_url=row.outlet_url,
            outlet_domain=row.outlet_domain,
            state=STATES_BY_REASON[reason],
            needs_update=reason in NEEDS_UPDATE_REASONS,
            update_reason=reason,
            latest_measurement_date=_utc(row.latest_measurement_date),
            latest_valid_rating=rating,
            latest_valid_rating_date=_utc(row.latest_valid_rating_date),
            has_low_rating=rating is not None and rating < self.low_rating_threshold,
        )

    # =========================================================================
    # VIEWS
    # =========================================================================

    def list_all(self) -> list[FreshnessRow]:
        """All classified outlets, latest measurement first (no data last)."""
        view = self._classified().subquery()
        stmt = select(view).order_by(
            view.c.latest_measurement_date.is_(None),
            view.c.latest_measurement_date.desc(),
            view.c.outlet_name,
        )
        return [self._to_row(row) for row in self.db.execute(stmt)]

    def list_needing_update(self) -> list[FreshnessRow]:
        """Outlets needing a fetch, most overdue first (no data first)."""
        view = self._classified().subquery()
        stmt = (
            select(view)
            .where(view.c.update_reason.in_(NEEDS_UPDATE_REASONS))
            .order_by(
                view.c.latest_measurement_date.is_not(None),
                view.c.latest_measurement_date.asc(),
                view.c.outlet_name,
            )
        )
        return [self._to_row(row) for row in self.db.execute(stmt)]

    def list_low_rating(self) -> list[FreshnessRow]:
        """Outlets whose latest valid rating is below the threshold."""
        view = self._classified().subquery()
        stmt = (
            select(view)
            .where(
                view.c.latest_valid_rating.is_not(None),
                view.c.latest_valid_rating < self.low_rating_threshold,
            )
            .order_by(view.c.outlet_name, view.c.outlet_id)
        )
        return [self._to_row(row) for row in self.db.execute(stmt)]

    def get_for_outlet(self, outlet_id: str) -> Optional[FreshnessRow]:
        """Classification of one outlet, or None if unknown or soft-deleted."""
        view = self._classified().subquery()
        row = self.db.execute(select(view).where(view.c.outlet_id == outlet_id)).first()
        return self._to_row(row) if row is not None else None

    def rollup_by_category(self, campaign_id: Optional[str] = None) -> list[CategoryFreshness]:
        """Per-category freshness counts over linked outlets.

        Categories without links are reported with zero counts. The average
        covers outlets with a valid rating and is rounded to one decimal.
        """
        view = self._classified().subquery()
        link = CampaignCategoryOutlet
        has_rating = view.c.latest_valid_rating.is_not(None)

        stmt = (
            select(
                PressCategory.id.label("category_id"),
                PressCategory.category_name.label("category_name"),
                PressCategory.campaign_id.label("campaign_id"),
                func.count(distinct(link.outlet_id)).label("total_outlets"),
                func.count(distinct(case((has_rating, link.outlet_id)))).label(
                    "outlets_with_rating"
                ),
                func.count(
                    distinct(
                        case(
                            (
                                and_(
                                    has_rating,
                                    view.c.latest_valid_rating < self.low_rating_threshold,
                                ),
                                link.outlet_id,
                            )
                        )
                    )
                ).label("outlets_low_rating"),
                func.count(
                    distinct(
                        case(
                            (view.c.update_reason.in_(NEEDS_UPDATE_REASONS), link.outlet_id)
                        )
                    )
                ).label("outlets_needing_update"),
                func.avg(view.c.latest_valid_rating).label("avg_domain_rating"),
            )
            .select_from(PressCategory)
            .outerjoin(
                link,
                and_(
                    link.category_id == PressCategory.id,
                    link.campaign_id == PressCategory.campaign_id,
                ),
            )
            .outerjoin(view, view.c.outlet_id == link.outlet_id)
            .group_by(
                PressCategory.id, PressCategory.category_name, PressCategory.campaign_id
            )
            .order_by(PressCategory.category_name, PressCategory.id)
        )
        if campaign_id:
            stmt = stmt.where(PressCategory.campaign_id == campaign_id)

        return [
            CategoryFreshness(
                category_id=row.category_id,
                category_name=row.category_name,
                campaign_id=row.campaign_id,
                total_outlets=int(row.total_outlets or 0),
                outlets_with_rating=int(row.outlets_with_rating or 0),
                outlets_low_rating=int(row.outlets_low_rating or 0),
                outlets_needing_update=int(row.outlets_needing_update or 0),
                avg_domain_rating=(
                    round_half_up(row.avg_domain_rating)
                    if row.avg_domain_rating is not None
                    else None
                ),
            )
            for row in self.db.execute(stmt)
        ]

    def list_campaign_outlets(self, campaign_id: str) -> list[CampaignOutletRating]:
        """Ledger entries of a campaign with freshness data, best score first.

        Soft-deleted outlets are listed with empty freshness fields.
        """
        view = self._classified().subquery()
        stmt = (
            select(PressOutlet, CampaignOutlet, view)
            .join(CampaignOutlet, CampaignOutlet.outlet_id == PressOutlet.id)
            .outerjoin(view, view.c.outlet_id == PressOutlet.id)
            .where(CampaignOutlet.campaign_id == campaign_id)
            .order_by(CampaignOutlet.relevance_score.desc(), PressOutlet.id)
        )
        results = []
        for row in self.db.execute(stmt):
            rating = row.latest_valid_rating
            rating = float(rating) if rating is not None else None
            classified = row.update_reason is not None
            results.append(
                CampaignOutletRating(
                    outlet=row.PressOutlet,
                    entry=row.CampaignOutlet,
                    latest_valid_rating=rating,
                    latest_valid_rating_date=_utc(row.latest_valid_rating_date),
                    needs_update=(
                        row.update_reason in NEEDS_UPDATE_REASONS if classified else None
                    ),
                    has_low_rating=(
                        (rating is not None and rating < self.low_rating_threshold)
                        if classified
                        else None
                    ),
                )
            )
        return results


__all__ = [
    "FreshnessClassifier",
    "FreshnessRow",
    "FreshnessState",
    "CategoryFreshness",
    "CampaignOutletRating",
    "UPDATE_REASONS",
    "NEEDS_UPDATE_REASONS",
]
