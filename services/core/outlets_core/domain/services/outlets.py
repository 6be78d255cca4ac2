"""Outlet registry service.

This service provides:
1. Insert-or-merge of outlets keyed on their canonical URL
2. Field updates, lookups and deletion
3. Listing joined with the campaign relevance ledger
4. Name/URL substring search

Usage:
    registry = OutletRegistry(db=session)

    outlet = registry.upsert_outlet(
        name="TechCrunch",
        url="https://www.techcrunch.com",
    )
    outlet.outlet_domain  # "techcrunch.com"

    rows, total = registry.list_by_filter(campaign_id=campaign_id, status="open")
"""

import logging
from typing import Optional, Sequence
from urllib.parse import urlparse

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from outlets_core.domain.errors import NotFoundError, ValidationError
from outlets_core.domain.models import (
    OUTLET_STATUSES,
    CampaignOutlet,
    DomainRatingRecord,
    OutletDomainRating,
    PressOutlet,
    utcnow,
)
from outlets_core.infra.db import unit_of_work, upsert
from outlets_core.observability.metrics import get_collector

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================


DEFAULT_LIST_LIMIT = 100
MAX_LIST_LIMIT = 1000
DEFAULT_SEARCH_LIMIT = 20
MAX_SEARCH_LIMIT = 100
DEFAULT_SOFT_DELETE_STATUS = "to_delete"


# =============================================================================
# HELPERS
# =============================================================================


def extract_domain(url: str) -> str:
    """Host of the URL without a leading "www.".

    Falls back to the raw string when the URL has no parseable host.
    """
    try:
        host = urlparse(url).hostname
    except ValueError:
        return url
    if not host:
        return url
    return host[4:] if host.startswith("www.") else host


def validate_outlet_input(name: str, url: str) -> None:
    """Raise ValidationError unless name is non-empty and url is absolute."""
    if not name or not name.strip():
        raise ValidationError("outlet_name must not be empty")
    try:
        parsed = urlparse(url or "")
    except ValueError as e:
        raise ValidationError(f"outlet_url is not a valid URL: {url!r}") from e
    if not parsed.scheme or not parsed.netloc:
        raise ValidationError(f"outlet_url must be an absolute URL: {url!r}")


def _clamp(value: int, default: int, maximum: int) -> int:
    if value is None or value < 1:
        return default
    return min(value, maximum)


# =============================================================================
# SERVICE
# =============================================================================


class OutletRegistry:
    """Canonical store of press outlets."""

    def __init__(self, db: Session, soft_delete_status: str = DEFAULT_SOFT_DELETE_STATUS):
        """Initialize the registry.

        Args:
            db: SQLAlchemy database session.
            soft_delete_status: Status value that marks an outlet as
                soft-deleted.
        """
        self.db = db
        self.soft_delete_status = soft_delete_status

    # =========================================================================
    # UPSERT
    # =========================================================================

    def upsert_outlet(self, name: str, url: str, domain: Optional[str] = None) -> PressOutlet:
        """Insert an outlet or merge into the one with the same URL.

        On conflict the name and domain are overwritten and updated_at is
        refreshed; status is left untouched.

        Raises:
            ValidationError: If name is empty or url is not absolute.
        """
        validate_outlet_input(name, url)
        with unit_of_work(self.db, "outlet upsert"):
            outlet = self.upsert_row(name, url, domain)
        logger.info("Upserted outlet %s (%s)", outlet.id, outlet.outlet_url)
        return outlet

    def upsert_row(self, name: str, url: str, domain: Optional[str] = None) -> PressOutlet:
        """Outlet upsert for callers already inside a unit of work."""
        now = utcnow()
        upsert(
            self.db,
            PressOutlet,
            values={
                "outlet_name": name,
                "outlet_url": url,
                "outlet_domain": domain or extract_domain(url),
                "created_at": now,
                "updated_at": now,
            },
            conflict_columns=["outlet_url"],
            update_columns=["outlet_name", "outlet_domain", "updated_at"],
        )
        get_collector().increment("outlets_upserted_total")
        return self.db.scalars(
            select(PressOutlet)
            .where(PressOutlet.outlet_url == url)
            .execution_options(populate_existing=True)
        ).one()

    # =========================================================================
    # READ
    # =========================================================================

    def get_outlet(self, outlet_id: str) -> Optional[PressOutlet]:
        """Get an outlet by ID, or None."""
        return self.db.get(PressOutlet, outlet_id)

    def require_outlet(self, outlet_id: str) -> PressOutlet:
        """Get an outlet by ID.

        Raises:
            NotFoundError: If no such outlet exists.
        """
        outlet = self.get_outlet(outlet_id)
        if outlet is None:
            raise NotFoundError("Outlet", outlet_id)
        return outlet

    def get_by_ids(self, outlet_ids: Sequence[str]) -> list[PressOutlet]:
        """Batch lookup. Unknown IDs are skipped."""
        ids = [i for i in outlet_ids if i]
        if not ids:
            return []
        return list(self.db.scalars(select(PressOutlet).where(PressOutlet.id.in_(ids))))

    def list_by_filter(
        self,
        campaign_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT,
        offset: int = 0,
    ) -> tuple[list[tuple[PressOutlet, CampaignOutlet]], int]:
        """List outlets joined with their ledger entries.

        Filters are AND-combined; rows are ordered by outlet creation time,
        newest first.

        Returns:
            The page of (outlet, ledger entry) rows and the total number of
            matching rows.
        """
        if status is not None and status not in OUTLET_STATUSES:
            raise ValidationError(f"Invalid status: {status}")

        limit = _clamp(limit, DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT)
        offset = max(offset or 0, 0)

        conditions = []
        if campaign_id:
            conditions.append(CampaignOutlet.campaign_id == campaign_id)
        if status:
            conditions.append(CampaignOutlet.status == status)

        stmt = (
            select(PressOutlet, CampaignOutlet)
            .join(CampaignOutlet, CampaignOutlet.outlet_id == PressOutlet.id)
            .where(*conditions)
        )
        total = self.db.scalar(
            select(func.count())
            .select_from(CampaignOutlet)
            .join(PressOutlet, CampaignOutlet.outlet_id == PressOutlet.id)
            .where(*conditions)
        )
        rows = self.db.execute(
            stmt.order_by(PressOutlet.created_at.desc(), PressOutlet.id)
            .limit(limit)
            .offset(offset)
        ).all()
        return [(row[0], row[1]) for row in rows], total or 0

    def search_by_text(
        self,
        query: str,
        campaign_id: Optional[str] = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[PressOutlet]:
        """Case-insensitive substring search on name or URL.

        With campaign_id, only outlets holding a ledger entry for that
        campaign are returned. Ordered by name.
        """
        if not query:
            raise ValidationError("query must not be empty")
        limit = _clamp(limit, DEFAULT_SEARCH_LIMIT, MAX_SEARCH_LIMIT)
        pattern = f"%{query}%"

        stmt = select(PressOutlet).where(
            or_(
                PressOutlet.outlet_name.ilike(pattern),
                PressOutlet.outlet_url.ilike(pattern),
            )
        )
        if campaign_id:
            stmt = stmt.where(
                PressOutlet.id.in_(
                    select(CampaignOutlet.outlet_id).where(
                        CampaignOutlet.campaign_id == campaign_id
                    )
                )
            )
        stmt = stmt.order_by(PressOutlet.outlet_name, PressOutlet.id).limit(limit)
        return list(self.db.scalars(stmt))

    def list_active(self) -> list[PressOutlet]:
        """Outlets not soft-deleted, most recently updated first."""
        stmt = (
            select(PressOutlet)
            .where(
                or_(
                    PressOutlet.status.is_(None),
                    PressOutlet.status != self.soft_delete_status,
                )
            )
            .order_by(PressOutlet.updated_at.desc(), PressOutlet.id)
        )
        return list(self.db.scalars(stmt))

    # =========================================================================
    # UPDATE / DELETE
    # =========================================================================

    def update_fields(
        self,
        outlet_id: str,
        name: Optional[str] = None,
        url: Optional[str] = None,
        domain: Optional[str] = None,
    ) -> PressOutlet:
        """Update any subset of name, url and domain.

        With no fields supplied only updated_at is refreshed.

        Raises:
            NotFoundError: If the outlet does not exist.
            ValidationError: If the new URL is invalid or already taken.
        """
        with unit_of_work(
            self.db,
            "outlet update",
            integrity_message=f"outlet_url already in use: {url}",
        ):
            outlet = self.require_outlet(outlet_id)
            if name is not None:
                if not name.strip():
                    raise ValidationError("outlet_name must not be empty")
                outlet.outlet_name = name
            if url is not None:
                validate_outlet_input(outlet.outlet_name, url)
                outlet.outlet_url = url
            if domain is not None:
                outlet.outlet_domain = domain
            outlet.updated_at = utcnow()
        return outlet

    def set_status(self, outlet_id: str, status: Optional[str]) -> PressOutlet:
        """Set the outlet's free-form lifecycle status."""
        with unit_of_work(self.db, "outlet status"):
            outlet = self.require_outlet(outlet_id)
            outlet.status = status
            outlet.updated_at = utcnow()
        return outlet

    def delete_outlet(self, outlet_id: str) -> None:
        """Delete an outlet with its ledger entries, links and measurements."""
        with unit_of_work(self.db, "outlet delete", multi_step=True):
            outlet = self.require_outlet(outlet_id)
            record_ids = list(
                self.db.scalars(
                    select(OutletDomainRating.record_id).where(
                        OutletDomainRating.outlet_id == outlet_id
                    )
                )
            )
            # Ledger entries, links and associations go with the outlet row
            self.db.execute(delete(PressOutlet).where(PressOutlet.id == outlet.id))
            if record_ids:
                self.db.execute(
                    delete(DomainRatingRecord).where(DomainRatingRecord.id.in_(record_ids))
                )
        logger.info("Deleted outlet %s with %d measurements", outlet_id, len(record_ids))


# =============================================================================
# EXPORTS
# =============================================================================


__all__ = [
    "OutletRegistry",
    "extract_domain",
    "validate_outlet_input",
    "DEFAULT_SOFT_DELETE_STATUS",
]
