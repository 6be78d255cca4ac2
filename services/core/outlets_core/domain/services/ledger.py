"""Campaign relevance ledger service.

One entry per (campaign, outlet) pair holding the relevance judgment of
the outlet for the campaign. Writes are upserts on the pair; the create
path upserts the outlet and its ledger entry as one atomic unit.

Usage:
    ledger = RelevanceLedger(db=session)

    outlet, entry = ledger.create_outlet_with_relevance(
        RelevanceEntry(
            outlet_name="TechCrunch",
            outlet_url="https://techcrunch.com",
            campaign_id=campaign_id,
            why_relevant="Top tech publication",
            why_not_relevant="Crowded",
            relevance_score=85,
        )
    )

    ledger.update_status(outlet.id, campaign_id, "ended", reason="Campaign over")
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from outlets_core.domain.errors import NotFoundError, ValidationError
from outlets_core.domain.models import (
    OUTLET_STATUSES,
    CampaignOutlet,
    OutletStatus,
    PressOutlet,
    utcnow,
)
from outlets_core.domain.services.outlets import OutletRegistry, validate_outlet_input
from outlets_core.infra.db import unit_of_work, upsert

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================


MIN_SCORE = 0
MAX_SCORE = 100
MAX_BULK_ENTRIES = 500

LEDGER_UPDATE_COLUMNS = (
    "why_relevant",
    "why_not_relevant",
    "relevance_score",
    "status",
    "overall_relevance",
    "relevance_rationale",
    "updated_at",
)


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class RelevanceEntry:
    """Input for the outlet + ledger create path."""

    outlet_name: str
    outlet_url: str
    campaign_id: str
    why_relevant: str
    why_not_relevant: str
    relevance_score: float
    outlet_domain: Optional[str] = None
    status: str = OutletStatus.OPEN
    overall_relevance: Optional[str] = None
    relevance_rationale: Optional[str] = None


@dataclass
class BulkUpsertResult:
    """One processed element of a bulk upsert."""

    outlet_id: str
    outlet_name: str
    outlet_url: str
    campaign_id: str


# =============================================================================
# VALIDATION
# =============================================================================


def validate_score(score: float, field: str = "relevance_score") -> None:
    """Raise ValidationError unless score is within [0, 100]."""
    if score is None or isinstance(score, bool):
        raise ValidationError(f"{field} is required")
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise ValidationError(
            f"{field} must be between {MIN_SCORE} and {MAX_SCORE}, got {score}"
        )


def validate_status(status: str) -> None:
    if status not in OUTLET_STATUSES:
        raise ValidationError(
            f"Invalid status: {status}. Must be one of {', '.join(OUTLET_STATUSES)}"
        )


def validate_entry(entry: RelevanceEntry) -> None:
    validate_outlet_input(entry.outlet_name, entry.outlet_url)
    if not entry.campaign_id:
        raise ValidationError("campaign_id is required")
    validate_score(entry.relevance_score)
    validate_status(entry.status)


# =============================================================================
# SERVICE
# =============================================================================


class RelevanceLedger:
    """Per-campaign relevance judgments for outlets."""

    def __init__(self, db: Session, outlets: Optional[OutletRegistry] = None):
        """Initialize the ledger.

        Args:
            db: SQLAlchemy database session.
            outlets: Registry used by the create path (defaults to one on db).
        """
        self.db = db
        self.outlets = outlets or OutletRegistry(db)

    # =========================================================================
    # UPSERT
    # =========================================================================

    def upsert_relevance(
        self,
        campaign_id: str,
        outlet_id: str,
        why_relevant: str,
        why_not_relevant: str,
        relevance_score: float,
        status: str = OutletStatus.OPEN,
        overall_relevance: Optional[str] = None,
        relevance_rationale: Optional[str] = None,
    ) -> CampaignOutlet:
        """Insert or overwrite the ledger entry for (campaign, outlet).

        Raises:
            ValidationError: If the score or status is invalid.
            NotFoundError: If the outlet does not exist.
        """
        validate_score(relevance_score)
        validate_status(status)
        with unit_of_work(self.db, "ledger upsert"):
            self.outlets.require_outlet(outlet_id)
            entry = self.upsert_row(
                campaign_id=campaign_id,
                outlet_id=outlet_id,
                why_relevant=why_relevant,
                why_not_relevant=why_not_relevant,
                relevance_score=relevance_score,
                status=status,
                overall_relevance=overall_relevance,
                relevance_rationale=relevance_rationale,
            )
        return entry

    def upsert_row(
        self,
        campaign_id: str,
        outlet_id: str,
        why_relevant: str,
        why_not_relevant: str,
        relevance_score: float,
        status: str = OutletStatus.OPEN,
        overall_relevance: Optional[str] = None,
        relevance_rationale: Optional[str] = None,
    ) -> CampaignOutlet:
        """Ledger upsert for callers already inside a unit of work."""
        now = utcnow()
        values = {
            "campaign_id": campaign_id,
            "outlet_id": outlet_id,
            "why_relevant": why_relevant,
            "why_not_relevant": why_not_relevant,
            "relevance_score": relevance_score,
            "status": status,
            "overall_relevance": overall_relevance or None,
            "relevance_rationale": relevance_rationale or None,
            "created_at": now,
            "updated_at": now,
        }
        update_columns = list(LEDGER_UPDATE_COLUMNS)
        if status == OutletStatus.ENDED:
            values["ended_at"] = now
            update_columns.append("ended_at")

        upsert(
            self.db,
            CampaignOutlet,
            values=values,
            conflict_columns=["campaign_id", "outlet_id"],
            update_columns=update_columns,
        )
        return self.db.scalars(
            select(CampaignOutlet)
            .where(
                CampaignOutlet.campaign_id == campaign_id,
                CampaignOutlet.outlet_id == outlet_id,
            )
            .execution_options(populate_existing=True)
        ).one()

    def create_outlet_with_relevance(
        self, entry: RelevanceEntry
    ) -> tuple[PressOutlet, CampaignOutlet]:
        """Upsert an outlet and its ledger entry as one atomic unit.

        Raises:
            ValidationError: If the entry is invalid (nothing is written).
            ConflictRolledBackError: If a write failed; neither row persists.
        """
        validate_entry(entry)
        with unit_of_work(self.db, "outlet create", multi_step=True):
            outlet, ledger_entry = self._write_entry(entry)
        logger.info(
            "Created outlet %s for campaign %s (score=%s)",
            outlet.id,
            entry.campaign_id,
            entry.relevance_score,
        )
        return outlet, ledger_entry

    def bulk_upsert(self, entries: Sequence[RelevanceEntry]) -> list[BulkUpsertResult]:
        """Run the create path for every entry in one transaction.

        Every entry is validated before anything is written. If any write
        fails the whole batch is rolled back.

        Returns:
            One result per entry, in input order.
        """
        if not entries:
            raise ValidationError("At least one outlet is required")
        if len(entries) > MAX_BULK_ENTRIES:
            raise ValidationError(
                f"At most {MAX_BULK_ENTRIES} outlets per batch, got {len(entries)}"
            )
        for index, entry in enumerate(entries):
            try:
                validate_entry(entry)
            except ValidationError as e:
                raise ValidationError(f"outlets[{index}]: {e}") from e

        results: list[BulkUpsertResult] = []
        with unit_of_work(self.db, "outlet bulk upsert", multi_step=True):
            for entry in entries:
                outlet, _ = self._write_entry(entry)
                results.append(
                    BulkUpsertResult(
                        outlet_id=outlet.id,
                        outlet_name=outlet.outlet_name,
                        outlet_url=outlet.outlet_url,
                        campaign_id=entry.campaign_id,
                    )
                )
        logger.info("Bulk upserted %d outlets", len(results))
        return results

    def _write_entry(self, entry: RelevanceEntry) -> tuple[PressOutlet, CampaignOutlet]:
        outlet = self.outlets.upsert_row(
            entry.outlet_name, entry.outlet_url, entry.outlet_domain
        )
        ledger_entry = self.upsert_row(
            campaign_id=entry.campaign_id,
            outlet_id=outlet.id,
            why_relevant=entry.why_relevant,
            why_not_relevant=entry.why_not_relevant,
            relevance_score=entry.relevance_score,
            status=entry.status,
            overall_relevance=entry.overall_relevance,
            relevance_rationale=entry.relevance_rationale,
        )
        return outlet, ledger_entry

    # =========================================================================
    # STATUS
    # =========================================================================

    def update_status(
        self,
        outlet_id: str,
        campaign_id: str,
        status: str,
        reason: Optional[str] = None,
    ) -> CampaignOutlet:
        """Change the status of a ledger entry.

        A non-empty reason replaces the stored rationale; an absent one keeps
        it. Moving to "ended" stamps ended_at; other statuses leave ended_at
        as stored, so a reopened entry keeps its last end time.

        Raises:
            ValidationError: If campaign_id is missing or status is invalid.
            NotFoundError: If there is no entry for the pair.
        """
        if not campaign_id:
            raise ValidationError("campaign_id is required")
        validate_status(status)

        with unit_of_work(self.db, "ledger status"):
            entry = self.get_entry(campaign_id, outlet_id)
            if entry is None:
                raise NotFoundError("Campaign outlet", f"{campaign_id}/{outlet_id}")
            now = utcnow()
            entry.status = status
            if reason:
                entry.relevance_rationale = reason
            if status == OutletStatus.ENDED:
                entry.ended_at = now
            entry.updated_at = now

        logger.info(
            "Campaign %s outlet %s moved to %s", campaign_id, outlet_id, status
        )
        return entry

    # =========================================================================
    # READ
    # =========================================================================

    def get_entry(self, campaign_id: str, outlet_id: str) -> Optional[CampaignOutlet]:
        return self.db.get(CampaignOutlet, (campaign_id, outlet_id))

    def list_entries(self, campaign_id: Optional[str] = None) -> list[CampaignOutlet]:
        """Ledger entries with their outlets, highest score first."""
        stmt = select(CampaignOutlet).options(joinedload(CampaignOutlet.outlet))
        if campaign_id:
            stmt = stmt.where(CampaignOutlet.campaign_id == campaign_id)
        stmt = stmt.order_by(
            CampaignOutlet.relevance_score.desc(), CampaignOutlet.outlet_id
        )
        return list(self.db.scalars(stmt))

    def list_by_campaign(self, campaign_id: str) -> list[CampaignOutlet]:
        if not campaign_id:
            raise ValidationError("campaign_id is required")
        return self.list_entries(campaign_id)


# =============================================================================
# EXPORTS
# =============================================================================


__all__ = [
    "RelevanceLedger",
    "RelevanceEntry",
    "BulkUpsertResult",
    "validate_score",
    "validate_status",
    "MAX_BULK_ENTRIES",
]
