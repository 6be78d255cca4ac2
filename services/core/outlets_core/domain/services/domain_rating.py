"""Domain rating record store.

Authority and traffic measurements captured by the external fetcher are
appended here, each linked to exactly one outlet. Records are never
updated; an outlet accumulates a history ordered by capture time.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from outlets_core.domain.errors import ValidationError
from outlets_core.domain.models import (
    DOMAIN_RATING_TYPES,
    DomainRatingRecord,
    OutletDomainRating,
    utcnow,
)
from outlets_core.domain.services.outlets import OutletRegistry
from outlets_core.infra.db import unit_of_work
from outlets_core.observability.metrics import get_collector

logger = logging.getLogger(__name__)


# Typed measurement columns accepted by record_measurement
MEASUREMENT_FIELDS = (
    "authority_domain_rating",
    "authority_url_rating",
    "authority_backlinks",
    "authority_refdomains",
    "authority_dofollow_backlinks",
    "authority_dofollow_refdomains",
    "traffic_monthly_avg",
    "cost_monthly_avg",
    "traffic_history",
    "traffic_top_pages",
    "traffic_top_countries",
    "traffic_top_keywords",
)


def as_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DomainRatingStore:
    """Append-only store of domain rating measurements."""

    def __init__(self, db: Session, outlets: Optional[OutletRegistry] = None):
        self.db = db
        self.outlets = outlets or OutletRegistry(db)

    def record_measurement(
        self,
        outlet_id: str,
        data_type: str,
        url_input: str,
        domain: str,
        data_captured_at: datetime,
        raw_data: Optional[Any] = None,
        **measurements: Any,
    ) -> DomainRatingRecord:
        """Insert a measurement and link it to the outlet atomically.

        Args:
            outlet_id: Outlet the measurement belongs to.
            data_type: "authority" or "traffic".
            url_input: URL submitted to the rating provider.
            domain: Domain the provider resolved.
            data_captured_at: When the provider captured the data.
            raw_data: Opaque provider payload.
            **measurements: Typed columns from MEASUREMENT_FIELDS; None
                means measured but unavailable.

        Raises:
            ValidationError: If data_type or a measurement name is unknown.
            NotFoundError: If the outlet does not exist.
            ConflictRolledBackError: If either insert failed.
        """
        if data_type not in DOMAIN_RATING_TYPES:
            raise ValidationError(
                f"Invalid data_type: {data_type}. Must be one of {', '.join(DOMAIN_RATING_TYPES)}"
            )
        unknown = set(measurements) - set(MEASUREMENT_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown measurement fields: {', '.join(sorted(unknown))}")
        if data_captured_at is None:
            raise ValidationError("data_captured_at is required")

        with unit_of_work(self.db, "domain rating record", multi_step=True):
            self.outlets.require_outlet(outlet_id)
            now = utcnow()
            record = DomainRatingRecord(
                url_input=url_input,
                domain=domain,
                data_captured_at=as_utc(data_captured_at),
                data_type=data_type,
                raw_data=raw_data,
                created_at=now,
                **measurements,
            )
            self.db.add(record)
            self.db.flush()
            self.db.add(
                OutletDomainRating(
                    outlet_id=outlet_id,
                    record_id=record.id,
                    created_at=now,
                    updated_at=now,
                )
            )

        get_collector().increment("domain_rating_records_total", labels={"type": data_type})
        logger.info(
            "Recorded %s measurement %s for outlet %s (rating=%s)",
            data_type,
            record.id,
            outlet_id,
            measurements.get("authority_domain_rating"),
        )
        return record

    def list_for_outlet(
        self, outlet_id: str, data_type: Optional[str] = None
    ) -> list[DomainRatingRecord]:
        """Measurements of an outlet, most recently captured first."""
        stmt = (
            select(DomainRatingRecord)
            .join(OutletDomainRating, OutletDomainRating.record_id == DomainRatingRecord.id)
            .where(OutletDomainRating.outlet_id == outlet_id)
        )
        if data_type:
            stmt = stmt.where(DomainRatingRecord.data_type == data_type)
        stmt = stmt.order_by(DomainRatingRecord.data_captured_at.desc())
        return list(self.db.scalars(stmt))


__all__ = ["DomainRatingStore", "MEASUREMENT_FIELDS", "as_utc"]
