"""Domain services."""

from outlets_core.domain.services.categories import CategoryLinks, CategoryRegistry
from outlets_core.domain.services.domain_rating import DomainRatingStore
from outlets_core.domain.services.freshness import (
    CategoryFreshness,
    FreshnessClassifier,
    FreshnessRow,
    FreshnessState,
)
from outlets_core.domain.services.ledger import (
    BulkUpsertResult,
    RelevanceEntry,
    RelevanceLedger,
)
from outlets_core.domain.services.outlets import OutletRegistry

__all__ = [
    "OutletRegistry",
    "RelevanceLedger",
    "RelevanceEntry",
    "BulkUpsertResult",
    "CategoryRegistry",
    "CategoryLinks",
    "DomainRatingStore",
    "FreshnessClassifier",
    "FreshnessRow",
    "FreshnessState",
    "CategoryFreshness",
]
