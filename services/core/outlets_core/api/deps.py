"""API dependencies for dependency injection."""

from typing import Annotated, Iterator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from outlets_core.config import get_settings
from outlets_core.domain.errors import (
    ConflictRolledBackError,
    NotFoundError,
    OutletsServiceError,
    ValidationError,
)
from outlets_core.domain.services.categories import CategoryLinks, CategoryRegistry
from outlets_core.domain.services.domain_rating import DomainRatingStore
from outlets_core.domain.services.freshness import FreshnessClassifier
from outlets_core.domain.services.ledger import RelevanceLedger
from outlets_core.domain.services.outlets import OutletRegistry


def get_db(request: Request) -> Iterator[Session]:
    """Get a database session from the application's Database."""
    database = request.app.state.database
    session = database.session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


DBSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# SERVICE FACTORIES
# =============================================================================


def get_outlet_registry(db: DBSession) -> OutletRegistry:
    """Get the outlet registry."""
    return OutletRegistry(db, soft_delete_status=get_settings().outlet_soft_delete_status)


def get_relevance_ledger(
    db: DBSession,
    outlets: Annotated[OutletRegistry, Depends(get_outlet_registry)],
) -> RelevanceLedger:
    """Get the campaign relevance ledger."""
    return RelevanceLedger(db, outlets=outlets)


def get_category_registry(db: DBSession) -> CategoryRegistry:
    return CategoryRegistry(db)


def get_category_links(
    db: DBSession,
    categories: Annotated[CategoryRegistry, Depends(get_category_registry)],
    outlets: Annotated[OutletRegistry, Depends(get_outlet_registry)],
) -> CategoryLinks:
    return CategoryLinks(db, categories=categories, outlets=outlets)


def get_domain_rating_store(
    db: DBSession,
    outlets: Annotated[OutletRegistry, Depends(get_outlet_registry)],
) -> DomainRatingStore:
    return DomainRatingStore(db, outlets=outlets)


def get_freshness_classifier(db: DBSession) -> FreshnessClassifier:
    """Get the freshness classifier configured from settings."""
    settings = get_settings()
    return FreshnessClassifier(
        db,
        soft_delete_status=settings.outlet_soft_delete_status,
        low_rating_threshold=settings.low_domain_rating_threshold,
        retry_after_months=settings.dr_retry_after_months,
        stale_after_years=settings.dr_stale_after_years,
    )


# Type aliases for cleaner route signatures
OutletRegistryDep = Annotated[OutletRegistry, Depends(get_outlet_registry)]
RelevanceLedgerDep = Annotated[RelevanceLedger, Depends(get_relevance_ledger)]
CategoryRegistryDep = Annotated[CategoryRegistry, Depends(get_category_registry)]
CategoryLinksDep = Annotated[CategoryLinks, Depends(get_category_links)]
DomainRatingStoreDep = Annotated[DomainRatingStore, Depends(get_domain_rating_store)]
FreshnessClassifierDep = Annotated[FreshnessClassifier, Depends(get_freshness_classifier)]


# =============================================================================
# ERROR MAPPING
# =============================================================================


def http_error(error: OutletsServiceError) -> HTTPException:
    """Map a service failure onto an HTTP error.

    ValidationError is a 400 and NotFoundError a 404; rolled-back units and
    store failures are 500s.
    """
    if isinstance(error, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, ConflictRolledBackError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"{error.unit} failed; no changes were saved",
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )
