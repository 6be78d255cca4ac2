"""Press category registry and category-outlet links.

Categories belong to a campaign and carry their own relevance judgment.
Links associate outlets with a category within a campaign; a link's
judgment is independent of the outlet's direct campaign judgment.
"""

import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from outlets_core.domain.errors import NotFoundError, ValidationError
from outlets_core.domain.models import (
    CATEGORY_SCOPES,
    CampaignCategoryOutlet,
    PressCategory,
    utcnow,
)
from outlets_core.domain.services.ledger import validate_score
from outlets_core.domain.services.outlets import OutletRegistry
from outlets_core.infra.db import unit_of_work, upsert

logger = logging.getLogger(__name__)


UPDATABLE_FIELDS = {
    "category_name",
    "scope",
    "region",
    "example_outlets",
    "why_relevant",
    "why_not_relevant",
    "relevance_score",
}
RELEVANCE_FIELDS = {"why_relevant", "why_not_relevant", "relevance_score"}


def validate_scope(scope: Optional[str]) -> None:
    if scope is not None and scope not in CATEGORY_SCOPES:
        raise ValidationError(
            f"Invalid scope: {scope}. Must be one of {', '.join(CATEGORY_SCOPES)}"
        )


class CategoryRegistry:
    """Per-campaign press categories."""

    def __init__(self, db: Session):
        self.db = db

    def create_category(
        self,
        campaign_id: str,
        category_name: str,
        scope: Optional[str] = None,
        region: Optional[str] = None,
        example_outlets: Optional[str] = None,
        why_relevant: str = "",
        why_not_relevant: str = "",
        relevance_score: float = 0,
    ) -> PressCategory:
        """Create a category. Duplicate names within a campaign are allowed.

        Raises:
            ValidationError: If campaign_id or name is missing, or the
                scope or score is invalid.
        """
        if not campaign_id:
            raise ValidationError("campaign_id is required")
        if not category_name or not category_name.strip():
            raise ValidationError("category_name must not be empty")
        validate_scope(scope)
        validate_score(relevance_score)

        now = utcnow()
        category = PressCategory(
            campaign_id=campaign_id,
            category_name=category_name,
            scope=scope,
            region=region or None,
            example_outlets=example_outlets or None,
            why_relevant=why_relevant or "",
            why_not_relevant=why_not_relevant or "",
            relevance_score=relevance_score,
            created_at=now,
            updated_at=now,
        )
        with unit_of_work(self.db, "category create"):
            self.db.add(category)
        logger.info("Created category %s for campaign %s", category.id, campaign_id)
        return category

    def get_category(self, category_id: str) -> Optional[PressCategory]:
        return self.db.get(PressCategory, category_id)

    def require_category(self, category_id: str) -> PressCategory:
        category = self.get_category(category_id)
        if category is None:
            raise NotFoundError("Category", category_id)
        return category

    def update_category(self, category_id: str, updates: dict[str, Any]) -> PressCategory:
        """Apply a partial update.

        Args:
            category_id: The category ID.
            updates: Field values keyed by attribute name. region and
                example_outlets may be set to None.

        Raises:
            ValidationError: If updates is empty or holds invalid values.
            NotFoundError: If the category does not exist.
        """
        return self._apply(category_id, updates, UPDATABLE_FIELDS)

    def update_relevance(self, category_id: str, updates: dict[str, Any]) -> PressCategory:
        """Partial update limited to score and rationale fields."""
        return self._apply(category_id, updates, RELEVANCE_FIELDS)

    def _apply(
        self, category_id: str, updates: dict[str, Any], allowed: set[str]
    ) -> PressCategory:
        fields = {k: v for k, v in updates.items() if k in allowed}
        if not fields:
            raise ValidationError("No fields to update")

        if "category_name" in fields and not (fields["category_name"] or "").strip():
            raise ValidationError("category_name must not be empty")
        if "scope" in fields:
            validate_scope(fields["scope"])
        if "relevance_score" in fields:
            validate_score(fields["relevance_score"])
        for key in ("why_relevant", "why_not_relevant"):
            if key in fields and fields[key] is None:
                raise ValidationError(f"{key} must not be null")

        with unit_of_work(self.db, "category update"):
            category = self.require_category(category_id)
            for key, value in fields.items():
                setattr(category, key, value)
            category.updated_at = utcnow()
        return category

    def list_by_campaign(self, campaign_id: str) -> list[PressCategory]:
        """Categories of a campaign, newest first."""
        if not campaign_id:
            raise ValidationError("campaign_id is required")
        stmt = (
            select(PressCategory)
            .where(PressCategory.campaign_id == campaign_id)
            .order_by(PressCategory.created_at.desc(), PressCategory.id)
        )
        return list(self.db.scalars(stmt))


class CategoryLinks:
    """Outlet membership of categories, keyed on (campaign, category, outlet)."""

    def __init__(
        self,
        db: Session,
        categories: Optional[CategoryRegistry] = None,
        outlets: Optional[OutletRegistry] = None,
    ):
        self.db = db
        self.categories = categories or CategoryRegistry(db)
        self.outlets = outlets or OutletRegistry(db)

    def upsert_link(
        self,
        campaign_id: str,
        category_id: str,
        outlet_id: str,
        why_relevant: str,
        why_not_relevant: str,
        relevance_score: float,
    ) -> CampaignCategoryOutlet:
        """Insert or overwrite the outlet's judgment for a category.

        Raises:
            ValidationError: If the score is invalid or the category belongs
                to another campaign.
            NotFoundError: If the category or outlet does not exist.
        """
        validate_score(relevance_score)
        with unit_of_work(self.db, "category link upsert"):
            category = self.categories.require_category(category_id)
            if category.campaign_id != campaign_id:
                raise ValidationError(
                    f"Category {category_id} does not belong to campaign {campaign_id}"
                )
            self.outlets.require_outlet(outlet_id)

            now = utcnow()
            upsert(
                self.db,
                CampaignCategoryOutlet,
                values={
                    "campaign_id": campaign_id,
                    "category_id": category_id,
                    "outlet_id": outlet_id,
                    "why_relevant": why_relevant,
                    "why_not_relevant": why_not_relevant,
                    "relevance_score": relevance_score,
                    "created_at": now,
                    "updated_at": now,
                },
                conflict_columns=["campaign_id", "category_id", "outlet_id"],
                update_columns=[
                    "why_relevant",
                    "why_not_relevant",
                    "relevance_score",
                    "updated_at",
                ],
            )
            link = self.db.scalars(
                select(CampaignCategoryOutlet)
                .where(
                    CampaignCategoryOutlet.campaign_id == campaign_id,
                    CampaignCategoryOutlet.category_id == category_id,
                    CampaignCategoryOutlet.outlet_id == outlet_id,
                )
                .execution_options(populate_existing=True)
            ).one()
        return link

    def list_links(
        self, category_id: str, campaign_id: Optional[str] = None
    ) -> list[CampaignCategoryOutlet]:
        """Links of a category with their outlets, highest score first."""
        self.categories.require_category(category_id)
        stmt = (
            select(CampaignCategoryOutlet)
            .options(joinedload(CampaignCategoryOutlet.outlet))
            .where(CampaignCategoryOutlet.category_id == category_id)
        )
        if campaign_id:
            stmt = stmt.where(CampaignCategoryOutlet.campaign_id == campaign_id)
        stmt = stmt.order_by(
            CampaignCategoryOutlet.relevance_score.desc(),
            CampaignCategoryOutlet.outlet_id,
        )
        return list(self.db.scalars(stmt))


__all__ = ["CategoryRegistry", "CategoryLinks", "validate_scope"]
