"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates all tables for the outlets service:
- press_outlets
- campaign_outlets
- press_categories
- campaigns_categories_outlets
- domain_rating_records
- outlet_domain_ratings
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


OUTLET_STATUSES = ("open", "ended", "denied")
CATEGORY_SCOPES = (
    "city",
    "state_or_province",
    "country",
    "multi-country_region",
    "international",
)
DOMAIN_RATING_TYPES = ("authority", "traffic")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # Press outlets, unique on canonical URL
    op.create_table(
        "press_outlets",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("outlet_name", sa.Text, nullable=False),
        sa.Column("outlet_url", sa.String(768), nullable=False),
        sa.Column("outlet_domain", sa.String(255), nullable=False),
        sa.Column("status", sa.String(64), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("outlet_url", name="uq_press_outlets_url"),
    )
    op.create_index("idx_press_outlets_domain", "press_outlets", ["outlet_domain"])

    # Campaign relevance ledger
    op.create_table(
        "campaign_outlets",
        sa.Column("campaign_id", sa.String(36), primary_key=True),
        sa.Column("outlet_id", sa.String(36), primary_key=True),
        sa.Column("why_relevant", sa.Text, nullable=False),
        sa.Column("why_not_relevant", sa.Text, nullable=False),
        sa.Column("relevance_score", sa.Numeric(5, 2), nullable=False),
        sa.Column(
            "status",
            sa.Enum(*OUTLET_STATUSES, name="outlet_status_enum"),
            nullable=False,
            server_default="open",
        ),
        sa.Column("overall_relevance", sa.Text, nullable=True),
        sa.Column("relevance_rationale", sa.Text, nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["outlet_id"],
            ["press_outlets.id"],
            name="fk_campaign_outlets_outlet",
            ondelete="CASCADE",
        ),
    )
    op.create_index("idx_campaign_outlets_campaign", "campaign_outlets", ["campaign_id"])
    op.create_index("idx_campaign_outlets_outlet", "campaign_outlets", ["outlet_id"])

    # Press categories
    op.create_table(
        "press_categories",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("campaign_id", sa.String(36), nullable=False),
        sa.Column("category_name", sa.Text, nullable=False),
        sa.Column(
            "scope",
            sa.Enum(*CATEGORY_SCOPES, name="press_category_scope_enum"),
            nullable=True,
        ),
        sa.Column("region", sa.Text, nullable=True),
        sa.Column("example_outlets", sa.Text, nullable=True),
        sa.Column(
            "why_relevant", sa.Text, nullable=False, server_default=sa.text("('')")
        ),
        sa.Column(
            "why_not_relevant",
            sa.Text,
            nullable=False,
            server_default=sa.text("('')"),
        ),
        sa.Column(
            "relevance_score", sa.Numeric(5, 2), nullable=False, server_default="0"
        ),
        *_timestamps(),
    )
    op.create_index("idx_press_categories_campaign", "press_categories", ["campaign_id"])

    # Category-outlet links
    op.create_table(
        "campaigns_categories_outlets",
        sa.Column("campaign_id", sa.String(36), primary_key=True),
        sa.Column("category_id", sa.String(36), primary_key=True),
        sa.Column("outlet_id", sa.String(36), primary_key=True),
        sa.Column("why_relevant", sa.Text, nullable=False),
        sa.Column("why_not_relevant", sa.Text, nullable=False),
        sa.Column("relevance_score", sa.Numeric(5, 2), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["category_id"],
            ["press_categories.id"],
            name="fk_cco_category",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["outlet_id"],
            ["press_outlets.id"],
            name="fk_cco_outlet",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "idx_campaigns_categories_outlets_outlet",
        "campaigns_categories_outlets",
        ["outlet_id"],
    )
    op.create_index(
        "idx_campaigns_categories_outlets_category",
        "campaigns_categories_outlets",
        ["category_id"],
    )

    # Domain rating measurements (append-only)
    op.create_table(
        "domain_rating_records",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("url_input", sa.Text, nullable=False),
        sa.Column("domain", sa.String(255), nullable=False),
        sa.Column("data_captured_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "data_type",
            sa.Enum(*DOMAIN_RATING_TYPES, name="domain_rating_type_enum"),
            nullable=False,
        ),
        sa.Column("raw_data", sa.JSON, nullable=True),
        sa.Column("authority_domain_rating", sa.Numeric(5, 2), nullable=True),
        sa.Column("authority_url_rating", sa.Integer, nullable=True),
        sa.Column("authority_backlinks", sa.BigInteger, nullable=True),
        sa.Column("authority_refdomains", sa.BigInteger, nullable=True),
        sa.Column("authority_dofollow_backlinks", sa.BigInteger, nullable=True),
        sa.Column("authority_dofollow_refdomains", sa.BigInteger, nullable=True),
        sa.Column("traffic_monthly_avg", sa.BigInteger, nullable=True),
        sa.Column("cost_monthly_avg", sa.BigInteger, nullable=True),
        sa.Column("traffic_history", sa.JSON, nullable=True),
        sa.Column("traffic_top_pages", sa.JSON, nullable=True),
        sa.Column("traffic_top_countries", sa.JSON, nullable=True),
        sa.Column("traffic_top_keywords", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "idx_domain_rating_records_captured",
        "domain_rating_records",
        ["data_type", "data_captured_at"],
    )

    # Outlet <-> measurement association
    op.create_table(
        "outlet_domain_ratings",
        sa.Column("outlet_id", sa.String(36), primary_key=True),
        sa.Column("record_id", sa.String(36), primary_key=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["outlet_id"],
            ["press_outlets.id"],
            name="fk_outlet_domain_ratings_outlet",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["record_id"],
            ["domain_rating_records.id"],
            name="fk_outlet_domain_ratings_record",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "idx_outlet_domain_ratings_record", "outlet_domain_ratings", ["record_id"]
    )


def downgrade() -> None:
    # Drop tables in reverse order of creation (respecting foreign keys)
    op.drop_table("outlet_domain_ratings")
    op.drop_table("domain_rating_records")
    op.drop_table("campaigns_categories_outlets")
    op.drop_table("press_categories")
    op.drop_table("campaign_outlets")
    op.drop_table("press_outlets")
