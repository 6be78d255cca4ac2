"""Unit tests for the outlet registry.

Tests cover:
1. Domain extraction and input validation
2. Upsert keyed on the canonical URL
3. Listing joined with the relevance ledger
4. Name/URL search
5. Field updates, status and deletion
"""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from outlets_core.domain.errors import NotFoundError, ValidationError
from outlets_core.domain.models import (
    CampaignOutlet,
    DomainRatingRecord,
    OutletDomainRating,
    PressOutlet,
)
from outlets_core.domain.services.outlets import extract_domain, validate_outlet_input

from tests.factories import (
    create_campaign_outlet,
    create_measurement,
    create_outlet,
    new_campaign_id,
    utcnow,
)


def count(db_session, model) -> int:
    return db_session.scalar(select(func.count()).select_from(model))


# =============================================================================
# HELPERS
# =============================================================================


class TestExtractDomain:
    """Tests for domain derivation from URLs."""

    def test_strips_leading_www(self):
        assert extract_domain("https://www.techcrunch.com/news") == "techcrunch.com"

    def test_keeps_other_subdomains(self):
        assert extract_domain("https://news.ycombinator.com") == "news.ycombinator.com"

    def test_lowercases_host(self):
        assert extract_domain("https://WWW.Wired.COM") == "wired.com"

    def test_falls_back_to_raw_string(self):
        assert extract_domain("not a url") == "not a url"


class TestValidateOutletInput:
    """Tests for outlet input validation."""

    def test_accepts_absolute_url(self):
        validate_outlet_input("Wired", "https://wired.com")

    @pytest.mark.parametrize("name", ["", "   "])
    def test_rejects_empty_name(self, name):
        with pytest.raises(ValidationError):
            validate_outlet_input(name, "https://wired.com")

    @pytest.mark.parametrize("url", ["wired.com", "/relative/path", ""])
    def test_rejects_non_absolute_url(self, url):
        with pytest.raises(ValidationError):
            validate_outlet_input("Wired", url)


# =============================================================================
# UPSERT
# =============================================================================


class TestUpsertOutlet:
    """Tests for insert-or-merge on the canonical URL."""

    def test_insert_derives_domain(self, registry):
        outlet = registry.upsert_outlet("TechCrunch", "https://www.techcrunch.com")

        assert outlet.id is not None
        assert outlet.outlet_domain == "techcrunch.com"
        assert outlet.status is None

    def test_explicit_domain_is_kept(self, registry):
        outlet = registry.upsert_outlet("TC", "https://techcrunch.com", domain="tc.example")
        assert outlet.outlet_domain == "tc.example"

    def test_same_url_merges_into_one_row(self, registry, db_session):
        first = registry.upsert_outlet("TechCrunch", "https://techcrunch.com")
        second = registry.upsert_outlet("TechCrunch Daily", "https://techcrunch.com")

        assert second.id == first.id
        assert second.outlet_name == "TechCrunch Daily"
        assert count(db_session, PressOutlet) == 1

    def test_merge_leaves_status_untouched(self, registry, db_session):
        outlet = registry.upsert_outlet("Wired", "https://wired.com")
        registry.set_status(outlet.id, "to_delete")

        merged = registry.upsert_outlet("Wired Magazine", "https://wired.com")

        assert merged.status == "to_delete"

    def test_invalid_input_writes_nothing(self, registry, db_session):
        with pytest.raises(ValidationError):
            registry.upsert_outlet("", "https://wired.com")
        assert count(db_session, PressOutlet) == 0


# =============================================================================
# READ
# =============================================================================


class TestGetOutlet:
    """Tests for lookups by ID."""

    def test_get_unknown_returns_none(self, registry):
        assert registry.get_outlet("missing") is None

    def test_require_unknown_raises(self, registry):
        with pytest.raises(NotFoundError) as exc:
            registry.require_outlet("missing")
        assert "missing" in str(exc.value)

    def test_get_by_ids_skips_unknown(self, registry, db_session):
        a = create_outlet(db_session, "Alpha")
        b = create_outlet(db_session, "Beta")

        found = registry.get_by_ids([a.id, "missing", b.id, ""])

        assert {o.id for o in found} == {a.id, b.id}

    def test_get_by_ids_empty(self, registry):
        assert registry.get_by_ids([]) == []


class TestListByFilter:
    """Tests for listing outlets joined with ledger entries."""

    @pytest.fixture
    def seeded(self, db_session):
        campaign_a = new_campaign_id()
        campaign_b = new_campaign_id()
        base = utcnow()
        older = create_outlet(db_session, "Older", created_at=base - timedelta(days=2))
        newer = create_outlet(db_session, "Newer", created_at=base - timedelta(days=1))
        create_campaign_outlet(db_session, older, campaign_a, status="open")
        create_campaign_outlet(db_session, newer, campaign_a, status="ended")
        create_campaign_outlet(db_session, older, campaign_b, status="open")
        return campaign_a, campaign_b, older, newer

    def test_orders_by_creation_time_desc(self, registry, seeded):
        campaign_a, _, older, newer = seeded

        rows, total = registry.list_by_filter(campaign_id=campaign_a)

        assert [o.id for o, _ in rows] == [newer.id, older.id]
        assert total == 2

    def test_filters_are_combined(self, registry, seeded):
        campaign_a, _, older, _ = seeded

        rows, total = registry.list_by_filter(campaign_id=campaign_a, status="open")

        assert total == 1
        outlet, entry = rows[0]
        assert outlet.id == older.id
        assert entry.campaign_id == campaign_a

    def test_without_filters_lists_every_ledger_row(self, registry, seeded):
        _, total = registry.list_by_filter()
        assert total == 3

    def test_total_counts_beyond_the_page(self, registry, seeded):
        rows, total = registry.list_by_filter(limit=1, offset=1)

        assert len(rows) == 1
        assert total == 3

    def test_invalid_status_rejected(self, registry):
        with pytest.raises(ValidationError):
            registry.list_by_filter(status="archived")


class TestSearchByText:
    """Tests for name/URL substring search."""

    @pytest.fixture
    def seeded(self, db_session):
        campaign = new_campaign_id()
        wired = create_outlet(db_session, "Wired", outlet_url="https://www.wired.com")
        verge = create_outlet(db_session, "The Verge", outlet_url="https://theverge.com")
        create_outlet(db_session, "Ars Technica", outlet_url="https://arstechnica.com")
        create_campaign_outlet(db_session, verge, campaign)
        return campaign, wired, verge

    def test_matches_name_case_insensitively(self, registry, seeded):
        results = registry.search_by_text("WIRED")
        assert [o.outlet_name for o in results] == ["Wired"]

    def test_matches_url(self, registry, seeded):
        results = registry.search_by_text("theverge.com")
        assert [o.outlet_name for o in results] == ["The Verge"]

    def test_orders_by_name(self, registry, seeded):
        results = registry.search_by_text("e")
        names = [o.outlet_name for o in results]
        assert names == sorted(names)

    def test_campaign_filter(self, registry, seeded):
        campaign, _, verge = seeded
        results = registry.search_by_text("e", campaign_id=campaign)
        assert [o.id for o in results] == [verge.id]

    def test_limit_is_applied(self, registry, seeded):
        assert len(registry.search_by_text("e", limit=1)) == 1

    def test_empty_query_rejected(self, registry):
        with pytest.raises(ValidationError):
            registry.search_by_text("")


# =============================================================================
# UPDATE / DELETE
# =============================================================================


class TestUpdateFields:
    """Tests for partial outlet updates."""

    def test_updates_supplied_fields_only(self, registry, db_session):
        outlet = create_outlet(db_session, "Wired", outlet_url="https://wired.com")

        updated = registry.update_fields(outlet.id, name="WIRED")

        assert updated.outlet_name == "WIRED"
        assert updated.outlet_url == "https://wired.com"

    def test_no_fields_refreshes_updated_at(self, registry, db_session):
        outlet = create_outlet(db_session, "Wired", created_at=utcnow() - timedelta(days=3))
        before = outlet.updated_at

        updated = registry.update_fields(outlet.id)

        assert updated.updated_at > before

    def test_unknown_outlet(self, registry):
        with pytest.raises(NotFoundError):
            registry.update_fields("missing", name="x")

    def test_url_collision_is_validation_error(self, registry, db_session):
        create_outlet(db_session, "Wired", outlet_url="https://wired.com")
        other = create_outlet(db_session, "Verge", outlet_url="https://theverge.com")

        with pytest.raises(ValidationError):
            registry.update_fields(other.id, url="https://wired.com")

        db_session.expire_all()
        assert registry.get_outlet(other.id).outlet_url == "https://theverge.com"

    def test_invalid_url_rejected(self, registry, db_session):
        outlet = create_outlet(db_session, "Wired")
        with pytest.raises(ValidationError):
            registry.update_fields(outlet.id, url="wired")


class TestStatusAndActive:
    """Tests for the soft lifecycle status."""

    def test_list_active_excludes_soft_deleted(self, registry, db_session):
        kept = create_outlet(db_session, "Kept", status="active")
        unset = create_outlet(db_session, "Unset")
        create_outlet(db_session, "Gone", status="to_delete")

        active = registry.list_active()

        assert {o.id for o in active} == {kept.id, unset.id}

    def test_set_status(self, registry, db_session):
        outlet = create_outlet(db_session, "Wired")
        assert registry.set_status(outlet.id, "to_delete").status == "to_delete"


class TestDeleteOutlet:
    """Tests for hard deletion."""

    def test_cascades_to_ledger_and_measurements(self, registry, db_session):
        outlet = create_outlet(db_session, "Wired")
        create_campaign_outlet(db_session, outlet, new_campaign_id())
        create_measurement(db_session, outlet, captured_at=utcnow(), rating=40)

        registry.delete_outlet(outlet.id)

        assert count(db_session, PressOutlet) == 0
        assert count(db_session, CampaignOutlet) == 0
        assert count(db_session, OutletDomainRating) == 0
        assert count(db_session, DomainRatingRecord) == 0

    def test_unknown_outlet(self, registry):
        with pytest.raises(NotFoundError):
            registry.delete_outlet("missing")
