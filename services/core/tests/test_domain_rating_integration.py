"""Integration tests for the domain rating API endpoints."""

from datetime import timedelta

import pytest

from tests.factories import (
    create_category,
    create_category_link,
    create_measurement,
    create_outlet,
    new_campaign_id,
    utcnow,
)


class TestRecordDomainRating:
    """Tests for PATCH /outlets/{id}/domain-rating."""

    @pytest.mark.asyncio
    async def test_record_authority_measurement(self, client, db_session):
        outlet = create_outlet(db_session, "Wired")
        db_session.commit()

        response = await client.patch(
            f"/outlets/{outlet.id}/domain-rating",
            json={
                "urlInput": "https://wired.com",
                "domain": "wired.com",
                "dataCapturedAt": "2026-05-01T08:30:00Z",
                "dataType": "authority",
                "authorityDomainRating": 91,
                "rawData": {"domain_rating": 91},
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["outletId"] == outlet.id
        assert data["recordId"]
        assert data["authorityDomainRating"] == 91

        status = await client.get("/outlets/dr-status")
        (row,) = status.json()["outlets"]
        assert row["latestValidRating"] == 91

    @pytest.mark.asyncio
    async def test_unknown_outlet(self, client):
        response = await client.patch(
            "/outlets/missing/domain-rating",
            json={
                "urlInput": "https://x.com",
                "domain": "x.com",
                "dataCapturedAt": "2026-05-01T08:30:00Z",
                "dataType": "authority",
            },
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_type(self, client, db_session):
        outlet = create_outlet(db_session, "Wired")
        db_session.commit()

        response = await client.patch(
            f"/outlets/{outlet.id}/domain-rating",
            json={
                "urlInput": "https://wired.com",
                "domain": "wired.com",
                "dataCapturedAt": "2026-05-01T08:30:00Z",
                "dataType": "pagerank",
            },
        )
        assert response.status_code == 422


class TestFreshnessViews:
    """Tests for the freshness listings."""

    @pytest.fixture
    def seeded(self, db_session):
        now = utcnow()
        never = create_outlet(db_session, "Never")
        low = create_outlet(db_session, "Low")
        fresh = create_outlet(db_session, "Fresh")
        create_outlet(db_session, "Gone", status="to_delete")
        create_measurement(db_session, low, now - timedelta(days=3), rating=4)
        create_measurement(db_session, fresh, now - timedelta(days=3), rating=70)
        db_session.commit()
        return {"never": never, "low": low, "fresh": fresh}

    @pytest.mark.asyncio
    async def test_dr_status(self, client, seeded):
        response = await client.get("/outlets/dr-status")

        assert response.status_code == 200
        rows = {r["outletName"]: r for r in response.json()["outlets"]}
        assert set(rows) == {"Never", "Low", "Fresh"}
        assert rows["Never"]["updateReason"] == "No DR fetched yet"
        assert rows["Never"]["needsUpdate"] is True
        assert rows["Fresh"]["updateReason"] == "DR exists < 1 year"
        assert rows["Fresh"]["state"] == "fresh"

    @pytest.mark.asyncio
    async def test_dr_stale(self, client, seeded):
        response = await client.get("/outlets/dr-stale")

        assert [r["outletName"] for r in response.json()["outlets"]] == ["Never"]

    @pytest.mark.asyncio
    async def test_low_domain_rating(self, client, seeded):
        response = await client.get("/outlets/low-domain-rating")

        rows = response.json()["outlets"]
        assert [r["outletName"] for r in rows] == ["Low"]
        assert rows[0]["hasLowRating"] is True

    @pytest.mark.asyncio
    async def test_category_rollup(self, client, db_session, seeded):
        campaign = new_campaign_id()
        category = create_category(db_session, campaign, "Tech")
        create_category(db_session, campaign, "Empty")
        for outlet in seeded.values():
            create_category_link(db_session, category, outlet)
        db_session.commit()

        response = await client.get(
            "/outlets/campaign-categories-dr-status", params={"campaignId": campaign}
        )

        assert response.status_code == 200
        empty, tech = response.json()["categories"]
        assert empty["totalOutlets"] == 0
        assert empty["avgDomainRating"] is None
        assert tech["totalOutlets"] == 3
        assert tech["outletsWithRating"] == 2
        assert tech["outletsLowRating"] == 1
        assert tech["outletsNeedingUpdate"] == 1
        assert tech["avgDomainRating"] == 37.0
