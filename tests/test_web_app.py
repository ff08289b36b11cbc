"""
Tests for the HTTP endpoints.

Run against an app built from an explicit Config so the environment does
not leak into results.
"""

import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi.testclient import TestClient

from utils.config import Config
from web.app import create_app


# =============================================================================
# Test Fixtures
# =============================================================================

def _client(policy="skip", preview_limit=5) -> TestClient:
    config = Config(
        allowed_origins=[],
        invalid_record_policy=policy,
        preview_limit=preview_limit,
    )
    return TestClient(create_app(config))


@pytest.fixture
def client():
    return _client()


@pytest.fixture
def strict_client():
    return _client(policy="raise")


@pytest.fixture
def boston_rows():
    """Seven Boston condos under 500k and one over."""
    rows = [
        {
            "id": f"L-{i}",
            "property_type": "condo",
            "state": "MA",
            "city": "Boston",
            "price": 300000 + i * 10000,
            "bedrooms": 2,
            "bathrooms": 1,
            "address": f"{i} Beacon St",
        }
        for i in range(7)
    ]
    rows.append({"id": "L-pricey", "property_type": "condo", "state": "MA", "city": "Boston", "price": 900000})
    return rows


@pytest.fixture
def newton_listing():
    return {
        "id": "L-100",
        "property_type": "single_family",
        "state": "MA",
        "city": "Newton",
        "price": 600000,
        "bedrooms": 4,
        "bathrooms": 2.5,
    }


# =============================================================================
# Test: Health
# =============================================================================

class TestHealth:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_health(self, client):
        data = client.get("/api/health").json()
        assert data["status"] == "healthy"
        assert data["invalid_record_policy"] == "skip"


# =============================================================================
# Test: Hot Sheets
# =============================================================================

class TestHotSheetMatches:

    def test_counts_unsent_matches(self, client, boston_rows):
        response = client.post("/api/hot-sheets/matches", json={
            "criteria": {"city": "boston", "maxPrice": "$500,000", "propertyTypes": ["Condominium"]},
            "listings": boston_rows,
            "sent_listing_ids": ["L-1"],
        })

        assert response.status_code == 200
        data = response.json()
        assert data["matching_count"] == 6
        assert data["matches"] == ["L-0", "L-2", "L-3", "L-4", "L-5", "L-6"]
        assert data["badge"] == "6 matches"
        assert len(data["preview"]) == 5
        assert data["preview"][0]["price"] == "$300,000"
        assert data["preview"][0]["location"] == "Boston, MA"
        assert data["more"] == "And 1 more property..."

    def test_no_listings(self, client):
        data = client.post("/api/hot-sheets/matches", json={"criteria": {}}).json()
        assert data["matching_count"] == 0
        assert data["preview"] == []
        assert data["more"] == ""

    def test_invalid_criteria_rejected(self, client, boston_rows):
        response = client.post("/api/hot-sheets/matches", json={
            "criteria": {"id": "hs-1", "maxPrice": "lots"},
            "listings": boston_rows,
        })

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["record_id"] == "hs-1"
        assert any("max_price" in error for error in detail["errors"])

    def test_bad_listing_skipped(self, client, boston_rows):
        rows = boston_rows + [{"id": "L-bad", "price": "call agent"}]
        data = client.post("/api/hot-sheets/matches", json={
            "criteria": {"maxPrice": 500000},
            "listings": rows,
        }).json()

        assert data["matching_count"] == 7
        assert [item["id"] for item in data["skipped"]] == ["L-bad"]

    def test_bad_listing_raises_under_strict_policy(self, strict_client, boston_rows):
        rows = boston_rows + [{"id": "L-bad", "price": "call agent"}]
        response = strict_client.post("/api/hot-sheets/matches", json={
            "criteria": {"maxPrice": 500000},
            "listings": rows,
        })

        assert response.status_code == 422
        assert response.json()["detail"]["record_id"] == "L-bad"

    def test_integer_sent_ids_excluded(self, client):
        rows = [
            {"id": 7, "state": "MA", "city": "Boston", "price": 400000},
            {"id": 8, "state": "MA", "city": "Boston", "price": 410000},
        ]
        response = client.post("/api/hot-sheets/matches", json={
            "criteria": {"city": "Boston"},
            "listings": rows,
            "sent_listing_ids": [7],
        })

        assert response.status_code == 200
        assert response.json()["matches"] == ["8"]

    def test_preview_limit_from_config(self, boston_rows):
        data = _client(preview_limit=2).post("/api/hot-sheets/matches", json={
            "criteria": {"maxPrice": 500000},
            "listings": boston_rows,
        }).json()

        assert len(data["preview"]) == 2
        assert data["more"] == "And 5 more properties..."


# =============================================================================
# Test: Reverse Prospecting
# =============================================================================

class TestReverseProspect:

    def test_matching_needs_and_recipients(self, client, newton_listing):
        data = client.post("/api/listings/reverse-prospect", json={
            "listing": newton_listing,
            "needs": [
                {"id": "N-1", "property_type": "single_family", "max_price": 650000, "min_price": 640000,
                 "profiles": {"email": "pat@example.org", "first_name": "Pat"}},
                {"id": "N-2", "property_type": "condo", "max_price": 650000,
                 "profiles": {"email": "sam@example.org"}},
                {"id": "N-3", "city": "Newton", "bedrooms": 4,
                 "profiles": {"email": "lee@example.org"}},
            ],
        }).json()

        assert data["matching_count"] == 2
        assert data["matches"] == ["N-1", "N-3"]
        assert [recipient["email"] for recipient in data["recipients"]] == [
            "pat@example.org",
            "lee@example.org",
        ]
        assert data["recipients"][0]["source"] == "client_need"

    def test_listing_without_price_rejected(self, client):
        response = client.post("/api/listings/reverse-prospect", json={
            "listing": {"id": "L-1", "city": "Newton"},
            "needs": [],
        })
        assert response.status_code == 422
        assert response.json()["detail"]["errors"] == ["price is required"]


class TestMatchingBuyers:

    def test_needs_and_hot_sheets_deduplicated(self, client, newton_listing):
        data = client.post("/api/listings/matching-buyers", json={
            "listing": newton_listing,
            "needs": [
                {"id": "N-1", "property_type": "single_family", "max_price": 650000,
                 "profiles": {"email": "pat@example.org", "first_name": "Pat"}},
            ],
            "hot_sheets": [
                {"id": "HS-1", "propertyTypes": ["single_family"], "minPrice": 500000,
                 "maxPrice": 700000, "city": "Newton",
                 "contact": {"email": "PAT@example.org", "first_name": "Patricia"}},
                {"id": "HS-2", "minPrice": 700000,
                 "contact": {"email": "kim@example.org"}},
            ],
        }).json()

        assert data["needs"]["matches"] == ["N-1"]
        assert data["hot_sheets"]["matches"] == ["HS-1"]
        assert len(data["recipients"]) == 1
        recipient = data["recipients"][0]
        assert recipient["first_name"] == "Patricia"
        assert recipient["source"] == "hot_sheet"
        assert recipient["criteria_id"] == "HS-1"


    def test_saved_hot_sheet_row_filters_applied(self, client):
        """A saved row's nested criteria are honoured, not dropped."""
        listing = {"id": "L-1", "property_type": "condo", "state": "MA", "city": "Boston", "price": 450000}
        data = client.post("/api/listings/matching-buyers", json={
            "listing": listing,
            "hot_sheets": [
                {"id": "HS-1", "criteria": {"minPrice": 900000, "state": "NY"},
                 "profiles": {"email": "kim@example.org"}},
                {"id": "HS-2", "criteria": {"maxPrice": 500000, "state": "MA"},
                 "profiles": {"email": "lou@example.org"}},
            ],
        }).json()

        assert data["hot_sheets"]["matches"] == ["HS-2"]
        assert [recipient["email"] for recipient in data["recipients"]] == ["lou@example.org"]

    def test_unreadable_hot_sheet_is_not_a_match(self, client, newton_listing):
        data = client.post("/api/listings/matching-buyers", json={
            "listing": newton_listing,
            "hot_sheets": [
                {"id": "HS-1", "filters": {"minPrice": 900000},
                 "profiles": {"email": "kim@example.org"}},
            ],
        }).json()

        assert data["hot_sheets"]["matches"] == []
        assert [item["id"] for item in data["hot_sheets"]["skipped"]] == ["HS-1"]
        assert data["recipients"] == []


# =============================================================================
# Test: Agent Matching
# =============================================================================

class TestMatchingAgents:

    @pytest.fixture
    def agent_rows(self):
        return [
            {"user_id": "A-1", "buyer_need": True, "coverage_areas": [{"state": "MA", "city": "Newton"}],
             "agent_profiles": {"email": "dana@realty.example", "first_name": "Dana"}},
            {"user_id": "A-2", "buyer_need": True, "coverage_areas": ["MA"], "min_price": 800000,
             "agent_profiles": {"email": "eli@realty.example"}},
            {"user_id": "A-3", "buyer_need": False, "coverage_areas": ["MA"],
             "agent_profiles": {"email": "fay@realty.example"}},
            {"user_id": "A-4", "buyer_need": True, "coverage_areas": ["MA"], "max_price": 500000,
             "agent_profiles": {"email": "gus@realty.example"}},
        ]

    def test_covering_agents_notified(self, client, agent_rows):
        data = client.post("/api/needs/matching-agents", json={
            "need": {"id": "N-1", "state": "MA", "city": "Newton", "min_price": 450000, "max_price": 650000},
            "agents": agent_rows,
        }).json()

        assert data["matches"] == ["A-1", "A-4"]
        assert data["badge"] == "2 matches"
        assert [recipient["email"] for recipient in data["recipients"]] == [
            "dana@realty.example",
            "gus@realty.example",
        ]
        assert data["recipients"][0]["source"] == "agent"

    def test_bad_agent_row_skipped(self, client, agent_rows):
        rows = agent_rows + [{"user_id": "A-bad", "min_price": "cheap"}]
        data = client.post("/api/needs/matching-agents", json={
            "need": {"state": "MA"},
            "agents": rows,
        }).json()

        assert [item["id"] for item in data["skipped"]] == ["A-bad"]

    def test_invalid_need_rejected(self, client):
        response = client.post("/api/needs/matching-agents", json={"need": {"max_price": "lots"}})
        assert response.status_code == 422


# =============================================================================
# Test: Explain
# =============================================================================

class TestExplain:

    def test_failed_constraints_named(self, client, newton_listing):
        data = client.post("/api/matches/explain", json={
            "listing": newton_listing,
            "criteria": {"minPrice": 700000, "bedrooms": 5, "state": "ma"},
        }).json()

        assert data == {"matched": False, "failed": ["min_price", "bedrooms"]}

    def test_reverse_prospect_ignores_floor(self, client, newton_listing):
        data = client.post("/api/matches/explain", json={
            "listing": newton_listing,
            "criteria": {"min_price": 700000, "bedrooms": 5},
            "perspective": "reverse_prospect",
        }).json()

        assert data == {"matched": False, "failed": ["bedrooms"]}

    def test_match(self, client, newton_listing):
        data = client.post("/api/matches/explain", json={
            "listing": newton_listing,
            "criteria": {"city": "newton"},
        }).json()

        assert data == {"matched": True, "failed": []}
