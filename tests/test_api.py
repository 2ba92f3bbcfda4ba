import pytest
from fastapi.testclient import TestClient

from agent_portal import api
from agent_portal.config import Settings
from agent_portal.db.snapshots import MemorySnapshotRepository
from agent_portal.errors import UpstreamError
from agent_portal.services.market_pulse import MarketPulseService
from agent_portal.services.marketing_copy import ListingCopywriter

from conftest import make_listing, page


@pytest.fixture
def client(fake_client, settings):
    api.app.dependency_overrides[api.get_app_settings] = lambda: settings
    api.app.dependency_overrides[api.get_listings_client] = lambda: fake_client
    api.app.dependency_overrides[api.get_copywriter] = lambda: ListingCopywriter(api_key=None)
    api.app.dependency_overrides[api.get_pulse_service] = lambda: MarketPulseService(
        fake_client, MemorySnapshotRepository(), settings.office
    )
    yield TestClient(api.app, raise_server_exceptions=False)
    api.app.dependency_overrides.clear()


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "listingsConfigured": True}


def test_search_properties_camel_case_contract(client, fake_client):
    fake_client.route({"standardStatus": "Active"}, page(make_listing("ACT1")))
    resp = client.post("/api/cma/search-properties", json={"city": "Austin", "minBeds": 3, "statuses": ["Active"]})
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["total"] == 1
    assert payload["totalPages"] == 1
    assert payload["resultsPerPage"] == 25
    listing = payload["listings"][0]
    assert listing["mlsNumber"] == "ACT1"
    assert listing["soldPrice"] is None
    assert listing["photos"] == ["https://cdn.repliers.io/IMG-ACT1_1.jpg"]


def test_unknown_status_is_400(client, fake_client):
    resp = client.post("/api/cma/search-properties", json={"statuses": ["Sold Yesterday"]})
    assert resp.status_code == 400
    assert "statuses" in resp.json()["message"]
    assert fake_client.calls == []


def test_non_string_status_is_400(client, fake_client):
    resp = client.post("/api/cma/search-properties", json={"statuses": [1]})
    assert resp.status_code == 400
    message = resp.json()["message"]
    assert message.startswith("statuses:")
    assert "unknown status: 1" in message
    assert fake_client.calls == []


def test_upstream_failure_is_502(client, fake_client):
    fake_client.route({"standardStatus": "Active"}, UpstreamError("Listings API returned 500"))
    resp = client.post("/api/cma/search-properties", json={"city": "Austin"})
    assert resp.status_code == 502
    assert resp.json() == {"message": "Failed to search properties"}


def test_missing_api_key_is_503():
    api.app.dependency_overrides[api.get_app_settings] = lambda: Settings(repliers_api_key=None)
    try:
        resp = TestClient(api.app).get("/api/pulse/overview")
    finally:
        api.app.dependency_overrides.clear()
    assert resp.status_code == 503
    assert resp.json() == {"message": "Listings API not configured"}


def test_unexpected_error_is_500(client, fake_client):
    fake_client.route({"standardStatus": "Active"}, RuntimeError("boom"))
    resp = client.post("/api/cma/search-properties", json={"city": "Austin"})
    assert resp.status_code == 500
    assert resp.json() == {"message": "Internal server error"}


def test_compare_six_zips_is_400(client):
    resp = client.get("/api/pulse/compare", params={"zips": "78704,78745,78739,78759,78610,78613"})
    assert resp.status_code == 400
    assert resp.json() == {"message": "Maximum 5 zip codes."}


def test_compare_uses_centroid_table(client, fake_client):
    fake_client.route({"zip": "78704", "listings": "true"}, page(make_listing("C1"), count=12))
    resp = client.get("/api/pulse/compare", params={"zips": "78704,78745"})
    assert resp.status_code == 200
    rows = resp.json()
    assert [r["zip"] for r in rows] == ["78704", "78745"]
    assert rows[0]["activeCount"] == 12
    assert rows[0]["closedLast30"] == 0


def test_trends_months_out_of_range(client):
    resp = client.get("/api/pulse/trends", params={"months": 30})
    assert resp.status_code == 400


def test_zip_detail_rejects_bad_zip(client):
    resp = client.get("/api/pulse/zip/abcde")
    assert resp.status_code == 400


def test_market_pulse_endpoint(client, fake_client):
    fake_client.route({"standardStatus": "Active"}, {"count": 30})
    resp = client.get("/api/market-pulse", params={"refresh": "true"})
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["active"] == 30
    assert payload["totalProperties"] == 30
    assert payload["officeName"] == "Spyglass Realty"


def test_listing_copy_endpoint(client):
    body = {"listing": {"mlsNumber": "ACT5", "streetAddress": "1 Oak Ln", "city": "Austin", "beds": 3}}
    resp = client.post("/api/marketing/listing-copy", json=body)
    assert resp.status_code == 200
    assert resp.json()["source"] == "template"
    assert "1 Oak Ln" in resp.json()["text"]
