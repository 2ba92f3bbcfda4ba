from agent_portal.models.listings import FilterCriteria, SubjectProperty
from agent_portal.services.address_search import AddressSearch, relevance_score
from agent_portal.utils.address import parse_address, search_fallbacks
from agent_portal.utils.normalize import normalize_listing

from conftest import TODAY, make_listing, page

ADDRESS = "2402 Rockingham Cir, Austin, TX 78704"


def _search(client) -> AddressSearch:
    return AddressSearch(client, cdn_url="https://cdn.repliers.io", default_lookback_days=180)


def test_parse_address_fields():
    parsed = parse_address(ADDRESS)
    assert parsed.street_number == "2402"
    assert parsed.street_name == "Rockingham"
    assert parsed.street_suffix == "Cir"
    assert parsed.city == "Austin"
    assert parsed.state == "TX"
    assert parsed.zip == "78704"


def test_fallback_chain_order():
    chain = search_fallbacks(ADDRESS)
    assert chain[0] == {"streetNumber": "2402", "streetName": "Rockingham", "zip": "78704", "streetSuffix": "Cir"}
    assert chain[1] == {"streetName": "Rockingham", "city": "Austin", "zip": "78704"}
    assert chain[2] == {"search": ADDRESS}
    assert chain[3] == {"zip": "78704"}


def test_exact_match_stops_chain(fake_client):
    subject = make_listing(
        "ACT7", address={"streetNumber": "2402", "streetName": "Rockingham", "streetSuffix": "Cir"}
    )
    fake_client.route({"streetNumber": "2402", "standardStatus": "Active"}, page(subject))
    criteria = FilterCriteria(search=ADDRESS)

    result = _search(fake_client).search(criteria, TODAY)

    assert result.search_strategy == "exact_match"
    assert [p.mls_number for p in result.listings] == ["ACT7"]
    # one call per status family of the first chain step
    assert len(fake_client.calls) == 2
    assert all(c["params"].get("streetNumber") == "2402" for c in fake_client.calls)


def test_fallback_keeps_first_non_empty_step(fake_client):
    fake_client.route(
        {"streetName": "Rockingham", "streetNumber": None, "standardStatus": "Active"},
        page(make_listing("N1", address={"streetNumber": "2406", "streetName": "Rockingham"})),
    )
    fake_client.route({"zip": "78704", "streetName": None, "search": None}, page(make_listing("Z1")))

    result = _search(fake_client).search(FilterCriteria(search=ADDRESS), TODAY)

    assert result.search_strategy == "fallback_search"
    assert [p.mls_number for p in result.listings] == ["N1"]


def test_nothing_found_returns_message(fake_client):
    result = _search(fake_client).search(FilterCriteria(search=ADDRESS), TODAY)
    assert result.listings == []
    assert result.total == 0
    assert result.message == "No properties found for the specified address"


def test_relevance_prefers_close_similar_recent_sales():
    subject = SubjectProperty(latitude=30.25, longitude=-97.75, beds=3, baths=2, sqft=2000)
    near_sold = normalize_listing(
        make_listing("NEAR", standardStatus="Closed", soldDate="2025-05-01", map={"latitude": 30.251, "longitude": -97.751})
    )
    far_active = normalize_listing(
        make_listing(
            "FAR",
            details={"numBedrooms": 6, "sqft": 4500},
            map={"latitude": 30.6, "longitude": -97.4},
        )
    )
    assert relevance_score(near_sold, subject, TODAY) > relevance_score(far_active, subject, TODAY)
    assert relevance_score(far_active, None, TODAY) == 100


def test_results_are_ranked_and_truncated(fake_client):
    listings = [
        make_listing("FAR", map={"latitude": 30.6, "longitude": -97.4}, address={"streetNumber": "1"}),
        make_listing("NEAR", map={"latitude": 30.2501, "longitude": -97.7501}, address={"streetNumber": "2"}),
        make_listing("MID", map={"latitude": 30.262, "longitude": -97.75}, address={"streetNumber": "3"}),
    ]
    fake_client.route({"search": ADDRESS, "standardStatus": "Active"}, page(*listings))
    criteria = FilterCriteria.model_validate(
        {
            "search": ADDRESS,
            "limit": 2,
            "statuses": ["Active"],
            "subjectProperty": {"latitude": 30.25, "longitude": -97.75, "beds": 3, "baths": 2, "sqft": 2000},
        }
    )
    result = _search(fake_client).search(criteria, TODAY)
    assert [p.mls_number for p in result.listings] == ["NEAR", "MID"]
