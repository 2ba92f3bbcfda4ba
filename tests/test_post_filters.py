from agent_portal.models.listings import FilterCriteria
from agent_portal.services.post_filters import (
    apply_post_filters,
    build_predicates,
    has_hoa,
    has_primary_on_main,
    is_waterfront,
)

from conftest import make_listing


def test_primary_on_main_from_room_levels():
    listing = make_listing(
        "R1",
        rooms=[
            {"description": "Kitchen", "level": "Main"},
            {"description": "Primary Bedroom", "level": "Main"},
        ],
    )
    assert has_primary_on_main(listing)


def test_primary_upstairs_does_not_match():
    listing = make_listing("R2", rooms=[{"description": "Master Bedroom", "level": "Second"}])
    assert not has_primary_on_main(listing)


def test_primary_on_lower_level_does_not_match():
    listing = make_listing("R5", rooms=[{"description": "Primary Bedroom", "level": "Lower"}])
    assert not has_primary_on_main(listing)


def test_primary_on_main_from_remarks():
    listing = make_listing("R3", details={"description": "Open plan with Master Down and a flex room."})
    assert has_primary_on_main(listing)
    listing = make_listing("R4", publicRemarks="First floor primary suite overlooking the pool.")
    assert has_primary_on_main(listing)


def test_waterfront_flags():
    assert is_waterfront(make_listing("W1", details={"waterfront": "Y"}))
    assert not is_waterfront(make_listing("W2", details={"waterfront": "N"}))
    assert not is_waterfront(make_listing("W3"))


def test_hoa_falls_back_to_condo_fees():
    assert has_hoa(make_listing("H1", condominium={"fees": {"maintenance": 250}}))
    assert not has_hoa(make_listing("H2"))


def test_hoa_none_adds_no_predicate():
    assert build_predicates(FilterCriteria(hoa=None)) == []
    assert len(build_predicates(FilterCriteria(hoa=True))) == 1


def test_half_baths_and_subdivision_combine():
    listings = [
        make_listing("A", details={"numBathroomsHalf": 1}, address={"neighborhood": "Mueller Sec 3"}),
        make_listing("B", details={"numBathroomsHalf": 0}, address={"neighborhood": "Mueller Sec 3"}),
        make_listing("C", details={"numBathroomsHalf": 2}, address={"neighborhood": "Zilker"}),
    ]
    predicates = build_predicates(FilterCriteria(min_half_baths=1, subdivision="mueller"))
    kept = apply_post_filters(listings, predicates)
    assert [l["mlsNumber"] for l in kept] == ["A"]


def test_no_predicates_keeps_everything():
    listings = [make_listing("A"), make_listing("B")]
    assert apply_post_filters(listings, []) == listings
