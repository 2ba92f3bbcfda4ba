import json

from agent_portal.services.listings_client import QueryParams
from agent_portal.services.subdivision import (
    SubdivisionResolution,
    SubdivisionResolver,
    probe_variants,
    scope_query,
)

from conftest import make_listing, page


def test_probe_variants_order():
    assert probe_variants("  Circle   C ") == [
        "Circle C",
        "Circle C Ranch",
        "Circle C Estates",
        "Circle C Phase",
        "Circle C Sec",
        "Circle C Add",
        "Circle C Sub",
    ]


def test_failed_probe_is_skipped(fake_client, upstream_down):
    fake_client.route({"neighborhood": "Steiner"}, upstream_down)
    fake_client.route(
        {"neighborhood": "Steiner Ranch"},
        page(make_listing("S1", address={"zip": "78732"})),
    )
    resolution = SubdivisionResolver(fake_client).resolve("Steiner")
    assert resolution.zips == ["78732"]
    assert resolution.matched == ["Steiner Ranch"]
    # only one zip found, so every variant is probed
    assert len(resolution.probed) == 7


def test_scope_query_replaces_city_with_zips():
    params = QueryParams(city="Austin", zip="78701")
    resolution = SubdivisionResolution(term="x", zips=["78739", "78749"])
    scope_query(params, resolution, city="Austin", zipcode="78701", fallback_city="Austin")
    assert "city" not in params
    assert params.get_all("zip") == ["78739", "78749"]


def test_scope_query_keeps_user_zip_when_unresolved():
    params = QueryParams(zip="78701")
    scope_query(params, SubdivisionResolution(term="x"), city=None, zipcode="78701", fallback_city="Austin")
    assert "city" not in params
    assert params.get_all("zip") == ["78701"]


def test_unreadable_probe_is_skipped(fake_client):
    fake_client.route({"neighborhood": "Steiner"}, json.JSONDecodeError("Expecting value", "<html>", 0))
    fake_client.route(
        {"neighborhood": "Steiner Ranch"},
        page(make_listing("S1", address={"zip": "78732"})),
    )
    resolution = SubdivisionResolver(fake_client).resolve("Steiner")
    assert resolution.zips == ["78732"]
    assert resolution.probed[0] == "Steiner"
