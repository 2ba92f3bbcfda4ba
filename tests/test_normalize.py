from agent_portal.utils.normalize import extract_photos, normalize_listing

from conftest import make_listing


def test_missing_fields_default_to_zero_or_null():
    prop = normalize_listing({"mlsNumber": "X1"})
    assert prop.list_price == 0
    assert prop.beds == 0
    assert prop.days_on_market == 0
    assert prop.sold_price is None
    assert prop.sold_date is None
    assert prop.year_built is None
    assert prop.lot_size_acres is None
    assert prop.latitude is None
    assert prop.state == "TX"


def test_full_record_is_mapped():
    listing = make_listing("ACT9", soldPrice=515000, soldDate="2025-06-01", lot={"acres": 0.21})
    prop = normalize_listing(listing)
    assert prop.address == "100 Main St, Austin, TX 78704"
    assert prop.street_address == "100 Main St"
    assert prop.beds == 3
    assert prop.sold_price == 515000
    assert prop.lot_size_acres == 0.21
    assert prop.subdivision == "Travis Heights"
    assert prop.latitude == 30.25


def test_address_skips_missing_street():
    listing = make_listing("N1", address={"streetNumber": None, "streetName": None, "streetSuffix": None})
    assert normalize_listing(listing).address == "Austin, TX 78704"
    assert normalize_listing({"mlsNumber": "X3"}).address == "TX"


def test_lot_size_from_square_feet():
    prop = normalize_listing({"mlsNumber": "X2", "lotSizeArea": 43560})
    assert prop.lot_size_acres == 1.0


def test_zip_plus_four_is_truncated():
    prop = normalize_listing(make_listing("Z1", address={"zip": "78704-1234"}))
    assert prop.zip == "78704"


def test_photos_prefer_images_and_prefix_cdn():
    listing = {
        "images": ["sandbox/IMG-1.jpg", {"url": "https://example.com/2.jpg"}],
        "photos": ["ignored.jpg"],
    }
    assert extract_photos(listing, "https://cdn.repliers.io/") == [
        "https://cdn.repliers.io/sandbox/IMG-1.jpg",
        "https://example.com/2.jpg",
    ]


def test_photos_fall_back_to_single_fields():
    assert extract_photos({"photos": [], "primaryPhoto": {"src": "/a.jpg"}}) == ["https://cdn.repliers.io/a.jpg"]
    assert extract_photos({}) == []
