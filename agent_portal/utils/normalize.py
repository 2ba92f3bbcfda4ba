"""Normalization of raw listings API records into ``NormalizedProperty``."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..models.listings import NormalizedProperty
from .coerce import dig, to_float, to_int, to_str

SQFT_PER_ACRE = 43560
DEFAULT_CDN_URL = "https://cdn.repliers.io"
DEFAULT_STATE = "TX"

_SINGLE_PHOTO_FIELDS = ("photo", "imageUrl", "primaryPhoto", "coverPhoto")


def _first(*values: Any) -> Any:
    """Return the first truthy value, mirroring the upstream's loose field aliases."""
    for value in values:
        if value:
            return value
    return None


def normalize_photo_url(image: Any, cdn_url: str = DEFAULT_CDN_URL) -> Optional[str]:
    if not image:
        return None
    if isinstance(image, dict):
        image = image.get("url") or image.get("src") or image.get("href")
    if not isinstance(image, str) or not image.strip():
        return None
    path = image.strip()
    if path.startswith(("http://", "https://")):
        return path
    return f"{cdn_url.rstrip('/')}/{path.lstrip('/')}"


def extract_photos(listing: Dict[str, Any], cdn_url: str = DEFAULT_CDN_URL) -> List[str]:
    """Photo URLs in priority order: ``images``, ``photos``, then single-photo fields."""

    for key in ("images", "photos"):
        values = listing.get(key)
        if isinstance(values, list) and values:
            urls = [u for u in (normalize_photo_url(v, cdn_url) for v in values) if u]
            if urls:
                return urls
    for key in _SINGLE_PHOTO_FIELDS:
        url = normalize_photo_url(listing.get(key), cdn_url)
        if url:
            return [url]
    return []


def listing_mls_number(listing: Dict[str, Any]) -> str:
    return to_str(_first(listing.get("mlsNumber"), listing.get("listingId")))


def listing_zip(listing: Dict[str, Any]) -> str:
    raw = to_str(_first(dig(listing, "address", "zip"), dig(listing, "address", "postalCode")))
    return raw.strip()[:5]


def listing_subdivision(listing: Dict[str, Any]) -> str:
    return to_str(
        _first(
            dig(listing, "address", "neighborhood"),
            dig(listing, "details", "subdivision"),
            dig(listing, "address", "area"),
        )
    ).strip()


def listing_price(listing: Dict[str, Any]) -> Optional[float]:
    return to_float(listing.get("listPrice"))


def listing_sold_price(listing: Dict[str, Any]) -> Optional[float]:
    return to_float(_first(listing.get("soldPrice"), listing.get("closePrice")))


def listing_sqft(listing: Dict[str, Any]) -> Optional[float]:
    return to_float(_first(dig(listing, "details", "sqft"), listing.get("livingArea")))


def listing_dom(listing: Dict[str, Any]) -> Optional[int]:
    return to_int(
        _first(listing.get("daysOnMarket"), listing.get("dom"), dig(listing, "timestamps", "dom"))
    )


def _lot_acres(listing: Dict[str, Any]) -> Optional[float]:
    acres = to_float(dig(listing, "lot", "acres"))
    if acres:
        return acres
    area = to_float(listing.get("lotSizeArea"))
    if area:
        return round(area / SQFT_PER_ACRE, 4)
    return None


def normalize_listing(listing: Dict[str, Any], cdn_url: str = DEFAULT_CDN_URL) -> NormalizedProperty:
    """Map a raw listing onto the canonical shape.

    Counts default to 0 when missing; sold price, sold date, year built, lot
    size and coordinates default to None so "no data" stays distinct from 0.
    """

    address = listing.get("address") or {}
    street_address = " ".join(
        to_str(address.get(part)).strip()
        for part in ("streetNumber", "streetName", "streetSuffix")
        if address.get(part)
    )
    city = to_str(address.get("city"))
    state = to_str(address.get("state")) or DEFAULT_STATE
    zipcode = listing_zip(listing)

    return NormalizedProperty(
        mls_number=listing_mls_number(listing),
        address=", ".join(part for part in (street_address, city, f"{state} {zipcode}".strip()) if part),
        street_address=street_address,
        city=city,
        state=state,
        zip=zipcode,
        list_price=listing_price(listing) or 0,
        sold_price=listing_sold_price(listing) or None,
        beds=to_float(_first(dig(listing, "details", "numBedrooms"), listing.get("bedroomsTotal"))) or 0,
        baths=to_float(_first(dig(listing, "details", "numBathrooms"), listing.get("bathroomsTotal"))) or 0,
        sqft=listing_sqft(listing) or 0,
        lot_size_acres=_lot_acres(listing),
        year_built=to_int(dig(listing, "details", "yearBuilt")) or None,
        property_type=to_str(
            _first(
                dig(listing, "details", "style"),
                dig(listing, "details", "propertyType"),
                listing.get("propertyType"),
            )
        ),
        status=to_str(_first(listing.get("standardStatus"), listing.get("status"))),
        list_date=to_str(_first(listing.get("listDate"), dig(listing, "timestamps", "listDate"))),
        sold_date=to_str(_first(listing.get("soldDate"), listing.get("closeDate"))) or None,
        days_on_market=listing_dom(listing) or 0,
        photos=extract_photos(listing, cdn_url),
        subdivision=listing_subdivision(listing),
        latitude=to_float(_first(dig(listing, "map", "latitude"), address.get("latitude"))),
        longitude=to_float(_first(dig(listing, "map", "longitude"), address.get("longitude"))),
    )


__all__ = [
    "SQFT_PER_ACRE",
    "normalize_photo_url",
    "extract_photos",
    "listing_mls_number",
    "listing_zip",
    "listing_subdivision",
    "listing_price",
    "listing_sold_price",
    "listing_sqft",
    "listing_dom",
    "normalize_listing",
]
