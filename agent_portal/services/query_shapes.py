"""Translate ``FilterCriteria`` into listings API query parameters."""

from __future__ import annotations

from datetime import date, timedelta
from typing import List, Optional, Tuple

from ..models.listings import ACTIVE_FAMILY, FilterCriteria, MapBounds
from ..utils.normalize import SQFT_PER_ACRE
from .listings_client import QueryParams

WIDE_PAGE_SIZE = 100
POOL_FEATURE = "In Ground"
SORT_ORDER = "createdOnDesc"

# criteria attribute -> upstream parameter
_PASSTHROUGH = (
    ("city", "city"),
    ("zip", "zip"),
    ("county", "county"),
    ("area", "area"),
    ("min_price", "minPrice"),
    ("max_price", "maxPrice"),
    ("min_beds", "minBeds"),
    ("max_beds", "maxBeds"),
    ("min_baths", "minBaths"),
    ("max_baths", "maxBaths"),
    ("min_sqft", "minSqft"),
    ("max_sqft", "maxSqft"),
    ("min_year_built", "minYearBuilt"),
    ("max_year_built", "maxYearBuilt"),
    ("min_stories", "minStories"),
    ("max_stories", "maxStories"),
    ("min_garage_spaces", "minGarageSpaces"),
    ("min_parking_spaces", "minParkingSpaces"),
    ("property_type", "style"),
)


def _format_number(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def base_params(criteria: FilterCriteria, page_size: int, page: int) -> QueryParams:
    params = QueryParams(
        listings="true",
        type="Sale",
        resultsPerPage=page_size,
        pageNum=page,
        sortBy=SORT_ORDER,
    )
    for attr, upstream in _PASSTHROUGH:
        value = getattr(criteria, attr)
        if value is None or value == "":
            continue
        params.add(upstream, _format_number(value))
    if criteria.min_lot_acres:
        params.add("minLotSizeSqft", int(round(criteria.min_lot_acres * SQFT_PER_ACRE)))
    if criteria.max_lot_acres:
        params.add("maxLotSizeSqft", int(round(criteria.max_lot_acres * SQFT_PER_ACRE)))
    if criteria.pool:
        # Only the "In Ground" subtype is requested; other pool types are not
        # re-admitted client-side.
        params.add("swimmingPool", POOL_FEATURE)
    return params


def sold_cutoff(today: date, lookback_days: int) -> str:
    return (today - timedelta(days=lookback_days)).isoformat()


def add_closed_status(params: QueryParams, min_sold_date: str, max_sold_date: Optional[str] = None) -> QueryParams:
    params.add("status", "U")
    params.add("lastStatus", "Sld")
    params.add("minSoldDate", min_sold_date)
    if max_sold_date:
        params.add("maxSoldDate", max_sold_date)
    return params


def status_queries(
    params: QueryParams,
    criteria: FilterCriteria,
    today: date,
    default_lookback_days: int,
) -> Tuple[Optional[QueryParams], Optional[QueryParams]]:
    """Split the requested statuses into an active-family query and a closed query.

    Either side is None when its family was not requested. The upstream has
    no single parameter for the union, so both sides run as separate calls.
    """

    statuses = criteria.effective_statuses
    active = [s for s in statuses if s in ACTIVE_FAMILY]
    active_query = None
    closed_query = None
    if active:
        active_query = params.copy()
        for status in active:
            active_query.add("standardStatus", status)
    if criteria.has_closed:
        lookback = criteria.date_sold_days or default_lookback_days
        closed_query = add_closed_status(params.copy(), sold_cutoff(today, lookback))
    return active_query, closed_query


def close_ring(points: List[List[float]]) -> List[List[float]]:
    ring = [list(p) for p in points]
    if ring and ring[0] != ring[-1]:
        ring.append(list(ring[0]))
    return ring


def bounds_ring(bounds: MapBounds) -> List[List[float]]:
    return [
        [bounds.west, bounds.north],
        [bounds.east, bounds.north],
        [bounds.east, bounds.south],
        [bounds.west, bounds.south],
        [bounds.west, bounds.north],
    ]


def map_polygon(criteria: FilterCriteria) -> Optional[List[List[float]]]:
    """Polygon wins over bounds; None means a plain GET search."""

    if criteria.polygon:
        return close_ring(criteria.polygon)
    if criteria.bounds:
        return bounds_ring(criteria.bounds)
    return None


__all__ = [
    "WIDE_PAGE_SIZE",
    "POOL_FEATURE",
    "base_params",
    "sold_cutoff",
    "add_closed_status",
    "status_queries",
    "close_ring",
    "bounds_ring",
    "map_polygon",
]
