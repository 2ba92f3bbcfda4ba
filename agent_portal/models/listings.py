"""Pydantic schemas for CMA property search requests and responses."""

from __future__ import annotations

import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ACTIVE_FAMILY = ("Active", "Active Under Contract", "Pending")
CLOSED = "Closed"
STATUS_LABELS = ACTIVE_FAMILY + (CLOSED,)

MAX_LIMIT = 50
DEFAULT_LIMIT = 25


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MapBounds(CamelModel):
    north: float
    south: float
    east: float
    west: float


class SubjectProperty(CamelModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    beds: Optional[float] = None
    baths: Optional[float] = None
    sqft: Optional[float] = None
    property_type: Optional[str] = None


class FilterCriteria(CamelModel):
    # geography
    city: Optional[str] = None
    zip: Optional[str] = None
    county: Optional[str] = None
    area: Optional[str] = None
    subdivision: Optional[str] = None
    polygon: Optional[List[List[float]]] = None
    bounds: Optional[MapBounds] = None

    # ranges
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_beds: Optional[int] = None
    max_beds: Optional[int] = None
    min_baths: Optional[float] = None
    max_baths: Optional[float] = None
    min_sqft: Optional[int] = None
    max_sqft: Optional[int] = None
    min_lot_acres: Optional[float] = None
    max_lot_acres: Optional[float] = None
    min_year_built: Optional[int] = None
    max_year_built: Optional[int] = None
    min_stories: Optional[int] = None
    max_stories: Optional[int] = None
    min_garage_spaces: Optional[int] = None
    min_parking_spaces: Optional[int] = None

    # features
    property_type: Optional[str] = None
    pool: Optional[bool] = None
    waterfront: Optional[bool] = None
    hoa: Optional[bool] = None
    primary_on_main: Optional[bool] = None
    min_full_baths: Optional[int] = None
    min_half_baths: Optional[int] = None

    # status
    statuses: List[str] = Field(default_factory=list)
    date_sold_days: Optional[int] = Field(default=None, ge=1)

    # free text / bulk
    search: Optional[str] = None
    mls_numbers: Optional[List[str]] = None
    subject_property: Optional[SubjectProperty] = None

    page: int = 1
    limit: int = DEFAULT_LIMIT

    @field_validator("limit", mode="before")
    @classmethod
    def _clamp_limit(cls, value):
        if value is None or value == "":
            return DEFAULT_LIMIT
        try:
            limit = int(value)
        except (TypeError, ValueError):
            return DEFAULT_LIMIT
        return max(1, min(MAX_LIMIT, limit))

    @field_validator("page", mode="before")
    @classmethod
    def _clamp_page(cls, value):
        if value is None or value == "":
            return 1
        try:
            return max(1, int(value))
        except (TypeError, ValueError):
            return 1

    @field_validator("statuses", mode="before")
    @classmethod
    def _check_statuses(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            raise ValueError("statuses must be a list")
        unknown = [s for s in value if not isinstance(s, str) or s not in STATUS_LABELS]
        if unknown:
            raise ValueError(f"unknown status: {', '.join(map(str, unknown))}")
        return list(dict.fromkeys(value))

    @field_validator("mls_numbers", mode="before")
    @classmethod
    def _split_mls_numbers(cls, value):
        if value is None:
            return None
        if isinstance(value, str):
            value = re.split(r"[\s,;]+", value)
        cleaned = [str(v).strip() for v in value if str(v).strip()]
        return cleaned or None

    @field_validator("polygon")
    @classmethod
    def _check_polygon(cls, value):
        if value is None:
            return None
        for point in value:
            if len(point) != 2:
                raise ValueError("polygon points must be [lng, lat] pairs")
        if len(value) < 3:
            raise ValueError("polygon needs at least 3 points")
        return value

    @property
    def has_active_family(self) -> bool:
        return any(s in ACTIVE_FAMILY for s in self.effective_statuses)

    @property
    def has_closed(self) -> bool:
        return CLOSED in self.effective_statuses

    @property
    def effective_statuses(self) -> List[str]:
        return self.statuses or ["Active"]


class NormalizedProperty(CamelModel):
    mls_number: str = ""
    address: str = ""
    street_address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    list_price: float = 0
    sold_price: Optional[float] = None
    beds: float = 0
    baths: float = 0
    sqft: float = 0
    lot_size_acres: Optional[float] = None
    year_built: Optional[int] = None
    property_type: str = ""
    status: str = ""
    list_date: str = ""
    sold_date: Optional[str] = None
    days_on_market: int = 0
    photos: List[str] = Field(default_factory=list)
    subdivision: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class MlsLookup(CamelModel):
    found: List[str] = Field(default_factory=list)
    not_found: List[str] = Field(default_factory=list)


class SearchResponse(CamelModel):
    listings: List[NormalizedProperty]
    total: int
    page: int
    total_pages: int
    results_per_page: int
    mls_lookup: Optional[MlsLookup] = None
    search_strategy: Optional[str] = None
    message: Optional[str] = None


__all__ = [
    "ACTIVE_FAMILY",
    "CLOSED",
    "STATUS_LABELS",
    "MAX_LIMIT",
    "DEFAULT_LIMIT",
    "CamelModel",
    "MapBounds",
    "SubjectProperty",
    "FilterCriteria",
    "NormalizedProperty",
    "MlsLookup",
    "SearchResponse",
]
