"""Pydantic schemas for Pulse market statistics.

Medians and averages on these models are computed over the sampled listing
pages fetched for the request (at most a few hundred records), not over the
full MLS population.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import Field

from .listings import CamelModel, NormalizedProperty


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class MetroStats(CamelModel):
    active: int = 0
    pending: int = 0
    active_under_contract: int = 0
    closed_last_30: int = 0
    closed_last_90: int = 0
    new_last_7: int = 0
    median_list_price: float = 0
    median_sold_price: float = 0
    avg_days_on_market: float = 0
    median_price_per_sqft: float = 0
    months_of_supply: float = 0
    sample_size: int = 0
    last_updated_at: str = Field(default_factory=_utc_now)


class ZipStat(CamelModel):
    zip: str
    active_count: int = 0
    median_price: float = 0
    avg_days_on_market: float = 0
    latitude: float
    longitude: float
    closed_last_30: Optional[int] = None


class MonthlyStat(CamelModel):
    month: str
    closed_count: int = 0
    median_price: float = 0
    avg_days_on_market: float = 0
    active_inventory: Optional[int] = None


class ZipDetail(CamelModel):
    zip: str
    active_count: int = 0
    pending_count: int = 0
    closed_last_30: int = 0
    closed_last_90: int = 0
    median_list_price: float = 0
    median_sold_price: float = 0
    avg_days_on_market: float = 0
    months_of_supply: float = 0
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    recent_sales: List[NormalizedProperty] = Field(default_factory=list)


class PulseSnapshot(CamelModel):
    total_properties: int = 0
    active: int = 0
    active_under_contract: int = 0
    pending: int = 0
    closed: int = 0
    last_updated_at: datetime
    office_name: Optional[str] = None


__all__ = ["MetroStats", "ZipStat", "MonthlyStat", "ZipDetail", "PulseSnapshot"]
