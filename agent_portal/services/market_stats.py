"""Pulse dashboard statistics computed from batches of listings API queries.

Each operation issues a fixed batch of queries in parallel. A failed branch
degrades to an empty response so one slow or broken sub-call cannot sink the
aggregate. Prices and days-on-market come from sampled pages, so medians are
sample medians.
"""

from __future__ import annotations

import math
import re
from datetime import date, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd

from ..errors import ValidationError
from ..models.market import MetroStats, MonthlyStat, ZipDetail, ZipStat
from ..utils.geo import ZipCentroids
from ..utils.logging import get_logger
from ..utils.normalize import (
    DEFAULT_CDN_URL,
    listing_dom,
    listing_price,
    listing_sold_price,
    listing_sqft,
    listing_zip,
    normalize_listing,
)
from ..utils.stats import mean, median, months_of_supply, safe_div
from .listings_client import EMPTY_RESPONSE, ListingsClient, QueryParams
from .query_shapes import add_closed_status, sold_cutoff

LOGGER = get_logger("services.market_stats")

SAMPLE_PAGE_SIZE = 100
HEATMAP_PAGES = (1, 5, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100, 110, 120, 130)
MAX_COMPARE_ZIPS = 5
MAX_TREND_MONTHS = 24
RECENT_SALES_LIMIT = 10

_ZIP_RE = re.compile(r"^\d{5}$")

RawListing = Dict[str, Any]


def _count_query(**extra: Any) -> QueryParams:
    return QueryParams(listings="false", type="Sale", resultsPerPage=1, **extra)


def _sample_query(page: int = 1, **extra: Any) -> QueryParams:
    return QueryParams(listings="true", type="Sale", resultsPerPage=SAMPLE_PAGE_SIZE, pageNum=page, **extra)


def _count(data: Optional[Dict[str, Any]]) -> int:
    try:
        return int((data or EMPTY_RESPONSE).get("count") or 0)
    except (TypeError, ValueError):
        return 0


def _listings(data: Optional[Dict[str, Any]]) -> List[RawListing]:
    return list((data or EMPTY_RESPONSE).get("listings") or [])


def _price_per_sqft(listings: Iterable[RawListing]) -> List[float]:
    values = []
    for listing in listings:
        price, sqft = listing_price(listing), listing_sqft(listing)
        if price and sqft:
            values.append(safe_div(price, sqft))
    return values


def check_zip(zipcode: str) -> str:
    cleaned = str(zipcode or "").strip()
    if not _ZIP_RE.match(cleaned):
        raise ValidationError(f"Invalid zip code: {zipcode!r}")
    return cleaned


def parse_zip_list(zips: Union[str, Sequence[str], None]) -> List[str]:
    """Split, validate and de-duplicate a compare request's zip list."""

    if zips is None:
        raw: List[str] = []
    elif isinstance(zips, str):
        raw = zips.split(",")
    else:
        raw = list(zips)
    cleaned = list(dict.fromkeys(z.strip() for z in raw if z and z.strip()))
    if not cleaned:
        raise ValidationError("At least one zip code is required.")
    if len(cleaned) > MAX_COMPARE_ZIPS:
        raise ValidationError("Maximum 5 zip codes.")
    return [check_zip(z) for z in cleaned]


def month_windows(today: date, months_back: int) -> List[pd.Period]:
    """The last ``months_back`` calendar months, oldest first, current month included."""

    return list(pd.period_range(end=pd.Period(today.isoformat(), freq="M"), periods=months_back, freq="M"))


class MarketStatsAggregator:
    def __init__(
        self,
        client: ListingsClient,
        centroids: ZipCentroids,
        today: Callable[[], date] = date.today,
        cdn_url: str = DEFAULT_CDN_URL,
    ) -> None:
        self.client = client
        self.centroids = centroids
        self.cdn_url = cdn_url
        self._today = today

    # ------------------------------------------------------------------
    def overview(self) -> MetroStats:
        today = self._today()
        d30 = sold_cutoff(today, 30)
        d90 = sold_cutoff(today, 90)
        batch = {
            "active": _count_query(standardStatus="Active"),
            "pending": _count_query(standardStatus="Pending"),
            "active_under_contract": _count_query(standardStatus="Active Under Contract"),
            "closed_30": add_closed_status(_count_query(), d30),
            "closed_90": add_closed_status(_count_query(), d90),
            "new_7": _count_query(standardStatus="Active", minListDate=(today - timedelta(days=7)).isoformat()),
            "active_sample": _sample_query(standardStatus="Active", sortBy="createdOnDesc"),
            "closed_sample": add_closed_status(_sample_query(sortBy="soldDateDesc"), d90),
        }
        results = self.client.fetch_many(batch)

        active_sample = _listings(results["active_sample"])
        closed_sample = _listings(results["closed_sample"])
        active = _count(results["active"])
        closed_90 = _count(results["closed_90"])
        stats = MetroStats(
            active=active,
            pending=_count(results["pending"]),
            active_under_contract=_count(results["active_under_contract"]),
            closed_last_30=_count(results["closed_30"]),
            closed_last_90=closed_90,
            new_last_7=_count(results["new_7"]),
            median_list_price=median(listing_price(l) for l in active_sample),
            median_sold_price=median(listing_sold_price(l) for l in closed_sample),
            avg_days_on_market=round(mean((listing_dom(l) for l in active_sample), positive_only=False), 1),
            median_price_per_sqft=round(median(_price_per_sqft(active_sample)), 2),
            months_of_supply=months_of_supply(active, closed_90),
            sample_size=len(active_sample) + len(closed_sample),
        )
        LOGGER.info(
            "pulse_overview active=%d closed_90=%d sample=%d failed=%s",
            stats.active,
            stats.closed_last_90,
            stats.sample_size,
            [name for name, data in results.items() if data is None],
        )
        return stats

    # ------------------------------------------------------------------
    def heatmap(self) -> List[ZipStat]:
        aggregate_batch = {
            "by_zip": _count_query(standardStatus="Active", aggregates="address.zip"),
        }
        aggregate = self.client.fetch_many(aggregate_batch)["by_zip"]
        zip_counts = self._zip_counts(aggregate)

        page_count = max(1, math.ceil(_count(aggregate) / SAMPLE_PAGE_SIZE))
        pages = [p for p in HEATMAP_PAGES if p <= page_count]
        batch = {f"page_{p}": _sample_query(page=p, standardStatus="Active") for p in pages}
        sampled: List[RawListing] = []
        for data in self.client.fetch_many(batch).values():
            sampled.extend(_listings(data))

        frame = self._sample_frame(sampled)
        if not zip_counts and not frame.empty:
            # aggregate call failed; fall back to the sampled distribution
            zip_counts = frame.groupby("zip").size().astype(int).to_dict()

        by_zip = self._zip_aggregates(frame)
        stats: List[ZipStat] = []
        for zipcode, count in zip_counts.items():
            centroid = self.centroids.get(zipcode)
            if centroid is None:
                continue
            median_price, avg_dom = by_zip.get(zipcode, (0.0, 0.0))
            stats.append(
                ZipStat(
                    zip=zipcode,
                    active_count=int(count),
                    median_price=median_price,
                    avg_days_on_market=avg_dom,
                    latitude=centroid[0],
                    longitude=centroid[1],
                )
            )
        stats.sort(key=lambda s: s.active_count, reverse=True)
        LOGGER.info(
            "pulse_heatmap zips=%d mapped=%d pages=%s sample=%d",
            len(zip_counts),
            len(stats),
            pages,
            len(sampled),
        )
        return stats

    @staticmethod
    def _zip_counts(aggregate: Optional[Dict[str, Any]]) -> Dict[str, int]:
        aggregates = (aggregate or {}).get("aggregates") or {}
        raw = (aggregates.get("address") or {}).get("zip") or {}
        counts: Dict[str, int] = {}
        for zipcode, count in raw.items():
            key = str(zipcode).strip()[:5]
            if not key:
                continue
            counts[key] = counts.get(key, 0) + int(count or 0)
        return counts

    @staticmethod
    def _sample_frame(listings: List[RawListing]) -> pd.DataFrame:
        rows = [
            {"zip": listing_zip(l), "price": listing_price(l), "dom": listing_dom(l)}
            for l in listings
        ]
        frame = pd.DataFrame(rows, columns=["zip", "price", "dom"])
        return frame[frame["zip"] != ""]

    @staticmethod
    def _zip_aggregates(frame: pd.DataFrame) -> Dict[str, tuple]:
        if frame.empty:
            return {}
        out = {}
        for zipcode, group in frame.groupby("zip"):
            out[str(zipcode)] = (
                median(group["price"].tolist()),
                round(mean(group["dom"].tolist(), positive_only=False), 1),
            )
        return out

    # ------------------------------------------------------------------
    def trends(self, months_back: int = 6) -> List[MonthlyStat]:
        if not 1 <= int(months_back) <= MAX_TREND_MONTHS:
            raise ValidationError(f"months must be between 1 and {MAX_TREND_MONTHS}")
        today = self._today()
        periods = month_windows(today, int(months_back))

        batch: Dict[str, QueryParams] = {}
        for period in periods:
            start = period.start_time.date()
            end = min(period.end_time.date(), today)
            batch[str(period)] = add_closed_status(
                _sample_query(sortBy="soldDateDesc"), start.isoformat(), end.isoformat()
            )
        batch["active_now"] = _count_query(standardStatus="Active")
        results = self.client.fetch_many(batch)

        latest = str(periods[-1])
        trend: List[MonthlyStat] = []
        for period in periods:
            key = str(period)
            data = results.get(key)
            sample = _listings(data)
            trend.append(
                MonthlyStat(
                    month=key,
                    closed_count=_count(data),
                    median_price=median(listing_sold_price(l) for l in sample),
                    avg_days_on_market=round(mean((listing_dom(l) for l in sample), positive_only=False), 1),
                    active_inventory=_count(results.get("active_now")) if key == latest else None,
                )
            )
        LOGGER.info("pulse_trends months=%d latest=%s", len(trend), latest)
        return trend

    # ------------------------------------------------------------------
    def zip_detail(self, zipcode: str) -> ZipDetail:
        zipcode = check_zip(zipcode)
        today = self._today()
        batch = {
            "active": _sample_query(zip=zipcode, standardStatus="Active"),
            "pending": _count_query(zip=zipcode, standardStatus="Pending"),
            "closed_30": add_closed_status(_sample_query(zip=zipcode, sortBy="soldDateDesc"), sold_cutoff(today, 30)),
            "closed_90": add_closed_status(_count_query(zip=zipcode), sold_cutoff(today, 90)),
        }
        results = self.client.fetch_many(batch)

        active_sample = _listings(results["active"])
        closed_sample = _listings(results["closed_30"])
        active = _count(results["active"])
        closed_90 = _count(results["closed_90"])
        centroid = self.centroids.get(zipcode)
        recent = sorted(
            (normalize_listing(l, self.cdn_url) for l in closed_sample),
            key=lambda p: p.sold_date or "",
            reverse=True,
        )[:RECENT_SALES_LIMIT]
        return ZipDetail(
            zip=zipcode,
            active_count=active,
            pending_count=_count(results["pending"]),
            closed_last_30=_count(results["closed_30"]),
            closed_last_90=closed_90,
            median_list_price=median(listing_price(l) for l in active_sample),
            median_sold_price=median(listing_sold_price(l) for l in closed_sample),
            avg_days_on_market=round(mean((listing_dom(l) for l in active_sample), positive_only=False), 1),
            months_of_supply=months_of_supply(active, closed_90),
            latitude=centroid[0] if centroid else None,
            longitude=centroid[1] if centroid else None,
            recent_sales=recent,
        )

    # ------------------------------------------------------------------
    def compare(self, zips: Union[str, Sequence[str], None]) -> List[ZipStat]:
        zip_list = parse_zip_list(zips)
        cutoff = sold_cutoff(self._today(), 30)
        batch: Dict[str, QueryParams] = {}
        for zipcode in zip_list:
            batch[f"{zipcode}:active"] = _sample_query(zip=zipcode, standardStatus="Active")
            batch[f"{zipcode}:closed_30"] = add_closed_status(_count_query(zip=zipcode), cutoff)
        results = self.client.fetch_many(batch)

        stats: List[ZipStat] = []
        for zipcode in zip_list:
            centroid = self.centroids.get(zipcode)
            if centroid is None:
                LOGGER.info("pulse_compare_unmapped zip=%s", zipcode)
                continue
            active = results.get(f"{zipcode}:active")
            sample = _listings(active)
            stats.append(
                ZipStat(
                    zip=zipcode,
                    active_count=_count(active),
                    median_price=median(listing_price(l) for l in sample),
                    avg_days_on_market=round(mean((listing_dom(l) for l in sample), positive_only=False), 1),
                    latitude=centroid[0],
                    longitude=centroid[1],
                    closed_last_30=_count(results.get(f"{zipcode}:closed_30")),
                )
            )
        return stats


__all__ = [
    "MarketStatsAggregator",
    "HEATMAP_PAGES",
    "MAX_COMPARE_ZIPS",
    "check_zip",
    "parse_zip_list",
    "month_windows",
]
