"""Resolve colloquial subdivision names to zip codes.

The listings API only matches its ``neighborhood`` field exactly, while MLS
records carry section and phase suffixes ("Circle C Ranch Ph A Sec 04").
Resolution probes a few suffixed variants one at a time, gathers the zip
codes of whatever matches, and lets the main search run by zip. The caller
then keeps only records whose subdivision contains the typed name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..utils.logging import get_logger
from ..utils.normalize import listing_zip
from .listings_client import ListingsClient, QueryParams

LOGGER = get_logger("services.subdivision")

PROBE_SUFFIXES = ("", " Ranch", " Estates", " Phase", " Sec", " Add", " Sub")
ZIP_TARGET = 2
PROBE_PAGE_SIZE = 50


def probe_variants(term: str) -> List[str]:
    base = " ".join(term.split())
    return [f"{base}{suffix}" for suffix in PROBE_SUFFIXES]


@dataclass
class SubdivisionResolution:
    term: str
    zips: List[str] = field(default_factory=list)
    probed: List[str] = field(default_factory=list)
    matched: List[str] = field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return bool(self.zips)


class SubdivisionResolver:
    def __init__(self, client: ListingsClient, page_size: int = PROBE_PAGE_SIZE) -> None:
        self.client = client
        self.page_size = page_size

    def resolve(self, term: str) -> SubdivisionResolution:
        """Probe variants in order, stopping once ``ZIP_TARGET`` zips are known."""

        resolution = SubdivisionResolution(term=term)
        for variant in probe_variants(term):
            resolution.probed.append(variant)
            params = QueryParams(
                listings="true",
                type="Sale",
                neighborhood=variant,
                resultsPerPage=self.page_size,
                pageNum=1,
            )
            try:
                data = self.client.search(params)
            except Exception as exc:
                LOGGER.warning("subdivision_probe_failed variant=%r error=%s", variant, exc)
                continue
            if not data.get("count"):
                continue
            resolution.matched.append(variant)
            for listing in data.get("listings") or []:
                zipcode = listing_zip(listing)
                if zipcode and zipcode not in resolution.zips:
                    resolution.zips.append(zipcode)
            if len(resolution.zips) >= ZIP_TARGET:
                break

        LOGGER.info(
            "subdivision_resolved term=%r probes=%d matched=%s zips=%s",
            term,
            len(resolution.probed),
            resolution.matched,
            resolution.zips,
        )
        return resolution


def scope_query(
    params: QueryParams,
    resolution: SubdivisionResolution,
    city: Optional[str],
    zipcode: Optional[str],
    fallback_city: str,
) -> QueryParams:
    """Point the main search at the discovered zips, or at a fallback city."""

    if resolution.zips:
        params.remove("city", "zip")
        for found in resolution.zips:
            params.add("zip", found)
    elif not city and not zipcode:
        params.set("city", fallback_city)
    return params


__all__ = [
    "PROBE_SUFFIXES",
    "ZIP_TARGET",
    "probe_variants",
    "SubdivisionResolution",
    "SubdivisionResolver",
    "scope_query",
]
