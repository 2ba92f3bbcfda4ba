"""CMA property search: criteria → listings API queries → normalized page."""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from ..config import Settings
from ..errors import UpstreamError
from ..models.listings import FilterCriteria, MlsLookup, SearchResponse
from ..utils.logging import get_logger
from ..utils.normalize import listing_mls_number, normalize_listing
from .address_search import AddressSearch
from .listings_client import ListingsClient, QueryParams
from .post_filters import apply_post_filters, build_predicates
from .query_shapes import WIDE_PAGE_SIZE, base_params, map_polygon, status_queries
from .subdivision import SubdivisionResolver, scope_query

LOGGER = get_logger("services.query_composer")

MLS_LOOKUP_PAGE_SIZE = 10


def _mls_key(value: Any) -> str:
    return str(value or "").strip().upper()


class ListingsQueryComposer:
    """Entry point for ``POST /api/cma/search-properties``.

    Three modes, tried in order: bulk MLS-number lookup, free-text address
    search, and criteria search. Errors surface as ``PortalError`` subclasses
    for the route layer to convert.
    """

    def __init__(
        self,
        client: ListingsClient,
        settings: Settings,
        resolver: Optional[SubdivisionResolver] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.client = client
        self.settings = settings
        self.resolver = resolver or SubdivisionResolver(client)
        self.address_search = AddressSearch(
            client,
            cdn_url=settings.repliers_cdn_url,
            default_lookback_days=settings.default_sold_lookback_days,
        )
        self._today = today

    def search_properties(self, criteria: FilterCriteria) -> SearchResponse:
        if criteria.mls_numbers:
            return self.lookup_mls_numbers(criteria.mls_numbers)
        if criteria.search and criteria.search.strip():
            return self.address_search.search(criteria, self._today())
        return self.search_by_criteria(criteria)

    # ------------------------------------------------------------------
    def lookup_mls_numbers(self, mls_numbers: List[str]) -> SearchResponse:
        """One lookup per MLS number, in order, preferring an exact match."""

        lookup = MlsLookup()
        records: List[Dict[str, Any]] = []
        for mls in dict.fromkeys(m.strip() for m in mls_numbers if m.strip()):
            params = QueryParams(listings="true", mlsNumber=mls, resultsPerPage=MLS_LOOKUP_PAGE_SIZE)
            try:
                data = self.client.search(params)
            except Exception as exc:
                LOGGER.warning("mls_lookup_failed mls=%s error=%s", mls, exc)
                lookup.not_found.append(mls)
                continue
            candidates = data.get("listings") or []
            if not candidates:
                lookup.not_found.append(mls)
                continue
            wanted = _mls_key(mls)
            match = next((c for c in candidates if _mls_key(listing_mls_number(c)) == wanted), candidates[0])
            records.append(match)
            lookup.found.append(mls)

        LOGGER.info("mls_lookup found=%d not_found=%d", len(lookup.found), len(lookup.not_found))
        listings = [normalize_listing(r, self.settings.repliers_cdn_url) for r in records]
        return SearchResponse(
            listings=listings,
            total=len(listings),
            page=1,
            total_pages=1 if listings else 0,
            results_per_page=len(listings),
            mls_lookup=lookup,
        )

    # ------------------------------------------------------------------
    def search_by_criteria(self, criteria: FilterCriteria) -> SearchResponse:
        predicates = build_predicates(criteria)
        widened = bool(predicates)
        if widened:
            params = base_params(criteria, page_size=WIDE_PAGE_SIZE, page=1)
        else:
            params = base_params(criteria, page_size=criteria.limit, page=criteria.page)

        if criteria.subdivision and criteria.subdivision.strip():
            resolution = self.resolver.resolve(criteria.subdivision.strip())
            scope_query(params, resolution, criteria.city, criteria.zip, self.settings.fallback_city)

        active_query, closed_query = status_queries(
            params, criteria, self._today(), self.settings.default_sold_lookback_days
        )
        polygon = map_polygon(criteria)
        primary, secondary = (active_query, closed_query) if active_query is not None else (closed_query, None)

        data, extra = self._execute(primary, secondary, polygon)
        raw = list(data.get("listings") or [])
        counts = [int(data.get("count") or 0)]
        if extra is not None:
            raw.extend(extra.get("listings") or [])
            counts.append(int(extra.get("count") or 0))
        total = sum(counts)
        # each family is paged separately, so the longer one sets the page count
        total_pages = max(math.ceil(c / criteria.limit) for c in counts)

        if widened:
            kept = apply_post_filters(raw, predicates)
            total = len(kept)
            start = (criteria.page - 1) * criteria.limit
            raw = kept[start : start + criteria.limit]
            total_pages = math.ceil(total / criteria.limit)

        listings = [normalize_listing(r, self.settings.repliers_cdn_url) for r in raw]
        LOGGER.info(
            "cma_search total=%d returned=%d page=%d widened=%s geometry=%s",
            total,
            len(listings),
            criteria.page,
            widened,
            polygon is not None,
        )
        return SearchResponse(
            listings=listings,
            total=total,
            page=criteria.page,
            total_pages=total_pages,
            results_per_page=criteria.limit if len(counts) == 1 or widened else len(listings),
        )

    def _send(self, params: QueryParams, polygon: Optional[List[List[float]]]) -> Dict[str, Any]:
        if polygon is not None:
            return self.client.search_map(params, polygon)
        return self.client.search(params)

    def _execute(
        self,
        primary: QueryParams,
        secondary: Optional[QueryParams],
        polygon: Optional[List[List[float]]],
    ):
        """Run the primary query and the optional closed merge side by side."""

        with ThreadPoolExecutor(max_workers=2) as pool:
            primary_future = pool.submit(self._send, primary, polygon)
            secondary_future = pool.submit(self._send, secondary, polygon) if secondary is not None else None
            try:
                data = primary_future.result()
            except UpstreamError as exc:
                raise UpstreamError("Failed to search properties") from exc
            extra = None
            if secondary_future is not None:
                try:
                    extra = secondary_future.result()
                except Exception as exc:
                    LOGGER.warning("closed_merge_skipped error=%s", exc)
        return data, extra


__all__ = ["ListingsQueryComposer", "MLS_LOOKUP_PAGE_SIZE"]
