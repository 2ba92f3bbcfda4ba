"""Address-driven CMA search with relevance ranking against a subject property."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from ..errors import UpstreamError
from ..models.listings import FilterCriteria, NormalizedProperty, SearchResponse, SubjectProperty
from ..utils.address import parse_address, search_fallbacks
from ..utils.geo import distance_miles
from ..utils.logging import get_logger
from ..utils.normalize import normalize_listing
from .listings_client import ListingsClient, QueryParams
from .query_shapes import SORT_ORDER, WIDE_PAGE_SIZE, status_queries

LOGGER = get_logger("services.address_search")


def relevance_score(prop: NormalizedProperty, subject: Optional[SubjectProperty], today: date) -> int:
    score = 100
    if subject is None:
        return score

    if prop.latitude and prop.longitude and subject.latitude and subject.longitude:
        distance = distance_miles(subject.latitude, subject.longitude, prop.latitude, prop.longitude)
        if distance <= 0.5:
            score += 50
        elif distance <= 1:
            score += 30
        elif distance <= 2:
            score += 10
        elif distance > 5:
            score -= 20

    if abs(prop.beds - (subject.beds or 0)) <= 1:
        score += 25
    if abs(prop.baths - (subject.baths or 0)) <= 1:
        score += 25

    if subject.sqft and prop.sqft:
        diff = abs(prop.sqft - subject.sqft) / subject.sqft
        if diff <= 0.3:
            score += 20
        elif diff <= 0.5:
            score += 10
        elif diff > 1.0:
            score -= 15

    if prop.property_type and subject.property_type and prop.property_type == subject.property_type:
        score += 15

    if prop.status in ("Closed", "Sold"):
        score += 30

    if prop.sold_date:
        try:
            sold = datetime.fromisoformat(prop.sold_date[:10]).date()
        except ValueError:
            sold = None
        if sold is not None:
            months_ago = (today - sold).days / 30
            if months_ago <= 3:
                score += 20
            elif months_ago <= 6:
                score += 15
            elif months_ago <= 12:
                score += 5
    return score


def _street_line(listing: Dict[str, Any]) -> str:
    address = listing.get("address") or {}
    parts = [address.get("streetNumber"), address.get("streetName"), address.get("streetSuffix")]
    return " ".join(str(p) for p in parts if p).strip().lower()


class AddressSearch:
    """Walk the address fallback chain until a step yields an exact street match."""

    def __init__(self, client: ListingsClient, cdn_url: str, default_lookback_days: int) -> None:
        self.client = client
        self.cdn_url = cdn_url
        self.default_lookback_days = default_lookback_days

    def search(self, criteria: FilterCriteria, today: date) -> SearchResponse:
        term = (criteria.search or "").strip()
        statuses = criteria.statuses or ["Active", "Closed"]
        scoped = criteria.model_copy(update={"statuses": statuses})
        wanted = parse_address(term).street_line.lower()

        best: List[Dict[str, Any]] = []
        exact = False
        for index, fields in enumerate(search_fallbacks(term)):
            params = QueryParams(
                listings="true",
                type="Sale",
                resultsPerPage=WIDE_PAGE_SIZE,
                pageNum=1,
                sortBy=SORT_ORDER,
            )
            for key, value in fields.items():
                params.add(key, value)
            found = self._run_step(params, scoped, today)
            if not found:
                continue
            if wanted and any(wanted in _street_line(listing) for listing in found):
                best, exact = found, True
                LOGGER.info("address_search_exact step=%d count=%d", index + 1, len(found))
                break
            if not best:
                best = found

        if not best:
            return SearchResponse(
                listings=[],
                total=0,
                page=1,
                total_pages=0,
                results_per_page=criteria.limit,
                message="No properties found for the specified address",
            )

        normalized = [normalize_listing(listing, self.cdn_url) for listing in best]
        ranked = sorted(
            normalized,
            key=lambda prop: relevance_score(prop, criteria.subject_property, today),
            reverse=True,
        )[: criteria.limit]
        return SearchResponse(
            listings=ranked,
            total=len(ranked),
            page=1,
            total_pages=1,
            results_per_page=len(ranked),
            search_strategy="exact_match" if exact else "fallback_search",
        )

    def _run_step(self, params: QueryParams, criteria: FilterCriteria, today: date) -> List[Dict[str, Any]]:
        listings: List[Dict[str, Any]] = []
        for query in status_queries(params, criteria, today, self.default_lookback_days):
            if query is None:
                continue
            try:
                data = self.client.search(query)
            except UpstreamError as exc:
                LOGGER.warning("address_search_step_failed params=%s error=%s", query, exc)
                continue
            listings.extend(data.get("listings") or [])
        return listings


__all__ = ["AddressSearch", "relevance_score"]
