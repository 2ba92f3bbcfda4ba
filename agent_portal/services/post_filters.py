"""Client-side filters for criteria the listings API cannot express.

They run on raw listings because the fields they read (half baths, HOA fee,
room levels, remarks) are not carried by ``NormalizedProperty``.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Optional

from ..models.listings import FilterCriteria
from ..utils.coerce import dig, to_flag, to_float, to_int
from ..utils.normalize import listing_subdivision

RawListing = Dict[str, Any]
Predicate = Callable[[RawListing], bool]

PRIMARY_ON_MAIN_PHRASES = (
    "primary on main",
    "primary down",
    "primary suite on main",
    "main level primary",
    "main floor primary",
    "first floor primary",
    "master on main",
    "master down",
    "main floor master",
    "main level master",
    "first floor master",
)

_MAIN_LEVELS = {"main", "main level", "first", "1", "1st", "1st floor", "first floor", "ground"}
_BEDROOM_WORDS = re.compile(r"\b(primary|master)\b", re.IGNORECASE)


def full_baths(listing: RawListing) -> Optional[int]:
    return to_int(dig(listing, "details", "numBathrooms"))


def half_baths(listing: RawListing) -> Optional[int]:
    return to_int(dig(listing, "details", "numBathroomsHalf"))


def is_waterfront(listing: RawListing) -> bool:
    return to_flag(dig(listing, "details", "waterfront"))


def has_hoa(listing: RawListing) -> bool:
    fee = to_float(dig(listing, "details", "HOAFee"))
    if fee is None:
        fee = to_float(dig(listing, "condominium", "fees", "maintenance"))
    return bool(fee and fee > 0)


def _room_is_primary_on_main(room: Dict[str, Any]) -> bool:
    level = str(room.get("level") or "").strip().lower()
    if level not in _MAIN_LEVELS:
        return False
    label = " ".join(str(room.get(k) or "") for k in ("description", "type", "name"))
    return bool(_BEDROOM_WORDS.search(label)) and "bed" in label.lower()


def has_primary_on_main(listing: RawListing) -> bool:
    """Structured room match first, then a phrase search over the remarks."""

    rooms = listing.get("rooms") or []
    if isinstance(rooms, dict):
        rooms = list(rooms.values())
    if any(isinstance(room, dict) and _room_is_primary_on_main(room) for room in rooms):
        return True
    text = " ".join(
        str(value or "")
        for value in (
            dig(listing, "details", "description"),
            listing.get("description"),
            listing.get("publicRemarks"),
        )
    ).lower()
    return any(phrase in text for phrase in PRIMARY_ON_MAIN_PHRASES)


def subdivision_matches(term: str) -> Predicate:
    needle = term.strip().lower()

    def _match(listing: RawListing) -> bool:
        return needle in listing_subdivision(listing).lower()

    return _match


def build_predicates(criteria: FilterCriteria) -> List[Predicate]:
    predicates: List[Predicate] = []
    if criteria.min_full_baths:
        minimum = criteria.min_full_baths
        predicates.append(lambda l: (full_baths(l) or 0) >= minimum)
    if criteria.min_half_baths:
        minimum_half = criteria.min_half_baths
        predicates.append(lambda l: (half_baths(l) or 0) >= minimum_half)
    if criteria.waterfront:
        predicates.append(is_waterfront)
    if criteria.hoa is not None:
        wanted = criteria.hoa
        predicates.append(lambda l: has_hoa(l) == wanted)
    if criteria.primary_on_main:
        predicates.append(has_primary_on_main)
    if criteria.subdivision and criteria.subdivision.strip():
        predicates.append(subdivision_matches(criteria.subdivision))
    return predicates


def apply_post_filters(listings: List[RawListing], predicates: List[Predicate]) -> List[RawListing]:
    if not predicates:
        return list(listings)
    return [listing for listing in listings if all(p(listing) for p in predicates)]


__all__ = [
    "PRIMARY_ON_MAIN_PHRASES",
    "full_baths",
    "half_baths",
    "is_waterfront",
    "has_hoa",
    "has_primary_on_main",
    "subdivision_matches",
    "build_predicates",
    "apply_post_filters",
]
