"""Parse free-text street addresses into listings API search fields."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional

STREET_SUFFIXES = (
    "St", "Street", "Ave", "Avenue", "Blvd", "Boulevard", "Dr", "Drive", "Rd", "Road",
    "Ln", "Lane", "Ct", "Court", "Pl", "Place", "Cir", "Circle", "Way", "Pkwy", "Parkway",
    "Trl", "Trail", "Path", "Pass", "Loop", "Bend", "Ridge", "Hill", "Creek", "Run",
    "Ter", "Terrace", "Sq", "Square", "Plaza", "Alley", "Walk", "Commons", "Green",
)

_SUFFIX_RE = re.compile(r"\b(" + "|".join(STREET_SUFFIXES) + r")\b", re.IGNORECASE)
_NUMBER_RE = re.compile(r"^(\d+[A-Za-z]?)\s*")
_STATE_ZIP_RE = re.compile(r"\s*([A-Z]{2})\s+(\d{5})(?:-\d{4})?$")


@dataclass
class ParsedAddress:
    street_number: Optional[str] = None
    street_name: Optional[str] = None
    street_suffix: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None

    @property
    def street_line(self) -> str:
        parts = [self.street_number, self.street_name, self.street_suffix]
        return " ".join(p for p in parts if p)


def _parse_street(street: str) -> ParsedAddress:
    street = street.strip()
    if not street:
        return ParsedAddress()
    number_match = _NUMBER_RE.match(street)
    number = number_match.group(1) if number_match else None
    remaining = _NUMBER_RE.sub("", street, count=1) if number_match else street
    suffix_match = _SUFFIX_RE.search(remaining)
    suffix = None
    name = remaining
    if suffix_match:
        suffix = suffix_match.group(1)
        name = _SUFFIX_RE.sub("", remaining, count=1)
    name = " ".join(name.split())
    return ParsedAddress(street_number=number, street_name=name or None, street_suffix=suffix)


def parse_address(full_address: str) -> ParsedAddress:
    """Parse e.g. "2402 Rockingham Cir, Austin, TX 78704"."""

    if not full_address or not full_address.strip():
        return ParsedAddress()
    parts = [p.strip() for p in full_address.strip().split(",")]
    if len(parts) < 2:
        return _parse_street(parts[0])

    parsed = _parse_street(parts[0])
    tail = ", ".join(parts[1:])
    match = _STATE_ZIP_RE.search(tail)
    if match:
        parsed.state = match.group(1)
        parsed.zip = match.group(2)
        city = tail[: match.start()].strip().rstrip(",").strip()
    else:
        city = parts[-1]
    parsed.city = city or None
    return parsed


def search_fallbacks(full_address: str) -> List[Dict[str, str]]:
    """Query-parameter sets ordered from most to least specific."""

    parsed = parse_address(full_address)
    fallbacks: List[Dict[str, str]] = []
    if parsed.street_number and parsed.street_name and parsed.zip:
        exact = {
            "streetNumber": parsed.street_number,
            "streetName": parsed.street_name,
            "zip": parsed.zip,
        }
        if parsed.street_suffix:
            exact["streetSuffix"] = parsed.street_suffix
        fallbacks.append(exact)
    if parsed.street_name and (parsed.city or parsed.zip):
        loose = {"streetName": parsed.street_name}
        if parsed.city:
            loose["city"] = parsed.city
        if parsed.zip:
            loose["zip"] = parsed.zip
        fallbacks.append(loose)
    fallbacks.append({"search": full_address.strip()})
    if parsed.zip:
        fallbacks.append({"zip": parsed.zip})
    return fallbacks


__all__ = ["ParsedAddress", "parse_address", "search_fallbacks"]
