"""Numeric helpers shared by the market statistics routines.

Every helper returns 0 instead of NaN/inf so JSON payloads never carry
non-finite numbers.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

import numpy as np


def finite_values(values: Iterable[Optional[float]], positive_only: bool = False) -> List[float]:
    cleaned: List[float] = []
    for value in values:
        if value is None:
            continue
        try:
            number = float(value)
        except (TypeError, ValueError):
            continue
        if not np.isfinite(number):
            continue
        if positive_only and number <= 0:
            continue
        cleaned.append(number)
    return cleaned


def median(values: Iterable[Optional[float]], positive_only: bool = True) -> float:
    """Median of the finite sample; even-length samples average the middle pair."""

    arr = np.array(finite_values(values, positive_only=positive_only), dtype=float)
    if arr.size == 0:
        return 0.0
    return float(np.median(arr))


def mean(values: Iterable[Optional[float]], positive_only: bool = True) -> float:
    arr = np.array(finite_values(values, positive_only=positive_only), dtype=float)
    if arr.size == 0:
        return 0.0
    return float(np.mean(arr))


def safe_div(numerator: Optional[float], denominator: Optional[float]) -> float:
    if not numerator or not denominator:
        return 0.0
    result = float(numerator) / float(denominator)
    return result if np.isfinite(result) else 0.0


def months_of_supply(active_count: int, closed_last_90: int) -> float:
    """Active inventory over the trailing-quarter monthly absorption rate."""

    absorption = safe_div(closed_last_90, 3)
    return round(safe_div(active_count, absorption), 1)


__all__ = ["finite_values", "median", "mean", "safe_div", "months_of_supply"]
