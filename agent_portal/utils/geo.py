"""Zip-code centroid lookup and distance helpers."""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .io import load_csv
from .logging import get_logger

LOGGER = get_logger("utils.geo")

EARTH_RADIUS_MILES = 3959.0

Centroid = Tuple[float, float]


class ZipCentroids:
    """Static zip -> (latitude, longitude) table for the serving region."""

    def __init__(self, table: Mapping[str, Centroid]) -> None:
        self._table: Dict[str, Centroid] = {str(k).zfill(5): (float(v[0]), float(v[1])) for k, v in table.items()}

    def __contains__(self, zipcode: object) -> bool:
        return str(zipcode).zfill(5) in self._table

    def __len__(self) -> int:
        return len(self._table)

    def get(self, zipcode: Optional[str]) -> Optional[Centroid]:
        if not zipcode:
            return None
        return self._table.get(str(zipcode).strip()[:5].zfill(5))

    def known(self, zipcodes: Iterable[str]) -> list[str]:
        return [z for z in zipcodes if self.get(z) is not None]

    @classmethod
    def from_csv(cls, path: str) -> "ZipCentroids":
        return _load_centroids(path)


@lru_cache(maxsize=4)
def _load_centroids(path: str) -> ZipCentroids:
    frame = load_csv(path, dtype={"zip": str})
    frame = frame.dropna(subset=["zip", "latitude", "longitude"])
    table = {
        str(row["zip"]).zfill(5): (float(row["latitude"]), float(row["longitude"]))
        for _, row in frame.iterrows()
    }
    LOGGER.info("zip_centroids_loaded path=%s count=%d", path, len(table))
    return ZipCentroids(table)


def distance_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates."""

    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


__all__ = ["ZipCentroids", "Centroid", "distance_miles"]
