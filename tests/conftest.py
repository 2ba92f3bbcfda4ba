import threading
from datetime import date
from typing import Any, Dict, List, Optional

import pytest

from agent_portal.config import OfficeConfig, Settings
from agent_portal.errors import UpstreamError
from agent_portal.services.listings_client import EMPTY_RESPONSE, ListingsClient, QueryParams
from agent_portal.utils.geo import ZipCentroids

TODAY = date(2025, 6, 15)


class FakeListingsClient(ListingsClient):
    """Serves canned responses keyed on query parameters and records every call.

    Each route is ``(match, response)``; ``match`` maps a parameter name to a
    value that must be among that parameter's values, or to None when the
    parameter must be absent. The first matching route wins. A response that
    is an exception instance is raised instead of returned.
    """

    def __init__(self, routes=None) -> None:
        super().__init__(api_key="test-key", max_workers=4)
        self.routes: List = list(routes or [])
        self.calls: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def route(self, match: Dict[str, Any], response: Any) -> "FakeListingsClient":
        self.routes.append((match, response))
        return self

    def _request(self, method: str, params: QueryParams, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        with self._lock:
            self.calls.append({"method": method, "params": params.copy(), "body": body})
        for match, response in self.routes:
            if all(
                (key not in params) if wanted is None else (str(wanted) in params.get_all(key))
                for key, wanted in match.items()
            ):
                if isinstance(response, Exception):
                    raise response
                return response
        return dict(EMPTY_RESPONSE)

    def calls_with(self, **match: Any) -> List[Dict[str, Any]]:
        return [
            call
            for call in self.calls
            if all(str(v) in call["params"].get_all(k) for k, v in match.items())
        ]


def make_listing(mls: str, **overrides: Any) -> Dict[str, Any]:
    listing = {
        "mlsNumber": mls,
        "listPrice": 500000,
        "standardStatus": "Active",
        "listDate": "2025-05-01",
        "daysOnMarket": 20,
        "address": {
            "streetNumber": "100",
            "streetName": "Main",
            "streetSuffix": "St",
            "city": "Austin",
            "state": "TX",
            "zip": "78704",
            "neighborhood": "Travis Heights",
        },
        "details": {"numBedrooms": 3, "numBathrooms": 2, "sqft": 2000, "yearBuilt": 1995},
        "map": {"latitude": 30.25, "longitude": -97.75},
        "images": ["IMG-" + mls + "_1.jpg"],
    }
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(listing.get(key), dict):
            listing[key] = {**listing[key], **value}
        else:
            listing[key] = value
    return listing


def page(*listings: Dict[str, Any], count: Optional[int] = None) -> Dict[str, Any]:
    return {"count": len(listings) if count is None else count, "listings": list(listings)}


@pytest.fixture
def fake_client() -> FakeListingsClient:
    return FakeListingsClient()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        repliers_api_key="test-key",
        office=OfficeConfig(office_id="ACT1518371", name="Spyglass Realty"),
    )


@pytest.fixture
def centroids() -> ZipCentroids:
    return ZipCentroids(
        {
            "78704": (30.2430, -97.7650),
            "78745": (30.2070, -97.7960),
            "78739": (30.1820, -97.8900),
        }
    )


@pytest.fixture
def upstream_down() -> UpstreamError:
    return UpstreamError("Listings API returned 500")
