"""HTTP client for the Repliers listings search API."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import requests

from ..config import Settings
from ..errors import ServiceNotConfigured, UpstreamError
from ..utils.logging import get_logger

LOGGER = get_logger("services.listings_client")

EMPTY_RESPONSE: Dict[str, Any] = {"count": 0, "listings": []}


class QueryParams:
    """Ordered multi-valued query string, the upstream expects repeated keys."""

    def __init__(self, items: Optional[Iterable[Tuple[str, Any]]] = None, **kwargs: Any) -> None:
        self._items: List[Tuple[str, str]] = []
        for key, value in list(items or []) + list(kwargs.items()):
            self.add(key, value)

    def add(self, key: str, value: Any) -> "QueryParams":
        if value is None or value == "":
            return self
        if isinstance(value, bool):
            value = "true" if value else "false"
        self._items.append((key, str(value)))
        return self

    def set(self, key: str, value: Any) -> "QueryParams":
        self.remove(key)
        return self.add(key, value)

    def remove(self, *keys: str) -> "QueryParams":
        self._items = [(k, v) for k, v in self._items if k not in keys]
        return self

    def get(self, key: str) -> Optional[str]:
        for k, v in self._items:
            if k == key:
                return v
        return None

    def get_all(self, key: str) -> List[str]:
        return [v for k, v in self._items if k == key]

    def __contains__(self, key: object) -> bool:
        return any(k == key for k, _ in self._items)

    def copy(self) -> "QueryParams":
        return QueryParams(self._items)

    def items(self) -> List[Tuple[str, str]]:
        return list(self._items)

    def __repr__(self) -> str:
        return f"QueryParams({self._items!r})"


class ListingsClient:
    """Thin wrapper over ``requests`` with an explicit timeout and no retries.

    ``fetch_many`` runs a fixed batch of GETs on a thread pool; a branch that
    fails is logged and reported as ``None`` so callers can substitute a
    default instead of failing the whole aggregate.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.repliers.io/listings",
        timeout: float = 20.0,
        max_workers: int = 8,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not api_key:
            raise ServiceNotConfigured("Listings API not configured")
        self.base_url = base_url
        self.timeout = timeout
        self.max_workers = max(1, max_workers)
        self.session = session or requests.Session()
        self.session.headers["Accept"] = "application/json"
        self.session.headers["REPLIERS-API-KEY"] = api_key

    @classmethod
    def from_settings(cls, settings: Settings) -> "ListingsClient":
        return cls(
            api_key=settings.repliers_api_key or "",
            base_url=settings.repliers_base_url,
            timeout=settings.request_timeout,
            max_workers=settings.max_workers,
        )

    # ------------------------------------------------------------------
    def search(self, params: QueryParams) -> Dict[str, Any]:
        return self._request("GET", params)

    def search_map(self, params: QueryParams, polygon: List[List[float]]) -> Dict[str, Any]:
        return self._request("POST", params, body={"map": polygon})

    def fetch_many(self, batch: Mapping[str, QueryParams]) -> Dict[str, Optional[Dict[str, Any]]]:
        if not batch:
            return {}
        results: Dict[str, Optional[Dict[str, Any]]] = {}
        workers = min(self.max_workers, len(batch))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {name: pool.submit(self.search, params) for name, params in batch.items()}
            for name, future in futures.items():
                try:
                    results[name] = future.result()
                except Exception as exc:
                    LOGGER.warning("fanout_branch_failed branch=%s error=%s", name, exc)
                    results[name] = None
        return results

    # ------------------------------------------------------------------
    def _request(self, method: str, params: QueryParams, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = self.session.request(
                method,
                self.base_url,
                params=params.items(),
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            LOGGER.error("listings_request_failed method=%s error=%s", method, exc)
            raise UpstreamError("Listings service unavailable") from exc

        LOGGER.debug("listings_request method=%s status=%s url=%s", method, response.status_code, response.url)
        if not response.ok:
            LOGGER.error(
                "listings_request_rejected method=%s status=%s body=%s",
                method,
                response.status_code,
                response.text[:500],
            )
            raise UpstreamError(f"Listings API returned {response.status_code}")
        return response.json()


__all__ = ["EMPTY_RESPONSE", "QueryParams", "ListingsClient"]
