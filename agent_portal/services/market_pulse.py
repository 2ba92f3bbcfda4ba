"""Brokerage-office inventory snapshot behind ``GET /api/market-pulse``."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Callable, Optional

from ..config import OfficeConfig
from ..errors import UpstreamError
from ..models.market import PulseSnapshot
from ..utils.logging import get_logger
from .listings_client import ListingsClient, QueryParams
from .query_shapes import add_closed_status, sold_cutoff

LOGGER = get_logger("services.market_pulse")

CLOSED_WINDOW_DAYS = 30


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MarketPulseService:
    """Office counts fetched in parallel and cached as a snapshot.

    ``get_market_pulse`` serves the latest stored snapshot and only calls the
    listings API when asked to refresh or when nothing has been stored yet.
    """

    def __init__(
        self,
        client: ListingsClient,
        repository,
        office: OfficeConfig,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.client = client
        self.repository = repository
        self.office = office
        self._now = now

    def _office_query(self, **extra) -> QueryParams:
        return QueryParams(listings="false", type="Sale", officeId=self.office.office_id, **extra)

    def fetch(self) -> PulseSnapshot:
        today: date = self._now().date()
        batch = {
            "active": self._office_query(standardStatus="Active"),
            "active_under_contract": self._office_query(standardStatus="Active Under Contract"),
            "pending": self._office_query(standardStatus="Pending"),
            "closed": add_closed_status(self._office_query(), sold_cutoff(today, CLOSED_WINDOW_DAYS)),
        }
        results = self.client.fetch_many(batch)
        if results["active"] is None:
            raise UpstreamError("Failed to fetch market pulse data")

        counts = {name: int((data or {}).get("count") or 0) for name, data in results.items()}
        snapshot = PulseSnapshot(
            total_properties=counts["active"] + counts["active_under_contract"] + counts["pending"],
            active=counts["active"],
            active_under_contract=counts["active_under_contract"],
            pending=counts["pending"],
            closed=counts["closed"],
            last_updated_at=self._now(),
            office_name=self.office.name,
        )
        LOGGER.info(
            "market_pulse_fetched office=%s active=%d auc=%d pending=%d closed_30=%d",
            self.office.office_id,
            snapshot.active,
            snapshot.active_under_contract,
            snapshot.pending,
            snapshot.closed,
        )
        return snapshot

    def refresh(self) -> PulseSnapshot:
        snapshot = self.fetch()
        self.repository.save(snapshot)
        return snapshot

    def get_market_pulse(self, force_refresh: bool = False) -> PulseSnapshot:
        if force_refresh:
            return self.refresh()
        cached = self.repository.latest()
        if cached is None:
            LOGGER.info("market_pulse_cache_miss")
            return self.refresh()
        LOGGER.info("market_pulse_cache_hit age_hours=%.1f", self._age_hours(cached))
        return cached.model_copy(update={"office_name": self.office.name})

    def ensure_fresh(self, max_age_hours: float = 24) -> Optional[PulseSnapshot]:
        """Refresh when the stored snapshot is missing or older than ``max_age_hours``.

        Returns the new snapshot, or None when the stored one is still fresh.
        """

        cached = self.repository.latest()
        if cached is None or self._age_hours(cached) > max_age_hours:
            return self.refresh()
        return None

    def _age_hours(self, snapshot: PulseSnapshot) -> float:
        stamp = snapshot.last_updated_at
        if stamp.tzinfo is None:
            stamp = stamp.replace(tzinfo=timezone.utc)
        return (self._now() - stamp).total_seconds() / 3600


__all__ = ["MarketPulseService", "CLOSED_WINDOW_DAYS"]
