"""Storage for market pulse snapshots: Supabase table or process memory."""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..config import Settings
from ..models.market import PulseSnapshot
from ..utils.logging import get_logger
from .supabase_client import create_supabase_client

LOGGER = get_logger("db.snapshots")

_COLUMNS = ("total_properties", "active", "active_under_contract", "pending", "closed", "last_updated_at")


def snapshot_to_row(snapshot: PulseSnapshot) -> Dict[str, Any]:
    row = snapshot.model_dump(include=set(_COLUMNS))
    row["last_updated_at"] = snapshot.last_updated_at.isoformat()
    return row


def row_to_snapshot(row: Dict[str, Any], office_name: Optional[str] = None) -> PulseSnapshot:
    return PulseSnapshot(
        total_properties=int(row.get("total_properties") or 0),
        active=int(row.get("active") or 0),
        active_under_contract=int(row.get("active_under_contract") or 0),
        pending=int(row.get("pending") or 0),
        closed=int(row.get("closed") or 0),
        last_updated_at=datetime.fromisoformat(str(row["last_updated_at"]).replace("Z", "+00:00")),
        office_name=office_name,
    )


class MemorySnapshotRepository:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: List[Dict[str, Any]] = []

    def save(self, snapshot: PulseSnapshot) -> None:
        with self._lock:
            self._rows.append(snapshot_to_row(snapshot))

    def latest(self) -> Optional[PulseSnapshot]:
        with self._lock:
            if not self._rows:
                return None
            row = max(self._rows, key=lambda r: r["last_updated_at"])
        return row_to_snapshot(row)


class SupabaseSnapshotRepository:
    def __init__(self, client: Any, table: str) -> None:
        self.client = client
        self.table = table

    def save(self, snapshot: PulseSnapshot) -> None:
        self.client.table(self.table).insert(snapshot_to_row(snapshot)).execute()

    def latest(self) -> Optional[PulseSnapshot]:
        response = (
            self.client.table(self.table)
            .select("*")
            .order("last_updated_at", desc=True)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        if not rows:
            return None
        return row_to_snapshot(rows[0])


def create_snapshot_repository(settings: Settings):
    """Supabase when credentials are configured, otherwise process memory."""

    client = create_supabase_client(settings)
    if client is not None:
        LOGGER.info("Snapshot repository running in Supabase mode table=%s", settings.snapshot_table)
        return SupabaseSnapshotRepository(client, settings.snapshot_table)
    LOGGER.info("Snapshot repository running in memory mode")
    return MemorySnapshotRepository()


__all__ = [
    "MemorySnapshotRepository",
    "SupabaseSnapshotRepository",
    "create_snapshot_repository",
    "snapshot_to_row",
    "row_to_snapshot",
]
