"""Runtime configuration loaded from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CENTROIDS_PATH = PROJECT_ROOT / "data" / "zip_centroids.csv"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class OfficeConfig:
    office_id: str
    name: str


DEFAULT_OFFICE = OfficeConfig(office_id="ACT1518371", name="Spyglass Realty")


@dataclass(frozen=True)
class Settings:
    repliers_api_key: Optional[str] = None
    repliers_base_url: str = "https://api.repliers.io/listings"
    repliers_cdn_url: str = "https://cdn.repliers.io"
    request_timeout: float = 20.0
    max_workers: int = 8
    fallback_city: str = "Austin"
    default_sold_lookback_days: int = 180
    office: OfficeConfig = field(default_factory=lambda: DEFAULT_OFFICE)
    zip_centroids_path: str = str(DEFAULT_CENTROIDS_PATH)
    google_api_key: Optional[str] = None
    llm_model: str = "gemini-2.5-flash"
    snapshot_table: str = "market_pulse_snapshots"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            repliers_api_key=os.getenv("REPLIERS_API_KEY") or os.getenv("IDX_GRID_API_KEY"),
            repliers_base_url=os.getenv("REPLIERS_BASE_URL", "https://api.repliers.io/listings"),
            repliers_cdn_url=os.getenv("REPLIERS_CDN_URL", "https://cdn.repliers.io"),
            request_timeout=_env_float("LISTINGS_TIMEOUT_SECONDS", 20.0),
            max_workers=_env_int("LISTINGS_MAX_WORKERS", 8),
            fallback_city=os.getenv("FALLBACK_CITY", "Austin"),
            default_sold_lookback_days=_env_int("DEFAULT_SOLD_LOOKBACK_DAYS", 180),
            office=OfficeConfig(
                office_id=os.getenv("OFFICE_ID", DEFAULT_OFFICE.office_id),
                name=os.getenv("OFFICE_NAME", DEFAULT_OFFICE.name),
            ),
            zip_centroids_path=os.getenv("ZIP_CENTROIDS_PATH", str(DEFAULT_CENTROIDS_PATH)),
            google_api_key=os.getenv("GOOGLE_API_KEY"),
            llm_model=os.getenv("LLM_MODEL", "gemini-2.5-flash"),
            snapshot_table=os.getenv("SNAPSHOT_TABLE", "market_pulse_snapshots"),
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_ANON_KEY"),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None


__all__ = ["OfficeConfig", "Settings", "get_settings", "reset_settings", "PROJECT_ROOT"]
