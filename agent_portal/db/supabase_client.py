"""Supabase connection backing the market pulse snapshot table."""

from __future__ import annotations

from typing import Optional

from supabase import Client, create_client

from ..config import Settings
from ..errors import ServiceNotConfigured
from ..utils.logging import get_logger

LOGGER = get_logger("db.supabase")


def create_supabase_client(settings: Settings) -> Optional[Client]:
    """Connect with the service-role key when one is set, else the anon key.

    Returns None when either half of the credentials is missing. Credentials
    that are present but rejected raise ``ServiceNotConfigured`` rather than
    silently dropping snapshots into process memory.
    """

    if not settings.supabase_url or not settings.supabase_key:
        return None
    try:
        client = create_client(settings.supabase_url, settings.supabase_key)
    except Exception as exc:
        LOGGER.error("supabase_connect_failed url=%s error=%s", settings.supabase_url, exc)
        raise ServiceNotConfigured("Snapshot store not configured") from exc
    LOGGER.info("supabase_connected url=%s table=%s", settings.supabase_url, settings.snapshot_table)
    return client


__all__ = ["create_supabase_client"]
