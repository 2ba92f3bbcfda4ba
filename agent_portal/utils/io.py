"""IO helpers for loading bundled data assets into pandas DataFrames."""

from __future__ import annotations

import os

import pandas as pd

from ..config import PROJECT_ROOT
from .logging import get_logger

LOGGER = get_logger("utils.io")

DATA_DIR = os.getenv("DATA_DIR", str(PROJECT_ROOT / "data"))


def load_csv(name: str, dtype=None) -> pd.DataFrame:
    """Load a CSV by absolute path or by filename inside the data directory."""

    path = name if os.path.isabs(name) else os.path.join(DATA_DIR, name)
    if not os.path.exists(path):
        raise FileNotFoundError(f"CSV not found: {path}")
    LOGGER.debug("loading_csv path=%s", path)
    return pd.read_csv(path, dtype=dtype)


__all__ = ["load_csv", "DATA_DIR"]
