from typing import Any, Optional


def to_int(v) -> Optional[int]:
    try:
        if v is None or v == "" or str(v).lower() == "null":
            return None
        return int(float(v))
    except (TypeError, ValueError):
        return None


def to_float(v) -> Optional[float]:
    try:
        if v is None or v == "" or str(v).lower() == "null":
            return None
        return float(v)
    except (TypeError, ValueError):
        return None


def to_str(v) -> str:
    return "" if v is None else str(v)


def to_flag(v: Any) -> bool:
    """Interpret MLS yes/no style values ("Y", "Yes", "true", 1) as booleans."""
    if isinstance(v, bool):
        return v
    if v is None:
        return False
    if isinstance(v, (int, float)):
        return v != 0
    return str(v).strip().lower() in {"y", "yes", "true", "1"}


def dig(obj: Any, *path: str) -> Any:
    """Walk nested dicts, returning None as soon as a key is missing."""
    current = obj
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current
