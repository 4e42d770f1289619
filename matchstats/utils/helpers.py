"""
Utility helper functions for safe data handling.
"""
from datetime import datetime, timezone
from typing import Any, Optional


def safe_str(value: Any, default: str = "") -> str:
    """
    Safely convert value to string, handling None.

    Args:
        value: Any value to convert
        default: Default string if value is None

    Returns:
        String representation or default
    """
    if value is None:
        return default
    return str(value)


def safe_optional_str(value: Any) -> Optional[str]:
    """Convert to string, keeping None and empty values as None."""
    if value is None or value == "":
        return None
    return str(value)


def safe_int(value: Any, default: int = 0) -> int:
    """
    Safely convert value to int, handling None and invalid values.

    Args:
        value: Any value to convert
        default: Default int if conversion fails

    Returns:
        Integer or default
    """
    if value is None:
        return default
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


def clamp(value: int, lower: int, upper: int) -> int:
    """Clamp value into the inclusive range [lower, upper]."""
    return max(lower, min(upper, value))


def parse_timestamp(value: Any) -> Optional[float]:
    """
    Parse a source-reported instant into epoch seconds.

    Accepts numbers (already epoch seconds), ISO 8601 strings
    (a trailing 'Z' is treated as UTC) and datetimes. Naive values
    are assumed to be UTC.

    Returns:
        Epoch seconds, or None if the value cannot be parsed
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()
