"""Shared utilities for the price alert service."""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def to_decimal(value: object) -> Decimal | None:
    """Convert an upstream number to Decimal; None for missing, non-numeric or non-positive."""
    if value is None or isinstance(value, bool):
        return None
    try:
        # str() first so floats keep their printed precision (2005.1, not 2005.0999...)
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite() or price <= 0:
        return None
    return price


def parse_hhmm(value: str) -> int:
    """Parse "HH:MM" into minutes since midnight. Raises ValueError if malformed."""
    hours_str, sep, minutes_str = value.strip().partition(":")
    if not sep or not hours_str.isdigit() or not minutes_str.isdigit():
        raise ValueError(f"Invalid time of day '{value}', expected HH:MM")
    hours, minutes = int(hours_str), int(minutes_str)
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Invalid time of day '{value}', expected HH:MM")
    return hours * 60 + minutes
