"""Quiet hours: per-user windows during which notifications are suppressed."""
import logging
from datetime import datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from market_alerts.db import NotificationPreferences
from market_alerts.utils import parse_hhmm, utcnow

logger = logging.getLogger(__name__)


def is_quiet(prefs: NotificationPreferences, now_local: datetime | time) -> bool:
    """Whether now_local (the user's wall-clock time) falls in their quiet window.

    A window with start > end spans midnight. start == end is an empty window.
    """
    if not prefs.quiet_hours_enabled:
        return False
    if not prefs.quiet_hours_start or not prefs.quiet_hours_end:
        return False
    try:
        start = parse_hhmm(prefs.quiet_hours_start)
        end = parse_hhmm(prefs.quiet_hours_end)
    except ValueError:
        logger.warning(
            "Ignoring malformed quiet hours %r-%r for user %s",
            prefs.quiet_hours_start,
            prefs.quiet_hours_end,
            prefs.user_id,
        )
        return False

    now = now_local.hour * 60 + now_local.minute
    if start == end:
        return False
    if start < end:
        return start <= now < end
    return now >= start or now < end


def local_now(prefs: NotificationPreferences, now: datetime | None = None) -> datetime:
    """Convert a UTC instant (default: now) to the user's configured timezone."""
    now = now or utcnow()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    try:
        tz = ZoneInfo(prefs.timezone or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r for user %s; using UTC", prefs.timezone, prefs.user_id)
        tz = timezone.utc
    return now.astimezone(tz)
