"""Timezone helpers for availability search."""

import logging
from datetime import datetime
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

FALLBACK_TIMEZONE = "UTC"


@lru_cache(maxsize=64)
def resolve_zone(name: str | None) -> ZoneInfo:
    """Look up an IANA zone, falling back to UTC for unknown names."""
    if not name:
        return ZoneInfo(FALLBACK_TIMEZONE)
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}, falling back to {FALLBACK_TIMEZONE}")
        return ZoneInfo(FALLBACK_TIMEZONE)


def zone_label(name: str | None) -> str:
    """The name to show for a zone; unknown zones show the fallback."""
    return resolve_zone(name).key


def local_hour(dt: datetime, zone: str | None) -> float:
    """Hour of day in a zone as a decimal (9:30 -> 9.5)."""
    local = dt.astimezone(resolve_zone(zone))
    return local.hour + local.minute / 60


def within_hours(start: datetime, end: datetime, zone: str | None, hours_start: float, hours_end: float) -> bool:
    """
    Whether [start, end) sits inside the local working window of a zone.

    The end is measured from the start's local day, so a slot finishing at
    midnight reads as 24:00 rather than 00:00.
    """
    start_hour = local_hour(start, zone)
    end_hour = start_hour + (end - start).total_seconds() / 3600
    return start_hour >= hours_start and end_hour <= hours_end


def format_in_zone(dt: datetime, zone: str | None) -> str:
    """Short local label, e.g. 'Mon 9:30 AM'."""
    local = dt.astimezone(resolve_zone(zone))
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{local.strftime('%a')} {hour}:{local.minute:02d} {suffix}"
