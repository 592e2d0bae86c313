"""Shared workflow layer between the CLI and the engine.

Resolves where events come from, picks the analysis window for each
operation, and hands accepted previews to an executor.
"""

import logging
from datetime import datetime, timedelta
from pathlib import Path

from .adapters import CompositeCalendarAdapter, JsonEventsFile
from .config import Config
from .core.availability import AvailabilityRequest, resolve_date_range
from .core.conflicts import ProposedTime, check_proposed_times
from .core.events import Event
from .core.recurring import RangeMode, SeriesOptions
from .core.results import ActionPreviewResult, ConflictCheckResult
from .core.timezones import resolve_zone
from .ports import ActionExecutor, CalendarRepository

logger = logging.getLogger(__name__)

SERIES_LOOKBACK_DAYS = 90
SERIES_LOOKAHEAD_DAYS = 30
RELATIONSHIP_LOOKBACK_DAYS = 180
RELATIONSHIP_LOOKAHEAD_DAYS = 60


def get_repository(config: Config, events_path: Path | str | None = None) -> CalendarRepository:
    """A JSON export when one is given, otherwise the configured Google accounts."""
    if events_path:
        return JsonEventsFile(events_path, timezone=config.timezone)
    if not config.gcal_accounts:
        logger.warning("No GCAL_ACCOUNTS configured and no events file given")
    return CompositeCalendarAdapter(config)


def fetch_events(repo: CalendarRepository, start: datetime, end: datetime) -> list[Event]:
    """Fetch events in [start, end), sorted by start."""
    events = repo.fetch_range(start, end)
    logger.debug(f"Fetched {len(events)} events between {start.isoformat()} and {end.isoformat()}")
    return sorted(events, key=lambda e: (e.start is None, e.start or start))


def day_window(now: datetime, timezone: str, days: int = 1) -> tuple[datetime, datetime]:
    """``days`` whole calendar days starting today in ``timezone``."""
    tz = resolve_zone(timezone)
    local = now.astimezone(tz)
    start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=days)


def availability_window(request: AvailabilityRequest, now: datetime, timezone: str) -> tuple[datetime, datetime]:
    """Fetch bounds for an availability search."""
    window = resolve_date_range(request, now, timezone)
    return window.start, window.end


def series_options(
    config: Config,
    now: datetime,
    range_mode: RangeMode = RangeMode.RETRO,
) -> SeriesOptions:
    """Series resolver options for a fetch window around ``now``."""
    return SeriesOptions(
        now=now,
        owner_email=config.owner_email or None,
        window_start=now - timedelta(days=SERIES_LOOKBACK_DAYS),
        window_end=now + timedelta(days=SERIES_LOOKAHEAD_DAYS),
        range_mode=range_mode,
        people_minutes_threshold=config.people_minutes_threshold,
        stale_months=config.stale_months,
    )


def relationship_window(now: datetime) -> tuple[datetime, datetime]:
    return (
        now - timedelta(days=RELATIONSHIP_LOOKBACK_DAYS),
        now + timedelta(days=RELATIONSHIP_LOOKAHEAD_DAYS),
    )


def check_times(events: list[Event], proposed: list[dict], config: Config) -> ConflictCheckResult:
    """Check proposed ``{start, end | durationMinutes}`` options against the calendar."""
    checks = check_proposed_times(
        events,
        [ProposedTime.from_dict(p) for p in proposed],
        default_duration=config.default_duration,
        owner_email=config.owner_email or None,
        tz=resolve_zone(config.timezone),
    )
    return ConflictCheckResult(checks=checks)


def apply_previews(result: ActionPreviewResult, executor: ActionExecutor) -> int:
    """Hand previewed changes to an executor; returns how many it applied."""
    if not result.previews:
        return 0
    applied = executor.apply(result.previews)
    if applied < len(result.previews):
        logger.warning(f"Applied {applied} of {len(result.previews)} previewed changes for {result.action}")
    else:
        logger.info(f"Applied {applied} changes for {result.action}")
    return applied
