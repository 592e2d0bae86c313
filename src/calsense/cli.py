"""calsense CLI - calendar interval intelligence."""

import functools
import json
import logging
import sys
from datetime import datetime, timezone as dt_timezone

import click

from .config import Config, load_config
from .core.actions import BufferPosition, FocusPreference, preview_buffers, recommend_focus_block
from .core.availability import AvailabilityRequest, DateRange, find_available_slots
from .core.conflicts import detect_conflicts
from .core.errors import InvalidRequestError
from .core.events import Event, parse_datetime
from .core.gaps import analyze_gaps
from .core.health import summarize_health
from .core.recurring import RangeMode, resolve_series, summarize_series
from .core.relationships import track_relationships
from .core.timezones import format_in_zone, resolve_zone
from .workflows import (
    availability_window,
    check_times,
    day_window,
    fetch_events,
    get_repository,
    relationship_window,
    series_options,
)


@click.group()
@click.version_option()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """calsense - calendar interval intelligence."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if verbose else logging.WARNING,
    )


def source_options(func):
    """Options shared by every command that reads events."""

    @click.option("--events", "events_path", default=None, type=click.Path(dir_okay=False),
                  help="Google Calendar JSON export to read instead of the API")
    @click.option("--now", "now_str", default=None, help="Reference time (ISO 8601), default: now")
    @click.option("--timezone", "tz_name", default=None, help="IANA timezone, default: from config")
    @click.option("--json", "as_json", is_flag=True, help="Output as JSON")
    @functools.wraps(func)
    def wrapper(events_path, now_str, tz_name, as_json, **kwargs):
        config = load_config()
        if tz_name:
            config.timezone = tz_name
        now = _parse_now(now_str, config.timezone)
        try:
            return func(config=config, events_path=events_path, now=now, as_json=as_json, **kwargs)
        except InvalidRequestError as e:
            click.echo(f"Error: {e.field}: {e.message}", err=True)
            sys.exit(1)

    return wrapper


def _parse_now(value: str | None, tz_name: str) -> datetime:
    if not value:
        return datetime.now(dt_timezone.utc)
    parsed = parse_datetime(value)
    if parsed is None:
        raise click.BadParameter(f"not an ISO 8601 time: {value!r}", param_hint="--now")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=resolve_zone(tz_name))
    return parsed


def _load(config: Config, events_path: str | None, start: datetime, end: datetime) -> list[Event]:
    return fetch_events(get_repository(config, events_path), start, end)


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2))


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def serialize_event(e: Event) -> dict:
    return {"id": e.id, "title": e.title, "start": _iso(e.start), "end": _iso(e.end)}


def _time(dt: datetime, tz_name: str) -> str:
    return dt.astimezone(resolve_zone(tz_name)).strftime("%a %H:%M")


@main.command()
@source_options
@click.option("--days", default=1, show_default=True, help="Number of days to analyze")
@click.option("--problems", is_flag=True, help="Only show back-to-back and short-buffer gaps")
def gaps(config: Config, events_path, now: datetime, as_json: bool, days: int, problems: bool):
    """Classify the gaps between consecutive meetings."""
    start, end = day_window(now, config.timezone, days)
    records = analyze_gaps(_load(config, events_path, start, end), config.owner_email or None)
    if problems:
        records = [g for g in records if g.is_problem]

    if as_json:
        _echo_json(
            [
                {
                    "before": serialize_event(g.before),
                    "after": serialize_event(g.after),
                    "gap_minutes": g.gap_minutes,
                    "status": g.status.value,
                    "recommendation": g.recommendation,
                    "is_current_meeting": g.is_current_meeting,
                    "is_next_meeting": g.is_next_meeting,
                }
                for g in records
            ]
        )
        return

    if not records:
        click.echo("No gaps to report.")
        return

    for gap in records:
        marker = "!" if gap.is_problem else " "
        line = f"[{marker}] {_time(gap.before.end, config.timezone)} {gap.before.title} -> {gap.after.title}"
        line += f" ({gap.gap_minutes} min, {gap.status.value})"
        click.echo(line)
        if gap.recommendation:
            click.echo(f"      {gap.recommendation}")


@main.command()
@source_options
@click.option("--days", default=7, show_default=True, help="Number of days to analyze")
def conflicts(config: Config, events_path, now: datetime, as_json: bool, days: int):
    """List overlapping events."""
    start, end = day_window(now, config.timezone, days)
    found = detect_conflicts(_load(config, events_path, start, end), config.owner_email or None)

    if as_json:
        _echo_json(
            [
                {
                    "first": serialize_event(c.first),
                    "second": serialize_event(c.second),
                    "overlap_start": _iso(c.overlap_start),
                    "overlap_end": _iso(c.overlap_end),
                    "overlap_minutes": c.overlap_minutes,
                    "first_is_meeting": c.first_is_meeting,
                    "second_is_meeting": c.second_is_meeting,
                    "is_complete": c.is_complete,
                }
                for c in found
            ]
        )
        return

    if not found:
        click.echo("No conflicts.")
        return

    for c in found:
        kind = "complete" if c.is_complete else "partial"
        click.echo(
            f"{_time(c.overlap_start, config.timezone)} {c.first.title} / {c.second.title}"
            f" ({c.overlap_minutes} min, {kind})"
        )


@main.command()
@source_options
@click.option("--days", default=1, show_default=True, help="Number of days to analyze")
def health(config: Config, events_path, now: datetime, as_json: bool, days: int):
    """Score how sustainable the schedule is."""
    start, end = day_window(now, config.timezone, days)
    summary = summarize_health(_load(config, events_path, start, end), config.owner_email or None)

    if as_json:
        _echo_json(
            {
                "score": summary.score,
                "label": summary.label,
                "message": summary.message,
                "total_events": summary.total_events,
                "total_meetings": summary.total_meetings,
                "meeting_hours": summary.meeting_hours,
                "back_to_back": summary.back_to_back_count,
                "insufficient_buffer": summary.insufficient_buffer_count,
                "focus_blocks": summary.focus_block_count,
                "conflicts": len(summary.conflicts),
            }
        )
        return

    click.echo(f"Health score: {summary.score}/100 ({summary.label})")
    click.echo(summary.message)
    click.echo(f"  Meetings: {summary.total_meetings} ({summary.meeting_hours:.1f}h)")
    click.echo(f"  Back-to-back: {summary.back_to_back_count}")
    click.echo(f"  Short buffers: {summary.insufficient_buffer_count}")
    click.echo(f"  Focus blocks: {summary.focus_block_count}")
    click.echo(f"  Conflicts: {len(summary.conflicts)}")


def _parse_zone(config: Config, value: str) -> dict:
    """``Europe/London`` or ``Europe/London=8-16``; hours default to WORK_HOURS."""
    zone, _, hours = value.partition("=")
    if hours:
        start, _, end = hours.partition("-")
        return {"timezone": zone, "hours_start": start, "hours_end": end}
    start, end = config.work_hours_range()
    return {"timezone": zone, "hours_start": start, "hours_end": end}


def _build_request(config: Config, date_range, dates, duration, zones, working_hours, max_slots) -> AvailabilityRequest:
    return AvailabilityRequest.from_dict(
        {
            "date_range": date_range,
            "custom_dates": list(dates),
            "duration": duration if duration is not None else config.default_duration,
            "timezone_constraints": [_parse_zone(config, z) for z in zones],
            "working_hours_only": working_hours,
            "owner_email": config.owner_email or None,
            "baseline_work_week_hours": config.baseline_work_week_hours,
            "max_slots": max_slots if max_slots is not None else config.max_slots,
            "work_hours": config.work_hours_range(),
        }
    )


@main.command()
@source_options
@click.option("--range", "date_range", type=click.Choice([r.value for r in DateRange]), default=None,
              help="Date range to search, default: this week")
@click.option("--date", "dates", multiple=True, help="Specific date (YYYY-MM-DD), repeatable")
@click.option("--duration", type=int, default=None, help="Meeting length in minutes")
@click.option("--zone", "zones", multiple=True, help="Attendee timezone, optionally ZONE=START-END hours")
@click.option("--working-hours", is_flag=True, help="Only suggest slots within working hours")
@click.option("--max-slots", type=int, default=None, help="Maximum number of slots")
def availability(config: Config, events_path, now: datetime, as_json: bool,
                 date_range, dates, duration, zones, working_hours, max_slots):
    """Find open slots for a meeting."""
    request = _build_request(config, date_range, dates, duration, zones, working_hours, max_slots)
    start, end = availability_window(request, now, config.timezone)
    result = find_available_slots(_load(config, events_path, start, end), request, now, config.timezone)

    if as_json:
        _echo_json(
            {
                "kind": result.kind.value,
                "window": {"start": _iso(result.window.start), "end": _iso(result.window.end),
                           "label": result.window.label},
                "duration_minutes": result.duration_minutes,
                "working_hours_only": result.working_hours_only,
                "slots": [
                    {
                        "start": _iso(s.start),
                        "end": _iso(s.end),
                        "labels": {label.timezone: label.formatted for label in s.labels},
                    }
                    for s in result.slots
                ],
            }
        )
        return

    click.echo(result.summary)
    for slot in result.slots:
        click.echo("  " + " | ".join(f"{label.formatted} ({label.timezone})" for label in slot.labels))


@main.command("check-times")
@source_options
@click.argument("times", nargs=-1, required=True)
@click.option("--duration", type=int, default=None, help="Length of each proposed time in minutes")
def check_times_cmd(config: Config, events_path, now: datetime, as_json: bool, times, duration):
    """Check proposed start times (ISO 8601) against the calendar."""
    proposed = [{"start": t, "duration_minutes": duration} for t in times]
    tz = resolve_zone(config.timezone)
    starts = [
        p if p.tzinfo else p.replace(tzinfo=tz)
        for p in (parse_datetime(t) for t in times)
        if p is not None
    ]
    events = []
    if starts:
        start = day_window(min(starts), config.timezone)[0]
        end = day_window(max(starts), config.timezone)[1]
        events = _load(config, events_path, start, end)
    result = check_times(events, proposed, config)

    if as_json:
        _echo_json(
            {
                "kind": result.kind.value,
                "checks": [
                    {
                        "start": c.proposed.start,
                        "status": c.status.value,
                        "conflicting_events": [serialize_event(e) for e in c.conflicting_events],
                    }
                    for c in result.checks
                ],
            }
        )
        return

    click.echo(result.summary)
    for c in result.checks:
        titles = ", ".join(e.title for e in c.conflicting_events)
        suffix = f" ({titles})" if titles else ""
        click.echo(f"  {c.proposed.start}: {c.status.value}{suffix}")


@main.command()
@source_options
@click.option("--days", default=1, show_default=True, help="Number of days to analyze")
@click.option("--position", type=click.Choice([p.value for p in BufferPosition]), default="after",
              show_default=True)
@click.option("--minutes", default=15, show_default=True, help="Buffer length")
def buffers(config: Config, events_path, now: datetime, as_json: bool, days: int, position: str, minutes: int):
    """Preview buffers around back-to-back meetings (nothing is changed)."""
    start, end = day_window(now, config.timezone, days)
    records = analyze_gaps(_load(config, events_path, start, end), config.owner_email or None)
    result = preview_buffers(records, BufferPosition(position), minutes)

    if as_json:
        _echo_json(
            {
                "kind": result.kind.value,
                "action": result.action,
                "previews": [
                    {
                        "event": serialize_event(p.event),
                        "block_start": _iso(p.block_start),
                        "block_end": _iso(p.block_end),
                        "proposed_change": p.proposed_change,
                    }
                    for p in result.previews
                ],
            }
        )
        return

    click.echo(result.summary)
    for p in result.previews:
        click.echo(f"  {p.event.title}: {p.proposed_change}")


@main.command()
@source_options
@click.option("--range", "date_range", type=click.Choice([r.value for r in DateRange]), default=None)
@click.option("--preference", type=click.Choice([p.value for p in FocusPreference]), default="morning",
              show_default=True)
@click.option("--duration", default=120, show_default=True, help="Focus block length in minutes")
def focus(config: Config, events_path, now: datetime, as_json: bool, date_range, preference: str, duration: int):
    """Recommend a focus block."""
    request = _build_request(config, date_range, (), duration, (), True, None)
    start, end = availability_window(request, now, config.timezone)
    slot = recommend_focus_block(
        _load(config, events_path, start, end), request, now, config.timezone,
        FocusPreference(preference), duration,
    )

    if as_json:
        _echo_json({"start": _iso(slot.start), "end": _iso(slot.end)} if slot else None)
        return

    if slot is None:
        click.echo("No room for a focus block.")
        return
    click.echo(f"Focus block: {format_in_zone(slot.start, config.timezone)} for {slot.duration_minutes} min")


@main.command()
@source_options
@click.option("--forward", is_flag=True, help="Measure the next 30 days instead of the last 30")
def recurring(config: Config, events_path, now: datetime, as_json: bool, forward: bool):
    """Analyze recurring meeting series."""
    options = series_options(config, now, RangeMode.FORWARD if forward else RangeMode.RETRO)
    events = _load(config, events_path, options.window_start, options.window_end)
    series = resolve_series(events, options)
    summary = summarize_series(series, config.baseline_work_week_hours)

    if as_json:
        _echo_json(
            {
                "summary": {
                    "total_series": summary.total_series,
                    "weekly_hours": summary.weekly_hours,
                    "monthly_hours": summary.monthly_hours,
                    "people_hours": summary.people_hours,
                    "percent_of_work_week": summary.percent_of_work_week,
                    "internal_series": summary.internal_series,
                    "external_series": summary.external_series,
                    "placeholder_series": summary.placeholder_series,
                    "flagged_series": summary.flagged_series,
                    "flag_counts": summary.flag_counts,
                },
                "series": [
                    {
                        "key": s.key,
                        "title": s.title,
                        "organizer": s.organizer_email,
                        "cadence": s.cadence.value,
                        "average_gap_days": s.average_gap_days,
                        "instances": s.metrics.total_instances,
                        "weekly_minutes": s.metrics.weekly_minutes,
                        "monthly_minutes": s.metrics.monthly_minutes,
                        "people_hours_per_month": s.metrics.people_hours_per_month,
                        "acceptance_rate": s.metrics.acceptance_rate,
                        "cancellation_rate": s.metrics.cancellation_rate,
                        "flags": [f.value for f in s.flags],
                        "is_placeholder": s.is_placeholder,
                        "last_occurrence": _iso(s.last_occurrence),
                        "next_occurrence": _iso(s.next_occurrence),
                    }
                    for s in series
                ],
            }
        )
        return

    if not series:
        click.echo("No recurring series found.")
        return

    click.echo(
        f"{summary.total_series} series, {summary.weekly_hours:.1f}h/week "
        f"({summary.percent_of_work_week:.0f}% of a work week)"
    )
    for s in series:
        flags = f" [{', '.join(f.value for f in s.flags)}]" if s.flags else ""
        click.echo(f"  {s.title} - {s.cadence.value}, {s.metrics.monthly_minutes:.0f} min/month{flags}")


@main.command()
@source_options
def relationships(config: Config, events_path, now: datetime, as_json: bool):
    """Track one-on-one meeting cadence."""
    start, end = relationship_window(now)
    snapshots = track_relationships(
        _load(config, events_path, start, end),
        config.owner_email or None,
        now,
        critical_days=config.relationship_critical_days,
    )

    if as_json:
        _echo_json(
            [
                {
                    "email": s.email,
                    "name": s.name,
                    "status": s.status.value,
                    "average_gap_days": s.average_gap_days,
                    "days_since_last": s.days_since_last,
                    "days_until_next": s.days_until_next,
                    "is_recurring": s.is_recurring,
                    "last_meetings": [serialize_event(e) for e in s.last_meetings],
                    "next_meetings": [serialize_event(e) for e in s.next_meetings],
                }
                for s in snapshots
            ]
        )
        return

    if not snapshots:
        click.echo("No one-on-ones found.")
        return

    for s in snapshots:
        since = f"{s.days_since_last:.0f}d ago" if s.days_since_last is not None else "never"
        upcoming = f", next in {s.days_until_next:.0f}d" if s.days_until_next is not None else ""
        click.echo(f"[{s.status.value:8}] {s.name or s.email} - last {since}{upcoming}")
