"""Configuration management for calsense."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

CALSENSE_HOME = Path(os.environ.get("CALSENSE_HOME", Path.home() / "calsense"))
CONFIG_FILE = CALSENSE_HOME / "config" / "calsense.conf"


@dataclass
class GcalAccount:
    """A Google Calendar account configuration."""

    config_folder: str
    label: str | None = None
    calendars: list[str] = field(default_factory=list)


@dataclass
class Config:
    """calsense configuration."""

    timezone: str = "UTC"
    owner_email: str = ""
    work_hours: str = "09:00-17:00"
    default_duration: int = 30
    max_slots: int = 20
    baseline_work_week_hours: float = 40
    people_minutes_threshold: int = 2400
    stale_months: int = 6
    relationship_critical_days: int = 60
    gcal_accounts: list[GcalAccount] = field(default_factory=list)

    def work_hours_range(self) -> tuple[float, float]:
        """Parse ``work_hours`` ("09:00-17:30") into fractional start/end hours."""
        try:
            start_str, end_str = self.work_hours.split("-")
            start = _parse_clock(start_str)
            end = _parse_clock(end_str)
        except ValueError:
            logger.warning(f"Invalid WORK_HOURS {self.work_hours!r}, using 09:00-17:00")
            return 9.0, 17.0
        if not 0 <= start < end <= 24:
            logger.warning(f"Invalid WORK_HOURS {self.work_hours!r}, using 09:00-17:00")
            return 9.0, 17.0
        return start, end


def _parse_clock(value: str) -> float:
    hours, _, minutes = value.strip().partition(":")
    return int(hours) + int(minutes or 0) / 60


def _parse_accounts(value: str) -> list[GcalAccount]:
    # JSON format: [{"config_folder": "...", "label": "...", "calendars": [...]}]
    # Simple format: "path1:label1,path2:label2"
    accounts = []
    if value.startswith("["):
        try:
            for item in json.loads(value):
                accounts.append(
                    GcalAccount(
                        config_folder=item["config_folder"],
                        label=item.get("label"),
                        calendars=item.get("calendars", []),
                    )
                )
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.warning(f"Failed to parse GCAL_ACCOUNTS JSON: {e}")
        return accounts

    for entry in value.split(","):
        entry = entry.strip()
        if not entry:
            continue
        if ":" in entry:
            folder, label = entry.split(":", 1)
            accounts.append(GcalAccount(folder.strip(), label.strip()))
        else:
            accounts.append(GcalAccount(entry))
    return accounts


def _unquote(value: str) -> str:
    """Strip quotes, or an inline comment from an unquoted value."""
    if value[:1] in ('"', "'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def _number(key: str, value: str, current, cast=int):
    try:
        return cast(value)
    except ValueError:
        logger.warning(f"Invalid value for {key.upper()}: {value!r}, keeping {current}")
        return current


def load_config(path: Path | None = None) -> Config:
    """Load configuration from calsense.conf file."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "timezone":
                config.timezone = value
            case "owner_email":
                config.owner_email = value
            case "work_hours":
                config.work_hours = value
            case "default_duration":
                config.default_duration = _number(key, value, config.default_duration)
            case "max_slots":
                config.max_slots = _number(key, value, config.max_slots)
            case "baseline_work_week_hours":
                config.baseline_work_week_hours = _number(key, value, config.baseline_work_week_hours, float)
            case "people_minutes_threshold":
                config.people_minutes_threshold = _number(key, value, config.people_minutes_threshold)
            case "stale_months":
                config.stale_months = _number(key, value, config.stale_months)
            case "relationship_critical_days":
                config.relationship_critical_days = _number(key, value, config.relationship_critical_days)
            case "gcal_accounts":
                config.gcal_accounts = _parse_accounts(value)
            case _:
                logger.debug(f"Ignoring unknown config key {key}")

    return config
