"""Tests for the CLI."""

import json
from datetime import date, timedelta
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from calsense.cli import main
from calsense.config import Config

from conftest import OWNER

NOW = "2025-01-15T08:00:00Z"


def api_event(event_id, title, start, end, guests=("alice@example.com",), **extra):
    return {
        "id": event_id,
        "summary": title,
        "start": {"dateTime": start},
        "end": {"dateTime": end},
        "attendees": [{"email": OWNER, "self": True, "responseStatus": "accepted"}]
        + [{"email": g, "responseStatus": "accepted"} for g in guests],
        **extra,
    }


@pytest.fixture
def events_file(tmp_path):
    path = tmp_path / "events.json"
    path.write_text(
        json.dumps(
            {
                "items": [
                    api_event("a", "Planning", "2025-01-15T09:00:00Z", "2025-01-15T10:00:00Z"),
                    api_event("b", "Review", "2025-01-15T10:00:00Z", "2025-01-15T11:00:00Z"),
                    api_event("c", "Overlap", "2025-01-15T10:30:00Z", "2025-01-15T11:30:00Z"),
                ]
            }
        )
    )
    return str(path)


@pytest.fixture
def runner():
    with patch("calsense.cli.load_config", return_value=Config(owner_email=OWNER)):
        yield CliRunner()


def invoke(runner, *args):
    return runner.invoke(main, list(args))


class TestGaps:
    def test_json(self, runner, events_file):
        result = invoke(runner, "gaps", "--events", events_file, "--now", NOW, "--json")

        assert result.exit_code == 0
        gaps = json.loads(result.output)
        assert gaps[0]["status"] == "back-to-back"
        assert gaps[0]["before"]["title"] == "Planning"

    def test_text(self, runner, events_file):
        result = invoke(runner, "gaps", "--events", events_file, "--now", NOW, "--problems")

        assert result.exit_code == 0
        assert "Planning -> Review" in result.output
        assert "Add a buffer to prevent burnout" in result.output

    def test_no_events(self, runner, tmp_path):
        result = invoke(runner, "gaps", "--events", str(tmp_path / "missing.json"), "--now", NOW)
        assert result.exit_code == 0
        assert "No gaps to report." in result.output


class TestConflicts:
    def test_json(self, runner, events_file):
        result = invoke(runner, "conflicts", "--events", events_file, "--now", NOW, "--json")

        assert result.exit_code == 0
        conflicts = json.loads(result.output)
        assert len(conflicts) == 1
        assert conflicts[0]["overlap_minutes"] == 30
        assert conflicts[0]["is_complete"] is False


class TestHealth:
    def test_json(self, runner, events_file):
        result = invoke(runner, "health", "--events", events_file, "--now", NOW, "--json")

        assert result.exit_code == 0
        summary = json.loads(result.output)
        assert summary["back_to_back"] == 1
        assert summary["conflicts"] == 1

    def test_text(self, runner, events_file):
        result = invoke(runner, "health", "--events", events_file, "--now", NOW)
        assert "Health score:" in result.output


class TestAvailability:
    def test_json(self, runner, events_file):
        result = invoke(
            runner, "availability", "--events", events_file, "--now", NOW,
            "--range", "today", "--working-hours", "--json",
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["kind"] == "slots"
        starts = [s["start"] for s in data["slots"]]
        assert starts[:3] == [
            "2025-01-15T11:30:00+00:00",
            "2025-01-15T12:00:00+00:00",
            "2025-01-15T12:30:00+00:00",
        ]

    def test_configured_work_hours(self, events_file):
        config = Config(owner_email=OWNER, work_hours="08:00-16:00")
        with patch("calsense.cli.load_config", return_value=config):
            result = invoke(
                CliRunner(), "availability", "--events", events_file, "--now", NOW,
                "--range", "today", "--working-hours", "--json",
            )

        assert result.exit_code == 0
        starts = [s["start"] for s in json.loads(result.output)["slots"]]
        assert starts[:3] == [
            "2025-01-15T08:00:00+00:00",
            "2025-01-15T08:30:00+00:00",
            "2025-01-15T11:30:00+00:00",
        ]
        assert starts[-1] == "2025-01-15T15:30:00+00:00"

    def test_zone_constraint(self, runner, events_file):
        result = invoke(
            runner, "availability", "--events", events_file, "--now", NOW,
            "--range", "today", "--zone", "America/New_York=9-17", "--max-slots", "1", "--json",
        )

        assert result.exit_code == 0
        slot = json.loads(result.output)["slots"][0]
        assert slot["start"] == "2025-01-15T14:00:00+00:00"
        assert slot["labels"]["America/New_York"] == "Wed 9:00 AM"

    def test_invalid_date_exits_with_error(self, runner, events_file):
        result = invoke(runner, "availability", "--events", events_file, "--now", NOW, "--date", "someday")

        assert result.exit_code == 1
        assert "custom_dates" in result.output

    def test_invalid_now(self, runner, events_file):
        result = invoke(runner, "availability", "--events", events_file, "--now", "yesterday-ish")
        assert result.exit_code == 2


class TestCheckTimes:
    def test_json(self, runner, events_file):
        result = invoke(
            runner, "check-times", "2025-01-15T09:30:00Z", "2025-01-15T15:00:00Z",
            "--events", events_file, "--now", NOW, "--json",
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [c["status"] for c in data["checks"]] == ["conflict", "free"]
        assert data["checks"][0]["conflicting_events"][0]["title"] == "Planning"


class TestBuffers:
    def test_preview(self, runner, events_file):
        result = invoke(runner, "buffers", "--events", events_file, "--now", NOW, "--json")

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["action"] == "add_buffers_after"
        assert [p["event"]["title"] for p in data["previews"]] == ["Planning"]


class TestFocus:
    def test_recommendation(self, runner, events_file):
        result = invoke(runner, "focus", "--events", events_file, "--now", NOW, "--range", "today")

        assert result.exit_code == 0
        assert "Focus block:" in result.output


class TestRecurring:
    def test_json(self, runner, tmp_path):
        path = tmp_path / "events.json"
        first = date(2025, 1, 1)
        items = [
            api_event(
                f"w{i}",
                "Partner Sync",
                f"{first + timedelta(weeks=i)}T10:00:00Z",
                f"{first + timedelta(weeks=i)}T11:00:00Z",
                guests=("bob@partner.com",),
                recurringEventId="weekly",
                recurrence=["RRULE:FREQ=WEEKLY"],
            )
            for i in range(4)
        ]
        path.write_text(json.dumps(items))

        result = invoke(runner, "recurring", "--events", str(path), "--now", "2025-01-29T12:00:00Z", "--json")

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["summary"]["total_series"] == 1
        series = data["series"][0]
        assert series["cadence"] == "Weekly"
        assert series["instances"] == 4
        assert series["flags"] == ["external-no-end"]

    def test_none_found(self, runner, events_file):
        result = invoke(runner, "recurring", "--events", events_file, "--now", NOW)
        assert "No recurring series found." in result.output


class TestRelationships:
    def test_text(self, runner, tmp_path):
        path = tmp_path / "events.json"
        path.write_text(
            json.dumps(
                [
                    api_event("r1", "1:1", "2025-01-01T10:00:00Z", "2025-01-01T10:30:00Z"),
                    api_event("r2", "1:1", "2025-01-08T10:00:00Z", "2025-01-08T10:30:00Z"),
                ]
            )
        )

        result = invoke(runner, "relationships", "--events", str(path), "--now", NOW)

        assert result.exit_code == 0
        assert "alice@example.com" in result.output
        assert "healthy" in result.output
