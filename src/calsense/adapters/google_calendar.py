"""Google Calendar API adapter (read-only)."""

import logging
from datetime import datetime
from pathlib import Path

from calsense.core.events import Event

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]
MAX_RESULTS = 2500


class GoogleCalendarAdapter:
    """Fetches events from Google Calendar via the API."""

    def __init__(
        self,
        config_folder: str,
        label: str | None = None,
        calendars: list[str] | None = None,
        timezone: str = "UTC",
    ):
        self.config_folder = config_folder
        self.label = label or Path(config_folder).name
        self.calendars = calendars
        self.timezone = timezone
        self._token_path = Path(config_folder).expanduser() / "token.json"

    def _get_credentials(self):
        """Load credentials from token.json, refreshing if needed."""
        from google.auth.transport.requests import Request
        from google.oauth2.credentials import Credentials

        if not self._token_path.exists():
            logger.warning(f"No token.json for {self.label}")
            return None

        creds = Credentials.from_authorized_user_file(str(self._token_path), SCOPES)

        if creds.expired and creds.refresh_token:
            try:
                creds.refresh(Request())
                self._token_path.write_text(creds.to_json())
                self._token_path.chmod(0o600)
            except Exception as e:
                logger.warning(f"Failed to refresh token for {self.label}: {e}")
                return None

        return creds

    def _build_service(self):
        """Build a Google Calendar API service."""
        from googleapiclient.discovery import build

        creds = self._get_credentials()
        if not creds:
            return None
        return build("calendar", "v3", credentials=creds)

    def _resolve_calendar_ids(self, service) -> list[str]:
        """Resolve display name filters to calendar IDs."""
        if not self.calendars:
            return ["primary"]

        result = service.calendarList().list().execute()
        cal_map = {entry["summary"]: entry["id"] for entry in result.get("items", [])}

        ids = []
        for name in self.calendars:
            if name in cal_map:
                ids.append(cal_map[name])
            else:
                logger.warning(f"Calendar '{name}' not found for {self.label}")
        return ids or ["primary"]

    def fetch_range(self, start: datetime, end: datetime) -> list[Event]:
        """Fetch expanded event instances in [start, end)."""
        try:
            return self._fetch_range_api(start, end)
        except Exception as e:
            logger.warning(f"Google Calendar API error for {self.label}: {e}")
            return []

    def _fetch_range_api(self, start: datetime, end: datetime) -> list[Event]:
        service = self._build_service()
        if not service:
            return []

        events = []
        for cal_id in self._resolve_calendar_ids(service):
            result = (
                service.events()
                .list(
                    calendarId=cal_id,
                    timeMin=start.isoformat(),
                    timeMax=end.isoformat(),
                    singleEvents=True,
                    orderBy="startTime",
                    showDeleted=True,
                    maxResults=MAX_RESULTS,
                    timeZone=self.timezone,
                )
                .execute()
            )
            events.extend(Event.from_api(item, self.timezone) for item in result.get("items", []))

        return events
