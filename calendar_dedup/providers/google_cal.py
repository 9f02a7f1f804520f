"""Google Calendar provider using OAuth2."""

from __future__ import annotations

import dataclasses
import logging
import os
import threading
from datetime import date, datetime, time
from typing import Optional

from ..errors import AccessDenied, EventNotFound, ProviderError
from .base import AccessResult, CalendarEvent, CalendarKind, CalendarProvider, CalendarRef

logger = logging.getLogger(__name__)

BIRTHDAY_CALENDAR_SUFFIX = '#contacts@group.v.calendar.google.com'


def _parse_google_time(value: dict) -> Optional[datetime]:
    if 'dateTime' in value:
        return datetime.fromisoformat(value['dateTime'].replace('Z', '+00:00'))
    if 'date' in value:
        return datetime.combine(date.fromisoformat(value['date']), time.min).astimezone()
    return None


def calendar_kind(item: dict) -> CalendarKind:
    """Classify a calendarList entry."""
    cal_id = item.get('id', '')
    if cal_id.endswith(BIRTHDAY_CALENDAR_SUFFIX):
        return CalendarKind.BIRTHDAY
    if item.get('accessRole') in ('reader', 'freeBusyReader'):
        return CalendarKind.SUBSCRIPTION
    return CalendarKind.CALDAV


class GoogleCalendarProvider(CalendarProvider):
    """Google Calendar API provider."""

    SCOPES = ['https://www.googleapis.com/auth/calendar']

    def __init__(self, name: str, config: dict):
        super().__init__(name, config)
        self.credentials_file = config.get('credentials_file', '')
        self.calendar_ids = [c for c in config.get('calendar_ids', []) if c]
        self._service = None
        self._creds = None
        # the service shares one httplib2.Http, which is not thread-safe
        self._lock = threading.Lock()

    def request_access(self) -> AccessResult:
        try:
            from google.oauth2.credentials import Credentials
            from google_auth_oauthlib.flow import InstalledAppFlow
            from google.auth.transport.requests import Request
            from googleapiclient.discovery import build
        except ImportError:
            return AccessResult(
                False,
                "Google Calendar dependencies not installed. "
                "Run: pip install google-api-python-client google-auth-oauthlib",
            )

        from ..config import get_config_dir
        token_file = get_config_dir() / 'google_token.json'

        creds = None
        if token_file.exists():
            try:
                creds = Credentials.from_authorized_user_file(str(token_file), self.SCOPES)
            except ValueError as e:
                logger.warning("Ignoring unreadable Google token: %s", e)

        if not creds or not creds.valid:
            if creds and creds.expired and creds.refresh_token:
                try:
                    creds.refresh(Request())
                except Exception as e:
                    logger.warning("Google token refresh failed: %s", e)
                    creds = None

            if not creds:
                if not self.credentials_file or not os.path.exists(self.credentials_file):
                    return AccessResult(False, "Google credentials file not found. Download from Google Cloud Console.")
                try:
                    flow = InstalledAppFlow.from_client_secrets_file(
                        self.credentials_file, self.SCOPES
                    )
                    creds = flow.run_local_server(port=0)
                except Exception as e:
                    return AccessResult(False, f"Google OAuth failed: {e}")

            try:
                token_file.write_text(creds.to_json(), encoding='utf-8')
            except OSError as e:
                logger.warning("Could not save Google token: %s", e)

        try:
            self._service = build('calendar', 'v3', credentials=creds)
        except Exception as e:
            return AccessResult(False, f"Failed to build Google Calendar service: {e}")
        self._creds = creds
        self._connected = True
        return AccessResult(True)

    def disconnect(self):
        self._service = None
        self._creds = None
        self._connected = False

    def list_calendars(self, include_birthday: bool = False) -> list[CalendarRef]:
        if not self._service:
            raise AccessDenied("Not connected to Google Calendar")

        refs = []
        page_token = None
        try:
            while True:
                result = self._execute(self._service.calendarList().list(pageToken=page_token))
                for item in result.get('items', []):
                    if self.calendar_ids and item.get('id') not in self.calendar_ids:
                        continue
                    kind = calendar_kind(item)
                    if kind == CalendarKind.BIRTHDAY and not include_birthday:
                        continue
                    refs.append(CalendarRef(
                        id=item['id'],
                        title=item.get('summaryOverride') or item.get('summary', ''),
                        kind=kind,
                        source='Google',
                    ))
                page_token = result.get('nextPageToken')
                if not page_token:
                    break
        except Exception as e:
            raise ProviderError(f"Error listing Google calendars: {e}") from e
        return refs

    def fetch_events(
        self,
        start: datetime,
        end: datetime,
        calendars: list[CalendarRef],
    ) -> list[CalendarEvent]:
        if not self._service:
            raise AccessDenied("Not connected to Google Calendar")

        events = []
        for ref in calendars:
            page_token = None
            try:
                while True:
                    result = self._execute(self._service.events().list(
                        calendarId=ref.id,
                        timeMin=start.isoformat(),
                        timeMax=end.isoformat(),
                        maxResults=250,
                        singleEvents=True,
                        pageToken=page_token,
                    ))

                    for item in result.get('items', []):
                        ev = self._parse_google_event(item, ref)
                        if ev:
                            events.append(ev)

                    page_token = result.get('nextPageToken')
                    if not page_token:
                        break
            except Exception as e:
                raise ProviderError(f"Error fetching Google events from {ref.title}: {e}") from e

        return events

    def delete_event(self, event_id: str) -> bool:
        from googleapiclient.errors import HttpError

        if not self._service:
            raise AccessDenied("Not connected to Google Calendar")
        calendar_id, sep, google_id = event_id.partition('|')
        if not sep or not google_id:
            raise EventNotFound(event_id)
        try:
            self._execute(self._service.events().delete(
                calendarId=calendar_id,
                eventId=google_id,
            ))
        except HttpError as e:
            if e.resp.status in (404, 410):
                raise EventNotFound(event_id) from e
            raise ProviderError(f"Error deleting Google event: {e}") from e
        return True

    def _execute(self, request):
        """Run an API request; callers may be on a deletion worker thread."""
        with self._lock:
            return request.execute()

    @staticmethod
    def _parse_google_event(item: dict, ref: CalendarRef) -> Optional[CalendarEvent]:
        if item.get('status') == 'cancelled':
            return None
        start = _parse_google_time(item.get('start', {}))
        if start is None:
            return None
        end = _parse_google_time(item.get('end', {})) or start

        # Contact birthdays can also show up on the primary calendar.
        if item.get('eventType') == 'birthday' and not ref.is_birthday:
            ref = dataclasses.replace(ref, kind=CalendarKind.BIRTHDAY)

        return CalendarEvent(
            id=f"{ref.id}|{item['id']}",
            title=item.get('summary'),
            start=start,
            end=end,
            calendar=ref,
            all_day='date' in item.get('start', {}),
            location=item.get('location', ''),
        )
