"""CalDAV provider — works with Apple Calendar, Nextcloud, Radicale, etc."""

from __future__ import annotations

import logging
import threading
from datetime import datetime

from ..errors import EventNotFound, ProviderError
from .base import AccessResult, CalendarEvent, CalendarKind, CalendarProvider, CalendarRef
from .ics_file import is_recurring, vevent_to_event

logger = logging.getLogger(__name__)

DEFAULT_BIRTHDAY_CALENDARS = ('birthdays', 'contact birthdays')


class CalDAVProvider(CalendarProvider):
    """Generic CalDAV provider."""

    def __init__(self, name: str, config: dict):
        super().__init__(name, config)
        self.url = config.get('url', '')
        self.username = config.get('username', '')
        self.password = config.get('password', '')
        self.calendar_names = [n for n in config.get('calendar_names', []) if n]
        birthday = config.get('birthday_calendars') or DEFAULT_BIRTHDAY_CALENDARS
        self.birthday_calendars = {n.strip().lower() for n in birthday}
        self._client = None
        self._calendars: dict[str, object] = {}
        self._objects: dict[str, object] = {}
        self._lock = threading.Lock()

    def request_access(self) -> AccessResult:
        try:
            import caldav
        except ImportError:
            return AccessResult(False, "CalDAV dependency not installed. Run: pip install caldav")

        try:
            self._client = caldav.DAVClient(
                url=self.url,
                username=self.username,
                password=self.password,
            )
            calendars = self._client.principal().calendars()
        except Exception as e:
            logger.warning("CalDAV connection to %s failed: %s", self.url, e)
            return AccessResult(False, f"CalDAV connection failed: {e}")

        if not calendars:
            return AccessResult(False, "No calendars found on CalDAV server")

        self._calendars = {}
        for cal in calendars:
            if self.calendar_names and cal.name not in self.calendar_names:
                continue
            self._calendars[str(cal.url)] = cal
        if not self._calendars:
            available = [c.name for c in calendars]
            return AccessResult(False, f"Calendars {self.calendar_names} not found. Available: {available}")

        self._connected = True
        return AccessResult(True)

    def disconnect(self):
        self._client = None
        self._calendars = {}
        self._objects = {}
        self._connected = False

    def list_calendars(self, include_birthday: bool = False) -> list[CalendarRef]:
        refs = []
        for url, cal in self._calendars.items():
            name = cal.name or ""
            kind = CalendarKind.BIRTHDAY if name.strip().lower() in self.birthday_calendars else CalendarKind.CALDAV
            if kind == CalendarKind.BIRTHDAY and not include_birthday:
                continue
            refs.append(CalendarRef(id=url, title=name, kind=kind, source=self.url))
        return refs

    def fetch_events(
        self,
        start: datetime,
        end: datetime,
        calendars: list[CalendarRef],
    ) -> list[CalendarEvent]:
        events = []
        objects = {}
        for ref in calendars:
            cal = self._calendars.get(ref.id)
            if cal is None:
                raise ProviderError(f"Unknown calendar: {ref.title}")
            try:
                results = cal.search(start=start, end=end, event=True, expand=False)
            except Exception as e:
                raise ProviderError(f"Error fetching CalDAV events from {ref.title}: {e}") from e

            for obj in results:
                try:
                    component = obj.icalendar_component
                except Exception as e:
                    logger.warning("Skipping unreadable CalDAV object %s: %s", obj.url, e)
                    continue
                if is_recurring(component):
                    logger.debug("Skipping recurring series %s", obj.url)
                    continue
                ev = vevent_to_event(str(obj.url), component, ref)
                if ev:
                    events.append(ev)
                    objects[ev.id] = obj

        with self._lock:
            self._objects = objects
        return events

    def delete_event(self, event_id: str) -> bool:
        from caldav.lib.error import NotFoundError

        with self._lock:
            obj = self._objects.get(event_id)
        if obj is None:
            raise EventNotFound(event_id)
        try:
            obj.delete()
        except NotFoundError as e:
            raise EventNotFound(event_id) from e
        except Exception as e:
            raise ProviderError(f"Error deleting CalDAV event: {e}") from e
        with self._lock:
            self._objects.pop(event_id, None)
        return True

