"""
Pytest configuration and shared fixtures.
"""

import sys
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from calendar_dedup.errors import EventNotFound, ProviderError  # noqa: E402
from calendar_dedup.providers.base import (  # noqa: E402
    AccessResult, CalendarEvent, CalendarKind, CalendarProvider, CalendarRef,
)

WORK = CalendarRef(id="work", title="Work", kind=CalendarKind.CALDAV)
HOME = CalendarRef(id="home", title="Home", kind=CalendarKind.LOCAL)
BIRTHDAYS = CalendarRef(id="birthdays", title="Birthdays", kind=CalendarKind.BIRTHDAY)

T0 = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)


def make_event(event_id, title="Standup", start=T0, minutes=30, calendar=WORK, **kwargs):
    return CalendarEvent(
        id=event_id,
        title=title,
        start=start,
        end=start + timedelta(minutes=minutes),
        calendar=calendar,
        **kwargs,
    )


class FakeProvider(CalendarProvider):
    """In-memory provider that records calls."""

    def __init__(self, events=(), calendars=(WORK, HOME, BIRTHDAYS)):
        super().__init__("fake", {})
        self.events = {ev.id: ev for ev in events}
        self.calendars = list(calendars)
        self.access = AccessResult(True)
        self.fetch_error = None
        self.refuse = set()
        self.explode = set()
        self.deleted = []
        self.windows = []
        self.listed_with = []
        self._lock = threading.Lock()

    def request_access(self):
        return self.access

    def disconnect(self):
        pass

    def list_calendars(self, include_birthday=False):
        self.listed_with.append(include_birthday)
        return [c for c in self.calendars if include_birthday or not c.is_birthday]

    def fetch_events(self, start, end, calendars):
        self.windows.append((start, end))
        if self.fetch_error:
            raise self.fetch_error
        wanted = {c.id for c in calendars}
        return [ev for ev in self.events.values()
                if ev.calendar is None or ev.calendar.id in wanted]

    def delete_event(self, event_id):
        if event_id in self.explode:
            raise RuntimeError("backend exploded")
        if event_id in self.refuse:
            return False
        with self._lock:
            if event_id not in self.events:
                raise EventNotFound(event_id)
            del self.events[event_id]
            self.deleted.append(event_id)
        return True


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def duplicate_events():
    """Two exact duplicates on Work/Home, a unique event and two birthday copies."""
    return [
        make_event("a"),
        make_event("b", calendar=HOME),
        make_event("c", title="Lunch"),
        make_event("bday-1", title="Ann's Birthday", calendar=BIRTHDAYS, minutes=24 * 60),
        make_event("bday-2", title="Ann's Birthday", calendar=BIRTHDAYS, minutes=24 * 60),
    ]


@pytest.fixture
def provider_error():
    return ProviderError("server unavailable")
