"""Tests for the local ICS file provider."""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from calendar_dedup.cleanup import DuplicateCleaner, SearchMode, detection_window
from calendar_dedup.errors import EventNotFound
from calendar_dedup.providers import ICSFileProvider, create_provider
from calendar_dedup.providers.base import CalendarKind
from calendar_dedup.providers.ics_file import is_recurring

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)

STANDUP = """BEGIN:VEVENT
UID:standup-1@example.com
SUMMARY:Standup
DTSTART:20250310T090000Z
DTEND:20250310T093000Z
END:VEVENT
"""

WORK_ICS = (
    "BEGIN:VCALENDAR\nVERSION:2.0\nPRODID:-//Test//EN\n"
    + STANDUP
    + STANDUP
    + """BEGIN:VEVENT
UID:lunch@example.com
SUMMARY:Lunch
DTSTART:20250310T120000Z
DURATION:PT1H
END:VEVENT
BEGIN:VEVENT
UID:weekly@example.com
SUMMARY:Weekly
DTSTART:20250310T100000Z
DTEND:20250310T110000Z
RRULE:FREQ=WEEKLY
END:VEVENT
BEGIN:VEVENT
UID:weekly@example.com
SUMMARY:Weekly
RECURRENCE-ID:20250317T100000Z
DTSTART:20250317T140000Z
DTEND:20250317T150000Z
END:VEVENT
BEGIN:VEVENT
UID:ancient@example.com
SUMMARY:Standup
DTSTART:20100310T090000Z
DTEND:20100310T093000Z
END:VEVENT
END:VCALENDAR
"""
)

BIRTHDAY_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Test//EN
BEGIN:VEVENT
UID:ann-1
SUMMARY:Ann's Birthday
DTSTART;VALUE=DATE:20250412
DTEND;VALUE=DATE:20250413
END:VEVENT
BEGIN:VEVENT
UID:ann-2
SUMMARY:Ann's Birthday
DTSTART;VALUE=DATE:20250412
DTEND;VALUE=DATE:20250413
END:VEVENT
END:VCALENDAR
"""


@pytest.fixture
def ics_source(tmp_path):
    work = tmp_path / "work.ics"
    work.write_text(WORK_ICS, encoding="utf-8")
    birthdays = tmp_path / "birthdays.ics"
    birthdays.write_text(BIRTHDAY_ICS, encoding="utf-8")
    return {
        "type": "ics_file",
        "name": "Local",
        "config": {
            "calendars": [
                {"name": "Work", "file_path": str(work), "kind": "local"},
                {"name": "Birthdays", "file_path": str(birthdays), "kind": "birthday"},
            ],
        },
    }


@pytest.fixture
def ics_provider(ics_source):
    provider = create_provider(ics_source)
    assert provider.request_access()
    return provider


def fetch_all(provider, include_birthday=True):
    start, end = detection_window(NOW)
    return provider.fetch_events(start, end, provider.list_calendars(include_birthday=include_birthday))


def test_create_provider_builds_ics_provider(ics_provider):
    assert isinstance(ics_provider, ICSFileProvider)
    assert ics_provider.name == "Local"


def test_missing_file_denies_access(tmp_path):
    provider = ICSFileProvider("x", {"file_path": str(tmp_path / "missing.ics")})
    access = provider.request_access()
    assert not access
    assert "not found" in access.error


def test_list_calendars_hides_birthdays(ics_provider):
    assert [c.title for c in ics_provider.list_calendars()] == ["Work"]
    calendars = ics_provider.list_calendars(include_birthday=True)
    assert [c.kind for c in calendars] == [CalendarKind.LOCAL, CalendarKind.BIRTHDAY]


def test_fetch_skips_recurring_and_out_of_window(ics_provider):
    events = fetch_all(ics_provider, include_birthday=False)
    assert sorted(ev.title for ev in events) == ["Lunch", "Standup", "Standup"]
    lunch = next(ev for ev in events if ev.title == "Lunch")
    assert (lunch.end - lunch.start).total_seconds() == 3600


def test_identical_copies_get_distinct_ids(ics_provider):
    standups = [ev for ev in fetch_all(ics_provider) if ev.title == "Standup"]
    assert len({ev.id for ev in standups}) == 2
    assert {ev.id.rsplit(":", 1)[1] for ev in standups} == {"0", "1"}


def test_birthday_events_are_protected_all_day(ics_provider):
    birthdays = [ev for ev in fetch_all(ics_provider) if ev.calendar.title == "Birthdays"]
    assert len(birthdays) == 2
    assert all(ev.is_protected and ev.all_day for ev in birthdays)


def test_delete_removes_single_copy(ics_provider, ics_source):
    standups = [ev for ev in fetch_all(ics_provider) if ev.title == "Standup"]
    assert ics_provider.delete_event(standups[1].id)

    remaining = [ev for ev in fetch_all(ics_provider) if ev.title == "Standup"]
    assert len(remaining) == 1
    work_path = ics_source["config"]["calendars"][0]["file_path"]
    assert Path(work_path).with_suffix(".ics.bak").exists()


def test_delete_unknown_event(ics_provider):
    with pytest.raises(EventNotFound):
        ics_provider.delete_event("Work:0000000000000000:0")
    with pytest.raises(EventNotFound):
        ics_provider.delete_event("Nowhere:0000000000000000:0")
    with pytest.raises(EventNotFound):
        ics_provider.delete_event("garbage")


def test_cleaner_end_to_end(ics_provider):
    cleaner = DuplicateCleaner(ics_provider, mode=SearchMode.EXACT, include_protected=True)
    result = cleaner.find_duplicates(now=NOW)
    assert (result.candidates, result.protected) == (2, 1)

    cleaner.select_all()
    outcome = cleaner.delete_selected()
    assert (outcome.deleted, outcome.skipped_protected, outcome.failed) == (1, 1, 0)
    assert [ev.is_protected for ev in cleaner.candidates] == [True]

    rerun = cleaner.find_duplicates(now=NOW)
    assert (rerun.candidates, rerun.protected) == (1, 1)


def test_recurring_components_are_recognised():
    from icalendar import Event

    single = Event()
    assert not is_recurring(single)
    master = Event()
    master.add('rrule', {'freq': 'weekly'})
    assert is_recurring(master)
    override = Event()
    override.add('recurrence-id', datetime(2025, 3, 17, 10, 0, tzinfo=timezone.utc))
    assert is_recurring(override)


@pytest.fixture
def triplicate(tmp_path):
    """The same event imported three times."""
    path = tmp_path / "work.ics"
    path.write_text(
        "BEGIN:VCALENDAR\nVERSION:2.0\nPRODID:-//Test//EN\n" + STANDUP * 3 + "END:VCALENDAR\n",
        encoding="utf-8",
    )
    provider = ICSFileProvider("Local", {"calendars": [{"name": "Work", "file_path": str(path)}]})
    assert provider.request_access()
    return provider


def test_ids_survive_deleting_other_copies(triplicate):
    cleaner = DuplicateCleaner(triplicate)
    cleaner.find_duplicates(now=NOW)
    first, second = sorted(ev.id for ev in cleaner.candidates)
    assert (first[-2:], second[-2:]) == (":1", ":2")

    cleaner.toggle_selection(first)
    assert cleaner.delete_selected().deleted == 1

    cleaner.toggle_selection(second)
    outcome = cleaner.delete_selected()
    assert (outcome.deleted, outcome.failed) == (1, 0)
    assert cleaner.candidates == []
    assert len(fetch_all(triplicate)) == 1


def test_delete_order_does_not_matter(triplicate):
    ids = sorted(ev.id for ev in fetch_all(triplicate))
    assert triplicate.delete_event(ids[2])
    assert triplicate.delete_event(ids[0])
    assert [ev.id for ev in fetch_all(triplicate)] == [ids[0]]

    with pytest.raises(EventNotFound):
        triplicate.delete_event(ids[2])


def test_select_all_removes_every_extra_copy(triplicate):
    cleaner = DuplicateCleaner(triplicate, max_workers=4)
    cleaner.find_duplicates(now=NOW)
    cleaner.select_all()
    outcome = cleaner.delete_selected()
    assert (outcome.deleted, outcome.failed) == (2, 0)
    assert len(fetch_all(triplicate)) == 1
