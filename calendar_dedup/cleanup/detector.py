"""Duplicate detection for calendar events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from enum import Enum
from typing import Hashable, Optional, Sequence

from ..providers.base import CalendarEvent


class SearchMode(Enum):
    EXACT = "exact"
    SAME_DAY = "same_day"

    @property
    def label(self) -> str:
        return "Exact Match" if self is SearchMode.EXACT else "Same Day"


@dataclass(frozen=True)
class DuplicateGroup:
    """Events considered equivalent under one search mode."""
    events: tuple[CalendarEvent, ...]

    @property
    def representative(self) -> CalendarEvent:
        return self.events[0]

    @property
    def extras(self) -> tuple[CalendarEvent, ...]:
        return self.events[1:]

    def __len__(self) -> int:
        return len(self.events)


def start_of_day(dt: datetime, tz: Optional[tzinfo] = None) -> date:
    """Calendar day of dt, in tz (or local time for aware datetimes)."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(tz)
    return dt.date()


def match_key(event: CalendarEvent, mode: SearchMode, tz: Optional[tzinfo] = None) -> Hashable:
    if mode == SearchMode.EXACT:
        return (event.title, event.start, event.end)
    return (event.title or "", start_of_day(event.start, tz))


def events_match(
    a: CalendarEvent,
    b: CalendarEvent,
    mode: SearchMode,
    tz: Optional[tzinfo] = None,
) -> bool:
    """Check if two events are duplicates according to the given mode."""
    return match_key(a, mode, tz) == match_key(b, mode, tz)


def find_pairs(
    events: Sequence[CalendarEvent],
    mode: SearchMode = SearchMode.EXACT,
    tz: Optional[tzinfo] = None,
) -> list[tuple[int, int]]:
    """Find duplicate pairs in a list of events. Returns index pairs."""
    keys = [match_key(ev, mode, tz) for ev in events]
    pairs = []
    for i in range(len(events)):
        for j in range(i + 1, len(events)):
            if keys[i] == keys[j]:
                pairs.append((i, j))
    return pairs


def group_duplicates(
    events: Sequence[CalendarEvent],
    mode: SearchMode = SearchMode.EXACT,
    tz: Optional[tzinfo] = None,
) -> list[DuplicateGroup]:
    """Bucket events by match key. Only buckets of two or more are returned."""
    buckets: dict[Hashable, list[CalendarEvent]] = {}
    for ev in events:
        buckets.setdefault(match_key(ev, mode, tz), []).append(ev)
    return [DuplicateGroup(tuple(b)) for b in buckets.values() if len(b) > 1]


def detect(
    events: Sequence[CalendarEvent],
    mode: SearchMode,
    include_protected: bool = True,
    tz: Optional[tzinfo] = None,
) -> list[CalendarEvent]:
    """Return the events to flag as duplicates.

    EXACT appends the later event of every matching pair, so an event that
    matches k earlier events appears k times. SAME_DAY returns every member
    of each same-title, same-day group once, first member included.
    """
    if not include_protected:
        events = [ev for ev in events if not ev.is_protected]

    if mode == SearchMode.EXACT:
        return [events[j] for _, j in find_pairs(events, mode, tz)]

    flagged = {id(ev) for group in group_duplicates(events, mode, tz) for ev in group.events}
    return [ev for ev in events if id(ev) in flagged]
