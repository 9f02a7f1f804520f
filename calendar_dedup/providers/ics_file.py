"""Local ICS file provider. Each configured file is one calendar."""

from __future__ import annotations

import hashlib
import logging
import shutil
import threading
from collections import Counter
from datetime import date, datetime, time
from pathlib import Path
from typing import Iterator, Optional

from ..errors import EventNotFound, ProviderError
from .base import AccessResult, CalendarEvent, CalendarKind, CalendarProvider, CalendarRef

logger = logging.getLogger(__name__)


def _parse_dt(val) -> Optional[datetime]:
    """Convert an icalendar date/datetime to an aware datetime.

    Floating times and all-day dates are read as local time.
    """
    if val is None:
        return None
    dt = val.dt if hasattr(val, 'dt') else val
    if isinstance(dt, datetime):
        if dt.tzinfo is None:
            return dt.astimezone()
        return dt
    if isinstance(dt, date):
        return datetime.combine(dt, time.min).astimezone()
    return None


def _is_all_day(val) -> bool:
    if val is None:
        return False
    dt = val.dt if hasattr(val, 'dt') else val
    return not isinstance(dt, datetime)


def vevent_to_event(event_id: str, component, ref: CalendarRef) -> Optional[CalendarEvent]:
    """Build a CalendarEvent from a VEVENT component."""
    start = _parse_dt(component.get('dtstart'))
    if start is None:
        return None
    end = _parse_dt(component.get('dtend'))
    if end is None:
        duration = component.get('duration')
        end = start + duration.dt if duration is not None else start
    summary = component.get('summary')
    return CalendarEvent(
        id=event_id,
        title=str(summary) if summary is not None else None,
        start=start,
        end=end,
        calendar=ref,
        all_day=_is_all_day(component.get('dtstart')),
        location=str(component.get('location', '')),
    )


def is_recurring(component) -> bool:
    """True for series masters and for overrides of a single occurrence.

    Deleting either would not remove just the one event shown.
    """
    return component.get('rrule') is not None or component.get('recurrence-id') is not None


def _calendar_kind(value: str) -> CalendarKind:
    try:
        return CalendarKind(value or CalendarKind.LOCAL.value)
    except ValueError:
        logger.warning("Unknown calendar kind %r, treating as local", value)
        return CalendarKind.LOCAL


class ICSFileProvider(CalendarProvider):
    """Read and delete events in local .ics files."""

    def __init__(self, name: str, config: dict):
        super().__init__(name, config)
        entries = list(config.get('calendars', []))
        if not entries and config.get('file_path'):
            entries.append({
                'name': config.get('calendar_name') or Path(config['file_path']).stem,
                'file_path': config['file_path'],
                'kind': config.get('kind', 'local'),
            })
        self._files: dict[str, Path] = {}
        self._calendars: list[CalendarRef] = []
        for entry in entries:
            path = Path(entry.get('file_path', ''))
            ref = CalendarRef(
                id=entry.get('name') or path.stem,
                title=entry.get('name') or path.stem,
                kind=_calendar_kind(entry.get('kind', '')),
                source=str(path),
            )
            self._files[ref.id] = path
            self._calendars.append(ref)
        self._lock = threading.Lock()
        # (calendar id, digest) -> ids of the copies still in the file, in file order
        self._copies: dict[tuple[str, str], list[str]] = {}

    def request_access(self) -> AccessResult:
        try:
            import icalendar  # noqa: F401
        except ImportError:
            return AccessResult(False, "icalendar dependency not installed. Run: pip install icalendar")

        if not self._calendars:
            return AccessResult(False, f"No calendar files configured for '{self.name}'")
        for ref in self._calendars:
            path = self._files[ref.id]
            if not path.is_file():
                return AccessResult(False, f"Calendar file not found: {path}")
        self._connected = True
        return AccessResult(True)

    def disconnect(self):
        self._connected = False

    def list_calendars(self, include_birthday: bool = False) -> list[CalendarRef]:
        return [c for c in self._calendars if include_birthday or not c.is_birthday]

    def fetch_events(
        self,
        start: datetime,
        end: datetime,
        calendars: list[CalendarRef],
    ) -> list[CalendarEvent]:
        events = []
        for ref in calendars:
            cal = self._load(ref)
            copies: dict[tuple[str, str], list[str]] = {}
            for event_id, component in self._indexed(ref, cal):
                copies.setdefault(self._copy_key(event_id), []).append(event_id)
                if is_recurring(component):
                    logger.debug("Skipping recurring component %s in %s", component.get('uid'), ref.title)
                    continue
                ev = vevent_to_event(event_id, component, ref)
                if ev is None:
                    continue
                if ev.start < end and ev.end > start:
                    events.append(ev)
            with self._lock:
                self._copies = {k: v for k, v in self._copies.items() if k[0] != ref.id}
                self._copies.update(copies)
        logger.info("Read %d events from %s", len(events), self.name)
        return events

    def delete_event(self, event_id: str) -> bool:
        """Delete one copy of an event seen by the last fetch.

        Ids stay valid while other copies of the same event are deleted:
        the copy is located by its position among the copies still present.
        """
        ref = self._calendar_for(event_id)
        key = self._copy_key(event_id)
        with self._lock:
            remaining = self._copies.get(key, [])
            if event_id not in remaining:
                raise EventNotFound(event_id)
            position = remaining.index(event_id)

            cal = self._load(ref)
            matches = [component for candidate_id, component in self._indexed(ref, cal)
                       if self._copy_key(candidate_id) == key]
            if position >= len(matches):
                raise EventNotFound(event_id)
            target = matches[position]
            index = next(i for i, c in enumerate(cal.subcomponents) if c is target)
            del cal.subcomponents[index]

            path = self._files[ref.id]
            try:
                shutil.copy2(path, path.with_suffix('.ics.bak'))
                path.write_bytes(cal.to_ical())
            except OSError as e:
                raise ProviderError(f"Failed to write {path}: {e}") from e
            remaining.remove(event_id)
        return True

    def _calendar_for(self, event_id: str) -> CalendarRef:
        parts = event_id.rsplit(':', 2)
        if len(parts) != 3:
            raise EventNotFound(event_id)
        for ref in self._calendars:
            if ref.id == parts[0]:
                return ref
        raise EventNotFound(event_id)

    @staticmethod
    def _copy_key(event_id: str) -> tuple[str, str]:
        calendar_id, digest, _ = event_id.rsplit(':', 2)
        return calendar_id, digest

    def _load(self, ref: CalendarRef):
        from icalendar import Calendar

        path = self._files[ref.id]
        try:
            return Calendar.from_ical(path.read_bytes())
        except (OSError, ValueError) as e:
            raise ProviderError(f"Could not read {path}: {e}") from e

    @staticmethod
    def _indexed(ref: CalendarRef, cal) -> Iterator[tuple[str, object]]:
        """Yield (event_id, VEVENT) pairs. Identical copies get increasing ordinals."""
        seen: Counter = Counter()
        for component in cal.subcomponents:
            if component.name != 'VEVENT':
                continue
            digest = hashlib.sha1(component.to_ical()).hexdigest()[:16]
            ordinal = seen[digest]
            seen[digest] += 1
            yield f"{ref.id}:{digest}:{ordinal}", component
