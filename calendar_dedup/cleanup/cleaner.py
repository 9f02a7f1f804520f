"""Candidate selection and deletion against a calendar provider."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Callable, Optional

from dateutil.relativedelta import relativedelta

from ..errors import CalendarError
from ..providers.base import CalendarEvent, CalendarProvider
from .detector import SearchMode, detect

logger = logging.getLogger(__name__)

WINDOW_YEARS = 2


def detection_window(now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """Return (now - 2 years, now + 2 years) in calendar years."""
    if now is None:
        now = datetime.now().astimezone()
    span = relativedelta(years=WINDOW_YEARS)
    return now - span, now + span


@dataclass
class DetectionResult:
    """Result of one detection run."""
    candidates: int = 0
    protected: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def message(self) -> str:
        if self.error:
            return f"Unable to access calendar: {self.error}"
        return (f"Found {self.candidates} duplicate events "
                f"(including {self.protected} birthday events)")


@dataclass
class DeletionOutcome:
    """Result of a delete request."""
    deleted: int = 0
    failed: int = 0
    skipped_protected: int = 0
    errors: list[str] = field(default_factory=list)
    error: Optional[str] = None

    def summary(self) -> str:
        if self.error:
            return f"Unable to access calendar for deletion: {self.error}"
        message = f"Deleted {self.deleted} events. Failed to delete {self.failed} events."
        if self.skipped_protected:
            message += (f"\n\nNote: {self.skipped_protected} birthday events were not deleted "
                        "as they are managed by the Contacts app.")
        return message


class DuplicateCleaner:
    """Owns the candidate set and the user's selection for one provider."""

    def __init__(
        self,
        provider: CalendarProvider,
        mode: SearchMode = SearchMode.EXACT,
        include_protected: bool = False,
        tz: Optional[tzinfo] = None,
        max_workers: int = 4,
        progress_callback: Optional[Callable[[str], None]] = None,
    ):
        self.provider = provider
        self.mode = mode
        self.include_protected = include_protected
        self.tz = tz
        self.max_workers = max(1, max_workers)
        self._progress = progress_callback or (lambda msg: None)
        self._lock = threading.RLock()
        self._candidates: dict[str, CalendarEvent] = {}
        self._selected: set[str] = set()
        self._all_selected = False

    # --- state views ---

    @property
    def candidates(self) -> list[CalendarEvent]:
        with self._lock:
            return list(self._candidates.values())

    @property
    def selected(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._selected)

    @property
    def all_selected(self) -> bool:
        return self._all_selected

    def is_selected(self, event_id: str) -> bool:
        with self._lock:
            return event_id in self._selected

    def regular_candidates(self) -> list[CalendarEvent]:
        return [ev for ev in self.candidates if not ev.is_protected]

    def protected_candidates(self) -> list[CalendarEvent]:
        return [ev for ev in self.candidates if ev.is_protected]

    # --- detection ---

    def find_duplicates(
        self,
        mode: Optional[SearchMode] = None,
        include_protected: Optional[bool] = None,
        now: Optional[datetime] = None,
    ) -> DetectionResult:
        """Fetch the detection window and replace the candidate set.

        On any access or provider failure the current state is left as is.
        """
        mode = mode or self.mode
        if include_protected is None:
            include_protected = self.include_protected

        access = self.provider.request_access()
        if not access:
            logger.warning("Calendar access denied for %s: %s", self.provider.name, access.error)
            return DetectionResult(error=access.error or "Unknown error")

        start, end = detection_window(now)
        try:
            calendars = self.provider.list_calendars(include_birthday=include_protected)
            self._progress(f"Reading {len(calendars)} calendars from {self.provider.name}...")
            events = self.provider.fetch_events(start, end, calendars)
        except CalendarError as e:
            logger.warning("Fetching events from %s failed: %s", self.provider.name, e)
            return DetectionResult(error=str(e))
        except Exception as e:
            logger.exception("Unexpected error reading events from %s", self.provider.name)
            return DetectionResult(error=str(e) or type(e).__name__)

        self._progress(f"Checking {len(events)} events ({mode.label})...")
        flagged = detect(events, mode, include_protected=include_protected, tz=self.tz)

        candidates: dict[str, CalendarEvent] = {}
        for ev in flagged:
            candidates.setdefault(ev.id, ev)

        with self._lock:
            self.mode = mode
            self.include_protected = include_protected
            self._candidates = candidates
            self._selected = set()
            self._all_selected = False

        result = DetectionResult(
            candidates=len(candidates),
            protected=sum(1 for ev in candidates.values() if ev.is_protected),
        )
        logger.info(result.message())
        return result

    # --- selection ---

    def toggle_selection(self, event_id: str):
        with self._lock:
            if event_id not in self._candidates:
                raise KeyError(event_id)
            if event_id in self._selected:
                self._selected.remove(event_id)
            else:
                self._selected.add(event_id)

    def select_all(self):
        with self._lock:
            if self._all_selected:
                self._selected.clear()
            else:
                self._selected = set(self._candidates)
            self._all_selected = not self._all_selected

    # --- deletion ---

    def delete_selected(self) -> DeletionOutcome:
        """Delete every selected, non-protected candidate. Never raises."""
        outcome = DeletionOutcome()

        access = self.provider.request_access()
        if not access:
            outcome.error = access.error or "Unknown error"
            logger.warning("Calendar access denied for deletion: %s", outcome.error)
            return outcome

        with self._lock:
            chosen = [self._candidates[i] for i in self._selected if i in self._candidates]

        deletable = []
        for ev in chosen:
            if ev.is_protected:
                outcome.skipped_protected += 1
            else:
                deletable.append(ev)

        deleted_ids = set()
        if deletable:
            self._progress(f"Deleting {len(deletable)} events...")
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                futures = {pool.submit(self.provider.delete_event, ev.id): ev for ev in deletable}
                for future in as_completed(futures):
                    ev = futures[future]
                    try:
                        ok = future.result()
                    except Exception as e:
                        logger.warning("Failed to delete event %r: %s", ev.display_title, e)
                        outcome.failed += 1
                        outcome.errors.append(f"{ev.display_title}: {e}")
                        continue
                    if ok:
                        outcome.deleted += 1
                        deleted_ids.add(ev.id)
                    else:
                        outcome.failed += 1
                        outcome.errors.append(f"{ev.display_title}: provider refused deletion")

        with self._lock:
            for event_id in deleted_ids:
                self._candidates.pop(event_id, None)
            self._selected -= deleted_ids

        logger.info(outcome.summary())
        return outcome
