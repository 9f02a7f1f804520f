"""Abstract base provider and the calendar data model."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class CalendarKind(Enum):
    LOCAL = "local"
    CALDAV = "caldav"
    EXCHANGE = "exchange"
    SUBSCRIPTION = "subscription"
    BIRTHDAY = "birthday"

    @property
    def label(self) -> str:
        return {
            CalendarKind.LOCAL: "Local",
            CalendarKind.CALDAV: "CalDAV",
            CalendarKind.EXCHANGE: "Exchange",
            CalendarKind.SUBSCRIPTION: "Subscription",
            CalendarKind.BIRTHDAY: "Birthdays",
        }[self]


@dataclass(frozen=True)
class CalendarRef:
    """A calendar owned by a provider."""
    id: str
    title: str = ""
    kind: CalendarKind = CalendarKind.LOCAL
    source: str = ""

    @property
    def is_birthday(self) -> bool:
        return self.kind == CalendarKind.BIRTHDAY


@dataclass(frozen=True)
class CalendarEvent:
    """A single event occurrence as reported by a provider."""
    id: str
    title: Optional[str]
    start: datetime
    end: datetime
    calendar: Optional[CalendarRef] = None
    all_day: bool = False
    location: str = ""

    @property
    def is_protected(self) -> bool:
        """Birthday calendar events are managed by the system and never deleted."""
        if self.calendar is None:
            return False
        return self.calendar.is_birthday

    @property
    def display_title(self) -> str:
        return self.title or "Untitled Event"


@dataclass(frozen=True)
class AccessResult:
    """Outcome of an access request."""
    granted: bool
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.granted and self.error is None


class CalendarProvider(ABC):
    """Abstract base class for calendar providers."""

    def __init__(self, name: str, config: dict):
        self.name = name
        self.config = config
        self._connected = False

    @property
    def provider_type(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    def request_access(self) -> AccessResult:
        """Connect or authorize. Never raises; failures go in the result."""
        ...

    @abstractmethod
    def disconnect(self):
        """Clean up connection."""
        ...

    @abstractmethod
    def list_calendars(self, include_birthday: bool = False) -> list[CalendarRef]:
        """List calendars, leaving out birthday calendars unless asked."""
        ...

    @abstractmethod
    def fetch_events(
        self,
        start: datetime,
        end: datetime,
        calendars: list[CalendarRef],
    ) -> list[CalendarEvent]:
        """Fetch event occurrences in [start, end). Raises ProviderError."""
        ...

    @abstractmethod
    def delete_event(self, event_id: str) -> bool:
        """Delete a single occurrence.

        Raises EventNotFound when the id is unknown and ProviderError when
        the backend fails.
        """
        ...

    def is_connected(self) -> bool:
        return self._connected

    def __repr__(self):
        return f"<{self.provider_type} '{self.name}'>"
