"""Error types raised by calendar providers."""


class CalendarError(Exception):
    """Base class for calendar provider failures."""


class AccessDenied(CalendarError):
    """Calendar access was not granted."""


class ProviderError(CalendarError):
    """The provider reported a failure while reading or writing."""


class EventNotFound(ProviderError):
    """The provider no longer knows the requested event."""

    def __init__(self, event_id: str):
        super().__init__(f"Event not found: {event_id}")
        self.event_id = event_id
