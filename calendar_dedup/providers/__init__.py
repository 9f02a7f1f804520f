"""Calendar providers for Calendar Dedup."""

from .base import AccessResult, CalendarEvent, CalendarKind, CalendarProvider, CalendarRef
from .ics_file import ICSFileProvider
from .google_cal import GoogleCalendarProvider
from .caldav_provider import CalDAVProvider

PROVIDER_TYPES = {
    'ics_file': ICSFileProvider,
    'google': GoogleCalendarProvider,
    'caldav': CalDAVProvider,
}


def create_provider(source: dict) -> CalendarProvider:
    """Build a provider from a configured source entry."""
    provider_cls = PROVIDER_TYPES.get(source.get('type', ''))
    if provider_cls is None:
        raise ValueError(f"Unknown provider type: {source.get('type')}")
    return provider_cls(source.get('name', 'Unnamed'), source.get('config', {}))


__all__ = [
    'AccessResult', 'CalendarEvent', 'CalendarKind', 'CalendarProvider', 'CalendarRef',
    'PROVIDER_TYPES', 'create_provider',
    'ICSFileProvider', 'GoogleCalendarProvider', 'CalDAVProvider',
]
