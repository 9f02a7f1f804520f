"""Calendar Dedup — find and remove duplicate calendar events by CORE SYSTEMS."""

__version__ = "1.0.0"
