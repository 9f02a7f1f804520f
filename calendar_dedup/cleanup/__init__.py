"""Duplicate detection and cleanup for Calendar Dedup."""

from .detector import DuplicateGroup, SearchMode, detect, events_match, find_pairs, group_duplicates
from .cleaner import DeletionOutcome, DetectionResult, DuplicateCleaner, detection_window

__all__ = [
    'DuplicateGroup', 'SearchMode', 'detect', 'events_match', 'find_pairs', 'group_duplicates',
    'DeletionOutcome', 'DetectionResult', 'DuplicateCleaner', 'detection_window',
]
