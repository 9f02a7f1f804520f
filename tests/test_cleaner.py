"""Tests for candidate selection and deletion."""

from datetime import datetime, timezone

import pytest
from dateutil.relativedelta import relativedelta

from calendar_dedup.cleanup import DuplicateCleaner, SearchMode, detection_window
from calendar_dedup.errors import AccessDenied
from calendar_dedup.providers.base import AccessResult

from conftest import BIRTHDAYS, FakeProvider, make_event


@pytest.fixture
def cleaner(duplicate_events):
    provider = FakeProvider(duplicate_events)
    return DuplicateCleaner(provider, mode=SearchMode.EXACT, include_protected=True)


class TestDetectionWindow:
    def test_spans_four_years(self):
        now = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)
        start, end = detection_window(now)
        assert start == datetime(2023, 6, 15, 12, 0, tzinfo=timezone.utc)
        assert end == datetime(2027, 6, 15, 12, 0, tzinfo=timezone.utc)
        assert start + relativedelta(years=4) == end

    def test_leap_day_clamps_to_end_of_february(self):
        start, end = detection_window(datetime(2024, 2, 29, tzinfo=timezone.utc))
        assert start == datetime(2022, 2, 28, tzinfo=timezone.utc)
        assert end == datetime(2026, 2, 28, tzinfo=timezone.utc)

    def test_default_now_is_aware(self):
        start, end = detection_window()
        assert start.tzinfo is not None
        assert start + relativedelta(years=4) == end

    def test_provider_receives_window(self, cleaner):
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)
        cleaner.find_duplicates(now=now)
        assert cleaner.provider.windows == [detection_window(now)]


class TestFindDuplicates:
    def test_populates_candidates(self, cleaner):
        result = cleaner.find_duplicates()
        assert result.ok
        assert result.candidates == 2
        assert result.protected == 1
        assert {ev.id for ev in cleaner.candidates} == {"b", "bday-2"}
        assert cleaner.selected == frozenset()
        assert not cleaner.all_selected
        assert result.message() == "Found 2 duplicate events (including 1 birthday events)"

    def test_birthday_calendars_skipped_when_excluded(self, cleaner):
        cleaner.find_duplicates(include_protected=False)
        assert cleaner.provider.listed_with == [False]
        assert [ev.id for ev in cleaner.candidates] == ["b"]

    def test_candidates_deduplicated_by_id(self):
        provider = FakeProvider([make_event(str(i)) for i in range(4)])
        cleaner = DuplicateCleaner(provider)
        result = cleaner.find_duplicates()
        assert result.candidates == 3
        assert [ev.id for ev in cleaner.candidates] == ["1", "2", "3"]

    def test_same_day_mode(self):
        provider = FakeProvider([
            make_event("a", title="Bday", start=datetime(2025, 5, 1, 9, 0)),
            make_event("b", title="Bday", start=datetime(2025, 5, 1, 18, 0)),
        ])
        cleaner = DuplicateCleaner(provider)
        cleaner.find_duplicates(mode=SearchMode.SAME_DAY)
        assert {ev.id for ev in cleaner.candidates} == {"a", "b"}
        assert cleaner.mode == SearchMode.SAME_DAY

    def test_rerun_replaces_state(self, cleaner):
        cleaner.find_duplicates()
        cleaner.select_all()
        cleaner.provider.events.pop("b")
        cleaner.find_duplicates()
        assert [ev.id for ev in cleaner.candidates] == ["bday-2"]
        assert cleaner.selected == frozenset()
        assert not cleaner.all_selected

    def test_access_denied_leaves_state(self, cleaner):
        cleaner.find_duplicates()
        cleaner.toggle_selection("b")
        cleaner.provider.access = AccessResult(False, "Permission denied")
        result = cleaner.find_duplicates()
        assert not result.ok
        assert result.message() == "Unable to access calendar: Permission denied"
        assert {ev.id for ev in cleaner.candidates} == {"b", "bday-2"}
        assert cleaner.selected == frozenset({"b"})

    def test_fetch_error_leaves_state(self, provider_error):
        provider = FakeProvider()
        provider.fetch_error = provider_error
        cleaner = DuplicateCleaner(provider)
        result = cleaner.find_duplicates()
        assert result.error == "server unavailable"
        assert cleaner.candidates == []

    def test_access_revoked_mid_fetch(self):
        provider = FakeProvider()
        provider.fetch_error = AccessDenied("token expired")
        result = DuplicateCleaner(provider).find_duplicates()
        assert result.message() == "Unable to access calendar: token expired"

    def test_unexpected_provider_error_is_reported(self):
        provider = FakeProvider([make_event("a"), make_event("b")])
        cleaner = DuplicateCleaner(provider)
        cleaner.find_duplicates()
        provider.fetch_error = RuntimeError("socket closed")
        result = cleaner.find_duplicates()
        assert result.message() == "Unable to access calendar: socket closed"
        assert [ev.id for ev in cleaner.candidates] == ["b"]


class TestSelection:
    def test_toggle(self, cleaner):
        cleaner.find_duplicates()
        cleaner.toggle_selection("b")
        assert cleaner.is_selected("b")
        cleaner.toggle_selection("b")
        assert not cleaner.is_selected("b")

    def test_toggle_unknown_id(self, cleaner):
        cleaner.find_duplicates()
        with pytest.raises(KeyError):
            cleaner.toggle_selection("a")

    def test_select_all_round_trip(self, cleaner):
        cleaner.find_duplicates()
        cleaner.select_all()
        assert cleaner.all_selected
        assert cleaner.selected == frozenset({"b", "bday-2"})
        cleaner.select_all()
        assert not cleaner.all_selected
        assert cleaner.selected == frozenset()

    def test_select_all_is_a_pure_toggle(self, cleaner):
        cleaner.find_duplicates()
        cleaner.toggle_selection("b")
        cleaner.toggle_selection("bday-2")
        cleaner.select_all()
        assert cleaner.all_selected
        cleaner.select_all()
        assert cleaner.selected == frozenset()

    def test_split_by_protection(self, cleaner):
        cleaner.find_duplicates()
        assert [ev.id for ev in cleaner.regular_candidates()] == ["b"]
        assert [ev.id for ev in cleaner.protected_candidates()] == ["bday-2"]


class TestDeleteSelected:
    def test_protected_skipped_and_deletable_removed(self, cleaner):
        cleaner.find_duplicates()
        cleaner.select_all()
        outcome = cleaner.delete_selected()
        assert (outcome.deleted, outcome.skipped_protected, outcome.failed) == (1, 1, 0)
        assert cleaner.provider.deleted == ["b"]
        assert [ev.id for ev in cleaner.candidates] == ["bday-2"]
        assert cleaner.selected == frozenset({"bday-2"})
        assert "1 birthday events were not deleted" in outcome.summary()

    def test_unknown_id_counts_as_failure(self, cleaner):
        cleaner.find_duplicates()
        cleaner.toggle_selection("b")
        cleaner.provider.events.pop("b")
        outcome = cleaner.delete_selected()
        assert (outcome.deleted, outcome.failed) == (0, 1)
        assert [ev.id for ev in cleaner.candidates] == ["b", "bday-2"]
        assert cleaner.is_selected("b")
        assert outcome.errors and "Event not found" in outcome.errors[0]

    def test_exceptions_and_refusals_are_contained(self):
        events = [make_event(str(i)) for i in range(5)]
        provider = FakeProvider(events)
        provider.explode = {"2"}
        provider.refuse = {"3"}
        cleaner = DuplicateCleaner(provider, max_workers=3)
        cleaner.find_duplicates()
        cleaner.select_all()
        outcome = cleaner.delete_selected()
        assert (outcome.deleted, outcome.failed, outcome.skipped_protected) == (2, 2, 0)
        assert sorted(provider.deleted) == ["1", "4"]
        assert [ev.id for ev in cleaner.candidates] == ["2", "3"]
        assert cleaner.selected == frozenset({"2", "3"})
        assert outcome.summary() == "Deleted 2 events. Failed to delete 2 events."

    def test_failed_ids_can_be_retried(self, cleaner):
        cleaner.find_duplicates()
        cleaner.toggle_selection("b")
        cleaner.provider.refuse = {"b"}
        assert cleaner.delete_selected().failed == 1
        cleaner.provider.refuse = set()
        assert cleaner.delete_selected().deleted == 1
        assert [ev.id for ev in cleaner.candidates] == ["bday-2"]

    def test_access_denied(self, cleaner):
        cleaner.find_duplicates()
        cleaner.select_all()
        cleaner.provider.access = AccessResult(False, "Permission denied")
        outcome = cleaner.delete_selected()
        assert outcome.error == "Permission denied"
        assert (outcome.deleted, outcome.failed, outcome.skipped_protected) == (0, 0, 0)
        assert cleaner.provider.deleted == []
        assert outcome.summary() == "Unable to access calendar for deletion: Permission denied"

    def test_empty_selection(self, cleaner):
        cleaner.find_duplicates()
        outcome = cleaner.delete_selected()
        assert (outcome.deleted, outcome.failed, outcome.skipped_protected) == (0, 0, 0)

    def test_only_protected_selected(self):
        provider = FakeProvider([
            make_event("x", title="Bday", calendar=BIRTHDAYS),
            make_event("y", title="Bday", calendar=BIRTHDAYS),
        ])
        cleaner = DuplicateCleaner(provider, include_protected=True)
        cleaner.find_duplicates()
        cleaner.select_all()
        outcome = cleaner.delete_selected()
        assert outcome.skipped_protected == 1
        assert provider.deleted == []
