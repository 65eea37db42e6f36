"""Tests for src.core.view: projection of store rows into the dashboard view."""

from datetime import date

from src.core.view import rebuild_view
from src.data.models import ExternalEvent, Occurrence, OccurrenceKind

DAY = date(2024, 6, 15)


def _entry(occ_id, time, title="Entry", day=DAY):
    return Occurrence(id=occ_id, kind=OccurrenceKind.ENTRY, date=day, title=title, time=time)


def _chore(occ_id, title="Chore", day=DAY, completed=False):
    return Occurrence(id=occ_id, kind=OccurrenceKind.CHORE, date=day, title=title,
                      completed=completed)


class TestRebuildView:
    def test_entries_sorted_by_time(self):
        view = rebuild_view([_entry(1, "18:00"), _entry(2, "07:30"), _entry(3, "12:00")])
        assert [e.id for e in view.entries[DAY]] == [2, 3, 1]
        assert view.entry_index.for_date(DAY) == {0: 2, 1: 3, 2: 1}

    def test_same_time_entries_ordered_by_id(self):
        view = rebuild_view([_entry(5, "09:00"), _entry(4, "09:00")])
        assert [e.id for e in view.entries[DAY]] == [4, 5]

    def test_chores_keep_store_order(self):
        view = rebuild_view([_chore(9), _chore(3), _chore(6)])
        assert [c.id for c in view.chores[DAY]] == [9, 3, 6]
        assert view.chore_index.lookup(DAY, 0) == 9

    def test_kinds_are_indexed_separately(self):
        view = rebuild_view([_entry(1, "09:00"), _chore(2)])
        assert view.entry_index.lookup(DAY, 0) == 1
        assert view.chore_index.lookup(DAY, 0) == 2

    def test_grouped_by_date(self):
        other = date(2024, 6, 16)
        view = rebuild_view([_chore(1), _chore(2, day=other)])
        assert set(view.chores) == {DAY, other}

    def test_at_and_day(self):
        view = rebuild_view([_chore(1), _chore(2)])
        assert view.at(OccurrenceKind.CHORE, DAY, 1).id == 2
        assert view.at(OccurrenceKind.CHORE, DAY, 2) is None
        assert view.at(OccurrenceKind.CHORE, DAY, -1) is None
        assert [c.id for c in view.day(OccurrenceKind.CHORE, DAY)] == [1, 2]

    def test_day_returns_copy(self):
        view = rebuild_view([_chore(1)])
        view.day(OccurrenceKind.CHORE, DAY).clear()
        assert len(view.chores[DAY]) == 1

    def test_all_occurrences(self):
        view = rebuild_view([_chore(1), _entry(2, "09:00")])
        assert {o.id for o in view.all_occurrences()} == {1, 2}

    def test_external_events_attached(self):
        ev = ExternalEvent(day=DAY, title="School play", time="All Day")
        view = rebuild_view([], external={DAY: [ev]})
        assert view.external[DAY] == [ev]
