"""Tests for src.core.position_index: ordinal -> id mapping under mutation."""

from datetime import date

from src.core.position_index import PositionIndex, reindex
from src.data.models import Occurrence, OccurrenceKind

DAY = date(2024, 6, 15)


def _chore(occ_id, title="Chore"):
    return Occurrence(id=occ_id, kind=OccurrenceKind.CHORE, date=DAY, title=title)


class TestReindex:
    def test_positions_follow_list_order(self):
        assert reindex([_chore(12), _chore(10), _chore(11)]) == {0: 12, 1: 10, 2: 11}

    def test_unsaved_rows_skipped(self):
        assert reindex([_chore(None), _chore(5)]) == {1: 5}

    def test_empty(self):
        assert reindex([]) == {}


class TestPositionIndex:
    def test_rebuild_and_lookup(self):
        index = PositionIndex()
        index.rebuild({DAY: [_chore(1), _chore(2)]})
        assert index.lookup(DAY, 0) == 1
        assert index.lookup(DAY, 1) == 2
        assert index.lookup(DAY, 2) is None
        assert index.lookup(date(2024, 6, 16), 0) is None
        assert len(index) == 2

    def test_remove_middle_renumbers(self):
        """Removing ordinal 1 of three leaves exactly ordinals 0 and 1."""
        day_list = [_chore(10, "a"), _chore(11, "b"), _chore(12, "c")]
        index = PositionIndex()
        index.rebuild({DAY: day_list})

        removed = index.remove_at(DAY, day_list, 1)

        assert removed.id == 11
        assert index.for_date(DAY) == {0: 10, 1: 12}
        assert (DAY, 2) not in index
        assert index.lookup(DAY, 1) == 12

    def test_remove_last_drops_date(self):
        day_list = [_chore(10)]
        index = PositionIndex()
        index.rebuild({DAY: day_list})
        index.remove_at(DAY, day_list, 0)
        assert index.dates() == []
        assert len(index) == 0

    def test_rebuild_discards_stale_dates(self):
        index = PositionIndex()
        index.rebuild({DAY: [_chore(1)]})
        other = date(2024, 6, 16)
        index.rebuild({other: [_chore(2)]})
        assert index.dates() == [other]
        assert index.lookup(DAY, 0) is None

    def test_ordinal_of_stable_id(self):
        index = PositionIndex()
        index.rebuild({DAY: [_chore(7), _chore(9)]})
        assert index.ordinal_of(DAY, 9) == 1
        assert index.ordinal_of(DAY, 8) is None

    def test_contains_rejects_malformed_keys(self):
        index = PositionIndex()
        index.rebuild({DAY: [_chore(1)]})
        assert (DAY, 0) in index
        assert DAY not in index
