"""
HomeBoard: Position index.

Clients address an occurrence by (date, ordinal): its zero-based position
within that date's list as currently displayed. The index maps those
positions to store ids.

Ordinals are a snapshot. Any insert, removal or reorder in a date's list
shifts every ordinal at or after the change, so the index is rebuilt for the
affected date after every structural mutation, never patched in place.
Lookups by stable occurrence id (``ordinal_of``) are preferred wherever the
caller already holds the occurrence.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import date

from src.data.models import Occurrence

logger = logging.getLogger(__name__)


def reindex(day_list: Sequence[Occurrence]) -> dict[int, int]:
    """Fresh ordinal -> store id mapping for one date's ordered list.

    Unsaved occurrences (id None) have no backing row and are left out.
    """
    return {
        ordinal: occ.id
        for ordinal, occ in enumerate(day_list)
        if occ.id is not None
    }


class PositionIndex:
    """(date, ordinal) -> store id, rebuilt from the in-memory per-date lists."""

    def __init__(self) -> None:
        self._by_date: dict[date, dict[int, int]] = {}

    def rebuild(self, lists: Mapping[date, Sequence[Occurrence]]) -> None:
        """Discard everything and index every date from scratch."""
        self._by_date = {}
        for day, day_list in lists.items():
            self.rebuild_date(day, day_list)

    def rebuild_date(self, day: date, day_list: Sequence[Occurrence]) -> None:
        mapping = reindex(day_list)
        if mapping:
            self._by_date[day] = mapping
        else:
            self._by_date.pop(day, None)

    def lookup(self, day: date, ordinal: int) -> int | None:
        return self._by_date.get(day, {}).get(ordinal)

    def ordinal_of(self, day: date, occurrence_id: int) -> int | None:
        for ordinal, occ_id in self._by_date.get(day, {}).items():
            if occ_id == occurrence_id:
                return ordinal
        return None

    def for_date(self, day: date) -> dict[int, int]:
        return dict(self._by_date.get(day, {}))

    def remove_at(self, day: date, day_list: list[Occurrence], ordinal: int) -> Occurrence:
        """Splice the occurrence at ordinal out of day_list and reindex that date.

        The caller's list is mutated; the index for ``day`` is rebuilt
        immediately so no stale ordinal survives the removal.
        """
        removed = day_list.pop(ordinal)
        self.rebuild_date(day, day_list)
        logger.debug(
            "Removed ordinal %d on %s (id %s); %d remain",
            ordinal, day, removed.id, len(day_list),
        )
        return removed

    def dates(self) -> list[date]:
        return sorted(self._by_date)

    def __len__(self) -> int:
        return sum(len(m) for m in self._by_date.values())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        day, ordinal = key
        return ordinal in self._by_date.get(day, {})
