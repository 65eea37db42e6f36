"""
HomeBoard: Dashboard view projection.

The per-date lists the renderer shows are a projection of the occurrence
store, never a primary copy. ``rebuild_view`` is the single place that
builds them, together with their position indexes; it is called after every
mutating operation instead of patching cached lists ad hoc.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from src.core.position_index import PositionIndex
from src.data.models import ExternalEvent, Occurrence, OccurrenceKind


@dataclass
class DashboardView:
    """Read-only snapshot handed to the rendering layer."""

    entries: dict[date, list[Occurrence]] = field(default_factory=dict)
    chores: dict[date, list[Occurrence]] = field(default_factory=dict)
    entry_index: PositionIndex = field(default_factory=PositionIndex)
    chore_index: PositionIndex = field(default_factory=PositionIndex)
    external: dict[date, list[ExternalEvent]] = field(default_factory=dict)

    def lists(self, kind: OccurrenceKind) -> dict[date, list[Occurrence]]:
        return self.entries if kind == OccurrenceKind.ENTRY else self.chores

    def index(self, kind: OccurrenceKind) -> PositionIndex:
        return self.entry_index if kind == OccurrenceKind.ENTRY else self.chore_index

    def day(self, kind: OccurrenceKind, day: date) -> list[Occurrence]:
        return list(self.lists(kind).get(day, []))

    def at(self, kind: OccurrenceKind, day: date, ordinal: int) -> Occurrence | None:
        day_list = self.lists(kind).get(day, [])
        if 0 <= ordinal < len(day_list):
            return day_list[ordinal]
        return None

    def all_occurrences(self) -> list[Occurrence]:
        result: list[Occurrence] = []
        for lists in (self.entries, self.chores):
            for day in sorted(lists):
                result.extend(lists[day])
        return result


def _entry_sort_key(occ: Occurrence) -> tuple:
    return (occ.time, occ.id if occ.id is not None else float("inf"))


def rebuild_view(
    occurrences: Iterable[Occurrence],
    external: dict[date, list[ExternalEvent]] | None = None,
) -> DashboardView:
    """Project store rows into per-date lists and fresh position indexes.

    Entries are ordered by time of day; chores keep store order.
    """
    entries: dict[date, list[Occurrence]] = defaultdict(list)
    chores: dict[date, list[Occurrence]] = defaultdict(list)
    for occ in occurrences:
        target = entries if occ.kind == OccurrenceKind.ENTRY else chores
        target[occ.date].append(occ)

    for day_list in entries.values():
        day_list.sort(key=_entry_sort_key)

    view = DashboardView(
        entries=dict(entries),
        chores=dict(chores),
        external=dict(external or {}),
    )
    view.entry_index.rebuild(view.entries)
    view.chore_index.rebuild(view.chores)
    return view
