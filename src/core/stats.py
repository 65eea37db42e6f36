"""
HomeBoard: Completion statistics and earnings.

Monthly completion counters are stored per (month, family member) and moved
up or down as chores are ticked. Earnings are derived on demand from the
completed chores in the view and the chore value lookup; they are never
stored.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date

from src.data.models import MonthlyCompletion, Occurrence, OccurrenceKind

# Chart bars scale against at least this many completions
MIN_CHART_SCALE = 10


def month_key(day: date) -> str:
    """YYYY-MM for a date."""
    return f"{day.year:04d}-{day.month:02d}"


def completions_by_month(
    completions: Iterable[MonthlyCompletion],
) -> dict[str, dict[str, int]]:
    """Nest stored counters as {month: {member: count}}."""
    result: dict[str, dict[str, int]] = {}
    for c in completions:
        result.setdefault(c.month, {})[c.family_member] = c.count
    return result


def adjust_completion(
    counts: dict[str, dict[str, int]],
    month: str,
    member: str,
    was_completed: bool,
    now_completed: bool,
) -> MonthlyCompletion:
    """Apply a completion toggle to the nested counters and return the new row.

    Unchecking never drives a counter below zero.
    """
    month_counts = counts.setdefault(month, {})
    current = month_counts.get(member, 0)
    if now_completed and not was_completed:
        current += 1
    elif was_completed and not now_completed:
        current = max(current - 1, 0)
    month_counts[member] = current
    return MonthlyCompletion(month=month, family_member=member, count=current)


def calculate_earnings(
    chores: Iterable[Occurrence],
    values: Mapping[str, float],
    member: str,
    month: str,
) -> float:
    """Sum the dollar values of member's completed chores dated in month.

    Chores without a value in the lookup earn nothing.
    """
    total = 0.0
    for chore in chores:
        if chore.kind != OccurrenceKind.CHORE:
            continue
        if not chore.completed or chore.assigned_to != member:
            continue
        if month_key(chore.date) != month:
            continue
        total += values.get(chore.title, 0.0)
    return total


@dataclass
class ChartRow:
    member: str
    count: int
    earnings: float
    percentage: float


def completion_chart(
    members: Iterable[str],
    month_counts: Mapping[str, int],
    chores: Iterable[Occurrence],
    values: Mapping[str, float],
    month: str,
) -> list[ChartRow]:
    """One bar per family member, in the given order."""
    members = list(members)
    chores = list(chores)
    scale = max([month_counts.get(m, 0) for m in members] + [MIN_CHART_SCALE])
    rows = []
    for member in members:
        count = month_counts.get(member, 0)
        rows.append(
            ChartRow(
                member=member,
                count=count,
                earnings=calculate_earnings(chores, values, member, month),
                percentage=(count / scale) * 100 if scale > 0 else 0.0,
            )
        )
    return rows
