"""
HomeBoard: Recurrence window expansion.

Expands a recurring template into the concrete dates that fall inside the
sliding materialization window around an anchor day (normally "today").

Stepping always starts at the template's start_date, so the phase of the
recurrence is preserved: a weekly template that starts on a Tuesday only
ever lands on Tuesdays, however far into the series the window begins.
Dates before the window are stepped over and filtered, never re-phased.

Monthly stepping is measured from start_date, not from the previous
occurrence: the n-th date is ``start_date + n months``, clamped to the last
day of shorter months. A series starting Jan 31 therefore yields Feb 28
(or 29), Mar 31, Apr 30, May 31, ... and never skips or duplicates a month.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator

from dateutil.relativedelta import relativedelta

from src.data.models import Frequency, RecurringTemplate

DEFAULT_PAST_DAYS = 30
DEFAULT_FUTURE_DAYS = 60


@dataclass(frozen=True)
class Window:
    """Inclusive date range within which occurrences are materialized."""

    start: date
    end: date

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.start <= day <= self.end

    @property
    def empty(self) -> bool:
        return self.start > self.end


def window_for(
    anchor: date,
    past_days: int = DEFAULT_PAST_DAYS,
    future_days: int = DEFAULT_FUTURE_DAYS,
) -> Window:
    """The raw sliding window around anchor, before any template clipping."""
    return Window(anchor - timedelta(days=past_days), anchor + timedelta(days=future_days))


def effective_window(
    template: RecurringTemplate,
    anchor: date,
    past_days: int = DEFAULT_PAST_DAYS,
    future_days: int = DEFAULT_FUTURE_DAYS,
) -> Window:
    """The sliding window clipped to the template's own start/end dates."""
    raw = window_for(anchor, past_days, future_days)
    lower = max(template.start_date, raw.start)
    upper = raw.end if template.end_date is None else min(template.end_date, raw.end)
    return Window(lower, upper)


def nth_date(start: date, frequency: Frequency, n: int) -> date:
    """The n-th date (0-based) of a series beginning at start."""
    if frequency == Frequency.DAILY:
        return start + timedelta(days=n)
    if frequency == Frequency.WEEKLY:
        return start + timedelta(weeks=n)
    if frequency == Frequency.MONTHLY:
        return start + relativedelta(months=n)
    raise ValueError(f"Unsupported frequency: {frequency!r}")


def iter_series(start: date, frequency: Frequency) -> Iterator[date]:
    """Unbounded series of dates from start. Callers must bound it."""
    n = 0
    while True:
        yield nth_date(start, frequency, n)
        n += 1


def expand(
    template: RecurringTemplate,
    anchor: date,
    past_days: int = DEFAULT_PAST_DAYS,
    future_days: int = DEFAULT_FUTURE_DAYS,
) -> Iterator[date]:
    """Yield, in ascending order, every template date inside the window.

    Pure and restartable: calling it twice with the same arguments yields
    the same sequence. The generator is finite and safe to abandon early.
    """
    window = effective_window(template, anchor, past_days, future_days)
    if window.empty:
        return
    for day in iter_series(template.start_date, template.frequency):
        if day > window.end:
            return
        if day >= window.start:
            yield day
