"""Plain-text renderer: implements RenderPort for terminals and logs."""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING

from src.data.models import OccurrenceKind

if TYPE_CHECKING:
    from src.core.view import DashboardView
    from src.data.models import DayWeather

_RECURRING_BADGE = "↻"


def format_time_12h(value: str) -> str:
    """'13:05' -> '1:05 PM'. Non HH:MM values pass through unchanged."""
    try:
        hours, minutes = value.split(":")
        hour = int(hours)
    except ValueError:
        return value
    suffix = "PM" if hour >= 12 else "AM"
    hour = hour % 12 or 12
    return f"{hour}:{minutes} {suffix}"


class TextRenderer:
    """Renders one week of the view, a day per block."""

    def render(
        self,
        view: DashboardView,
        week_start: date,
        weather: DayWeather | None = None,
    ) -> str:
        lines: list[str] = []
        if weather is not None:
            lines.append(
                f"Weather {weather.day:%a %b %d}: {weather.description}, "
                f"{weather.temp_max:.0f}° / {weather.temp_min:.0f}°"
            )
            lines.append("")

        for offset in range(7):
            day = week_start + timedelta(days=offset)
            lines.append(f"{day:%A %Y-%m-%d}")

            for ordinal, entry in enumerate(view.day(OccurrenceKind.ENTRY, day)):
                badge = f" {_RECURRING_BADGE}" if entry.recurring else ""
                who = f" ({entry.assigned_to})" if entry.assigned_to else ""
                lines.append(
                    f"  [{ordinal}] {format_time_12h(entry.time)} {entry.title}{who}{badge}"
                )
            for ev in view.external.get(day, []):
                when = ev.time if ev.time == "All Day" else format_time_12h(ev.time)
                lines.append(f"  [{ev.source}] {when} {ev.title}")
            for ordinal, chore in enumerate(view.day(OccurrenceKind.CHORE, day)):
                mark = "x" if chore.completed else " "
                badge = f" {_RECURRING_BADGE}" if chore.recurring else ""
                who = f" ({chore.assigned_to})" if chore.assigned_to else ""
                lines.append(f"  [{ordinal}] [{mark}] {chore.title}{who}{badge}")
        return "\n".join(lines)
