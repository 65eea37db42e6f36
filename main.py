"""
HomeBoard: Entry Point.

`python main.py [YYYY-MM-DD]` runs one reconciliation pass anchored on the
given day (default: today in TIMEZONE) and prints that week's dashboard.
"""

import asyncio
import logging
import sys
from datetime import date, timedelta

from src.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from src.adapters.sqlite_store import SQLiteChoreValueStore, SQLiteCompletionStore, SQLiteStore
from src.adapters.text_renderer import TextRenderer
from src.core.dashboard_service import DashboardService, today_in, week_start_for
from src.integrations.gcal_feed import GoogleCalendarFeed
from src.integrations.open_meteo import OpenMeteoWeather


async def run(anchor: date) -> str:
    service = DashboardService(
        store=SQLiteStore(),
        values=SQLiteChoreValueStore(),
        completions=SQLiteCompletionStore(),
        calendar_feed=GoogleCalendarFeed(settings.GCAL_API_KEY, settings.GCAL_CALENDAR_ID),
        members=settings.FAMILY_MEMBERS,
        past_days=settings.WINDOW_PAST_DAYS,
        future_days=settings.WINDOW_FUTURE_DAYS,
        today=lambda: today_in(settings.TIMEZONE),
    )
    weather_source = OpenMeteoWeather(
        settings.WEATHER_LATITUDE, settings.WEATHER_LONGITUDE, settings.TIMEZONE,
    )

    await service.load(anchor)
    week_start = week_start_for(anchor)
    await service.sync_external(week_start, week_start + timedelta(days=6))
    weather = await weather_source.forecast(anchor)

    lines = [TextRenderer().render(service.view, week_start, weather), ""]
    for row in service.chart():
        lines.append(f"{row.member:>10}: {row.count} chores, ${row.earnings:.2f}")
    return "\n".join(lines)


def main() -> None:
    anchor = date.fromisoformat(sys.argv[1]) if len(sys.argv) > 1 else today_in(settings.TIMEZONE)
    print(asyncio.run(run(anchor)))


if __name__ == "__main__":
    main()
