"""Google Calendar public feed: read-only events for the visible week.

Calls the Calendar API v3 events endpoint with a plain API key, so it only
works for public calendars. Nothing fetched here is ever persisted; events
are shown next to the dashboard's own entries.

Gracefully degrades: returns an empty list on any failure.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from urllib.parse import quote

import httpx

from src.data.models import ExternalEvent

logger = logging.getLogger(__name__)

_EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/{calendar_id}/events"
_TIMEOUT_SECONDS = 10


def _parse_item(item: dict) -> ExternalEvent | None:
    start = item.get("start", {})
    if "dateTime" in start:
        start_dt = datetime.fromisoformat(start["dateTime"].replace("Z", "+00:00"))
        day, when = start_dt.date(), start_dt.strftime("%H:%M")
    elif "date" in start:
        day, when = date.fromisoformat(start["date"]), "All Day"
    else:
        return None
    return ExternalEvent(
        day=day,
        title=item.get("summary") or "Untitled Event",
        time=when,
        description=item.get("description", ""),
    )


class GoogleCalendarFeed:
    """Google Calendar implementation of ExternalCalendarPort."""

    def __init__(self, api_key: str, calendar_id: str) -> None:
        self._api_key = api_key
        self._calendar_id = calendar_id

    @property
    def enabled(self) -> bool:
        return bool(self._api_key and self._calendar_id)

    async def events_between(self, start: date, end: date) -> list[ExternalEvent]:
        """Events starting in [start, end], both inclusive."""
        if not self.enabled:
            return []

        time_min = datetime.combine(start, time.min).isoformat() + "Z"
        time_max = datetime.combine(end + timedelta(days=1), time.min).isoformat() + "Z"
        url = _EVENTS_URL.format(calendar_id=quote(self._calendar_id, safe=""))
        try:
            async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS) as client:
                resp = await client.get(
                    url,
                    params={
                        "key": self._api_key,
                        "timeMin": time_min,
                        "timeMax": time_max,
                        "singleEvents": "true",
                        "orderBy": "startTime",
                    },
                )
                resp.raise_for_status()
                data = resp.json()

            events = [ev for ev in map(_parse_item, data.get("items", [])) if ev]
            logger.info("Google Calendar feed: %d events %s..%s", len(events), start, end)
            return events
        except Exception as exc:
            logger.warning("Google Calendar feed failed: %s", exc)
            return []
