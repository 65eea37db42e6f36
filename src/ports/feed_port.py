"""Feed ports: read-only third-party data sources.

Implementations degrade gracefully: on any failure they return None or an
empty list instead of raising.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol

from src.data.models import DayWeather, ExternalEvent


class WeatherPort(Protocol):
    async def forecast(self, day: date) -> DayWeather | None: ...


class ExternalCalendarPort(Protocol):
    async def events_between(self, start: date, end: date) -> list[ExternalEvent]: ...
