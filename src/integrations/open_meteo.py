"""Open-Meteo integration: daily forecast for the dashboard header.

Uses the free forecast endpoint (no API key) to fetch the max/min
temperature and WMO weather code for a single day.

Gracefully degrades: returns None on any failure (timeout, HTTP error,
missing fields, etc.).
"""

from __future__ import annotations

import logging
from datetime import date

import httpx

from src.data.models import DayWeather

logger = logging.getLogger(__name__)

_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
_TIMEOUT_SECONDS = 5

# WMO weather interpretation codes
WEATHER_CODES: dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Foggy",
    48: "Foggy",
    51: "Light drizzle",
    53: "Drizzle",
    55: "Heavy drizzle",
    61: "Light rain",
    63: "Rain",
    65: "Heavy rain",
    71: "Light snow",
    73: "Snow",
    75: "Heavy snow",
    77: "Snow grains",
    80: "Light showers",
    81: "Showers",
    82: "Heavy showers",
    85: "Light snow showers",
    86: "Snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with hail",
    99: "Thunderstorm with hail",
}


def describe_code(code: int) -> str:
    return WEATHER_CODES.get(code, "Unknown")


class OpenMeteoWeather:
    """Open-Meteo implementation of WeatherPort."""

    def __init__(
        self,
        latitude: float,
        longitude: float,
        timezone: str,
        temperature_unit: str = "fahrenheit",
    ) -> None:
        self._latitude = latitude
        self._longitude = longitude
        self._timezone = timezone
        self._unit = temperature_unit

    async def forecast(self, day: date) -> DayWeather | None:
        try:
            async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS) as client:
                resp = await client.get(
                    _FORECAST_URL,
                    params={
                        "latitude": self._latitude,
                        "longitude": self._longitude,
                        "daily": "temperature_2m_max,temperature_2m_min,weathercode",
                        "timezone": self._timezone,
                        "temperature_unit": self._unit,
                        "start_date": day.isoformat(),
                        "end_date": day.isoformat(),
                    },
                )
                resp.raise_for_status()
                data = resp.json()

            daily = data.get("daily", {})
            if not daily.get("time"):
                logger.info("No forecast returned for %s", day)
                return None

            code = int(daily["weathercode"][0])
            return DayWeather(
                day=day,
                temp_max=float(daily["temperature_2m_max"][0]),
                temp_min=float(daily["temperature_2m_min"][0]),
                code=code,
                description=describe_code(code),
            )
        except Exception as exc:
            logger.warning("Weather lookup failed for %s: %s", day, exc)
            return None
