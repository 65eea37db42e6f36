"""
HomeBoard: centralized configuration.

Loads all settings from .env and validates them.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # SQLite
    DATABASE_PATH: str = "data/dashboard.db"

    # Materialization window around "today"
    WINDOW_PAST_DAYS: int = 30
    WINDOW_FUTURE_DAYS: int = 60

    # "Today" is computed in this zone
    TIMEZONE: str = "America/Kentucky/Louisville"

    # Assignee keys, in chart order
    FAMILY_MEMBERS: list[str] = ["dad", "mom", "karma", "ben", "jasmine"]

    # Open-Meteo forecast location
    WEATHER_LATITUDE: float = 38.25
    WEATHER_LONGITUDE: float = -85.76

    # Google Calendar read-only feed (disabled when either is empty)
    GCAL_API_KEY: str = ""
    GCAL_CALENDAR_ID: str = ""

    LOG_LEVEL: str = "INFO"

    @field_validator("FAMILY_MEMBERS", mode="before")
    @classmethod
    def parse_members(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [m.strip().lower() for m in v.split(",") if m.strip()]
        return []

    @field_validator("WINDOW_PAST_DAYS", "WINDOW_FUTURE_DAYS", mode="before")
    @classmethod
    def parse_horizon(cls, v: str | int) -> int:
        days = int(v)
        if days < 0:
            raise ValueError("window horizons must be non-negative")
        return days


def _load_settings() -> Settings:
    """Load settings from environment."""
    return Settings(
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/dashboard.db"),
        WINDOW_PAST_DAYS=os.getenv("WINDOW_PAST_DAYS", "30"),
        WINDOW_FUTURE_DAYS=os.getenv("WINDOW_FUTURE_DAYS", "60"),
        TIMEZONE=os.getenv("TIMEZONE", "America/Kentucky/Louisville"),
        FAMILY_MEMBERS=os.getenv("FAMILY_MEMBERS", "dad,mom,karma,ben,jasmine"),
        WEATHER_LATITUDE=os.getenv("WEATHER_LATITUDE", "38.25"),
        WEATHER_LONGITUDE=os.getenv("WEATHER_LONGITUDE", "-85.76"),
        GCAL_API_KEY=os.getenv("GCAL_API_KEY", ""),
        GCAL_CALENDAR_ID=os.getenv("GCAL_CALENDAR_ID", ""),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )


# Singleton, imported by all other modules as:
#   from src.config import settings
settings = _load_settings()
