"""Shared test fixtures and configuration.

Sets up environment variables before any src imports, and provides
temp-file SQLite stores plus a service pinned to a fixed "today".
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("GCAL_API_KEY", "")
os.environ.setdefault("GCAL_CALENDAR_ID", "")
os.environ.setdefault("FAMILY_MEMBERS", "dad,mom,karma,ben,jasmine")

from datetime import date

import pytest

TODAY = date(2024, 6, 15)


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_dashboard.db")


@pytest.fixture
def recurrence_db(tmp_db_path):
    from src.data.db import RecurrenceDB
    return RecurrenceDB(db_path=tmp_db_path)


@pytest.fixture
def store(recurrence_db):
    from src.adapters.sqlite_store import SQLiteStore
    return SQLiteStore(db=recurrence_db)


@pytest.fixture
def value_store(tmp_db_path):
    from src.adapters.sqlite_store import SQLiteChoreValueStore
    return SQLiteChoreValueStore(db_path=tmp_db_path)


@pytest.fixture
def completion_store(tmp_db_path):
    from src.adapters.sqlite_store import SQLiteCompletionStore
    return SQLiteCompletionStore(db_path=tmp_db_path)


@pytest.fixture
def service(store, value_store, completion_store):
    """DashboardService over temp SQLite stores, today pinned to TODAY."""
    from src.core.dashboard_service import DashboardService
    return DashboardService(
        store=store,
        values=value_store,
        completions=completion_store,
        members=["dad", "mom", "ben"],
        today=lambda: TODAY,
    )
