"""SQLite store adapter: implements the store ports over src.data.db.

The sqlite3 module is blocking, so every call is wrapped with
asyncio.to_thread. Driver errors are translated into the port's error
taxonomy; nothing sqlite-specific leaks to the core.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from datetime import date
from typing import Any, Callable, TypeVar

from src.data.db import ChoreValueDB, CompletionDB, RecurrenceDB
from src.data.models import (
    ChoreValue,
    MonthlyCompletion,
    Occurrence,
    OccurrenceKind,
    RecurringTemplate,
)
from src.ports.store_port import DuplicateOccurrence, NotFound, StorageUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _call(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    try:
        return await asyncio.to_thread(func, *args, **kwargs)
    except sqlite3.Error as exc:
        name = getattr(func, "__name__", repr(func))
        logger.error("Storage call %s failed: %s", name, exc)
        raise StorageUnavailable(f"{name} failed: {exc}") from exc


class SQLiteStore:
    """SQLite implementation of TemplateStore, OccurrenceStore and LifecycleStore."""

    def __init__(self, db: RecurrenceDB | None = None, db_path: str | None = None) -> None:
        self._db = db or RecurrenceDB(db_path=db_path)

    # TemplateStore

    async def list_templates(
        self, kind: OccurrenceKind | None = None
    ) -> list[RecurringTemplate]:
        return await _call(self._db.list_templates, kind)

    async def get_template(self, template_id: str) -> RecurringTemplate | None:
        return await _call(self._db.get_template, template_id)

    async def create_template(self, template: RecurringTemplate) -> None:
        await _call(self._db.add_template, template)

    async def update_end_date(self, template_id: str, end_date: date) -> None:
        if not await _call(self._db.set_end_date, template_id, end_date):
            raise NotFound(f"Template {template_id} not found")

    async def delete_template(self, template_id: str) -> None:
        if not await _call(self._db.delete_template, template_id):
            raise NotFound(f"Template {template_id} not found")

    # OccurrenceStore

    async def list_occurrences(
        self, kind: OccurrenceKind | None = None
    ) -> list[Occurrence]:
        return await _call(self._db.list_occurrences, kind)

    async def create_occurrence(self, occurrence: Occurrence) -> int:
        try:
            saved = await asyncio.to_thread(self._db.add_occurrence, occurrence)
        except sqlite3.IntegrityError as exc:
            if occurrence.template_ref is None or "UNIQUE" not in str(exc):
                logger.error("Storage call add_occurrence failed: %s", exc)
                raise StorageUnavailable(f"add_occurrence failed: {exc}") from exc
            raise DuplicateOccurrence(
                f"{occurrence.template_ref} already has an occurrence on {occurrence.date}"
            ) from exc
        except sqlite3.Error as exc:
            logger.error("Storage call add_occurrence failed: %s", exc)
            raise StorageUnavailable(f"add_occurrence failed: {exc}") from exc
        return saved.id

    async def update_occurrence(self, occurrence_id: int, **fields: object) -> None:
        if not await _call(self._db.update_occurrence, occurrence_id, **fields):
            raise NotFound(f"Occurrence {occurrence_id} not found")

    async def delete_occurrence(self, occurrence_id: int) -> None:
        if not await _call(self._db.delete_occurrence, occurrence_id):
            raise NotFound(f"Occurrence {occurrence_id} not found")

    async def delete_where(
        self, template_ref: str, date_from: date | None = None
    ) -> int:
        return await _call(self._db.delete_by_template, template_ref, date_from)

    async def clear_manual(self, kind: OccurrenceKind) -> int:
        return await _call(self._db.clear_manual, kind)

    # LifecycleStore

    async def stop_future(
        self, template_id: str, new_end: date, from_date: date
    ) -> tuple[date | None, int]:
        return await _call(self._db.stop_future, template_id, new_end, from_date)

    async def delete_all(self, template_id: str) -> tuple[bool, int]:
        return await _call(self._db.delete_all, template_id)

    async def convert_to_template(
        self, occurrence_id: int, template: RecurringTemplate
    ) -> None:
        if not await _call(self._db.convert_to_template, occurrence_id, template):
            raise NotFound(f"Occurrence {occurrence_id} not found")


class SQLiteChoreValueStore:
    """SQLite implementation of ChoreValueStore."""

    def __init__(self, db: ChoreValueDB | None = None, db_path: str | None = None) -> None:
        self._db = db or ChoreValueDB(db_path=db_path)

    async def list_values(self) -> list[ChoreValue]:
        return await _call(self._db.list_values)

    async def set_value(self, chore_name: str, dollar_value: float) -> ChoreValue:
        return await _call(self._db.set_value, chore_name, dollar_value)

    async def rename_value(
        self, value_id: int, chore_name: str, dollar_value: float
    ) -> None:
        if not await _call(self._db.rename_value, value_id, chore_name, dollar_value):
            raise NotFound(f"Chore value {value_id} not found")

    async def delete_value(self, value_id: int) -> None:
        if not await _call(self._db.delete_value, value_id):
            raise NotFound(f"Chore value {value_id} not found")


class SQLiteCompletionStore:
    """SQLite implementation of CompletionStore."""

    def __init__(self, db: CompletionDB | None = None, db_path: str | None = None) -> None:
        self._db = db or CompletionDB(db_path=db_path)

    async def list_completions(self) -> list[MonthlyCompletion]:
        return await _call(self._db.list_completions)

    async def save_completion(self, completion: MonthlyCompletion) -> None:
        await _call(self._db.save_completion, completion)
