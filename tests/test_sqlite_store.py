"""Tests for src.adapters.sqlite_store: async wrapping and error translation."""

import sqlite3
from datetime import date
from unittest.mock import MagicMock

import pytest

from src.adapters.sqlite_store import SQLiteStore
from src.data.models import Frequency, Occurrence, OccurrenceKind, RecurringTemplate
from src.ports.store_port import DuplicateOccurrence, NotFound, StorageUnavailable


def _occurrence(template_ref=None):
    return Occurrence(id=None, kind=OccurrenceKind.CHORE, date=date(2024, 6, 1),
                      title="Sweep porch", template_ref=template_ref)


class TestSQLiteStore:
    @pytest.mark.asyncio
    async def test_create_returns_id(self, store):
        occ_id = await store.create_occurrence(_occurrence())
        rows = await store.list_occurrences()
        assert [r.id for r in rows] == [occ_id]

    @pytest.mark.asyncio
    async def test_duplicate_generation_key(self, store):
        await store.create_occurrence(_occurrence("recur_1"))
        with pytest.raises(DuplicateOccurrence):
            await store.create_occurrence(_occurrence("recur_1"))

    @pytest.mark.asyncio
    async def test_update_missing_raises_not_found(self, store):
        with pytest.raises(NotFound):
            await store.update_occurrence(404, completed=True)

    @pytest.mark.asyncio
    async def test_delete_missing_raises_not_found(self, store):
        with pytest.raises(NotFound):
            await store.delete_occurrence(404)

    @pytest.mark.asyncio
    async def test_template_round_trip(self, store):
        template = RecurringTemplate(
            id="recur_1", kind=OccurrenceKind.CHORE, title="Sweep porch",
            start_date=date(2024, 6, 1), frequency=Frequency.WEEKLY,
        )
        await store.create_template(template)
        await store.update_end_date("recur_1", date(2024, 7, 1))
        assert (await store.get_template("recur_1")).end_date == date(2024, 7, 1)
        await store.delete_template("recur_1")
        assert await store.list_templates() == []

    @pytest.mark.asyncio
    async def test_missing_template_edits_raise_not_found(self, store):
        with pytest.raises(NotFound):
            await store.update_end_date("nope", date(2024, 7, 1))
        with pytest.raises(NotFound):
            await store.delete_template("nope")

    @pytest.mark.asyncio
    async def test_delete_where(self, store):
        await store.create_occurrence(_occurrence("recur_1"))
        assert await store.delete_where("recur_1") == 1

    @pytest.mark.asyncio
    async def test_driver_error_becomes_storage_unavailable(self):
        db = MagicMock()
        db.list_templates.side_effect = sqlite3.OperationalError("unable to open database file")
        with pytest.raises(StorageUnavailable):
            await SQLiteStore(db=db).list_templates()

    @pytest.mark.asyncio
    async def test_create_driver_error_becomes_storage_unavailable(self):
        db = MagicMock()
        db.add_occurrence.side_effect = sqlite3.OperationalError("database is locked")
        with pytest.raises(StorageUnavailable):
            await SQLiteStore(db=db).create_occurrence(_occurrence("recur_1"))

    @pytest.mark.asyncio
    async def test_other_integrity_errors_are_not_duplicates(self):
        db = MagicMock()
        db.add_occurrence.side_effect = sqlite3.IntegrityError(
            "NOT NULL constraint failed: occurrences.title"
        )
        with pytest.raises(StorageUnavailable) as exc_info:
            await SQLiteStore(db=db).create_occurrence(_occurrence("recur_1"))
        assert not isinstance(exc_info.value, DuplicateOccurrence)

    @pytest.mark.asyncio
    async def test_convert_missing_occurrence_raises_not_found(self, store):
        template = RecurringTemplate(
            id="recur_1", kind=OccurrenceKind.CHORE, title="Sweep porch",
            start_date=date(2024, 6, 1), frequency=Frequency.WEEKLY,
        )
        with pytest.raises(NotFound):
            await store.convert_to_template(404, template)
        assert await store.list_templates() == []


class TestValueAndCompletionStores:
    @pytest.mark.asyncio
    async def test_value_store(self, value_store):
        value = await value_store.set_value("Dishes", 1.5)
        await value_store.rename_value(value.id, "Wash dishes", 2.0)
        values = await value_store.list_values()
        assert [(v.chore_name, v.dollar_value) for v in values] == [("Wash dishes", 2.0)]
        await value_store.delete_value(value.id)
        with pytest.raises(NotFound):
            await value_store.delete_value(value.id)

    @pytest.mark.asyncio
    async def test_completion_store(self, completion_store):
        from src.data.models import MonthlyCompletion

        await completion_store.save_completion(MonthlyCompletion("2024-06", "ben", 3))
        rows = await completion_store.list_completions()
        assert rows == [MonthlyCompletion("2024-06", "ben", 3)]
