"""
HomeBoard: SQLite storage.

Templates, occurrences, chore values and monthly completion counters all
persist in a single SQLite file so that multi-table lifecycle edits can run
inside one transaction.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path

from src.data.models import (
    ChoreValue,
    Frequency,
    InvalidTemplate,
    MonthlyCompletion,
    Occurrence,
    OccurrenceKind,
    RecurringTemplate,
)

logger = logging.getLogger(__name__)

_UPDATABLE_OCCURRENCE_FIELDS = ("title", "time", "description", "assigned_to", "completed")


def _resolve_path(db_path: str | None) -> str:
    if db_path is None:
        from src.config import settings
        db_path = settings.DATABASE_PATH
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return db_path


class _SQLiteDB:
    """Connection handling shared by the storage classes.

    A file database gets a fresh connection per call. ":memory:" keeps one
    connection for the life of the object, since every new connection would
    open its own empty database.
    """

    def __init__(self, db_path: str | None = None) -> None:
        self._db_path = _resolve_path(db_path)
        self._memory_conn: sqlite3.Connection | None = None
        if self._db_path == ":memory:":
            # Calls arrive from asyncio.to_thread workers
            self._memory_conn = sqlite3.connect(":memory:", check_same_thread=False)
            self._memory_conn.row_factory = sqlite3.Row
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        if self._memory_conn is not None:
            return self._memory_conn
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        raise NotImplementedError


class RecurrenceDB(_SQLiteDB):
    """SQLite-backed storage for recurring templates and their occurrences."""

    def _init_db(self) -> None:
        """Create the template and occurrence tables if they don't exist."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS recurring_templates (
                    id           TEXT PRIMARY KEY,
                    kind         TEXT NOT NULL,
                    title        TEXT NOT NULL,
                    time         TEXT NOT NULL DEFAULT '',
                    description  TEXT NOT NULL DEFAULT '',
                    assigned_to  TEXT,
                    start_date   TEXT NOT NULL,
                    end_date     TEXT,
                    frequency    TEXT NOT NULL
                                 CHECK (frequency IN ('daily', 'weekly', 'monthly')),
                    created_at   TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS occurrences (
                    id               INTEGER PRIMARY KEY AUTOINCREMENT,
                    kind             TEXT    NOT NULL,
                    occurrence_date  TEXT    NOT NULL,
                    title            TEXT    NOT NULL,
                    time             TEXT    NOT NULL DEFAULT '',
                    description      TEXT    NOT NULL DEFAULT '',
                    assigned_to      TEXT,
                    completed        INTEGER NOT NULL DEFAULT 0,
                    template_ref     TEXT,
                    created_at       TEXT    NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_occurrences_date "
                "ON occurrences (occurrence_date)"
            )
            # One materialized row per (template, date)
            conn.execute(
                "CREATE UNIQUE INDEX IF NOT EXISTS idx_occurrences_generation "
                "ON occurrences (template_ref, occurrence_date) "
                "WHERE template_ref IS NOT NULL"
            )
        logger.debug("Recurrence tables initialized at %s", self._db_path)

    @staticmethod
    def _row_to_template(row: sqlite3.Row) -> RecurringTemplate:
        return RecurringTemplate(
            id=row["id"],
            kind=OccurrenceKind(row["kind"]),
            title=row["title"],
            time=row["time"],
            description=row["description"],
            assigned_to=row["assigned_to"],
            start_date=date.fromisoformat(row["start_date"]),
            end_date=date.fromisoformat(row["end_date"]) if row["end_date"] else None,
            frequency=Frequency(row["frequency"]),
        )

    @staticmethod
    def _row_to_occurrence(row: sqlite3.Row) -> Occurrence:
        return Occurrence(
            id=row["id"],
            kind=OccurrenceKind(row["kind"]),
            date=date.fromisoformat(row["occurrence_date"]),
            title=row["title"],
            time=row["time"],
            description=row["description"],
            assigned_to=row["assigned_to"],
            completed=bool(row["completed"]),
            template_ref=row["template_ref"],
        )

    # -- templates ---------------------------------------------------------

    @staticmethod
    def _insert_template(conn: sqlite3.Connection, template: RecurringTemplate) -> None:
        conn.execute(
            """
            INSERT INTO recurring_templates
                (id, kind, title, time, description, assigned_to,
                 start_date, end_date, frequency, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                template.id, template.kind.value, template.title,
                template.time, template.description, template.assigned_to,
                template.start_date.isoformat(),
                template.end_date.isoformat() if template.end_date else None,
                template.frequency.value, datetime.now().isoformat(),
            ),
        )

    def add_template(self, template: RecurringTemplate) -> RecurringTemplate:
        """Insert a template. The caller-generated id must be unique."""
        try:
            with self._connect() as conn:
                self._insert_template(conn, template)
        except sqlite3.IntegrityError:
            raise InvalidTemplate(f"Template {template.id} already exists") from None
        logger.info(
            "Template added: %s '%s' %s from %s",
            template.id, template.title, template.frequency.value, template.start_date,
        )
        return template

    def get_template(self, template_id: str) -> RecurringTemplate | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM recurring_templates WHERE id = ?", (template_id,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_template(row)

    def list_templates(self, kind: OccurrenceKind | None = None) -> list[RecurringTemplate]:
        query = "SELECT * FROM recurring_templates"
        params: list = []
        if kind is not None:
            query += " WHERE kind = ?"
            params.append(kind.value)
        query += " ORDER BY created_at, id"
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_template(r) for r in rows]

    def set_end_date(self, template_id: str, end_date: date) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE recurring_templates SET end_date = ? WHERE id = ?",
                (end_date.isoformat(), template_id),
            )
        return cursor.rowcount > 0

    def delete_template(self, template_id: str) -> bool:
        """Delete only the template row. Occurrences are left alone."""
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM recurring_templates WHERE id = ?", (template_id,)
            )
        return cursor.rowcount > 0

    # -- occurrences -------------------------------------------------------

    def add_occurrence(self, occurrence: Occurrence) -> Occurrence:
        """Insert an occurrence and return it with its assigned id.

        Raises sqlite3.IntegrityError if the template already has a row on
        that date.
        """
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO occurrences
                    (kind, occurrence_date, title, time, description,
                     assigned_to, completed, template_ref, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    occurrence.kind.value, occurrence.date.isoformat(),
                    occurrence.title, occurrence.time, occurrence.description,
                    occurrence.assigned_to, int(occurrence.completed),
                    occurrence.template_ref, datetime.now().isoformat(),
                ),
            )
            occurrence.id = cursor.lastrowid
        logger.debug(
            "Occurrence added: #%d %s '%s' on %s",
            occurrence.id, occurrence.kind.value, occurrence.title, occurrence.date,
        )
        return occurrence

    def get_occurrence(self, occurrence_id: int) -> Occurrence | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM occurrences WHERE id = ?", (occurrence_id,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_occurrence(row)

    def list_occurrences(self, kind: OccurrenceKind | None = None) -> list[Occurrence]:
        """All occurrences grouped by date ascending, stable within a date."""
        query = "SELECT * FROM occurrences"
        params: list = []
        if kind is not None:
            query += " WHERE kind = ?"
            params.append(kind.value)
        query += " ORDER BY occurrence_date, time, id"
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_occurrence(r) for r in rows]

    def update_occurrence(self, occurrence_id: int, **fields: object) -> bool:
        """Update payload fields (and chore completion) of one occurrence."""
        unknown = set(fields) - set(_UPDATABLE_OCCURRENCE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update occurrence fields: {sorted(unknown)}")
        if not fields:
            return self.get_occurrence(occurrence_id) is not None

        columns = [name for name in _UPDATABLE_OCCURRENCE_FIELDS if name in fields]
        values = [
            int(fields[name]) if name == "completed" else fields[name]
            for name in columns
        ]
        assignments = ", ".join(f"{name} = ?" for name in columns)
        with self._connect() as conn:
            cursor = conn.execute(
                f"UPDATE occurrences SET {assignments} WHERE id = ?",
                (*values, occurrence_id),
            )
        return cursor.rowcount > 0

    def delete_occurrence(self, occurrence_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM occurrences WHERE id = ?", (occurrence_id,)
            )
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Occurrence #%d deleted", occurrence_id)
        return deleted

    def delete_by_template(self, template_ref: str, date_from: date | None = None) -> int:
        """Delete occurrences tagged with template_ref, optionally only on/after date_from."""
        with self._connect() as conn:
            removed = self._delete_tagged(conn, template_ref, date_from)
        return removed

    def clear_manual(self, kind: OccurrenceKind) -> int:
        """Delete every non-recurring occurrence of one kind."""
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM occurrences WHERE kind = ? AND template_ref IS NULL",
                (kind.value,),
            )
        logger.info("Cleared %d manual %s occurrences", cursor.rowcount, kind.value)
        return cursor.rowcount

    @staticmethod
    def _delete_tagged(
        conn: sqlite3.Connection, template_ref: str, date_from: date | None
    ) -> int:
        if date_from is None:
            cursor = conn.execute(
                "DELETE FROM occurrences WHERE template_ref = ?", (template_ref,)
            )
        else:
            cursor = conn.execute(
                "DELETE FROM occurrences WHERE template_ref = ? AND occurrence_date >= ?",
                (template_ref, date_from.isoformat()),
            )
        return cursor.rowcount

    # -- lifecycle (one transaction each) ----------------------------------

    def stop_future(
        self, template_id: str, new_end: date, from_date: date
    ) -> tuple[date | None, int]:
        """Truncate a template and drop its occurrences on/after from_date.

        The end date only ever moves earlier: an existing end date before
        new_end is kept. It is written before the delete, inside the same
        transaction. Returns (end date now in force, occurrences_removed);
        the end date is None when the template does not exist.
        """
        end = new_end.isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE recurring_templates
                SET end_date = CASE
                    WHEN end_date IS NOT NULL AND end_date < ? THEN end_date
                    ELSE ?
                END
                WHERE id = ?
                """,
                (end, end, template_id),
            )
            row = conn.execute(
                "SELECT end_date FROM recurring_templates WHERE id = ?", (template_id,)
            ).fetchone()
            removed = self._delete_tagged(conn, template_id, from_date)
        in_force = date.fromisoformat(row["end_date"]) if row is not None else None
        logger.info(
            "Template %s stopped: end_date=%s, %d future occurrences removed",
            template_id, in_force, removed,
        )
        return in_force, removed

    def convert_to_template(self, occurrence_id: int, template: RecurringTemplate) -> bool:
        """Replace a one-off occurrence with a new template, atomically.

        Returns False, changing nothing, when the occurrence does not exist.
        """
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "DELETE FROM occurrences WHERE id = ? AND template_ref IS NULL",
                    (occurrence_id,),
                )
                if cursor.rowcount == 0:
                    return False
                self._insert_template(conn, template)
        except sqlite3.IntegrityError:
            raise InvalidTemplate(f"Template {template.id} already exists") from None
        logger.info(
            "Occurrence #%d converted to template %s (%s from %s)",
            occurrence_id, template.id, template.frequency.value, template.start_date,
        )
        return True

    def delete_all(self, template_id: str) -> tuple[bool, int]:
        """Delete a template and every occurrence it spawned, atomically."""
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM recurring_templates WHERE id = ?", (template_id,)
            )
            found = cursor.rowcount > 0
            removed = self._delete_tagged(conn, template_id, None)
        logger.info(
            "Template %s deleted with %d occurrences", template_id, removed,
        )
        return found, removed


class ChoreValueDB(_SQLiteDB):
    """SQLite-backed lookup of chore text → dollar value."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS chore_values (
                    id            INTEGER PRIMARY KEY AUTOINCREMENT,
                    chore_name    TEXT NOT NULL UNIQUE,
                    dollar_value  REAL NOT NULL DEFAULT 0
                )
            """)
        logger.debug("Chore values table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_value(row: sqlite3.Row) -> ChoreValue:
        return ChoreValue(
            id=row["id"],
            chore_name=row["chore_name"],
            dollar_value=float(row["dollar_value"]),
        )

    def list_values(self) -> list[ChoreValue]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM chore_values ORDER BY chore_name"
            ).fetchall()
        return [self._row_to_value(r) for r in rows]

    def set_value(self, chore_name: str, dollar_value: float) -> ChoreValue:
        """Insert or overwrite the value for a chore name."""
        if dollar_value < 0:
            raise ValueError("dollar_value must be non-negative")
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO chore_values (chore_name, dollar_value) VALUES (?, ?)
                ON CONFLICT(chore_name) DO UPDATE SET dollar_value = excluded.dollar_value
                """,
                (chore_name, dollar_value),
            )
            row = conn.execute(
                "SELECT * FROM chore_values WHERE chore_name = ?", (chore_name,)
            ).fetchone()
        logger.info("Chore value set: '%s' = %.2f", chore_name, dollar_value)
        return self._row_to_value(row)

    def rename_value(self, value_id: int, chore_name: str, dollar_value: float) -> bool:
        if dollar_value < 0:
            raise ValueError("dollar_value must be non-negative")
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE chore_values SET chore_name = ?, dollar_value = ? WHERE id = ?",
                (chore_name, dollar_value, value_id),
            )
        return cursor.rowcount > 0

    def delete_value(self, value_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM chore_values WHERE id = ?", (value_id,))
        return cursor.rowcount > 0


class CompletionDB(_SQLiteDB):
    """SQLite-backed monthly completed-chore counters per family member."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS monthly_completions (
                    id             INTEGER PRIMARY KEY AUTOINCREMENT,
                    month          TEXT    NOT NULL,
                    family_member  TEXT    NOT NULL,
                    count          INTEGER NOT NULL DEFAULT 0,
                    UNIQUE (month, family_member)
                )
            """)
        logger.debug("Monthly completions table initialized at %s", self._db_path)

    def list_completions(self) -> list[MonthlyCompletion]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM monthly_completions ORDER BY month, family_member"
            ).fetchall()
        return [
            MonthlyCompletion(
                month=r["month"], family_member=r["family_member"], count=r["count"],
            )
            for r in rows
        ]

    def save_completion(self, completion: MonthlyCompletion) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO monthly_completions (month, family_member, count)
                VALUES (?, ?, ?)
                ON CONFLICT(month, family_member) DO UPDATE SET count = excluded.count
                """,
                (completion.month, completion.family_member, completion.count),
            )
        logger.info(
            "Completions for %s in %s: %d",
            completion.family_member, completion.month, completion.count,
        )
