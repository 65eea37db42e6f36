"""Store ports: abstract interfaces for template and occurrence persistence.

Core modules depend on these protocols, never on a specific backend.
Every call is async: the engine must not assume ordering between
independent calls, only within one awaited operation.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol

from src.data.models import (
    ChoreValue,
    MonthlyCompletion,
    Occurrence,
    OccurrenceKind,
    RecurringTemplate,
)


class StorageUnavailable(Exception):
    """Raised when a storage call fails. The operation is aborted."""


class NotFound(Exception):
    """Raised when a referenced template or occurrence no longer exists."""


class DuplicateOccurrence(Exception):
    """Raised when a (template_ref, date) pair is already materialized."""


class TemplateStore(Protocol):
    async def list_templates(
        self, kind: OccurrenceKind | None = None
    ) -> list[RecurringTemplate]: ...

    async def get_template(self, template_id: str) -> RecurringTemplate | None: ...

    async def create_template(self, template: RecurringTemplate) -> None: ...

    async def update_end_date(self, template_id: str, end_date: date) -> None: ...

    async def delete_template(self, template_id: str) -> None: ...


class OccurrenceStore(Protocol):
    async def list_occurrences(
        self, kind: OccurrenceKind | None = None
    ) -> list[Occurrence]: ...

    async def create_occurrence(self, occurrence: Occurrence) -> int: ...

    async def update_occurrence(self, occurrence_id: int, **fields: object) -> None: ...

    async def delete_occurrence(self, occurrence_id: int) -> None: ...

    async def delete_where(
        self, template_ref: str, date_from: date | None = None
    ) -> int: ...

    async def clear_manual(self, kind: OccurrenceKind) -> int: ...


class LifecycleStore(Protocol):
    """Multi-row template edits that must apply as one transaction."""

    async def stop_future(
        self, template_id: str, new_end: date, from_date: date
    ) -> tuple[date | None, int]:
        """Shorten end_date to new_end, then delete tagged occurrences on/after from_date.

        An earlier existing end date is kept. Returns (end date now in
        force, occurrences_removed); the end date is None when the template
        does not exist.
        """
        ...

    async def delete_all(self, template_id: str) -> tuple[bool, int]:
        """Delete the template and every tagged occurrence.

        Returns (template_found, occurrences_removed).
        """
        ...

    async def convert_to_template(
        self, occurrence_id: int, template: RecurringTemplate
    ) -> None:
        """Delete a one-off occurrence and create template in its place.

        Raises NotFound, changing nothing, when the occurrence is missing.
        """
        ...


class ChoreValueStore(Protocol):
    async def list_values(self) -> list[ChoreValue]: ...

    async def set_value(self, chore_name: str, dollar_value: float) -> ChoreValue: ...

    async def rename_value(
        self, value_id: int, chore_name: str, dollar_value: float
    ) -> None: ...

    async def delete_value(self, value_id: int) -> None: ...


class CompletionStore(Protocol):
    async def list_completions(self) -> list[MonthlyCompletion]: ...

    async def save_completion(self, completion: MonthlyCompletion) -> None: ...


class RecurrenceStore(TemplateStore, OccurrenceStore, LifecycleStore, Protocol):
    """A backend serving templates and occurrences from one transactional store."""
