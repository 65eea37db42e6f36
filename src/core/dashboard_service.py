"""
HomeBoard: UI-agnostic dashboard service.

Stateful service layer that orchestrates the recurrence engine:
load stores -> materialize every template's window -> rebuild the view.
User edits (manual items, completion toggles, lifecycle edits) go through
here; every successful write is followed by a full view rebuild from the
store, never by patching the cached lists.

Storage failures propagate as StorageUnavailable and leave the previous
view untouched; the caller retries by reconciling again.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ValidationError, field_validator

from src.core.lifecycle import LifecycleController, LifecycleResult, TemplateState, template_state
from src.core.materializer import Materializer
from src.core.recurrence import DEFAULT_FUTURE_DAYS, DEFAULT_PAST_DAYS
from src.core.stats import (
    ChartRow,
    adjust_completion,
    calculate_earnings,
    completion_chart,
    completions_by_month,
    month_key,
)
from src.core.view import DashboardView, rebuild_view
from src.data.models import (
    ChoreValue,
    ExternalEvent,
    Frequency,
    InvalidTemplate,
    Occurrence,
    OccurrenceKind,
    RecurringTemplate,
    is_valid_time,
    new_template_id,
    parse_frequency,
)
from src.ports.store_port import NotFound, StorageUnavailable

if TYPE_CHECKING:
    from src.ports.feed_port import ExternalCalendarPort
    from src.ports.store_port import ChoreValueStore, CompletionStore, RecurrenceStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Input contracts
# ---------------------------------------------------------------------------


class TemplateDraft(BaseModel):
    """Raw template input from a form or API call."""

    kind: OccurrenceKind
    title: str
    start_date: date
    frequency: Frequency
    end_date: date | None = None
    time: str = ""
    description: str = ""
    assigned_to: str | None = None

    @field_validator("frequency", mode="before")
    @classmethod
    def parse_freq(cls, v: str | Frequency) -> Frequency:
        return parse_frequency(v)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        return v.strip()

    def to_template(self, template_id: str | None = None) -> RecurringTemplate:
        template = RecurringTemplate(
            id=template_id or new_template_id(),
            kind=self.kind,
            title=self.title,
            start_date=self.start_date,
            frequency=self.frequency,
            end_date=self.end_date,
            time=self.time if self.kind == OccurrenceKind.ENTRY else "",
            description=self.description,
            assigned_to=self.assigned_to,
        )
        template.validate()
        return template


def build_template(
    draft: TemplateDraft | dict, template_id: str | None = None,
) -> RecurringTemplate:
    """Parse raw input into a validated template, or raise InvalidTemplate."""
    try:
        if not isinstance(draft, TemplateDraft):
            draft = TemplateDraft(**draft)
    except ValidationError as exc:
        raise InvalidTemplate(str(exc)) from exc
    return draft.to_template(template_id)


def today_in(tz_name: str) -> date:
    return datetime.now(ZoneInfo(tz_name)).date()


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class DashboardService:
    """Single-writer façade over the stores and the recurrence engine."""

    def __init__(
        self,
        store: RecurrenceStore,
        values: ChoreValueStore | None = None,
        completions: CompletionStore | None = None,
        calendar_feed: ExternalCalendarPort | None = None,
        members: list[str] | None = None,
        past_days: int = DEFAULT_PAST_DAYS,
        future_days: int = DEFAULT_FUTURE_DAYS,
        today: Callable[[], date] | None = None,
    ) -> None:
        self._store = store
        self._values_store = values
        self._completions_store = completions
        self._calendar_feed = calendar_feed
        self._members = list(members or [])
        self._materializer = Materializer(store, past_days, future_days)
        self._lifecycle = LifecycleController(store)
        self._today = today or date.today
        self._lock = asyncio.Lock()

        self._templates: dict[str, RecurringTemplate] = {}
        self._view = DashboardView()
        self._external: dict[date, list[ExternalEvent]] = {}
        self._values: dict[str, ChoreValue] = {}
        self._counts: dict[str, dict[str, int]] = {}

    # -- read side ---------------------------------------------------------

    @property
    def view(self) -> DashboardView:
        return self._view

    @property
    def templates(self) -> list[RecurringTemplate]:
        return list(self._templates.values())

    def template_state(self, template_id: str) -> TemplateState:
        return template_state(self._templates.get(template_id))

    def chore_values(self) -> dict[str, float]:
        return {name: cv.dollar_value for name, cv in self._values.items()}

    def completion_counts(self, month: str | None = None) -> dict[str, int]:
        return dict(self._counts.get(month or month_key(self._today()), {}))

    def earnings(self, member: str, month: str | None = None) -> float:
        month = month or month_key(self._today())
        return calculate_earnings(
            self._view.all_occurrences(), self.chore_values(), member, month,
        )

    def chart(self, month: str | None = None) -> list[ChartRow]:
        month = month or month_key(self._today())
        return completion_chart(
            self._members,
            self._counts.get(month, {}),
            self._view.all_occurrences(),
            self.chore_values(),
            month,
        )

    # -- reconciliation ----------------------------------------------------

    async def load(
        self, anchor: date | None = None, cancel: asyncio.Event | None = None,
    ) -> DashboardView:
        """Read every store, fill window gaps, rebuild the view."""
        async with self._lock:
            if self._values_store is not None:
                values = await self._values_store.list_values()
                self._values = {cv.chore_name: cv for cv in values}
            if self._completions_store is not None:
                rows = await self._completions_store.list_completions()
                self._counts = completions_by_month(rows)
            await self._reconcile(anchor, cancel)
        return self._view

    async def reconcile(
        self, anchor: date | None = None, cancel: asyncio.Event | None = None,
    ) -> DashboardView:
        async with self._lock:
            await self._reconcile(anchor, cancel)
        return self._view

    async def _reconcile(
        self, anchor: date | None, cancel: asyncio.Event | None = None,
    ) -> None:
        anchor = anchor or self._today()
        templates = await self._store.list_templates()
        existing = await self._store.list_occurrences()
        created = await self._materializer.materialize_all(
            templates, existing, anchor, cancel,
        )
        self._templates = {t.id: t for t in templates}
        if created:
            existing = await self._store.list_occurrences()
        self._view = rebuild_view(existing, self._external)
        logger.info(
            "Reconciled at %s: %d templates, %d occurrences (%d new)",
            anchor, len(templates), len(existing), len(created),
        )

    async def _refresh(self) -> None:
        occurrences = await self._store.list_occurrences()
        self._view = rebuild_view(occurrences, self._external)

    async def sync_external(self, start: date, end: date) -> int:
        """Pull read-only external events for [start, end] into the view."""
        if self._calendar_feed is None:
            return 0
        events = await self._calendar_feed.events_between(start, end)
        grouped: dict[date, list[ExternalEvent]] = {}
        for ev in events:
            grouped.setdefault(ev.day, []).append(ev)
        async with self._lock:
            self._external = grouped
            self._view = rebuild_view(self._view.all_occurrences(), self._external)
        return len(events)

    # -- templates ---------------------------------------------------------

    async def create_template(
        self, draft: TemplateDraft | dict, template_id: str | None = None,
    ) -> RecurringTemplate:
        """Validate, persist and materialize a new recurring template."""
        template = build_template(draft, template_id)

        async with self._lock:
            await self._store.create_template(template)
            await self._reconcile(None)
        return template

    async def stop_future(self, template_id: str, from_date: date) -> LifecycleResult:
        """End a series before from_date, then re-materialize and rebuild."""
        async with self._lock:
            result = await self._lifecycle.stop_future(template_id, from_date)
            await self._reconcile(None)
        return result

    async def delete_all(self, template_id: str) -> LifecycleResult:
        """Remove a series and every occurrence it spawned, then rebuild."""
        async with self._lock:
            result = await self._lifecycle.delete_all(template_id)
            await self._reconcile(None)
        return result

    # -- manual occurrences ------------------------------------------------

    def _resolve(self, kind: OccurrenceKind, day: date, ordinal: int) -> Occurrence:
        occurrence = self._view.at(kind, day, ordinal)
        occurrence_id = self._view.index(kind).lookup(day, ordinal)
        if occurrence is None or occurrence_id is None:
            raise NotFound(f"No {kind.value} at {day} position {ordinal}")
        return occurrence

    async def add_occurrence(
        self,
        kind: OccurrenceKind,
        day: date,
        title: str,
        time: str = "",
        description: str = "",
        assigned_to: str | None = None,
    ) -> Occurrence:
        """Create a one-off (non-recurring) entry or chore."""
        if not title.strip():
            raise ValueError("title is required")
        if kind == OccurrenceKind.ENTRY and not is_valid_time(time):
            raise ValueError(f"Entry time must be HH:MM, got {time!r}")

        occurrence = Occurrence(
            id=None,
            kind=kind,
            date=day,
            title=title.strip(),
            time=time if kind == OccurrenceKind.ENTRY else "",
            description=description,
            assigned_to=assigned_to,
        )
        async with self._lock:
            occurrence.id = await self._store.create_occurrence(occurrence)
            await self._refresh()
        logger.info("Added %s #%d '%s' on %s", kind.value, occurrence.id, title, day)
        return occurrence

    async def edit_occurrence(
        self, kind: OccurrenceKind, day: date, ordinal: int, **fields: object,
    ) -> None:
        """Update payload fields of the item shown at (day, ordinal)."""
        if kind == OccurrenceKind.ENTRY and "time" in fields:
            if not is_valid_time(str(fields["time"])):
                raise ValueError(f"Entry time must be HH:MM, got {fields['time']!r}")
        async with self._lock:
            target = self._resolve(kind, day, ordinal)
            await self._store.update_occurrence(target.id, **fields)
            await self._refresh()

    async def delete_occurrence(
        self, kind: OccurrenceKind, day: date, ordinal: int,
    ) -> Occurrence:
        """Delete the single item shown at (day, ordinal).

        The view (and therefore every ordinal on that date) is rebuilt
        immediately afterwards.
        """
        async with self._lock:
            target = self._resolve(kind, day, ordinal)
            try:
                await self._store.delete_occurrence(target.id)
            except NotFound:
                logger.warning("Occurrence #%d already gone", target.id)
            await self._refresh()
        return target

    async def clear_manual(self, kind: OccurrenceKind) -> int:
        async with self._lock:
            removed = await self._store.clear_manual(kind)
            await self._refresh()
        return removed

    async def convert_to_recurring(
        self,
        day: date,
        ordinal: int,
        frequency: Frequency | str,
        end_date: date | None = None,
    ) -> RecurringTemplate:
        """Turn a one-off entry into a series starting on its date."""
        async with self._lock:
            target = self._resolve(OccurrenceKind.ENTRY, day, ordinal)
            if target.recurring:
                raise InvalidTemplate(f"Entry #{target.id} is already recurring")
            template = build_template({
                "kind": OccurrenceKind.ENTRY,
                "title": target.title,
                "start_date": day,
                "frequency": frequency,
                "end_date": end_date,
                "time": target.time,
                "description": target.description,
                "assigned_to": target.assigned_to,
            })
            await self._store.convert_to_template(target.id, template)
            await self._reconcile(None)
        return template

    async def toggle_chore(self, day: date, ordinal: int) -> Occurrence:
        """Flip a chore's completion and move its assignee's monthly counter."""
        async with self._lock:
            chore = self._resolve(OccurrenceKind.CHORE, day, ordinal)
            was_completed = chore.completed
            await self._store.update_occurrence(chore.id, completed=not was_completed)

            if chore.assigned_to and self._completions_store is not None:
                counts = {month: dict(c) for month, c in self._counts.items()}
                row = adjust_completion(
                    counts,
                    month_key(self._today()),
                    chore.assigned_to,
                    was_completed,
                    not was_completed,
                )
                try:
                    await self._completions_store.save_completion(row)
                except StorageUnavailable:
                    # Keep the flag and the counter in step
                    await self._store.update_occurrence(chore.id, completed=was_completed)
                    raise
                self._counts = counts

            await self._refresh()
        return self._view.at(OccurrenceKind.CHORE, day, ordinal) or chore

    # -- chore values ------------------------------------------------------

    async def set_chore_value(
        self, chore_name: str, dollar_value: float, old_name: str | None = None,
    ) -> ChoreValue:
        """Create, overwrite or rename a chore's dollar value."""
        if self._values_store is None:
            raise RuntimeError("No chore value store configured")
        chore_name = chore_name.strip()
        if not chore_name or dollar_value < 0:
            raise ValueError("A chore name and a non-negative dollar value are required")

        existing = self._values.get(old_name) if old_name else None
        if existing is not None:
            await self._values_store.rename_value(existing.id, chore_name, dollar_value)
            del self._values[old_name]
            value = ChoreValue(id=existing.id, chore_name=chore_name, dollar_value=dollar_value)
        else:
            value = await self._values_store.set_value(chore_name, dollar_value)
        self._values[chore_name] = value
        return value

    async def delete_chore_value(self, chore_name: str) -> None:
        if self._values_store is None:
            raise RuntimeError("No chore value store configured")
        existing = self._values.pop(chore_name, None)
        if existing is None:
            return
        try:
            await self._values_store.delete_value(existing.id)
        except NotFound:
            logger.warning("Chore value '%s' already gone", chore_name)


def week_start_for(day: date) -> date:
    """Sunday on or before day, the first column of the dashboard week."""
    return day - timedelta(days=(day.weekday() + 1) % 7)
