"""
HomeBoard: Occurrence materialization.

Persists every occurrence a template's window expansion implies but that
does not yet exist. Running a pass twice is harmless: a candidate is
skipped whenever the template already has an occurrence on that date, and
the store's (template_ref, date) uniqueness constraint rejects any row that
slips past the in-memory check.

A pass is not transactional across candidates. If the store fails on
candidate N, candidates 1..N-1 stay committed and the failure is raised as
PartialMaterialization; re-running the pass fills the rest.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from datetime import date
from typing import TYPE_CHECKING

from src.core.lifecycle import is_exhausted
from src.core.recurrence import DEFAULT_FUTURE_DAYS, DEFAULT_PAST_DAYS, expand
from src.data.models import Occurrence, RecurringTemplate
from src.ports.store_port import DuplicateOccurrence, StorageUnavailable

if TYPE_CHECKING:
    from src.ports.store_port import OccurrenceStore

logger = logging.getLogger(__name__)


class PartialMaterialization(StorageUnavailable):
    """A pass stopped on a storage failure; ``created`` lists committed rows."""

    def __init__(self, message: str, created: list[Occurrence]) -> None:
        super().__init__(message)
        self.created = created


class MaterializationCancelled(Exception):
    """The cancel signal was set mid-pass; ``created`` lists committed rows."""

    def __init__(self, created: list[Occurrence]) -> None:
        super().__init__(f"Materialization cancelled after {len(created)} occurrences")
        self.created = created


def generation_keys(occurrences: Iterable[Occurrence]) -> set[tuple[str, date]]:
    """(template_ref, date) for every template-spawned occurrence."""
    return {
        (occ.template_ref, occ.date)
        for occ in occurrences
        if occ.template_ref is not None
    }


def missing_dates(
    template: RecurringTemplate,
    existing: Iterable[Occurrence],
    anchor: date,
    past_days: int = DEFAULT_PAST_DAYS,
    future_days: int = DEFAULT_FUTURE_DAYS,
) -> list[date]:
    """Window dates for which the template has no occurrence yet."""
    seen = generation_keys(existing)
    return [
        day
        for day in expand(template, anchor, past_days, future_days)
        if (template.id, day) not in seen
    ]


class Materializer:
    """Creates the occurrences a template's window implies, exactly once each."""

    def __init__(
        self,
        occurrences: OccurrenceStore,
        past_days: int = DEFAULT_PAST_DAYS,
        future_days: int = DEFAULT_FUTURE_DAYS,
    ) -> None:
        self._occurrences = occurrences
        self._past_days = past_days
        self._future_days = future_days

    async def materialize(
        self,
        template: RecurringTemplate,
        existing: Iterable[Occurrence],
        anchor: date,
        cancel: asyncio.Event | None = None,
    ) -> list[Occurrence]:
        """Create missing occurrences for one template.

        Returns the newly created occurrences in date order. Each one is a
        fresh copy of the template's payload at this moment.
        """
        created: list[Occurrence] = []
        for day in missing_dates(
            template, existing, anchor, self._past_days, self._future_days
        ):
            if cancel is not None and cancel.is_set():
                raise MaterializationCancelled(created)

            occurrence = template.spawn(day)
            try:
                occurrence.id = await self._occurrences.create_occurrence(occurrence)
            except DuplicateOccurrence:
                logger.debug("Template %s already materialized on %s", template.id, day)
                continue
            except StorageUnavailable as exc:
                logger.error(
                    "Materialization of %s stopped at %s after %d rows: %s",
                    template.id, day, len(created), exc,
                )
                raise PartialMaterialization(str(exc), created) from exc
            created.append(occurrence)

        if created:
            logger.info(
                "Template %s '%s': materialized %d occurrences (%s .. %s)",
                template.id, template.title, len(created),
                created[0].date, created[-1].date,
            )
        return created

    async def materialize_all(
        self,
        templates: Iterable[RecurringTemplate],
        existing: Iterable[Occurrence],
        anchor: date,
        cancel: asyncio.Event | None = None,
    ) -> list[Occurrence]:
        """Run materialize for every template, templates in the given order.

        On failure the raised PartialMaterialization carries the rows created
        by every template processed so far, not just the failing one.
        """
        known = list(existing)
        created: list[Occurrence] = []
        for template in templates:
            if is_exhausted(template):
                logger.debug("Template %s is exhausted, skipping", template.id)
                continue
            try:
                new = await self.materialize(template, known, anchor, cancel)
            except PartialMaterialization as exc:
                raise PartialMaterialization(str(exc), created + exc.created) from exc
            except MaterializationCancelled as exc:
                raise MaterializationCancelled(created + exc.created) from exc
            known.extend(new)
            created.extend(new)
        return created
