"""
HomeBoard: Template lifecycle edits.

Two edits are legal on a recurring template:

- stop_future: ACTIVE/ENDED -> ENDED. The end date becomes the day before
  ``from_date``, never later than an existing end, and every tagged
  occurrence on/after ``from_date`` is removed. The end date is persisted
  before the deletes, in one store transaction, so a materialization pass
  can never resurrect a row that is about to be removed.
- delete_all: ACTIVE/ENDED -> GONE. The template and every tagged
  occurrence disappear together.

This controller never regenerates state itself. Callers re-run the
materialization pass and rebuild the view afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.data.models import RecurringTemplate
    from src.ports.store_port import LifecycleStore

logger = logging.getLogger(__name__)


class TemplateState(Enum):
    ACTIVE = "active"
    ENDED = "ended"
    GONE = "gone"


def template_state(template: RecurringTemplate | None) -> TemplateState:
    """ENDED once an end date is set, GONE when the template no longer exists."""
    if template is None:
        return TemplateState.GONE
    if template.end_date is not None:
        return TemplateState.ENDED
    return TemplateState.ACTIVE


def is_exhausted(template: RecurringTemplate) -> bool:
    """True when the end date precedes the start date (no dates left to generate)."""
    return template.end_date is not None and template.end_date < template.start_date


@dataclass
class LifecycleResult:
    template_id: str
    template_found: bool
    occurrences_removed: int
    new_end: date | None = None

    @property
    def state(self) -> TemplateState:
        if self.template_found and self.new_end is not None:
            return TemplateState.ENDED
        return TemplateState.GONE


class LifecycleController:
    """Applies stop-future and delete-all edits as single store transactions."""

    def __init__(self, store: LifecycleStore) -> None:
        self._store = store

    async def stop_future(self, template_id: str, from_date: date) -> LifecycleResult:
        """End the series the day before from_date and drop later occurrences.

        A new end date earlier than the start date is accepted: the template
        is simply exhausted. The end date only moves earlier, so a later
        from_date on an ENDED template keeps its current end. A missing
        template is not an error; its leftover occurrences on/after
        from_date are still cleaned up.
        """
        requested_end = from_date - timedelta(days=1)
        new_end, removed = await self._store.stop_future(
            template_id, requested_end, from_date,
        )
        found = new_end is not None
        if not found:
            logger.warning(
                "stop_future: template %s not found, removed %d orphaned occurrences",
                template_id, removed,
            )
        return LifecycleResult(
            template_id=template_id,
            template_found=found,
            occurrences_removed=removed,
            new_end=new_end,
        )

    async def delete_all(self, template_id: str) -> LifecycleResult:
        """Remove the template and all of its occurrences, regardless of date."""
        found, removed = await self._store.delete_all(template_id)
        if not found:
            logger.warning(
                "delete_all: template %s not found, removed %d orphaned occurrences",
                template_id, removed,
            )
        return LifecycleResult(
            template_id=template_id,
            template_found=found,
            occurrences_removed=removed,
        )
