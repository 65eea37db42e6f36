"""
HomeBoard: Data Models.

Recurring templates and their dated occurrences persist in SQLite. Entries
(timed calendar items) and chores (checkable tasks) share one shape and are
told apart by ``kind``. Occurrences copy the template payload when they are
materialized; they are never live-linked to the template afterwards.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class InvalidTemplate(ValueError):
    """Raised when a template is malformed. Always raised before any storage call."""


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class OccurrenceKind(str, Enum):
    ENTRY = "entry"
    CHORE = "chore"


def parse_frequency(value: str | Frequency) -> Frequency:
    """Coerce a raw frequency string, raising InvalidTemplate on unknown values."""
    if isinstance(value, Frequency):
        return value
    try:
        return Frequency(str(value).strip().lower())
    except ValueError:
        raise InvalidTemplate(f"Unknown frequency: {value!r}") from None


def is_valid_time(value: str) -> bool:
    """True for a 24h ``HH:MM`` string."""
    return bool(_TIME_RE.match(value or ""))


def new_template_id() -> str:
    """Caller-generated template id (opaque, unique)."""
    return f"recur_{uuid.uuid4().hex[:16]}"


@dataclass
class RecurringTemplate:
    """A recurrence rule that generates dated occurrences.

    Only ``end_date`` is ever changed after creation (by "stop future").
    """

    id: str
    kind: OccurrenceKind
    title: str                      # entry title or chore text
    start_date: date                # inclusive
    frequency: Frequency
    end_date: date | None = None    # inclusive, None = open-ended
    time: str = ""                  # HH:MM, entries only
    description: str = ""
    assigned_to: str | None = None

    def validate(self) -> None:
        if not self.id:
            raise InvalidTemplate("Template id is required")
        if not self.title or not self.title.strip():
            raise InvalidTemplate("Template title is required")
        if not isinstance(self.frequency, Frequency):
            self.frequency = parse_frequency(self.frequency)
        if self.end_date is not None and self.start_date > self.end_date:
            raise InvalidTemplate(
                f"start_date {self.start_date} is after end_date {self.end_date}"
            )
        if self.kind == OccurrenceKind.ENTRY and not is_valid_time(self.time):
            raise InvalidTemplate(f"Entry time must be HH:MM, got {self.time!r}")

    def spawn(self, on: date) -> Occurrence:
        """Build an unsaved occurrence for ``on`` from the current payload."""
        return Occurrence(
            id=None,
            kind=self.kind,
            date=on,
            title=self.title,
            time=self.time if self.kind == OccurrenceKind.ENTRY else "",
            description=self.description,
            assigned_to=self.assigned_to,
            completed=False,
            template_ref=self.id,
        )


@dataclass
class Occurrence:
    """One concrete, dated entry or chore.

    ``id`` is assigned by the store; ``None`` means not yet persisted.
    ``template_ref`` is None for manually created, non-recurring items.
    """

    id: int | None
    kind: OccurrenceKind
    date: date
    title: str
    time: str = ""
    description: str = ""
    assigned_to: str | None = None
    completed: bool = False         # chores only
    template_ref: str | None = None

    @property
    def recurring(self) -> bool:
        return self.template_ref is not None


@dataclass
class ChoreValue:
    """Dollar value earned for completing a chore with this exact text."""

    id: int
    chore_name: str
    dollar_value: float


@dataclass
class MonthlyCompletion:
    """Completed-chore counter for one family member in one month."""

    month: str           # YYYY-MM
    family_member: str
    count: int = 0


@dataclass
class DayWeather:
    """Forecast summary for a single day."""

    day: date
    temp_max: float
    temp_min: float
    code: int
    description: str = ""


@dataclass
class ExternalEvent:
    """Read-only event pulled from an external calendar feed."""

    day: date
    title: str
    time: str                 # HH:MM, or "All Day"
    description: str = ""
    source: str = field(default="google")
