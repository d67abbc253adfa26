"""Business rules guarding every time entry before it is written.

The validator is a guard-clause chain: the first failing rule raises
``TimeEntryRejected`` with a stable code, and nothing is written. It reads
through two injected lookups so it can run against the request's session or
against plain in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Iterable, Protocol

from ..core.errors import TimeEntryRejected

MAX_HOURS = 24.0

INVALID_TIMER_VALUE = "INVALID_TIMER_VALUE"
INVALID_TIMER_STEP = "INVALID_TIMER_STEP"
MAX_HOURS_PER_ENTRY = "MAX_HOURS_PER_ENTRY"
PROJECT_NOT_FOUND_OR_INACTIVE = "PROJECT_NOT_FOUND_OR_INACTIVE"
MAX_HOURS_PER_DAY = "MAX_HOURS_PER_DAY"


class BookedHours(Protocol):
    id: Any
    timer: float


@dataclass(frozen=True)
class TimeEntryCandidate:
    owner: str
    project_id: int
    dato: date
    timer: float
    entry_id: int | None = None


class TimeEntryValidator:
    """Check a candidate entry against the hour and ownership rules.

    ``find_active_project(project_id, owner)`` must return ``None`` unless
    the project exists, is active and belongs to ``owner``.
    ``entries_for_day(owner, dato)`` returns every stored entry of that
    owner on that date.
    """

    def __init__(
        self,
        find_active_project: Callable[[int, str], object | None],
        entries_for_day: Callable[[str, date], Iterable[BookedHours]],
    ) -> None:
        self._find_active_project = find_active_project
        self._entries_for_day = entries_for_day

    def validate(self, candidate: TimeEntryCandidate, excluding_entry_id: int | None = None) -> None:
        excluded = excluding_entry_id if excluding_entry_id is not None else candidate.entry_id
        hours = candidate.timer

        if not hours > 0:
            raise TimeEntryRejected("Timer må være positiv verdi", code=INVALID_TIMER_VALUE)
        if (hours * 2) % 1 != 0:
            raise TimeEntryRejected("Kun hele eller halve timer er tillatt", code=INVALID_TIMER_STEP)
        if hours > MAX_HOURS:
            raise TimeEntryRejected("Maks 24 timer per registrering", code=MAX_HOURS_PER_ENTRY)

        if self._find_active_project(candidate.project_id, candidate.owner) is None:
            raise TimeEntryRejected("Prosjekt ikke funnet eller ikke aktiv", code=PROJECT_NOT_FOUND_OR_INACTIVE)

        booked = sum(
            entry.timer
            for entry in self._entries_for_day(candidate.owner, candidate.dato)
            if excluded is None or entry.id != excluded
        )
        if booked + hours > MAX_HOURS:
            raise TimeEntryRejected(
                "Kan ikke registrere mer enn 24 timer på samme dag",
                code=MAX_HOURS_PER_DAY,
            )


__all__ = [
    "TimeEntryCandidate",
    "TimeEntryValidator",
    "INVALID_TIMER_VALUE",
    "INVALID_TIMER_STEP",
    "MAX_HOURS_PER_ENTRY",
    "PROJECT_NOT_FOUND_OR_INACTIVE",
    "MAX_HOURS_PER_DAY",
]
