"""Domain models for the duty rotation engine.

This module contains the core data structures: participants, date ranges,
overrides, per-day assignments, the schedule output and the request and
result envelopes exchanged with callers.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Sequence, Union

from dutyrota.domain.errors import InvalidInputError
from dutyrota.domain.holidays import HolidayCalendar

DEFAULT_DUTY_LABEL = "routine duty"
DEFAULT_REST_LABEL = "rest"
DEFAULT_RETRY_BUDGET = 10

# Opaque caller-supplied identifier, returned exactly as given
ParticipantId = Union[str, int]


class AssignmentKind(Enum):
    """Outcome of a schedule day."""

    DUTY = "duty"  # A participant is on duty
    REST = "rest"  # Nobody is on duty


@dataclass(frozen=True)
class Participant:
    """A person in the duty rotation.

    Attributes:
        id: Unique identifier. Identity is by ID only.
        name: Display name, used for statistics and rows.
    """

    id: ParticipantId
    name: str


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar dates.

    Attributes:
        start: First date of the range.
        end: Last date of the range (inclusive).
    """

    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise InvalidInputError(
                f"Date range ends before it starts: {self.start} > {self.end}"
            )

    @property
    def num_days(self) -> int:
        """Number of calendar days in the range."""
        return (self.end - self.start).days + 1

    def dates(self) -> Iterator[date]:
        """Iterate every calendar date from start to end."""
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def contains(self, d: date) -> bool:
        """Check if a date falls inside the range."""
        return self.start <= d <= self.end


@dataclass(frozen=True)
class Override:
    """Caller-supplied forced outcome for one date.

    Attributes:
        date: Date the override applies to.
        kind: REST to leave the day without a participant, DUTY to force a
            duty with a custom label.
        label: Optional label replacing the default one.
    """

    date: date
    kind: AssignmentKind
    label: Optional[str] = None

    @property
    def effective_label(self) -> str:
        """Label to record, falling back to the default for the kind."""
        if self.label:
            return self.label
        if self.kind == AssignmentKind.REST:
            return DEFAULT_REST_LABEL
        return DEFAULT_DUTY_LABEL


@dataclass
class RotationConfig:
    """Configuration for a single rotation request.

    Attributes:
        include_saturday: Whether Saturdays are duty days.
        include_sunday: Whether Sundays are duty days.
        overrides: Ordered overrides; later entries for a date win.
        retry_budget: Maximum number of assignment attempts.
    """

    include_saturday: bool = False
    include_sunday: bool = False
    overrides: list[Override] = field(default_factory=list)
    retry_budget: int = DEFAULT_RETRY_BUDGET

    def __post_init__(self):
        if isinstance(self.retry_budget, bool) or not isinstance(self.retry_budget, int):
            raise InvalidInputError(
                f"retry_budget must be an integer, got {self.retry_budget!r}"
            )
        if self.retry_budget < 1:
            raise InvalidInputError(
                f"retry_budget must be positive, got {self.retry_budget}"
            )

    def override_map(self) -> dict[date, Override]:
        """Map each date to its effective override (last entry wins)."""
        result: dict[date, Override] = {}
        for override in self.overrides:
            result[override.date] = override
        return result


@dataclass(frozen=True)
class Assignment:
    """Outcome recorded for a single duty day.

    Attributes:
        date: The duty day.
        kind: DUTY or REST.
        label: Display label ("routine duty", "rest" or an override label).
        participant_id: Assigned participant, None for REST days.
        assigned_at: When the assignment was made.
    """

    date: date
    kind: AssignmentKind
    label: str
    participant_id: Optional[ParticipantId]
    assigned_at: datetime

    @property
    def is_duty(self) -> bool:
        return self.kind == AssignmentKind.DUTY


class Schedule:
    """Read-only, chronologically ordered mapping of date to Assignment.

    Example:
        >>> schedule = result.schedule
        >>> for day, assignment in schedule.items():
        ...     print(day, assignment.participant_id)
    """

    def __init__(self, assignments: Optional[Mapping[date, Assignment]] = None):
        ordered = dict(sorted((assignments or {}).items()))
        self._assignments = MappingProxyType(ordered)

    @property
    def assignments(self) -> Mapping[date, Assignment]:
        """Read-only view of the underlying mapping."""
        return self._assignments

    @property
    def dates(self) -> list[date]:
        return list(self._assignments)

    def __getitem__(self, day: date) -> Assignment:
        return self._assignments[day]

    def __contains__(self, day: object) -> bool:
        return day in self._assignments

    def __iter__(self) -> Iterator[date]:
        return iter(self._assignments)

    def __len__(self) -> int:
        return len(self._assignments)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Schedule):
            return NotImplemented
        return dict(self._assignments) == dict(other._assignments)

    def __repr__(self) -> str:
        if not self._assignments:
            return "Schedule(empty)"
        return f"Schedule({self.dates[0]}..{self.dates[-1]}, {len(self)} days)"

    def get(self, day: date) -> Optional[Assignment]:
        return self._assignments.get(day)

    def items(self):
        return self._assignments.items()

    def values(self):
        return self._assignments.values()

    def duty_counts(self) -> dict[ParticipantId, int]:
        """Count DUTY assignments per participant ID."""
        counts: dict[ParticipantId, int] = {}
        for assignment in self._assignments.values():
            if assignment.is_duty and assignment.participant_id is not None:
                pid = assignment.participant_id
                counts[pid] = counts.get(pid, 0) + 1
        return counts

    def for_participant(self, participant_id: ParticipantId) -> "Schedule":
        """Sub-schedule with only the days assigned to one participant."""
        return Schedule({
            d: a for d, a in self._assignments.items()
            if a.participant_id == participant_id
        })

    def to_rows(
        self,
        roster: Sequence[Participant] = (),
    ) -> list[tuple[str, str, str, str, str]]:
        """Flatten to (date, weekday, label, kind, participant name) rows."""
        names = {p.id: p.name for p in roster}
        rows = []
        for d, assignment in self._assignments.items():
            pid = assignment.participant_id
            name = names.get(pid, str(pid)) if pid is not None else ""
            rows.append((
                d.isoformat(),
                d.strftime("%a"),
                assignment.label,
                assignment.kind.value,
                name,
            ))
        return rows

    def to_dict(self) -> dict[str, dict]:
        """Serialize as ISO date string -> assignment document."""
        from dutyrota.schemas import dump_schedule
        return dump_schedule(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Schedule":
        """Rebuild a schedule serialized by ``to_dict``.

        Raises:
            InvalidInputError: If the document is malformed.
        """
        from dutyrota.schemas import parse_schedule
        return parse_schedule(data)


@dataclass
class ParticipantStats:
    """Duty count for one participant."""

    name: str
    count: int = 0


@dataclass
class ScheduleResult:
    """Result of a scheduling run.

    Attributes:
        schedule: The chosen schedule.
        stats: Participant ID -> duty count, in roster order.
        balanced: True if the schedule matches the target distribution.
        deviation: Worst-case gap between actual and target counts.
        retries_used: Attempts needed to reach balance (balanced only).
        warning_message: Explanation of the imbalance (unbalanced only).
        solver: Name of the strategy that produced the schedule.
        targets: Target duty count per participant ID.
    """

    schedule: Schedule
    stats: dict[ParticipantId, ParticipantStats]
    balanced: bool
    deviation: int = 0
    retries_used: Optional[int] = None
    warning_message: Optional[str] = None
    solver: str = "heuristic"
    targets: dict[ParticipantId, int] = field(default_factory=dict)

    @property
    def total_duty_count(self) -> int:
        return sum(s.count for s in self.stats.values())

    def to_dict(self) -> dict:
        """Serialize to the external response shape."""
        from dutyrota.schemas import dump_result
        return dump_result(self)


@dataclass
class ScheduleRequest:
    """Everything needed for one scheduling call.

    Attributes:
        roster: Participants in roster order.
        date_range: Inclusive range to schedule.
        config: Weekend inclusion, overrides and retry budget.
        holidays: Holidays excluded from the rotation.
    """

    roster: list[Participant]
    date_range: DateRange
    config: RotationConfig = field(default_factory=RotationConfig)
    holidays: HolidayCalendar = field(default_factory=HolidayCalendar.empty)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScheduleRequest":
        """Parse a JSON request document.

        Expected shape::

            {
              "roster": [{"id": "p1", "name": "Alice"}, ...],
              "start": "2024-06-03",
              "end": "2024-06-14",
              "includeSaturday": false,
              "includeSunday": false,
              "overrides": [{"date": "2024-06-05", "kind": "rest", "label": "Offsite"}],
              "retryBudget": 10,
              "holidays": ["01-01", "10-01"]
            }

        ``holidays`` may also be the string "default" for the built-in
        calendar. Omitting it means no holidays.

        Raises:
            InvalidInputError: If the document is malformed.
        """
        from dutyrota.schemas import parse_request
        return parse_request(data)
