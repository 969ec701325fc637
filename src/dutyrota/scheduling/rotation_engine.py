"""Duty rotation engine.

This module implements the randomized retry approach to fair duty
rotation:
1. Derive the duty days of the requested range
2. Compute a fair-share target count per participant
3. Repeatedly build a candidate schedule by weighted random selection,
   avoiding the participant who was on duty the calendar day before
4. Score each candidate by its worst deviation from the targets and stop
   at the first perfect one, otherwise keep the best
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Mapping, Optional, Sequence

from dutyrota.domain.errors import InvalidInputError
from dutyrota.domain.holidays import HolidayCalendar
from dutyrota.domain.models import (
    DEFAULT_DUTY_LABEL,
    Assignment,
    AssignmentKind,
    DateRange,
    Override,
    Participant,
    ParticipantId,
    ParticipantStats,
    RotationConfig,
    Schedule,
    ScheduleResult,
)
from dutyrota.domain.policies import (
    PositionalRemainderPolicy,
    RandomSource,
    RemainderPolicy,
    SeededRandomSource,
)
from dutyrota.scheduling.duty_days import derive_duty_days

logger = logging.getLogger(__name__)


@dataclass
class ParticipantRecord:
    """Working state of one participant during a single attempt."""

    id: ParticipantId
    name: str
    remaining: int


def validate_roster(roster: Sequence[Participant]) -> None:
    """Reject rosters that cannot be scheduled.

    Raises:
        InvalidInputError: If the roster is empty or has duplicate IDs.
    """
    if not roster:
        raise InvalidInputError("Roster must not be empty")
    seen: set[ParticipantId] = set()
    for participant in roster:
        if participant.id in seen:
            raise InvalidInputError(f"Duplicate participant id: {participant.id!r}")
        seen.add(participant.id)


def calculate_deviation(schedule: Schedule, targets: Mapping[ParticipantId, int]) -> int:
    """Worst-case absolute gap between actual duty counts and targets."""
    actual = schedule.duty_counts()
    deviation = 0
    for pid in set(targets) | set(actual):
        deviation = max(deviation, abs(actual.get(pid, 0) - targets.get(pid, 0)))
    return deviation


def generate_stats(
    schedule: Schedule,
    roster: Sequence[Participant],
) -> dict[ParticipantId, ParticipantStats]:
    """Duty count per participant, zero counts included, in roster order."""
    stats = {p.id: ParticipantStats(name=p.name) for p in roster}
    for assignment in schedule.values():
        pid = assignment.participant_id
        if assignment.is_duty and pid in stats:
            stats[pid].count += 1
    return stats


class RotationEngine:
    """Randomized fair-rotation engine.

    The engine holds only immutable configuration (holiday calendar) and
    its injected collaborators. Build one engine per request when requests
    run concurrently, so each owns its random source.

    Example:
        >>> engine = RotationEngine(random_source=SeededRandomSource(42))
        >>> result = engine.generate(
        ...     roster=[Participant("p1", "Alice"), Participant("p2", "Bob")],
        ...     date_range=DateRange(date(2024, 6, 3), date(2024, 6, 14)),
        ... )
        >>> print(result.stats["p1"].count)
    """

    def __init__(
        self,
        holidays: Optional[HolidayCalendar] = None,
        random_source: Optional[RandomSource] = None,
        remainder_policy: Optional[RemainderPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the engine.

        Args:
            holidays: Holidays excluded from every range (default: none).
            random_source: Source of randomness for selection.
            remainder_policy: Who receives the extra units of the targets.
            clock: Returns the timestamp recorded on each assignment.
        """
        self.holidays = holidays if holidays is not None else HolidayCalendar.empty()
        self.random_source = random_source or SeededRandomSource()
        self.remainder_policy = remainder_policy or PositionalRemainderPolicy()
        self.clock = clock or datetime.now

    def generate(
        self,
        roster: Sequence[Participant],
        date_range: DateRange,
        config: Optional[RotationConfig] = None,
    ) -> ScheduleResult:
        """Generate the best schedule found within the retry budget.

        Args:
            roster: Participants in roster order.
            date_range: Inclusive range to schedule.
            config: Weekend inclusion, overrides and retry budget.

        Returns:
            ScheduleResult. ``balanced`` is True with ``retries_used`` set
            when an attempt matched the targets exactly; otherwise the best
            attempt is returned with a ``warning_message``.

        Raises:
            InvalidInputError: If the roster is empty or has duplicate IDs.
        """
        config = config or RotationConfig()
        validate_roster(roster)

        duty_days = self.derive_duty_days(date_range, config)
        targets = self.calculate_target_distribution(roster, len(duty_days))
        overrides = self.resolve_overrides(config, duty_days, date_range)

        logger.debug(
            "Scheduling %d duty days for %d participants (targets=%s)",
            len(duty_days), len(roster), targets,
        )

        best_schedule: Optional[Schedule] = None
        best_deviation: Optional[int] = None

        for attempt in range(1, config.retry_budget + 1):
            schedule = self.try_schedule(duty_days, roster, targets, overrides)
            deviation = calculate_deviation(schedule, targets)
            logger.debug("Attempt %d: deviation %d", attempt, deviation)

            if deviation == 0:
                logger.info(
                    "Balanced schedule for %d duty days after %d attempt(s)",
                    len(duty_days), attempt,
                )
                return ScheduleResult(
                    schedule=schedule,
                    stats=generate_stats(schedule, roster),
                    balanced=True,
                    deviation=0,
                    retries_used=attempt,
                    targets=targets,
                )

            if best_deviation is None or deviation < best_deviation:
                best_deviation = deviation
                best_schedule = schedule

        warning = (
            f"after {config.retry_budget} attempts, "
            f"best achievable deviation is {best_deviation}"
        )
        logger.warning("Unbalanced schedule: %s", warning)

        return ScheduleResult(
            schedule=best_schedule,
            stats=generate_stats(best_schedule, roster),
            balanced=False,
            deviation=best_deviation,
            warning_message=warning,
            targets=targets,
        )

    def derive_duty_days(
        self,
        date_range: DateRange,
        config: RotationConfig,
    ) -> list[date]:
        """Duty days of a range under this engine's holiday calendar."""
        return derive_duty_days(
            date_range,
            include_saturday=config.include_saturday,
            include_sunday=config.include_sunday,
            holidays=self.holidays,
        )

    def calculate_target_distribution(
        self,
        roster: Sequence[Participant],
        total_days: int,
    ) -> dict[ParticipantId, int]:
        """Fair-share duty count per participant.

        Every participant gets ``total_days // len(roster)``; the remainder
        policy picks ``total_days % len(roster)`` of them to get one more.

        Raises:
            InvalidInputError: If the roster is empty.
        """
        validate_roster(roster)
        base, remainder = divmod(total_days, len(roster))
        extra = self.remainder_policy.select_recipients(
            roster, remainder, self.random_source
        )
        return {p.id: base + (1 if p.id in extra else 0) for p in roster}

    def try_schedule(
        self,
        duty_days: Sequence[date],
        roster: Sequence[Participant],
        targets: Mapping[ParticipantId, int],
        overrides: Mapping[date, Override],
    ) -> Schedule:
        """Build one candidate schedule.

        Args:
            duty_days: Ascending duty days.
            roster: Participants in roster order.
            targets: Target duty count per participant ID.
            overrides: Effective override per date.

        Returns:
            Schedule with exactly one assignment per duty day.
        """
        records = self._create_working_set(roster, targets)
        assignments: dict[date, Assignment] = {}

        for day in duty_days:
            override = overrides.get(day)

            if override is not None and override.kind == AssignmentKind.REST:
                assignments[day] = Assignment(
                    date=day,
                    kind=AssignmentKind.REST,
                    label=override.effective_label,
                    participant_id=None,
                    assigned_at=self.clock(),
                )
                continue

            selected = self.select_participant(records, day, assignments)
            selected.remaining -= 1
            records.sort(key=lambda r: r.remaining, reverse=True)

            assignments[day] = Assignment(
                date=day,
                kind=AssignmentKind.DUTY,
                label=override.effective_label if override else DEFAULT_DUTY_LABEL,
                participant_id=selected.id,
                assigned_at=self.clock(),
            )

        return Schedule(assignments)

    def select_participant(
        self,
        records: list[ParticipantRecord],
        day: date,
        assignments: Mapping[date, Assignment],
    ) -> ParticipantRecord:
        """Weighted random choice avoiding yesterday's participant.

        The pool is everyone with remaining quota except whoever was on duty
        the previous calendar day. If that leaves nobody, the no-repeat rule
        is dropped; if nobody has quota left, the whole roster is eligible.
        Within the pool the chance of being picked is proportional to the
        remaining quota.
        """
        yesterday = assignments.get(day - timedelta(days=1))
        previous_id = yesterday.participant_id if yesterday else None

        pool = [r for r in records if r.remaining > 0 and r.id != previous_id]
        if not pool:
            pool = [r for r in records if r.remaining > 0]
        if not pool:
            index = int(self.random_source.random() * len(records))
            return records[min(index, len(records) - 1)]

        total_weight = sum(r.remaining for r in pool)
        threshold = self.random_source.random() * total_weight
        for record in pool:
            threshold -= record.remaining
            if threshold < 0:
                return record

        # Float rounding can leave threshold at exactly zero
        return pool[-1]

    @staticmethod
    def calculate_deviation(schedule: Schedule, targets: Mapping[ParticipantId, int]) -> int:
        """Worst-case absolute gap between actual and target counts."""
        return calculate_deviation(schedule, targets)

    @staticmethod
    def generate_stats(
        schedule: Schedule,
        roster: Sequence[Participant],
    ) -> dict[ParticipantId, ParticipantStats]:
        """Duty count per participant."""
        return generate_stats(schedule, roster)

    def _create_working_set(
        self,
        roster: Sequence[Participant],
        targets: Mapping[ParticipantId, int],
    ) -> list[ParticipantRecord]:
        """Working records sorted by remaining quota, highest first."""
        records = [
            ParticipantRecord(id=p.id, name=p.name, remaining=targets.get(p.id, 0))
            for p in roster
        ]
        records.sort(key=lambda r: r.remaining, reverse=True)
        return records

    def resolve_overrides(
        self,
        config: RotationConfig,
        duty_days: Sequence[date],
        date_range: DateRange,
    ) -> dict[date, Override]:
        """Effective overrides restricted to the duty days."""
        duty_set = set(duty_days)
        resolved = {}
        for day, override in config.override_map().items():
            if day in duty_set:
                resolved[day] = override
            elif not date_range.contains(day):
                logger.warning("Ignoring override for %s: outside %s..%s",
                               day, date_range.start, date_range.end)
            else:
                logger.warning("Ignoring override for %s: not a duty day", day)
        return resolved
