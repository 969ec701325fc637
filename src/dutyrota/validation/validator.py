"""Validation module for verifying schedule correctness.

This module provides a single source of truth for the schedule
invariants. Every generated schedule should pass validation before
being handed to a renderer, exporter or store.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Optional

from dutyrota.domain.models import (
    Assignment,
    AssignmentKind,
    ParticipantId,
    ScheduleRequest,
    ScheduleResult,
)
from dutyrota.scheduling.duty_days import derive_duty_days
from dutyrota.scheduling.rotation_engine import calculate_deviation


class ValidationErrorType(Enum):
    """Types of validation errors."""

    MISSING_DUTY_DAY = "missing_duty_day"
    NON_DUTY_DAY_SCHEDULED = "non_duty_day_scheduled"
    DATE_MISMATCH = "date_mismatch"
    UNKNOWN_PARTICIPANT = "unknown_participant"
    REST_WITH_PARTICIPANT = "rest_with_participant"
    DUTY_WITHOUT_PARTICIPANT = "duty_without_participant"
    OVERRIDE_NOT_HONORED = "override_not_honored"
    OVERRIDE_LABEL_MISMATCH = "override_label_mismatch"
    STATS_MISMATCH = "stats_mismatch"
    BALANCE_MISMATCH = "balance_mismatch"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    schedule_date: Optional[date] = None
    participant_id: Optional[ParticipantId] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.schedule_date:
            parts.append(f"{self.schedule_date.isoformat()}:")
        parts.append(self.message)
        if self.participant_id is not None:
            parts.append(f"(participant {self.participant_id})")
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating a schedule."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)


class ScheduleValidator:
    """Validates schedule results against the request they answer.

    Example:
        >>> validator = ScheduleValidator()
        >>> report = validator.validate(result, request)
        >>> if not report.is_valid:
        ...     for error in report.errors:
        ...         print(error)
    """

    def validate(
        self,
        result: ScheduleResult,
        request: ScheduleRequest,
    ) -> ValidationResult:
        """Validate a complete schedule result.

        Args:
            result: The result to validate.
            request: Original request with roster, range and overrides.

        Returns:
            ValidationResult with is_valid flag, errors and warnings.
        """
        report = ValidationResult(is_valid=True)

        duty_days = derive_duty_days(
            request.date_range,
            include_saturday=request.config.include_saturday,
            include_sunday=request.config.include_sunday,
            holidays=request.holidays,
        )
        roster_ids = {p.id for p in request.roster}

        self._validate_coverage(result, duty_days, report)

        for day, assignment in result.schedule.items():
            self._validate_assignment(day, assignment, roster_ids, report)

        self._validate_overrides(result, request, set(duty_days), report)
        self._validate_stats(result, report)
        self._validate_balance(result, report)
        self._check_repeats(result, report)

        return report

    def _validate_coverage(
        self,
        result: ScheduleResult,
        duty_days: list[date],
        report: ValidationResult,
    ) -> None:
        """Every duty day scheduled, nothing else."""
        duty_set = set(duty_days)
        for day in duty_days:
            if day not in result.schedule:
                report.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.MISSING_DUTY_DAY,
                        message="Duty day has no assignment",
                        schedule_date=day,
                    )
                )
        for day in result.schedule:
            if day not in duty_set:
                report.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.NON_DUTY_DAY_SCHEDULED,
                        message="Assignment on a day that is not a duty day",
                        schedule_date=day,
                    )
                )

    def _validate_assignment(
        self,
        day: date,
        assignment: Assignment,
        roster_ids: set[ParticipantId],
        report: ValidationResult,
    ) -> None:
        """Check a single assignment for internal consistency."""
        if assignment.date != day:
            report.add_error(
                ValidationError(
                    error_type=ValidationErrorType.DATE_MISMATCH,
                    message=f"Assignment dated {assignment.date} stored under {day}",
                    schedule_date=day,
                )
            )

        pid = assignment.participant_id
        if assignment.kind == AssignmentKind.REST:
            if pid is not None:
                report.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.REST_WITH_PARTICIPANT,
                        message="Rest day has a participant",
                        schedule_date=day,
                        participant_id=pid,
                    )
                )
            return

        if pid is None:
            report.add_error(
                ValidationError(
                    error_type=ValidationErrorType.DUTY_WITHOUT_PARTICIPANT,
                    message="Duty day has no participant",
                    schedule_date=day,
                )
            )
        elif pid not in roster_ids:
            report.add_error(
                ValidationError(
                    error_type=ValidationErrorType.UNKNOWN_PARTICIPANT,
                    message=f"Unknown participant ID: {pid}",
                    schedule_date=day,
                    participant_id=pid,
                )
            )

    def _validate_overrides(
        self,
        result: ScheduleResult,
        request: ScheduleRequest,
        duty_set: set[date],
        report: ValidationResult,
    ) -> None:
        """Overrides on duty days must be honored with their label."""
        for day, override in request.config.override_map().items():
            if day not in duty_set:
                report.add_warning(
                    f"Override for {day.isoformat()} ignored: not a duty day in range"
                )
                continue

            assignment = result.schedule.get(day)
            if assignment is None:
                continue  # Reported as MISSING_DUTY_DAY

            if assignment.kind != override.kind:
                report.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.OVERRIDE_NOT_HONORED,
                        message=(
                            f"Override requires {override.kind.value}, "
                            f"got {assignment.kind.value}"
                        ),
                        schedule_date=day,
                    )
                )
            elif assignment.label != override.effective_label:
                report.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.OVERRIDE_LABEL_MISMATCH,
                        message=(
                            f"Expected label {override.effective_label!r}, "
                            f"got {assignment.label!r}"
                        ),
                        schedule_date=day,
                    )
                )

    def _validate_stats(
        self,
        result: ScheduleResult,
        report: ValidationResult,
    ) -> None:
        """Stats must agree with the schedule's duty counts."""
        actual = result.schedule.duty_counts()
        for pid, stats in result.stats.items():
            if stats.count != actual.get(pid, 0):
                report.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.STATS_MISMATCH,
                        message=(
                            f"Stats report {stats.count} duties, "
                            f"schedule has {actual.get(pid, 0)}"
                        ),
                        participant_id=pid,
                    )
                )

        duty_total = sum(actual.values())
        if result.total_duty_count != duty_total:
            report.add_error(
                ValidationError(
                    error_type=ValidationErrorType.STATS_MISMATCH,
                    message=(
                        f"Stats total {result.total_duty_count} != "
                        f"{duty_total} duty assignments"
                    ),
                )
            )

    def _validate_balance(
        self,
        result: ScheduleResult,
        report: ValidationResult,
    ) -> None:
        """Balanced flag and deviation must match the targets."""
        if not result.targets:
            return
        deviation = calculate_deviation(result.schedule, result.targets)
        if deviation != result.deviation or result.balanced != (deviation == 0):
            report.add_error(
                ValidationError(
                    error_type=ValidationErrorType.BALANCE_MISMATCH,
                    message=(
                        f"Result claims deviation {result.deviation} "
                        f"(balanced={result.balanced}), actual is {deviation}"
                    ),
                    details={"targets": dict(result.targets)},
                )
            )
        if not result.balanced and not result.warning_message:
            report.add_warning("Unbalanced result has no warning message")

    def _check_repeats(
        self,
        result: ScheduleResult,
        report: ValidationResult,
    ) -> None:
        """Back-to-back duties are legal but worth flagging."""
        for day, assignment in result.schedule.items():
            pid = assignment.participant_id
            if pid is None:
                continue
            previous = result.schedule.get(day - timedelta(days=1))
            if previous is not None and previous.participant_id == pid:
                report.add_warning(
                    f"Participant {pid} on duty on consecutive days "
                    f"{previous.date.isoformat()} and {day.isoformat()}"
                )
