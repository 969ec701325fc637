"""Fair duty rotation scheduling."""

from dutyrota.domain import (
    Assignment,
    AssignmentKind,
    DateRange,
    HolidayCalendar,
    InvalidInputError,
    Override,
    Participant,
    RotationConfig,
    Schedule,
    ScheduleRequest,
    ScheduleResult,
    SeededRandomSource,
)
from dutyrota.scheduling import DutyScheduler, RotationEngine, SchedulerConfig, SolverType

__version__ = "0.1.0"

__all__ = [
    "Assignment",
    "AssignmentKind",
    "DateRange",
    "DutyScheduler",
    "HolidayCalendar",
    "InvalidInputError",
    "Override",
    "Participant",
    "RotationConfig",
    "RotationEngine",
    "Schedule",
    "ScheduleRequest",
    "ScheduleResult",
    "SchedulerConfig",
    "SeededRandomSource",
    "SolverType",
]
