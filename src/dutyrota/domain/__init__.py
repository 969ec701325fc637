"""Domain models and policies for duty rotation."""

from dutyrota.domain.errors import DutyRotaError, InvalidInputError
from dutyrota.domain.holidays import HolidayCalendar
from dutyrota.domain.models import (
    Assignment,
    AssignmentKind,
    DateRange,
    Override,
    Participant,
    ParticipantId,
    ParticipantStats,
    RotationConfig,
    Schedule,
    ScheduleRequest,
    ScheduleResult,
)
from dutyrota.domain.policies import (
    PositionalRemainderPolicy,
    RandomSource,
    RemainderPolicy,
    SeededRandomSource,
    SequenceRandomSource,
    ShuffledRemainderPolicy,
)

__all__ = [
    # Errors
    "DutyRotaError",
    "InvalidInputError",
    # Models
    "Assignment",
    "AssignmentKind",
    "DateRange",
    "HolidayCalendar",
    "Override",
    "Participant",
    "ParticipantId",
    "ParticipantStats",
    "RotationConfig",
    "Schedule",
    "ScheduleRequest",
    "ScheduleResult",
    # Policies
    "PositionalRemainderPolicy",
    "RandomSource",
    "RemainderPolicy",
    "SeededRandomSource",
    "SequenceRandomSource",
    "ShuffledRemainderPolicy",
]
