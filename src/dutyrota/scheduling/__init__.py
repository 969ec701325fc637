"""Scheduling engine for generating duty rotations."""

from dutyrota.scheduling.cpsat_solver import (
    CPSATConfig,
    CPSATRotationResult,
    CPSATRotationSolver,
)
from dutyrota.scheduling.duty_days import derive_duty_days, is_duty_day
from dutyrota.scheduling.rotation_engine import (
    ParticipantRecord,
    RotationEngine,
    calculate_deviation,
    generate_stats,
    validate_roster,
)
from dutyrota.scheduling.scheduler import DutyScheduler, SchedulerConfig, SolverType

__all__ = [
    # Core engine
    "RotationEngine",
    "ParticipantRecord",
    "derive_duty_days",
    "is_duty_day",
    "calculate_deviation",
    "generate_stats",
    "validate_roster",
    # Scheduler facade
    "DutyScheduler",
    "SchedulerConfig",
    "SolverType",
    # CP-SAT balancer
    "CPSATConfig",
    "CPSATRotationResult",
    "CPSATRotationSolver",
]
