"""Main scheduler interface.

This module provides the high-level DutyScheduler that builds a fresh
rotation engine per request and dispatches to the configured solver.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from dutyrota.domain.models import ParticipantId, ScheduleRequest, ScheduleResult
from dutyrota.domain.policies import (
    PositionalRemainderPolicy,
    RemainderPolicy,
    SeededRandomSource,
)
from dutyrota.scheduling.cpsat_solver import CPSATConfig, CPSATRotationSolver
from dutyrota.scheduling.rotation_engine import (
    RotationEngine,
    generate_stats,
    validate_roster,
)

logger = logging.getLogger(__name__)


class SolverType(Enum):
    """Type of solver to use."""

    HEURISTIC = "heuristic"  # Randomized retry loop
    CPSAT = "cpsat"  # OR-Tools CP-SAT, heuristic if no solution
    HYBRID = "hybrid"  # Retry loop, CP-SAT only when unbalanced


@dataclass
class SchedulerConfig:
    """Configuration for the DutyScheduler.

    Attributes:
        solver_type: Which solver to use.
        seed: Seed for the random source (None = system entropy).
        remainder_policy: Who receives the extra units of the targets.
        cpsat_config: Configuration for the CP-SAT balancer.
    """

    solver_type: SolverType = SolverType.HEURISTIC
    seed: Optional[int] = None
    remainder_policy: RemainderPolicy = field(default_factory=PositionalRemainderPolicy)
    cpsat_config: CPSATConfig = field(default_factory=CPSATConfig)


class DutyScheduler:
    """High-level scheduler for generating duty rotations.

    Example:
        >>> scheduler = DutyScheduler(SchedulerConfig(seed=7))
        >>> request = ScheduleRequest(
        ...     roster=[Participant("p1", "Alice"), Participant("p2", "Bob")],
        ...     date_range=DateRange(date(2024, 6, 3), date(2024, 6, 28)),
        ... )
        >>> result = scheduler.generate_schedule(request)
    """

    def __init__(
        self,
        config: Optional[SchedulerConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or SchedulerConfig()
        self.clock = clock or datetime.now
        self.cpsat_solver = CPSATRotationSolver(
            config=self.config.cpsat_config,
            clock=self.clock,
        )

    def create_engine(self, request: ScheduleRequest) -> RotationEngine:
        """Build an engine with its own random source for one request."""
        return RotationEngine(
            holidays=request.holidays,
            random_source=SeededRandomSource(self.config.seed),
            remainder_policy=self.config.remainder_policy,
            clock=self.clock,
        )

    def generate_schedule(self, request: ScheduleRequest) -> ScheduleResult:
        """Generate a schedule for the request.

        Args:
            request: Roster, date range, configuration and holidays.

        Returns:
            ScheduleResult from the configured solver.

        Raises:
            InvalidInputError: If the roster is empty or has duplicate IDs.
        """
        validate_roster(request.roster)
        engine = self.create_engine(request)
        solver_type = self.config.solver_type

        if solver_type == SolverType.HEURISTIC:
            return engine.generate(request.roster, request.date_range, request.config)

        if solver_type == SolverType.CPSAT:
            targets = self._targets_for(engine, request)
            result = self._solve_cpsat(engine, request, targets)
            if result is not None:
                return result
            logger.warning("CP-SAT found no schedule, falling back to heuristic")
            return engine.generate(request.roster, request.date_range, request.config)

        # HYBRID
        heuristic = engine.generate(request.roster, request.date_range, request.config)
        if heuristic.balanced:
            return heuristic

        exact = self._solve_cpsat(engine, request, heuristic.targets)
        if exact is not None and exact.deviation < heuristic.deviation:
            logger.info("CP-SAT improved deviation from %d to %d",
                        heuristic.deviation, exact.deviation)
            return exact
        return heuristic

    def generate_schedule_with_stats(
        self,
        request: ScheduleRequest,
    ) -> tuple[ScheduleResult, dict]:
        """Generate schedule and return summary statistics.

        Args:
            request: Schedule request.

        Returns:
            Tuple of (result, stats_dict).
        """
        result = self.generate_schedule(request)
        return result, self._calculate_stats(result, request)

    def _targets_for(
        self,
        engine: RotationEngine,
        request: ScheduleRequest,
    ) -> dict[ParticipantId, int]:
        duty_days = engine.derive_duty_days(request.date_range, request.config)
        return engine.calculate_target_distribution(request.roster, len(duty_days))

    def _solve_cpsat(
        self,
        engine: RotationEngine,
        request: ScheduleRequest,
        targets: dict[ParticipantId, int],
    ) -> Optional[ScheduleResult]:
        """Run the CP-SAT balancer; None when it finds no solution."""
        duty_days = engine.derive_duty_days(request.date_range, request.config)
        overrides = engine.resolve_overrides(request.config, duty_days, request.date_range)

        solved = self.cpsat_solver.solve(duty_days, request.roster, targets, overrides)
        if not solved.is_feasible or solved.schedule is None:
            return None

        balanced = solved.deviation == 0
        warning = None
        if not balanced:
            warning = (
                f"CP-SAT ({solved.status.lower()}) best achievable deviation "
                f"is {solved.deviation}"
            )
            logger.warning("Unbalanced schedule: %s", warning)

        return ScheduleResult(
            schedule=solved.schedule,
            stats=generate_stats(solved.schedule, request.roster),
            balanced=balanced,
            deviation=solved.deviation,
            retries_used=1 if balanced else None,
            warning_message=warning,
            solver="cpsat",
            targets=dict(targets),
        )

    def _calculate_stats(
        self,
        result: ScheduleResult,
        request: ScheduleRequest,
    ) -> dict:
        """Calculate schedule statistics."""
        counts = [s.count for s in result.stats.values()]
        schedule_days = len(result.schedule)
        rest_days = sum(1 for a in result.schedule.values() if not a.is_duty)

        return {
            "total_participants": len(request.roster),
            "calendar_days": request.date_range.num_days,
            "schedule_days": schedule_days,
            "duty_assignments": schedule_days - rest_days,
            "rest_days": rest_days,
            "min_count": min(counts) if counts else 0,
            "max_count": max(counts) if counts else 0,
            "avg_count": sum(counts) / len(counts) if counts else 0,
            "deviation": result.deviation,
            "balanced": result.balanced,
            "solver": result.solver,
        }
