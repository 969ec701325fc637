"""OR-Tools CP-SAT balancer for duty rotations.

This module provides a constraint programming alternative to the
randomized retry loop. It finds a schedule with the smallest possible
deviation from the target distribution, then the fewest back-to-back
repeats, using Google OR-Tools CP-SAT.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Mapping, Optional, Sequence

from ortools.sat.python import cp_model

from dutyrota.domain.models import (
    DEFAULT_DUTY_LABEL,
    Assignment,
    AssignmentKind,
    Override,
    Participant,
    ParticipantId,
    Schedule,
)
from dutyrota.scheduling.rotation_engine import calculate_deviation, validate_roster

logger = logging.getLogger(__name__)


@dataclass
class CPSATConfig:
    """Configuration for the CP-SAT balancer.

    Attributes:
        time_limit_seconds: Maximum solver runtime.
        num_workers: Number of parallel workers (0 = auto).
        random_seed: Solver seed, for reproducible search.
    """

    time_limit_seconds: float = 10.0
    num_workers: int = 0
    random_seed: int = 0


@dataclass
class CPSATRotationResult:
    """Result from the CP-SAT balancer.

    Attributes:
        schedule: The generated Schedule, None when no solution was found.
        status: Solver status (OPTIMAL, FEASIBLE, etc.).
        deviation: Worst-case gap from the targets.
        repeats: Number of back-to-back repeats in the schedule.
        solve_time_seconds: Time taken to solve.
    """

    schedule: Optional[Schedule]
    status: str
    deviation: int = 0
    repeats: int = 0
    solve_time_seconds: float = 0.0

    @property
    def is_optimal(self) -> bool:
        return self.status == "OPTIMAL"

    @property
    def is_feasible(self) -> bool:
        return self.status in ("OPTIMAL", "FEASIBLE")


class CPSATRotationSolver:
    """Exact rotation balancer using OR-Tools CP-SAT.

    The objective is lexicographic: the maximum deviation is weighted
    above the total number of repeats, so a repeat is only used when it
    lowers the deviation.
    """

    def __init__(
        self,
        config: Optional[CPSATConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or CPSATConfig()
        self.clock = clock or datetime.now

    def solve(
        self,
        duty_days: Sequence[date],
        roster: Sequence[Participant],
        targets: Mapping[ParticipantId, int],
        overrides: Mapping[date, Override],
    ) -> CPSATRotationResult:
        """Solve the rotation with CP-SAT.

        Args:
            duty_days: Ascending duty days.
            roster: Participants in roster order.
            targets: Target duty count per participant ID.
            overrides: Effective override per duty day.

        Returns:
            CPSATRotationResult with schedule and solver statistics.
        """
        validate_roster(roster)
        model = cp_model.CpModel()

        staffed = [
            d for d in duty_days
            if not (d in overrides and overrides[d].kind == AssignmentKind.REST)
        ]
        staffed_set = set(staffed)

        # Decision variables: x[d, p] = 1 if participant p is on duty on day d
        x: dict[tuple[date, ParticipantId], cp_model.IntVar] = {}
        for d in staffed:
            for idx, participant in enumerate(roster):
                x[d, participant.id] = model.NewBoolVar(f"x_{d.isoformat()}_{idx}")

        # Constraint 1: Exactly one participant per staffed day
        for d in staffed:
            model.AddExactlyOne([x[d, p.id] for p in roster])

        # Constraint 2: max_deviation bounds every |count - target|
        max_deviation = model.NewIntVar(0, max(len(duty_days), 1), "max_deviation")
        for participant in roster:
            count = sum(x[d, participant.id] for d in staffed)
            target = targets.get(participant.id, 0)
            model.Add(count - target <= max_deviation)
            model.Add(target - count <= max_deviation)

        # Repeat indicators for consecutive calendar days
        repeats: list[cp_model.IntVar] = []
        for d in staffed:
            previous = d - timedelta(days=1)
            if previous not in staffed_set:
                continue
            for idx, participant in enumerate(roster):
                repeat = model.NewBoolVar(f"repeat_{d.isoformat()}_{idx}")
                model.Add(x[previous, participant.id] + x[d, participant.id] - 1 <= repeat)
                repeats.append(repeat)

        model.Minimize(max_deviation * (len(repeats) + 1) + sum(repeats))

        # Solve
        solver = cp_model.CpSolver()
        solver.parameters.max_time_in_seconds = self.config.time_limit_seconds
        solver.parameters.random_seed = self.config.random_seed
        if self.config.num_workers > 0:
            solver.parameters.num_workers = self.config.num_workers

        status = solver.Solve(model)

        # Map status to string
        status_map = {
            cp_model.OPTIMAL: "OPTIMAL",
            cp_model.FEASIBLE: "FEASIBLE",
            cp_model.INFEASIBLE: "INFEASIBLE",
            cp_model.MODEL_INVALID: "MODEL_INVALID",
            cp_model.UNKNOWN: "UNKNOWN",
        }
        status_str = status_map.get(status, "UNKNOWN")
        logger.debug("CP-SAT finished with status %s in %.2fs",
                     status_str, solver.WallTime())

        if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            return CPSATRotationResult(
                schedule=None,
                status=status_str,
                solve_time_seconds=solver.WallTime(),
            )

        schedule = self._extract_solution(solver, x, duty_days, roster, overrides)

        return CPSATRotationResult(
            schedule=schedule,
            status=status_str,
            deviation=calculate_deviation(schedule, targets),
            repeats=sum(solver.Value(r) for r in repeats),
            solve_time_seconds=solver.WallTime(),
        )

    def _extract_solution(
        self,
        solver: cp_model.CpSolver,
        x: dict[tuple[date, ParticipantId], cp_model.IntVar],
        duty_days: Sequence[date],
        roster: Sequence[Participant],
        overrides: Mapping[date, Override],
    ) -> Schedule:
        """Extract the schedule from the solved model."""
        assignments: dict[date, Assignment] = {}

        for d in duty_days:
            override = overrides.get(d)
            if override is not None and override.kind == AssignmentKind.REST:
                assignments[d] = Assignment(
                    date=d,
                    kind=AssignmentKind.REST,
                    label=override.effective_label,
                    participant_id=None,
                    assigned_at=self.clock(),
                )
                continue

            for participant in roster:
                if solver.Value(x[d, participant.id]) == 1:
                    assignments[d] = Assignment(
                        date=d,
                        kind=AssignmentKind.DUTY,
                        label=override.effective_label if override else DEFAULT_DUTY_LABEL,
                        participant_id=participant.id,
                        assigned_at=self.clock(),
                    )
                    break  # Only one participant per day

        return Schedule(assignments)
