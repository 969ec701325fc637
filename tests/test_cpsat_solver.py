"""Tests for the CP-SAT rotation balancer."""

from datetime import date, datetime, timedelta

import pytest

from dutyrota.domain.errors import InvalidInputError
from dutyrota.domain.models import AssignmentKind, DateRange, Override, Participant
from dutyrota.scheduling.cpsat_solver import CPSATConfig, CPSATRotationSolver
from dutyrota.scheduling.duty_days import derive_duty_days

STAMP = datetime(2024, 6, 1, 8, 0)


@pytest.fixture
def solver() -> CPSATRotationSolver:
    return CPSATRotationSolver(
        config=CPSATConfig(time_limit_seconds=10.0, num_workers=1),
        clock=lambda: STAMP,
    )


@pytest.fixture
def roster() -> list[Participant]:
    return [
        Participant("p1", "Alice"),
        Participant("p2", "Bob"),
        Participant("p3", "Carol"),
    ]


@pytest.fixture
def duty_days() -> list[date]:
    return derive_duty_days(DateRange(date(2024, 6, 3), date(2024, 6, 14)))


TARGETS = {"p1": 4, "p2": 3, "p3": 3}


class TestCPSATRotationSolver:
    """Tests for CPSATRotationSolver."""

    def test_balanced_solution(self, solver, roster, duty_days):
        result = solver.solve(duty_days, roster, TARGETS, {})
        assert result.is_optimal
        assert result.deviation == 0
        assert result.schedule.duty_counts() == TARGETS
        assert result.schedule.dates == duty_days

    def test_avoids_consecutive_repeats(self, solver, roster, duty_days):
        result = solver.solve(duty_days, roster, TARGETS, {})
        assert result.repeats == 0
        for day, assignment in result.schedule.items():
            previous = result.schedule.get(day - timedelta(days=1))
            if previous is not None:
                assert previous.participant_id != assignment.participant_id

    def test_rest_override(self, solver, roster, duty_days):
        overrides = {date(2024, 6, 5): Override(date(2024, 6, 5), AssignmentKind.REST, "Offsite")}
        result = solver.solve(duty_days, roster, TARGETS, overrides)
        rest = result.schedule[date(2024, 6, 5)]
        assert rest.kind == AssignmentKind.REST
        assert rest.participant_id is None
        assert rest.label == "Offsite"
        assert result.deviation == 1
        assert sum(result.schedule.duty_counts().values()) == 9

    def test_duty_override_label(self, solver, roster, duty_days):
        overrides = {date(2024, 6, 4): Override(date(2024, 6, 4), AssignmentKind.DUTY, "Audit")}
        result = solver.solve(duty_days, roster, TARGETS, overrides)
        assignment = result.schedule[date(2024, 6, 4)]
        assert assignment.label == "Audit"
        assert assignment.participant_id in TARGETS
        assert result.deviation == 0

    def test_default_labels_and_clock(self, solver, roster, duty_days):
        result = solver.solve(duty_days, roster, TARGETS, {})
        assert {a.label for a in result.schedule.values()} == {"routine duty"}
        assert {a.assigned_at for a in result.schedule.values()} == {STAMP}

    def test_single_participant_must_repeat(self, solver):
        days = derive_duty_days(DateRange(date(2024, 6, 3), date(2024, 6, 5)))
        result = solver.solve(days, [Participant("solo", "Solo")], {"solo": 3}, {})
        assert result.deviation == 0
        assert result.repeats == 2

    def test_no_duty_days(self, solver, roster):
        result = solver.solve([], roster, {"p1": 0, "p2": 0, "p3": 0}, {})
        assert result.is_feasible
        assert len(result.schedule) == 0

    def test_empty_roster_rejected(self, solver, duty_days):
        with pytest.raises(InvalidInputError):
            solver.solve(duty_days, [], {}, {})
