"""Tests for the DutyScheduler facade."""

from datetime import date, datetime

import pytest

from dutyrota.domain.errors import InvalidInputError
from dutyrota.domain.holidays import HolidayCalendar
from dutyrota.domain.models import (
    AssignmentKind,
    DateRange,
    Override,
    Participant,
    RotationConfig,
    ScheduleRequest,
)
from dutyrota.domain.policies import ShuffledRemainderPolicy
from dutyrota.scheduling.scheduler import DutyScheduler, SchedulerConfig, SolverType

STAMP = datetime(2024, 6, 1, 8, 0)


def make_scheduler(solver_type: SolverType = SolverType.HEURISTIC, **kwargs) -> DutyScheduler:
    config = SchedulerConfig(solver_type=solver_type, seed=11, **kwargs)
    return DutyScheduler(config=config, clock=lambda: STAMP)


@pytest.fixture
def request_two_weeks() -> ScheduleRequest:
    return ScheduleRequest(
        roster=[Participant("p1", "Alice"), Participant("p2", "Bob"), Participant("p3", "Carol")],
        date_range=DateRange(date(2024, 6, 3), date(2024, 6, 14)),
    )


@pytest.fixture
def request_with_rest() -> ScheduleRequest:
    return ScheduleRequest(
        roster=[Participant("p1", "Alice"), Participant("p2", "Bob"), Participant("p3", "Carol")],
        date_range=DateRange(date(2024, 6, 3), date(2024, 6, 14)),
        config=RotationConfig(overrides=[Override(date(2024, 6, 5), AssignmentKind.REST)]),
    )


class TestHeuristicMode:
    """Tests for the default solver."""

    def test_balanced(self, request_two_weeks):
        result = make_scheduler().generate_schedule(request_two_weeks)
        assert result.solver == "heuristic"
        assert result.balanced is True
        assert result.targets == {"p1": 4, "p2": 3, "p3": 3}

    def test_seed_makes_runs_reproducible(self, request_two_weeks):
        scheduler = make_scheduler()
        first = scheduler.generate_schedule(request_two_weeks)
        second = scheduler.generate_schedule(request_two_weeks)
        assert first.schedule == second.schedule

    def test_fresh_engine_per_request(self, request_two_weeks):
        scheduler = make_scheduler()
        assert scheduler.create_engine(request_two_weeks) is not scheduler.create_engine(request_two_weeks)
        engine = scheduler.create_engine(request_two_weeks)
        assert engine.random_source is not scheduler.create_engine(request_two_weeks).random_source

    def test_request_holidays_applied(self):
        request = ScheduleRequest(
            roster=[Participant("p1", "Alice"), Participant("p2", "Bob")],
            date_range=DateRange(date(2024, 9, 30), date(2024, 10, 4)),
            holidays=HolidayCalendar.default(),
        )
        result = make_scheduler().generate_schedule(request)
        assert result.schedule.dates == [date(2024, 9, 30), date(2024, 10, 4)]

    def test_shuffled_remainder_policy(self, request_two_weeks):
        scheduler = make_scheduler(remainder_policy=ShuffledRemainderPolicy())
        result = scheduler.generate_schedule(request_two_weeks)
        assert sorted(result.targets.values()) == [3, 3, 4]
        assert result.balanced is True

    def test_empty_roster(self):
        request = ScheduleRequest(roster=[], date_range=DateRange(date(2024, 6, 3), date(2024, 6, 7)))
        with pytest.raises(InvalidInputError):
            make_scheduler().generate_schedule(request)


class TestCPSATMode:
    """Tests for the CP-SAT solver mode."""

    def test_balanced(self, request_two_weeks):
        result = make_scheduler(SolverType.CPSAT).generate_schedule(request_two_weeks)
        assert result.solver == "cpsat"
        assert result.balanced is True
        assert result.retries_used == 1
        assert result.deviation == 0

    def test_unbalanced_warning(self, request_with_rest):
        result = make_scheduler(SolverType.CPSAT).generate_schedule(request_with_rest)
        assert result.balanced is False
        assert result.deviation == 1
        assert result.warning_message.startswith("CP-SAT (")
        assert result.schedule[date(2024, 6, 5)].kind == AssignmentKind.REST


class TestHybridMode:
    """Tests for the hybrid solver mode."""

    def test_balanced_heuristic_kept(self, request_two_weeks):
        result = make_scheduler(SolverType.HYBRID).generate_schedule(request_two_weeks)
        assert result.solver == "heuristic"
        assert result.balanced is True

    def test_no_improvement_keeps_heuristic(self, request_with_rest):
        result = make_scheduler(SolverType.HYBRID).generate_schedule(request_with_rest)
        assert result.solver == "heuristic"
        assert result.deviation == 1
        assert result.warning_message.startswith("after 10 attempts")


class TestScheduleStats:
    """Tests for generate_schedule_with_stats."""

    def test_stats_dict(self, request_with_rest):
        result, stats = make_scheduler().generate_schedule_with_stats(request_with_rest)
        assert stats["total_participants"] == 3
        assert stats["calendar_days"] == 12
        assert stats["schedule_days"] == 10
        assert stats["duty_assignments"] == 9
        assert stats["rest_days"] == 1
        assert stats["max_count"] <= 4
        assert stats["avg_count"] == pytest.approx(3.0)
        assert stats["deviation"] == 1
        assert stats["balanced"] is False
        assert stats["solver"] == "heuristic"
        assert result.total_duty_count == 9
