"""Command-line interface for the dutyrota scheduling tool."""

import argparse
import json
import logging
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Optional, Sequence

from dutyrota.domain.errors import InvalidInputError
from dutyrota.domain.holidays import HolidayCalendar
from dutyrota.domain.models import (
    DateRange,
    Participant,
    RotationConfig,
    ScheduleRequest,
    ScheduleResult,
)
from dutyrota.domain.policies import PositionalRemainderPolicy, ShuffledRemainderPolicy
from dutyrota.scheduling.scheduler import DutyScheduler, SchedulerConfig, SolverType
from dutyrota.validation.validator import ScheduleValidator

logger = logging.getLogger(__name__)

REMAINDER_POLICIES = {
    "positional": PositionalRemainderPolicy,
    "shuffled": ShuffledRemainderPolicy,
}


def create_sample_participants(count: int = 5) -> list[Participant]:
    """Create sample participants for demos.

    Args:
        count: Number of participants to create.
    """
    names = [
        "Alice", "Bob", "Carol", "David", "Eve", "Frank", "Grace", "Henry",
        "Ivy", "Jack", "Kate", "Leo", "Mia", "Noah", "Olivia", "Paul",
    ]

    participants = []
    for i in range(count):
        name = names[i % len(names)]
        if i >= len(names):
            name = f"{name}{i // len(names) + 1}"
        participants.append(Participant(id=f"P{i + 1:03d}", name=name))
    return participants


def load_request(path: str) -> ScheduleRequest:
    """Load a JSON request document.

    Raises:
        InvalidInputError: If the file cannot be read or parsed.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise InvalidInputError(f"Cannot read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise InvalidInputError(f"Invalid JSON in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise InvalidInputError(f"Request in {path} must be a JSON object")
    return ScheduleRequest.from_dict(data)


def build_scheduler(
    solver: str = "heuristic",
    seed: Optional[int] = None,
    remainder: str = "positional",
) -> DutyScheduler:
    """Create a scheduler from command-line options."""
    config = SchedulerConfig(
        solver_type=SolverType(solver),
        seed=seed,
        remainder_policy=REMAINDER_POLICIES[remainder](),
    )
    return DutyScheduler(config=config)


def print_result(result: ScheduleResult, request: ScheduleRequest) -> None:
    """Print a human-readable summary of a result."""
    date_range = request.date_range
    print(f"\n{'=' * 60}")
    print(f"Duty Rotation: {date_range.start} to {date_range.end}")
    print(f"{'=' * 60}")
    print(f"  Participants: {len(request.roster)}")
    print(f"  Scheduled days: {len(result.schedule)}")
    print(f"  Solver: {result.solver}")

    if result.balanced:
        print(f"  Balanced: yes (after {result.retries_used} attempt(s))")
    else:
        print(f"  Balanced: no - {result.warning_message}")

    print("\nDuty Counts:")
    for pid, stats in result.stats.items():
        target = result.targets.get(pid)
        target_str = f" (target {target})" if target is not None else ""
        print(f"  {stats.name} ({pid}): {stats.count}{target_str}")

    print("\nSchedule:")
    for day, weekday, label, kind, name in result.schedule.to_rows(request.roster):
        who = name or "-"
        print(f"  {day} ({weekday}): {label:<16} {kind:<5} {who}")

    validation = ScheduleValidator().validate(result, request)
    if validation.is_valid:
        print("\nValidation: PASSED")
    else:
        print(f"\nValidation: FAILED ({len(validation.errors)} errors)")
        for error in validation.errors[:5]:
            print(f"    - {error}")
        if len(validation.errors) > 5:
            print(f"    ... and {len(validation.errors) - 5} more errors")

    if validation.warnings:
        print(f"\nWarnings ({len(validation.warnings)}):")
        for warning in validation.warnings[:3]:
            print(f"    - {warning}")
        if len(validation.warnings) > 3:
            print(f"    ... and {len(validation.warnings) - 3} more warnings")


def run_generate(
    request_path: str,
    solver: str = "heuristic",
    seed: Optional[int] = None,
    remainder: str = "positional",
    as_json: bool = False,
    output_path: Optional[str] = None,
) -> None:
    """Generate a schedule for a JSON request file."""
    request = load_request(request_path)
    scheduler = build_scheduler(solver, seed, remainder)
    result = scheduler.generate_schedule(request)

    if output_path:
        Path(output_path).write_text(
            json.dumps(result.to_dict(), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        logger.info("Result written to %s", output_path)

    if as_json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print_result(result, request)


def run_demo(
    participant_count: int = 5,
    days: int = 28,
    include_saturday: bool = False,
    include_sunday: bool = False,
    seed: Optional[int] = None,
    solver: str = "heuristic",
) -> None:
    """Run a demo rotation starting next Monday.

    Args:
        participant_count: Number of sample participants.
        days: Number of calendar days to schedule.
        include_saturday: Schedule Saturdays.
        include_sunday: Schedule Sundays.
        seed: Random seed for reproducible output.
        solver: Solver to use (heuristic, cpsat, hybrid).
    """
    print(f"Generating demo rotation for {participant_count} participants over {days} days...")

    start_date = date.today()
    days_until_monday = (7 - start_date.weekday()) % 7
    start_date = start_date + timedelta(days=days_until_monday)
    end_date = start_date + timedelta(days=max(days, 1) - 1)

    request = ScheduleRequest(
        roster=create_sample_participants(participant_count),
        date_range=DateRange(start_date, end_date),
        config=RotationConfig(
            include_saturday=include_saturday,
            include_sunday=include_sunday,
        ),
        holidays=HolidayCalendar.default(),
    )

    scheduler = build_scheduler(solver, seed)
    result, stats = scheduler.generate_schedule_with_stats(request)
    print_result(result, request)
    print(f"\n  Min/Max/Avg duties: {stats['min_count']}/{stats['max_count']}/"
          f"{stats['avg_count']:.1f}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="dutyrota - Fair Duty Rotation Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s generate request.json               Schedule a JSON request
  %(prog)s generate request.json --json        Print the result as JSON
  %(prog)s generate request.json --seed 42     Reproducible schedule
  %(prog)s generate request.json --solver cpsat  Use the CP-SAT balancer

  %(prog)s demo                                Demo with 5 participants
  %(prog)s demo --count 8 --days 60 --saturday
        """,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Generate command
    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate a rotation from a JSON request file",
    )
    generate_parser.add_argument("request", help="Path to the JSON request")
    generate_parser.add_argument(
        "--solver", "-s",
        type=str,
        default="heuristic",
        choices=[s.value for s in SolverType],
        help="Solver type: heuristic (default), cpsat, hybrid",
    )
    generate_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible schedules",
    )
    generate_parser.add_argument(
        "--remainder", "-r",
        type=str,
        default="positional",
        choices=sorted(REMAINDER_POLICIES),
        help="Who gets the extra duty days (default: positional)",
    )
    generate_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )
    generate_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Also write the JSON result to this file",
    )

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Run a demo rotation")
    demo_parser.add_argument(
        "--count", "-c",
        type=int,
        default=5,
        help="Number of participants to generate (default: 5)",
    )
    demo_parser.add_argument(
        "--days", "-d",
        type=int,
        default=28,
        help="Number of calendar days to schedule (default: 28)",
    )
    demo_parser.add_argument("--saturday", action="store_true", help="Include Saturdays")
    demo_parser.add_argument("--sunday", action="store_true", help="Include Sundays")
    demo_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    demo_parser.add_argument(
        "--solver", "-s",
        type=str,
        default="heuristic",
        choices=[s.value for s in SolverType],
        help="Solver type (default: heuristic)",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "generate":
            run_generate(
                args.request,
                args.solver,
                args.seed,
                args.remainder,
                args.json,
                args.output,
            )
            return 0
        elif args.command == "demo":
            run_demo(
                args.count,
                args.days,
                args.saturday,
                args.sunday,
                args.seed,
                args.solver,
            )
            return 0
        else:
            parser.print_help()
            return 1
    except InvalidInputError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
