"""Holiday calendar used to exclude dates from the rotation."""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from dutyrota.domain.errors import InvalidInputError

# Built-in list carried over from the original duty roster app.
DEFAULT_HOLIDAYS = (
    "01-01", "02-14", "04-05", "05-01", "06-14",
    "09-21", "10-01", "10-02", "10-03",
)


@dataclass(frozen=True)
class HolidayCalendar:
    """Calendar-year-recurring set of (month, day) holidays.

    The calendar is immutable so a single instance can be shared across
    every scheduling call.

    Attributes:
        days: Frozen set of (month, day) pairs.
    """

    days: frozenset[tuple[int, int]] = field(default_factory=frozenset)

    def __post_init__(self):
        for month, day in self.days:
            # 2000 is a leap year, so 02-29 is accepted
            try:
                date(2000, month, day)
            except ValueError as exc:
                raise InvalidInputError(
                    f"Invalid holiday {month:02d}-{day:02d}: {exc}"
                ) from exc

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[int, int]]) -> "HolidayCalendar":
        """Create a calendar from (month, day) pairs."""
        return cls(days=frozenset((int(m), int(d)) for m, d in pairs))

    @classmethod
    def from_strings(cls, values: Iterable[str]) -> "HolidayCalendar":
        """Create a calendar from "MM-DD" strings.

        Args:
            values: Strings such as "01-01" or "10-03".

        Raises:
            InvalidInputError: If a value is not in MM-DD form.
        """
        pairs = []
        for value in values:
            parts = str(value).strip().split("-")
            if len(parts) != 2 or not all(p.isdigit() for p in parts):
                raise InvalidInputError(f"Holiday must be MM-DD, got {value!r}")
            pairs.append((int(parts[0]), int(parts[1])))
        return cls.from_pairs(pairs)

    @classmethod
    def default(cls) -> "HolidayCalendar":
        """Calendar with the built-in holiday list."""
        return cls.from_strings(DEFAULT_HOLIDAYS)

    @classmethod
    def empty(cls) -> "HolidayCalendar":
        """Calendar with no holidays."""
        return cls()

    def is_holiday(self, d: date) -> bool:
        """Check if a date falls on a holiday, in any year."""
        return (d.month, d.day) in self.days

    def __contains__(self, d: date) -> bool:
        return self.is_holiday(d)

    def __len__(self) -> int:
        return len(self.days)

    def to_strings(self) -> list[str]:
        """Sorted "MM-DD" representation."""
        return [f"{m:02d}-{d:02d}" for m, d in sorted(self.days)]
