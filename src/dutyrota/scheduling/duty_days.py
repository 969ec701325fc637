"""Duty-day derivation.

A duty day is a calendar date that is not a holiday and is either a
weekday or an included weekend day.
"""

from datetime import date

from dutyrota.domain.holidays import HolidayCalendar
from dutyrota.domain.models import DateRange

SATURDAY = 5
SUNDAY = 6


def is_duty_day(
    d: date,
    include_saturday: bool,
    include_sunday: bool,
    holidays: HolidayCalendar,
) -> bool:
    """Check a single date against the holiday and weekend rules."""
    if holidays.is_holiday(d):
        return False
    weekday = d.weekday()
    if weekday == SATURDAY:
        return include_saturday
    if weekday == SUNDAY:
        return include_sunday
    return True


def derive_duty_days(
    date_range: DateRange,
    include_saturday: bool = False,
    include_sunday: bool = False,
    holidays: HolidayCalendar = HolidayCalendar(),
) -> list[date]:
    """List the duty days of a range in ascending order.

    Args:
        date_range: Inclusive range to walk.
        include_saturday: Treat Saturdays as duty days.
        include_sunday: Treat Sundays as duty days.
        holidays: Dates never scheduled, regardless of weekday.

    Returns:
        Ascending list of duty days. May be empty.
    """
    return [
        d for d in date_range.dates()
        if is_duty_day(d, include_saturday, include_sunday, holidays)
    ]
