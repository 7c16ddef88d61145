import calendar
from datetime import date


def days_in_month(day: date) -> int:
    return calendar.monthrange(day.year, day.month)[1]


def month_window(day: date) -> tuple[date, date]:
    """Return (first, last) calendar dates of the month containing *day*."""
    return day.replace(day=1), day.replace(day=days_in_month(day))


def closed_days_so_far(day: date) -> int:
    """Fully elapsed days of the month, excluding the in-progress *day* itself.

    Never less than 1, so day 1 of a month still yields a usable denominator.
    """
    return max(1, day.day - 1)
