"""
Date interval and proration utilities.

All revenue attribution in the engine goes through these helpers: a contract
interval is intersected with a reporting window in whole, inclusive days and
the overlap is priced at a fixed daily rate of ``annual_premium / 365.25``.
The average-year divisor is deliberately not calendar accurate, so a full
leap year yields slightly more than the annual premium.
"""
import calendar
from datetime import date
from decimal import Decimal

DAYS_PER_YEAR = Decimal("365.25")

# Stand-in end date for open-ended contracts
OPEN_ENDED = date.max


def overlap_days(
    start: date | None,
    end: date | None,
    window_start: date,
    window_end: date,
) -> int:
    """
    Count whole days shared by a contract interval and a window.

    Both intervals are inclusive of their boundary days.

    Args:
        start: Contract start date (None means the interval is unknown)
        end: Contract end date (None means open-ended)
        window_start: First day of the reporting window
        window_end: Last day of the reporting window

    Returns:
        Number of overlapping days, 0 if disjoint or malformed
    """
    if start is None:
        return 0
    if end is None:
        end = OPEN_ENDED
    if start > end or window_start > window_end:
        return 0

    overlap_start = max(start, window_start)
    overlap_end = min(end, window_end)
    if overlap_start > overlap_end:
        return 0
    return (overlap_end - overlap_start).days + 1


def daily_rate(annual_premium: Decimal) -> Decimal:
    """Revenue earned per contract day."""
    return Decimal(annual_premium) / DAYS_PER_YEAR


def prorated_revenue(
    annual_premium: Decimal,
    start: date | None,
    end: date | None,
    window_start: date,
    window_end: date,
) -> Decimal:
    """Contract revenue attributable to a window."""
    days = overlap_days(start, end, window_start, window_end)
    if days == 0:
        return Decimal(0)
    return days * daily_rate(annual_premium)


def year_bounds(year: int) -> tuple[date, date]:
    """First and last day of a calendar year."""
    return date(year, 1, 1), date(year, 12, 31)


def month_bounds(day: date) -> tuple[date, date]:
    """First and last day of the calendar month containing ``day``."""
    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last_day)


def shift_months(day: date, months: int) -> date:
    """
    Move a date by whole calendar months.

    The day of month is clamped to the target month's length, so
    31 March minus one month is 28 (or 29) February.
    """
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def month_key(day: date) -> str:
    """``YYYY-MM`` label for the month containing ``day``."""
    return f"{day.year:04d}-{day.month:02d}"
