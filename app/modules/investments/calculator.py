"""
Duration and interest calculations for investment plans.

Durations are human strings such as ``"30 days"`` or ``"6 months"``. Months and
years are fixed averages (30.44 and 365.25 days), not calendar arithmetic, so
end dates already stored stay reproducible.
"""
import re
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from app.core.exceptions import DurationFormatError

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS
WEEK_MS = 7 * DAY_MS
MONTH_MS = 30.44 * DAY_MS
YEAR_MS = 365.25 * DAY_MS

UNIT_MILLISECONDS = {
    "minute": MINUTE_MS,
    "hour": HOUR_MS,
    "day": DAY_MS,
    "week": WEEK_MS,
    "month": MONTH_MS,
    "year": YEAR_MS,
}

COMPLETED_SENTINEL = "Investment completed"

_DURATION_RE = re.compile(r"^(\d+)\s+(minute|hour|day|week|month|year)s?$", re.ASCII)


def parse_duration_to_milliseconds(duration: str) -> float:
    """Convert ``"<integer> <unit>"`` into a span in milliseconds"""
    if not isinstance(duration, str):
        raise DurationFormatError(f"Invalid duration format: {duration}")

    match = _DURATION_RE.match(duration.lower().strip())
    if not match:
        raise DurationFormatError(f"Invalid duration format: {duration}")

    amount = int(match.group(1))
    unit = match.group(2)
    return amount * UNIT_MILLISECONDS[unit]


def calculate_end_date(start_date: datetime, duration: str) -> datetime:
    """Start date plus the plan duration"""
    span = parse_duration_to_milliseconds(duration)
    try:
        return start_date + timedelta(milliseconds=span)
    except OverflowError:
        raise DurationFormatError(f"Duration is too long: {duration}")


def milliseconds_between(start: datetime, end: datetime) -> int:
    return int((end - start) / timedelta(milliseconds=1))


def _round_cents(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def calculate_progressive_interest(
    total_interest: float,
    start_date: datetime,
    end_date: datetime,
    check_date: Optional[datetime] = None
) -> float:
    """
    Interest earned so far, proportional to the elapsed share of the term.

    Returns 0 before the start, exactly ``total_interest`` at or after the end,
    and otherwise the proportional amount rounded half-up to the cent.
    """
    if check_date is None:
        check_date = datetime.utcnow()

    total_duration = end_date - start_date
    elapsed = min(check_date - start_date, total_duration)

    if elapsed <= timedelta(0):
        return 0
    if elapsed >= total_duration:
        return total_interest

    progress = elapsed / total_duration
    return _round_cents(total_interest * progress)


def calculate_progress_percentage(
    current_interest: float,
    total_interest: float,
    start_date: datetime,
    end_date: datetime,
    check_date: Optional[datetime] = None
) -> float:
    """Share of the interest earned, as a percentage capped at 100"""
    if total_interest:
        return min(current_interest / total_interest * 100, 100)

    # Zero-interest plans report elapsed time instead
    if check_date is None:
        check_date = datetime.utcnow()
    total_duration = end_date - start_date
    if total_duration <= timedelta(0):
        return 100
    elapsed = check_date - start_date
    return max(0, min(elapsed / total_duration * 100, 100))


def is_investment_due(end_date: datetime, current_date: Optional[datetime] = None) -> bool:
    if current_date is None:
        current_date = datetime.utcnow()
    return current_date >= end_date


def _unit(count: int, name: str) -> str:
    return f"{count} {name}{'s' if count > 1 else ''}"


def format_time_remaining(end_date: datetime, current_date: Optional[datetime] = None) -> str:
    """Human readable remaining time using the two coarsest units"""
    if current_date is None:
        current_date = datetime.utcnow()

    time_remaining = milliseconds_between(current_date, end_date)
    if time_remaining <= 0:
        return COMPLETED_SENTINEL

    days = time_remaining // DAY_MS
    hours = (time_remaining % DAY_MS) // HOUR_MS
    minutes = (time_remaining % HOUR_MS) // MINUTE_MS

    if days > 0:
        return f"{_unit(days, 'day')}, {_unit(hours, 'hour')}"
    elif hours > 0:
        return f"{_unit(hours, 'hour')}, {_unit(minutes, 'minute')}"
    else:
        return _unit(minutes, "minute")
