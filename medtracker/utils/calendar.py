"""Calendar and schedule-time utilities for the medication tracker.

All functions here are pure: "now" is always either passed in or read once
from the system clock, and only calendar days are compared unless stated.
"""

import re
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional, Union

from loguru import logger

from medtracker.data.models import Medication
from medtracker.utils.errors import MalformedScheduleError

_CLOCK_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
ONGOING_DAYS = -1

DayLike = Union[date, datetime]


def parse_clock_time(value: str) -> time:
    """Parse a 24h "HH:MM" clock-time string.

    Args:
        value: Clock time such as "09:00" or "21:30"

    Returns:
        time instance

    Raises:
        MalformedScheduleError: If the value is not a valid 24h clock time

    Examples:
        >>> parse_clock_time("09:05")
        datetime.time(9, 5)
    """
    match = _CLOCK_TIME_RE.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise MalformedScheduleError(value)

    hours, minutes = int(match.group(1)), int(match.group(2))
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise MalformedScheduleError(value)

    return time(hours, minutes)


def parse_duration_days(duration: str) -> Optional[int]:
    """Parse the number of days from a duration string.

    Only the leading whitespace-separated token is considered. Non-numeric
    text and "-1" mean ongoing; zero or another negative count gives an
    empty window.

    Args:
        duration: Duration text such as "7 days", "30", "Ongoing" or "-1"

    Returns:
        Number of days, or None if the medication is ongoing

    Examples:
        >>> parse_duration_days("14 days")
        14
        >>> parse_duration_days("Ongoing") is None
        True
    """
    tokens = (duration or "").split()
    if not tokens:
        return None

    try:
        days = int(tokens[0])
    except ValueError:
        return None

    if days == ONGOING_DAYS:
        return None
    return days


def calendar_day(value: DayLike, tz: Optional[tzinfo] = None) -> date:
    """Reduce a date or datetime to a calendar day.

    Aware datetimes are first converted to tz when one is given.
    """
    if isinstance(value, datetime):
        if tz is not None and value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    return value


def scheduled_instant(day: date, clock_time: time, tz: Optional[tzinfo]) -> datetime:
    """Combine a calendar day and a clock time into an instant."""
    return datetime.combine(day, clock_time, tzinfo=tz)


def is_medication_active_on_date(
    medication: Medication,
    day: DayLike,
    tz: Optional[tzinfo] = None,
) -> bool:
    """Check if a medication is active on the given calendar day.

    Active means on or after the start day and, for a fixed duration, no
    later than start + duration - 1. Time of day is ignored.

    Args:
        medication: Medication instance
        day: Day to check
        tz: Timezone used to project instants onto calendar days

    Returns:
        True if the medication is scheduled on that day
    """
    start = medication.start_day(tz)
    check = calendar_day(day, tz)

    if check < start:
        return False

    duration_days = parse_duration_days(medication.duration)
    if duration_days is None:
        return True

    end = start + timedelta(days=duration_days - 1)
    return check <= end


def is_medication_due(
    medication: Medication,
    day: DayLike,
    now: Optional[datetime] = None,
) -> bool:
    """Check if at least one dose on the given day has reached its time.

    Logic:
    - A day after today is never due
    - A day before today is always due
    - Today is due if the medication is taken as needed, or if any
      scheduled time is at or before now

    Args:
        medication: Medication instance
        day: Day to check
        now: Current instant (default: system clock)

    Returns:
        True if a dose on that day is due

    Examples:
        >>> # Medication at 09:00, now is 08:30 today
        >>> is_medication_due(med, today, datetime(2024, 1, 1, 8, 30))
        False
    """
    if now is None:
        now = datetime.now().astimezone()

    selected = calendar_day(day, now.tzinfo)
    today = now.date()

    if selected > today:
        return False

    if medication.is_as_needed or selected < today:
        return True

    for value in medication.times:
        try:
            clock_time = parse_clock_time(value)
        except MalformedScheduleError as e:
            logger.warning(f"Skipping time for medication {medication.id}: {e}")
            continue
        if now >= scheduled_instant(today, clock_time, now.tzinfo):
            return True

    return False


def next_dose_instant(medication: Medication, now: datetime) -> Optional[datetime]:
    """Find the next scheduled dose strictly after now.

    A time that has already passed today rolls over to tomorrow, as long
    as tomorrow is still within the medication's active window.

    Args:
        medication: Medication instance
        now: Current instant

    Returns:
        Instant of the next dose, or None for as-needed medications and
        medications whose course has ended
    """
    tz = now.tzinfo
    clock_times = []
    for value in medication.times:
        try:
            clock_times.append(parse_clock_time(value))
        except MalformedScheduleError as e:
            logger.warning(f"Skipping time for medication {medication.id}: {e}")
    if not clock_times:
        return None
    clock_times.sort()

    first_day = max(now.date(), medication.start_day(tz))
    for offset in range(2):
        day = first_day + timedelta(days=offset)
        if not is_medication_active_on_date(medication, day, tz):
            return None
        for clock_time in clock_times:
            instant = scheduled_instant(day, clock_time, tz)
            if instant > now:
                return instant

    return None


__all__ = [
    "parse_clock_time",
    "parse_duration_days",
    "calendar_day",
    "scheduled_instant",
    "is_medication_active_on_date",
    "is_medication_due",
    "next_dose_instant",
]
