"""Clock and timezone utilities for the medication tracker."""

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional

from loguru import logger


def parse_timezone_offset(offset_str: str) -> timedelta:
    """Parse timezone offset string to timedelta.

    Args:
        offset_str: Timezone offset in format "+03:00" or "-05:00"

    Returns:
        timedelta representing the offset

    Raises:
        ValueError: If offset string format is invalid

    Examples:
        >>> parse_timezone_offset("+03:00")
        datetime.timedelta(seconds=10800)
        >>> parse_timezone_offset("-05:00")
        datetime.timedelta(days=-1, seconds=68400)
    """
    try:
        offset_str = offset_str.strip()

        if len(offset_str) != 6 or offset_str[0] not in ['+', '-']:
            raise ValueError(f"Invalid timezone offset format: {offset_str}")

        sign = 1 if offset_str[0] == '+' else -1

        hours_str, minutes_str = offset_str[1:].split(':')
        hours = int(hours_str)
        minutes = int(minutes_str)

        if not (0 <= hours <= 14):
            raise ValueError(f"Hours out of range: {hours}")
        if not (0 <= minutes <= 59):
            raise ValueError(f"Minutes out of range: {minutes}")

        return timedelta(minutes=sign * (hours * 60 + minutes))

    except (ValueError, IndexError) as e:
        logger.error(f"Failed to parse timezone offset '{offset_str}': {e}")
        raise ValueError(f"Invalid timezone offset format: {offset_str}") from e


def local_timezone() -> tzinfo:
    """Return the host's current local timezone as a fixed offset.

    The offset is the one in effect now; it is not adjusted for days on the
    other side of a daylight saving change.
    """
    return datetime.now().astimezone().tzinfo


class Clock:
    """Source of "now" for every engine operation.

    All calendar-day comparisons are made in the clock's timezone, so a
    stored instant belongs to the day it falls on for the person taking
    the medication rather than the day it falls on in UTC.

    The timezone is a fixed UTC offset. Across a daylight saving change,
    scheduled instants on past days are built with today's offset and can
    sit one hour off the local wall clock of that day.
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz or local_timezone()

    @classmethod
    def from_offset(cls, offset_str: str) -> "Clock":
        """Create a clock for a "+HH:MM" offset; empty string means local time."""
        if not offset_str:
            return cls()
        return cls(timezone(parse_timezone_offset(offset_str)))

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()

    def localize(self, instant: datetime) -> datetime:
        """Express an instant in the clock's timezone.

        Naive datetimes are taken to already be wall-clock time in this zone.
        """
        if instant.tzinfo is None:
            return instant.replace(tzinfo=self.tz)
        return instant.astimezone(self.tz)

    def day_of(self, instant: datetime) -> date:
        """Calendar day an instant falls on in the clock's timezone."""
        return self.localize(instant).date()


class FixedClock(Clock):
    """Clock frozen at a given instant, for deterministic tests and replays."""

    def __init__(self, instant: datetime, tz: Optional[tzinfo] = None):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=tz or timezone.utc)
        super().__init__(tz or instant.tzinfo)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant.astimezone(self.tz)

    def advance(self, **kwargs) -> datetime:
        """Move the clock forward by timedelta(**kwargs)."""
        self._instant = self._instant + timedelta(**kwargs)
        return self.now()

    def set(self, instant: datetime) -> None:
        self._instant = self.localize(instant)


__all__ = ["Clock", "FixedClock", "parse_timezone_offset", "local_timezone"]
