"""Calendar-day keys in a fixed timezone.

A day key is a ``YYYY-MM-DD`` string naming a civil date in the application
timezone. Every log write and every day/week/month query is bucketed through
these helpers, so the manual and assistant logging paths land in the same
bucket for the same calendar day regardless of the host timezone.
"""

import calendar
import re
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import NamedTuple
from zoneinfo import ZoneInfo

APP_TIMEZONE = "Europe/Berlin"
DAY_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

END_OF_DAY_MICROSECOND = 999_000


class InvalidDayKey(ValueError):
    """Raised for strings that are not a real YYYY-MM-DD calendar date."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid day key: {value!r}")
        self.value = value


class Weekday(str, Enum):
    """Days of the week, Monday first (index 0)."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def position(self) -> int:
        return list(Weekday).index(self)


class DayParts(NamedTuple):
    year: int
    month: int
    day: int


class DaySpan(NamedTuple):
    """Inclusive span of day keys."""

    start: str
    end: str


class TimeRange(NamedTuple):
    """UTC instants covering 00:00:00.000 to 23:59:59.999 of one or more civil days."""

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        """Wall length of the covered days (end is inclusive to the millisecond)."""
        return self.end - self.start + timedelta(milliseconds=1)

    def contains(self, instant: datetime) -> bool:
        return self.start <= _as_utc(instant) <= self.end


class DayBucket(NamedTuple):
    day_key: str
    weekday: Weekday
    range: TimeRange


def _as_utc(instant: datetime) -> datetime:
    # Naive datetimes are UTC throughout the storage layer
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def format_day_key(year: int, month: int, day: int) -> str:
    return f"{year:04d}-{month:02d}-{day:02d}"


def parse_day_key(value: str) -> DayParts:
    """Validate a day key and split it into its components.

    Rejects anything that is not ``YYYY-MM-DD`` or that names a date the
    calendar does not have (``2023-02-29``, ``2024-13-01``, ``0000-01-01``).
    """
    if not isinstance(value, str) or not DAY_KEY_RE.match(value):
        raise InvalidDayKey(value)
    year, month, day = (int(part) for part in value.split("-"))
    try:
        control = date(year, month, day)
    except ValueError:
        raise InvalidDayKey(value) from None
    return DayParts(control.year, control.month, control.day)


def _to_date(day_key: str) -> date:
    return date(*parse_day_key(day_key))


def _from_date(value: date) -> str:
    return format_day_key(value.year, value.month, value.day)


def day_key_from_instant(instant: datetime, tz: str = APP_TIMEZONE) -> str:
    """Civil date of an instant in ``tz``, honouring that zone's DST rules."""
    local = _as_utc(instant).astimezone(ZoneInfo(tz))
    return format_day_key(local.year, local.month, local.day)


def today_key(tz: str = APP_TIMEZONE, now: datetime | None = None) -> str:
    return day_key_from_instant(now or datetime.now(timezone.utc), tz)


def add_days(day_key: str, delta: int) -> str:
    try:
        return _from_date(_to_date(day_key) + timedelta(days=delta))
    except OverflowError:
        raise InvalidDayKey(day_key) from None


def weekday_of(day_key: str) -> Weekday:
    return list(Weekday)[(_to_date(day_key).isoweekday() + 6) % 7]


def week_start(day_key: str) -> str:
    """Monday of the week containing ``day_key``. Sunday belongs to the week before it."""
    return add_days(day_key, -weekday_of(day_key).position)


def week_end(day_key: str) -> str:
    return add_days(week_start(day_key), 6)


def month_start(day_key: str) -> str:
    year, month, _ = parse_day_key(day_key)
    return format_day_key(year, month, 1)


def month_range(day_key: str) -> DaySpan:
    year, month, _ = parse_day_key(day_key)
    last_day = calendar.monthrange(year, month)[1]
    return DaySpan(format_day_key(year, month, 1), format_day_key(year, month, last_day))


def _utc_offset(instant: datetime, tz: str) -> timedelta:
    return instant.astimezone(ZoneInfo(tz)).utcoffset() or timedelta(0)


def zoned_to_utc(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
    microsecond: int = 0,
    tz: str = APP_TIMEZONE,
) -> datetime:
    """Resolve a civil date-time in ``tz`` to an aware UTC instant.

    The civil fields are first read as if they were UTC; the zone offset at
    that guess gives a corrected instant, and if the offset at the corrected
    instant differs (the guess straddled a DST change) the second offset wins.
    """
    guess = datetime(year, month, day, hour, minute, second, microsecond, tzinfo=timezone.utc)
    try:
        first_offset = _utc_offset(guess, tz)
        instant = guess - first_offset
        second_offset = _utc_offset(instant, tz)
        if second_offset != first_offset:
            instant = guess - second_offset
    except OverflowError:
        # 0001-01-01 and 9999-12-31 shift past the datetime range
        raise InvalidDayKey(format_day_key(year, month, day)) from None
    return instant


def utc_range_for_day_key(day_key: str, tz: str = APP_TIMEZONE) -> TimeRange:
    return utc_range_for_span(day_key, day_key, tz)


def utc_range_for_span(start_key: str, end_key: str, tz: str = APP_TIMEZONE) -> TimeRange:
    """Start of ``start_key`` through the last millisecond of ``end_key``."""
    first = parse_day_key(start_key)
    last = parse_day_key(end_key)
    return TimeRange(
        start=zoned_to_utc(*first, tz=tz),
        end=zoned_to_utc(*last, 23, 59, 59, END_OF_DAY_MICROSECOND, tz=tz),
    )


def log_timestamp_for_day_key(
    day_key: str, tz: str = APP_TIMEZONE, now: datetime | None = None
) -> datetime:
    """The selected day at the current wall-clock time in ``tz`` (UTC instant)."""
    parts = parse_day_key(day_key)
    local_now = _as_utc(now or datetime.now(timezone.utc)).astimezone(ZoneInfo(tz))
    return zoned_to_utc(
        *parts,
        local_now.hour,
        local_now.minute,
        local_now.second,
        # Milliseconds only, so the stamp never passes the day range end
        local_now.microsecond // 1000 * 1000,
        tz=tz,
    )


def resolve_day_bucket(raw_selected_day: str, tz: str = APP_TIMEZONE) -> DayBucket:
    """Bucket a selected day for reads and writes. Raises InvalidDayKey."""
    parts = parse_day_key(raw_selected_day)
    day_key = format_day_key(*parts)
    return DayBucket(day_key, weekday_of(day_key), utc_range_for_day_key(day_key, tz))
