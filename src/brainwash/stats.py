"""Aggregates over logged set values."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, NamedTuple, Optional

from .daykeys import add_days, parse_day_key, week_start


class SetStats(NamedTuple):
    best: Optional[int]
    avg: Optional[float]
    worst: Optional[int]


EMPTY_STATS = SetStats(None, None, None)


def stats_from_values(values: Iterable[int]) -> SetStats:
    """Best, average (2 decimals) and worst of a set of values."""
    values = list(values)
    if not values:
        return EMPTY_STATS
    avg = (Decimal(sum(values)) / len(values)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return SetStats(max(values), float(avg), min(values))


def week_label(start_key: str, end_key: str) -> str:
    """Human label for a week, e.g. 'Mar 4 - Mar 10'."""
    start = date(*parse_day_key(start_key))
    end = date(*parse_day_key(end_key))
    return f"{start:%b} {start.day} - {end:%b} {end.day}"


def week_starts(today: str, weeks: int) -> list[str]:
    """Monday keys of the last ``weeks`` weeks, current week first."""
    current = week_start(today)
    return [add_days(current, -7 * offset) for offset in range(weeks)]
