"""
Grouping bar indices into sampling periods.

A sampling frequency turns the bar range into consecutive
(previous, current) index pairs; each pair becomes one return
observation. BAR keeps every bar, the calendar frequencies close a pair
on the last bar of each period in the grouping time zone.
"""
from datetime import tzinfo
from enum import Enum
from typing import Callable, Dict, Hashable, Iterator, NamedTuple, Union

import pandas as pd

from equity_stats.series import BarSeries

__all__ = ["SamplingFrequency", "IndexPair", "SamplingFrequencyIndexes"]

Zone = Union[str, tzinfo]


class SamplingFrequency(str, Enum):
    BAR = "BAR"
    MINUTE = "MINUTE"
    HOUR = "HOUR"
    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"
    QUARTER = "QUARTER"
    YEAR = "YEAR"


class IndexPair(NamedTuple):
    previous_index: int
    current_index: int


_PERIOD_KEYS: Dict[SamplingFrequency, Callable[[pd.Timestamp], Hashable]] = {
    SamplingFrequency.MINUTE: lambda ts: (ts.year, ts.month, ts.day, ts.hour, ts.minute),
    SamplingFrequency.HOUR: lambda ts: (ts.year, ts.month, ts.day, ts.hour),
    SamplingFrequency.DAY: lambda ts: (ts.year, ts.month, ts.day),
    SamplingFrequency.WEEK: lambda ts: tuple(ts.isocalendar())[:2],
    SamplingFrequency.MONTH: lambda ts: (ts.year, ts.month),
    SamplingFrequency.QUARTER: lambda ts: (ts.year, ts.quarter),
    SamplingFrequency.YEAR: lambda ts: (ts.year,),
}


class SamplingFrequencyIndexes:
    """
    Produces the index pairs for a sampling frequency.

    Args:
        frequency: How bars are grouped.
        zone: Time zone in which calendar periods are delimited, e.g. "UTC"
              or "America/New_York".
    """

    def __init__(self, frequency: SamplingFrequency, zone: Zone = "UTC"):
        if frequency is None:
            raise ValueError("frequency must not be None.")
        if zone is None:
            raise ValueError("zone must not be None.")
        # Fail on unknown zones now rather than at the first calculation.
        pd.Timestamp("2000-01-01", tz="UTC").tz_convert(zone)
        self.frequency = frequency
        self.zone = zone

    def sample(self, series: BarSeries, anchor_index: int, start: int, end: int) -> Iterator[IndexPair]:
        """
        Lazily yields the pairs covering bars `start`..`end` (inclusive).
        The first pair starts at `anchor_index`.
        """
        if start > end:
            return
        if self.frequency is SamplingFrequency.BAR:
            previous = anchor_index
            for i in range(start, end + 1):
                yield IndexPair(previous, i)
                previous = i
            return

        period_key = _PERIOD_KEYS[self.frequency]
        local_times = series.end_times[start : end + 1].tz_convert(self.zone)
        keys = [period_key(ts) for ts in local_times]

        previous = anchor_index
        for offset, key in enumerate(keys):
            is_last_of_period = offset == len(keys) - 1 or keys[offset + 1] != key
            if is_last_of_period:
                current = start + offset
                yield IndexPair(previous, current)
                previous = current

    def __repr__(self) -> str:
        return f"SamplingFrequencyIndexes(frequency={self.frequency.value}, zone={self.zone!r})"
