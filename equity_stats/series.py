"""
Read-only bar series adapter.

Bars are rows of a pandas DataFrame indexed by their END time. Only the
close price and the end time are consumed by the curve builders and the
criteria; the remaining OHLCV columns are carried along untouched.
"""
from datetime import timedelta
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from equity_stats.num import FloatNumFactory, Num, NumFactory

__all__ = ["BarSeries", "delta_years"]

SECONDS_PER_YEAR = 365.2425 * 24 * 60 * 60


class BarSeries:
    """
    An immutable, 0-based sequence of bars.

    Args:
        bars: DataFrame with a DatetimeIndex of bar end times and at least a
              'Close' column. Naive timestamps are treated as UTC.
        name: Optional label, e.g. the symbol.
        num_factory: Factory used to hand out prices and constants.
    """

    def __init__(
        self,
        bars: pd.DataFrame,
        name: str = "",
        num_factory: Optional[NumFactory] = None,
    ):
        if "Close" not in bars.columns:
            raise ValueError("Input `bars` DataFrame must contain a 'Close' column.")
        if not isinstance(bars.index, pd.DatetimeIndex):
            raise ValueError("Input `bars` DataFrame must be indexed by bar end times.")

        index = bars.index if bars.index.tz is not None else bars.index.tz_localize("UTC")
        self._bars = bars.set_axis(index, axis=0)
        self._closes = self._bars["Close"].to_numpy(dtype=np.float64)
        self.name = name
        self.num_factory: NumFactory = num_factory or FloatNumFactory()

    @classmethod
    def from_closes(
        cls,
        closes: Sequence[float],
        start: Union[str, pd.Timestamp] = "2024-01-01",
        period: timedelta = timedelta(days=1),
        name: str = "",
        num_factory: Optional[NumFactory] = None,
    ) -> "BarSeries":
        """
        Builds a flat-bar series (open == high == low == close) from close prices.
        The first bar ends one `period` after `start`.
        """
        start_ts = pd.Timestamp(start)
        if start_ts.tz is None:
            start_ts = start_ts.tz_localize("UTC")
        end_times = pd.DatetimeIndex([start_ts + period * (i + 1) for i in range(len(closes))])
        prices = np.asarray(closes, dtype=np.float64)
        bars = pd.DataFrame(
            {
                "Open": prices,
                "High": prices,
                "Low": prices,
                "Close": prices,
                "Volume": np.ones(len(prices)),
            },
            index=end_times,
        )
        return cls(bars, name=name, num_factory=num_factory)

    @property
    def bars(self) -> pd.DataFrame:
        return self._bars.copy()

    @property
    def bar_count(self) -> int:
        return len(self._closes)

    @property
    def begin_index(self) -> int:
        return 0 if self.bar_count > 0 else -1

    @property
    def end_index(self) -> int:
        return self.bar_count - 1

    @property
    def is_empty(self) -> bool:
        return self.bar_count == 0

    @property
    def end_times(self) -> pd.DatetimeIndex:
        return self._bars.index

    def close_price(self, index: int) -> Num:
        self._check_index(index)
        return self.num_factory.num_of(self._closes[index])

    def end_time(self, index: int) -> pd.Timestamp:
        self._check_index(index)
        return self._bars.index[index]

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.bar_count:
            raise IndexError(f"Bar index {index} outside of series [0, {self.end_index}].")

    def __len__(self) -> int:
        return self.bar_count

    def __repr__(self) -> str:
        return f"BarSeries(name={self.name!r}, bars={self.bar_count})"


def delta_years(series: BarSeries, from_index: int, to_index: int) -> float:
    """Elapsed time between two bar end times, in (Gregorian) years."""
    elapsed = series.end_time(to_index) - series.end_time(from_index)
    return elapsed.total_seconds() / SECONDS_PER_YEAR
