"""
The shared driver behind every position-based curve builder.

A builder only has to know how to fold ONE position into its value
series (`calculate_position`) and which `EquityCurveMode` it runs in.
Walking the record and deciding what happens to the trailing open
position is done once, here.
"""
import logging
from enum import Enum
from typing import List, Optional, Protocol, Union

import pandas as pd

from equity_stats.analysis.values import ValueSeries
from equity_stats.num import Num
from equity_stats.record import TradingRecord
from equity_stats.series import BarSeries
from equity_stats.types import Position

__all__ = [
    "EquityCurveMode",
    "OpenPositionHandling",
    "PerformanceIndicator",
    "PerformanceCurve",
    "calculate_record",
    "effective_open_position_handling",
    "determine_end_index",
    "add_cost",
]

log = logging.getLogger(__name__)


class EquityCurveMode(str, Enum):
    MARK_TO_MARKET = "MARK_TO_MARKET"
    REALIZED = "REALIZED"


class OpenPositionHandling(str, Enum):
    MARK_TO_MARKET = "MARK_TO_MARKET"
    IGNORE = "IGNORE"


class PerformanceIndicator(Protocol):
    @property
    def equity_curve_mode(self) -> EquityCurveMode: ...

    def calculate_position(self, position: Position, final_index: int) -> None: ...


def effective_open_position_handling(
    equity_curve_mode: EquityCurveMode, requested: OpenPositionHandling
) -> OpenPositionHandling:
    """A realized curve never values the open position, whatever the caller asked for."""
    if equity_curve_mode is EquityCurveMode.REALIZED:
        return OpenPositionHandling.IGNORE
    return requested


def calculate_record(
    indicator: PerformanceIndicator,
    trading_record: TradingRecord,
    final_index: int,
    open_position_handling: OpenPositionHandling,
) -> None:
    """
    Folds every closed position of the record, in order, into `indicator`,
    then the open position if the effective handling asks for it.
    """
    if trading_record is None:
        raise ValueError("trading_record must not be None.")
    if open_position_handling is None:
        raise ValueError("open_position_handling must not be None.")

    positions = trading_record.positions
    for position in positions:
        indicator.calculate_position(position, final_index)

    handling = effective_open_position_handling(indicator.equity_curve_mode, open_position_handling)
    current = trading_record.current_position
    if handling is OpenPositionHandling.MARK_TO_MARKET and current is not None and current.is_opened:
        indicator.calculate_position(current, final_index)
        log.debug("Valued open position from bar %d up to bar %d.", current.entry.index, final_index)

    log.debug("Processed %d closed positions (handling=%s).", len(positions), handling.value)


def determine_end_index(position: Position, final_index: int, max_index: int) -> int:
    """
    Last bar a position contributes to: its exit when closed, `final_index`
    otherwise, capped by the series end and never before the entry.
    """
    end_index = position.exit.index if position.is_closed else final_index
    end_index = min(end_index, max_index)
    return max(end_index, position.entry.index)


def add_cost(price: Num, cost: Num, is_long: bool) -> Num:
    """Adjusts a price so that the cost always erodes the position's return."""
    return price - cost if is_long else price + cost


class PerformanceCurve:
    """
    Base for builders that produce one value per bar from a trading record.

    Args:
        series: The bar series the positions refer to.
        trading_record: A trading record, or a single position.
        final_index: Bar up to which an open position is valued. Defaults to
                     the record's end index for the series.
        equity_curve_mode: MARK_TO_MARKET values positions bar by bar,
                           REALIZED only books completed positions.
        open_position_handling: What to do with the trailing open position.
    """

    def __init__(
        self,
        series: BarSeries,
        trading_record: Union[TradingRecord, Position],
        final_index: Optional[int] = None,
        equity_curve_mode: EquityCurveMode = EquityCurveMode.MARK_TO_MARKET,
        open_position_handling: OpenPositionHandling = OpenPositionHandling.MARK_TO_MARKET,
    ):
        if series is None:
            raise ValueError("series must not be None.")
        if trading_record is None:
            raise ValueError("trading_record must not be None.")
        if equity_curve_mode is None:
            raise ValueError("equity_curve_mode must not be None.")
        if open_position_handling is None:
            raise ValueError("open_position_handling must not be None.")

        if isinstance(trading_record, Position):
            trading_record = TradingRecord.of(trading_record)
        if final_index is None:
            final_index = trading_record.end_index(series)

        self.series = series
        self._equity_curve_mode = equity_curve_mode
        self._values = self._new_values()
        self.calculate(trading_record, final_index, open_position_handling)

    @property
    def equity_curve_mode(self) -> EquityCurveMode:
        return self._equity_curve_mode

    def _new_values(self) -> ValueSeries:
        raise NotImplementedError

    def calculate_position(self, position: Position, final_index: int) -> None:
        raise NotImplementedError

    def calculate(
        self,
        trading_record: TradingRecord,
        final_index: int,
        open_position_handling: OpenPositionHandling,
    ) -> None:
        """(Re)computes the whole curve for `trading_record`."""
        previous = self._values
        self._values = self._new_values()
        try:
            calculate_record(self, trading_record, final_index, open_position_handling)
        except Exception:
            self._values = previous
            raise
        self._values.fill_to(self.series.end_index)

    def _check_position(self, position: Position) -> Position:
        """Rejects positions entered after the series end; resolves NaN trade prices to bar closes."""
        if position.entry.index > self.series.end_index:
            raise ValueError(
                f"Position entry at bar {position.entry.index} is outside of the series "
                f"(end index {self.series.end_index})."
            )
        return position.resolved(self.series)

    def value_at(self, index: int) -> Num:
        return self._values.value_at(index)

    def size(self) -> int:
        return len(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def to_list(self) -> List[Num]:
        return self._values.to_list()

    def to_pandas(self) -> pd.Series:
        """The curve indexed by bar end time."""
        return self._values.to_pandas(self.series.end_times).rename(type(self).__name__)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(mode={self._equity_curve_mode.value}, size={self.size()})"


