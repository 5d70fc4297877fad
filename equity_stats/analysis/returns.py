"""
Per-bar returns implied by the positions of a trading record.
"""
from enum import Enum
from typing import Optional, Union

from equity_stats.analysis.cashflow import price_ratio
from equity_stats.analysis.performance import (
    EquityCurveMode,
    OpenPositionHandling,
    PerformanceCurve,
    add_cost,
    determine_end_index,
)
from equity_stats.analysis.values import ValueSeries
from equity_stats.num import Num
from equity_stats.record import TradingRecord
from equity_stats.series import BarSeries
from equity_stats.types import Position

__all__ = ["ReturnRepresentation", "Returns"]


class ReturnRepresentation(str, Enum):
    ARITHMETIC = "ARITHMETIC"
    LOG = "LOG"


class Returns(PerformanceCurve):
    """
    Bar-to-bar return of the capital invested in the positions.

    The value at bar i is the return earned from bar i-1 to bar i. Bars
    without an invested position return 0.
    """

    def __init__(
        self,
        series: BarSeries,
        trading_record: Union[TradingRecord, Position],
        final_index: Optional[int] = None,
        equity_curve_mode: EquityCurveMode = EquityCurveMode.MARK_TO_MARKET,
        open_position_handling: OpenPositionHandling = OpenPositionHandling.MARK_TO_MARKET,
        representation: ReturnRepresentation = ReturnRepresentation.ARITHMETIC,
    ):
        self.representation = representation
        super().__init__(series, trading_record, final_index, equity_curve_mode, open_position_handling)

    def _new_values(self) -> ValueSeries:
        zero = self.series.num_factory.zero()
        return ValueSeries(zero, fill_value=zero)

    def _period_return(self, previous_ratio: Num, ratio: Num) -> Num:
        num = self.series.num_factory
        if num.is_zero(previous_ratio):
            # Position already wiped out; nothing left to earn a return on.
            return num.zero()
        if self.representation is ReturnRepresentation.LOG:
            return num.ln(ratio / previous_ratio)
        return ratio / previous_ratio - num.one()

    def calculate_position(self, position: Position, final_index: int) -> None:
        position = self._check_position(position)
        series = self.series
        num = series.num_factory
        is_long = position.is_long
        entry_index = position.entry.index
        end_index = determine_end_index(position, final_index, series.end_index)

        self._values.ensure_size(entry_index + 1)
        net_entry_price = position.entry.net_price
        if num.is_zero(net_entry_price):
            return

        holding_cost = position.holding_cost(end_index)
        periods = max(1, end_index - entry_index)
        start_index = max(entry_index + 1, 1)
        previous_ratio = num.one()

        if self.equity_curve_mode is EquityCurveMode.MARK_TO_MARKET:
            average_cost = holding_cost / num.num_of(periods)
            for i in range(start_index, end_index):
                net_price = add_cost(series.close_price(i), average_cost * num.num_of(i - entry_index), is_long)
                ratio = price_ratio(is_long, net_entry_price, net_price, num)
                self._values.put(i, self._period_return(previous_ratio, ratio))
                previous_ratio = ratio

            if position.is_closed and end_index == position.exit.index:
                exit_price = position.exit.net_price
            else:
                exit_price = series.close_price(end_index)
        elif position.is_closed and end_index >= position.exit.index:
            for i in range(start_index, end_index):
                self._values.put(i, num.zero())
            exit_price = position.exit.net_price
        else:
            return

        if end_index == entry_index:
            return
        net_exit_price = add_cost(exit_price, holding_cost, is_long)
        ratio = price_ratio(is_long, net_entry_price, net_exit_price, num)
        self._values.put(end_index, self._period_return(previous_ratio, ratio))
