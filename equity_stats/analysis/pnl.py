"""
Cumulative profit and loss: the additive, non-compounding equity curve.
"""
import logging
from typing import Optional, Union

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

__all__ = ["CumulativePnL"]

log = logging.getLogger(__name__)


class CumulativePnL(PerformanceCurve):
    """
    Running P&L per unit, starting at 0.

    Each position adds (price - entry) for longs, or (entry - price) for
    shorts, on top of the P&L accumulated before it was entered.
    """

    def __init__(
        self,
        series: BarSeries,
        trading_record: Union[TradingRecord, Position],
        final_index: Optional[int] = None,
        equity_curve_mode: EquityCurveMode = EquityCurveMode.MARK_TO_MARKET,
        open_position_handling: OpenPositionHandling = OpenPositionHandling.MARK_TO_MARKET,
    ):
        if isinstance(trading_record, Position) and trading_record.is_opened and final_index is None:
            raise ValueError("Position is not closed. Provide a final index if open.")
        super().__init__(series, trading_record, final_index, equity_curve_mode, open_position_handling)

    def _new_values(self) -> ValueSeries:
        return ValueSeries(self.series.num_factory.zero())

    def _delta(self, is_long: bool, net_entry_price: Num, net_price: Num) -> Num:
        return net_price - net_entry_price if is_long else net_entry_price - net_price

    def calculate_position(self, position: Position, final_index: int) -> None:
        position = self._check_position(position)
        series = self.series
        num = series.num_factory
        is_long = position.is_long
        entry_index = position.entry.index
        end_index = determine_end_index(position, final_index, series.end_index)

        self._values.ensure_size(entry_index + 1)
        base = self._values.value_at(entry_index)

        net_entry_price = position.entry.net_price
        holding_cost = position.holding_cost(end_index)
        periods = max(1, end_index - entry_index)
        start_index = max(entry_index + 1, 1)

        if self.equity_curve_mode is EquityCurveMode.MARK_TO_MARKET:
            average_cost = holding_cost / num.num_of(periods)
            for i in range(start_index, end_index):
                accrued_cost = average_cost * num.num_of(i - entry_index)
                net_price = add_cost(series.close_price(i), accrued_cost, is_long)
                self._values.put(i, base + self._delta(is_long, net_entry_price, net_price))

            if position.is_closed and end_index == position.exit.index:
                exit_price = position.exit.net_price
            else:
                exit_price = series.close_price(end_index)
            net_exit_price = add_cost(exit_price, holding_cost, is_long)
            self._values.put(end_index, base + self._delta(is_long, net_entry_price, net_exit_price))

        elif position.is_closed and end_index >= position.exit.index:
            for i in range(start_index, end_index):
                self._values.put(i, base)
            net_exit_price = add_cost(position.exit.net_price, holding_cost, is_long)
            self._values.put(end_index, base + self._delta(is_long, net_entry_price, net_exit_price))

        else:
            log.debug("Open position entered at bar %d not booked in realized mode.", entry_index)
