"""
Cash flow: the compounding equity curve of a trading record, starting at 1.
"""
import logging

from equity_stats.analysis.performance import (
    EquityCurveMode,
    PerformanceCurve,
    add_cost,
    determine_end_index,
)
from equity_stats.analysis.values import ValueSeries
from equity_stats.num import Num, NumFactory
from equity_stats.types import Position

__all__ = ["CashFlow", "price_ratio"]

log = logging.getLogger(__name__)


def price_ratio(is_long: bool, net_entry_price: Num, net_price: Num, num: NumFactory) -> Num:
    """
    Growth factor of one unit of equity between the entry and `net_price`.

    Shorts use 2 - price/entry so that the update stays multiplicative and
    mirrors the long ratio around 1.
    """
    ratio = net_price / net_entry_price
    return ratio if is_long else num.two() - ratio


class CashFlow(PerformanceCurve):
    """
    Equity curve where each position compounds on the equity it started with.

    `value_at(0)` is 1 and `value_at(series.end_index)` is the compounded
    growth of the whole record. A position entered while the equity is not
    strictly positive contributes nothing: a wiped-out curve stays wiped out.
    """

    def _new_values(self) -> ValueSeries:
        return ValueSeries(self.series.num_factory.one())

    def calculate_position(self, position: Position, final_index: int) -> None:
        position = self._check_position(position)
        series = self.series
        num = series.num_factory
        is_long = position.is_long
        entry_index = position.entry.index
        end_index = determine_end_index(position, final_index, series.end_index)

        self._values.ensure_size(entry_index + 1)
        entry_equity = self._values.value_at(entry_index)
        if not entry_equity > num.zero():
            log.debug("Skipping position entered at bar %d: equity is not positive.", entry_index)
            return

        net_entry_price = position.entry.net_price
        if num.is_zero(net_entry_price):
            log.debug("Skipping position entered at bar %d: zero entry price.", entry_index)
            return

        holding_cost = position.holding_cost(end_index)
        periods = max(1, end_index - entry_index)
        start_index = max(entry_index + 1, 1)

        if self.equity_curve_mode is EquityCurveMode.MARK_TO_MARKET:
            average_cost = holding_cost / num.num_of(periods)
            for i in range(start_index, end_index):
                accrued_cost = average_cost * num.num_of(i - entry_index)
                net_price = add_cost(series.close_price(i), accrued_cost, is_long)
                self._values.put(i, entry_equity * price_ratio(is_long, net_entry_price, net_price, num))

            if position.is_closed and end_index == position.exit.index:
                exit_price = position.exit.net_price
            else:
                exit_price = series.close_price(end_index)
            net_exit_price = add_cost(exit_price, holding_cost, is_long)
            self._values.put(end_index, entry_equity * price_ratio(is_long, net_entry_price, net_exit_price, num))

        elif position.is_closed and end_index >= position.exit.index:
            for i in range(start_index, end_index):
                self._values.put(i, entry_equity)
            net_exit_price = add_cost(position.exit.net_price, holding_cost, is_long)
            self._values.put(end_index, entry_equity * price_ratio(is_long, net_entry_price, net_exit_price, num))
