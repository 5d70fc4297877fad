"""
Profit, loss and return criteria computed from closed positions.

The profit of a position is supplied as a plain function (`gross_profit`
or `net_profit`), so each criterion exists once and is specialised by
the profit it is given.
"""
from typing import Callable, List

from equity_stats.criteria.base import AnalysisCriterion
from equity_stats.num import Num
from equity_stats.record import TradingRecord
from equity_stats.series import BarSeries
from equity_stats.types import Position

__all__ = [
    "gross_profit",
    "net_profit",
    "ProfitLossPercentageCriterion",
    "GrossProfitLossPercentageCriterion",
    "NetProfitLossPercentageCriterion",
    "AverageProfitCriterion",
    "AverageLossCriterion",
    "ProfitLossRatioCriterion",
    "GrossProfitLossRatioCriterion",
    "NetProfitLossRatioCriterion",
    "NetReturnCriterion",
]

ProfitFunction = Callable[[Position], Num]


def gross_profit(position: Position) -> Num:
    """Profit before costs."""
    return position.gross_profit()


def net_profit(position: Position) -> Num:
    """Profit after transaction and holding costs."""
    return position.profit()


def _closed(series: BarSeries, trading_record: TradingRecord) -> List[Position]:
    return [p.resolved(series) for p in trading_record.positions if p.is_closed]


# §1. Profit/loss percentage
# --------------------------------------------------------------------------------------


class ProfitLossPercentageCriterion(AnalysisCriterion):
    """
    Profit as a percentage of the capital put into the entries.

    For a record this is total profit over total entry value (a ratio of
    sums), so large positions weigh more than small ones.
    """

    def __init__(self, profit_of: ProfitFunction = net_profit):
        self.profit_of = profit_of

    def calculate_position(self, series: BarSeries, position: Position) -> Num:
        num = series.num_factory
        if not position.is_closed:
            return num.zero()
        position = position.resolved(series)
        entry_value = position.entry.value
        if num.is_zero(entry_value):
            return num.zero()
        return self.profit_of(position) / entry_value * num.hundred()

    def calculate_record(self, series: BarSeries, trading_record: TradingRecord) -> Num:
        num = series.num_factory
        positions = _closed(series, trading_record)
        total_profit = sum((self.profit_of(p) for p in positions), num.zero())
        total_entry_value = sum((p.entry.value for p in positions), num.zero())
        if num.is_zero(total_entry_value):
            return num.zero()
        return total_profit / total_entry_value * num.hundred()


class GrossProfitLossPercentageCriterion(ProfitLossPercentageCriterion):
    def __init__(self):
        super().__init__(gross_profit)


class NetProfitLossPercentageCriterion(ProfitLossPercentageCriterion):
    def __init__(self):
        super().__init__(net_profit)


# §2. Average profit, average loss and their ratio
# --------------------------------------------------------------------------------------


class AverageProfitCriterion(AnalysisCriterion):
    """Mean profit of the winning positions; 0 without winners."""

    def __init__(self, profit_of: ProfitFunction = net_profit):
        self.profit_of = profit_of

    def _average(self, series: BarSeries, positions: List[Position]) -> Num:
        num = series.num_factory
        profits = [profit for profit in map(self.profit_of, positions) if profit > 0]
        if not profits:
            return num.zero()
        return sum(profits, num.zero()) / num.num_of(len(profits))

    def calculate_position(self, series: BarSeries, position: Position) -> Num:
        return self._average(series, [position.resolved(series)] if position.is_closed else [])

    def calculate_record(self, series: BarSeries, trading_record: TradingRecord) -> Num:
        return self._average(series, _closed(series, trading_record))


class AverageLossCriterion(AverageProfitCriterion):
    """Mean (negative) profit of the losing positions; 0 without losers."""

    def _average(self, series: BarSeries, positions: List[Position]) -> Num:
        num = series.num_factory
        losses = [profit for profit in map(self.profit_of, positions) if profit < 0]
        if not losses:
            return num.zero()
        return sum(losses, num.zero()) / num.num_of(len(losses))


class ProfitLossRatioCriterion(AnalysisCriterion):
    """
    |average profit / average loss|.

    No profit at all gives 0; profit without any loss gives 1, a finite
    value that still ranks above "no profit".
    """

    def __init__(self, average_profit: AnalysisCriterion, average_loss: AnalysisCriterion):
        self.average_profit = average_profit
        self.average_loss = average_loss

    def _ratio(self, series: BarSeries, average_profit: Num, average_loss: Num) -> Num:
        num = series.num_factory
        if num.is_zero(average_profit):
            return num.zero()
        if num.is_zero(average_loss):
            return num.one()
        return abs(average_profit / average_loss)

    def calculate_position(self, series: BarSeries, position: Position) -> Num:
        return self._ratio(
            series,
            self.average_profit.calculate_position(series, position),
            self.average_loss.calculate_position(series, position),
        )

    def calculate_record(self, series: BarSeries, trading_record: TradingRecord) -> Num:
        return self._ratio(
            series,
            self.average_profit.calculate_record(series, trading_record),
            self.average_loss.calculate_record(series, trading_record),
        )


class GrossProfitLossRatioCriterion(ProfitLossRatioCriterion):
    def __init__(self):
        super().__init__(AverageProfitCriterion(gross_profit), AverageLossCriterion(gross_profit))


class NetProfitLossRatioCriterion(ProfitLossRatioCriterion):
    def __init__(self):
        super().__init__(AverageProfitCriterion(net_profit), AverageLossCriterion(net_profit))


# §3. Compounded return
# --------------------------------------------------------------------------------------


class NetReturnCriterion(AnalysisCriterion):
    """
    Compounded net return of the closed positions.

    Every closed position contributes 1 + (gross profit - transaction costs) / entry value;
    open positions contribute 1. With `add_base=False` the base of 1 is
    subtracted from the product, e.g. 0.1 instead of 1.1 for +10%.
    """

    def __init__(self, add_base: bool = True):
        self.add_base = add_base

    def _growth_factor(self, series: BarSeries, position: Position) -> Num:
        num = series.num_factory
        one = num.one()
        if not position.is_closed:
            return one

        entry, exit_trade = position.entry, position.exit
        amount = one if num.is_nan(entry.amount) else entry.amount
        entry_price = entry.price_per_asset(series)
        exit_price = exit_trade.price_per_asset(series)

        entry_value = entry_price * amount
        if num.is_zero(entry_value):
            return one

        if entry.is_buy:
            gross = (exit_price - entry_price) * amount
        else:
            gross = (entry_price - exit_price) * amount
        transaction_cost = entry.cost_model.calculate(entry_price, amount) + exit_trade.cost_model.calculate(
            exit_price, amount
        )
        return (gross - transaction_cost) / entry_value + one

    def _finish(self, series: BarSeries, growth: Num) -> Num:
        return growth if self.add_base else growth - series.num_factory.one()

    def calculate_position(self, series: BarSeries, position: Position) -> Num:
        return self._finish(series, self._growth_factor(series, position))

    def calculate_record(self, series: BarSeries, trading_record: TradingRecord) -> Num:
        growth = series.num_factory.one()
        for position in trading_record.positions:
            growth = growth * self._growth_factor(series, position)
        return self._finish(series, growth)

    def __repr__(self) -> str:
        return f"NetReturnCriterion(add_base={self.add_base})"
