"""
Excess returns of a trading record over the risk-free rate.

The portfolio grows with the cash flow curve while a position is held
and, between positions, like cash under the chosen `CashReturnPolicy`.
The excess return of an interval is that growth minus the growth of
capital that stayed at the risk-free rate the whole time.
"""
import logging
from enum import Enum
from typing import List

from equity_stats.analysis.cashflow import CashFlow
from equity_stats.analysis.performance import (
    EquityCurveMode,
    OpenPositionHandling,
    determine_end_index,
    effective_open_position_handling,
)
from equity_stats.num import Num
from equity_stats.record import TradingRecord
from equity_stats.series import BarSeries, delta_years

__all__ = ["CashReturnPolicy", "ExcessReturns"]

log = logging.getLogger(__name__)


class CashReturnPolicy(str, Enum):
    CASH_EARNS_RISK_FREE = "CASH_EARNS_RISK_FREE"
    CASH_EARNS_ZERO = "CASH_EARNS_ZERO"


class ExcessReturns:
    """
    Args:
        series: The bar series.
        annual_risk_free_rate: Yearly risk-free rate, e.g. 0.02 for 2%.
        cash_return_policy: What uninvested capital earns.
        trading_record: The positions that put the capital in the market.
        open_position_handling: Whether a trailing open position counts as invested.
        equity_curve_mode: Mode of the underlying cash flow curve.
    """

    def __init__(
        self,
        series: BarSeries,
        annual_risk_free_rate: float,
        cash_return_policy: CashReturnPolicy,
        trading_record: TradingRecord,
        open_position_handling: OpenPositionHandling = OpenPositionHandling.MARK_TO_MARKET,
        equity_curve_mode: EquityCurveMode = EquityCurveMode.MARK_TO_MARKET,
    ):
        self.series = series
        self.annual_risk_free_rate = float(annual_risk_free_rate)
        self.cash_return_policy = cash_return_policy
        final_index = trading_record.end_index(series)
        cash_flow = CashFlow(series, trading_record, final_index, equity_curve_mode, open_position_handling)
        self._equity = cash_flow.to_list()
        handling = effective_open_position_handling(equity_curve_mode, open_position_handling)
        self._invested = self._invested_bars(trading_record, final_index, handling)
        log.debug(
            "Excess returns over %d bars, %d of them invested.", series.bar_count, sum(self._invested)
        )

    def _invested_bars(
        self, trading_record: TradingRecord, final_index: int, handling: OpenPositionHandling
    ) -> List[bool]:
        """invested[i] is True when the move from bar i-1 to bar i happens inside a position."""
        invested = [False] * max(self.series.bar_count, 0)
        positions = list(trading_record.positions)
        current = trading_record.current_position
        if handling is OpenPositionHandling.MARK_TO_MARKET and current is not None and current.is_opened:
            positions.append(current)
        for position in positions:
            end_index = determine_end_index(position, final_index, self.series.end_index)
            for i in range(position.entry.index + 1, end_index + 1):
                invested[i] = True
        return invested

    def _risk_free_growth(self, index: int) -> Num:
        num = self.series.num_factory
        years = delta_years(self.series, index - 1, index)
        return num.num_of((1.0 + self.annual_risk_free_rate) ** years)

    def _portfolio_growth(self, index: int, risk_free_growth: Num) -> Num:
        num = self.series.num_factory
        if self._invested[index]:
            previous = self._equity[index - 1]
            if not previous > num.zero():
                return num.one()
            return self._equity[index] / previous
        if self.cash_return_policy is CashReturnPolicy.CASH_EARNS_RISK_FREE:
            return risk_free_growth
        return num.one()

    def excess_return(self, from_index: int, to_index: int) -> Num:
        """Compounded portfolio growth minus compounded risk-free growth from `from_index` to `to_index`."""
        num = self.series.num_factory
        growth = num.one()
        risk_free = num.one()
        for i in range(from_index + 1, to_index + 1):
            rf_growth = self._risk_free_growth(i)
            growth = growth * self._portfolio_growth(i, rf_growth)
            risk_free = risk_free * rf_growth
        return growth - risk_free

    def __repr__(self) -> str:
        return (
            f"ExcessReturns(rate={self.annual_risk_free_rate}, "
            f"policy={self.cash_return_policy.value}, bars={self.series.bar_count})"
        )
