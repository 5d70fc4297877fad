"""
Common interface of all analysis criteria.
"""
from abc import ABC, abstractmethod
from typing import Optional, Union

from equity_stats.num import Num
from equity_stats.record import TradingRecord
from equity_stats.series import BarSeries
from equity_stats.types import Position

__all__ = ["AnalysisCriterion"]


class AnalysisCriterion(ABC):
    """
    A pure function from (series, position or trading record) to a number,
    plus an ordering used to rank results. Higher is better unless a
    criterion says otherwise.
    """

    def calculate(self, series: BarSeries, trading_record: Optional[Union[TradingRecord, Position]]) -> Num:
        """Evaluates the criterion for a whole trading record, or a single position."""
        if isinstance(trading_record, Position):
            return self.calculate_position(series, trading_record)
        return self.calculate_record(series, trading_record)

    @abstractmethod
    def calculate_position(self, series: BarSeries, position: Position) -> Num:
        """Evaluates the criterion for a single position."""

    @abstractmethod
    def calculate_record(self, series: BarSeries, trading_record: TradingRecord) -> Num:
        """Evaluates the criterion for a trading record."""

    def better_than(self, value1: Num, value2: Num) -> bool:
        return value1 > value2

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
