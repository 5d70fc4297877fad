"""
Transaction and holding cost models.

A cost model answers two questions: what a single trade costs
(`calculate(price, amount)`) and what carrying a position costs up to a
given bar (`calculate_holding(position, final_index)`).
"""
from typing import Any, Protocol

from equity_stats.num import Num, num_like

__all__ = [
    "CostModel",
    "ZeroCostModel",
    "LinearTransactionCostModel",
    "LinearBorrowingCostModel",
]


class CostModel(Protocol):
    def calculate(self, price: Num, amount: Num) -> Num: ...

    def calculate_holding(self, position: Any, final_index: int) -> Num: ...


class ZeroCostModel:
    """Trades and positions are free."""

    def calculate(self, price: Num, amount: Num) -> Num:
        return num_like(price, 0)

    def calculate_holding(self, position: Any, final_index: int) -> Num:
        return num_like(position.entry.price, 0)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ZeroCostModel)

    def __hash__(self) -> int:
        return hash(ZeroCostModel)

    def __repr__(self) -> str:
        return "ZeroCostModel()"


class LinearTransactionCostModel:
    """A fee proportional to the traded value, e.g. 0.001 for 10 bps."""

    def __init__(self, fee: float):
        if fee < 0:
            raise ValueError("fee must be non-negative.")
        self.fee = fee

    def calculate(self, price: Num, amount: Num) -> Num:
        return price * amount * num_like(price, self.fee)

    def calculate_holding(self, position: Any, final_index: int) -> Num:
        return num_like(position.entry.price, 0)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LinearTransactionCostModel) and other.fee == self.fee

    def __hash__(self) -> int:
        return hash((LinearTransactionCostModel, self.fee))

    def __repr__(self) -> str:
        return f"LinearTransactionCostModel(fee={self.fee})"


class LinearBorrowingCostModel:
    """
    Borrowing fee for short positions, charged per elapsed bar on the entry value.
    Long positions carry no holding cost.
    """

    def __init__(self, fee_per_period: float):
        if fee_per_period < 0:
            raise ValueError("fee_per_period must be non-negative.")
        self.fee_per_period = fee_per_period

    def calculate(self, price: Num, amount: Num) -> Num:
        return num_like(price, 0)

    def calculate_holding(self, position: Any, final_index: int) -> Num:
        entry = position.entry
        zero = num_like(entry.price, 0)
        if entry.is_buy:
            return zero
        end_index = position.exit.index if position.is_closed else final_index
        periods = max(0, end_index - entry.index)
        return entry.value * num_like(entry.price, self.fee_per_period) * num_like(entry.price, periods)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LinearBorrowingCostModel) and other.fee_per_period == self.fee_per_period

    def __hash__(self) -> int:
        return hash((LinearBorrowingCostModel, self.fee_per_period))

    def __repr__(self) -> str:
        return f"LinearBorrowingCostModel(fee_per_period={self.fee_per_period})"
