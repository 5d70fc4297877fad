"""
Shared data structures: trades and positions.
"""
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from equity_stats.costs import ZeroCostModel
from equity_stats.num import Num, factory_for, num_like

__all__ = ["TradeType", "Trade", "Position"]


class TradeType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"

    @property
    def complement(self) -> "TradeType":
        return TradeType.SELL if self is TradeType.BUY else TradeType.BUY


class Trade(BaseModel):
    """
    A single execution at a bar of the series.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    index: int = Field(..., ge=0, description="Bar index of the execution.")
    side: TradeType = Field(..., description="BUY or SELL.")
    price: Any = Field(..., description="Price per unit. NaN means 'use the bar close'.")
    amount: Any = Field(..., description="Number of units. NaN means 'unspecified'.")
    cost_model: Any = Field(default_factory=ZeroCostModel, description="Transaction cost model.")

    @field_validator("price", "amount")
    @classmethod
    def _check_number(cls, value: Any) -> Num:
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            raise ValueError(f"must be a float or Decimal, got {type(value).__name__}")
        if isinstance(value, Decimal) and value.is_nan():
            return value
        if value < 0:
            raise ValueError("must not be negative")
        return float(value) if isinstance(value, int) else value

    @property
    def is_buy(self) -> bool:
        return self.side is TradeType.BUY

    @property
    def value(self) -> Num:
        return self.price * self.amount

    @property
    def cost(self) -> Num:
        return self.cost_model.calculate(self.price, self.amount)

    @property
    def net_price(self) -> Num:
        """Price per unit including the transaction cost of this trade."""
        num = factory_for(self.price)
        if num.is_nan(self.price) or num.is_nan(self.amount) or num.is_zero(self.amount):
            return self.price
        cost_per_unit = self.cost / self.amount
        return self.price + cost_per_unit if self.is_buy else self.price - cost_per_unit

    def price_per_asset(self, series: Any) -> Num:
        """The trade price, or the bar close price when the trade price is NaN."""
        if factory_for(self.price).is_nan(self.price):
            return series.close_price(self.index)
        return self.price

    def resolved(self, series: Any) -> "Trade":
        """This trade with a NaN price replaced by the close of its bar."""
        if not factory_for(self.price).is_nan(self.price) or self.index > series.end_index:
            return self
        return self.model_copy(update={"price": series.close_price(self.index)})


class Position(BaseModel):
    """
    An entry trade and, once closed, the opposite exit trade.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    entry: Trade
    exit: Optional[Trade] = None
    holding_cost_model: Any = Field(default_factory=ZeroCostModel)

    @model_validator(mode="after")
    def _check_exit(self) -> "Position":
        if self.exit is not None:
            if self.exit.side is self.entry.side:
                raise ValueError("Exit trade must be on the opposite side of the entry trade.")
            if self.exit.index < self.entry.index:
                raise ValueError("Exit trade cannot happen before the entry trade.")
        return self

    @property
    def is_closed(self) -> bool:
        return self.exit is not None

    @property
    def is_opened(self) -> bool:
        return not self.is_closed

    @property
    def is_long(self) -> bool:
        return self.entry.is_buy

    def close(self, exit_trade: Trade) -> "Position":
        """Returns a closed copy of this position."""
        if self.is_closed:
            raise ValueError("Position is already closed.")
        return Position(entry=self.entry, exit=exit_trade, holding_cost_model=self.holding_cost_model)

    def resolved(self, series: Any) -> "Position":
        """This position with its trade prices resolved against `series`."""
        entry = self.entry.resolved(series)
        exit_trade = self.exit.resolved(series) if self.exit is not None else None
        if entry is self.entry and exit_trade is self.exit:
            return self
        return self.model_copy(update={"entry": entry, "exit": exit_trade})

    def holding_cost(self, final_index: int) -> Num:
        """Carrying cost accrued from the entry up to `final_index` (or the exit)."""
        return self.holding_cost_model.calculate_holding(self, final_index)

    def gross_profit(self) -> Num:
        """Profit before any costs; zero while the position is open."""
        if self.exit is None:
            return num_like(self.entry.price, 0)
        if self.is_long:
            return self.exit.value - self.entry.value
        return self.entry.value - self.exit.value

    def profit(self) -> Num:
        """Profit net of transaction and holding costs; zero while the position is open."""
        if self.exit is None:
            return num_like(self.entry.price, 0)
        costs = self.entry.cost + self.exit.cost + self.holding_cost(self.exit.index)
        return self.gross_profit() - costs
