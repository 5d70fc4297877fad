"""
Trading record: the chronological list of closed positions plus the
current (possibly open) one.
"""
import logging
from typing import Any, Iterable, List, Optional

from equity_stats.costs import ZeroCostModel
from equity_stats.num import FloatNumFactory, Num, NumFactory
from equity_stats.types import Position, Trade, TradeType

__all__ = ["TradingRecord"]

log = logging.getLogger(__name__)


class TradingRecord:
    """
    Bookkeeping of entries and exits for a single asset.

    Positions never overlap: an entry is only accepted while flat and an
    exit only while a position is open. Re-entering on the bar of the
    previous exit is allowed.
    """

    def __init__(
        self,
        positions: Optional[Iterable[Position]] = None,
        starting_type: Optional[TradeType] = None,
        transaction_cost_model: Optional[Any] = None,
        holding_cost_model: Optional[Any] = None,
        num_factory: Optional[NumFactory] = None,
    ):
        positions = list(positions or [])
        if starting_type is None:
            starting_type = positions[0].entry.side if positions else TradeType.BUY
        self.starting_type = starting_type
        self.transaction_cost_model = transaction_cost_model or ZeroCostModel()
        self.holding_cost_model = holding_cost_model or ZeroCostModel()
        self.num_factory: NumFactory = num_factory or FloatNumFactory()
        self._positions: List[Position] = []
        self._current: Optional[Position] = None

        for position in positions:
            self._add(position)

    @classmethod
    def of(cls, position: Position) -> "TradingRecord":
        """A record holding a single (closed or open) position."""
        return cls([position], starting_type=position.entry.side)

    def _add(self, position: Position) -> None:
        if position.entry.side is not self.starting_type:
            raise ValueError(
                f"Position entered with {position.entry.side.value} in a {self.starting_type.value} record."
            )
        if self._current is not None:
            raise ValueError("Cannot add a position after an open position.")
        last = self._positions[-1] if self._positions else None
        if last is not None and position.entry.index < last.exit.index:
            raise ValueError("Positions must be chronological and non-overlapping.")
        if position.is_closed:
            self._positions.append(position)
        else:
            self._current = position

    @property
    def positions(self) -> List[Position]:
        """Closed positions in chronological order."""
        return list(self._positions)

    @property
    def current_position(self) -> Optional[Position]:
        """The open position, if any."""
        return self._current

    @property
    def is_closed(self) -> bool:
        return self._current is None

    @property
    def last_position(self) -> Optional[Position]:
        return self._positions[-1] if self._positions else None

    def end_index(self, series: Any) -> int:
        """Index up to which open positions are valued by default."""
        return series.end_index

    def _trade(self, index: int, side: TradeType, price: Any, amount: Any) -> Trade:
        num = self.num_factory
        price_num: Num = num.nan() if price is None else num.num_of(price)
        amount_num: Num = num.one() if amount is None else num.num_of(amount)
        return Trade(
            index=index,
            side=side,
            price=price_num,
            amount=amount_num,
            cost_model=self.transaction_cost_model,
        )

    def enter(self, index: int, price: Any = None, amount: Any = None) -> bool:
        """Opens a position; returns False if one is already open."""
        if self._current is not None:
            return False
        last = self.last_position
        if last is not None and index < last.exit.index:
            raise ValueError(f"Entry at {index} precedes the last exit at {last.exit.index}.")
        entry = self._trade(index, self.starting_type, price, amount)
        self._current = Position(entry=entry, holding_cost_model=self.holding_cost_model)
        log.debug("Entered %s position at bar %d.", self.starting_type.value, index)
        return True

    def exit(self, index: int, price: Any = None, amount: Any = None) -> bool:
        """Closes the open position; returns False if there is none."""
        if self._current is None:
            return False
        entry = self._current.entry
        exit_amount = entry.amount if amount is None else amount
        exit_trade = self._trade(index, self.starting_type.complement, price, exit_amount)
        self._positions.append(self._current.close(exit_trade))
        self._current = None
        log.debug("Exited position at bar %d.", index)
        return True

    def operate(self, index: int, price: Any = None, amount: Any = None) -> bool:
        """Enters when flat, exits otherwise."""
        if self._current is None:
            return self.enter(index, price, amount)
        return self.exit(index, price, amount)

    def __len__(self) -> int:
        return len(self._positions)

    def __repr__(self) -> str:
        return f"TradingRecord(closed={len(self._positions)}, open={self._current is not None})"
