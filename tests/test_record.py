"""Tests for trades, positions, cost models and the trading record."""
from decimal import Decimal

import pytest
from pydantic import ValidationError

from equity_stats.costs import LinearBorrowingCostModel, LinearTransactionCostModel, ZeroCostModel
from equity_stats.record import TradingRecord
from equity_stats.series import BarSeries
from equity_stats.types import Position, Trade, TradeType


def _trade(index: int, side: TradeType, price: float, amount: float = 1.0, cost_model=None) -> Trade:
    return Trade(index=index, side=side, price=price, amount=amount, cost_model=cost_model or ZeroCostModel())


def test_long_position_profit_net_of_transaction_costs() -> None:
    fees = LinearTransactionCostModel(0.01)
    position = Position(
        entry=_trade(0, TradeType.BUY, 100.0, 2.0, fees),
        exit=_trade(3, TradeType.SELL, 110.0, 2.0, fees),
    )
    assert position.gross_profit() == pytest.approx(20.0)
    # 2 + 2.2 in fees
    assert position.profit() == pytest.approx(15.8)


def test_short_position_profit_includes_borrowing_cost() -> None:
    position = Position(
        entry=_trade(1, TradeType.SELL, 100.0),
        exit=_trade(5, TradeType.BUY, 90.0),
        holding_cost_model=LinearBorrowingCostModel(0.001),
    )
    assert position.gross_profit() == pytest.approx(10.0)
    assert position.holding_cost(5) == pytest.approx(0.4)
    assert position.profit() == pytest.approx(9.6)


def test_net_price_includes_cost_per_unit() -> None:
    fees = LinearTransactionCostModel(0.01)
    assert _trade(0, TradeType.BUY, 100.0, 1.0, fees).net_price == pytest.approx(101.0)
    assert _trade(0, TradeType.SELL, 100.0, 1.0, fees).net_price == pytest.approx(99.0)


def test_open_position_has_zero_profit() -> None:
    position = Position(entry=_trade(0, TradeType.BUY, 100.0))
    assert position.is_opened
    assert position.profit() == 0.0


def test_position_rejects_exit_on_same_side_or_before_entry() -> None:
    with pytest.raises(ValidationError):
        Position(entry=_trade(2, TradeType.BUY, 100.0), exit=_trade(3, TradeType.BUY, 101.0))
    with pytest.raises(ValidationError):
        Position(entry=_trade(2, TradeType.BUY, 100.0), exit=_trade(1, TradeType.SELL, 101.0))


def test_price_per_asset_falls_back_to_close() -> None:
    series = BarSeries.from_closes([10.0, 11.0])
    record = TradingRecord()
    record.enter(1)
    assert record.current_position.entry.price_per_asset(series) == 11.0


def test_record_enter_and_exit() -> None:
    record = TradingRecord()
    assert record.enter(0, 100.0, 2)
    assert not record.enter(1, 101.0)
    assert record.exit(3, 110.0)
    assert not record.exit(4, 111.0)

    assert record.is_closed
    assert len(record) == 1
    position = record.last_position
    assert position.exit.amount == 2.0
    assert position.exit.side is TradeType.SELL


def test_record_allows_reentry_on_exit_bar() -> None:
    record = TradingRecord()
    record.operate(0, 1.0)
    record.operate(2, 1.0)
    assert record.operate(2, 1.0)
    assert not record.is_closed


def test_record_rejects_entry_before_last_exit() -> None:
    record = TradingRecord()
    record.enter(0, 1.0)
    record.exit(3, 1.0)
    with pytest.raises(ValueError, match="precedes"):
        record.enter(2, 1.0)


def test_short_record_uses_sell_entries() -> None:
    record = TradingRecord(starting_type=TradeType.SELL)
    record.enter(0, 100.0)
    record.exit(1, 90.0)
    assert not record.last_position.is_long
    assert record.last_position.gross_profit() == pytest.approx(10.0)


def test_record_from_positions_requires_chronological_order() -> None:
    first = Position(entry=_trade(2, TradeType.BUY, 1.0), exit=_trade(4, TradeType.SELL, 1.0))
    second = Position(entry=_trade(0, TradeType.BUY, 1.0), exit=_trade(1, TradeType.SELL, 1.0))
    with pytest.raises(ValueError, match="chronological"):
        TradingRecord([first, second])


@pytest.mark.parametrize("price", ["100", None, True, -1.0])
def test_trade_rejects_invalid_price(price) -> None:
    with pytest.raises(ValidationError, match="price"):
        Trade(index=0, side=TradeType.BUY, price=price, amount=1.0)


def test_trade_accepts_decimal_nan_and_converts_integers() -> None:
    assert Trade(index=0, side=TradeType.BUY, price=Decimal("NaN"), amount=Decimal(1)).price.is_nan()
    assert isinstance(Trade(index=0, side=TradeType.BUY, price=100, amount=1).price, float)


def test_resolved_position_takes_bar_closes() -> None:
    series = BarSeries.from_closes([10.0, 11.0, 12.0])
    record = TradingRecord()
    record.enter(0)
    record.exit(2, 13.0)
    position = record.last_position.resolved(series)
    assert position.entry.price == 10.0
    assert position.exit.price == 13.0
    assert position.gross_profit() == pytest.approx(3.0)


def test_record_from_short_positions_keeps_their_side() -> None:
    short = Position(entry=_trade(0, TradeType.SELL, 10.0), exit=_trade(1, TradeType.BUY, 9.0))
    record = TradingRecord([short])
    assert record.starting_type is TradeType.SELL
    record.enter(2, 9.5)
    assert not record.current_position.is_long


def test_record_rejects_positions_on_the_other_side() -> None:
    short = Position(entry=_trade(0, TradeType.SELL, 10.0), exit=_trade(1, TradeType.BUY, 9.0))
    with pytest.raises(ValueError, match="SELL"):
        TradingRecord([short], starting_type=TradeType.BUY)
