"""Tests for the additive cumulative P&L curve."""
import pytest

from equity_stats.analysis.performance import EquityCurveMode, OpenPositionHandling
from equity_stats.analysis.pnl import CumulativePnL
from equity_stats.record import TradingRecord
from equity_stats.series import BarSeries
from equity_stats.types import TradeType


@pytest.fixture
def series() -> BarSeries:
    return BarSeries.from_closes([1.0, 2.0, 3.0, 4.0, 5.0, 6.0])


def _record(series: BarSeries, *bars: int, **kwargs) -> TradingRecord:
    record = TradingRecord(**kwargs)
    for index in bars:
        record.operate(index, series.close_price(index))
    return record


def test_empty_record_is_constant_zero(series: BarSeries) -> None:
    pnl = CumulativePnL(series, TradingRecord())
    assert pnl.to_list() == [0.0] * 6


def test_single_long_position(series: BarSeries) -> None:
    pnl = CumulativePnL(series, _record(series, 1, 3))
    assert pnl.to_list() == pytest.approx([0.0, 0.0, 1.0, 2.0, 2.0, 2.0])


def test_positions_add_up_without_compounding(series: BarSeries) -> None:
    pnl = CumulativePnL(series, _record(series, 0, 1, 2, 3))
    assert pnl.to_list() == pytest.approx([0.0, 1.0, 1.0, 2.0, 2.0, 2.0])


def test_short_position() -> None:
    series = BarSeries.from_closes([100.0, 90.0, 80.0, 110.0])
    pnl = CumulativePnL(series, _record(series, 0, 2, starting_type=TradeType.SELL))
    assert pnl.to_list() == pytest.approx([0.0, 10.0, 20.0, 20.0])


def test_pnl_is_per_unit(series: BarSeries) -> None:
    record = TradingRecord()
    record.enter(1, 2.0, amount=10)
    record.exit(3, 4.0)
    assert CumulativePnL(series, record).value_at(5) == pytest.approx(2.0)


def test_open_position_without_final_index_is_rejected(series: BarSeries) -> None:
    record = _record(series, 2)
    with pytest.raises(ValueError, match="final index"):
        CumulativePnL(series, record.current_position)


def test_open_position_with_final_index(series: BarSeries) -> None:
    position = _record(series, 2).current_position
    pnl = CumulativePnL(series, position, final_index=4)
    assert pnl.to_list() == pytest.approx([0.0, 0.0, 0.0, 1.0, 2.0, 2.0])


def test_open_position_ignored(series: BarSeries) -> None:
    pnl = CumulativePnL(series, _record(series, 2), open_position_handling=OpenPositionHandling.IGNORE)
    assert pnl.to_list() == [0.0] * 6


def test_realized_mode_books_only_at_exit(series: BarSeries) -> None:
    pnl = CumulativePnL(series, _record(series, 1, 4), equity_curve_mode=EquityCurveMode.REALIZED)
    assert pnl.to_list() == pytest.approx([0.0, 0.0, 0.0, 0.0, 3.0, 3.0])


def test_realized_mode_skips_open_position(series: BarSeries) -> None:
    pnl = CumulativePnL(series, _record(series, 0, 1, 3), equity_curve_mode=EquityCurveMode.REALIZED)
    assert pnl.to_list() == pytest.approx([0.0, 1.0, 1.0, 1.0, 1.0, 1.0])


def test_recalculate_with_empty_record(series: BarSeries) -> None:
    pnl = CumulativePnL(series, _record(series, 0, 5))
    pnl.calculate(TradingRecord(), series.end_index, OpenPositionHandling.MARK_TO_MARKET)
    assert pnl.to_list() == [0.0] * 6


def test_trades_without_prices_use_bar_closes(series: BarSeries) -> None:
    record = TradingRecord(starting_type=TradeType.SELL)
    record.enter(1)
    record.exit(3)
    pnl = CumulativePnL(series, record)
    assert pnl.to_list() == pytest.approx([0.0, 0.0, -1.0, -2.0, -2.0, -2.0])
