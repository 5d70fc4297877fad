"""Tests for excess returns over the risk-free rate."""
import pytest

from equity_stats.analysis.performance import EquityCurveMode, OpenPositionHandling
from equity_stats.excess import CashReturnPolicy, ExcessReturns
from equity_stats.record import TradingRecord
from equity_stats.series import BarSeries, SECONDS_PER_YEAR

DAY_IN_YEARS = 24 * 60 * 60 / SECONDS_PER_YEAR


@pytest.fixture
def series() -> BarSeries:
    return BarSeries.from_closes([100.0, 110.0, 121.0])


def _record(series: BarSeries, *bars: int) -> TradingRecord:
    record = TradingRecord()
    for index in bars:
        record.operate(index, series.close_price(index))
    return record


def test_invested_growth_without_risk_free_rate(series: BarSeries) -> None:
    excess = ExcessReturns(series, 0.0, CashReturnPolicy.CASH_EARNS_RISK_FREE, _record(series, 0, 2))
    assert excess.excess_return(0, 2) == pytest.approx(0.21)
    assert excess.excess_return(1, 2) == pytest.approx(0.1)


def test_risk_free_growth_is_subtracted(series: BarSeries) -> None:
    excess = ExcessReturns(series, 0.05, CashReturnPolicy.CASH_EARNS_RISK_FREE, _record(series, 0, 2))
    assert excess.excess_return(0, 2) == pytest.approx(1.21 - 1.05 ** (2 * DAY_IN_YEARS))


def test_cash_earning_risk_free_has_no_excess_return(series: BarSeries) -> None:
    excess = ExcessReturns(series, 0.05, CashReturnPolicy.CASH_EARNS_RISK_FREE, TradingRecord())
    assert excess.excess_return(0, 2) == pytest.approx(0.0, abs=1e-15)


def test_idle_cash_earning_zero_lags_risk_free(series: BarSeries) -> None:
    excess = ExcessReturns(series, 0.05, CashReturnPolicy.CASH_EARNS_ZERO, TradingRecord())
    assert excess.excess_return(0, 2) == pytest.approx(1.0 - 1.05 ** (2 * DAY_IN_YEARS))
    assert excess.excess_return(0, 2) < 0


def test_growth_between_positions_follows_policy(series: BarSeries) -> None:
    record = _record(series, 1, 2)
    zero = ExcessReturns(series, 0.05, CashReturnPolicy.CASH_EARNS_ZERO, record)
    risk_free = ExcessReturns(series, 0.05, CashReturnPolicy.CASH_EARNS_RISK_FREE, record)
    rf_day = 1.05**DAY_IN_YEARS
    assert zero.excess_return(0, 2) == pytest.approx(1.1 - rf_day * rf_day)
    assert risk_free.excess_return(0, 2) == pytest.approx(rf_day * 1.1 - rf_day * rf_day)


def test_open_position_depends_on_curve_mode(series: BarSeries) -> None:
    record = _record(series, 0)
    policy = CashReturnPolicy.CASH_EARNS_RISK_FREE
    marked = ExcessReturns(series, 0.0, policy, record)
    realized = ExcessReturns(series, 0.0, policy, record, equity_curve_mode=EquityCurveMode.REALIZED)
    ignored = ExcessReturns(series, 0.0, policy, record, open_position_handling=OpenPositionHandling.IGNORE)
    assert marked.excess_return(0, 2) == pytest.approx(0.21)
    assert realized.excess_return(0, 2) == 0.0
    assert ignored.excess_return(0, 2) == 0.0
