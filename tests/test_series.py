"""Tests for the bar series adapter."""
from datetime import timedelta

import pandas as pd
import pytest

from equity_stats.series import BarSeries, delta_years


@pytest.fixture
def series() -> BarSeries:
    return BarSeries.from_closes([100.0, 101.0, 102.0], name="TEST")


def test_from_closes_builds_end_times_one_period_after_start(series: BarSeries) -> None:
    assert series.bar_count == 3
    assert series.begin_index == 0
    assert series.end_index == 2
    assert series.end_time(0) == pd.Timestamp("2024-01-02", tz="UTC")
    assert series.end_time(2) == pd.Timestamp("2024-01-04", tz="UTC")
    assert series.close_price(1) == 101.0


def test_close_price_out_of_range_raises(series: BarSeries) -> None:
    with pytest.raises(IndexError):
        series.close_price(3)


def test_empty_series_has_negative_begin_index() -> None:
    empty = BarSeries.from_closes([])
    assert empty.is_empty
    assert empty.begin_index == -1
    assert empty.end_index == -1


def test_naive_index_is_localized_to_utc() -> None:
    bars = pd.DataFrame({"Close": [1.0, 2.0]}, index=pd.date_range("2024-01-01", periods=2, freq="D"))
    series = BarSeries(bars)
    assert str(series.end_times.tz) == "UTC"


def test_requires_close_column_and_datetime_index() -> None:
    with pytest.raises(ValueError, match="Close"):
        BarSeries(pd.DataFrame({"Open": [1.0]}, index=pd.date_range("2024-01-01", periods=1)))
    with pytest.raises(ValueError, match="end times"):
        BarSeries(pd.DataFrame({"Close": [1.0]}))


def test_delta_years_uses_gregorian_year() -> None:
    series = BarSeries.from_closes([1.0, 1.0], period=timedelta(days=365.2425))
    assert delta_years(series, 0, 1) == pytest.approx(1.0)
