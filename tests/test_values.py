"""Tests for the dense value storage."""
import pandas as pd
import pytest

from equity_stats.analysis.values import ValueSeries


def test_put_pads_with_last_value() -> None:
    values = ValueSeries(1.0)
    values.put(3, 2.0)
    assert values.to_list() == [1.0, 1.0, 1.0, 2.0]


def test_put_overwrites_existing_index() -> None:
    values = ValueSeries(1.0)
    values.put(1, 2.0)
    values.put(1, 3.0)
    assert values.to_list() == [1.0, 3.0]


def test_fill_value_is_used_for_gaps() -> None:
    values = ValueSeries(0.0, fill_value=0.0)
    values.put(1, 0.5)
    values.fill_to(3)
    assert values.to_list() == [0.0, 0.5, 0.0, 0.0]


def test_never_shrinks() -> None:
    values = ValueSeries(1.0)
    values.fill_to(4)
    values.ensure_size(2)
    values.put(0, 5.0)
    assert len(values) == 5


def test_negative_index_raises() -> None:
    with pytest.raises(IndexError):
        ValueSeries(1.0).put(-1, 2.0)


def test_to_pandas_aligns_on_index() -> None:
    values = ValueSeries(1.0)
    values.fill_to(2)
    index = pd.date_range("2024-01-01", periods=3, tz="UTC")
    result = values.to_pandas(index)
    assert list(result.index) == list(index)
    assert result.tolist() == [1.0, 1.0, 1.0]
