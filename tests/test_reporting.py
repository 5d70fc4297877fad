"""Tests for criterion evaluation and report generation."""
import json
import math
from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest
from rich.console import Console

from equity_stats.analysis.cashflow import CashFlow
from equity_stats.analysis.pnl import CumulativePnL
from equity_stats.criteria.pnl import GrossProfitLossPercentageCriterion, NetReturnCriterion
from equity_stats.record import TradingRecord
from equity_stats.reporting import _to_json_serializable, evaluate_criteria, generate_all_reports, summary_table
from equity_stats.series import BarSeries


@pytest.fixture
def series() -> BarSeries:
    return BarSeries.from_closes([100.0, 110.0, 121.0, 110.0])


@pytest.fixture
def record(series: BarSeries) -> TradingRecord:
    record = TradingRecord()
    record.enter(0, series.close_price(0))
    record.exit(2, series.close_price(2))
    return record


@pytest.fixture
def console() -> Console:
    return Console(record=True, width=120)


def test_evaluate_criteria_keeps_names_and_order(series: BarSeries, record: TradingRecord) -> None:
    results = evaluate_criteria(
        series,
        record,
        {"net_return": NetReturnCriterion(add_base=False), "pnl_pct": GrossProfitLossPercentageCriterion()},
    )
    assert list(results) == ["net_return", "pnl_pct"]
    assert results["net_return"] == pytest.approx(0.21)
    assert results["pnl_pct"] == pytest.approx(21.0)


def test_json_conversion_of_numbers() -> None:
    converted = _to_json_serializable({"a": Decimal("1.5"), "b": math.nan, "c": [Decimal("NaN")], "d": Path("x")})
    assert converted == {"a": 1.5, "b": None, "c": [None], "d": "x"}


def test_summary_table_has_one_row_per_criterion() -> None:
    table = summary_table({"a": 1.0, "b": Decimal("0.5")}, title="Run")
    assert table.row_count == 2
    assert table.title == "Run"


def test_generate_all_reports(
    tmp_path: Path, series: BarSeries, record: TradingRecord, console: Console
) -> None:
    results = evaluate_criteria(series, record, {"net_return": NetReturnCriterion()})
    curves = [CashFlow(series, record), CumulativePnL(series, record)]
    run_dir = tmp_path / "run"

    generate_all_reports(
        results, run_dir, console, curves=curves, output_formats=["json", "markdown", "csv"], name="demo"
    )

    summary = json.loads((run_dir / "summary.json").read_text(encoding="utf-8"))
    assert summary["name"] == "demo"
    assert summary["criteria"]["net_return"] == pytest.approx(1.21)

    markdown = (run_dir / "summary.md").read_text(encoding="utf-8")
    assert "# Analysis Summary: demo" in markdown
    assert "**net_return**: 1.2100" in markdown

    frame = pd.read_csv(run_dir / "curves.csv", index_col="end_time")
    assert list(frame.columns) == ["CashFlow", "CumulativePnL"]
    assert frame["CashFlow"].tolist() == pytest.approx([1.0, 1.1, 1.21, 1.21])
    assert frame["CumulativePnL"].tolist() == pytest.approx([0.0, 10.0, 21.0, 21.0])

    assert "net_return" in console.export_text()


def test_csv_without_curves_warns(tmp_path: Path, console: Console) -> None:
    generate_all_reports({"x": 1.0}, tmp_path, console, output_formats=["csv"])
    assert not (tmp_path / "curves.csv").exists()
    assert "no curves were given" in console.export_text()
