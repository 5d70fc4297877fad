"""
Evaluating criteria on a trading record and writing the results out.
"""
import json
import math
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd
from rich.console import Console
from rich.table import Table

from equity_stats.analysis.performance import PerformanceCurve
from equity_stats.criteria.base import AnalysisCriterion
from equity_stats.num import Num
from equity_stats.record import TradingRecord
from equity_stats.series import BarSeries
from equity_stats.types import Position

__all__ = ["evaluate_criteria", "summary_table", "generate_all_reports"]


def evaluate_criteria(
    series: BarSeries,
    trading_record: Union[TradingRecord, Position],
    criteria: Mapping[str, AnalysisCriterion],
) -> Dict[str, Num]:
    """Evaluates every named criterion on the same record, keeping the order of `criteria`."""
    return {name: criterion.calculate(series, trading_record) for name, criterion in criteria.items()}


def _to_json_serializable(data: Any) -> Any:
    """Recursively converts non-serializable types in a dictionary."""
    if isinstance(data, dict):
        return {k: _to_json_serializable(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [_to_json_serializable(i) for i in data]
    if isinstance(data, (Path, pd.Timestamp, pd.Timedelta)):
        return str(data)
    if data is None:
        return None
    if isinstance(data, Decimal):
        return None if data.is_nan() else float(data)
    if isinstance(data, (np.integer,)):
        return int(data)
    if isinstance(data, (float, np.floating)):
        return None if math.isnan(data) else float(data)
    if isinstance(data, np.bool_):
        return bool(data)
    return data


def summary_table(results: Mapping[str, Num], title: str = "Analysis") -> Table:
    """A two-column rich table of criterion name and value."""
    table = Table(title=title)
    table.add_column("Criterion")
    table.add_column("Value", justify="right")
    for name, value in results.items():
        table.add_row(name, f"{float(value):.4f}")
    return table


# impure
def _generate_summary_json(results: Mapping[str, Num], name: str, output_dir: Path) -> None:
    """Generates a JSON file with the criterion values."""
    summary = {"name": name, "criteria": _to_json_serializable(dict(results))}
    with (output_dir / "summary.json").open("w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2)


# impure
def _generate_summary_markdown(results: Mapping[str, Num], name: str, output_dir: Path) -> None:
    """Generates a Markdown file with a human-readable summary."""
    md = f"# Analysis Summary: {name}\n\n"
    md += "## Criteria\n\n"
    for criterion, value in results.items():
        md += f"- **{criterion}**: {float(value):.4f}\n"
    (output_dir / "summary.md").write_text(md, encoding="utf-8")


# impure
def _generate_curves_csv(curves: Sequence[PerformanceCurve], output_dir: Path) -> None:
    """Generates one CSV with a column per curve, indexed by bar end time."""
    frame = pd.concat([curve.to_pandas().astype(float) for curve in curves], axis=1)
    frame.index.name = "end_time"
    frame.to_csv(output_dir / "curves.csv")


# impure
def generate_all_reports(
    results: Mapping[str, Num],
    run_dir: Path,
    console: Optional[Console] = None,
    curves: Sequence[PerformanceCurve] = (),
    output_formats: Sequence[str] = ("json", "markdown"),
    name: str = "analysis",
) -> None:
    """
    Writes the criterion results (and optionally the curves) to `run_dir`.
    #impure: Writes to the filesystem and the console.

    Args:
        results: Criterion name to value, e.g. from `evaluate_criteria`.
        run_dir: Output directory; created if missing.
        console: Where progress and the summary table go.
        curves: Curves to export when "csv" is requested.
        output_formats: Any of "json", "markdown" and "csv".
        name: Title used in the reports.
    """
    console = console or Console()
    run_dir.mkdir(parents=True, exist_ok=True)

    if "json" in output_formats:
        console.print("Generating summary JSON...")
        _generate_summary_json(results, name, run_dir)

    if "markdown" in output_formats:
        console.print("Generating summary Markdown...")
        _generate_summary_markdown(results, name, run_dir)

    if "csv" in output_formats:
        if curves:
            console.print("Generating curves CSV...")
            _generate_curves_csv(curves, run_dir)
        else:
            console.print("[yellow]Warning: CSV requested but no curves were given.[/yellow]")

    console.print(summary_table(results, title=name))
