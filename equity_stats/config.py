"""
Configuration loading and validation for equity-stats.

Configuration objects are frozen standard library dataclasses. A YAML
file is validated by explicit, pure checks on the raw mapping before it
is turned into dataclasses, so every fault surfaces at load time.
"""

import yaml
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Literal, Type, cast

from equity_stats.analysis.performance import EquityCurveMode, OpenPositionHandling
from equity_stats.excess import CashReturnPolicy
from equity_stats.num import DecimalNumFactory, FloatNumFactory, NumFactory
from equity_stats.sampling import SamplingFrequency
from equity_stats.stats import Annualization

__all__ = [
    "ConfigurationError",
    "SharpeConfig",
    "CurveConfig",
    "NumericConfig",
    "ReportingConfig",
    "AnalysisConfig",
    "load_config",
    "make_num_factory",
]


class ConfigurationError(ValueError):
    """Raised when a configuration value is missing or outside its domain."""


# §1. Nested Configuration Dataclasses
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class SharpeConfig:
    """Settings shared by the Sharpe and probabilistic Sharpe criteria."""

    annual_risk_free_rate: float = 0.0
    sampling_frequency: SamplingFrequency = SamplingFrequency.BAR
    annualization: Annualization = Annualization.ANNUALIZED
    grouping_zone: str = "UTC"
    cash_return_policy: CashReturnPolicy = CashReturnPolicy.CASH_EARNS_RISK_FREE
    equity_curve_mode: EquityCurveMode = EquityCurveMode.MARK_TO_MARKET
    open_position_handling: OpenPositionHandling = OpenPositionHandling.MARK_TO_MARKET
    benchmark_sharpe_per_period: float = 0.0
    autocorrelation: float = 0.0
    number_of_trials: int = 1

    def __post_init__(self) -> None:
        missing = [f.name for f in fields(self) if getattr(self, f.name) is None]
        if missing:
            raise ConfigurationError(f"Sharpe configuration values must not be None: {', '.join(missing)}")


@dataclass(frozen=True)
class CurveConfig:
    equity_curve_mode: EquityCurveMode = EquityCurveMode.MARK_TO_MARKET
    open_position_handling: OpenPositionHandling = OpenPositionHandling.MARK_TO_MARKET


@dataclass(frozen=True)
class NumericConfig:
    precision: Literal["float", "decimal"] = "float"
    digits: int = 32


@dataclass(frozen=True)
class ReportingConfig:
    name: str = "analysis"
    output_formats: List[Literal["json", "markdown", "csv"]] = field(default_factory=lambda: ["json", "markdown"])


# §2. Top-Level Configuration
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalysisConfig:
    """The root configuration object, composing all nested sections."""

    sharpe: SharpeConfig = field(default_factory=SharpeConfig)
    curve: CurveConfig = field(default_factory=CurveConfig)
    numeric: NumericConfig = field(default_factory=NumericConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)


def make_num_factory(cfg: NumericConfig) -> NumFactory:
    """Returns the numeric factory selected by the `numeric` section."""
    if cfg.precision == "decimal":
        return DecimalNumFactory(cfg.digits)
    return FloatNumFactory()


# §3. Validation and Loading
# --------------------------------------------------------------------------------------


def _from_dict(data_class: Type[Any], data: Any) -> Any:
    """Recursively creates nested dataclasses from a dictionary."""
    if isinstance(data, dict) and hasattr(data_class, "__dataclass_fields__"):
        field_types = {f.name: f.type for f in fields(data_class)}
        unknown = set(data) - set(field_types)
        if unknown:
            raise ConfigurationError(f"Unknown keys for {data_class.__name__}: {', '.join(sorted(unknown))}")
        return data_class(**{k: _from_dict(field_types[k], v) for k, v in data.items()})

    # Enum members are written by name, e.g. `sampling_frequency: DAY`.
    if isinstance(data, str) and isinstance(data_class, type) and issubclass(data_class, Enum):
        try:
            return data_class[data.upper()]
        except KeyError as e:
            allowed = ", ".join(member.name for member in data_class)
            raise ConfigurationError(f"Unknown {data_class.__name__} '{data}'. Expected one of: {allowed}") from e
    if isinstance(data, int) and not isinstance(data, bool) and data_class is float:
        return float(data)
    return data


def _validate_config(cfg: Dict[str, Any]) -> None:
    """
    Performs simple, explicit validation checks on the raw config dictionary.
    Fail fast on any logical inconsistencies.
    """
    if not isinstance(cfg, dict):
        raise ConfigurationError("Configuration must be a YAML object.")

    for section in ("sharpe", "curve", "numeric", "reporting"):
        if section in cfg and not isinstance(cfg[section], dict):
            raise ConfigurationError(f"Section '{section}' must be a mapping.")

    sharpe = cfg.get("sharpe", {})
    rho = sharpe.get("autocorrelation", 0.0)
    if not isinstance(rho, (int, float)) or not -1.0 < rho < 1.0:
        raise ConfigurationError("sharpe.autocorrelation must lie strictly between -1 and 1.")
    if sharpe.get("number_of_trials", 1) != 1:
        raise ConfigurationError("sharpe.number_of_trials must be 1.")

    numeric = cfg.get("numeric", {})
    if numeric.get("precision", "float") not in ("float", "decimal"):
        raise ConfigurationError("numeric.precision must be 'float' or 'decimal'.")
    digits = numeric.get("digits", 32)
    if not isinstance(digits, int) or digits <= 0:
        raise ConfigurationError("numeric.digits must be a positive integer.")

    formats = cfg.get("reporting", {}).get("output_formats", [])
    if not isinstance(formats, list) or not set(formats) <= {"json", "markdown", "csv"}:
        raise ConfigurationError("reporting.output_formats must be a list of: json, markdown, csv.")


# impure
def load_config(config_path: Path) -> AnalysisConfig:
    """
    Loads and validates a YAML configuration file into an AnalysisConfig.
    #impure: Reads from the filesystem.
    """
    config_path = Path(config_path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e

    # An empty file means "all defaults".
    if raw_config is None:
        raw_config = {}
    _validate_config(raw_config)

    try:
        return cast(AnalysisConfig, _from_dict(AnalysisConfig, raw_config))
    except TypeError as e:
        raise ConfigurationError(f"Configuration validation failed: invalid value. Details: {e}") from e
