"""
Sharpe ratio and Probabilistic Sharpe Ratio (PSR) criteria.

Both criteria share one pipeline:

1. The bars after the first one are grouped into (previous, current)
   index pairs by the sampling frequency.
2. Every pair yields one excess return: the portfolio growth over the
   pair minus the risk-free growth over the same time.
3. The samples are folded into a `SampleSummary` in a single pass.

The Sharpe ratio is mean / standard deviation of the samples. The PSR is
the probability that the true Sharpe ratio exceeds a benchmark, given the
estimation error of the observed one (Bailey & Lopez de Prado, 2012),
with the variance adjusted for skewness, kurtosis and AR(1)
autocorrelation of the samples.
"""
import logging
from typing import Optional

from scipy.stats import norm

from equity_stats.analysis.performance import EquityCurveMode, OpenPositionHandling
from equity_stats.config import ConfigurationError, SharpeConfig
from equity_stats.criteria.base import AnalysisCriterion
from equity_stats.excess import CashReturnPolicy, ExcessReturns
from equity_stats.num import Num
from equity_stats.record import TradingRecord
from equity_stats.sampling import SamplingFrequency, SamplingFrequencyIndexes
from equity_stats.series import BarSeries, delta_years
from equity_stats.stats import Annualization, Sample, SampleSummary
from equity_stats.types import Position

__all__ = ["SharpeRatioCriterion", "ProbabilisticSharpeRatioCriterion"]

log = logging.getLogger(__name__)


# §1. Shared sampling pipeline
# --------------------------------------------------------------------------------------


class _SampledReturnCriterion(AnalysisCriterion):
    """Base of the criteria computed from sampled excess returns."""

    def __init__(self, config: SharpeConfig):
        if config is None:
            raise ConfigurationError("Sharpe configuration must not be None.")
        try:
            self._indexes = SamplingFrequencyIndexes(config.sampling_frequency, config.grouping_zone)
        except (ValueError, KeyError, TypeError) as e:
            raise ConfigurationError(f"Invalid grouping zone '{config.grouping_zone}': {e}") from e
        self.config = config

    def summarize(self, series: BarSeries, trading_record: Optional[TradingRecord]) -> Optional[SampleSummary]:
        """
        Runs the sampling pipeline.

        Returns:
            The summary of the excess-return samples, or None when there are
            fewer than two bars after the first one to sample from.
        """
        if trading_record is None:
            log.debug("%s: no trading record.", type(self).__name__)
            return None
        begin_index = series.begin_index
        start_index = begin_index + 1
        end_index = series.end_index
        if series.is_empty or end_index - start_index + 1 < 2:
            log.debug("%s: too few bars (%d).", type(self).__name__, series.bar_count)
            return None

        cfg = self.config
        excess_returns = ExcessReturns(
            series,
            cfg.annual_risk_free_rate,
            cfg.cash_return_policy,
            trading_record,
            cfg.open_position_handling,
            cfg.equity_curve_mode,
        )
        samples = (
            Sample(
                excess_returns.excess_return(pair.previous_index, pair.current_index),
                delta_years(series, pair.previous_index, pair.current_index),
            )
            for pair in self._indexes.sample(series, begin_index, start_index, end_index)
        )
        summary = SampleSummary.from_samples(samples, series.num_factory)
        log.debug("%s: %d samples, mean %s.", type(self).__name__, summary.count, summary.mean)
        return summary

    def calculate_position(self, series: BarSeries, position: Position) -> Num:
        if position is None:
            return series.num_factory.zero()
        return self.calculate_record(series, TradingRecord.of(position))

    def _annualized(self, summary: SampleSummary) -> Optional[Num]:
        """The annualization factor to apply, or None for per-period results."""
        if self.config.annualization is not Annualization.ANNUALIZED:
            return None
        return summary.annualization_factor()


# §2. Sharpe ratio
# --------------------------------------------------------------------------------------


class SharpeRatioCriterion(_SampledReturnCriterion):
    """
    Mean excess return over its (population) standard deviation, per
    sampling period or annualized with sqrt(periods per year).
    """

    def __init__(
        self,
        annual_risk_free_rate: float = 0.0,
        sampling_frequency: SamplingFrequency = SamplingFrequency.BAR,
        annualization: Annualization = Annualization.ANNUALIZED,
        grouping_zone: str = "UTC",
        cash_return_policy: CashReturnPolicy = CashReturnPolicy.CASH_EARNS_RISK_FREE,
        equity_curve_mode: EquityCurveMode = EquityCurveMode.MARK_TO_MARKET,
        open_position_handling: OpenPositionHandling = OpenPositionHandling.MARK_TO_MARKET,
    ):
        super().__init__(
            SharpeConfig(
                annual_risk_free_rate=annual_risk_free_rate,
                sampling_frequency=sampling_frequency,
                annualization=annualization,
                grouping_zone=grouping_zone,
                cash_return_policy=cash_return_policy,
                equity_curve_mode=equity_curve_mode,
                open_position_handling=open_position_handling,
            )
        )

    @classmethod
    def from_config(cls, config: SharpeConfig) -> "SharpeRatioCriterion":
        if config is None:
            raise ConfigurationError("Sharpe configuration must not be None.")
        return cls(
            annual_risk_free_rate=config.annual_risk_free_rate,
            sampling_frequency=config.sampling_frequency,
            annualization=config.annualization,
            grouping_zone=config.grouping_zone,
            cash_return_policy=config.cash_return_policy,
            equity_curve_mode=config.equity_curve_mode,
            open_position_handling=config.open_position_handling,
        )

    def calculate_record(self, series: BarSeries, trading_record: TradingRecord) -> Num:
        num = series.num_factory
        summary = self.summarize(series, trading_record)
        if summary is None or summary.count < 2:
            return num.zero()
        variance = summary.variance()
        if not variance > num.zero():
            log.debug("SharpeRatioCriterion: zero variance.")
            return num.zero()

        sharpe = summary.mean / num.sqrt(variance)
        factor = self._annualized(summary)
        return sharpe * factor if factor is not None else sharpe

    def __repr__(self) -> str:
        return (
            f"SharpeRatioCriterion(frequency={self.config.sampling_frequency.value}, "
            f"annualization={self.config.annualization.value})"
        )


# §3. Probabilistic Sharpe ratio
# --------------------------------------------------------------------------------------


class ProbabilisticSharpeRatioCriterion(_SampledReturnCriterion):
    """
    Probability that the true Sharpe ratio exceeds `benchmark_sharpe_per_period`.

    The result lies in [0, 1]. Degenerate inputs (no record, too few bars
    or samples, zero variance) give 0 instead of raising, so the criterion
    can be used while scanning many strategies.

    Args:
        annual_risk_free_rate: Yearly risk-free rate subtracted from returns.
        sampling_frequency: How bars are grouped into samples.
        annualization: Whether the Sharpe ratios are compared annualized.
                       The probability does not depend on this choice.
        grouping_zone: Time zone of the calendar sampling periods.
        cash_return_policy: What capital earns while no position is held.
        equity_curve_mode: Mode of the cash flow curve behind the returns.
        open_position_handling: Treatment of a trailing open position.
        benchmark_sharpe_per_period: Benchmark Sharpe ratio, per sampling period.
        autocorrelation: AR(1) coefficient of the samples, strictly in (-1, 1).
        number_of_trials: Number of strategies tried. Only 1 is supported.

    Raises:
        ConfigurationError: On an out-of-range autocorrelation, a trial count
                            other than 1 or a None setting.
    """

    def __init__(
        self,
        annual_risk_free_rate: float = 0.0,
        sampling_frequency: SamplingFrequency = SamplingFrequency.BAR,
        annualization: Annualization = Annualization.ANNUALIZED,
        grouping_zone: str = "UTC",
        cash_return_policy: CashReturnPolicy = CashReturnPolicy.CASH_EARNS_RISK_FREE,
        equity_curve_mode: EquityCurveMode = EquityCurveMode.MARK_TO_MARKET,
        open_position_handling: OpenPositionHandling = OpenPositionHandling.MARK_TO_MARKET,
        benchmark_sharpe_per_period: float = 0.0,
        autocorrelation: float = 0.0,
        number_of_trials: int = 1,
    ):
        config = SharpeConfig(
            annual_risk_free_rate=annual_risk_free_rate,
            sampling_frequency=sampling_frequency,
            annualization=annualization,
            grouping_zone=grouping_zone,
            cash_return_policy=cash_return_policy,
            equity_curve_mode=equity_curve_mode,
            open_position_handling=open_position_handling,
            benchmark_sharpe_per_period=benchmark_sharpe_per_period,
            autocorrelation=autocorrelation,
            number_of_trials=number_of_trials,
        )
        if not -1.0 < config.autocorrelation < 1.0:
            raise ConfigurationError(
                f"autocorrelation must lie strictly between -1 and 1, got {config.autocorrelation}."
            )
        if config.number_of_trials != 1:
            raise ConfigurationError(f"number_of_trials must be 1, got {config.number_of_trials}.")
        super().__init__(config)

    @classmethod
    def from_config(cls, config: SharpeConfig) -> "ProbabilisticSharpeRatioCriterion":
        """Builds the criterion from a `SharpeConfig`, e.g. the `sharpe` section of a config file."""
        if config is None:
            raise ConfigurationError("Sharpe configuration must not be None.")
        return cls(
            annual_risk_free_rate=config.annual_risk_free_rate,
            sampling_frequency=config.sampling_frequency,
            annualization=config.annualization,
            grouping_zone=config.grouping_zone,
            cash_return_policy=config.cash_return_policy,
            equity_curve_mode=config.equity_curve_mode,
            open_position_handling=config.open_position_handling,
            benchmark_sharpe_per_period=config.benchmark_sharpe_per_period,
            autocorrelation=config.autocorrelation,
            number_of_trials=config.number_of_trials,
        )

    def calculate_record(self, series: BarSeries, trading_record: TradingRecord) -> Num:
        num = series.num_factory
        zero = num.zero()
        one = num.one()
        summary = self.summarize(series, trading_record)
        if summary is None:
            return zero
        if summary.count < 2:
            log.debug("PSR: %d sample(s), at least 2 needed.", summary.count)
            return zero
        variance = summary.variance()
        if not variance > zero:
            log.debug("PSR: zero sample variance.")
            return zero

        sharpe = summary.mean / num.sqrt(variance)
        benchmark = num.num_of(self.config.benchmark_sharpe_per_period)
        skewness = summary.skewness()
        kurtosis = summary.excess_kurtosis() + num.three()

        rho = num.num_of(self.config.autocorrelation)
        b = rho / (one - rho)
        c = rho * rho / (one - rho * rho)
        two = num.two()
        sharpe_variance = (
            (one + two * b)
            - (one + b + c) * skewness * sharpe
            + (one + two * c) * (kurtosis - one) * sharpe * sharpe / num.num_of(4)
        ) / num.num_of(summary.count - 1)
        if not sharpe_variance > zero:
            log.debug("PSR: non-positive Sharpe ratio variance %s.", sharpe_variance)
            return zero

        factor = self._annualized(summary)
        if factor is not None:
            sharpe = sharpe * factor
            benchmark = benchmark * factor
            sharpe_variance = sharpe_variance * factor * factor

        denominator = num.sqrt(sharpe_variance)
        if num.is_zero(denominator):
            log.debug("PSR: zero denominator.")
            return zero
        z = (sharpe - benchmark) / denominator
        return num.num_of(norm.cdf(num.to_float(z)))

    def __repr__(self) -> str:
        cfg = self.config
        return (
            f"ProbabilisticSharpeRatioCriterion(frequency={cfg.sampling_frequency.value}, "
            f"annualization={cfg.annualization.value}, benchmark={cfg.benchmark_sharpe_per_period}, "
            f"autocorrelation={cfg.autocorrelation})"
        )
