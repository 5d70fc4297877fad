"""
Single-pass summary statistics of excess-return samples.

Central moments are accumulated with the online update of Welford,
extended to the third and fourth moment (Terriberry), so the sample
stream is consumed exactly once and never materialised.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from equity_stats.num import FloatNumFactory, Num, NumFactory

__all__ = ["Annualization", "Sample", "SampleSummary"]


class Annualization(str, Enum):
    PERIOD = "PERIOD"
    ANNUALIZED = "ANNUALIZED"


@dataclass(frozen=True)
class Sample:
    """One observation: the excess return over a sampling period and its length in years."""

    excess_return: Num
    period_years: float


@dataclass(frozen=True)
class SampleSummary:
    count: int
    mean: Num
    m2: Num
    m3: Num
    m4: Num
    total_period_years: float
    num_factory: NumFactory = field(default_factory=FloatNumFactory, repr=False, compare=False)

    @classmethod
    def from_samples(cls, samples: Iterable[Sample], num_factory: NumFactory) -> "SampleSummary":
        """
        Folds `samples` into count, mean and the sums of the 2nd to 4th powers
        of the deviations from the mean.

        Args:
            samples: Any iterable, including a one-shot generator.
            num_factory: Factory matching the numeric kind of the samples.

        Returns:
            The summary; an empty iterable gives a zero count.
        """
        num = num_factory
        count = 0
        mean = m2 = m3 = m4 = num.zero()
        total_years = 0.0

        for sample in samples:
            previous_count = count
            count += 1
            n = num.num_of(count)
            delta = sample.excess_return - mean
            delta_n = delta / n
            delta_n2 = delta_n * delta_n
            term1 = delta * delta_n * num.num_of(previous_count)

            mean = mean + delta_n
            m4 = (
                m4
                + term1 * delta_n2 * num.num_of(count * count - 3 * count + 3)
                + num.num_of(6) * delta_n2 * m2
                - num.num_of(4) * delta_n * m3
            )
            m3 = m3 + term1 * delta_n * num.num_of(count - 2) - num.three() * delta_n * m2
            m2 = m2 + term1
            total_years += sample.period_years

        return cls(count, mean, m2, m3, m4, total_years, num)

    def variance(self) -> Num:
        """Population variance (divides by n)."""
        num = self.num_factory
        if self.count == 0:
            return num.zero()
        return self.m2 / num.num_of(self.count)

    def sample_variance(self) -> Num:
        """Unbiased variance (divides by n - 1)."""
        num = self.num_factory
        if self.count < 2:
            return num.zero()
        return self.m2 / num.num_of(self.count - 1)

    def skewness(self) -> Num:
        num = self.num_factory
        if self.count == 0 or num.is_zero(self.m2):
            return num.zero()
        n = num.num_of(self.count)
        return num.sqrt(n) * self.m3 / (self.m2 * num.sqrt(self.m2))

    def excess_kurtosis(self) -> Num:
        num = self.num_factory
        if self.count == 0 or num.is_zero(self.m2):
            return num.zero()
        n = num.num_of(self.count)
        return n * self.m4 / (self.m2 * self.m2) - num.three()

    def mean_period_years(self) -> float:
        if self.count == 0:
            return 0.0
        return self.total_period_years / self.count

    def annualization_factor(self) -> Optional[Num]:
        """sqrt(periods per year), or None when the periods have no positive length."""
        mean_years = self.mean_period_years()
        if mean_years <= 0:
            return None
        num = self.num_factory
        return num.sqrt(num.num_of(1.0 / mean_years))
