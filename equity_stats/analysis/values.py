"""
Dense, index-aligned value storage for the curve builders.
"""
from typing import Iterator, List, Optional

import pandas as pd

from equity_stats.num import Num

__all__ = ["ValueSeries"]


class ValueSeries:
    """
    A growable array with one value per bar, starting at index 0.

    Gaps are padded either by repeating the last known value (the default)
    or with a constant `fill_value`. The array never shrinks.
    """

    def __init__(self, initial: Num, fill_value: Optional[Num] = None):
        self._values: List[Num] = [initial]
        self._fill_value = fill_value

    @property
    def last(self) -> Num:
        return self._values[-1]

    def _padding(self) -> Num:
        return self.last if self._fill_value is None else self._fill_value

    def ensure_size(self, size: int) -> None:
        """Pads the array until it holds at least `size` values."""
        missing = size - len(self._values)
        if missing > 0:
            self._values.extend([self._padding()] * missing)

    def put(self, index: int, value: Num) -> None:
        """Stores `value` at `index`, padding any gap before it."""
        if index < 0:
            raise IndexError(f"Negative index {index}.")
        self.ensure_size(index)
        if index < len(self._values):
            self._values[index] = value
        else:
            self._values.append(value)

    def fill_to(self, end_index: int) -> None:
        """Pads the array so that `end_index` is a valid index."""
        self.ensure_size(end_index + 1)

    def value_at(self, index: int) -> Num:
        return self._values[index]

    def to_list(self) -> List[Num]:
        return list(self._values)

    def to_pandas(self, index: Optional[pd.Index] = None) -> pd.Series:
        # Decimal values end up in an object column; floats stay float64.
        values = self._values if index is None else self._values[: len(index)]
        return pd.Series(values, index=index)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Num]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"ValueSeries(size={len(self._values)}, last={self.last!r})"
