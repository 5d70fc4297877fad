"""
Numeric back-ends for curve and criterion arithmetic.

Every builder and criterion does its arithmetic through a factory that
travels with the bar series, so the same code runs on plain floats or on
arbitrary-precision decimals. Values produced by one factory must not be
mixed with values produced by the other.
"""
import math
from decimal import Context, Decimal
from typing import Any, Protocol, Union

__all__ = ["Num", "NumFactory", "FloatNumFactory", "DecimalNumFactory", "num_like", "factory_for"]

Num = Union[float, Decimal]


class NumFactory(Protocol):
    """Constructs constants and performs the few non-operator operations."""

    def num_of(self, value: Any) -> Num: ...

    def zero(self) -> Num: ...

    def one(self) -> Num: ...

    def two(self) -> Num: ...

    def three(self) -> Num: ...

    def hundred(self) -> Num: ...

    def nan(self) -> Num: ...

    def sqrt(self, value: Num) -> Num: ...

    def ln(self, value: Num) -> Num: ...

    def is_nan(self, value: Num) -> bool: ...

    def is_zero(self, value: Num) -> bool: ...

    def to_float(self, value: Num) -> float: ...


class FloatNumFactory:
    """Double precision numbers backed by the built-in float."""

    def num_of(self, value: Any) -> float:
        return float(value)

    def zero(self) -> float:
        return 0.0

    def one(self) -> float:
        return 1.0

    def two(self) -> float:
        return 2.0

    def three(self) -> float:
        return 3.0

    def hundred(self) -> float:
        return 100.0

    def nan(self) -> float:
        return math.nan

    def sqrt(self, value: float) -> float:
        return math.sqrt(value)

    def ln(self, value: float) -> float:
        return math.log(value) if value > 0 else math.nan

    def is_nan(self, value: Num) -> bool:
        return math.isnan(value)

    def is_zero(self, value: Num) -> bool:
        return value == 0

    def to_float(self, value: Num) -> float:
        return float(value)

    def __repr__(self) -> str:
        return "FloatNumFactory()"


class DecimalNumFactory:
    """
    Arbitrary precision numbers backed by decimal.Decimal.

    Constants and square roots are rounded to `precision` significant digits.
    Operator arithmetic between two decimals follows the active decimal
    context, as usual for the decimal module.
    """

    def __init__(self, precision: int = 32):
        if precision <= 0:
            raise ValueError("precision must be a positive number of digits.")
        self.precision = precision
        self._context = Context(prec=precision)

    def num_of(self, value: Any) -> Decimal:
        if not isinstance(value, (Decimal, int, str)):
            # Go through repr so 0.1 becomes Decimal('0.1'), not its binary expansion.
            value = repr(float(value))
        return self._context.create_decimal(value)

    def zero(self) -> Decimal:
        return Decimal(0)

    def one(self) -> Decimal:
        return Decimal(1)

    def two(self) -> Decimal:
        return Decimal(2)

    def three(self) -> Decimal:
        return Decimal(3)

    def hundred(self) -> Decimal:
        return Decimal(100)

    def nan(self) -> Decimal:
        return Decimal("NaN")

    def sqrt(self, value: Decimal) -> Decimal:
        return value.sqrt(self._context)

    def ln(self, value: Decimal) -> Decimal:
        if value.is_nan() or value <= 0:
            return Decimal("NaN")
        return value.ln(self._context)

    def is_nan(self, value: Num) -> bool:
        return value.is_nan() if isinstance(value, Decimal) else math.isnan(value)

    def is_zero(self, value: Num) -> bool:
        return value == 0

    def to_float(self, value: Num) -> float:
        return float(value)

    def __repr__(self) -> str:
        return f"DecimalNumFactory(precision={self.precision})"


_FLOAT = FloatNumFactory()
_DECIMAL = DecimalNumFactory()


def factory_for(reference: Num) -> NumFactory:
    """Returns a factory producing values of the same kind as `reference`."""
    return _DECIMAL if isinstance(reference, Decimal) else _FLOAT


def num_like(reference: Num, value: Any) -> Num:
    """Converts `value` to the numeric kind of `reference`."""
    return factory_for(reference).num_of(value)
