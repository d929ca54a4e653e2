"""Fixed-precision decimal arithmetic shared by the network and the trainer."""

from __future__ import annotations

from decimal import (
    MAX_EMAX,
    MIN_EMIN,
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    Context,
    Decimal,
)
from typing import Iterable, Union

Number = Union[Decimal, int, str, float]

ZERO = Decimal(0)
ONE = Decimal(1)


def to_decimal(value: Number) -> Decimal:
    """Convert ``value`` to :class:`~decimal.Decimal`.

    Floats go through their shortest ``repr`` so ``0.2`` becomes ``Decimal("0.2")``
    rather than the binary expansion of the double.
    """

    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("booleans are not numeric inputs")
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


class DecimalArithmetic:
    """Decimal operations bound to one precision policy.

    ``precision`` is the working precision of every add/sub/mul/div/sqrt.
    ``activation_digits`` caps the logistic sigmoid, which is rounded half-up to
    that many significant digits.
    """

    def __init__(self, precision: int = 34, activation_digits: int = 5) -> None:
        if precision < 1:
            raise ValueError("precision must be positive")
        if activation_digits < 1:
            raise ValueError("activation_digits must be positive")
        self.precision = int(precision)
        self.activation_digits = int(activation_digits)
        self.context = Context(
            prec=self.precision,
            rounding=ROUND_HALF_EVEN,
            Emax=MAX_EMAX,
            Emin=MIN_EMIN,
        )
        self.activation_context = Context(
            prec=self.activation_digits,
            rounding=ROUND_HALF_UP,
            Emax=MAX_EMAX,
            Emin=MIN_EMIN,
        )

    def __repr__(self) -> str:
        return (
            f"DecimalArithmetic(precision={self.precision}, "
            f"activation_digits={self.activation_digits})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DecimalArithmetic):
            return NotImplemented
        return (self.precision, self.activation_digits) == (
            other.precision,
            other.activation_digits,
        )

    def __hash__(self) -> int:
        return hash((self.precision, self.activation_digits))

    # ------------------------------------------------------------------
    # Basic operations

    def add(self, a: Decimal, b: Decimal) -> Decimal:
        return self.context.add(a, b)

    def sub(self, a: Decimal, b: Decimal) -> Decimal:
        return self.context.subtract(a, b)

    def mul(self, a: Decimal, b: Decimal) -> Decimal:
        return self.context.multiply(a, b)

    def div(self, a: Decimal, b: Decimal) -> Decimal:
        return self.context.divide(a, b)

    def neg(self, a: Decimal) -> Decimal:
        return self.context.minus(a)

    @staticmethod
    def min(a: Decimal, b: Decimal) -> Decimal:
        return b if a > b else a

    @staticmethod
    def max(a: Decimal, b: Decimal) -> Decimal:
        return a if a > b else b

    @staticmethod
    def argmax(values: Iterable[Decimal]) -> int:
        """Index of the first strictly largest value, ``-1`` when empty."""

        best_index = -1
        best: Decimal | None = None
        for index, value in enumerate(values):
            if best is None or value > best:
                best = value
                best_index = index
        return best_index

    def sum(self, values: Iterable[Decimal]) -> Decimal:
        total = ZERO
        for value in values:
            total = self.context.add(total, value)
        return total

    # ------------------------------------------------------------------
    # Transcendental helpers

    def sigmoid(self, x: Decimal) -> Decimal:
        """Logistic function rounded to ``activation_digits`` significant digits."""

        denominator = self.context.add(ONE, self.context.exp(self.context.minus(x)))
        return self.activation_context.divide(ONE, denominator)

    def sqrt(self, x: Decimal) -> Decimal:
        if x == ZERO:
            return ZERO
        if x < ZERO:
            raise ValueError(f"square root of negative value {x}")
        return self.context.sqrt(x)

    def root_sum_squares(self, values: Iterable[Decimal]) -> Decimal:
        """Return ``sqrt(sum(v * v))`` of ``values``."""

        return self.sqrt(self.sum(self.mul(v, v) for v in values))


DEFAULT_ARITHMETIC = DecimalArithmetic()

__all__ = [
    "DEFAULT_ARITHMETIC",
    "DecimalArithmetic",
    "Number",
    "ONE",
    "ZERO",
    "to_decimal",
]
