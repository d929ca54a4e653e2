"""Activation functions evaluated through :class:`DecimalArithmetic`."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from .arithmetic import ONE, DecimalArithmetic
from .types import Neuron


class Activation(Protocol):
    """Nonlinearity plus its derivative expressed on a computed neuron."""

    name: str

    def __call__(self, x: Decimal, arithmetic: DecimalArithmetic) -> Decimal:
        """Return the activation of pre-activation ``x``."""

    def derivative(self, neuron: Neuron, arithmetic: DecimalArithmetic) -> Decimal:
        """Return the derivative at ``neuron`` using its stored activation."""


@dataclass(frozen=True)
class Logistic:
    """Logistic sigmoid with a precision-capped forward value."""

    name: str = "logistic"

    def __call__(self, x: Decimal, arithmetic: DecimalArithmetic) -> Decimal:
        return arithmetic.sigmoid(x)

    def derivative(self, neuron: Neuron, arithmetic: DecimalArithmetic) -> Decimal:
        # a * (1 - a) from the forward value, not from the pre-activation
        a = neuron.activation
        return arithmetic.mul(a, arithmetic.sub(ONE, a))


__all__ = ["Activation", "Logistic"]
