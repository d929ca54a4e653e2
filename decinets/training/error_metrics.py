"""Error metric registry used by the network and the trainer."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, Iterable, Sequence

from ..core.arithmetic import ONE, ZERO, DecimalArithmetic, Number, to_decimal
from ..core.types import ContractViolation, DecimalVector, ErrorMetric, Neuron

DEFAULT_LOW = Decimal("0.2")
DEFAULT_HIGH = Decimal("0.8")


def _clamp(
    error: Decimal, expected: Decimal, low: Decimal, ar: DecimalArithmetic
) -> Decimal:
    # low targets may only pull down, high targets may only push up
    if expected == low:
        return ar.min(error, ZERO)
    return ar.max(error, ZERO)


@dataclass(frozen=True)
class MarginClamped:
    """Binary-target metric with a unit bias past the class margin.

    Outputs already beyond their marker produce no error. Outputs on the wrong
    side get the raw difference shifted by one unit away from zero.
    """

    low: Decimal = DEFAULT_LOW
    high: Decimal = DEFAULT_HIGH
    name: str = "margin"

    def target_length(self, output_size: int) -> int:
        return output_size

    def compute(
        self,
        outputs: Sequence[Neuron],
        targets: Sequence[Decimal],
        arithmetic: DecimalArithmetic,
    ) -> DecimalVector:
        if len(outputs) != len(targets):
            raise ContractViolation(
                f"{len(outputs)} outputs cannot be scored against {len(targets)} targets"
            )
        ar = arithmetic
        errors: DecimalVector = []
        for neuron, target in zip(outputs, targets):
            if target != self.low and target != self.high:
                raise ContractViolation(
                    f"target {target} is neither {self.low} nor {self.high}"
                )
            error = _clamp(ar.sub(target, neuron.activation), target, self.low, ar)
            if error != ZERO:
                error = ar.sub(error, ONE) if target == self.low else ar.add(error, ONE)
            errors.append(error)
        return errors


@dataclass(frozen=True)
class WinnerTakeAll:
    """Multi-class metric keyed on a single class-label target.

    A sample whose first maximal output already sits on the labelled class
    scores all zeros. Otherwise each output is pulled towards ``high`` for the
    labelled class and ``low`` elsewhere, one-sided, without bias correction.
    """

    low: Decimal = DEFAULT_LOW
    high: Decimal = DEFAULT_HIGH
    name: str = "winner_take_all"

    def target_length(self, output_size: int) -> int:
        return 1

    @staticmethod
    def class_index(target: Decimal) -> int:
        return int(target.to_integral_value(rounding=ROUND_HALF_UP))

    def compute(
        self,
        outputs: Sequence[Neuron],
        targets: Sequence[Decimal],
        arithmetic: DecimalArithmetic,
    ) -> DecimalVector:
        if len(targets) != 1:
            raise ContractViolation(f"expected a single class label, got {len(targets)}")
        ar = arithmetic
        correct = self.class_index(targets[0])
        if not 0 <= correct < len(outputs):
            raise ContractViolation(
                f"class label {correct} is outside 0..{len(outputs) - 1}"
            )
        if ar.argmax(n.activation for n in outputs) == correct:
            return [ZERO] * len(outputs)

        errors: DecimalVector = []
        for index, neuron in enumerate(outputs):
            expected = self.high if index == correct else self.low
            errors.append(_clamp(ar.sub(expected, neuron.activation), expected, self.low, ar))
        return errors


MetricFactory = Callable[..., ErrorMetric]


class ErrorMetricRegistry:
    """Central registry for error metrics."""

    def __init__(self) -> None:
        self._registry: Dict[str, MetricFactory] = {}

    def register(self, name: str, factory: MetricFactory) -> None:
        self._registry[name] = factory

    def names(self) -> Iterable[str]:
        return sorted(self._registry)

    def create(
        self,
        name: str,
        *,
        low: Number | None = None,
        high: Number | None = None,
    ) -> ErrorMetric:
        if name not in self._registry:
            available = ", ".join(sorted(self._registry))
            raise KeyError(f"Unknown error metric {name!r}. Available metrics: {available}")
        kwargs: Dict[str, Decimal] = {}
        if low is not None:
            kwargs["low"] = to_decimal(low)
        if high is not None:
            kwargs["high"] = to_decimal(high)
        if "low" in kwargs and "high" in kwargs and kwargs["low"] >= kwargs["high"]:
            raise ValueError("low marker must be below the high marker")
        return self._registry[name](**kwargs)


REGISTRY = ErrorMetricRegistry()
REGISTRY.register("margin", MarginClamped)
REGISTRY.register("winner_take_all", WinnerTakeAll)
# Short alias used in configs
REGISTRY.register("wta", WinnerTakeAll)

__all__ = [
    "DEFAULT_HIGH",
    "DEFAULT_LOW",
    "ErrorMetricRegistry",
    "MarginClamped",
    "REGISTRY",
    "WinnerTakeAll",
]
