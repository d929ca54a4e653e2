"""Core typing contracts for decinets."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Protocol, Sequence, Tuple

import numpy as np

from .arithmetic import ZERO, DecimalArithmetic, Number, to_decimal

DecimalVector = List[Decimal]
WeightTable = np.ndarray


class ContractViolation(ValueError):
    """Raised when a vector does not match the network topology."""


@dataclass
class Neuron:
    """Weighted sum and nonlinearity output of a single unit."""

    pre_activation: Decimal = ZERO
    activation: Decimal = ZERO


@dataclass(frozen=True)
class Sample:
    """An immutable (inputs, targets) pair."""

    inputs: Tuple[Decimal, ...]
    targets: Tuple[Decimal, ...]

    @classmethod
    def of(cls, inputs: Sequence[Number], targets: Sequence[Number]) -> "Sample":
        return cls(
            inputs=tuple(to_decimal(v) for v in inputs),
            targets=tuple(to_decimal(v) for v in targets),
        )


@dataclass(frozen=True)
class ModelDescription:
    """Description of the feed-forward network architecture."""

    topology: List[int]
    activation: str
    metric: str


class ErrorMetric(Protocol):
    """Compare output neurons against a target vector."""

    name: str

    def target_length(self, output_size: int) -> int:
        """Return the target length accepted for ``output_size`` outputs."""

    def compute(
        self,
        outputs: Sequence[Neuron],
        targets: Sequence[Decimal],
        arithmetic: DecimalArithmetic,
    ) -> DecimalVector:
        """Return one signed error per output neuron."""


class TrainingState(str, enum.Enum):
    """States of the training driver."""

    TRAINING = "training"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    TIMED_OUT = "timed_out"

    @property
    def terminal(self) -> bool:
        return self is not TrainingState.TRAINING


@dataclass(frozen=True)
class TrainingResult:
    """Summary returned by :meth:`decinets.training.trainer.Trainer.run`."""

    state: TrainingState
    epochs: int
    error: Decimal
    training_set: Tuple[Sample, ...]
    history: Tuple[Decimal, ...] = ()
    metadata: Dict[str, object] = field(default_factory=dict)

    @property
    def converged(self) -> bool:
        return self.state is TrainingState.CONVERGED


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`decinets.training.pipelines.run_pipeline`."""

    state: str
    epochs: int
    error: str
    run_dir: str
    metrics_path: str
    manifest_path: str
    plot_path: str = ""


__all__ = [
    "RunResult",
    "ContractViolation",
    "DecimalVector",
    "ErrorMetric",
    "ModelDescription",
    "Neuron",
    "Sample",
    "TrainingResult",
    "TrainingState",
    "WeightTable",
]
