"""Convergence-driven training loop over decimal networks."""

from __future__ import annotations

import time
from decimal import Decimal
from typing import Callable, List, Mapping, Sequence, Tuple

from ..core.arithmetic import ZERO, DecimalArithmetic, Number, to_decimal
from ..core.network import NeuralNetwork
from ..core.types import DecimalVector, Sample, TrainingResult, TrainingState


class Trainer:
    """Repeat epochs until the mean sample error reaches ``threshold``.

    An epoch trains on every sample of the training set, then scores every
    sample of the control set without touching the weights. The epoch error is
    the root-sum-of-squares of the per-sample error magnitudes divided by the
    number of samples. ``max_epochs`` (and optionally ``time_limit`` seconds)
    bound the loop; hitting a bound is reported through
    :class:`~decinets.core.types.TrainingState`, never raised.
    """

    def __init__(
        self,
        network: NeuralNetwork,
        learning_rate: Number,
        *,
        threshold: Number,
        max_epochs: int,
        time_limit: float | None = None,
        callbacks: Sequence[object] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if int(max_epochs) < 1:
            raise ValueError("max_epochs must be at least 1")
        if time_limit is not None and time_limit <= 0:
            raise ValueError("time_limit must be positive when given")
        self.network = network
        self.learning_rate = to_decimal(learning_rate)
        self.threshold = to_decimal(threshold)
        if self.threshold < ZERO:
            raise ValueError("threshold must not be negative")
        self.max_epochs = int(max_epochs)
        self.time_limit = time_limit
        self.callbacks = list(callbacks or [])
        self._clock = clock
        self.state = TrainingState.TRAINING

    def sample_error(self, errors: DecimalVector) -> Decimal:
        """Scalar magnitude of one error vector."""

        return self.network.arithmetic.root_sum_squares(errors)

    def run_epoch(
        self, training_set: Sequence[Sample], control_set: Sequence[Sample] = ()
    ) -> Mapping[str, Decimal]:
        ar = self.network.arithmetic
        train_magnitudes: List[Decimal] = []
        control_magnitudes: List[Decimal] = []
        hits = 0
        for sample in training_set:
            errors = self.network.train(sample.inputs, sample.targets, self.learning_rate)
            hits += all(e == ZERO for e in errors)
            train_magnitudes.append(self.sample_error(errors))
        for sample in control_set:
            errors = self.network.compute_error(sample.inputs, sample.targets)
            hits += all(e == ZERO for e in errors)
            control_magnitudes.append(self.sample_error(errors))

        count = len(train_magnitudes) + len(control_magnitudes)
        error = ar.div(ar.root_sum_squares(train_magnitudes + control_magnitudes), Decimal(count))
        return {
            "error": error,
            "train_error": _mean_error(ar, train_magnitudes),
            "control_error": _mean_error(ar, control_magnitudes),
            "accuracy": ar.div(Decimal(hits), Decimal(count)),
        }

    def run(
        self,
        training_set: Sequence[Sample],
        control_set: Sequence[Sample] = (),
    ) -> TrainingResult:
        training = tuple(training_set)
        control = tuple(control_set)
        if not training and not control:
            raise ValueError("at least one training or control sample is required")

        self.state = TrainingState.TRAINING
        started = self._clock()
        history: List[Decimal] = []
        epoch = 0
        error = ZERO
        while not self.state.terminal:
            epoch += 1
            metrics = self.run_epoch(training, control)
            error = metrics["error"]
            history.append(error)
            self._emit_epoch(epoch, metrics)
            if error <= self.threshold:
                self.state = TrainingState.CONVERGED
            elif epoch >= self.max_epochs:
                self.state = TrainingState.EXHAUSTED
            elif self.time_limit is not None and self._clock() - started >= self.time_limit:
                self.state = TrainingState.TIMED_OUT

        return TrainingResult(
            state=self.state,
            epochs=epoch,
            error=error,
            training_set=training,
            history=tuple(history),
            metadata={
                "learning_rate": str(self.learning_rate),
                "threshold": str(self.threshold),
                "max_epochs": self.max_epochs,
                "control_samples": len(control),
            },
        )

    def _emit_epoch(self, epoch: int, metrics: Mapping[str, Decimal]) -> None:
        payload = {name: float(value) for name, value in metrics.items()}
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, payload)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, payload)


def _mean_error(ar: DecimalArithmetic, magnitudes: Sequence[Decimal]) -> Decimal:
    if not magnitudes:
        return ZERO
    return ar.div(ar.root_sum_squares(magnitudes), Decimal(len(magnitudes)))


def evaluate(
    network: NeuralNetwork, samples: Sequence[Sample]
) -> List[Tuple[Sample, DecimalVector]]:
    """Forward every sample and pair it with the output activations."""

    results: List[Tuple[Sample, DecimalVector]] = []
    for sample in samples:
        network.forward(sample.inputs)
        results.append((sample, network.outputs()))
    return results


__all__ = ["Trainer", "evaluate"]
