"""Feed-forward network over decimal weights with a bias row per transition."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import List, Mapping, MutableSequence, Sequence

import numpy as np

from .activations import Activation, Logistic
from .arithmetic import DEFAULT_ARITHMETIC, ONE, ZERO, DecimalArithmetic, Number, to_decimal
from .types import (
    ContractViolation,
    DecimalVector,
    ErrorMetric,
    ModelDescription,
    Neuron,
    WeightTable,
)

INIT_LOW = -0.5
INIT_HIGH = 0.5


@dataclass
class NeuralNetwork:
    """Multilayer perceptron trained one sample at a time.

    ``weights[i]`` has shape ``(topology[i] + 1, topology[i + 1])`` and is
    indexed ``[source][destination]``; its last row holds the bias of every
    destination neuron. Values are :class:`~decimal.Decimal` objects stored in
    ``numpy`` object arrays so the table shape is fixed at construction.
    """

    topology: Sequence[int]
    metric: ErrorMetric
    activation: Activation = field(default_factory=Logistic)
    arithmetic: DecimalArithmetic = DEFAULT_ARITHMETIC
    seed: int | None = None
    weights: MutableSequence[WeightTable] = field(init=False, repr=False)
    neurons: List[List[Neuron]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        dims = [int(size) for size in self.topology]
        if len(dims) < 2:
            raise ValueError("topology needs at least an input and an output layer")
        if any(size <= 0 for size in dims):
            raise ValueError(f"layer sizes must be positive, got {dims}")
        self.topology = tuple(dims)
        self.reset(self.seed)

    def reset(self, seed: int | None) -> None:
        """Redraw every weight uniformly in ``[-0.5, 0.5)`` and zero the neurons."""

        rng = np.random.default_rng(seed)
        weights: list[WeightTable] = []
        for src, dst in zip(self.topology[:-1], self.topology[1:]):
            draws = rng.uniform(INIT_LOW, INIT_HIGH, size=(src + 1, dst))
            table = np.empty((src + 1, dst), dtype=object)
            for index, value in np.ndenumerate(draws):
                table[index] = to_decimal(float(value))
            weights.append(table)
        self.weights = weights
        self.neurons = [[Neuron() for _ in range(size)] for size in self.topology]

    # ------------------------------------------------------------------
    # Shape helpers

    @property
    def input_size(self) -> int:
        return self.topology[0]

    @property
    def output_size(self) -> int:
        return self.topology[-1]

    def describe(self) -> ModelDescription:
        return ModelDescription(
            topology=list(self.topology),
            activation=self.activation.name,
            metric=self.metric.name,
        )

    def parameter_count(self) -> int:
        return int(sum(int(table.size) for table in self.weights))

    def _check_inputs(self, inputs: Sequence[Number]) -> DecimalVector:
        if len(inputs) != self.input_size:
            raise ContractViolation(
                f"expected {self.input_size} inputs, got {len(inputs)}"
            )
        return [to_decimal(value) for value in inputs]

    def _check_targets(self, targets: Sequence[Number]) -> DecimalVector:
        expected = self.metric.target_length(self.output_size)
        if len(targets) != expected:
            raise ContractViolation(
                f"metric {self.metric.name!r} expects {expected} targets, got {len(targets)}"
            )
        return [to_decimal(value) for value in targets]

    # ------------------------------------------------------------------
    # Forward / backward

    def forward(self, inputs: Sequence[Number]) -> List[Neuron]:
        """Propagate ``inputs`` and return a copy of the output layer."""

        values = self._check_inputs(inputs)
        ar = self.arithmetic
        for neuron, value in zip(self.neurons[0], values):
            neuron.pre_activation = ZERO
            neuron.activation = value

        for idx, table in enumerate(self.weights):
            source = self.neurons[idx]
            bias_row = len(source)
            for right, neuron in enumerate(self.neurons[idx + 1]):
                total = table[bias_row, right]
                for left, src in enumerate(source):
                    total = ar.add(total, ar.mul(table[left, right], src.activation))
                neuron.pre_activation = total
                neuron.activation = self.activation(total, ar)
        return [replace(neuron) for neuron in self.neurons[-1]]

    def outputs(self) -> DecimalVector:
        """Activations of the output layer from the last forward pass."""

        return [neuron.activation for neuron in self.neurons[-1]]

    def predict_class(self, inputs: Sequence[Number]) -> int:
        return self.arithmetic.argmax(n.activation for n in self.forward(inputs))

    def compute_error(
        self, inputs: Sequence[Number], targets: Sequence[Number]
    ) -> DecimalVector:
        """Run :meth:`forward` and score the outputs with the injected metric."""

        expected = self._check_targets(targets)
        outputs = self.forward(inputs)
        return self.metric.compute(outputs, expected, self.arithmetic)

    def train(
        self,
        inputs: Sequence[Number],
        targets: Sequence[Number],
        learning_rate: Number,
    ) -> DecimalVector:
        """One backpropagation step; returns the error measured before the update."""

        errors = self.compute_error(inputs, targets)
        rate = to_decimal(learning_rate)
        ar = self.arithmetic
        error = list(errors)
        for idx in reversed(range(len(self.weights))):
            table = self.weights[idx]
            source = self.neurons[idx]
            destination = self.neurons[idx + 1]
            bias_row = len(source)
            derivatives = [self.activation.derivative(n, ar) for n in destination]
            propagated = [ZERO] * len(source)
            for left in range(bias_row + 1):
                source_activation = ONE if left == bias_row else source[left].activation
                for right in range(len(destination)):
                    weight = table[left, right]
                    # the propagated error must see the weight before its update
                    if left != bias_row:
                        propagated[left] = ar.add(
                            propagated[left], ar.mul(weight, error[right])
                        )
                    step = ar.mul(
                        ar.mul(ar.mul(rate, error[right]), derivatives[right]),
                        source_activation,
                    )
                    table[left, right] = ar.add(weight, step)
            error = propagated
        return errors

    # ------------------------------------------------------------------
    # In-memory snapshots

    def state_dict(self) -> Mapping[str, WeightTable]:
        return {f"W{idx}": table.copy() for idx, table in enumerate(self.weights)}

    def load_state_dict(self, state: Mapping[str, WeightTable]) -> None:
        for idx, table in enumerate(self.weights):
            key = f"W{idx}"
            if key not in state:
                raise KeyError(f"Missing weight {key} in state dict")
            incoming = np.asarray(state[key], dtype=object)
            if incoming.shape != table.shape:
                raise ContractViolation(
                    f"{key} has shape {incoming.shape}, expected {table.shape}"
                )
            loaded = np.empty(table.shape, dtype=object)
            for index, value in np.ndenumerate(incoming):
                loaded[index] = to_decimal(value)
            self.weights[idx] = loaded

    def set_weight(self, layer: int, source: int, destination: int, value: Number) -> None:
        self.weights[layer][source, destination] = to_decimal(value)

    def weight(self, layer: int, source: int, destination: int) -> Decimal:
        return self.weights[layer][source, destination]


__all__ = ["INIT_HIGH", "INIT_LOW", "NeuralNetwork"]
