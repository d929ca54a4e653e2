"""Weight updates checked against a step-by-step reference computation."""

from decimal import Decimal

import numpy as np

from decinets.core.arithmetic import DecimalArithmetic
from decinets.core.network import NeuralNetwork
from decinets.training.error_metrics import MarginClamped

ONE = Decimal(1)


def test_single_layer_update_matches_hand_computation():
    ar = DecimalArithmetic()
    net = NeuralNetwork([2, 1], MarginClamped(), arithmetic=ar, seed=0)
    net.set_weight(0, 0, 0, "0.1")
    net.set_weight(0, 1, 0, "-0.2")
    net.set_weight(0, 2, 0, "0.05")
    x = [Decimal("0.2"), Decimal("0.8")]
    rate = Decimal("0.5")

    # pre-activation -0.09, sigmoid capped at five digits
    a = ar.sigmoid(Decimal("-0.09"))
    assert a == Decimal("0.47752")
    error = (Decimal("0.8") - a) + ONE
    slope = a * (ONE - a)

    returned = net.train(x, ["0.8"], rate)
    assert returned == [error]

    expected = [
        Decimal("0.1") + rate * error * slope * x[0],
        Decimal("-0.2") + rate * error * slope * x[1],
        Decimal("0.05") + rate * error * slope,
    ]
    tolerance = Decimal("1e-20")
    for row, value in enumerate(expected):
        assert abs(net.weight(0, row, 0) - value) < tolerance


def _reference_step(weights, activations, output_error, rate, ar):
    """Backward pass reading only the snapshot taken before the update."""

    updated = [table.copy() for table in weights]
    error = list(output_error)
    for idx in reversed(range(len(weights))):
        table = weights[idx]
        source = activations[idx]
        dest = activations[idx + 1]
        propagated = []
        for left in range(len(source)):
            total = Decimal(0)
            for right in range(len(dest)):
                total = ar.add(total, ar.mul(table[left, right], error[right]))
            propagated.append(total)
        for left in range(len(source) + 1):
            src = ONE if left == len(source) else source[left]
            for right in range(len(dest)):
                slope = ar.mul(dest[right], ar.sub(ONE, dest[right]))
                step = ar.mul(ar.mul(ar.mul(rate, error[right]), slope), src)
                updated[idx][left, right] = ar.add(table[left, right], step)
        error = propagated
    return updated


def test_hidden_layer_sees_pre_update_weights():
    ar = DecimalArithmetic()
    net = NeuralNetwork([2, 2, 1], MarginClamped(), arithmetic=ar, seed=11)
    inputs, targets, rate = ["0.8", "0.2"], ["0.8"], Decimal("0.5")

    before = [table.copy() for table in net.weights]
    net.forward(inputs)
    activations = [[n.activation for n in layer] for layer in net.neurons]
    output_error = net.compute_error(inputs, targets)
    assert any(e != 0 for e in output_error)

    expected = _reference_step(before, activations, output_error, rate, ar)
    net.train(inputs, targets, rate)
    for got, want in zip(net.weights, expected):
        assert np.array_equal(got, want)
