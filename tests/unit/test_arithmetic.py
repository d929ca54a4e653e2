from decimal import Decimal

import pytest

from decinets.core.arithmetic import DecimalArithmetic, to_decimal


def test_sigmoid_is_capped_at_five_significant_digits():
    ar = DecimalArithmetic()
    assert ar.sigmoid(Decimal(0)) == Decimal("0.5")
    assert ar.sigmoid(Decimal(1)) == Decimal("0.73106")
    assert ar.sigmoid(Decimal(-1)) == Decimal("0.26894")
    assert ar.sigmoid(Decimal(10)) == Decimal("0.99995")
    assert len(ar.sigmoid(Decimal("0.3")).as_tuple().digits) <= 5


def test_sigmoid_handles_large_magnitudes():
    ar = DecimalArithmetic()
    assert ar.sigmoid(Decimal(5000)) == Decimal(1)
    tiny = ar.sigmoid(Decimal(-5000))
    assert Decimal(0) < tiny < Decimal("1e-2000")


def test_sqrt_short_circuits_zero_and_rejects_negative():
    ar = DecimalArithmetic()
    assert ar.sqrt(Decimal(0)) == Decimal(0)
    assert ar.sqrt(Decimal("0E-40")) == Decimal(0)
    assert ar.sqrt(Decimal(16)) == Decimal(4)
    with pytest.raises(ValueError):
        ar.sqrt(Decimal(-1))


def test_root_sum_squares_and_min_max():
    ar = DecimalArithmetic()
    assert ar.root_sum_squares([Decimal(3), Decimal(-4)]) == Decimal(5)
    assert ar.root_sum_squares([]) == Decimal(0)
    assert ar.min(Decimal("0.1"), Decimal("-0.1")) == Decimal("-0.1")
    assert ar.max(Decimal("0.1"), Decimal("-0.1")) == Decimal("0.1")
    assert ar.argmax([Decimal("0.3"), Decimal("0.7"), Decimal("0.7")]) == 1
    assert ar.argmax([]) == -1


def test_working_precision_is_applied_to_every_operation():
    ar = DecimalArithmetic(precision=6)
    assert ar.div(Decimal(1), Decimal(3)) == Decimal("0.333333")
    assert ar.mul(Decimal("1.23456"), Decimal("1.00001")) == Decimal("1.23457")
    assert ar.add(Decimal("100000"), Decimal("0.4")) == Decimal("100000")


def test_to_decimal_uses_shortest_float_repr():
    assert to_decimal(0.2) == Decimal("0.2")
    assert to_decimal("1e-7") == Decimal("0.0000001")
    assert to_decimal(3) == Decimal(3)
    with pytest.raises(TypeError):
        to_decimal(True)


def test_invalid_precision_rejected():
    with pytest.raises(ValueError):
        DecimalArithmetic(precision=0)
    with pytest.raises(ValueError):
        DecimalArithmetic(activation_digits=0)
