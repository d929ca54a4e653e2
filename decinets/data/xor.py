"""Four-sample XOR problem over the 0.2 / 0.8 class markers."""

from __future__ import annotations

from ..core.arithmetic import Number, to_decimal
from ..core.types import Sample
from .registry import SampleSet, register_dataset, split_control


def make_samples(low: Number = "0.2", high: Number = "0.8") -> tuple[Sample, ...]:
    lo, hi = to_decimal(low), to_decimal(high)
    return (
        Sample.of((lo, lo), (lo,)),
        Sample.of((lo, hi), (hi,)),
        Sample.of((hi, lo), (hi,)),
        Sample.of((hi, hi), (lo,)),
    )


def _factory(
    *,
    low: Number = "0.2",
    high: Number = "0.8",
    control_split: int | None = None,
    **_: object,
) -> SampleSet:
    training, control = split_control(make_samples(low, high), control_split)
    return SampleSet(
        name="xor",
        training=training,
        control=control,
        d_in=2,
        d_target=1,
        provenance={"type": "xor", "low": str(low), "high": str(high)},
    )


register_dataset("xor", _factory)

__all__ = ["make_samples"]
