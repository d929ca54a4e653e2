"""Human-readable console output. Purely observational."""

from __future__ import annotations

from decimal import Decimal
from typing import Callable, Mapping, Sequence, TextIO

from ..core.types import Sample, WeightTable


def render_digit(
    inputs: Sequence[Decimal],
    *,
    width: int = 4,
    midpoint: Decimal = Decimal("0.5"),
) -> str:
    """Draw a flattened bitmap as ``#`` (above ``midpoint``) and ``.`` rows."""

    rows = []
    for start in range(0, len(inputs), width):
        rows.append("".join("#" if v > midpoint else "." for v in inputs[start : start + width]))
    return "\n".join(rows)


def _plain(values: Sequence[Decimal]) -> str:
    return "[" + ", ".join(str(v) for v in values) + "]"


def format_predictions(
    rows: Sequence[tuple[Sample, Sequence[Decimal]]],
    *,
    classify: Callable[[Sequence[Decimal]], object] | None = None,
) -> str:
    """One line per sample: inputs, targets and outputs (or predicted class)."""

    lines = []
    for sample, outputs in rows:
        shown = classify(outputs) if classify is not None else _plain(outputs)
        lines.append(f"{_plain(sample.inputs)} -> {_plain(sample.targets)} : {shown}")
    return "\n".join(lines)


def format_weights(weights: Sequence[WeightTable]) -> str:
    """Weight tables, one block per layer transition; the bias row is last."""

    blocks = []
    for idx, table in enumerate(weights):
        lines = [f"W{idx} {table.shape[0] - 1}+bias -> {table.shape[1]}"]
        for row in range(table.shape[0]):
            label = "bias" if row == table.shape[0] - 1 else f"{row:>4}"
            lines.append(f"  {label}: " + _plain(list(table[row])))
        blocks.append("\n".join(lines))
    return "\n".join(blocks)


class ConsoleReporter:
    """Print ``epoch error`` every ``every`` epochs."""

    def __init__(self, every: int = 1, stream: TextIO | None = None) -> None:
        self.every = max(1, int(every))
        self.stream = stream

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if epoch % self.every:
            return
        print(
            f"epoch {epoch:>6}  error {metrics.get('error', 0.0):.10g}"
            f"  accuracy {metrics.get('accuracy', 0.0):.3f}",
            file=self.stream,
        )

    __call__ = on_epoch
