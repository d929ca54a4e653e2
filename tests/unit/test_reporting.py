import csv
import json
from decimal import Decimal

import numpy as np

from decinets.core.types import Sample
from decinets.reporting.artifacts import write_manifest
from decinets.reporting.console import (
    ConsoleReporter,
    format_predictions,
    format_weights,
    render_digit,
)
from decinets.reporting.metrics import CsvSink, JsonlSink
from decinets.reporting.plots import PlotAdapter


def test_jsonl_and_csv_sinks(tmp_path):
    jsonl = JsonlSink(tmp_path / "m.jsonl", seed=3)
    table = CsvSink(tmp_path / "m.csv")
    for epoch in (1, 2):
        metrics = {"error": 1.0 / epoch, "accuracy": 0.5}
        jsonl.on_epoch(epoch, metrics)
        table.on_epoch(epoch, metrics)
    records = [json.loads(line) for line in (tmp_path / "m.jsonl").read_text().splitlines()]
    assert [r["epoch"] for r in records] == [1, 2]
    assert records[1]["error"] == 0.5 and records[0]["seed"] == 3
    with (tmp_path / "m.csv").open() as handle:
        rows = list(csv.DictReader(handle))
    assert len(rows) == 2 and rows[0]["split"] == "train"


def test_plot_adapter_headless(tmp_path):
    adapter = PlotAdapter(tmp_path, enable_plots=True)
    adapter.on_epoch(1, {"error": 1.0})
    adapter.on_epoch(2, {"error": 0.5})
    assert adapter.close() == tmp_path / "error.png"
    assert (tmp_path / "error.png").exists()


def test_plot_adapter_disabled(tmp_path):
    adapter = PlotAdapter(tmp_path / "off")
    adapter.on_epoch(1, {"error": 1.0})
    assert adapter.close() is None
    assert not (tmp_path / "off").exists()


def test_console_reporter_every(capsys):
    reporter = ConsoleReporter(every=2)
    for epoch in range(1, 5):
        reporter.on_epoch(epoch, {"error": 0.25, "accuracy": 1.0})
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert lines[0].split()[:2] == ["epoch", "2"]


def test_text_formatters():
    assert render_digit([Decimal("0.8"), Decimal("0.2")] * 2, width=2) == "#.\n#."
    sample = Sample.of(["0.2", "0.8"], ["0.8"])
    text = format_predictions([(sample, [Decimal("0.81")])])
    assert text == "[0.2, 0.8] -> [0.8] : [0.81]"
    classified = format_predictions(
        [(sample, [Decimal("0.1"), Decimal("0.9")])], classify=lambda out: 1
    )
    assert classified.endswith(": 1")
    table = np.array([[Decimal("0.1")], [Decimal("-0.2")]], dtype=object)
    rendered = format_weights([table])
    assert rendered.splitlines() == ["W0 1+bias -> 1", "     0: [0.1]", "  bias: [-0.2]"]


def test_manifest(tmp_path):
    path = write_manifest(
        tmp_path / "manifest.json",
        config={"train": {"seed": 1}},
        dataset_provenance={"name": "xor"},
        result={"state": "converged"},
    )
    payload = json.loads(open(path).read())
    assert payload["config"]["train"]["seed"] == 1
    assert payload["result"]["state"] == "converged"
