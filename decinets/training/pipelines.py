"""Pipeline assembly: presets, config files and single training runs."""

from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Dict, Mapping, Sequence

from ..core.arithmetic import DecimalArithmetic
from ..core.network import NeuralNetwork
from ..core.types import RunResult, TrainingResult
from ..data import registry
from ..reporting.artifacts import write_manifest
from ..reporting.console import (
    ConsoleReporter,
    format_predictions,
    format_weights,
    render_digit,
)
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from .error_metrics import REGISTRY as METRIC_REGISTRY
from .trainer import Trainer, evaluate

_PRESETS: Dict[str, Mapping[str, object]] = {
    "xor": {
        "data": {"name": "xor", "options": {}},
        "model": {
            "topology": [2, 2, 1],
            "metric": "margin",
            "low": "0.2",
            "high": "0.8",
            "precision": 34,
            "activation_digits": 5,
        },
        "train": {
            "learning_rate": "0.5",
            "threshold": "1e-7",
            "max_epochs": 50000,
            "time_limit": None,
            "seed": 2,
            "run_dir": "runs/xor",
            "report_every": 1000,
            "enable_plots": False,
        },
    },
    "digits": {
        "data": {"name": "digits", "options": {"directory": None, "variants": 10}},
        "model": {
            "topology": [24, 10],
            "metric": "winner_take_all",
            "low": "0.2",
            "high": "0.8",
            "precision": 34,
            "activation_digits": 5,
        },
        "train": {
            "learning_rate": "10",
            "threshold": "0",
            "max_epochs": 2000,
            "time_limit": None,
            "seed": 0,
            "run_dir": "runs/digits",
            "report_every": 10,
            "enable_plots": False,
        },
    },
}

REQUIRED_SECTIONS = frozenset({"data", "model", "train"})


def presets() -> Mapping[str, Mapping[str, object]]:
    return {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}


def load_preset(name: str) -> Dict[str, object]:
    try:
        return deepcopy(_PRESETS[name])  # type: ignore[return-value]
    except KeyError as exc:
        available = ", ".join(sorted(_PRESETS))
        raise KeyError(f"Unknown preset {name!r}. Available presets: {available}") from exc


def read_config_file(path: str | Path) -> Dict[str, object]:
    """Load a JSON or YAML mapping."""

    path = Path(path)
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")
    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return dict(data)


def merge(base: Dict[str, object], override: Mapping[str, object]) -> Dict[str, object]:
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), Mapping):
            base[key] = merge(dict(base[key]), value)  # type: ignore[arg-type]
        else:
            base[key] = value
    return base


def build_network(model_cfg: Mapping[str, object], seed: int | None) -> NeuralNetwork:
    """Instantiate the network described by the ``model`` config section."""

    arithmetic = DecimalArithmetic(
        precision=int(model_cfg.get("precision", 34)),
        activation_digits=int(model_cfg.get("activation_digits", 5)),
    )
    metric = METRIC_REGISTRY.create(
        str(model_cfg.get("metric", "margin")),
        low=model_cfg.get("low"),  # type: ignore[arg-type]
        high=model_cfg.get("high"),  # type: ignore[arg-type]
    )
    topology = model_cfg.get("topology")
    if not isinstance(topology, Sequence) or isinstance(topology, str):
        raise ValueError("model.topology must be a list of layer sizes")
    return NeuralNetwork(
        topology=[int(size) for size in topology],
        metric=metric,
        arithmetic=arithmetic,
        seed=seed,
    )


def run_pipeline(config: Mapping[str, object], *, verbose: bool = True) -> RunResult:
    missing = REQUIRED_SECTIONS - set(config)
    if missing:
        raise KeyError(f"Config is missing required sections: {', '.join(sorted(missing))}")
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    options = dict(data_cfg.get("options") or {})
    for marker in ("low", "high"):
        if model_cfg.get(marker) is not None:
            options.setdefault(marker, model_cfg[marker])
    samples = registry.get(str(data_cfg["name"]), **options)

    seed = train_cfg.get("seed")
    seed = int(seed) if seed is not None else None
    network = build_network(model_cfg, seed)
    if samples.d_in != network.input_size:
        raise ValueError(
            f"dataset {samples.name!r} has {samples.d_in} inputs but the topology "
            f"expects {network.input_size}"
        )
    expected_targets = network.metric.target_length(network.output_size)
    if samples.d_target != expected_targets:
        raise ValueError(
            f"dataset {samples.name!r} has {samples.d_target} targets but metric "
            f"{network.metric.name!r} expects {expected_targets}"
        )

    run_dir = Path(str(train_cfg.get("run_dir", f"runs/{samples.name}")))
    run_dir.mkdir(parents=True, exist_ok=True)
    enable_plots = bool(train_cfg.get("enable_plots", False))
    plots = PlotAdapter(run_dir, enable_plots=enable_plots)
    callbacks: list[object] = [
        JsonlSink(run_dir / "metrics.jsonl", split="train", seed=seed),
        CsvSink(run_dir / "metrics.csv", split="train"),
        plots,
    ]
    if verbose:
        callbacks.append(ConsoleReporter(every=int(train_cfg.get("report_every", 1))))
        _print_startup_summary(
            dataset_name=samples.name,
            sizes=samples.sizes,
            topology=network.topology,
            metric=network.metric.name,
            arithmetic=network.arithmetic,
            param_count=network.parameter_count(),
        )

    time_limit = train_cfg.get("time_limit")
    trainer = Trainer(
        network,
        str(train_cfg.get("learning_rate", "0.5")),
        threshold=str(train_cfg.get("threshold", "0")),
        max_epochs=int(train_cfg.get("max_epochs", 1000)),
        time_limit=float(time_limit) if time_limit is not None else None,
        callbacks=callbacks,
    )
    result = trainer.run(samples.training, samples.control)
    plot_path = plots.close()

    if verbose:
        _print_outcome(network, result)

    summary = {
        "state": result.state.value,
        "epochs": result.epochs,
        "error": str(result.error),
    }
    manifest_path = write_manifest(
        run_dir / "manifest.json",
        config=json.loads(json.dumps(config, default=str)),
        dataset_provenance={"name": samples.name, **samples.provenance, **samples.sizes},
        result=summary,
    )
    return RunResult(
        state=result.state.value,
        epochs=result.epochs,
        error=str(result.error),
        run_dir=str(run_dir),
        metrics_path=str(run_dir / "metrics.jsonl"),
        manifest_path=manifest_path,
        plot_path=str(plot_path or ""),
    )


def _print_startup_summary(
    *,
    dataset_name: str,
    sizes: Mapping[str, int],
    topology: Sequence[int],
    metric: str,
    arithmetic: DecimalArithmetic,
    param_count: int,
) -> None:
    print("=== decinets run ===")
    print(f"Dataset       : {dataset_name} {dict(sizes)}")
    print(f"Topology      : {list(topology)}")
    print(f"Error metric  : {metric}")
    print(f"Precision     : {arithmetic.precision} (sigmoid {arithmetic.activation_digits})")
    print(f"Parameters    : {param_count}")
    print("====================")


def _print_outcome(network: NeuralNetwork, result: TrainingResult) -> None:
    print(f"{result.state.value} after {result.epochs} epochs, error {result.error}")
    rows = evaluate(network, result.training_set)
    if network.metric.target_length(network.output_size) == 1 and network.output_size > 1:
        for sample, _ in rows:
            print(render_digit(sample.inputs))
            print()
        print(format_predictions(rows, classify=network.arithmetic.argmax))
    else:
        print(format_predictions(rows))
    print(format_weights(network.weights))


__all__ = [
    "build_network",
    "load_preset",
    "merge",
    "presets",
    "read_config_file",
    "run_pipeline",
]
