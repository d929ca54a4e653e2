"""Command line entry point for decinets training scenarios."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable

from decinets.core.types import RunResult
from decinets.training import pipelines


def _format_result(result: RunResult) -> str:
    payload = {
        "state": result.state,
        "epochs": result.epochs,
        "error": result.error,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
    }
    if result.plot_path:
        payload["plot"] = result.plot_path
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=sorted(pipelines.presets().keys()),
        default="xor",
        help="Scenario to train",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument(
        "--digits-dir",
        type=Path,
        help="Directory of {label}{suffix}.bmp digit bitmaps (digits preset)",
    )
    parser.add_argument("--seed", type=int, help="Seed for weight initialisation")
    parser.add_argument("--max-epochs", type=int, help="Upper bound on training epochs")
    parser.add_argument("--time-limit", type=float, help="Wall-clock bound in seconds")
    parser.add_argument("--run-dir", type=Path, help="Directory for metrics and manifest")
    parser.add_argument(
        "--enable-plots", action="store_true", help="Write the error curve as PNG"
    )
    parser.add_argument(
        "--quiet", action="store_true", help="Only print the final JSON result"
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    return parser.parse_args(argv)


def resolve_config(args: argparse.Namespace) -> dict:
    config = pipelines.load_preset(args.preset)
    if args.config:
        override = pipelines.read_config_file(args.config)
        if pipelines.REQUIRED_SECTIONS <= set(override.keys()):
            config = override
        else:
            config = pipelines.merge(config, override)
    config = json.loads(json.dumps(config))

    train_cfg = config.setdefault("train", {})
    if args.digits_dir is not None:
        config.setdefault("data", {}).setdefault("options", {})["directory"] = str(
            args.digits_dir
        )
    if args.seed is not None:
        train_cfg["seed"] = int(args.seed)
    if args.max_epochs is not None:
        train_cfg["max_epochs"] = int(args.max_epochs)
    if args.time_limit is not None:
        train_cfg["time_limit"] = float(args.time_limit)
    if args.run_dir is not None:
        train_cfg["run_dir"] = str(args.run_dir)
    if args.enable_plots:
        train_cfg["enable_plots"] = True
    return config


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = resolve_config(args)

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config, verbose=not args.quiet)
    print(_format_result(result))


if __name__ == "__main__":
    main()
