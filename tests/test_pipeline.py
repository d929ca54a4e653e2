import json
from pathlib import Path

import pytest

from decinets.training import pipelines


def _xor_config(tmp_path, **train):
    config = pipelines.load_preset("xor")
    config["train"].update({"run_dir": str(tmp_path / "run"), "max_epochs": 4, **train})
    return config


def test_xor_pipeline_writes_artifacts(tmp_path):
    result = pipelines.run_pipeline(_xor_config(tmp_path), verbose=False)
    assert result.state == "exhausted"
    assert result.epochs == 4
    records = [json.loads(line) for line in Path(result.metrics_path).read_text().splitlines()]
    assert [r["epoch"] for r in records] == [1, 2, 3, 4]
    assert all("error" in r for r in records)
    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["config"]["model"]["topology"] == [2, 2, 1]
    assert manifest["dataset"]["name"] == "xor"
    assert manifest["result"]["epochs"] == 4
    assert (tmp_path / "run" / "metrics.csv").exists()


def test_pipeline_is_deterministic(tmp_path):
    first = pipelines.run_pipeline(_xor_config(tmp_path / "a", seed=5), verbose=False)
    second = pipelines.run_pipeline(_xor_config(tmp_path / "b", seed=5), verbose=False)
    strip = lambda path: [  # noqa: E731
        {k: v for k, v in json.loads(line).items()}
        for line in Path(path).read_text().splitlines()
    ]
    assert strip(first.metrics_path) == strip(second.metrics_path)
    assert first.error == second.error


def test_digits_pipeline_verbose_output(tmp_path, capsys):
    config = pipelines.load_preset("digits")
    config["data"]["options"]["variants"] = 0
    config["train"].update({"run_dir": str(tmp_path), "max_epochs": 2, "report_every": 1})
    result = pipelines.run_pipeline(config)
    out = capsys.readouterr().out
    assert "=== decinets run ===" in out
    assert "Topology      : [24, 10]" in out
    assert "W0 24+bias -> 10" in out
    assert result.state in {"converged", "exhausted"}


def test_mismatched_topology_rejected(tmp_path):
    config = _xor_config(tmp_path)
    config["model"]["topology"] = [3, 1]
    with pytest.raises(ValueError):
        pipelines.run_pipeline(config, verbose=False)


def test_missing_sections_and_unknown_presets():
    with pytest.raises(KeyError):
        pipelines.run_pipeline({"data": {}, "model": {}})
    with pytest.raises(KeyError):
        pipelines.load_preset("mnist")


def test_config_files_and_merge(tmp_path):
    yaml_path = tmp_path / "override.yaml"
    yaml_path.write_text("train:\n  max_epochs: 7\n  learning_rate: '0.25'\n")
    override = pipelines.read_config_file(yaml_path)
    merged = pipelines.merge(pipelines.load_preset("xor"), override)
    assert merged["train"]["max_epochs"] == 7
    assert merged["train"]["learning_rate"] == "0.25"
    assert merged["train"]["threshold"] == "1e-7"

    json_path = tmp_path / "override.json"
    json_path.write_text(json.dumps({"model": {"precision": 20}}))
    assert pipelines.read_config_file(json_path) == {"model": {"precision": 20}}
    with pytest.raises(ValueError):
        pipelines.read_config_file(tmp_path / "override.toml")


def test_build_network_from_model_section():
    net = pipelines.build_network(
        {"topology": [2, 3, 1], "metric": "margin", "precision": 20}, seed=1
    )
    assert net.topology == (2, 3, 1)
    assert net.arithmetic.precision == 20
    with pytest.raises(ValueError):
        pipelines.build_network({"topology": "2,1"}, seed=1)
