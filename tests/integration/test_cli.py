import json
from pathlib import Path

import pytest

from cli.main import main


def _last_json(capsys):
    return json.loads(capsys.readouterr().out.strip().splitlines()[-1])


def test_cli_xor_preset(tmp_path, capsys):
    main(["--preset", "xor", "--max-epochs", "3", "--run-dir", str(tmp_path), "--quiet"])
    payload = _last_json(capsys)
    assert payload["state"] == "exhausted"
    assert payload["epochs"] == 3
    assert Path(payload["metrics"]).exists()
    assert (tmp_path / "manifest.json").exists()


def test_cli_digits_from_directory(tmp_path, capsys):
    from decinets.data.bitmap import write_glyph_fixture

    digits = write_glyph_fixture(tmp_path / "digits", variants=1)
    dump = tmp_path / "resolved.json"
    main(
        [
            "--preset", "digits",
            "--digits-dir", str(digits),
            "--max-epochs", "2",
            "--seed", "4",
            "--run-dir", str(tmp_path / "run"),
            "--dump-config", str(dump),
            "--quiet",
        ]
    )
    payload = _last_json(capsys)
    assert payload["epochs"] <= 2
    resolved = json.loads(dump.read_text())
    assert resolved["data"]["options"]["directory"] == str(digits)
    assert resolved["train"]["seed"] == 4
    manifest = json.loads((tmp_path / "run" / "manifest.json").read_text())
    assert manifest["dataset"]["training"] == 20


def test_cli_config_override(tmp_path, capsys):
    override = tmp_path / "cfg.yaml"
    override.write_text(f"train:\n  max_epochs: 2\n  run_dir: {tmp_path / 'run'}\n")
    main(["--config", str(override), "--quiet"])
    assert _last_json(capsys)["epochs"] == 2


def test_cli_list_presets(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--list-presets"])
    assert excinfo.value.code == 0
    assert capsys.readouterr().out.split() == ["digits", "xor"]
