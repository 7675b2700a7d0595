from __future__ import annotations

import importlib.util
import json
from pathlib import Path
from types import ModuleType

import pytest

from catalog_builders import file_registry, vpc_offer, write_default_offers

SCRIPTS_DIR = Path(__file__).resolve().parents[1] / "scripts"


def _load_script(name: str) -> ModuleType:
    module_spec = importlib.util.spec_from_file_location(name, SCRIPTS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(module_spec)
    assert module_spec.loader is not None
    module_spec.loader.exec_module(module)
    return module


def _run(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, paths: dict[str, Path], *extra: str
) -> int:
    module = _load_script("run_pricing_pipeline")
    monkeypatch.setattr(module, "build_default_registry", lambda: file_registry(paths))
    return module.main(
        ["--raw-dir", str(tmp_path / "raw"), "--output-dir", str(tmp_path / "output"), *extra]
    )


def test_cli_success_prints_summary(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    paths = write_default_offers(tmp_path / "source")
    assert _run(monkeypatch, tmp_path, paths) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["version"] == "v1.0.0"
    assert summary["services"] == ["ec2", "lambda", "rds", "s3", "vpc"]


def test_cli_failure_prints_diagnostic_and_exits_non_zero(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    paths = write_default_offers(tmp_path / "source", AmazonVPC=vpc_offer(nat_hourly=None))
    assert _run(monkeypatch, tmp_path, paths) == 1
    err = capsys.readouterr().err
    assert "=== Missing pricing component ===" in err
    assert "service: vpc" in err
    assert "path: components.natGateway" in err


def test_cli_rejects_unknown_service(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    paths = write_default_offers(tmp_path / "source")
    assert _run(monkeypatch, tmp_path, paths, "--services", "AmazonDynamoDB") == 2


def test_validate_latest_output_script(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    paths = write_default_offers(tmp_path / "source")
    assert _run(monkeypatch, tmp_path, paths) == 0
    capsys.readouterr()

    module = _load_script("validate_latest_output")
    assert module.main(["--output-dir", str(tmp_path / "output")]) == 0
    assert "[OK] ec2" in capsys.readouterr().out

    (tmp_path / "output" / "v1.0.0" / "services" / "ec2.json").write_text(
        json.dumps({"service": "ec2"}), encoding="utf-8"
    )
    assert module.main(["--output-dir", str(tmp_path / "output")]) == 2
