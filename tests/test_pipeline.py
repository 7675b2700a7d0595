from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest
from jsonschema import Draft202012Validator

from catalog_builders import ec2_offer, file_registry, vpc_offer, write_default_offers
from pricing_atlas import PipelineConfig, ServiceState, run_pipeline
from pricing_atlas.errors import FetchFailure, MissingComponent, ParityMismatch
from pricing_atlas.latest import load_latest_document
from pricing_atlas.processors import PROCESSORS
from pricing_atlas.registry import ServiceDefinition, ServiceRegistry
from pricing_atlas.validate import build_service_schema


def _clock() -> datetime:
    return datetime(2024, 5, 2, 12, 0, tzinfo=timezone.utc)


def _config(root: Path) -> PipelineConfig:
    return PipelineConfig(raw_dir=root / "raw", output_dir=root / "output", process_workers=2)


def test_first_run_publishes_every_service(tmp_path: Path) -> None:
    paths = write_default_offers(tmp_path / "source")
    config = _config(tmp_path)
    result = run_pipeline(file_registry(paths), config, clock=_clock)

    assert result.version.version == "v1.0.0"
    assert set(result.states.values()) == {ServiceState.VERSIONED}
    assert result.manifest.downloaded == sorted(paths)

    services_dir = config.output_dir / "v1.0.0" / "services"
    assert sorted(path.name for path in services_dir.iterdir()) == [
        "ec2.json",
        "lambda.json",
        "rds.json",
        "s3.json",
        "vpc.json",
    ]
    for processor in PROCESSORS.values():
        document = json.loads((services_dir / f"{processor.slug}.json").read_text(encoding="utf-8"))
        validator = Draft202012Validator(build_service_schema(processor))
        errors = sorted(validator.iter_errors(document), key=lambda e: list(e.path))
        assert not errors
        assert document["version"] == "v1.0.0"
        assert document["lastUpdated"] == "2024-05-01T00:00:00Z"

    pointer = json.loads((config.output_dir / "latest.json").read_text(encoding="utf-8"))
    assert pointer == {"version": "v1.0.0"}
    assert (config.raw_dir / "download-manifest.json").exists()
    assert result.to_summary()["bump_reason"] == "new service"


def test_price_change_bumps_minor(tmp_path: Path) -> None:
    source = tmp_path / "source"
    config = _config(tmp_path)
    run_pipeline(file_registry(write_default_offers(source)), config, clock=_clock)

    paths = write_default_offers(source, AmazonEC2=ec2_offer(t3_micro_rate="0.0110000000"))
    result = run_pipeline(file_registry(paths), config, clock=_clock)

    assert result.version.version == "v1.1.0"
    cause = result.version.metadata.bump_cause
    assert cause.service == "ec2"
    assert cause.reason.startswith("Pricing change: components.instances")


def test_new_instance_type_bumps_major(tmp_path: Path) -> None:
    source = tmp_path / "source"
    config = _config(tmp_path)
    run_pipeline(file_registry(write_default_offers(source)), config, clock=_clock)

    paths = write_default_offers(source, AmazonEC2=ec2_offer(include_nano=True))
    result = run_pipeline(file_registry(paths), config, clock=_clock)
    assert result.version.version == "v2.0.0"


def test_publication_date_change_bumps_patch(tmp_path: Path) -> None:
    source = tmp_path / "source"
    config = _config(tmp_path)
    run_pipeline(file_registry(write_default_offers(source)), config, clock=_clock)

    paths = write_default_offers(source, AmazonVPC=vpc_offer(publication_date="2024-06-01T00:00:00Z"))
    result = run_pipeline(file_registry(paths), config, clock=_clock)
    assert result.version.version == "v1.0.1"
    report = (config.output_dir / "v1.0.1" / "DIFF_REPORT.md").read_text(encoding="utf-8")
    assert "lastUpdated" in report
    assert result.version.metadata.bump_cause.service == "vpc"


def test_identical_runs_produce_identical_files(tmp_path: Path) -> None:
    paths = write_default_offers(tmp_path / "source")
    first = _config(tmp_path / "one")
    second = _config(tmp_path / "two")
    run_pipeline(file_registry(paths), first, clock=_clock)
    run_pipeline(file_registry(paths), second, clock=_clock)
    for name in ("ec2", "s3", "lambda", "vpc", "rds"):
        left = (first.output_dir / "v1.0.0" / "services" / f"{name}.json").read_bytes()
        right = (second.output_dir / "v1.0.0" / "services" / f"{name}.json").read_bytes()
        assert left == right


def test_service_without_processor_fails_parity(tmp_path: Path) -> None:
    paths = write_default_offers(tmp_path / "source")
    config = _config(tmp_path)
    registry = file_registry(paths, omit_processor=["AmazonVPC"])

    with pytest.raises(ParityMismatch) as exc_info:
        run_pipeline(registry, config, clock=_clock)
    assert "fetched but not processed: AmazonVPC" in exc_info.value.details
    assert not (config.output_dir / "latest.json").exists()
    assert not (config.output_dir / "v1.0.0").exists()


def test_normalization_failure_aborts_the_run(tmp_path: Path) -> None:
    paths = write_default_offers(tmp_path / "source", AmazonVPC=vpc_offer(nat_hourly=None))
    config = _config(tmp_path)
    with pytest.raises(MissingComponent):
        run_pipeline(file_registry(paths), config, clock=_clock)
    assert not (config.output_dir / "latest.json").exists()


def test_fetch_failure_stops_before_normalization(tmp_path: Path) -> None:
    source = ec2_offer().write(tmp_path / "source" / "AmazonEC2.json")
    registry = ServiceRegistry(
        (
            ServiceDefinition(
                code="AmazonEC2", name="EC2", url=source.as_uri(), processor=PROCESSORS["AmazonEC2"]
            ),
            ServiceDefinition(
                code="AmazonS3",
                name="S3",
                url=(tmp_path / "absent.json").as_uri(),
                processor=PROCESSORS["AmazonS3"],
            ),
        )
    )
    config = _config(tmp_path)
    with pytest.raises(FetchFailure):
        run_pipeline(registry, config, clock=_clock)
    assert (config.raw_dir / "download-manifest.json").exists()
    assert not config.output_dir.exists()


def test_skip_fetch_reuses_downloaded_catalogs(tmp_path: Path) -> None:
    paths = write_default_offers(tmp_path / "source")
    config = _config(tmp_path)
    registry = file_registry(paths)
    run_pipeline(registry, config, clock=_clock)

    result = run_pipeline(registry, config, skip_fetch=True, clock=_clock)
    assert result.version.version == "v1.0.1"
    assert result.version.metadata.bump_cause.reason == "no changes"


def test_skip_fetch_requires_enabled_services_in_manifest(tmp_path: Path) -> None:
    paths = write_default_offers(tmp_path / "source")
    config = _config(tmp_path)
    run_pipeline(file_registry({"AmazonEC2": paths["AmazonEC2"]}), config, clock=_clock)
    with pytest.raises(FetchFailure):
        run_pipeline(file_registry(paths), config, skip_fetch=True, clock=_clock)


def test_subset_run_records_dropped_services_as_major(tmp_path: Path) -> None:
    paths = write_default_offers(tmp_path / "source")
    config = _config(tmp_path)
    run_pipeline(file_registry(paths), config, clock=_clock)

    result = run_pipeline(file_registry(paths).only(["AmazonEC2"]), config, clock=_clock)

    assert result.version.version == "v2.0.0"
    cause = result.version.metadata.bump_cause
    assert cause.service == "lambda"
    assert cause.reason == "service removed"
    assert result.version.metadata.services == ["ec2"]
    removed = [diff.service for diff in result.version.diffs if diff.is_removed_service]
    assert removed == ["lambda", "rds", "s3", "vpc"]

    report = (config.output_dir / "v2.0.0" / "DIFF_REPORT.md").read_text(encoding="utf-8")
    removed_section = report.split("## Removed Services", 1)[1]
    assert "- s3" in removed_section
    assert "None." not in removed_section
    assert load_latest_document(config.output_dir, "s3") is None
    assert load_latest_document(config.output_dir, "ec2") is not None
