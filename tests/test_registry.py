from __future__ import annotations

import dataclasses

import pytest

from pricing_atlas.processors import PROCESSORS
from pricing_atlas.registry import ServiceDefinition, ServiceRegistry, build_default_registry


def test_default_registry_resolves_every_processor() -> None:
    registry = build_default_registry()
    assert registry.codes() == ["AmazonEC2", "AmazonS3", "AWSLambda", "AmazonVPC", "AmazonRDS"]
    for definition in registry:
        assert definition.processor is PROCESSORS[definition.code]
        assert definition.url == (
            f"https://pricing.us-east-1.amazonaws.com/offers/v1.0/aws/{definition.code}/current/index.json"
        )
    assert registry.get("AWSLambda").slug == "lambda"


def test_registry_is_immutable_and_rejects_duplicates() -> None:
    registry = build_default_registry()
    with pytest.raises(dataclasses.FrozenInstanceError):
        registry.definitions = ()  # type: ignore[misc]
    with pytest.raises(ValueError):
        ServiceRegistry(
            (
                ServiceDefinition(code="AmazonEC2", name="a", url="u"),
                ServiceDefinition(code="AmazonEC2", name="b", url="u"),
            )
        )


def test_missing_processor_is_allowed_at_construction() -> None:
    registry = build_default_registry({"AmazonEC2": PROCESSORS["AmazonEC2"]})
    assert registry.get("AmazonEC2").processor is not None
    assert registry.get("AmazonS3").processor is None
    assert registry.get("AmazonS3").slug is None


def test_only_disables_other_services() -> None:
    registry = build_default_registry().only(["AmazonS3"])
    assert registry.enabled_codes() == ["AmazonS3"]
    assert len(registry) == 5
    with pytest.raises(KeyError):
        build_default_registry().only(["AmazonDynamoDB"])
    with pytest.raises(KeyError):
        build_default_registry().get("AmazonDynamoDB")
