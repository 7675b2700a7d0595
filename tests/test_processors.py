from __future__ import annotations

from pathlib import Path

import pytest

from catalog_builders import (
    OfferBuilder,
    ec2_offer,
    flat,
    lambda_offer,
    rds_offer,
    s3_offer,
    tiered,
    vpc_offer,
)
from pricing_atlas.catalog_stream import decode_catalog
from pricing_atlas.contracts import INFINITY, CanonicalUnit, PricingTier, SimpleRate
from pricing_atlas.errors import MissingComponent, SchemaViolation, TierContinuityViolation, UnmappableUnit
from pricing_atlas.normalize.engine import ComponentRule, ServiceProcessor
from pricing_atlas.normalize.filters import allow
from pricing_atlas.processors import PROCESSORS


def _normalize(tmp_path: Path, code: str, builder: OfferBuilder):
    path = builder.write(tmp_path / f"{code}.json")
    catalog = decode_catalog(path, service_code=code, region="us-east-1")
    return PROCESSORS[code].normalize(catalog)


def test_ec2_filters_and_components(tmp_path: Path) -> None:
    snapshot = _normalize(tmp_path, "AmazonEC2", ec2_offer(include_nano=True))
    assert snapshot.service == "ec2"
    assert snapshot.region == "us-east-1"
    assert snapshot.last_updated == "2024-05-01T00:00:00Z"
    instances = snapshot.components["instances"]
    assert list(instances) == ["t3.micro", "t3.nano"]
    assert instances["t3.micro"] == SimpleRate(rate=0.0104, unit=CanonicalUnit.HOUR)
    assert set(snapshot.components["ebs"]) == {"gp2", "gp3"}
    assert snapshot.components["snapshots"]["storage"].unit is CanonicalUnit.GB_MONTH
    assert snapshot.components["elasticIP"] == {"idle": SimpleRate(rate=0.005, unit=CanonicalUnit.HOUR)}
    assert [tier.up_to for tier in snapshot.components["dataTransfer"]["out"]] == [10240.0, 51200.0, INFINITY]


def test_s3_tiered_storage_and_transfer(tmp_path: Path) -> None:
    snapshot = _normalize(tmp_path, "AmazonS3", s3_offer())
    standard = snapshot.components["storage"]["standard"]
    assert [tier.up_to for tier in standard] == [51200.0, 512000.0, INFINITY]
    assert [tier.rate for tier in snapshot.components["storage"]["intelligentTiering"]] == [0.023, 0.022]
    glacier = snapshot.components["storage"]["glacier"]
    assert len(glacier) == 1 and glacier[0].is_terminal
    out = snapshot.components["dataTransfer"]["out"]
    assert [tier.rate for tier in out] == [0.09, 0.085, 0.07]
    assert snapshot.components["requests"]["tier2"].rate == pytest.approx(0.0000004)


def test_lambda_gb_seconds(tmp_path: Path) -> None:
    snapshot = _normalize(tmp_path, "AWSLambda", lambda_offer())
    compute = snapshot.components["compute"]
    assert set(compute) == {"arm", "x86"}
    assert all(tier.unit is CanonicalUnit.GB_SECOND for tier in compute["x86"])
    assert snapshot.components["requests"]["arm"].unit is CanonicalUnit.REQUEST
    storage = snapshot.components["duration"]["ephemeralStorage"]
    assert storage == SimpleRate(rate=0.0000000309, unit=CanonicalUnit.GB_SECOND)


def test_vpc_matches_usage_type_suffixes(tmp_path: Path) -> None:
    snapshot = _normalize(tmp_path, "AmazonVPC", vpc_offer())
    nat = snapshot.components["natGateway"]
    assert nat["hourly"] == SimpleRate(rate=0.045, unit=CanonicalUnit.HOUR)
    assert nat["dataProcessed"].unit is CanonicalUnit.GB
    endpoint = snapshot.components["endpoint"]
    assert isinstance(endpoint["hourly"], SimpleRate)
    assert isinstance(endpoint["dataProcessed"], list)


def test_vpc_without_nat_hourly_rate_fails_instead_of_defaulting(tmp_path: Path) -> None:
    with pytest.raises(MissingComponent) as exc_info:
        _normalize(tmp_path, "AmazonVPC", vpc_offer(nat_hourly=None))
    assert exc_info.value.service == "vpc"
    assert exc_info.value.path == "components.natGateway"


def test_rds_single_az_only(tmp_path: Path) -> None:
    snapshot = _normalize(tmp_path, "AmazonRDS", rds_offer())
    assert snapshot.components["mysql"]["db.t3.micro"].rate == pytest.approx(0.017)
    assert snapshot.components["postgresql"]["db.t3.micro"].rate == pytest.approx(0.018)
    assert set(snapshot.components["storage"]) == {"gp3"}


def test_unknown_unit_fails_normalization(tmp_path: Path) -> None:
    builder = ec2_offer()
    builder.add("EBSIO2", "Storage", {"volumeApiName": "io2", "regionCode": "us-east-1"}, flat("Foo-Bar", "0.1"))
    with pytest.raises(UnmappableUnit):
        _normalize(tmp_path, "AmazonEC2", builder)


def test_conflicting_duplicate_rates_are_ambiguous(tmp_path: Path) -> None:
    builder = ec2_offer()
    builder.add(
        "EBSGP3DUP",
        "Storage",
        {"volumeApiName": "gp3", "regionCode": "us-east-1"},
        flat("GB-Mo", "0.0900000000"),
    )
    with pytest.raises(SchemaViolation) as exc_info:
        _normalize(tmp_path, "AmazonEC2", builder)
    assert "ambiguous" in exc_info.value.message


def test_identical_duplicate_rates_are_accepted(tmp_path: Path) -> None:
    builder = ec2_offer()
    builder.add(
        "EBSGP3DUP",
        "Storage",
        {"volumeApiName": "gp3", "regionCode": "us-east-1"},
        flat("GB-Mo", "0.0800000000"),
    )
    snapshot = _normalize(tmp_path, "AmazonEC2", builder)
    assert snapshot.components["ebs"]["gp3"].rate == pytest.approx(0.08)


def test_unit_mismatch_is_a_schema_violation(tmp_path: Path) -> None:
    builder = ec2_offer()
    builder.add(
        "EBSST1",
        "Storage",
        {"volumeApiName": "st1", "regionCode": "us-east-1"},
        flat("Hrs", "0.045"),
    )
    with pytest.raises(SchemaViolation):
        _normalize(tmp_path, "AmazonEC2", builder)


def test_simple_rule_rejects_multiple_dimensions(tmp_path: Path) -> None:
    builder = ec2_offer()
    builder.add(
        "EBSSC1",
        "Storage",
        {"volumeApiName": "sc1", "regionCode": "us-east-1"},
        tiered("GB-Mo", ("0", "100", "0.02"), ("100", "Inf", "0.015")),
    )
    with pytest.raises(TierContinuityViolation):
        _normalize(tmp_path, "AmazonEC2", builder)


def test_processor_rejects_inconsistent_group_shapes() -> None:
    with pytest.raises(ValueError):
        ServiceProcessor(
            "broken",
            (
                ComponentRule(group="g", key_attribute="a"),
                ComponentRule(group="g", key_attribute="b", aliases={"x": "y"}),
            ),
        )
    with pytest.raises(ValueError):
        ServiceProcessor("empty", ())


def test_rule_entry_name_resolution() -> None:
    rule = ComponentRule(
        group="natGateway",
        key_attribute="usagetype",
        aliases={"NatGateway-Hours": "hourly"},
        suffix_match=True,
        filters=(allow("productFamily", "NAT Gateway"),),
    )
    assert rule.entry_name({"usagetype": "USE2-NatGateway-Hours"}) == "hourly"
    assert rule.entry_name({"usagetype": "NatGateway-Bytes"}) is None
    assert rule.entry_name({}) is None
    open_rule = ComponentRule(group="instances", key_attribute="instanceType")
    assert open_rule.entry_name({"instanceType": "m5.large"}) == "m5.large"


def test_processor_shape_reflects_rules() -> None:
    shape = PROCESSORS["AmazonVPC"].shape()
    assert set(shape) == {"endpoint", "natGateway"}
    assert shape["endpoint"].entries["dataProcessed"].tiered is True
    assert shape["endpoint"].entries["hourly"].tiered is False
    ec2_shape = PROCESSORS["AmazonEC2"].shape()
    assert ec2_shape["instances"].entries is None
    assert ec2_shape["instances"].default.unit is CanonicalUnit.HOUR


def test_tier_objects_in_output(tmp_path: Path) -> None:
    snapshot = _normalize(tmp_path, "AmazonS3", s3_offer())
    for tier in snapshot.components["storage"]["standard"]:
        assert isinstance(tier, PricingTier)


def test_ec2_without_elastic_ip_rate_fails(tmp_path: Path) -> None:
    builder = ec2_offer()
    del builder.products["EIPIDLE"]
    del builder.on_demand["EIPIDLE"]
    with pytest.raises(MissingComponent) as exc_info:
        _normalize(tmp_path, "AmazonEC2", builder)
    assert exc_info.value.path == "components.elasticIP"


def test_rule_outcome_counts_rejections_per_field(tmp_path: Path) -> None:
    path = ec2_offer().write(tmp_path / "AmazonEC2.json")
    catalog = decode_catalog(path, service_code="AmazonEC2", region="us-east-1")
    processor = PROCESSORS["AmazonEC2"]
    instances_rule, ebs_rule = processor.rules[0], processor.rules[1]

    entries: dict = {}
    outcome = processor.apply_rule(instances_rule, catalog, entries, {})
    assert outcome.matched == 1
    assert outcome.rejected_by == {"operatingSystem": 1, "productFamily": 5}
    assert outcome.rejected == 6
    assert list(entries) == ["t3.micro"]

    outcome = processor.apply_rule(ebs_rule, catalog, {}, {})
    assert outcome.matched == 2
    assert outcome.rejected_by == {"productFamily": 5}
