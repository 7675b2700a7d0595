from __future__ import annotations

import math

import pytest

from pricing_atlas.contracts import CanonicalUnit
from pricing_atlas.errors import NumericAnomaly, UnmappableUnit
from pricing_atlas.normalize.units import UNIT_MAP, map_unit, parse_price


def test_map_unit_gb_month() -> None:
    assert map_unit("GB-Mo") is CanonicalUnit.GB_MONTH


@pytest.mark.parametrize(
    ("vendor_unit", "expected"),
    [
        ("Hrs", CanonicalUnit.HOUR),
        ("Requests", CanonicalUnit.REQUEST),
        ("Lambda-GB-Second", CanonicalUnit.GB_SECOND),
        ("1M Requests", CanonicalUnit.MILLION_REQUESTS),
        ("vCPU-Hours", CanonicalUnit.VCPU_HOUR),
        ("Each", CanonicalUnit.FLAT),
    ],
)
def test_map_unit_known_spellings(vendor_unit: str, expected: CanonicalUnit) -> None:
    assert map_unit(vendor_unit) is expected


def test_map_unit_unknown_is_fatal_and_lists_known_units() -> None:
    with pytest.raises(UnmappableUnit) as exc_info:
        map_unit("Foo-Bar", service="ec2", path="components.instances.x.unit")
    error = exc_info.value
    assert error.actual == "Foo-Bar"
    assert error.service == "ec2"
    assert "GB-Mo" in str(error.expected)
    assert "Unmappable unit" in error.diagnostic()


def test_map_unit_is_exact_match_only() -> None:
    with pytest.raises(UnmappableUnit):
        map_unit("HRS")
    with pytest.raises(UnmappableUnit):
        map_unit(" Hrs")
    with pytest.raises(UnmappableUnit):
        map_unit(None)


def test_every_mapped_unit_is_canonical() -> None:
    assert set(UNIT_MAP.values()) <= set(CanonicalUnit)


def test_parse_price_accepts_vendor_strings() -> None:
    assert parse_price("0.0104000000") == pytest.approx(0.0104)
    assert parse_price("0") == 0.0
    assert parse_price(0.5) == 0.5


@pytest.mark.parametrize("raw", ["", "abc", "-0.01", "NaN", "Infinity", None, True])
def test_parse_price_rejects_anomalies(raw: object) -> None:
    with pytest.raises(NumericAnomaly):
        parse_price(raw, service="s3", path="components.storage.standard[0].rate")


def test_parse_price_result_is_finite() -> None:
    assert math.isfinite(parse_price("123.45"))
