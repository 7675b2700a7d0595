from __future__ import annotations

import pytest

from pricing_atlas.errors import UnmappableRegion
from pricing_atlas.normalize.regions import assert_single_region, normalize_region


def test_display_names_map_to_codes() -> None:
    assert normalize_region("US East (N. Virginia)") == "us-east-1"
    assert normalize_region("EU (Ireland)") == "eu-west-1"
    assert normalize_region("Europe (Ireland)") == "eu-west-1"


def test_region_codes_pass_through() -> None:
    assert normalize_region("ap-southeast-2") == "ap-southeast-2"
    assert normalize_region("us-gov-west-1") == "us-gov-west-1"


def test_unknown_display_name_is_fatal() -> None:
    with pytest.raises(UnmappableRegion) as exc_info:
        normalize_region("Moon Base (Tranquility)", service="vpc", path="products.X.attributes.location")
    assert exc_info.value.actual == "Moon Base (Tranquility)"


def test_assert_single_region() -> None:
    assert_single_region("us-east-1", "us-east-1")
    with pytest.raises(UnmappableRegion):
        assert_single_region("us-west-2", "us-east-1", service="ec2")
