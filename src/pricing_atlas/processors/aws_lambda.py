"""Lambda: duration (GB-seconds) and requests for x86 and arm, plus ephemeral storage."""

from __future__ import annotations

from pricing_atlas.contracts import CanonicalUnit
from pricing_atlas.normalize.engine import ComponentRule, ServiceProcessor
from pricing_atlas.normalize.filters import allow

SERVERLESS = (allow("productFamily", "Serverless"),)

PROCESSOR = ServiceProcessor(
    "lambda",
    (
        ComponentRule(
            group="compute",
            key_attribute="group",
            filters=SERVERLESS,
            aliases={"AWS-Lambda-Duration": "x86", "AWS-Lambda-Duration-ARM": "arm"},
            tiered=True,
            unit=CanonicalUnit.GB_SECOND,
            required=("x86", "arm"),
        ),
        ComponentRule(
            group="requests",
            key_attribute="group",
            filters=SERVERLESS,
            aliases={"AWS-Lambda-Requests": "x86", "AWS-Lambda-Requests-ARM": "arm"},
            unit=CanonicalUnit.REQUEST,
            required=("x86", "arm"),
        ),
        ComponentRule(
            group="duration",
            key_attribute="usagetype",
            filters=SERVERLESS,
            aliases={"Lambda-Storage-GB-Second": "ephemeralStorage"},
            suffix_match=True,
            unit=CanonicalUnit.GB_SECOND,
            required=("ephemeralStorage",),
        ),
    ),
)
