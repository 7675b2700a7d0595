"""RDS: Single-AZ MySQL and PostgreSQL instances, and general purpose storage."""

from __future__ import annotations

from pricing_atlas.contracts import CanonicalUnit
from pricing_atlas.normalize.engine import ComponentRule, ServiceProcessor
from pricing_atlas.normalize.filters import allow

SINGLE_AZ = allow("deploymentOption", "Single-AZ")


def _instances(group: str, engine: str) -> ComponentRule:
    return ComponentRule(
        group=group,
        key_attribute="instanceType",
        filters=(
            allow("productFamily", "Database Instance"),
            allow("databaseEngine", engine),
            SINGLE_AZ,
        ),
        unit=CanonicalUnit.HOUR,
    )


PROCESSOR = ServiceProcessor(
    "rds",
    (
        _instances("mysql", "MySQL"),
        _instances("postgresql", "PostgreSQL"),
        ComponentRule(
            group="storage",
            key_attribute="volumeType",
            filters=(
                allow("productFamily", "Database Storage"),
                allow("databaseEngine", "MySQL"),
                SINGLE_AZ,
            ),
            aliases={"General Purpose": "gp2", "General Purpose-GP3": "gp3"},
            unit=CanonicalUnit.GB_MONTH,
            required=("gp3",),
        ),
    ),
)
