"""JSON Schema for normalized service documents, derived from processor rules."""

from __future__ import annotations

from typing import Any

from jsonschema import Draft202012Validator

from pricing_atlas.config import CURRENCY
from pricing_atlas.contracts import INFINITY, VERSION_PATTERN, CanonicalUnit
from pricing_atlas.errors import SchemaViolation
from pricing_atlas.json_tree import child_path
from pricing_atlas.normalize.engine import EntryShape, ServiceProcessor

TIMESTAMP_PATTERN = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$"


def _unit_schema(unit: CanonicalUnit | None) -> dict[str, Any]:
    if unit is not None:
        return {"const": unit.value}
    return {"enum": [member.value for member in CanonicalUnit]}


def simple_rate_schema(unit: CanonicalUnit | None = None) -> dict[str, Any]:
    return {
        "type": "object",
        "additionalProperties": False,
        "required": ["rate", "unit"],
        "properties": {
            "rate": {"type": "number", "minimum": 0},
            "unit": _unit_schema(unit),
        },
    }


def tier_list_schema(unit: CanonicalUnit | None = None) -> dict[str, Any]:
    return {
        "type": "array",
        "minItems": 1,
        "items": {
            "type": "object",
            "additionalProperties": False,
            "required": ["upTo", "rate", "unit"],
            "properties": {
                "upTo": {
                    "oneOf": [
                        {"const": INFINITY},
                        {"type": "number", "exclusiveMinimum": 0},
                    ]
                },
                "rate": {"type": "number", "minimum": 0},
                "unit": _unit_schema(unit),
            },
        },
    }


def _entry_schema(shape: EntryShape) -> dict[str, Any]:
    return tier_list_schema(shape.unit) if shape.tiered else simple_rate_schema(shape.unit)


def build_service_schema(processor: ServiceProcessor) -> dict[str, Any]:
    """Closed Draft 2020-12 schema for one processor's output document."""
    required_by_group: dict[str, set[str]] = {}
    for rule in processor.rules:
        required_by_group.setdefault(rule.group, set()).update(rule.required)

    groups: dict[str, Any] = {}
    for group, shape in sorted(processor.shape().items()):
        if shape.entries is not None:
            groups[group] = {
                "type": "object",
                "minProperties": 1,
                "additionalProperties": False,
                "required": sorted(required_by_group.get(group, ())),
                "properties": {
                    name: _entry_schema(entry) for name, entry in sorted(shape.entries.items())
                },
            }
        else:
            groups[group] = {
                "type": "object",
                "minProperties": 1,
                "additionalProperties": _entry_schema(shape.default),
            }

    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "title": f"{processor.slug} normalized pricing",
        "type": "object",
        "additionalProperties": False,
        "required": ["service", "region", "currency", "version", "lastUpdated", "components"],
        "properties": {
            "service": {"const": processor.slug},
            "region": {"type": "string", "minLength": 1},
            "currency": {"const": CURRENCY},
            "version": {"type": "string", "pattern": VERSION_PATTERN},
            "lastUpdated": {"type": "string", "pattern": TIMESTAMP_PATTERN},
            "components": {
                "type": "object",
                "additionalProperties": False,
                "required": sorted(groups),
                "properties": groups,
            },
        },
    }


def validate_against_schema(document: Any, schema: dict[str, Any], *, service: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(document), key=lambda e: [str(part) for part in e.path])
    if not errors:
        return
    first = errors[0]
    location = ""
    for part in first.path:
        location = child_path(location, part)
    raise SchemaViolation(
        first.message,
        service=service,
        path=location or "$",
        expected=first.validator,
        actual=first.instance if not isinstance(first.instance, (dict, list)) else None,
        details=[f"{len(errors)} schema error(s) in total"],
    )
