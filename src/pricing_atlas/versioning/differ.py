"""Structural diff between the previous latest snapshot and a fresh one.

Classification at each changed node:
- key or index added/removed, or JSON type changed -> schema
- a whole service dropped from latest -> schema
- both sides numbers and different -> pricing
- any other differing leaf -> metadata

The top-level ``version`` field is assigned by the Versioner and never diffed.
"""

from __future__ import annotations

from typing import Any, Optional

from pricing_atlas.contracts import BumpType, ChangeRecord, ChangeType, DiffResult
from pricing_atlas.json_tree import NodeKind, assert_never, child_path, is_number, json_type, kind_of

EXCLUDED_TOP_LEVEL_KEYS = frozenset({"version"})
NEW_SERVICE_REASON = "new service"
REMOVED_SERVICE_REASON = "service removed"

_REASON_PREFIX = {
    ChangeType.SCHEMA: "Schema change",
    ChangeType.PRICING: "Pricing change",
    ChangeType.METADATA: "Metadata update",
}


def _record(
    changes: list[ChangeRecord],
    service: str,
    path: str,
    change_type: ChangeType,
    old: Any,
    new: Any,
) -> None:
    changes.append(
        ChangeRecord(service=service, path=path, changeType=change_type, oldValue=old, newValue=new)
    )


def _diff_node(old: Any, new: Any, path: str, service: str, changes: list[ChangeRecord]) -> None:
    if json_type(old) != json_type(new):
        _record(changes, service, path, ChangeType.SCHEMA, old, new)
        return

    kind = kind_of(old)
    if kind is NodeKind.OBJECT:
        for key in sorted(set(old) | set(new), key=str):
            if not path and key in EXCLUDED_TOP_LEVEL_KEYS:
                continue
            key_path = child_path(path, key)
            if key not in old:
                _record(changes, service, key_path, ChangeType.SCHEMA, None, new[key])
            elif key not in new:
                _record(changes, service, key_path, ChangeType.SCHEMA, old[key], None)
            else:
                _diff_node(old[key], new[key], key_path, service, changes)
    elif kind is NodeKind.ARRAY:
        for index in range(max(len(old), len(new))):
            index_path = child_path(path, index)
            if index >= len(old):
                _record(changes, service, index_path, ChangeType.SCHEMA, None, new[index])
            elif index >= len(new):
                _record(changes, service, index_path, ChangeType.SCHEMA, old[index], None)
            else:
                _diff_node(old[index], new[index], index_path, service, changes)
    elif kind is NodeKind.LEAF:
        if old == new:
            return
        change_type = ChangeType.PRICING if is_number(old) and is_number(new) else ChangeType.METADATA
        _record(changes, service, path, change_type, old, new)
    else:
        assert_never(kind)


def diff_documents(previous: Any, current: Any, *, service: str) -> list[ChangeRecord]:
    """Every changed leaf, in deterministic (sorted-key) traversal order."""
    changes: list[ChangeRecord] = []
    _diff_node(previous, current, "", service, changes)
    return changes


def classify_bump(changes: list[ChangeRecord]) -> tuple[BumpType, str]:
    """Highest-severity bump and a reason naming the first change that caused it."""
    for change_type in (ChangeType.SCHEMA, ChangeType.PRICING, ChangeType.METADATA):
        for change in changes:
            if change.change_type is change_type:
                return change_type.bump, f"{_REASON_PREFIX[change_type]}: {change.path}"
    return BumpType.PATCH, "no changes"


def diff_service(
    service: str, previous: Optional[dict[str, Any]], current: dict[str, Any]
) -> DiffResult:
    if previous is None:
        return DiffResult(
            service=service,
            bumpType=BumpType.MINOR,
            reason=NEW_SERVICE_REASON,
            isNewService=True,
        )
    changes = diff_documents(previous, current, service=service)
    bump_type, reason = classify_bump(changes)
    return DiffResult(service=service, bumpType=bump_type, reason=reason, changes=changes)


def diff_removed_service(service: str, previous: dict[str, Any]) -> DiffResult:
    """A service published in latest but absent from this run: a schema removal."""
    change = ChangeRecord(
        service=service,
        path="$",
        changeType=ChangeType.SCHEMA,
        oldValue=previous.get("version"),
        newValue=None,
    )
    return DiffResult(
        service=service,
        bumpType=ChangeType.SCHEMA.bump,
        reason=REMOVED_SERVICE_REASON,
        isRemovedService=True,
        changes=[change],
    )
