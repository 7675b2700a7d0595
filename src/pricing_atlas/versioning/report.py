"""Markdown diff report written into each version directory."""

from __future__ import annotations

import json
from typing import Any, Optional, Sequence

from pricing_atlas.contracts import BumpCause, ChangeRecord, ChangeType, DiffResult

MAX_CHANGES_PER_SECTION = 50
MAX_VALUE_CHARS = 80

_SECTIONS = (
    (ChangeType.SCHEMA, "Major Changes (Schema)"),
    (ChangeType.PRICING, "Minor Changes (Pricing)"),
    (ChangeType.METADATA, "Patch Changes (Metadata)"),
)


def _render_value(value: Any) -> str:
    if value is None:
        return "(absent)"
    text = json.dumps(value, sort_keys=True)
    if len(text) > MAX_VALUE_CHARS:
        text = text[: MAX_VALUE_CHARS - 3] + "..."
    return f"`{text}`"


def _render_change(change: ChangeRecord) -> str:
    if change.change_type is ChangeType.SCHEMA and change.old_value is None:
        return f"- `{change.path}` added: {_render_value(change.new_value)}"
    if change.change_type is ChangeType.SCHEMA and change.new_value is None:
        return f"- `{change.path}` removed (was {_render_value(change.old_value)})"
    return f"- `{change.path}`: {_render_value(change.old_value)} -> {_render_value(change.new_value)}"


def render_diff_report(
    *,
    version: str,
    previous_version: Optional[str],
    cause: BumpCause,
    diffs: Sequence[DiffResult],
) -> str:
    lines = [
        "# Pricing Diff Report",
        "",
        f"- Version: {version}",
        f"- Previous version: {previous_version or 'none'}",
        f"- Bump: {cause.bump_type.value} ({cause.service or 'all'}: {cause.reason})",
        "",
    ]

    for change_type, heading in _SECTIONS:
        lines.append(f"## {heading}")
        lines.append("")
        wrote_any = False
        for diff in diffs:
            changes = diff.changes_of(change_type)
            if not changes:
                continue
            wrote_any = True
            lines.append(f"### {diff.service}")
            lines.append("")
            lines.extend(_render_change(change) for change in changes[:MAX_CHANGES_PER_SECTION])
            hidden = len(changes) - MAX_CHANGES_PER_SECTION
            if hidden > 0:
                lines.append(f"- ... and {hidden} more")
            lines.append("")
        if not wrote_any:
            lines.append("None.")
            lines.append("")

    for heading, services in (
        ("New Services", [diff.service for diff in diffs if diff.is_new_service]),
        ("Removed Services", [diff.service for diff in diffs if diff.is_removed_service]),
    ):
        lines.append(f"## {heading}")
        lines.append("")
        if services:
            lines.extend(f"- {service}" for service in services)
        else:
            lines.append("None.")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"
