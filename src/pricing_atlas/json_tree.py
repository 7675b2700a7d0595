"""Typed view over decoded JSON values.

Every value is exactly one of three node kinds. Walkers dispatch on the kind
instead of probing attributes, and ``assert_never`` keeps the dispatch
exhaustive.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Iterator, NoReturn

_PLAIN_KEY = re.compile(r"^[A-Za-z_][A-Za-z0-9_\-]*$")


class NodeKind(str, Enum):
    OBJECT = "object"
    ARRAY = "array"
    LEAF = "leaf"


def kind_of(value: Any) -> NodeKind:
    if isinstance(value, dict):
        return NodeKind.OBJECT
    if isinstance(value, (list, tuple)):
        return NodeKind.ARRAY
    return NodeKind.LEAF


def json_type(value: Any) -> str:
    """JSON type name; bool is checked before int since bool subclasses int."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    raise TypeError(f"not a JSON value: {type(value).__name__}")


def is_number(value: Any) -> bool:
    return json_type(value) == "number"


def child_path(parent: str, key: Any) -> str:
    """Append an object key or array index to a dotted path."""
    if isinstance(key, int):
        return f"{parent}[{key}]"
    text = str(key)
    if _PLAIN_KEY.match(text):
        return f"{parent}.{text}" if parent else text
    return f'{parent}["{text}"]'


def children(value: Any) -> Iterator[tuple[Any, Any]]:
    kind = kind_of(value)
    if kind is NodeKind.OBJECT:
        yield from value.items()
    elif kind is NodeKind.ARRAY:
        yield from enumerate(value)
    elif kind is NodeKind.LEAF:
        return
    else:
        assert_never(kind)


def walk(value: Any, path: str = "") -> Iterator[tuple[str, NodeKind, Any]]:
    """Pre-order traversal yielding ``(path, kind, value)`` for every node."""
    kind = kind_of(value)
    yield path, kind, value
    for key, child in children(value):
        yield from walk(child, child_path(path, key))


def assert_never(value: NoReturn) -> NoReturn:
    raise AssertionError(f"unhandled node kind: {value!r}")
