"""Deny-by-default SKU attribute filters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence


@dataclass(frozen=True)
class SkuFilter:
    """Allow-list over one product attribute.

    A SKU passes only if ``field`` is present and its value is one of
    ``allowed_values``.
    """

    field: str
    allowed_values: tuple[str, ...]
    description: str = ""

    def accepts(self, attributes: Mapping[str, str]) -> bool:
        value = attributes.get(self.field)
        return value is not None and value in self.allowed_values


def allow(field: str, *values: str, description: str = "") -> SkuFilter:
    return SkuFilter(field=field, allowed_values=tuple(values), description=description)


def first_rejection(attributes: Mapping[str, str], filters: Sequence[SkuFilter]) -> SkuFilter | None:
    """The first filter that rejects ``attributes``, or None when all accept."""
    for sku_filter in filters:
        if not sku_filter.accepts(attributes):
            return sku_filter
    return None
