"""Rule-driven normalization of decoded catalogs.

A service processor is a fixed list of ``ComponentRule`` values. Each rule
selects SKUs with allow-list filters, names the output entry from one
attribute, and prices it either as a single rate or as a tier list. Nothing
is ever defaulted: a rule that matches no SKU, or misses a required entry,
fails the run.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Mapping, Optional, Union

from pydantic import ValidationError

from pricing_atlas.catalog_stream import DecodedCatalog, RetainedSku
from pricing_atlas.contracts import CanonicalUnit, NormalizedServicePricing, PricingTier, SimpleRate
from pricing_atlas.errors import MissingComponent, SchemaViolation, TierContinuityViolation
from pricing_atlas.logging_config import get_logger
from pricing_atlas.normalize.filters import SkuFilter, first_rejection
from pricing_atlas.normalize.regions import assert_single_region
from pricing_atlas.normalize.tiers import expand_tiers
from pricing_atlas.normalize.units import map_unit, parse_price

logger = get_logger(__name__)

PricedEntry = Union[SimpleRate, list[PricingTier]]


@dataclass(frozen=True)
class EntryShape:
    """Declared output shape of one component entry."""

    tiered: bool
    unit: Optional[CanonicalUnit] = None


@dataclass(frozen=True)
class GroupShape:
    """Declared output shape of one component group.

    ``entries`` is set when the entry names form a closed set; otherwise every
    entry follows ``default``.
    """

    entries: Optional[dict[str, EntryShape]] = None
    default: Optional[EntryShape] = None


@dataclass(frozen=True)
class ComponentRule:
    """How one slice of a component group is derived from the catalog."""

    group: str
    key_attribute: str
    filters: tuple[SkuFilter, ...] = ()
    aliases: Mapping[str, str] = field(default_factory=dict)
    suffix_match: bool = False
    tiered: bool = False
    unit: Optional[CanonicalUnit] = None
    required: tuple[str, ...] = ()

    def entry_name(self, attributes: Mapping[str, str]) -> Optional[str]:
        value = attributes.get(self.key_attribute)
        if not value:
            return None
        if not self.aliases:
            return value
        if self.suffix_match:
            for suffix, name in self.aliases.items():
                if value.endswith(suffix):
                    return name
            return None
        return self.aliases.get(value)

    @property
    def entry_shape(self) -> EntryShape:
        return EntryShape(tiered=self.tiered, unit=self.unit)


@dataclass(frozen=True)
class RuleOutcome:
    matched: int
    rejected_by: dict[str, int]

    @property
    def rejected(self) -> int:
        return sum(self.rejected_by.values())


class ServiceProcessor:
    """Normalizes one service's decoded catalog into a pricing snapshot."""

    def __init__(self, slug: str, rules: tuple[ComponentRule, ...]) -> None:
        if not rules:
            raise ValueError(f"{slug}: processor needs at least one rule")
        self.slug = slug
        self.rules = rules
        self._shape = self._build_shape()

    def __repr__(self) -> str:
        return f"ServiceProcessor(slug={self.slug!r}, rules={len(self.rules)})"

    def _build_shape(self) -> dict[str, GroupShape]:
        grouped: dict[str, list[ComponentRule]] = {}
        for rule in self.rules:
            grouped.setdefault(rule.group, []).append(rule)

        shape: dict[str, GroupShape] = {}
        for group, rules in grouped.items():
            closed = [bool(rule.aliases) for rule in rules]
            if all(closed):
                entries: dict[str, EntryShape] = {}
                for rule in rules:
                    for name in rule.aliases.values():
                        existing = entries.get(name)
                        if existing is not None and existing != rule.entry_shape:
                            raise ValueError(f"{self.slug}.{group}.{name}: conflicting entry shapes")
                        entries[name] = rule.entry_shape
                shape[group] = GroupShape(entries=entries)
            elif any(closed):
                raise ValueError(f"{self.slug}.{group}: cannot mix aliased and open rules")
            else:
                shapes = {rule.entry_shape for rule in rules}
                if len(shapes) != 1:
                    raise ValueError(f"{self.slug}.{group}: open rules must share one shape")
                shape[group] = GroupShape(default=shapes.pop())
        return shape

    def shape(self) -> dict[str, GroupShape]:
        return dict(self._shape)

    def _price(self, rule: ComponentRule, sku: RetainedSku, path: str) -> PricedEntry:
        if rule.tiered:
            tiers = expand_tiers(sku.dimensions, service=self.slug, path=path)
            priced_unit = tiers[0].unit
            value: PricedEntry = tiers
        else:
            if len(sku.dimensions) != 1:
                raise TierContinuityViolation(
                    "simple rate has more than one price dimension",
                    service=self.slug,
                    path=path,
                    expected="exactly 1 dimension",
                    actual=f"{len(sku.dimensions)} dimensions on SKU {sku.sku}",
                )
            dimension = sku.dimensions[0]
            priced_unit = map_unit(dimension.unit, service=self.slug, path=f"{path}.unit")
            rate = parse_price(dimension.usd, service=self.slug, path=f"{path}.rate")
            value = SimpleRate(rate=rate, unit=priced_unit)

        if rule.unit is not None and priced_unit != rule.unit:
            raise SchemaViolation(
                "entry is priced in an unexpected unit",
                service=self.slug,
                path=f"{path}.unit",
                expected=rule.unit.value,
                actual=priced_unit.value,
            )
        return value

    def apply_rule(
        self,
        rule: ComponentRule,
        catalog: DecodedCatalog,
        entries: dict[str, PricedEntry],
        sources: dict[str, str],
    ) -> RuleOutcome:
        """Price every SKU the rule selects into ``entries``.

        Rejections are counted per filter field, or per key attribute when a
        SKU passes the filters but names no entry.
        """
        matched = 0
        rejected_by: Counter[str] = Counter()
        for sku in catalog.iter_skus():
            rejection = first_rejection(sku.attributes, rule.filters)
            if rejection is not None:
                rejected_by[rejection.field] += 1
                continue
            name = rule.entry_name(sku.attributes)
            if name is None:
                rejected_by[rule.key_attribute] += 1
                continue
            path = f"components.{rule.group}.{name}"
            value = self._price(rule, sku, path)
            existing = entries.get(name)
            if existing is not None and existing != value:
                raise SchemaViolation(
                    "ambiguous rate: two SKUs price the same entry differently",
                    service=self.slug,
                    path=path,
                    expected=f"SKU {sources[name]} pricing",
                    actual=f"SKU {sku.sku} pricing",
                )
            entries[name] = value
            sources.setdefault(name, sku.sku)
            matched += 1
        return RuleOutcome(matched=matched, rejected_by=dict(sorted(rejected_by.items())))

    def normalize(self, catalog: DecodedCatalog) -> NormalizedServicePricing:
        grouped: dict[str, dict[str, PricedEntry]] = {}
        sources: dict[str, dict[str, str]] = {}
        for rule in self.rules:
            entries = grouped.setdefault(rule.group, {})
            outcome = self.apply_rule(rule, catalog, entries, sources.setdefault(rule.group, {}))
            logger.debug(
                "normalize.rule",
                service=self.slug,
                group=rule.group,
                matched=outcome.matched,
                rejected=outcome.rejected,
                rejected_by=outcome.rejected_by,
            )
            missing = [name for name in rule.required if name not in entries]
            if outcome.matched == 0 or missing:
                raise MissingComponent(
                    f"component {rule.group!r} has no confidently derived rate",
                    service=self.slug,
                    path=f"components.{rule.group}",
                    expected=list(rule.required) or "at least one matching SKU",
                    actual=f"missing {missing}" if missing else "no SKU matched",
                )

        components = {
            group: {name: entries[name] for name in sorted(entries)}
            for group, entries in sorted(grouped.items())
        }
        for group, entries in components.items():
            logger.info("normalize.component", service=self.slug, group=group, entries=len(entries))

        try:
            snapshot = NormalizedServicePricing(
                service=self.slug,
                region=catalog.region,
                lastUpdated=catalog.publication_date,
                components=components,
            )
        except ValidationError as exc:
            first = exc.errors()[0]
            raise SchemaViolation(
                first["msg"],
                service=self.slug,
                path=".".join(str(part) for part in first["loc"]),
            ) from exc
        assert_single_region(snapshot.region, catalog.region, service=self.slug)
        return snapshot
