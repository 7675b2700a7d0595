"""Two-pass streaming decoder for raw AWS offer files.

Offer files run to several gigabytes, so nothing here loads a whole document.
Pass one walks ``products`` and keeps only the SKUs in the target region;
pass two walks ``terms.OnDemand`` and joins price dimensions onto those SKUs.
Memory is bounded by the retained SKU set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import ijson

from pricing_atlas.errors import CatalogDecodeError
from pricing_atlas.logging_config import get_logger
from pricing_atlas.normalize.regions import NON_REGIONAL_LOCATIONS, normalize_region

logger = get_logger(__name__)

_SCALAR_EVENTS = {"string", "number", "boolean", "null"}
_HEADER_KEYS = ("formatVersion", "offerCode", "version", "publicationDate")


@dataclass(frozen=True)
class PriceDimension:
    """One on-demand price dimension of a SKU."""

    rate_code: str
    unit: Optional[str]
    usd: Any
    begin_range: Optional[str] = None
    end_range: Optional[str] = None
    description: str = ""


@dataclass(frozen=True)
class RetainedSku:
    sku: str
    attributes: dict[str, str]
    dimensions: tuple[PriceDimension, ...] = ()


@dataclass
class DecodeStats:
    scanned: int = 0
    retained: int = 0
    skipped_region: int = 0
    missing_attributes: int = 0
    missing_terms: int = 0
    priced: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "scanned": self.scanned,
            "retained": self.retained,
            "skipped_region": self.skipped_region,
            "missing_attributes": self.missing_attributes,
            "missing_terms": self.missing_terms,
            "priced": self.priced,
        }


@dataclass(frozen=True)
class DecodedCatalog:
    """Region-scoped SKUs with their on-demand prices."""

    service_code: str
    region: str
    publication_date: str
    offer_code: Optional[str]
    skus: dict[str, RetainedSku]
    stats: DecodeStats = field(default_factory=DecodeStats)

    def __len__(self) -> int:
        return len(self.skus)

    def iter_skus(self) -> list[RetainedSku]:
        """SKUs in sorted order so every consumer sees a deterministic sequence."""
        return [self.skus[sku] for sku in sorted(self.skus)]


def read_header(path: Path) -> dict[str, str]:
    """Top-level scalar fields preceding the first nested container."""
    header: dict[str, str] = {}
    with path.open("rb") as handle:
        for prefix, event, value in ijson.parse(handle):
            if not prefix:
                continue
            if event in ("start_map", "start_array"):
                break
            if event in _SCALAR_EVENTS and "." not in prefix and prefix in _HEADER_KEYS:
                header[prefix] = str(value)
    return header


def product_region(attributes: dict[str, str], *, service: str, sku: str) -> Optional[str]:
    """Region code for a product, or None when it is not regional."""
    for key in ("regionCode", "fromRegionCode"):
        value = attributes.get(key)
        if value:
            return str(value)
    location_type = attributes.get("locationType")
    if location_type and location_type != "AWS Region":
        return None
    for key in ("location", "fromLocation"):
        value = attributes.get(key)
        if not value:
            continue
        if value in NON_REGIONAL_LOCATIONS:
            return None
        return normalize_region(value, service=service, path=f"products.{sku}.attributes.{key}")
    return None


def _scan_products(
    path: Path, *, service: str, region: str, stats: DecodeStats
) -> dict[str, dict[str, str]]:
    retained: dict[str, dict[str, str]] = {}
    with path.open("rb") as handle:
        for sku, product in ijson.kvitems(handle, "products"):
            stats.scanned += 1
            attributes = product.get("attributes") if isinstance(product, dict) else None
            if not isinstance(attributes, dict) or not attributes:
                stats.missing_attributes += 1
                continue
            if product_region(attributes, service=service, sku=sku) != region:
                stats.skipped_region += 1
                continue
            merged = {key: str(value) for key, value in attributes.items()}
            family = product.get("productFamily")
            if family:
                merged["productFamily"] = str(family)
            retained[sku] = merged
    stats.retained = len(retained)
    return retained


def _dimensions_from_terms(terms: Any) -> list[PriceDimension]:
    dimensions: list[PriceDimension] = []
    if not isinstance(terms, dict):
        return dimensions
    for offer_code in sorted(terms):
        offer = terms[offer_code]
        price_dimensions = offer.get("priceDimensions") if isinstance(offer, dict) else None
        if not isinstance(price_dimensions, dict):
            continue
        for rate_code in sorted(price_dimensions):
            raw = price_dimensions[rate_code]
            if not isinstance(raw, dict):
                continue
            price = raw.get("pricePerUnit") or {}
            begin = raw.get("beginRange")
            end = raw.get("endRange")
            dimensions.append(
                PriceDimension(
                    rate_code=str(raw.get("rateCode") or rate_code),
                    unit=raw.get("unit"),
                    usd=price.get("USD") if isinstance(price, dict) else None,
                    begin_range=None if begin is None else str(begin),
                    end_range=None if end is None else str(end),
                    description=str(raw.get("description") or ""),
                )
            )
    return dimensions


def _join_terms(
    path: Path, retained: dict[str, dict[str, str]], *, stats: DecodeStats
) -> dict[str, RetainedSku]:
    joined: dict[str, RetainedSku] = {}
    with path.open("rb") as handle:
        for sku, terms in ijson.kvitems(handle, "terms.OnDemand", use_float=True):
            attributes = retained.get(sku)
            if attributes is None:
                continue
            dimensions = _dimensions_from_terms(terms)
            if not dimensions:
                continue
            joined[sku] = RetainedSku(sku=sku, attributes=attributes, dimensions=tuple(dimensions))
    stats.priced = len(joined)
    stats.missing_terms = len(retained) - len(joined)
    return joined


def decode_catalog(path: Path, *, service_code: str, region: str) -> DecodedCatalog:
    """Stream-decode ``path`` into the SKUs priced on demand in ``region``."""
    if not path.exists() or path.stat().st_size == 0:
        raise CatalogDecodeError(
            "raw catalog is missing or empty",
            service=service_code,
            path=str(path),
            expected="non-empty offer file",
            actual="missing" if not path.exists() else "0 bytes",
        )

    stats = DecodeStats()
    try:
        header = read_header(path)
        publication_date = header.get("publicationDate")
        if not publication_date:
            raise CatalogDecodeError(
                "offer file has no publicationDate before its product data",
                service=service_code,
                path="publicationDate",
                expected="ISO-8601 timestamp",
                actual=None,
            )

        retained = _scan_products(path, service=service_code, region=region, stats=stats)
        logger.info("decode.pass_one", service=service_code, region=region, **stats.to_dict())
        if not retained:
            raise CatalogDecodeError(
                f"no products retained for region {region}",
                service=service_code,
                path="products",
                expected=f"at least one product in {region}",
                actual=f"{stats.scanned} scanned, 0 retained",
                details=[
                    "the region is not offered for this service",
                    "the offer file shape changed (products/attributes)",
                    "region attributes are missing from every product",
                ],
            )

        skus = _join_terms(path, retained, stats=stats)
        logger.info(
            "decode.pass_two",
            service=service_code,
            priced=stats.priced,
            missing_terms=stats.missing_terms,
        )
        if not skus:
            raise CatalogDecodeError(
                "no retained product has on-demand pricing",
                service=service_code,
                path="terms.OnDemand",
                expected="on-demand terms for retained SKUs",
                actual=f"{stats.retained} retained, 0 priced",
                details=[
                    "the offer file shape changed (terms.OnDemand)",
                    "the retained SKUs are reserved-only offerings",
                ],
            )
    except ijson.JSONError as exc:
        raise CatalogDecodeError(
            f"offer file is not valid JSON: {exc}",
            service=service_code,
            path=str(path),
        ) from exc

    return DecodedCatalog(
        service_code=service_code,
        region=region,
        publication_date=publication_date,
        offer_code=header.get("offerCode"),
        skus=skus,
        stats=stats,
    )
