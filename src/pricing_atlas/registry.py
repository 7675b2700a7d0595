"""Service registry: the immutable set of services a run processes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from pricing_atlas.config import offer_url
from pricing_atlas.normalize.engine import ServiceProcessor


@dataclass(frozen=True)
class ServiceDefinition:
    """One AWS service offer and the strategy that normalizes it."""

    code: str
    name: str
    url: str
    processor: Optional[ServiceProcessor] = None
    enabled: bool = True

    @property
    def slug(self) -> Optional[str]:
        """Output file name stem, known only when a processor exists."""
        return self.processor.slug if self.processor is not None else None


@dataclass(frozen=True)
class ServiceRegistry:
    """Ordered, read-only collection of service definitions."""

    definitions: tuple[ServiceDefinition, ...]

    def __post_init__(self) -> None:
        codes = [definition.code for definition in self.definitions]
        duplicates = sorted({code for code in codes if codes.count(code) > 1})
        if duplicates:
            raise ValueError(f"duplicate service codes: {duplicates}")

    def __iter__(self):
        return iter(self.definitions)

    def __len__(self) -> int:
        return len(self.definitions)

    def enabled(self) -> list[ServiceDefinition]:
        return [definition for definition in self.definitions if definition.enabled]

    def enabled_codes(self) -> list[str]:
        return [definition.code for definition in self.enabled()]

    def codes(self) -> list[str]:
        return [definition.code for definition in self.definitions]

    def get(self, code: str) -> ServiceDefinition:
        for definition in self.definitions:
            if definition.code == code:
                return definition
        raise KeyError(f"Unknown service code '{code}'. Valid options: {self.codes()}")

    def only(self, codes: Iterable[str]) -> "ServiceRegistry":
        """Registry with every service outside ``codes`` disabled."""
        wanted = set(codes)
        unknown = sorted(wanted - set(self.codes()))
        if unknown:
            raise KeyError(f"Unknown service codes {unknown}. Valid options: {self.codes()}")
        return ServiceRegistry(
            tuple(
                ServiceDefinition(
                    code=definition.code,
                    name=definition.name,
                    url=definition.url,
                    processor=definition.processor,
                    enabled=definition.enabled and definition.code in wanted,
                )
                for definition in self.definitions
            )
        )


DEFAULT_SERVICES: tuple[tuple[str, str], ...] = (
    ("AmazonEC2", "Amazon Elastic Compute Cloud"),
    ("AmazonS3", "Amazon Simple Storage Service"),
    ("AWSLambda", "AWS Lambda"),
    ("AmazonVPC", "Amazon Virtual Private Cloud"),
    ("AmazonRDS", "Amazon Relational Database Service"),
)


def build_default_registry(
    processors: Optional[Mapping[str, ServiceProcessor]] = None,
) -> ServiceRegistry:
    """Registry of the default services with processors resolved up front.

    A service whose code has no processor in ``processors`` is still
    registered and fetched; the parity gate then fails the run for it.
    """
    if processors is None:
        from pricing_atlas.processors import PROCESSORS

        processors = PROCESSORS
    return ServiceRegistry(
        tuple(
            ServiceDefinition(code=code, name=name, url=offer_url(code), processor=processors.get(code))
            for code, name in DEFAULT_SERVICES
        )
    )
