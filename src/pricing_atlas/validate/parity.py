"""Fetched/processed parity gate."""

from __future__ import annotations

from typing import Iterable

from pricing_atlas.errors import ParityMismatch


def check_parity(fetched: Iterable[str], processed: Iterable[str]) -> None:
    """Raise unless the downloaded and validated service sets are equal."""
    fetched_set = set(fetched)
    processed_set = set(processed)
    fetched_only = sorted(fetched_set - processed_set)
    processed_only = sorted(processed_set - fetched_set)
    if not fetched_only and not processed_only:
        return

    details = [f"fetched but not processed: {code}" for code in fetched_only]
    details += [f"processed but not fetched: {code}" for code in processed_only]
    raise ParityMismatch(
        f"{len(fetched_only) + len(processed_only)} service(s) out of parity",
        expected=sorted(fetched_set),
        actual=sorted(processed_set),
        details=details,
    )
