#!/usr/bin/env python3
"""Re-validate every service file in the published latest version."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from pricing_atlas.config import DEFAULT_OUTPUT_DIR, SERVICES_DIRNAME  # noqa: E402
from pricing_atlas.errors import PricingPipelineError  # noqa: E402
from pricing_atlas.latest import resolve_latest  # noqa: E402
from pricing_atlas.processors import PROCESSORS  # noqa: E402
from pricing_atlas.serialization import load_json  # noqa: E402
from pricing_atlas.validate import validate_service_pricing  # noqa: E402


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Validate the latest published pricing version")
    parser.add_argument("--output-dir", type=Path, default=DEFAULT_OUTPUT_DIR)
    args = parser.parse_args(argv)

    version_dir = resolve_latest(args.output_dir)
    if version_dir is None:
        print(f"No latest version under {args.output_dir}")
        return 1

    processors = {processor.slug: processor for processor in PROCESSORS.values()}
    failed = 0
    print(f"Latest version report: {version_dir.name}")
    print("=" * 80)
    for path in sorted((version_dir / SERVICES_DIRNAME).glob("*.json")):
        processor = processors.get(path.stem)
        if processor is None:
            failed += 1
            print(f"[FAIL] {path.stem}: no processor for this service")
            continue
        try:
            validate_service_pricing(load_json(path), processor)
        except PricingPipelineError as exc:
            failed += 1
            print(f"[FAIL] {path.stem}: {exc}")
            continue
        print(f"[OK] {path.stem}")

    print("-" * 80)
    print(f"failed_services={failed}")
    return 0 if failed == 0 else 2


if __name__ == "__main__":
    raise SystemExit(main())
