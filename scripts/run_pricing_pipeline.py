#!/usr/bin/env python3
"""Fetch, normalize, validate and version AWS pricing catalogs."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from pricing_atlas import PipelineConfig, build_default_registry, run_pipeline  # noqa: E402
from pricing_atlas.errors import PricingPipelineError  # noqa: E402
from pricing_atlas.logging_config import configure_logging  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the AWS pricing pipeline")
    parser.add_argument("--region", default=None, help="Target region code (default: us-east-1)")
    parser.add_argument("--raw-dir", type=Path, default=None, help="Directory for raw catalogs")
    parser.add_argument("--output-dir", type=Path, default=None, help="Directory for versions")
    parser.add_argument(
        "--services",
        nargs="*",
        default=None,
        help="Service codes to process (default: every enabled service). "
        "Services left out are recorded as removed from the new version.",
    )
    parser.add_argument(
        "--skip-fetch",
        action="store_true",
        help="Reuse catalogs and manifest already present in --raw-dir.",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = PipelineConfig.from_env()
        overrides = {
            key: value
            for key, value in (
                ("region", args.region),
                ("raw_dir", args.raw_dir),
                ("output_dir", args.output_dir),
            )
            if value is not None
        }
        config = replace(config, **overrides)
        registry = build_default_registry()
        if args.services:
            registry = registry.only(args.services)
    except (KeyError, ValueError) as exc:
        print(f"invalid configuration: {exc}", file=sys.stderr)
        return 2

    try:
        result = run_pipeline(registry, config, skip_fetch=args.skip_fetch)
    except PricingPipelineError as exc:
        print(exc.diagnostic(), file=sys.stderr)
        return 1

    print(json.dumps(result.to_summary(), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
