"""
Quote Racer CLI

Usage:
    python -m quoteracer                 # print one quote
    python -m quoteracer --timeout 1500  # tighter deadline
    python -m quoteracer --json          # machine-readable result
    python -m quoteracer --rate 5        # rate the quote just printed
    python -m quoteracer --stats         # registry and cache statistics
"""

from __future__ import annotations
from dataclasses import replace
from pathlib import Path
from typing import List, Optional
import argparse
import json
import logging
import sys

from .engine import create_engine
from .labels import format_source_label
from .ratings import MAX_RATING, MIN_RATING
from .settings import EngineConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='quoteracer',
        description="Fetch a quote from the fastest responding source",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        '--timeout', '-t',
        type=int,
        default=None,
        help='Race deadline in milliseconds (default: QUOTE_RACER_TIMEOUT_MS or 5000)'
    )

    parser.add_argument(
        '--sources', '-s',
        default=None,
        help='Path to a sources.json registry'
    )

    parser.add_argument(
        '--json',
        action='store_true',
        help='Print the result as JSON'
    )

    parser.add_argument(
        '--rate', '-r',
        type=int,
        choices=range(MIN_RATING, MAX_RATING + 1),
        metavar=f'{MIN_RATING}-{MAX_RATING}',
        help='Store a rating for the fetched quote'
    )

    parser.add_argument(
        '--stats',
        action='store_true',
        help='Print registry and cache statistics and exit'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Debug logging'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    config = EngineConfig.from_env()
    if args.sources:
        sources_path = Path(args.sources)
        if not sources_path.exists():
            print(f"Error: sources file not found at {args.sources}", file=sys.stderr)
            return 1
        config = replace(config, sources_path=sources_path)

    engine = create_engine(config)

    if args.stats:
        print(json.dumps(engine.get_stats(), indent=2))
        return 0

    result = engine.acquire_sync(args.timeout)

    if args.rate is not None:
        engine.ratings.save_rating(result.record.id, args.rate)

    if args.json:
        payload = result.to_dict()
        payload['rating'] = engine.ratings.get_rating(result.record.id)
        print(json.dumps(payload, indent=2))
        return 0

    print(f"\n  \"{result.text}\"")
    if result.author:
        print(f"      - {result.author}")
    label = format_source_label(result.provenance, engine.registry)
    print(f"\n  [{label}, {result.duration_ms:.0f}ms]")
    if args.rate is not None:
        print(f"  Rated {args.rate}/{MAX_RATING}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
