#!/usr/bin/env python3
"""Merge categories by full path.

Products assigned to the source category are moved to the target, their
closures are recomputed and the source category is deleted.

Usage:
    python scripts/merge_categories.py
    python scripts/merge_categories.py --rule mobilier/bancs=mobilier/assises
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from storefront.catalog.maintenance import MergeResult, merge_categories
from storefront.infrastructure.config import settings
from storefront.infrastructure.database import Database
from storefront.infrastructure.log_config import configure_logging

# from full path -> to full path
DEFAULT_RULES: list[tuple[str, str]] = [
    ("jupes-et-pendrillons", "scenique/rideaux-jupes-et-pendrillons"),
]


def parse_rule(value: str) -> tuple[str, str]:
    """Parse ``from=to`` into a pair of full paths."""
    source, sep, target = value.partition("=")
    if not sep or not source.strip() or not target.strip():
        raise argparse.ArgumentTypeError(f"expected FROM=TO, got {value!r}")
    return source.strip().strip("/"), target.strip().strip("/")


async def run_rules(rules: list[tuple[str, str]]) -> list[MergeResult]:
    """Apply every rule in one transaction."""
    database = Database(settings.database_url)
    results = []
    try:
        async with database.session() as session:
            for source, target in rules:
                results.append(await merge_categories(session, source, target))
            await session.commit()
    finally:
        await database.dispose()
    return results


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Merge categories by full path",
    )
    parser.add_argument(
        "--rule",
        action="append",
        type=parse_rule,
        dest="rules",
        help="Merge rule FROM=TO (repeatable; defaults to the built-in rules)",
    )
    args = parser.parse_args()
    configure_logging(settings)

    for result in await run_rules(args.rules or DEFAULT_RULES):
        if result.merged:
            print(f"  ✓ {result.from_path} -> {result.to_path}: {result.products_updated} products")
        else:
            print(f"  - skipped {result.from_path} -> {result.to_path}")


if __name__ == "__main__":
    asyncio.run(main())
