#!/usr/bin/env python3
"""Delete categories with no children and no products.

Usage:
    python scripts/prune_empty_categories.py
    python scripts/prune_empty_categories.py --dry-run
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from storefront.catalog.maintenance import prune_empty_categories
from storefront.infrastructure.config import settings
from storefront.infrastructure.database import Database
from storefront.infrastructure.log_config import configure_logging


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Delete categories with no children and no products",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be deleted and roll back",
    )
    args = parser.parse_args()
    configure_logging(settings)

    database = Database(settings.database_url)
    try:
        async with database.session() as session:
            deleted = await prune_empty_categories(session)
            if args.dry_run:
                await session.rollback()
            else:
                await session.commit()
    finally:
        await database.dispose()

    verb = "Would delete" if args.dry_run else "Deleted"
    for full_path in deleted:
        print(f"  - {full_path}")
    print(f"{verb}: {len(deleted)} categories")


if __name__ == "__main__":
    asyncio.run(main())
