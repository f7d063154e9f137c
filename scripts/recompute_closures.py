#!/usr/bin/env python3
"""Recompute every product's category closure.

Re-derives ``all_category_ids`` from the leaf assignments and the current
category tree, e.g. after categories were moved.

Usage:
    python scripts/recompute_closures.py
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from storefront.catalog.maintenance import recompute_all_closures
from storefront.infrastructure.config import settings
from storefront.infrastructure.database import Database
from storefront.infrastructure.log_config import configure_logging


async def main() -> None:
    """Main entry point."""
    configure_logging(settings)
    database = Database(settings.database_url)
    try:
        async with database.session() as session:
            changed = await recompute_all_closures(session)
            await session.commit()
    finally:
        await database.dispose()

    print(f"Products updated: {changed}")


if __name__ == "__main__":
    asyncio.run(main())
