#!/usr/bin/env python3
"""Import the catalogue from a storefront JSON export.

Rows are upserted by their numeric ID; category chains are created as
needed. Running the same import twice changes nothing.

Usage:
    python scripts/import_catalogue.py csvjson.json
    python scripts/import_catalogue.py export.json --delete-missing
    python scripts/import_catalogue.py export.json --extra-chain "Thèmes > Halloween"

Environment:
    IMPORT_DELETE_MISSING=1          same as --delete-missing
    IMPORT_EXTRA_CATEGORY_CHAIN=...  same as --extra-chain
"""

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from storefront.catalog.importer import CatalogueImporter, ImportReport, parse_extra_chain
from storefront.infrastructure.config import settings
from storefront.infrastructure.database import Database
from storefront.infrastructure.log_config import configure_logging


def load_rows(path: Path) -> list[dict]:
    """Load the export rows.

    Raises:
        ValueError: If the file is not a JSON array.
    """
    with path.open(encoding="utf-8") as f:
        rows = json.load(f)
    if not isinstance(rows, list):
        raise ValueError(f"{path} must contain a JSON array of rows")
    return [row for row in rows if isinstance(row, dict)]


async def run_import(
    rows: list[dict],
    delete_missing: bool,
    extra_chain: list[str],
) -> ImportReport:
    """Import rows in one transaction."""
    database = Database(settings.database_url)
    try:
        if settings.create_tables_on_startup:
            await database.create_all()
        async with database.session() as session:
            importer = CatalogueImporter(
                session,
                locale=settings.slug_locale,
                extra_chain=extra_chain,
            )
            report = await importer.run(rows, delete_missing=delete_missing)
            await session.commit()
            return report
    finally:
        await database.dispose()


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Import the catalogue from a JSON export",
    )
    parser.add_argument(
        "file",
        nargs="?",
        default="csvjson.json",
        help="Path to the JSON export (default: csvjson.json)",
    )
    parser.add_argument(
        "--delete-missing",
        action="store_true",
        default=os.environ.get("IMPORT_DELETE_MISSING") == "1",
        help="Delete products whose ID is not in the file",
    )
    parser.add_argument(
        "--extra-chain",
        default=os.environ.get("IMPORT_EXTRA_CATEGORY_CHAIN", ""),
        help="Category chain added to every product, e.g. 'Thèmes > Halloween'",
    )

    args = parser.parse_args()
    configure_logging(settings)

    path = Path(args.file)
    if not path.exists():
        print(f"File not found: {path}")
        sys.exit(1)

    rows = load_rows(path)
    extra_chain = parse_extra_chain(args.extra_chain)

    print("=" * 60)
    print("Catalogue Import")
    print("=" * 60)
    print(f"File: {path} ({len(rows)} rows)")
    print(f"Delete missing: {args.delete_missing}")
    if extra_chain:
        print(f"Extra chain: {' > '.join(extra_chain)}")
    print()

    report = await run_import(rows, args.delete_missing, extra_chain)

    print(f"  ✓ Mapped: {report.mapped}")
    print(f"  ✓ Created: {report.created}")
    print(f"  ✓ Updated: {report.updated}")
    print(f"  ✓ Skipped: {report.skipped}")
    print(f"  ✓ Deleted: {report.deleted}")
    print(f"  ✓ Categories created: {len(report.categories_created)}")


if __name__ == "__main__":
    asyncio.run(main())
