"""Catalogue import from a storefront JSON export.

Each row of the export is a flat dict keyed by the export's French column
headers. Rows are upserted by their numeric ``ID`` and their category
chains are resolved (and created when missing) through the category
service, so importing the same file twice is a no-op.
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.catalog.closure import CategoryClosureBuilder
from storefront.catalog.models import Product
from storefront.catalog.repository import ProductRepository
from storefront.catalog.service import CategoryService
from storefront.domain.exceptions import InvalidCategoryNameError

logger = structlog.get_logger()

# Separators accepted inside one chain: "Mobilier > Chaises", "A / B", "A \ B"
_HIERARCHY_SPLIT = re.compile(r"[>/\\]+")
_IMAGE_SPLIT = re.compile(r"\s*,\s*")

# Export column -> product attribute, for plain string fields
_TEXT_COLUMNS = {
    "Description courte": "short_description",
    "Description": "description",
    "Visibilité dans le catalogue": "visibility",
    "Statut fiscal": "tax_status",
    "Brands": "brand",
}
_DIMENSION_COLUMNS = {
    "Largeur (pouce)": "width_inches",
    "Hauteur (pouce)": "height_inches",
    "Longueur (pouce)": "length_inches",
    "Poids (livres)": "weight_lbs",
}


def parse_number(value: Any) -> Decimal | None:
    """Parse an export number, accepting a comma as decimal separator."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str) and value.strip():
        try:
            number = Decimal(value.strip().replace(",", "."))
        except InvalidOperation:
            return None
        return number if number.is_finite() else None
    return None


def split_images(value: Any) -> list[str]:
    """Split the comma separated ``Images`` column."""
    if not isinstance(value, str):
        return []
    return [url.strip() for url in _IMAGE_SPLIT.split(value) if url.strip()]


def parse_category_chains(value: Any) -> list[list[str]]:
    """Parse the ``Catégories`` column into name chains.

    Example:
        >>> parse_category_chains("Mobilier > Chaises, Thématique / Cirque")
        [['Mobilier', 'Chaises'], ['Thématique', 'Cirque']]
    """
    if not isinstance(value, str) or not value.strip():
        return []
    chains = []
    for chunk in value.split(","):
        names = [n.strip() for n in _HIERARCHY_SPLIT.split(chunk) if n.strip()]
        if names:
            chains.append(names)
    return chains


def parse_extra_chain(value: str | None) -> list[str]:
    """Parse an extra chain added to every row, e.g. ``"Parent > Enfant"``."""
    if not value or not value.strip():
        return []
    return [n.strip() for n in value.split(">") if n.strip()]


def is_published(value: Any) -> bool:
    """The export marks published rows with 1 (number or string)."""
    return value == 1 or value == "1"


def _optional_text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def map_row(row: dict[str, Any]) -> dict[str, Any] | None:
    """Map an export row to product fields.

    Returns:
        Field dict, or None when the row has no usable ID or name.
    """
    external_id = parse_number(row.get("ID"))
    name = row.get("Nom")
    if not external_id or not isinstance(name, str) or not name.strip():
        return None

    inventory = parse_number(row.get("Inventaire"))
    in_stock = parse_number(row.get("En inventaire?"))
    fields: dict[str, Any] = {
        "external_id": int(external_id),
        "name": name.strip(),
        "sku": _optional_text(row.get("UGS")),
        "regular_price": parse_number(row.get("Tarif régulier")),
        "sale_price": parse_number(row.get("Tarif promo")),
        "inventory": int(inventory) if inventory is not None else None,
        "is_in_stock": bool(in_stock),
        "published": is_published(row.get("Publié")),
        "images": split_images(row.get("Images")),
        "raw": row,
    }
    for column, attribute in {**_TEXT_COLUMNS, **_DIMENSION_COLUMNS}.items():
        fields[attribute] = _optional_text(row.get(column))
    return fields


@dataclass
class ImportReport:
    """Counters reported at the end of an import."""

    mapped: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    deleted: int = 0
    categories_created: list[str] = field(default_factory=list)


class CatalogueImporter:
    """Upserts export rows into the catalogue.

    Example usage:
        async with database.session() as session:
            importer = CatalogueImporter(session, extra_chain=["Halloween"])
            report = await importer.run(rows, delete_missing=True)
            await session.commit()
    """

    def __init__(
        self,
        session: AsyncSession,
        locale: str = "fr",
        extra_chain: Sequence[str] = (),
    ) -> None:
        """Initialize importer.

        Args:
            session: Async SQLAlchemy session.
            locale: Locale used for category slugs.
            extra_chain: Category chain added to every imported row.
        """
        self.session = session
        self.categories = CategoryService(session, locale=locale)
        self.products = ProductRepository(session)
        self.closure = CategoryClosureBuilder(self.categories.repository)
        self.extra_chain = list(extra_chain)

    async def run(self, rows: Sequence[dict[str, Any]], delete_missing: bool = False) -> ImportReport:
        """Import every row.

        Args:
            rows: Parsed JSON export.
            delete_missing: Delete products whose external id is not in ``rows``.

        Returns:
            Import counters.
        """
        report = ImportReport()
        seen: set[int] = set()

        for row in rows:
            fields = map_row(row)
            if fields is None:
                report.skipped += 1
                continue
            report.mapped += 1
            seen.add(fields["external_id"])
            await self.import_row(row, fields, report)

        if delete_missing:
            for product in await self.products.iter_all():
                if product.external_id not in seen:
                    await self.products.delete(product)
                    report.deleted += 1

        logger.info(
            "Catalogue imported",
            mapped=report.mapped,
            created=report.created,
            updated=report.updated,
            skipped=report.skipped,
            deleted=report.deleted,
            categories_created=len(report.categories_created),
        )
        return report

    async def import_row(
        self,
        row: dict[str, Any],
        fields: dict[str, Any],
        report: ImportReport,
    ) -> Product:
        """Upsert one mapped row and its category assignments."""
        chains = parse_category_chains(row.get("Catégories"))
        if self.extra_chain:
            chains.append(self.extra_chain)

        leaf_ids: list[str] = []
        for chain in chains:
            try:
                resolved = await self.categories.get_or_create_by_path(chain)
            except InvalidCategoryNameError:
                logger.warning(
                    "Skipping category chain without a usable name",
                    external_id=fields["external_id"],
                    chain=chain,
                )
                continue
            report.categories_created.extend(resolved.created)
            if resolved.leaf_id not in leaf_ids:
                leaf_ids.append(resolved.leaf_id)

        product = await self.products.get_by_external_id(fields["external_id"])
        if product is None:
            product = Product()
            report.created += 1
        else:
            report.updated += 1

        images = fields.pop("images")
        for attribute, value in fields.items():
            if value is not None:
                setattr(product, attribute, value)
        # Rows without images keep the ones already hosted
        if images:
            product.images = images

        if leaf_ids:
            # Resolved paths can be stale after shallow moves; walk parent links
            closure_ids = await self.closure.build(leaf_ids)
            self.products.set_categories(product, leaf_ids, closure_ids)
        await self.products.save(product)
        return product
