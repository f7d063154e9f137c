"""Offline catalogue maintenance routines.

Used by the scripts in ``scripts/``; each routine works on one session and
leaves committing to the caller.
"""

from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.catalog.closure import closure_from_parents
from storefront.catalog.repository import CategoryRepository, ProductRepository

logger = structlog.get_logger()


async def recompute_all_closures(session: AsyncSession) -> int:
    """Re-derive every product's closure from its current leaf assignments.

    Returns:
        Number of products whose closure changed.
    """
    categories = CategoryRepository(session)
    products = ProductRepository(session)
    parent_of = await categories.get_parent_map()

    changed = 0
    for product in await products.iter_all():
        leaf_ids = product.category_ids
        closure_ids = closure_from_parents(leaf_ids, parent_of)
        if closure_ids != set(product.all_category_ids):
            products.set_categories(product, leaf_ids, closure_ids)
            changed += 1
    await session.flush()

    logger.info("Closures recomputed", products_changed=changed)
    return changed


@dataclass
class MergeResult:
    """Outcome of merging one category into another."""

    from_path: str
    to_path: str
    merged: bool
    products_updated: int = 0


async def merge_categories(session: AsyncSession, from_path: str, to_path: str) -> MergeResult:
    """Merge the category at ``from_path`` into the one at ``to_path``.

    Products assigned to the source are re-pointed to the target, their
    closures are recomputed, the source id is pulled from every product
    and the source category is deleted. A rule whose source or target is
    missing, or whose source still has children, is skipped.

    Args:
        session: Async SQLAlchemy session.
        from_path: Full path of the category to remove.
        to_path: Full path of the category that replaces it.

    Returns:
        What was done.
    """
    categories = CategoryRepository(session)
    products = ProductRepository(session)

    source = await categories.get_by_full_path(from_path)
    target = await categories.get_by_full_path(to_path)
    if source is None or target is None or source.id == target.id:
        logger.warning("Skipping category merge", from_path=from_path, to_path=to_path)
        return MergeResult(from_path=from_path, to_path=to_path, merged=False)

    if await categories.count_children(source.id):
        logger.warning("Skipping merge of a category with children", from_path=from_path)
        return MergeResult(from_path=from_path, to_path=to_path, merged=False)

    parent_of = await categories.get_parent_map()
    updated = 0
    for product in await products.find_by_leaf_category(source.id):
        leaf_ids = [target.id if cid == source.id else cid for cid in product.category_ids]
        leaf_ids = list(dict.fromkeys(leaf_ids))
        products.set_categories(product, leaf_ids, closure_from_parents(leaf_ids, parent_of))
        updated += 1
    await session.flush()

    source_id = source.id
    await products.pull_category(source_id)
    await categories.delete(source)

    logger.info(
        "Categories merged",
        from_path=from_path,
        to_path=to_path,
        products_updated=updated,
    )
    return MergeResult(from_path=from_path, to_path=to_path, merged=True, products_updated=updated)


async def prune_empty_categories(session: AsyncSession) -> list[str]:
    """Delete categories with no children and no product references.

    Deleting a leaf can leave its parent childless, so passes repeat until
    nothing more can be removed.

    Returns:
        Full paths of the deleted categories.
    """
    categories = CategoryRepository(session)
    products = ProductRepository(session)

    deleted: list[str] = []
    while True:
        removed_this_pass = 0
        for category in await categories.find_childless():
            if await products.is_category_referenced(category.id):
                continue
            deleted.append(category.full_path)
            await categories.delete(category)
            removed_this_pass += 1
        if not removed_this_pass:
            break

    logger.info("Empty categories pruned", deleted=len(deleted))
    return deleted
