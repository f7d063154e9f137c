"""Category closure builder.

A product is tagged with "leaf" categories; filtering by any ancestor has
to find it too, so every product also stores the closure: its leaf ids
plus every ancestor of each, without duplicates.

The walk is iterative and tracks visited ids, so it terminates even if a
bad edit ever left a cycle in the parent links.
"""

from collections.abc import Iterable, Mapping

import structlog

from storefront.catalog.repository import CategoryRepository

logger = structlog.get_logger()


def closure_from_parents(
    leaf_ids: Iterable[str],
    parent_of: Mapping[str, str | None],
) -> set[str]:
    """Compute the closure of ``leaf_ids`` from an in-memory parent map.

    Args:
        leaf_ids: Directly assigned category ids.
        parent_of: ``{category_id: parent_id}`` for the whole tree.

    Returns:
        Leaf ids and all of their ancestors.
    """
    result: set[str] = set()
    for leaf_id in leaf_ids:
        current: str | None = leaf_id
        while current is not None and current not in result:
            result.add(current)
            current = parent_of.get(current)
    return result


class CategoryClosureBuilder:
    """Builds closures by walking parent links in the category store.

    Example usage:
        builder = CategoryClosureBuilder(CategoryRepository(session))
        all_ids = await builder.build({chairs.id, tables.id})
    """

    def __init__(self, categories: CategoryRepository) -> None:
        """Initialize builder.

        Args:
            categories: Repository used to look up parent ids.
        """
        self.categories = categories

    async def build(self, leaf_ids: Iterable[str]) -> set[str]:
        """Compute the closure of ``leaf_ids``.

        Leaf ids that do not resolve to a category are kept as-is; they
        just contribute no ancestors.

        Args:
            leaf_ids: Directly assigned category ids.

        Returns:
            Leaf ids and all of their ancestors.
        """
        result: set[str] = set()
        stack = list(leaf_ids)
        while stack:
            current = stack.pop()
            if current in result:
                continue
            result.add(current)
            parent_id = await self.categories.get_parent_id(current)
            if parent_id is None:
                continue
            if parent_id in result:
                logger.debug("Closure walk reached a visited ancestor", category_id=parent_id)
                continue
            stack.append(parent_id)
        return result
