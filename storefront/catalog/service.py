"""Catalogue services.

High-level services that combine repository operations with the
business rules of the category tree and product catalogue.
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Generic, Sequence, TypeVar
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.catalog.closure import CategoryClosureBuilder
from storefront.catalog.models import Category, Product
from storefront.catalog.repository import CategoryRepository, ProductRepository
from storefront.catalog.slug import join_path, slugify
from storefront.domain.exceptions import (
    CategoryConflictError,
    CategoryCycleError,
    CategoryNotFoundError,
    HasChildrenError,
    InvalidCategoryNameError,
    ProductNotFoundError,
)

logger = structlog.get_logger()

T = TypeVar("T")

# Product columns a write payload may set directly
PRODUCT_WRITABLE_FIELDS = frozenset(
    {
        "external_id",
        "sku",
        "name",
        "short_description",
        "description",
        "brand",
        "regular_price",
        "sale_price",
        "sale_price_for_sale",
        "inventory",
        "is_in_stock",
        "visibility",
        "published",
        "tax_status",
        "width_inches",
        "height_inches",
        "length_inches",
        "weight_lbs",
        "images",
        "image_public_ids",
        "raw",
    }
)


# Columns that cannot be cleared; a null in a payload leaves them unchanged
_REQUIRED_PRODUCT_FIELDS = frozenset(
    {"name", "is_in_stock", "visibility", "published", "images", "image_public_ids"}
)


def parse_id(value: Any) -> str | None:
    """Canonical form of a UUID id, or None when it cannot be parsed."""
    if value is None:
        return None
    try:
        return str(UUID(str(value).strip()))
    except ValueError:
        return None


def parse_ids(values: Sequence[Any]) -> list[str]:
    """Parse ids, dropping unparseable ones and duplicates (order kept)."""
    ids: list[str] = []
    for value in values:
        parsed = parse_id(value)
        if parsed is None:
            logger.warning("Ignoring unparseable id", value=str(value)[:64])
            continue
        if parsed not in ids:
            ids.append(parsed)
    return ids


@dataclass
class ChainResult:
    """Outcome of resolving a category name chain.

    Attributes:
        leaf_id: ID of the last category of the chain.
        ids: IDs of every category of the chain, root first.
        created: IDs created by this call.
    """

    leaf_id: str
    ids: list[str]
    created: list[str] = field(default_factory=list)


@dataclass
class ProductFilter:
    """Filter parameters for product search.

    Attributes:
        search: Text search in name/descriptions.
        category_id: Category (or any descendant) assigned to the product.
        category_path: Category full path, resolved to an id.
        brand: Filter by brand (case-insensitive exact match).
        min_price: Minimum effective price.
        max_price: Maximum effective price.
        in_stock: Filter by availability.
    """

    search: str | None = None
    category_id: str | None = None
    category_path: str | None = None
    brand: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    in_stock: bool | None = None


@dataclass
class PaginationParams:
    """Pagination parameters.

    Attributes:
        page: Page number (1-indexed).
        page_size: Items per page.
    """

    page: int = 1
    page_size: int = 20

    @property
    def offset(self) -> int:
        """Calculate offset from page number."""
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        """Get limit (alias for page_size)."""
        return self.page_size


@dataclass
class PaginatedResult(Generic[T]):
    """Paginated result container.

    Attributes:
        items: List of items.
        total: Total count.
        page: Current page.
        page_size: Items per page.
    """

    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        """Calculate total pages (at least 1)."""
        return max(1, math.ceil(self.total / self.page_size))


# Pages past this are treated as this page (always past the end)
MAX_PAGE = 1_000_000

_UNSET: Any = object()


class CategoryService:
    """Service for the category tree.

    Keeps slugs, full paths, depths and ancestor lists consistent for the
    node being written. Renames and moves are shallow: descendants keep
    their stored paths until they are edited themselves.

    Example usage:
        async with database.session() as session:
            service = CategoryService(session)
            chain = await service.get_or_create_by_path(["Mobilier", "Chaises"])
            await session.commit()
    """

    def __init__(self, session: AsyncSession, locale: str = "fr") -> None:
        """Initialize service with database session.

        Args:
            session: Async SQLAlchemy session.
            locale: Locale used for slugs.
        """
        self.session = session
        self.locale = locale
        self.repository = CategoryRepository(session)
        self.products = ProductRepository(session)
        self._path_cache: dict[str, str] = {}

    def slug_for(self, name: str) -> str:
        """Slug of a name, rejecting names without usable characters."""
        slug = slugify(name, self.locale)
        if not slug:
            raise InvalidCategoryNameError(name)
        return slug

    async def list_categories(self) -> Sequence[Category]:
        """Get every category ordered by full path."""
        return await self.repository.find_all()

    async def get_category(self, category_id: str) -> Category:
        """Get category by ID.

        Raises:
            CategoryNotFoundError: If the id does not resolve.
        """
        parsed = parse_id(category_id)
        category = await self.repository.get_by_id(parsed) if parsed else None
        if category is None:
            raise CategoryNotFoundError(str(category_id))
        return category

    async def get_by_full_path(self, full_path: str) -> Category | None:
        """Get category by full path."""
        return await self.repository.get_by_full_path(full_path.strip().strip("/"))

    async def create_category(self, name: str, parent_id: str | None = None) -> Category:
        """Create a category under ``parent_id`` (or as a root).

        Raises:
            CategoryNotFoundError: If the parent does not exist.
            CategoryConflictError: If the full path or sibling slug is taken.
        """
        name = name.strip()
        slug = self.slug_for(name)
        parent = await self.get_category(parent_id) if parent_id else None
        full_path = join_path(parent.full_path if parent else None, slug)
        await self._ensure_free(full_path, parent.id if parent else None, slug)

        category = Category(
            name=name,
            slug=slug,
            parent_id=parent.id if parent else None,
            full_path=full_path,
            depth=parent.depth + 1 if parent else 0,
            ancestors=[*parent.ancestors, parent.id] if parent else [],
        )
        await self.repository.save(category)
        logger.info("Category created", category_id=category.id, full_path=full_path)
        return category

    async def get_or_create_by_path(self, names: Sequence[str]) -> ChainResult:
        """Resolve a chain of names to categories, creating missing ones.

        Each prefix of the chain is looked up by its full path, so calling
        this twice with the same chain returns the same ids and creates
        nothing the second time.

        Args:
            names: Human names from the root down, e.g. ["Mobilier", "Chaises"].

        Returns:
            Leaf id and the ids of the whole chain.
        """
        names = [n.strip() for n in names if n and n.strip()]
        if not names:
            raise InvalidCategoryNameError("")
        slugs = [self.slug_for(n) for n in names]

        ids: list[str] = []
        created: list[str] = []
        parent_id: str | None = None
        ancestors: list[str] = []

        for depth, (name, slug) in enumerate(zip(names, slugs)):
            full_path = "/".join(slugs[: depth + 1])
            category_id = self._path_cache.get(full_path)
            if category_id is None:
                existing = await self.repository.get_by_full_path(full_path)
                if existing is not None:
                    category_id = existing.id
                else:
                    category = Category(
                        name=name,
                        slug=slug,
                        parent_id=parent_id,
                        full_path=full_path,
                        depth=depth,
                        ancestors=list(ancestors),
                    )
                    await self.repository.save(category)
                    category_id = category.id
                    created.append(category_id)
                    logger.debug("Category created from chain", full_path=full_path)
                self._path_cache[full_path] = category_id

            ids.append(category_id)
            parent_id = category_id
            ancestors = [*ancestors, category_id]

        return ChainResult(leaf_id=ids[-1], ids=ids, created=created)

    async def rename_shallow(self, category_id: str, new_name: str) -> Category:
        """Rename a category and recompute its own slug, path and depth.

        Descendants are not updated and keep their previous full paths.
        """
        category = await self.get_category(category_id)
        new_name = new_name.strip()
        slug = self.slug_for(new_name)
        parent = await self.repository.get_by_id(category.parent_id) if category.parent_id else None
        full_path = join_path(parent.full_path if parent else None, slug)
        await self._ensure_free(full_path, category.parent_id, slug, exclude_id=category.id)

        category.name = new_name
        category.slug = slug
        category.full_path = full_path
        category.depth = parent.depth + 1 if parent else 0
        await self.session.flush()
        logger.info("Category renamed", category_id=category.id, full_path=full_path)
        return category

    async def move_shallow(self, category_id: str, new_parent_id: str | None) -> Category:
        """Reparent a category and recompute its own path, depth and ancestors.

        Descendants are not updated and keep their previous full paths,
        depths and ancestor lists.

        Raises:
            CategoryCycleError: If the new parent is the category or below it.
        """
        category = await self.get_category(category_id)
        parent = await self.get_category(new_parent_id) if new_parent_id else None
        if parent is not None:
            await self._ensure_not_below(category.id, parent.id)

        full_path = join_path(parent.full_path if parent else None, category.slug)
        new_parent = parent.id if parent else None
        await self._ensure_free(full_path, new_parent, category.slug, exclude_id=category.id)

        category.parent_id = new_parent
        category.full_path = full_path
        category.depth = parent.depth + 1 if parent else 0
        category.ancestors = [*parent.ancestors, parent.id] if parent else []
        await self.session.flush()
        logger.info("Category moved", category_id=category.id, full_path=full_path)
        return category

    async def update_category(
        self,
        category_id: str,
        name: str | None = _UNSET,
        parent_id: str | None = _UNSET,
    ) -> Category:
        """Apply an admin edit: a move and/or a rename, both shallow."""
        category = await self.get_category(category_id)
        if parent_id is not _UNSET and parent_id != category.parent_id:
            category = await self.move_shallow(category.id, parent_id)
        if name is not _UNSET and name is not None:
            category = await self.rename_shallow(category.id, name)
        return category

    async def delete_category(self, category_id: str) -> int:
        """Delete a childless category and pull it from every product.

        Returns:
            Number of products whose leaf assignments lost the category.

        Raises:
            HasChildrenError: If any category has it as parent.
        """
        category = await self.get_category(category_id)
        child_count = await self.repository.count_children(category.id)
        if child_count:
            raise HasChildrenError(category.id, child_count)

        deleted_id = category.id
        await self.repository.delete(category)
        pulled = await self.products.pull_category(deleted_id)
        logger.info("Category deleted", category_id=deleted_id, products_updated=pulled)
        return pulled

    async def _ensure_free(
        self,
        full_path: str,
        parent_id: str | None,
        slug: str,
        exclude_id: str | None = None,
    ) -> None:
        for taken in (
            await self.repository.get_by_full_path(full_path),
            await self.repository.get_sibling_by_slug(parent_id, slug),
        ):
            if taken is not None and taken.id != exclude_id:
                raise CategoryConflictError(full_path)

    async def _ensure_not_below(self, category_id: str, new_parent_id: str) -> None:
        seen: set[str] = set()
        current: str | None = new_parent_id
        while current is not None and current not in seen:
            if current == category_id:
                raise CategoryCycleError(category_id, new_parent_id)
            seen.add(current)
            current = await self.repository.get_parent_id(current)


class CatalogService:
    """Service for catalogue products.

    Every write that touches ``category_ids`` recomputes the closure in
    the same unit of work.

    Example usage:
        async with database.session() as session:
            service = CatalogService(session)
            results = await service.search_products(
                ProductFilter(category_id=furniture.id, in_stock=True),
                page=1,
            )
    """

    def __init__(self, session: AsyncSession, page_size: int = 20) -> None:
        """Initialize service with database session.

        Args:
            session: Async SQLAlchemy session.
            page_size: Items per page of public listings.
        """
        self.session = session
        self.page_size = page_size
        self.repository = ProductRepository(session)
        self.categories = CategoryRepository(session)
        self.closure = CategoryClosureBuilder(self.categories)

    async def search_products(
        self,
        filters: ProductFilter,
        page: int = 1,
        listed_only: bool = True,
        page_size: int | None = None,
    ) -> PaginatedResult[Product]:
        """Search products with filters and pagination.

        Args:
            filters: Filter parameters.
            page: Page number (1-based).
            listed_only: Restrict to visible and published products.
            page_size: Override of the configured page size.

        Returns:
            Paginated product results.
        """
        pagination = PaginationParams(
            page=min(max(1, page), MAX_PAGE),
            page_size=page_size or self.page_size,
        )
        category_ids = await self._resolve_category_filters(filters)
        criteria = dict(
            search=filters.search.strip() if filters.search and filters.search.strip() else None,
            category_ids=category_ids,
            brand=filters.brand.strip() if filters.brand and filters.brand.strip() else None,
            min_price=filters.min_price,
            max_price=filters.max_price,
            in_stock=filters.in_stock,
            listed_only=listed_only,
        )

        total = await self.repository.count(**criteria)
        products: Sequence[Product] = []
        if pagination.offset < total:
            products = await self.repository.find_all(
                **criteria,
                limit=pagination.limit,
                offset=pagination.offset,
            )

        logger.debug(
            "Product search",
            page=pagination.page,
            total=total,
            **ProductRepository.describe_filters(**criteria),
        )
        return PaginatedResult(
            items=list(products),
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
        )

    async def get_product(self, product_id: str, listed_only: bool = False) -> Product:
        """Get product by ID.

        Raises:
            ProductNotFoundError: If missing (or not listed when ``listed_only``).
        """
        parsed = parse_id(product_id)
        product = await self.repository.get_by_id(parsed) if parsed else None
        if product is None or (listed_only and not product.is_listed):
            raise ProductNotFoundError(str(product_id))
        return product

    async def get_products_by_ids(self, product_ids: Sequence[Any]) -> list[Product]:
        """Get listed products by IDs, in request order.

        Unparseable and unknown ids are skipped.
        """
        ids = parse_ids(product_ids)
        found = {p.id: p for p in await self.repository.get_many(ids)}
        return [found[i] for i in ids if i in found]

    async def get_brands(self) -> list[str]:
        """Get available brands."""
        return await self.repository.get_brands()

    async def create_product(self, data: dict[str, Any]) -> Product:
        """Create a product.

        ``category_ids`` in ``data`` are the leaf assignments; the closure is
        derived here. ``all_category_ids`` is never accepted from callers.
        """
        product = Product()
        self._apply_fields(product, data)
        await self.assign_categories(product, data.get("category_ids") or [])
        await self.repository.save(product)
        logger.info("Product created", product_id=product.id, categories=len(product.category_ids))
        return product

    async def update_product(self, product_id: str, changes: dict[str, Any]) -> Product:
        """Apply a partial update to a product.

        The closure is recomputed whenever ``category_ids`` is part of the
        update.
        """
        product = await self.get_product(product_id)
        self._apply_fields(product, changes)
        if "category_ids" in changes:
            await self.assign_categories(product, changes["category_ids"] or [])
        await self.session.flush()
        logger.info("Product updated", product_id=product.id, fields=sorted(changes))
        return product

    async def delete_product(self, product_id: str) -> None:
        """Delete a product."""
        product = await self.get_product(product_id)
        await self.repository.delete(product)
        logger.info("Product deleted", product_id=product_id)

    async def assign_categories(self, product: Product, category_ids: Sequence[Any]) -> None:
        """Set leaf assignments and recompute the closure synchronously."""
        leaf_ids = parse_ids(category_ids)
        closure_ids = await self.closure.build(leaf_ids)
        self.repository.set_categories(product, leaf_ids, closure_ids)

    async def _resolve_category_filters(self, filters: ProductFilter) -> list[str]:
        category_ids: list[str] = []
        parsed = parse_id(filters.category_id)
        if parsed is not None:
            category_ids.append(parsed)
        if filters.category_path and filters.category_path.strip():
            category = await self.categories.get_by_full_path(filters.category_path.strip().strip("/"))
            if category is not None and category.id not in category_ids:
                category_ids.append(category.id)
        return category_ids

    @staticmethod
    def _apply_fields(product: Product, data: dict[str, Any]) -> None:
        for key, value in data.items():
            if key not in PRODUCT_WRITABLE_FIELDS:
                continue
            if value is None and key in _REQUIRED_PRODUCT_FIELDS:
                continue
            setattr(product, key, value)
