"""Catalogue repositories for database operations.

Provides CRUD operations for categories and products with filtering,
sorting, and pagination.
"""

from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import Any

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from storefront.catalog.models import (
    VISIBLE,
    Category,
    Product,
    ProductCategory,
    ProductCategoryClosure,
)


class CategoryRepository:
    """Repository for Category database operations.

    Example usage:
        async with database.session() as session:
            repo = CategoryRepository(session)
            category = await repo.get_by_full_path("mobilier/chaises")
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def save(self, category: Category) -> Category:
        """Save a category to database.

        Args:
            category: Category to save.

        Returns:
            Saved category.
        """
        self.session.add(category)
        await self.session.flush()
        return category

    async def get_by_id(self, category_id: str) -> Category | None:
        """Get category by ID."""
        return await self.session.get(Category, category_id)

    async def get_by_full_path(self, full_path: str) -> Category | None:
        """Get category by its slug path."""
        result = await self.session.execute(
            select(Category).where(Category.full_path == full_path)
        )
        return result.scalar_one_or_none()

    async def get_sibling_by_slug(
        self,
        parent_id: str | None,
        slug: str,
    ) -> Category | None:
        """Get the child of ``parent_id`` (or the root) with ``slug``."""
        parent_condition = (
            Category.parent_id.is_(None) if parent_id is None else Category.parent_id == parent_id
        )
        result = await self.session.execute(
            select(Category).where(and_(parent_condition, Category.slug == slug))
        )
        return result.scalars().first()

    async def get_parent_id(self, category_id: str) -> str | None:
        """Get the parent id of a category (None for roots and unknown ids)."""
        result = await self.session.execute(
            select(Category.parent_id).where(Category.id == category_id)
        )
        return result.scalar_one_or_none()

    async def get_parent_map(self) -> dict[str, str | None]:
        """Get ``{id: parent_id}`` for every category."""
        result = await self.session.execute(select(Category.id, Category.parent_id))
        return {row.id: row.parent_id for row in result.all()}

    async def find_all(self) -> Sequence[Category]:
        """Get every category ordered by full path."""
        result = await self.session.execute(select(Category).order_by(Category.full_path))
        return result.scalars().all()

    async def count_children(self, category_id: str) -> int:
        """Count direct children of a category."""
        result = await self.session.execute(
            select(func.count(Category.id)).where(Category.parent_id == category_id)
        )
        return result.scalar_one()

    async def find_childless(self) -> Sequence[Category]:
        """Get categories that no other category points at."""
        has_child = select(Category.parent_id).where(Category.parent_id.is_not(None))
        result = await self.session.execute(
            select(Category).where(Category.id.not_in(has_child)).order_by(Category.full_path)
        )
        return result.scalars().all()

    async def delete(self, category: Category) -> None:
        """Delete a category row."""
        await self.session.delete(category)
        await self.session.flush()


class ProductRepository:
    """Repository for Product database operations.

    Handles all database interactions for products including
    filtering, sorting, and pagination.

    Example usage:
        async with database.session() as session:
            repo = ProductRepository(session)
            products = await repo.find_all(
                category_ids=[furniture.id],
                in_stock=True,
                limit=20,
            )
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def save(self, product: Product) -> Product:
        """Save a product to database."""
        self.session.add(product)
        await self.session.flush()
        return product

    async def get_by_id(self, product_id: str) -> Product | None:
        """Get product by ID."""
        return await self.session.get(Product, product_id)

    async def get_by_external_id(self, external_id: int) -> Product | None:
        """Get product by its import key."""
        result = await self.session.execute(
            select(Product).where(Product.external_id == external_id)
        )
        return result.scalar_one_or_none()

    async def get_many(self, product_ids: Iterable[str], listed_only: bool = True) -> Sequence[Product]:
        """Get products by IDs.

        Args:
            product_ids: Product IDs.
            listed_only: Restrict to visible and published products.

        Returns:
            Matching products (unknown ids are skipped).
        """
        ids = list(product_ids)
        if not ids:
            return []
        conditions: list[ColumnElement[bool]] = [Product.id.in_(ids)]
        if listed_only:
            conditions.extend(self._listed_conditions())
        result = await self.session.execute(select(Product).where(and_(*conditions)))
        return result.scalars().all()

    async def iter_all(self) -> Sequence[Product]:
        """Get every product (maintenance routines)."""
        result = await self.session.execute(select(Product).order_by(Product.id))
        return result.scalars().all()

    async def find_by_leaf_category(self, category_id: str) -> Sequence[Product]:
        """Get products directly assigned to a category."""
        assigned = select(ProductCategory.product_id).where(
            ProductCategory.category_id == category_id
        )
        result = await self.session.execute(select(Product).where(Product.id.in_(assigned)))
        return result.scalars().all()

    async def is_category_referenced(self, category_id: str) -> bool:
        """Whether any product closure contains a category."""
        result = await self.session.execute(
            select(ProductCategoryClosure.product_id)
            .where(ProductCategoryClosure.category_id == category_id)
            .limit(1)
        )
        return result.first() is not None

    def set_categories(
        self,
        product: Product,
        leaf_ids: Sequence[str],
        closure_ids: Iterable[str],
    ) -> None:
        """Replace a product's leaf assignments and closure.

        Existing link rows are kept when still present so that the
        composite primary keys are never inserted twice in one flush.

        Args:
            product: Product to update.
            leaf_ids: Ordered, de-duplicated leaf category ids.
            closure_ids: Leaf ids plus all their ancestors.
        """
        existing_leaves = {link.category_id: link for link in product.category_links}
        leaf_links = []
        for position, category_id in enumerate(leaf_ids):
            link = existing_leaves.get(category_id) or ProductCategory(category_id=category_id)
            link.position = position
            leaf_links.append(link)
        product.category_links = leaf_links

        wanted = set(closure_ids)
        existing_closure = {link.category_id: link for link in product.closure_links}
        product.closure_links = [
            existing_closure.get(category_id) or ProductCategoryClosure(category_id=category_id)
            for category_id in sorted(wanted)
        ]

    async def pull_category(self, category_id: str) -> int:
        """Remove a category id from every product's leaf and closure sets.

        Returns:
            Number of products whose leaf assignments lost the category.
        """
        in_leaves = select(ProductCategory.product_id).where(
            ProductCategory.category_id == category_id
        )
        in_closure = select(ProductCategoryClosure.product_id).where(
            ProductCategoryClosure.category_id == category_id
        )
        result = await self.session.execute(
            select(Product).where(or_(Product.id.in_(in_leaves), Product.id.in_(in_closure)))
        )

        pulled = 0
        for product in result.scalars().all():
            if category_id in product.category_ids:
                product.category_links = [
                    link for link in product.category_links if link.category_id != category_id
                ]
                pulled += 1
            product.closure_links = [
                link for link in product.closure_links if link.category_id != category_id
            ]
        await self.session.flush()
        return pulled

    async def delete(self, product: Product) -> None:
        """Delete a product and its category links."""
        await self.session.delete(product)
        await self.session.flush()

    async def find_all(
        self,
        search: str | None = None,
        category_ids: Sequence[str] = (),
        brand: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        in_stock: bool | None = None,
        listed_only: bool = True,
        limit: int = 20,
        offset: int = 0,
    ) -> Sequence[Product]:
        """Find products with filtering, sorting, and pagination.

        Args:
            search: Case-insensitive substring of name or descriptions.
            category_ids: Categories matched against the closure (all must match).
            brand: Case-insensitive exact brand.
            min_price: Minimum effective price.
            max_price: Maximum effective price.
            in_stock: Filter by stock availability.
            listed_only: Restrict to visible and published products.
            limit: Maximum results.
            offset: Result offset for pagination.

        Returns:
            Sequence of matching products, newest first.
        """
        conditions = self._build_conditions(
            search=search,
            category_ids=category_ids,
            brand=brand,
            min_price=min_price,
            max_price=max_price,
            in_stock=in_stock,
            listed_only=listed_only,
        )
        query = select(Product)
        if conditions:
            query = query.where(and_(*conditions))

        query = query.order_by(Product.created_at.desc(), Product.id.asc())
        query = query.limit(limit).offset(offset)

        result = await self.session.execute(query)
        return result.scalars().all()

    async def count(
        self,
        search: str | None = None,
        category_ids: Sequence[str] = (),
        brand: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        in_stock: bool | None = None,
        listed_only: bool = True,
    ) -> int:
        """Count products matching the same filters as ``find_all``."""
        conditions = self._build_conditions(
            search=search,
            category_ids=category_ids,
            brand=brand,
            min_price=min_price,
            max_price=max_price,
            in_stock=in_stock,
            listed_only=listed_only,
        )
        query = select(func.count(Product.id))
        if conditions:
            query = query.where(and_(*conditions))

        result = await self.session.execute(query)
        return result.scalar_one()

    async def get_brands(self) -> list[str]:
        """Get list of brands used by listed products."""
        query = (
            select(Product.brand)
            .where(and_(Product.brand.is_not(None), *self._listed_conditions()))
            .distinct()
            .order_by(Product.brand)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    def _listed_conditions(self) -> list[ColumnElement[bool]]:
        return [Product.visibility == VISIBLE, Product.published.is_(True)]

    def _build_conditions(
        self,
        search: str | None,
        category_ids: Sequence[str],
        brand: str | None,
        min_price: Decimal | None,
        max_price: Decimal | None,
        in_stock: bool | None,
        listed_only: bool,
    ) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = []

        if listed_only:
            conditions.extend(self._listed_conditions())

        if search:
            conditions.append(
                or_(
                    Product.name.icontains(search, autoescape=True),
                    Product.description.icontains(search, autoescape=True),
                    Product.short_description.icontains(search, autoescape=True),
                )
            )

        if in_stock is not None:
            conditions.append(Product.is_in_stock.is_(in_stock))

        if brand:
            conditions.append(func.lower(Product.brand) == brand.lower())

        for category_id in category_ids:
            in_closure = select(ProductCategoryClosure.product_id).where(
                ProductCategoryClosure.category_id == category_id
            )
            conditions.append(Product.id.in_(in_closure))

        effective_price = func.coalesce(Product.sale_price, Product.regular_price)
        if min_price is not None:
            conditions.append(effective_price >= min_price)
        if max_price is not None:
            conditions.append(effective_price <= max_price)

        return conditions

    @staticmethod
    def describe_filters(**filters: Any) -> dict[str, Any]:
        """Drop unset filters, for logging."""
        return {key: value for key, value in filters.items() if value is not None}
