"""SQLAlchemy models for the catalogue.

Defines the category tree, products and the two product/category link
tables: direct ("leaf") assignments and the denormalised ancestor closure
that product filtering queries against.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.infrastructure.database import Base

VISIBLE = "visible"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Category(Base):
    """Node of the category tree.

    Attributes:
        id: Unique category identifier (UUID string).
        name: Display name.
        slug: URL-safe form of the name.
        parent_id: Parent category, None for roots.
        full_path: Slugs from the root to this node joined by "/".
        depth: 0 for roots, parent depth + 1 otherwise.
        ancestors: Ancestor ids ordered from the root to the parent.
    """

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("categories.id"),
        nullable=True,
        index=True,
    )
    full_path: Mapped[str] = mapped_column(String(1000), nullable=False, unique=True)
    depth: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ancestors: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    __table_args__ = (
        UniqueConstraint("parent_id", "slug", name="uq_categories_parent_slug"),
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Category(id={self.id}, full_path={self.full_path})>"

    @property
    def label(self) -> str:
        """Name indented by depth for flat rendering of the tree."""
        return f"{'— ' * self.depth}{self.name}"


class ProductCategory(Base):
    """Direct category assignment chosen by an editor."""

    __tablename__ = "product_categories"

    product_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        primary_key=True,
    )
    category_id: Mapped[str] = mapped_column(String(36), primary_key=True, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class ProductCategoryClosure(Base):
    """One member of a product's ancestor closure."""

    __tablename__ = "product_category_closure"

    product_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        primary_key=True,
    )
    category_id: Mapped[str] = mapped_column(String(36), primary_key=True, index=True)


class Product(Base):
    """Catalogue item available for rental or sale.

    ``category_ids`` are the editor's leaf assignments; ``all_category_ids``
    is derived from them by the closure builder and is never written
    directly by callers.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    external_id: Mapped[int | None] = mapped_column(Integer, nullable=True, unique=True)
    sku: Mapped[str | None] = mapped_column(String(100), nullable=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    short_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    brand: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    regular_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    sale_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    sale_price_for_sale: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    inventory: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_in_stock: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    visibility: Mapped[str] = mapped_column(String(50), nullable=False, default=VISIBLE, index=True)
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    tax_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    width_inches: Mapped[str | None] = mapped_column(String(50), nullable=True)
    height_inches: Mapped[str | None] = mapped_column(String(50), nullable=True)
    length_inches: Mapped[str | None] = mapped_column(String(50), nullable=True)
    weight_lbs: Mapped[str | None] = mapped_column(String(50), nullable=True)
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    image_public_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    # Opaque passthrough of the import row, never read by typed code paths
    raw: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    # Relationships
    category_links: Mapped[list[ProductCategory]] = relationship(
        ProductCategory,
        cascade="all, delete-orphan",
        order_by=ProductCategory.position,
        lazy="selectin",
    )
    closure_links: Mapped[list[ProductCategoryClosure]] = relationship(
        ProductCategoryClosure,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Product(id={self.id}, name={self.name[:30]})>"

    @property
    def category_ids(self) -> list[str]:
        """Leaf assignments in editor order."""
        return [link.category_id for link in self.category_links]

    @property
    def all_category_ids(self) -> list[str]:
        """Closure of the leaf assignments (sorted for stable output)."""
        return sorted(link.category_id for link in self.closure_links)

    @property
    def effective_price(self) -> Decimal | None:
        """Sale price when set, otherwise the regular price."""
        return self.sale_price if self.sale_price is not None else self.regular_price

    @property
    def is_listed(self) -> bool:
        """Whether the product may appear in public listings."""
        return self.visibility == VISIBLE and bool(self.published)
