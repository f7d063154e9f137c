"""Catalogue.

Category tree, product store, closure builder and product queries,
plus the import and maintenance routines used by the offline scripts.
"""

from storefront.catalog.closure import CategoryClosureBuilder, closure_from_parents
from storefront.catalog.models import Category, Product, ProductCategory, ProductCategoryClosure
from storefront.catalog.repository import CategoryRepository, ProductRepository
from storefront.catalog.service import (
    CatalogService,
    CategoryService,
    ChainResult,
    PaginatedResult,
    PaginationParams,
    ProductFilter,
    parse_id,
)
from storefront.catalog.slug import join_path, slugify

__all__ = [
    # Models
    "Category",
    "Product",
    "ProductCategory",
    "ProductCategoryClosure",
    # Repositories
    "CategoryRepository",
    "ProductRepository",
    # Closure
    "CategoryClosureBuilder",
    "closure_from_parents",
    # Services
    "CatalogService",
    "CategoryService",
    "ChainResult",
    "PaginatedResult",
    "PaginationParams",
    "ProductFilter",
    "parse_id",
    # Slugs
    "join_path",
    "slugify",
]
