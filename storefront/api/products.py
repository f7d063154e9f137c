"""Product API endpoints.

Provides endpoints for the catalogue:
- GET /products - public search (listed products, filters, pagination)
- GET /products/by-ids - wishlist lookup
- GET /products/brands - brands of listed products
- GET /products/{id} - listed product details
- GET /admin/products - every product, any visibility
- POST /admin/products - create a product
- GET/PUT/DELETE /admin/products/{id} - product administration

Query parameters of the public search are parsed leniently: a value that
cannot be read is treated as if it was not sent.
"""

import math
from decimal import Decimal, InvalidOperation

from fastapi import APIRouter, HTTPException, Query, status

from storefront.api.dependencies import CatalogServiceDep
from storefront.api.schemas import (
    BrandsResponse,
    DeleteResponse,
    ErrorResponse,
    ProductResponse,
    ProductsListResponse,
    ProductSummariesResponse,
    ProductSummaryResponse,
    ProductWriteRequest,
)
from storefront.catalog.models import Product
from storefront.catalog.service import MAX_PAGE, PaginatedResult, ProductFilter

router = APIRouter(prefix="/products", tags=["Products"])
admin_router = APIRouter(prefix="/admin/products", tags=["Admin products"])

MAX_ADMIN_PAGE_SIZE = 100


# ============================================================================
# Query Parsing
# ============================================================================


def parse_decimal_param(value: str | None) -> Decimal | None:
    """Read a finite number, or None."""
    if value is None or not value.strip():
        return None
    try:
        number = Decimal(value.strip())
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def parse_bool_param(value: str | None) -> bool | None:
    """Read ``true``/``false`` (any case), or None."""
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return None


def parse_page_param(value: str | None) -> int:
    """Read a page number; anything below 1 or unreadable is page 1.

    Pages above ``MAX_PAGE`` are capped before flooring, so huge exponents
    never turn into huge integers.
    """
    number = parse_decimal_param(value)
    if number is None or number < 1:
        return 1
    if number > MAX_PAGE:
        return MAX_PAGE
    return math.floor(number)


def _text(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip()


def build_filter(
    q: str | None,
    category_id: str | None,
    category_path: str | None,
    min_price: str | None,
    max_price: str | None,
    in_stock: str | None,
    brand: str | None,
) -> ProductFilter:
    """Build a product filter from raw query values."""
    return ProductFilter(
        search=_text(q),
        category_id=_text(category_id),
        category_path=_text(category_path),
        min_price=parse_decimal_param(min_price),
        max_price=parse_decimal_param(max_price),
        in_stock=parse_bool_param(in_stock),
        brand=_text(brand),
    )


# ============================================================================
# Converters
# ============================================================================


def _money(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def product_to_response(product: Product) -> ProductResponse:
    """Convert Product model to ProductResponse."""
    return ProductResponse(
        id=product.id,
        external_id=product.external_id,
        sku=product.sku,
        name=product.name,
        short_description=product.short_description,
        description=product.description,
        brand=product.brand,
        regular_price=_money(product.regular_price),
        sale_price=_money(product.sale_price),
        sale_price_for_sale=_money(product.sale_price_for_sale),
        effective_price=_money(product.effective_price),
        inventory=product.inventory,
        is_in_stock=product.is_in_stock,
        visibility=product.visibility,
        published=product.published,
        tax_status=product.tax_status,
        width_inches=product.width_inches,
        height_inches=product.height_inches,
        length_inches=product.length_inches,
        weight_lbs=product.weight_lbs,
        images=list(product.images or []),
        image_public_ids=list(product.image_public_ids or []),
        category_ids=product.category_ids,
        all_category_ids=product.all_category_ids,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def page_to_response(result: PaginatedResult[Product]) -> ProductsListResponse:
    """Convert a page of products."""
    return ProductsListResponse(
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
        items=[product_to_response(p) for p in result.items],
    )


# ============================================================================
# Public Endpoints
# ============================================================================


@router.get(
    "",
    response_model=ProductsListResponse,
    summary="Search products",
)
async def search_products(
    service: CatalogServiceDep,
    q: str | None = Query(default=None, description="Text search in name and descriptions"),
    category_id: str | None = Query(default=None, alias="categoryId"),
    category_path: str | None = Query(default=None, alias="categoryPath"),
    min_price: str | None = Query(default=None, alias="minPrice"),
    max_price: str | None = Query(default=None, alias="maxPrice"),
    in_stock: str | None = Query(default=None, alias="inStock"),
    brand: str | None = Query(default=None),
    page: str | None = Query(default=None),
) -> ProductsListResponse:
    """Search listed products.

    ``categoryId`` matches products assigned to the category or to any of
    its descendants. Pages beyond the last one return no items.
    """
    filters = build_filter(q, category_id, category_path, min_price, max_price, in_stock, brand)
    result = await service.search_products(filters, page=parse_page_param(page))
    return page_to_response(result)


@router.get(
    "/by-ids",
    response_model=ProductSummariesResponse,
    summary="Get products by IDs",
)
async def get_products_by_ids(
    service: CatalogServiceDep,
    ids: str = Query(default="", description="Comma separated product IDs"),
) -> ProductSummariesResponse:
    """Get listed products for a wishlist, in request order."""
    requested = [i.strip() for i in ids.split(",") if i.strip()]
    products = await service.get_products_by_ids(requested)
    return ProductSummariesResponse(
        items=[
            ProductSummaryResponse(
                id=p.id,
                name=p.name,
                short_description=p.short_description,
                images=list(p.images or []),
                is_in_stock=p.is_in_stock,
            )
            for p in products
        ]
    )


@router.get(
    "/brands",
    response_model=BrandsResponse,
    summary="List brands",
)
async def list_brands(service: CatalogServiceDep) -> BrandsResponse:
    """List the brands of listed products, sorted."""
    return BrandsResponse(items=await service.get_brands())


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
    summary="Get a product",
)
async def get_product(product_id: str, service: CatalogServiceDep) -> ProductResponse:
    """Get a listed product."""
    return product_to_response(await service.get_product(product_id, listed_only=True))


# ============================================================================
# Admin Endpoints
# ============================================================================


@admin_router.get(
    "",
    response_model=ProductsListResponse,
    summary="List products (admin)",
)
async def admin_list_products(
    service: CatalogServiceDep,
    q: str | None = Query(default=None),
    category_id: str | None = Query(default=None, alias="categoryId"),
    category_path: str | None = Query(default=None, alias="categoryPath"),
    min_price: str | None = Query(default=None, alias="minPrice"),
    max_price: str | None = Query(default=None, alias="maxPrice"),
    in_stock: str | None = Query(default=None, alias="inStock"),
    brand: str | None = Query(default=None),
    page: str | None = Query(default=None),
    page_size: int = Query(default=20, ge=1, le=MAX_ADMIN_PAGE_SIZE, alias="pageSize"),
) -> ProductsListResponse:
    """List every product, including hidden and unpublished ones."""
    filters = build_filter(q, category_id, category_path, min_price, max_price, in_stock, brand)
    result = await service.search_products(
        filters,
        page=parse_page_param(page),
        listed_only=False,
        page_size=page_size,
    )
    return page_to_response(result)


@admin_router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product",
)
async def create_product(body: ProductWriteRequest, service: CatalogServiceDep) -> ProductResponse:
    """Create a product; its category closure is computed from ``categoryIds``."""
    data = body.model_dump(exclude_unset=True)
    if not data.get("name"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error_code": "VALIDATION_ERROR",
                "message": "A product needs a name",
                "details": {"field": "name"},
            },
        )
    product = await service.create_product(data)
    return product_to_response(product)


@admin_router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
    summary="Get a product (admin)",
)
async def admin_get_product(product_id: str, service: CatalogServiceDep) -> ProductResponse:
    """Get any product."""
    return product_to_response(await service.get_product(product_id))


@admin_router.put(
    "/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
    summary="Update a product",
)
async def update_product(
    product_id: str,
    body: ProductWriteRequest,
    service: CatalogServiceDep,
) -> ProductResponse:
    """Partially update a product.

    Sending ``categoryIds`` replaces the leaf assignments and recomputes
    the closure.
    """
    product = await service.update_product(product_id, body.model_dump(exclude_unset=True))
    return product_to_response(product)


@admin_router.delete(
    "/{product_id}",
    response_model=DeleteResponse,
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
    summary="Delete a product",
)
async def delete_product(product_id: str, service: CatalogServiceDep) -> DeleteResponse:
    """Delete a product."""
    deleted_id = (await service.get_product(product_id)).id
    await service.delete_product(deleted_id)
    return DeleteResponse(id=deleted_id)
