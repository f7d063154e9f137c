"""Category API endpoints.

Provides endpoints for the category tree:
- GET /categories - public flat list ordered by full path
- GET /admin/categories - same list for the admin console
- POST /admin/categories - create a category
- GET /admin/categories/{id} - category details
- PUT /admin/categories/{id} - rename and/or move (shallow)
- DELETE /admin/categories/{id} - delete a childless category
"""

from fastapi import APIRouter, status

from storefront.api.dependencies import CategoryServiceDep
from storefront.api.schemas import (
    CategoriesListResponse,
    CategoryCreateRequest,
    CategoryDeleteResponse,
    CategoryResponse,
    CategoryUpdateRequest,
    ErrorResponse,
)
from storefront.catalog.models import Category

router = APIRouter(prefix="/categories", tags=["Categories"])
admin_router = APIRouter(prefix="/admin/categories", tags=["Admin categories"])


# ============================================================================
# Converters
# ============================================================================


def category_to_response(category: Category) -> CategoryResponse:
    """Convert Category model to CategoryResponse."""
    return CategoryResponse(
        id=category.id,
        name=category.name,
        slug=category.slug,
        full_path=category.full_path,
        depth=category.depth,
        parent_id=category.parent_id,
        ancestors=list(category.ancestors or []),
        label=category.label,
    )


# ============================================================================
# Public Endpoints
# ============================================================================


@router.get(
    "",
    response_model=CategoriesListResponse,
    summary="List categories",
)
async def list_categories(service: CategoryServiceDep) -> CategoriesListResponse:
    """List every category ordered by full path."""
    categories = await service.list_categories()
    return CategoriesListResponse(items=[category_to_response(c) for c in categories])


# ============================================================================
# Admin Endpoints
# ============================================================================


@admin_router.get(
    "",
    response_model=CategoriesListResponse,
    summary="List categories (admin)",
)
async def admin_list_categories(service: CategoryServiceDep) -> CategoriesListResponse:
    """List every category ordered by full path."""
    categories = await service.list_categories()
    return CategoriesListResponse(items=[category_to_response(c) for c in categories])


@admin_router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Name without usable characters"},
        404: {"model": ErrorResponse, "description": "Parent not found"},
        409: {"model": ErrorResponse, "description": "Full path already taken"},
    },
    summary="Create a category",
)
async def create_category(
    body: CategoryCreateRequest,
    service: CategoryServiceDep,
) -> CategoryResponse:
    """Create a category under ``parentId`` (or as a root)."""
    category = await service.create_category(body.name, parent_id=body.parent_id)
    return category_to_response(category)


@admin_router.get(
    "/{category_id}",
    response_model=CategoryResponse,
    responses={404: {"model": ErrorResponse, "description": "Category not found"}},
    summary="Get a category",
)
async def get_category(category_id: str, service: CategoryServiceDep) -> CategoryResponse:
    """Get category details."""
    return category_to_response(await service.get_category(category_id))


@admin_router.put(
    "/{category_id}",
    response_model=CategoryResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Move below itself or a descendant"},
        404: {"model": ErrorResponse, "description": "Category or parent not found"},
        409: {"model": ErrorResponse, "description": "Full path already taken"},
    },
    summary="Rename and/or move a category",
)
async def update_category(
    category_id: str,
    body: CategoryUpdateRequest,
    service: CategoryServiceDep,
) -> CategoryResponse:
    """Rename and/or move a category.

    Only the category itself is updated; descendants keep their stored
    paths.
    """
    changes = {}
    if "name" in body.model_fields_set and body.name is not None:
        changes["name"] = body.name
    if "parent_id" in body.model_fields_set:
        changes["parent_id"] = body.parent_id
    category = await service.update_category(category_id, **changes)
    return category_to_response(category)


@admin_router.delete(
    "/{category_id}",
    response_model=CategoryDeleteResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Category has children"},
        404: {"model": ErrorResponse, "description": "Category not found"},
    },
    summary="Delete a category",
)
async def delete_category(category_id: str, service: CategoryServiceDep) -> CategoryDeleteResponse:
    """Delete a childless category and pull it from every product."""
    deleted_id = (await service.get_category(category_id)).id
    pulled = await service.delete_category(deleted_id)
    return CategoryDeleteResponse(id=deleted_id, products_updated=pulled)
