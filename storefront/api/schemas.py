"""API schemas for the catalogue API.

Pydantic models for request/response validation and serialization.
Payload fields are camelCase on the wire; snake_case names are accepted
too.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialising field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(
        default_factory=dict, description="Additional error details"
    )
    request_id: str | None = Field(
        default=None, description="Request ID for correlation"
    )


class PaginatedResponse(CamelModel):
    """Base paginated response."""

    total: int = Field(..., description="Total number of items")
    page: int = Field(..., description="Current page number")
    page_size: int = Field(..., description="Items per page")
    total_pages: int = Field(..., description="Number of pages (at least 1)")


class DeleteResponse(CamelModel):
    """Acknowledgement of a delete."""

    ok: bool = True
    id: str


# ============================================================================
# Category Schemas
# ============================================================================


class CategoryResponse(CamelModel):
    """Category of the tree."""

    id: str
    name: str
    slug: str
    full_path: str
    depth: int
    parent_id: str | None = None
    ancestors: list[str] = Field(default_factory=list)
    label: str = Field(..., description="Name indented by depth")


class CategoriesListResponse(CamelModel):
    """All categories ordered by full path."""

    items: list[CategoryResponse]


class CategoryCreateRequest(CamelModel):
    """Request to create a category."""

    name: str = Field(..., min_length=1, max_length=255)
    parent_id: str | None = Field(default=None, description="Parent category, None for a root")


class CategoryUpdateRequest(CamelModel):
    """Request to rename and/or move a category.

    Omitting ``parentId`` keeps the parent; sending ``null`` moves the
    category to the root.
    """

    name: str | None = Field(default=None, min_length=1, max_length=255)
    parent_id: str | None = None


class CategoryDeleteResponse(DeleteResponse):
    """Category delete acknowledgement."""

    products_updated: int = Field(..., description="Products that lost the category")


# ============================================================================
# Product Schemas
# ============================================================================


class ProductResponse(CamelModel):
    """Catalogue product."""

    id: str
    external_id: int | None = None
    sku: str | None = None
    name: str
    short_description: str | None = None
    description: str | None = None
    brand: str | None = None
    regular_price: float | None = None
    sale_price: float | None = None
    sale_price_for_sale: float | None = None
    effective_price: float | None = None
    inventory: int | None = None
    is_in_stock: bool
    visibility: str
    published: bool
    tax_status: str | None = None
    width_inches: str | None = None
    height_inches: str | None = None
    length_inches: str | None = None
    weight_lbs: str | None = None
    images: list[str] = Field(default_factory=list)
    image_public_ids: list[str] = Field(default_factory=list)
    category_ids: list[str] = Field(default_factory=list, description="Leaf assignments")
    all_category_ids: list[str] = Field(default_factory=list, description="Leaves and ancestors")
    created_at: datetime
    updated_at: datetime


class ProductsListResponse(PaginatedResponse):
    """Page of products."""

    items: list[ProductResponse]


class ProductSummaryResponse(CamelModel):
    """Short product card used by the wishlist."""

    id: str
    name: str
    short_description: str | None = None
    images: list[str] = Field(default_factory=list)
    is_in_stock: bool


class ProductSummariesResponse(CamelModel):
    """Product cards in request order."""

    items: list[ProductSummaryResponse]


class BrandsResponse(CamelModel):
    """Distinct brands of listed products."""

    items: list[str]


class ProductWriteRequest(CamelModel):
    """Product create or partial update.

    ``categoryIds`` are the leaf assignments; the ancestor closure is
    always derived server-side and ``allCategoryIds`` is ignored.
    """

    external_id: int | None = None
    sku: str | None = None
    name: str | None = Field(default=None, min_length=1, max_length=500)
    short_description: str | None = None
    description: str | None = None
    brand: str | None = None
    regular_price: Decimal | None = Field(default=None, ge=0)
    sale_price: Decimal | None = Field(default=None, ge=0)
    sale_price_for_sale: Decimal | None = Field(default=None, ge=0)
    inventory: int | None = None
    is_in_stock: bool | None = None
    visibility: str | None = None
    published: bool | None = None
    tax_status: str | None = None
    width_inches: str | None = None
    height_inches: str | None = None
    length_inches: str | None = None
    weight_lbs: str | None = None
    images: list[str] | None = None
    image_public_ids: list[str] | None = None
    category_ids: list[str] | None = None


# ============================================================================
# Quote Schemas
# ============================================================================


class DeliveryMethod(str, Enum):
    """How the order reaches the customer."""

    PICKUP = "pickup"
    DELIVERY = "delivery"


class AddressSchema(CamelModel):
    """Delivery address."""

    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    province: str | None = None
    postal_code: str | None = None


class CustomerSchema(CamelModel):
    """Customer contact details."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None


class DeliverySchema(CamelModel):
    """Pickup or delivery."""

    method: DeliveryMethod = DeliveryMethod.PICKUP
    address: AddressSchema | None = None


class RequestedItemSchema(CamelModel):
    """Wishlist entry."""

    id: str = Field(..., description="Product ID")
    quantity: Any = Field(default=1, description="Wanted quantity, coerced to an integer >= 1")


class QuoteRequestCreate(CamelModel):
    """Public wishlist submission."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    phone: str | None = None
    company: str | None = None
    message: str | None = None
    delivery_method: DeliveryMethod = DeliveryMethod.PICKUP
    address: AddressSchema | None = None
    items: list[RequestedItemSchema] = Field(..., min_length=1)


class TotalsSchema(CamelModel):
    """Quote totals."""

    subtotal: float
    tax1: float = Field(..., description="GST (5%)")
    tax2: float = Field(..., description="QST (9.975%)")
    total: float


class QuoteRequestResponse(CamelModel):
    """Result of a wishlist submission."""

    ok: bool = True
    quote_id: str
    priced: bool
    notified: bool = Field(..., description="Whether every notification email went out")
    estimated_totals: TotalsSchema | None = None


class QuoteItemWrite(CamelModel):
    """Quote line as edited by an admin.

    ``unitPrice`` accepts numbers and strings such as ``"1 234,50 $"``.
    """

    name: str = Field(..., min_length=1, max_length=500)
    quantity: Any = 1
    unit_price: Any = None
    product_id: str | None = None
    image: str | None = None


class QuoteWriteRequest(CamelModel):
    """Quote create or partial update."""

    customer: CustomerSchema | None = None
    delivery: DeliverySchema | None = None
    message: str | None = None
    internal_notes: str | None = None
    items: list[QuoteItemWrite] | None = None


class QuoteItemResponse(CamelModel):
    """Quote line."""

    id: str
    product_id: str | None = None
    name: str
    image: str | None = None
    quantity: int
    unit_price: float | None = None
    line_total: float | None = None


class QuoteResponse(CamelModel):
    """Quote with its items."""

    id: str
    status: str
    customer: CustomerSchema
    delivery: DeliverySchema
    message: str | None = None
    internal_notes: str | None = None
    priced: bool
    estimated_total: float | None = None
    items: list[QuoteItemResponse]
    totals: TotalsSchema | None = None
    created_at: datetime
    updated_at: datetime
    sent_at: datetime | None = None


class QuotesListResponse(PaginatedResponse):
    """Page of quotes."""

    items: list[QuoteResponse]


class SendQuoteRequest(CamelModel):
    """Final quote email options."""

    subject: str | None = None
    intro: str | None = None
    footer_note: str | None = None


class SendQuoteResponse(CamelModel):
    """Result of sending a quote."""

    ok: bool = True
    quote: QuoteResponse
    totals: TotalsSchema
