"""Quote API endpoints.

Provides endpoints for the quote lifecycle:
- POST /quote-requests - public wishlist submission
- GET /admin/quotes - list quotes (paginated, newest first)
- POST /admin/quotes - create a quote
- GET /admin/quotes/{id} - quote details
- PUT /admin/quotes/{id} - edit customer, delivery, notes and items
- POST /admin/quotes/{id}/send - email the priced quote and mark it sent
"""

from decimal import Decimal

from fastapi import APIRouter, Query, status

from storefront.api.dependencies import QuoteServiceDep
from storefront.api.schemas import (
    AddressSchema,
    CustomerSchema,
    DeliverySchema,
    ErrorResponse,
    QuoteItemResponse,
    QuoteRequestCreate,
    QuoteRequestResponse,
    QuoteResponse,
    QuotesListResponse,
    QuoteWriteRequest,
    SendQuoteRequest,
    SendQuoteResponse,
    TotalsSchema,
)
from storefront.application.quote_service import (
    CustomerInfo,
    DeliveryInfo,
    QuoteItemInput,
    QuoteRequest,
    RequestedItem,
)
from storefront.domain.pricing import QuoteTotals
from storefront.infrastructure.models import QuoteModel

router = APIRouter(prefix="/quote-requests", tags=["Quote requests"])
admin_router = APIRouter(prefix="/admin/quotes", tags=["Admin quotes"])


# ============================================================================
# Converters
# ============================================================================


def _money(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def totals_to_schema(totals: QuoteTotals) -> TotalsSchema:
    """Convert QuoteTotals to TotalsSchema."""
    return TotalsSchema(
        subtotal=float(totals.subtotal),
        tax1=float(totals.tax1),
        tax2=float(totals.tax2),
        total=float(totals.total),
    )


def quote_to_response(quote: QuoteModel) -> QuoteResponse:
    """Convert QuoteModel to QuoteResponse."""
    items = [
        QuoteItemResponse(
            id=item.id,
            product_id=item.product_id,
            name=item.name,
            image=item.image,
            quantity=item.quantity,
            unit_price=_money(item.unit_price),
            line_total=_money(item.to_priced_line().line_total),
        )
        for item in quote.items
    ]
    address = AddressSchema(**quote.delivery_address) if quote.delivery_address else None
    return QuoteResponse(
        id=quote.id,
        status=quote.status,
        customer=CustomerSchema(
            name=quote.customer_name,
            email=quote.customer_email,
            phone=quote.customer_phone,
            company=quote.customer_company,
        ),
        delivery=DeliverySchema(method=quote.delivery_method, address=address),
        message=quote.message,
        internal_notes=quote.internal_notes,
        priced=quote.priced,
        estimated_total=_money(quote.estimated_total),
        items=items,
        totals=totals_to_schema(quote.totals) if quote.totals else None,
        created_at=quote.created_at,
        updated_at=quote.updated_at,
        sent_at=quote.sent_at,
    )


def _customer(schema: CustomerSchema) -> CustomerInfo:
    return CustomerInfo(
        name=schema.name,
        email=schema.email,
        phone=schema.phone,
        company=schema.company,
    )


def _delivery(schema: DeliverySchema) -> DeliveryInfo:
    return DeliveryInfo(
        method=schema.method.value,
        address=schema.address.model_dump() if schema.address else None,
    )


def _items(body: QuoteWriteRequest) -> list[QuoteItemInput] | None:
    if body.items is None:
        return None
    return [
        QuoteItemInput(
            name=item.name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            product_id=item.product_id,
            image=item.image,
        )
        for item in body.items
    ]


# ============================================================================
# Public Endpoints
# ============================================================================


@router.post(
    "",
    response_model=QuoteRequestResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "No requested product is available"}},
    summary="Submit a wishlist",
)
async def create_quote_request(
    body: QuoteRequestCreate,
    service: QuoteServiceDep,
) -> QuoteRequestResponse:
    """Turn a wishlist into a received quote and notify the team.

    Notification failures do not fail the request; they are reported
    through ``notified``.
    """
    result = await service.create_quote_request(
        QuoteRequest(
            customer=CustomerInfo(
                name=body.name,
                email=body.email,
                phone=body.phone,
                company=body.company,
            ),
            delivery=DeliveryInfo(
                method=body.delivery_method.value,
                address=body.address.model_dump() if body.address else None,
            ),
            message=body.message,
            items=[RequestedItem(product_id=i.id, quantity=i.quantity) for i in body.items],
        )
    )
    return QuoteRequestResponse(
        quote_id=result.quote.id,
        priced=result.priced,
        notified=result.notified,
        estimated_totals=totals_to_schema(result.estimated_totals) if result.estimated_totals else None,
    )


# ============================================================================
# Admin Endpoints
# ============================================================================


@admin_router.get(
    "",
    response_model=QuotesListResponse,
    summary="List quotes",
)
async def list_quotes(
    service: QuoteServiceDep,
    page: int = Query(default=1, description="Page number (1-based)"),
    page_size: int = Query(default=20, alias="pageSize", description="Items per page (1-100)"),
) -> QuotesListResponse:
    """List quotes, newest first."""
    result = await service.list_quotes(page=page, page_size=page_size)
    return QuotesListResponse(
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
        items=[quote_to_response(q) for q in result.items],
    )


@admin_router.post(
    "",
    response_model=QuoteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a quote",
)
async def create_quote(body: QuoteWriteRequest, service: QuoteServiceDep) -> QuoteResponse:
    """Create a quote from the admin console."""
    quote = await service.create_quote(
        customer=_customer(body.customer or CustomerSchema()),
        items=_items(body) or [],
        delivery=_delivery(body.delivery) if body.delivery else None,
        message=body.message,
        internal_notes=body.internal_notes,
    )
    return quote_to_response(quote)


@admin_router.get(
    "/{quote_id}",
    response_model=QuoteResponse,
    responses={404: {"model": ErrorResponse, "description": "Quote not found"}},
    summary="Get a quote",
)
async def get_quote(quote_id: str, service: QuoteServiceDep) -> QuoteResponse:
    """Get quote details."""
    return quote_to_response(await service.get_quote(quote_id))


@admin_router.put(
    "/{quote_id}",
    response_model=QuoteResponse,
    responses={404: {"model": ErrorResponse, "description": "Quote not found"}},
    summary="Edit a quote",
)
async def update_quote(
    quote_id: str,
    body: QuoteWriteRequest,
    service: QuoteServiceDep,
) -> QuoteResponse:
    """Edit a quote.

    Unit prices accept locale formatted strings; unreadable prices leave
    the line unpriced. Totals of a sent quote are not changed.
    """
    quote = await service.update_quote(
        quote_id,
        customer=_customer(body.customer) if body.customer else None,
        delivery=_delivery(body.delivery) if body.delivery else None,
        message=body.message,
        internal_notes=body.internal_notes,
        items=_items(body),
    )
    return quote_to_response(quote)


@admin_router.post(
    "/{quote_id}/send",
    response_model=SendQuoteResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Empty, unpriced or without recipient"},
        404: {"model": ErrorResponse, "description": "Quote not found"},
        409: {"model": ErrorResponse, "description": "Quote already sent"},
        502: {"model": ErrorResponse, "description": "Email provider failure"},
    },
    summary="Send the final quote",
)
async def send_quote(
    quote_id: str,
    service: QuoteServiceDep,
    body: SendQuoteRequest | None = None,
) -> SendQuoteResponse:
    """Email the priced quote to the customer and mark it sent.

    Fails with ``QUOTE_NOT_PRICED`` and the list of offending lines when
    any item has no unit price; the quote then stays ``received``.
    """
    body = body or SendQuoteRequest()
    result = await service.send_quote(
        quote_id,
        subject=body.subject,
        intro=body.intro,
        footer_note=body.footer_note,
    )
    return SendQuoteResponse(
        quote=quote_to_response(result.quote),
        totals=totals_to_schema(result.totals),
    )
