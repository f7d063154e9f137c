"""Quote application service.

Orchestrates the quote lifecycle:
- Turning a customer's wishlist into a received quote
- Admin edits of customer, delivery and priced items
- Sending the final priced quote and freezing its totals
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Sequence

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.application.notifications import (
    EmailLine,
    final_quote_email,
    quote_acknowledgement_email,
    quote_request_email,
    render_delivery,
    render_items_table,
    render_items_table_with_prices,
    render_totals,
)
from storefront.catalog.models import Product
from storefront.catalog.service import MAX_PAGE, CatalogService, PaginatedResult, parse_id
from storefront.domain.exceptions import (
    EmailDeliveryError,
    EmptyQuoteError,
    MissingRecipientError,
    QuoteNotFoundError,
)
from storefront.domain.pricing import QuoteTotals, compute_totals, normalize_quantity, parse_price
from storefront.domain.state_machines import QuoteStatus, ensure_quote_transition
from storefront.infrastructure.email_client import EmailAddress, EmailMessage, EmailSender
from storefront.infrastructure.models import QuoteItemModel, QuoteModel

logger = structlog.get_logger()

DEFAULT_QUOTE_PAGE_SIZE = 20
MAX_QUOTE_PAGE_SIZE = 100
DEFAULT_SEND_SUBJECT = "Votre soumission"


# ============================================================================
# Quote Data Transfer Objects
# ============================================================================


@dataclass
class CustomerInfo:
    """Customer contact details."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None


@dataclass
class DeliveryInfo:
    """Pickup or delivery, with the address for deliveries."""

    method: str = "pickup"
    address: dict[str, Any] | None = None


@dataclass
class RequestedItem:
    """Wishlist entry: a product id and the wanted quantity."""

    product_id: str
    quantity: Any = 1


@dataclass
class QuoteRequest:
    """Public wishlist submission."""

    customer: CustomerInfo
    items: list[RequestedItem]
    delivery: DeliveryInfo = field(default_factory=DeliveryInfo)
    message: str | None = None


@dataclass
class QuoteItemInput:
    """Line item as edited by an admin.

    ``unit_price`` is whatever the editor typed; it is parsed with
    ``parse_price`` and an unreadable value leaves the line unpriced.
    """

    name: str
    quantity: Any = 1
    unit_price: Any = None
    product_id: str | None = None
    image: str | None = None


# ============================================================================
# Service Result Types
# ============================================================================


@dataclass
class QuoteRequestResult:
    """Result of submitting a wishlist."""

    quote: QuoteModel
    priced: bool
    notified: bool
    estimated_totals: QuoteTotals | None = None


@dataclass
class SendQuoteResult:
    """Result of sending a final quote."""

    quote: QuoteModel
    totals: QuoteTotals
    message_id: str | None = None


# ============================================================================
# Quote Repository
# ============================================================================


class QuoteRepository:
    """Repository for quote database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def save(self, quote: QuoteModel) -> QuoteModel:
        """Save a quote and its items."""
        self.session.add(quote)
        await self.session.flush()
        return quote

    async def get(self, quote_id: str) -> QuoteModel | None:
        """Get quote by ID."""
        return await self.session.get(QuoteModel, quote_id)

    async def list_all(self, limit: int, offset: int) -> tuple[list[QuoteModel], int]:
        """List quotes newest first, with the total count."""
        total = (await self.session.execute(select(func.count(QuoteModel.id)))).scalar_one()
        result = await self.session.execute(
            select(QuoteModel)
            .order_by(QuoteModel.created_at.desc(), QuoteModel.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), total


# ============================================================================
# Quote Service
# ============================================================================


def _product_details(product: Product) -> str | None:
    parts = []
    if product.short_description:
        parts.append(product.short_description)
    dims = (product.length_inches, product.width_inches, product.height_inches)
    if any(dims):
        parts.append("Dim.: " + " × ".join(d or "—" for d in dims) + " po")
    return " · ".join(parts) or None


def build_items(items: Sequence[QuoteItemInput]) -> list[QuoteItemModel]:
    """Build item rows from admin input, normalising quantities and prices."""
    return [
        QuoteItemModel(
            position=position,
            product_id=parse_id(item.product_id),
            name=item.name,
            image=item.image,
            quantity=normalize_quantity(item.quantity),
            unit_price=parse_price(item.unit_price),
        )
        for position, item in enumerate(items)
    ]


class QuoteService:
    """Service for quote management.

    Example usage:
        service = QuoteService(session, email_client, admin_email="team@example.com")
        result = await service.send_quote(quote_id, intro="Voici votre soumission")
    """

    def __init__(
        self,
        session: AsyncSession,
        email_client: EmailSender,
        admin_email: str,
    ) -> None:
        """Initialize service.

        Args:
            session: Async SQLAlchemy session.
            email_client: Transactional email sender.
            admin_email: Address notified of new quote requests.
        """
        self.session = session
        self.email_client = email_client
        self.admin_email = admin_email
        self.repository = QuoteRepository(session)
        self.catalog = CatalogService(session)

    async def create_quote_request(self, request: QuoteRequest) -> QuoteRequestResult:
        """Persist a customer's wishlist as a received quote and notify.

        Only listed products are kept. Notifications are best-effort: a
        failed email is logged and reported as ``notified=False``.

        Raises:
            EmptyQuoteError: If no requested product resolves.
        """
        quantities: dict[str, int] = {}
        for item in request.items:
            product_id = parse_id(item.product_id)
            if product_id and product_id not in quantities:
                quantities[product_id] = normalize_quantity(item.quantity)

        products = await self.catalog.get_products_by_ids(list(quantities))
        if not products:
            raise EmptyQuoteError()

        priced = all(p.effective_price is not None for p in products)
        estimated = None
        if priced:
            subtotal = sum(
                (p.effective_price * quantities[p.id] for p in products),
                Decimal("0"),
            )
            estimated = QuoteTotals.from_subtotal(subtotal)

        quote = QuoteModel(
            status=QuoteStatus.RECEIVED.value,
            customer_name=request.customer.name,
            customer_email=request.customer.email,
            customer_phone=request.customer.phone,
            customer_company=request.customer.company,
            delivery_method=request.delivery.method,
            delivery_address=request.delivery.address,
            message=request.message,
            priced=priced,
            estimated_total=estimated.total if estimated else None,
            items=[
                QuoteItemModel(
                    position=position,
                    product_id=product.id,
                    name=product.name,
                    image=product.images[0] if product.images else None,
                    quantity=quantities[product.id],
                )
                for position, product in enumerate(products)
            ],
        )
        await self.repository.save(quote)
        logger.info(
            "Quote request received",
            quote_id=quote.id,
            items=len(products),
            priced=priced,
        )

        lines = [
            EmailLine(
                name=p.name,
                quantity=quantities[p.id],
                image=p.images[0] if p.images else None,
                details=_product_details(p),
            )
            for p in products
        ]
        notified = await self._notify_request(quote, request, lines, estimated)
        return QuoteRequestResult(
            quote=quote,
            priced=priced,
            notified=notified,
            estimated_totals=estimated,
        )

    async def list_quotes(self, page: int = 1, page_size: int = DEFAULT_QUOTE_PAGE_SIZE) -> PaginatedResult[QuoteModel]:
        """List quotes newest first.

        Out-of-range page sizes fall back to the default.
        """
        page = min(max(1, page), MAX_PAGE)
        if not 1 <= page_size <= MAX_QUOTE_PAGE_SIZE:
            page_size = DEFAULT_QUOTE_PAGE_SIZE
        quotes, total = await self.repository.list_all(
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        return PaginatedResult(items=quotes, total=total, page=page, page_size=page_size)

    async def get_quote(self, quote_id: str) -> QuoteModel:
        """Get quote by ID.

        Raises:
            QuoteNotFoundError: If the id does not resolve.
        """
        parsed = parse_id(quote_id)
        quote = await self.repository.get(parsed) if parsed else None
        if quote is None:
            raise QuoteNotFoundError(str(quote_id))
        return quote

    async def create_quote(
        self,
        customer: CustomerInfo,
        items: Sequence[QuoteItemInput] = (),
        delivery: DeliveryInfo | None = None,
        message: str | None = None,
        internal_notes: str | None = None,
    ) -> QuoteModel:
        """Create a quote from the admin console."""
        delivery = delivery or DeliveryInfo()
        quote = QuoteModel(
            status=QuoteStatus.RECEIVED.value,
            delivery_method=delivery.method,
            delivery_address=delivery.address,
            message=message,
            internal_notes=internal_notes,
            items=build_items(items),
        )
        self._apply_customer(quote, customer)
        quote.priced = all(item.unit_price is not None for item in quote.items)
        await self.repository.save(quote)
        logger.info("Quote created", quote_id=quote.id, items=len(quote.items))
        return quote

    async def update_quote(
        self,
        quote_id: str,
        customer: CustomerInfo | None = None,
        delivery: DeliveryInfo | None = None,
        message: str | None = None,
        internal_notes: str | None = None,
        items: Sequence[QuoteItemInput] | None = None,
    ) -> QuoteModel:
        """Apply an admin edit.

        Recorded totals of a sent quote are never touched by edits.
        """
        quote = await self.get_quote(quote_id)
        if customer is not None:
            self._apply_customer(quote, customer)
        if delivery is not None:
            quote.delivery_method = delivery.method
            quote.delivery_address = delivery.address
        if message is not None:
            quote.message = message
        if internal_notes is not None:
            quote.internal_notes = internal_notes
        if items is not None:
            quote.items = build_items(items)
            quote.priced = all(item.unit_price is not None for item in quote.items)
        await self.session.flush()
        logger.info("Quote updated", quote_id=quote.id, status=quote.status)
        return quote

    async def send_quote(
        self,
        quote_id: str,
        subject: str | None = None,
        intro: str | None = None,
        footer_note: str | None = None,
    ) -> SendQuoteResult:
        """Email the priced quote to the customer and mark it sent.

        Totals and the status change are only persisted once the email has
        been accepted by the provider; any failure leaves the quote
        ``received``.

        Raises:
            InvalidStateTransitionError: If the quote was already sent.
            EmptyQuoteError: If the quote has no items.
            InvalidForSendError: If any item has no unit price.
            MissingRecipientError: If the quote has no customer email.
            EmailDeliveryError: If the provider rejects the email.
        """
        quote = await self.get_quote(quote_id)
        ensure_quote_transition(quote.id, quote.quote_status, QuoteStatus.SENT)
        if not quote.items:
            raise EmptyQuoteError(quote.id)
        totals = compute_totals(quote.priced_lines(), quote_id=quote.id)
        if not quote.customer_email:
            raise MissingRecipientError(quote.id)

        lines = [
            EmailLine(
                name=item.name,
                quantity=item.quantity,
                image=item.image,
                unit_price=item.unit_price,
            )
            for item in quote.items
        ]
        html = final_quote_email(
            to_name=quote.customer_name or "client",
            items_table_html=render_items_table_with_prices(lines),
            totals_html=render_totals(totals),
            intro=intro,
            footer_note=footer_note,
        )
        message_id = await self.email_client.send(
            EmailMessage(
                to=[EmailAddress(quote.customer_email, quote.customer_name)],
                subject=subject or DEFAULT_SEND_SUBJECT,
                html=html,
            )
        )

        quote.status = QuoteStatus.SENT.value
        quote.sent_at = datetime.now(timezone.utc)
        quote.record_totals(totals)
        await self.session.flush()
        logger.info("Quote sent", quote_id=quote.id, total=str(totals.total))
        return SendQuoteResult(quote=quote, totals=totals, message_id=message_id)

    async def _notify_request(
        self,
        quote: QuoteModel,
        request: QuoteRequest,
        lines: list[EmailLine],
        estimated: QuoteTotals | None,
    ) -> bool:
        customer = request.customer
        items_html = render_items_table(lines)
        totals_html = render_totals(estimated) if estimated else ""
        messages = [
            EmailMessage(
                to=[EmailAddress(self.admin_email)],
                subject=f"Demande de devis - {customer.name}",
                html=quote_request_email(
                    name=customer.name or "",
                    email=customer.email or "",
                    phone=customer.phone,
                    company=customer.company,
                    message=request.message,
                    delivery_html=render_delivery(request.delivery.method, request.delivery.address),
                    items_table_html=items_html,
                    totals_html=totals_html,
                ),
                reply_to=EmailAddress(customer.email, customer.name) if customer.email else None,
            ),
        ]
        if customer.email:
            messages.append(
                EmailMessage(
                    to=[EmailAddress(customer.email, customer.name)],
                    subject="Votre demande de soumission",
                    html=quote_acknowledgement_email(customer.name or "", items_html, totals_html),
                )
            )

        notified = True
        for message in messages:
            try:
                await self.email_client.send(message)
            except EmailDeliveryError as e:
                notified = False
                logger.warning(
                    "Quote request notification failed",
                    quote_id=quote.id,
                    subject=message.subject,
                    error=e.message,
                )
        return notified

    @staticmethod
    def _apply_customer(quote: QuoteModel, customer: CustomerInfo) -> None:
        quote.customer_name = customer.name
        quote.customer_email = customer.email
        quote.customer_phone = customer.phone
        quote.customer_company = customer.company
