"""Tests for the quote service."""

from decimal import Decimal
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import ADMIN_EMAIL, FakeEmailClient
from storefront.application.quote_service import (
    CustomerInfo,
    DeliveryInfo,
    QuoteItemInput,
    QuoteRequest,
    QuoteService,
    RequestedItem,
)
from storefront.catalog.service import CatalogService
from storefront.domain.exceptions import (
    EmailDeliveryError,
    EmptyQuoteError,
    InvalidForSendError,
    InvalidStateTransitionError,
    MissingRecipientError,
    QuoteNotFoundError,
)
from storefront.infrastructure.database import Database


@pytest.fixture
def service(session: AsyncSession, email_client: FakeEmailClient) -> QuoteService:
    """Quote service with a recording email client."""
    return QuoteService(session, email_client, admin_email=ADMIN_EMAIL)


def listed(name: str, **fields: Any) -> dict[str, Any]:
    return {"name": name, "visibility": "visible", "published": True, **fields}


CUSTOMER = CustomerInfo(name="Marie Tremblay", email="marie@example.com", phone="514-555-0100")


class TestCreateQuoteRequest:
    """Tests for public wishlist submissions."""

    @pytest.mark.asyncio
    async def test_priced_request(
        self, session: AsyncSession, service: QuoteService, email_client: FakeEmailClient
    ) -> None:
        """Every product priced gives an estimate; both emails go out."""
        catalog = CatalogService(session)
        chair = await catalog.create_product(
            listed("Chaise", regular_price=Decimal("12.00"), sale_price=Decimal("10.00"), images=["https://cdn/c.jpg"])
        )
        linen = await catalog.create_product(listed("Nappe", regular_price=Decimal("5.00")))

        result = await service.create_quote_request(
            QuoteRequest(
                customer=CUSTOMER,
                items=[
                    RequestedItem(chair.id, "2"),
                    RequestedItem(linen.id, 0),
                    RequestedItem(chair.id, 9),
                ],
                message="Mariage en juin",
            )
        )

        assert result.priced is True
        assert result.notified is True
        assert result.estimated_totals.subtotal == Decimal("25.00")
        assert result.estimated_totals.total == Decimal("28.74375")
        quote = result.quote
        assert quote.status == "received"
        assert [(i.name, i.quantity, i.unit_price) for i in quote.items] == [
            ("Chaise", 2, None),
            ("Nappe", 1, None),
        ]
        assert quote.items[0].image == "https://cdn/c.jpg"
        assert quote.totals is None

        assert [m.to[0].email for m in email_client.sent] == [ADMIN_EMAIL, "marie@example.com"]
        admin_email = email_client.sent[0]
        assert admin_email.reply_to.email == "marie@example.com"
        assert "Mariage en juin" in admin_email.html

    @pytest.mark.asyncio
    async def test_unpriced_request(self, session: AsyncSession, service: QuoteService) -> None:
        """A product without a price means no estimate."""
        catalog = CatalogService(session)
        chair = await catalog.create_product(listed("Chaise", regular_price=Decimal("12.00")))
        arch = await catalog.create_product(listed("Arche"))

        result = await service.create_quote_request(
            QuoteRequest(customer=CUSTOMER, items=[RequestedItem(chair.id), RequestedItem(arch.id)])
        )

        assert result.priced is False
        assert result.estimated_totals is None
        assert result.quote.priced is False

    @pytest.mark.asyncio
    async def test_hidden_and_unknown_products_dropped(
        self, session: AsyncSession, service: QuoteService
    ) -> None:
        catalog = CatalogService(session)
        chair = await catalog.create_product(listed("Chaise"))
        hidden = await catalog.create_product({"name": "Brouillon"})

        result = await service.create_quote_request(
            QuoteRequest(
                customer=CUSTOMER,
                items=[RequestedItem("junk"), RequestedItem(hidden.id), RequestedItem(chair.id)],
            )
        )

        assert [i.name for i in result.quote.items] == ["Chaise"]

    @pytest.mark.asyncio
    async def test_nothing_available(self, session: AsyncSession, service: QuoteService) -> None:
        hidden = await CatalogService(session).create_product({"name": "Brouillon"})
        with pytest.raises(EmptyQuoteError):
            await service.create_quote_request(
                QuoteRequest(customer=CUSTOMER, items=[RequestedItem(hidden.id)])
            )

    @pytest.mark.asyncio
    async def test_notification_failure_is_partial(
        self, session: AsyncSession, service: QuoteService, email_client: FakeEmailClient
    ) -> None:
        """The quote is kept even when the emails fail."""
        chair = await CatalogService(session).create_product(listed("Chaise"))
        email_client.fail = True

        result = await service.create_quote_request(
            QuoteRequest(
                customer=CUSTOMER,
                items=[RequestedItem(chair.id)],
                delivery=DeliveryInfo(method="delivery", address={"line1": "1 rue Principale", "city": "Laval"}),
            )
        )

        assert result.notified is False
        stored = await service.get_quote(result.quote.id)
        assert stored.delivery_method == "delivery"
        assert stored.delivery_address["city"] == "Laval"


class TestSendQuote:
    """Tests for sending final quotes."""

    async def create_quote(self, service: QuoteService, *items: QuoteItemInput, email: str | None = "client@example.com"):
        return await service.create_quote(
            customer=CustomerInfo(name="Client", email=email),
            items=list(items),
        )

    @pytest.mark.asyncio
    async def test_send_records_totals(
        self, service: QuoteService, email_client: FakeEmailClient
    ) -> None:
        """Sending persists status, sent_at and totals."""
        quote = await self.create_quote(
            service,
            QuoteItemInput(name="Chaise", quantity=2, unit_price="10,00 $"),
            QuoteItemInput(name="Nappe", quantity=1, unit_price=5),
        )

        result = await service.send_quote(quote.id, subject="Votre soumission #12", intro="Merci!")

        assert result.totals.total == Decimal("28.74375")
        stored = await service.get_quote(quote.id)
        assert stored.status == "sent"
        assert stored.sent_at is not None
        assert stored.totals.subtotal == Decimal("25")
        assert stored.totals.tax2 == Decimal("2.49375")
        assert email_client.sent[-1].subject == "Votre soumission #12"
        assert email_client.sent[-1].to[0].email == "client@example.com"
        assert "Merci!" in email_client.sent[-1].html

    @pytest.mark.asyncio
    async def test_totals_survive_reload(
        self,
        session: AsyncSession,
        database: Database,
        service: QuoteService,
        email_client: FakeEmailClient,
    ) -> None:
        """Stored totals keep every decimal of the tax computation."""
        quote = await self.create_quote(
            service,
            QuoteItemInput(name="Chaise", quantity=1, unit_price="10,015"),
        )
        await service.send_quote(quote.id)
        await session.commit()

        async with database.session() as fresh:
            stored = await QuoteService(fresh, email_client, admin_email=ADMIN_EMAIL).get_quote(quote.id)
            assert stored.items[0].unit_price == Decimal("10.015")
            assert stored.totals.subtotal == Decimal("10.015")
            assert stored.totals.tax1 == Decimal("0.50075")
            assert stored.totals.tax2 == Decimal("0.99899625")
            assert stored.totals.total == Decimal("11.51374625")

    @pytest.mark.asyncio
    async def test_unpriced_line_blocks_send(
        self, service: QuoteService, email_client: FakeEmailClient
    ) -> None:
        """An unpriced line fails the send and leaves the quote received."""
        quote = await self.create_quote(
            service,
            QuoteItemInput(name="Chaise", quantity=2, unit_price="10"),
            QuoteItemInput(name="Arche", quantity=1, unit_price="à confirmer"),
        )

        with pytest.raises(InvalidForSendError) as exc_info:
            await service.send_quote(quote.id)

        assert [line["name"] for line in exc_info.value.items] == ["Arche"]
        assert exc_info.value.items[0]["index"] == 1
        stored = await service.get_quote(quote.id)
        assert stored.status == "received"
        assert stored.totals is None
        assert email_client.sent == []

    @pytest.mark.asyncio
    async def test_email_failure_leaves_received(
        self, service: QuoteService, email_client: FakeEmailClient
    ) -> None:
        quote = await self.create_quote(service, QuoteItemInput(name="Chaise", unit_price=10))
        email_client.fail = True

        with pytest.raises(EmailDeliveryError):
            await service.send_quote(quote.id)

        stored = await service.get_quote(quote.id)
        assert stored.status == "received"
        assert stored.sent_at is None
        assert stored.totals is None

    @pytest.mark.asyncio
    async def test_send_twice_rejected(self, service: QuoteService) -> None:
        quote = await self.create_quote(service, QuoteItemInput(name="Chaise", unit_price=10))
        await service.send_quote(quote.id)

        with pytest.raises(InvalidStateTransitionError):
            await service.send_quote(quote.id)

    @pytest.mark.asyncio
    async def test_missing_recipient(self, service: QuoteService) -> None:
        quote = await self.create_quote(service, QuoteItemInput(name="Chaise", unit_price=10), email=None)
        with pytest.raises(MissingRecipientError):
            await service.send_quote(quote.id)

    @pytest.mark.asyncio
    async def test_empty_quote(self, service: QuoteService) -> None:
        quote = await self.create_quote(service)
        with pytest.raises(EmptyQuoteError):
            await service.send_quote(quote.id)

    @pytest.mark.asyncio
    async def test_edits_after_send_keep_totals(self, service: QuoteService) -> None:
        """Recorded totals are frozen once sent."""
        quote = await self.create_quote(service, QuoteItemInput(name="Chaise", quantity=2, unit_price=10))
        await service.send_quote(quote.id)

        updated = await service.update_quote(
            quote.id,
            items=[QuoteItemInput(name="Chaise", quantity=5, unit_price=99)],
        )

        assert updated.totals.subtotal == Decimal("20")
        assert updated.items[0].quantity == 5


class TestAdminQuotes:
    """Tests for admin edits and listing."""

    @pytest.mark.asyncio
    async def test_update_parses_prices(self, service: QuoteService) -> None:
        """Locale strings are parsed; unreadable prices stay unpriced."""
        quote = await service.create_quote(customer=CustomerInfo(name="Client"))
        assert quote.priced is True

        updated = await service.update_quote(
            quote.id,
            customer=CustomerInfo(name="Client", email="client@example.com"),
            internal_notes="Rappeler lundi",
            items=[
                QuoteItemInput(name="Chaise", quantity="3", unit_price="1 234,50 $"),
                QuoteItemInput(name="Arche", quantity=0, unit_price="?"),
            ],
        )

        assert updated.customer_email == "client@example.com"
        assert updated.internal_notes == "Rappeler lundi"
        assert [(i.quantity, i.unit_price) for i in updated.items] == [(3, Decimal("1234.50")), (1, None)]
        assert updated.priced is False

    @pytest.mark.asyncio
    async def test_list_quotes(self, service: QuoteService) -> None:
        for name in ("A", "B", "C"):
            await service.create_quote(customer=CustomerInfo(name=name))

        page = await service.list_quotes(page=1, page_size=2)
        assert page.total == 3
        assert len(page.items) == 2
        assert page.total_pages == 2

        fallback = await service.list_quotes(page=1, page_size=1000)
        assert fallback.page_size == 20

    @pytest.mark.asyncio
    async def test_not_found(self, service: QuoteService) -> None:
        with pytest.raises(QuoteNotFoundError):
            await service.get_quote("00000000-0000-0000-0000-000000000000")
        with pytest.raises(QuoteNotFoundError):
            await service.get_quote("junk")
