"""Tests for the quote endpoints."""

import pytest
from fastapi.testclient import TestClient

from conftest import ADMIN_EMAIL, FakeEmailClient
from storefront.domain.pricing import MAX_QUANTITY


def create_product(client: TestClient, headers: dict[str, str], name: str, **fields) -> str:
    payload = {"name": name, "visibility": "visible", "published": True, **fields}
    response = client.post("/admin/products", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["id"]


def create_quote(client: TestClient, headers: dict[str, str], items: list[dict], email: str | None = "client@example.com") -> dict:
    response = client.post(
        "/admin/quotes",
        json={"customer": {"name": "Client", "email": email}, "items": items},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestQuoteRequests:
    """Tests for the public wishlist submission."""

    def test_priced_request(
        self, client: TestClient, admin_headers: dict[str, str], email_client: FakeEmailClient
    ) -> None:
        """A priced wishlist returns an estimate and notifies both parties."""
        chair = create_product(client, admin_headers, "Chaise", regularPrice=12, salePrice=10)
        cloth = create_product(client, admin_headers, "Nappe", regularPrice=5)

        response = client.post(
            "/quote-requests",
            json={
                "name": "Marie",
                "email": "marie@example.com",
                "deliveryMethod": "delivery",
                "address": {"line1": "1 rue Principale", "city": "Laval", "postalCode": "H7A 1A1"},
                "items": [{"id": chair, "quantity": "2"}, {"id": cloth, "quantity": 0}],
            },
        )

        assert response.status_code == 201, response.text
        body = response.json()
        assert body["ok"] is True
        assert body["priced"] is True
        assert body["notified"] is True
        assert body["estimatedTotals"]["subtotal"] == pytest.approx(25)
        assert body["estimatedTotals"]["total"] == pytest.approx(28.74375)
        assert [m.to[0].email for m in email_client.sent] == [ADMIN_EMAIL, "marie@example.com"]

        quote = client.get(f"/admin/quotes/{body['quoteId']}", headers=admin_headers).json()
        assert quote["status"] == "received"
        assert quote["delivery"]["method"] == "delivery"
        assert quote["delivery"]["address"]["postalCode"] == "H7A 1A1"
        assert [(i["name"], i["quantity"]) for i in quote["items"]] == [("Chaise", 2), ("Nappe", 1)]
        assert quote["totals"] is None

    def test_unpriced_request(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        arch = create_product(client, admin_headers, "Arche")
        response = client.post(
            "/quote-requests",
            json={"name": "Marie", "email": "marie@example.com", "items": [{"id": arch}]},
        )
        body = response.json()
        assert body["priced"] is False
        assert body["estimatedTotals"] is None

    def test_email_failure_still_accepted(
        self, client: TestClient, admin_headers: dict[str, str], email_client: FakeEmailClient
    ) -> None:
        """The request is stored even when notifications fail."""
        chair = create_product(client, admin_headers, "Chaise")
        email_client.fail = True

        response = client.post(
            "/quote-requests",
            json={"name": "Marie", "email": "marie@example.com", "items": [{"id": chair}]},
        )

        assert response.status_code == 201
        assert response.json()["notified"] is False
        quotes = client.get("/admin/quotes", headers=admin_headers).json()
        assert quotes["total"] == 1

    def test_huge_quantity_is_capped(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        """Quantities too large for the store are capped instead of failing."""
        chair = create_product(client, admin_headers, "Chaise", regularPrice=12)
        cloth = create_product(client, admin_headers, "Nappe", regularPrice=5)

        response = client.post(
            "/quote-requests",
            json={
                "name": "Marie",
                "email": "marie@example.com",
                "items": [{"id": chair, "quantity": "1e30"}, {"id": cloth, "quantity": 10**30}],
            },
        )

        assert response.status_code == 201, response.text
        body = response.json()
        assert body["estimatedTotals"]["subtotal"] == pytest.approx(17 * MAX_QUANTITY)
        quote = client.get(f"/admin/quotes/{body['quoteId']}", headers=admin_headers).json()
        assert [i["quantity"] for i in quote["items"]] == [MAX_QUANTITY, MAX_QUANTITY]

    def test_no_available_product(self, client: TestClient) -> None:
        response = client.post(
            "/quote-requests",
            json={"name": "Marie", "email": "marie@example.com", "items": [{"id": "junk"}]},
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "EMPTY_QUOTE"

    def test_validation(self, client: TestClient) -> None:
        """Missing contact details or items fail validation."""
        response = client.post("/quote-requests", json={"name": "Marie", "email": "marie@example.com", "items": []})
        assert response.status_code == 422
        response = client.post("/quote-requests", json={"name": "Marie", "email": "pas-un-courriel", "items": [{"id": "x"}]})
        assert response.status_code == 422


class TestAdminQuotes:
    """Tests for quote administration and sending."""

    def test_update_parses_prices(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        quote = create_quote(client, admin_headers, [{"name": "Chaise"}])
        assert quote["items"][0]["unitPrice"] is None

        response = client.put(
            f"/admin/quotes/{quote['id']}",
            json={
                "internalNotes": "Rappeler",
                "items": [
                    {"name": "Chaise", "quantity": 2, "unitPrice": "1 234,50 $"},
                    {"name": "Arche", "unitPrice": "à confirmer"},
                ],
            },
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["internalNotes"] == "Rappeler"
        assert body["customer"]["name"] == "Client"
        assert [i["unitPrice"] for i in body["items"]] == [1234.5, None]
        assert body["items"][0]["lineTotal"] == 2469
        assert body["priced"] is False

    def test_update_caps_quantity(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        quote = create_quote(client, admin_headers, [{"name": "Chaise", "quantity": "1e30", "unitPrice": 10}])
        assert quote["items"][0]["quantity"] == MAX_QUANTITY

        response = client.put(
            f"/admin/quotes/{quote['id']}",
            json={"items": [{"name": "Chaise", "quantity": 10**30, "unitPrice": 10}]},
            headers=admin_headers,
        )

        assert response.status_code == 200, response.text
        assert response.json()["items"][0]["quantity"] == MAX_QUANTITY

    def test_send(
        self, client: TestClient, admin_headers: dict[str, str], email_client: FakeEmailClient
    ) -> None:
        """Sending records totals and moves the quote to sent."""
        quote = create_quote(
            client,
            admin_headers,
            [{"name": "Chaise", "quantity": 2, "unitPrice": "10,00"}, {"name": "Nappe", "unitPrice": 5}],
        )

        response = client.post(
            f"/admin/quotes/{quote['id']}/send",
            json={"subject": "Soumission #7", "intro": "Bonjour!"},
            headers=admin_headers,
        )

        assert response.status_code == 200, response.text
        body = response.json()
        assert body["totals"]["total"] == pytest.approx(28.74375)
        assert body["quote"]["status"] == "sent"
        assert body["quote"]["sentAt"] is not None
        assert email_client.sent[-1].subject == "Soumission #7"

        stored = client.get(f"/admin/quotes/{quote['id']}", headers=admin_headers).json()
        assert stored["status"] == "sent"
        assert stored["totals"]["tax1"] == pytest.approx(1.25)

        again = client.post(f"/admin/quotes/{quote['id']}/send", headers=admin_headers)
        assert again.status_code == 409
        assert again.json()["error_code"] == "INVALID_STATE_TRANSITION"

    def test_send_unpriced(
        self, client: TestClient, admin_headers: dict[str, str], email_client: FakeEmailClient
    ) -> None:
        """Unpriced lines are listed and the quote stays received."""
        quote = create_quote(
            client,
            admin_headers,
            [{"name": "Chaise", "unitPrice": 10}, {"name": "Arche"}],
        )

        response = client.post(f"/admin/quotes/{quote['id']}/send", headers=admin_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "QUOTE_NOT_PRICED"
        assert [line["name"] for line in body["details"]["items"]] == ["Arche"]
        assert email_client.sent == []
        stored = client.get(f"/admin/quotes/{quote['id']}", headers=admin_headers).json()
        assert stored["status"] == "received"

    def test_send_email_failure(
        self, client: TestClient, admin_headers: dict[str, str], email_client: FakeEmailClient
    ) -> None:
        quote = create_quote(client, admin_headers, [{"name": "Chaise", "unitPrice": 10}])
        email_client.fail = True

        response = client.post(f"/admin/quotes/{quote['id']}/send", headers=admin_headers)

        assert response.status_code == 502
        assert response.json()["error_code"] == "EMAIL_DELIVERY_FAILED"
        assert response.json()["details"]["provider_status"] == 503
        stored = client.get(f"/admin/quotes/{quote['id']}", headers=admin_headers).json()
        assert stored["status"] == "received"
        assert stored["totals"] is None

    def test_send_without_recipient(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        quote = create_quote(client, admin_headers, [{"name": "Chaise", "unitPrice": 10}], email=None)
        response = client.post(f"/admin/quotes/{quote['id']}/send", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["error_code"] == "MISSING_RECIPIENT"

    def test_list_and_not_found(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        for _ in range(3):
            create_quote(client, admin_headers, [])

        response = client.get("/admin/quotes", params={"page": 1, "pageSize": 2}, headers=admin_headers)
        body = response.json()
        assert body["total"] == 3
        assert body["totalPages"] == 2
        assert len(body["items"]) == 2

        missing = client.get("/admin/quotes/00000000-0000-0000-0000-000000000000", headers=admin_headers)
        assert missing.status_code == 404
        assert missing.json()["error_code"] == "QUOTE_NOT_FOUND"
