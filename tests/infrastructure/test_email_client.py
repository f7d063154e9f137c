"""Tests for the Brevo email client."""

import json

import httpx
import pytest

from storefront.domain.exceptions import EmailDeliveryError
from storefront.infrastructure.config import Settings
from storefront.infrastructure.email_client import (
    BrevoEmailClient,
    EmailAddress,
    EmailMessage,
)

SENDER = EmailAddress("info@example.com", "Catalogue")


def make_message(**overrides) -> EmailMessage:
    fields = {
        "to": [EmailAddress("client@example.com", "Client")],
        "subject": "Votre soumission",
        "html": "<p>Bonjour</p>",
    }
    fields.update(overrides)
    return EmailMessage(**fields)


def test_build_payload() -> None:
    """Messages map onto the provider's JSON body."""
    client = BrevoEmailClient(api_key="key", sender=SENDER)
    payload = client.build_payload(
        make_message(reply_to=EmailAddress("marie@example.com"), tags=["quote"])
    )

    assert payload == {
        "sender": {"email": "info@example.com", "name": "Catalogue"},
        "to": [{"email": "client@example.com", "name": "Client"}],
        "subject": "Votre soumission",
        "htmlContent": "<p>Bonjour</p>",
        "replyTo": {"email": "marie@example.com"},
        "tags": ["quote"],
    }


def test_from_settings() -> None:
    settings = Settings(brevo_api_key="abc", brevo_sender_email="x@example.com", brevo_sender_name="X")
    client = BrevoEmailClient.from_settings(settings)
    assert client.configured
    assert client.sender == EmailAddress("x@example.com", "X")


@pytest.mark.asyncio
async def test_send() -> None:
    """A successful send posts the payload with the key and returns the id."""
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(201, json={"messageId": "<abc@smtp>"})

    client = BrevoEmailClient(api_key="key", sender=SENDER, transport=httpx.MockTransport(handler))
    try:
        message_id = await client.send(make_message())
    finally:
        await client.aclose()

    assert message_id == "<abc@smtp>"
    request = requests[0]
    assert request.method == "POST"
    assert request.url.path == "/v3/smtp/email"
    assert request.headers["api-key"] == "key"
    body = json.loads(request.content)
    assert body["subject"] == "Votre soumission"
    assert body["htmlContent"] == "<p>Bonjour</p>"
    assert "replyTo" not in body


@pytest.mark.asyncio
async def test_send_rejected() -> None:
    """A provider error surfaces as EmailDeliveryError with its status."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"code": "invalid_parameter"})

    client = BrevoEmailClient(api_key="key", sender=SENDER, transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(EmailDeliveryError) as exc_info:
            await client.send(make_message())
    finally:
        await client.aclose()

    assert exc_info.value.details["provider_status"] == 400
    assert "invalid_parameter" in exc_info.value.details["reason"]


@pytest.mark.asyncio
async def test_send_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = BrevoEmailClient(api_key="key", sender=SENDER, transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(EmailDeliveryError):
            await client.send(make_message())
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_unconfigured_client() -> None:
    """Without an API key nothing is sent."""
    client = BrevoEmailClient(api_key=None, sender=SENDER)
    with pytest.raises(EmailDeliveryError) as exc_info:
        await client.send(make_message())
    assert "not configured" in exc_info.value.message
