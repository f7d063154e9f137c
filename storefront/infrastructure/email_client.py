"""Transactional email client.

Sends HTML emails through the Brevo SMTP API. The client is the interface
boundary to the provider: it either hands a message over successfully or
raises ``EmailDeliveryError``.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx
import structlog

from storefront.domain.exceptions import EmailDeliveryError
from storefront.infrastructure.config import Settings

logger = structlog.get_logger()


# ============================================================================
# Messages
# ============================================================================


@dataclass
class EmailAddress:
    """Address with an optional display name."""

    email: str
    name: str | None = None

    def to_payload(self) -> dict[str, str]:
        """Convert to the provider's contact shape."""
        payload = {"email": self.email}
        if self.name:
            payload["name"] = self.name
        return payload


@dataclass
class EmailMessage:
    """Outgoing HTML email."""

    to: list[EmailAddress]
    subject: str
    html: str
    reply_to: EmailAddress | None = None
    tags: list[str] = field(default_factory=list)


class EmailSender(Protocol):
    """Anything that can deliver an ``EmailMessage``."""

    async def send(self, message: EmailMessage) -> str | None:
        ...


# ============================================================================
# Brevo HTTP Client
# ============================================================================


class BrevoEmailClient:
    """HTTP client for the Brevo transactional email API.

    Example usage:
        client = BrevoEmailClient.from_settings(settings)
        await client.send(EmailMessage(
            to=[EmailAddress("client@example.com", "Client")],
            subject="Votre soumission",
            html="<p>Bonjour</p>",
        ))
        await client.aclose()
    """

    def __init__(
        self,
        api_key: str | None,
        sender: EmailAddress,
        base_url: str = "https://api.brevo.com/v3",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize email client.

        Args:
            api_key: Brevo API key; sending fails while it is unset.
            sender: Sender address used for every message.
            base_url: API base URL.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (tests).
        """
        self.api_key = api_key
        self.sender = sender
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "BrevoEmailClient":
        """Build a client from application settings."""
        return cls(
            api_key=settings.brevo_api_key,
            sender=EmailAddress(settings.brevo_sender_email, settings.brevo_sender_name),
            base_url=settings.brevo_base_url,
            timeout=settings.email_timeout_seconds,
            **kwargs,
        )

    @property
    def configured(self) -> bool:
        """Whether an API key is available."""
        return bool(self.api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def build_payload(self, message: EmailMessage) -> dict[str, Any]:
        """Build the provider request body for a message."""
        payload: dict[str, Any] = {
            "sender": self.sender.to_payload(),
            "to": [address.to_payload() for address in message.to],
            "subject": message.subject,
            "htmlContent": message.html,
        }
        if message.reply_to:
            payload["replyTo"] = message.reply_to.to_payload()
        if message.tags:
            payload["tags"] = message.tags
        return payload

    async def send(self, message: EmailMessage) -> str | None:
        """Send a message.

        Args:
            message: Message to deliver.

        Returns:
            Provider message id, when the provider returns one.

        Raises:
            EmailDeliveryError: If the client is not configured, the request
                fails or the provider rejects the message.
        """
        if not self.configured:
            raise EmailDeliveryError("email provider is not configured")

        try:
            client = await self._get_client()
            response = await client.post(
                "/smtp/email",
                json=self.build_payload(message),
                headers={"api-key": self.api_key, "accept": "application/json"},
            )
        except httpx.RequestError as e:
            logger.error(
                "Email request failed",
                subject=message.subject,
                error=str(e),
            )
            raise EmailDeliveryError(f"request failed: {e}") from e

        if response.status_code not in (200, 201, 202):
            logger.error(
                "Email rejected by provider",
                subject=message.subject,
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise EmailDeliveryError(response.text[:500] or "rejected", response.status_code)

        message_id = None
        if response.content:
            try:
                message_id = response.json().get("messageId")
            except ValueError:
                message_id = None
        logger.info(
            "Email sent",
            subject=message.subject,
            recipients=len(message.to),
            message_id=message_id,
        )
        return message_id
