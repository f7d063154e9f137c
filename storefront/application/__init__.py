"""Application layer.

Quote orchestration and the emails it sends.
"""

from storefront.application.quote_service import (
    CustomerInfo,
    DeliveryInfo,
    QuoteItemInput,
    QuoteRequest,
    QuoteRequestResult,
    QuoteService,
    RequestedItem,
    SendQuoteResult,
)

__all__ = [
    "CustomerInfo",
    "DeliveryInfo",
    "QuoteItemInput",
    "QuoteRequest",
    "QuoteRequestResult",
    "QuoteService",
    "RequestedItem",
    "SendQuoteResult",
]
