"""Domain layer.

Pure business rules: error taxonomy, quote state machine and pricing.
"""

from storefront.domain.exceptions import (
    CategoryConflictError,
    CategoryCycleError,
    CategoryError,
    CategoryNotFoundError,
    DomainError,
    EmailDeliveryError,
    EmptyQuoteError,
    HasChildrenError,
    InvalidCategoryNameError,
    InvalidForSendError,
    InvalidStateTransitionError,
    MissingRecipientError,
    ProductNotFoundError,
    QuoteError,
    QuoteNotFoundError,
)
from storefront.domain.pricing import (
    GST_RATE,
    MAX_QUANTITY,
    QST_RATE,
    PricedLine,
    QuoteTotals,
    compute_totals,
    normalize_quantity,
    parse_price,
)
from storefront.domain.state_machines import QuoteStatus, ensure_quote_transition

__all__ = [
    # Exceptions
    "CategoryConflictError",
    "CategoryCycleError",
    "CategoryError",
    "CategoryNotFoundError",
    "DomainError",
    "EmailDeliveryError",
    "EmptyQuoteError",
    "HasChildrenError",
    "InvalidCategoryNameError",
    "InvalidForSendError",
    "InvalidStateTransitionError",
    "MissingRecipientError",
    "ProductNotFoundError",
    "QuoteError",
    "QuoteNotFoundError",
    # Pricing
    "GST_RATE",
    "MAX_QUANTITY",
    "QST_RATE",
    "PricedLine",
    "QuoteTotals",
    "compute_totals",
    "normalize_quantity",
    "parse_price",
    # State machines
    "QuoteStatus",
    "ensure_quote_transition",
]
