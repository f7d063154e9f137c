"""Domain exceptions.

All domain-level errors that represent business rule violations.
These exceptions are raised by the catalogue and quote services when
invariants are violated or invalid operations are attempted.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the API layer.
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# State Machine Errors
# ============================================================================


class InvalidStateTransitionError(DomainError):
    """Raised when an invalid state transition is attempted.

    This error indicates that the requested operation cannot be performed
    in the current state of the entity.
    """

    error_code = "INVALID_STATE_TRANSITION"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        current_state: str,
        target_state: str,
        allowed_transitions: list[str] | None = None,
    ) -> None:
        """Initialize invalid state transition error.

        Args:
            entity_type: Type of entity (e.g., "Quote").
            entity_id: ID of the entity.
            current_state: Current state of the entity.
            target_state: Attempted target state.
            allowed_transitions: List of allowed target states from current state.
        """
        allowed = allowed_transitions or []
        message = (
            f"Cannot transition {entity_type}({entity_id}) "
            f"from '{current_state}' to '{target_state}'. "
            f"Allowed transitions: {allowed}"
        )
        super().__init__(
            message,
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "current_state": current_state,
                "target_state": target_state,
                "allowed_transitions": allowed,
            },
        )


# ============================================================================
# Category Errors
# ============================================================================


class CategoryError(DomainError):
    """Base class for category-related errors."""

    pass


class CategoryNotFoundError(CategoryError):
    """Raised when a category id does not resolve."""

    error_code = "CATEGORY_NOT_FOUND"

    def __init__(self, category_id: str) -> None:
        super().__init__(
            f"Category {category_id} not found",
            details={"category_id": category_id},
        )


class HasChildrenError(CategoryError):
    """Raised when deleting a category that still has children."""

    error_code = "CATEGORY_HAS_CHILDREN"

    def __init__(self, category_id: str, child_count: int) -> None:
        """Initialize has children error.

        Args:
            category_id: ID of the category.
            child_count: Number of direct children found.
        """
        super().__init__(
            f"Category {category_id} has children",
            details={"category_id": category_id, "child_count": child_count},
        )


class InvalidCategoryNameError(CategoryError):
    """Raised when a name has no characters usable in a slug."""

    error_code = "INVALID_CATEGORY_NAME"

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Category name '{name}' does not produce a usable slug",
            details={"name": name},
        )


class CategoryConflictError(CategoryError):
    """Raised when a full path or sibling slug is already taken."""

    error_code = "CATEGORY_CONFLICT"

    def __init__(self, full_path: str) -> None:
        super().__init__(
            f"A category already exists at '{full_path}'",
            details={"full_path": full_path},
        )


class CategoryCycleError(CategoryError):
    """Raised when a move would place a category below itself."""

    error_code = "CATEGORY_CYCLE"

    def __init__(self, category_id: str, new_parent_id: str) -> None:
        super().__init__(
            f"Cannot move category {category_id} under {new_parent_id}: "
            "the target is the category itself or one of its descendants",
            details={"category_id": category_id, "new_parent_id": new_parent_id},
        )


# ============================================================================
# Product Errors
# ============================================================================


class ProductNotFoundError(DomainError):
    """Raised when a product id does not resolve."""

    error_code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str) -> None:
        super().__init__(
            f"Product {product_id} not found",
            details={"product_id": product_id},
        )


# ============================================================================
# Quote Errors
# ============================================================================


class QuoteError(DomainError):
    """Base class for quote-related errors."""

    pass


class QuoteNotFoundError(QuoteError):
    """Raised when a quote id does not resolve."""

    error_code = "QUOTE_NOT_FOUND"

    def __init__(self, quote_id: str) -> None:
        super().__init__(
            f"Quote {quote_id} not found",
            details={"quote_id": quote_id},
        )


class EmptyQuoteError(QuoteError):
    """Raised when a quote without items is submitted or sent."""

    error_code = "EMPTY_QUOTE"

    def __init__(self, quote_id: str | None = None) -> None:
        super().__init__(
            "Quote has no items",
            details={"quote_id": quote_id},
        )


class InvalidForSendError(QuoteError):
    """Raised when a quote has line items without a resolved unit price.

    ``details["items"]`` lists every offending line so the caller can fix
    the prices and retry.
    """

    error_code = "QUOTE_NOT_PRICED"

    def __init__(self, items: list[dict[str, Any]], quote_id: str | None = None) -> None:
        """Initialize invalid for send error.

        Args:
            items: Offending lines (index, product id, name, raw unit price).
            quote_id: ID of the quote, when known.
        """
        super().__init__(
            "All items must have a unit price before sending",
            details={"quote_id": quote_id, "items": items},
        )
        self.items = items


class MissingRecipientError(QuoteError):
    """Raised when a quote has no customer email to send to."""

    error_code = "MISSING_RECIPIENT"

    def __init__(self, quote_id: str) -> None:
        super().__init__(
            f"Quote {quote_id} has no customer email",
            details={"quote_id": quote_id},
        )


# ============================================================================
# Notification Errors
# ============================================================================


class EmailDeliveryError(DomainError):
    """Raised when the transactional email provider rejects a message."""

    error_code = "EMAIL_DELIVERY_FAILED"

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        super().__init__(
            f"Email delivery failed: {reason}",
            details={"reason": reason, "provider_status": status_code},
        )
