"""State machines for domain entities.

Deterministic state machine that defines valid quote transitions.
"""

from enum import Enum

from storefront.domain.exceptions import InvalidStateTransitionError


# ============================================================================
# Quote State Machine
# ============================================================================


class QuoteStatus(str, Enum):
    """Quote lifecycle states.

    State diagram:
        RECEIVED
          │
          │ send (all items priced)
          ▼
        SENT
    """

    RECEIVED = "received"
    SENT = "sent"

    def can_transition_to(self, target: "QuoteStatus") -> bool:
        """Check if transition to target state is valid.

        Args:
            target: Target state to transition to.

        Returns:
            True if transition is valid.
        """
        return target in _QUOTE_TRANSITIONS.get(self, set())

    def allowed_transitions(self) -> list["QuoteStatus"]:
        """Get list of valid target states.

        Returns:
            List of states that can be transitioned to.
        """
        return list(_QUOTE_TRANSITIONS.get(self, set()))

    def is_terminal(self) -> bool:
        """Check if this is a terminal (final) state."""
        return len(_QUOTE_TRANSITIONS.get(self, set())) == 0


# Quote state transitions (defined outside enum to avoid Enum restrictions)
_QUOTE_TRANSITIONS: dict[QuoteStatus, set[QuoteStatus]] = {
    QuoteStatus.RECEIVED: {QuoteStatus.SENT},
    QuoteStatus.SENT: set(),  # Terminal state
}


def ensure_quote_transition(
    quote_id: str,
    current: QuoteStatus,
    target: QuoteStatus,
) -> None:
    """Raise if a quote cannot move from ``current`` to ``target``.

    Args:
        quote_id: ID of the quote, for the error payload.
        current: Current status.
        target: Requested status.

    Raises:
        InvalidStateTransitionError: If the transition is not allowed.
    """
    if not current.can_transition_to(target):
        raise InvalidStateTransitionError(
            entity_type="Quote",
            entity_id=quote_id,
            current_state=current.value,
            target_state=target.value,
            allowed_transitions=[s.value for s in current.allowed_transitions()],
        )
