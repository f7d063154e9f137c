"""SQLAlchemy models for quote tables.

Provides ORM models for quotes and their line items.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from storefront.domain.pricing import PricedLine, QuoteTotals
from storefront.domain.state_machines import QuoteStatus
from storefront.infrastructure.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Quote Models
# ============================================================================


class QuoteModel(Base):
    """Quote model for database persistence.

    Created from a public quote request (or by an admin), edited while
    ``received`` and frozen with its totals once ``sent``.
    """

    __tablename__ = "quotes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    status = Column(String(20), nullable=False, default=QuoteStatus.RECEIVED.value, index=True)

    # Customer info
    customer_name = Column(String(255), nullable=True)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    customer_company = Column(String(255), nullable=True)

    # Delivery
    delivery_method = Column(String(20), nullable=False, default="pickup")
    delivery_address = Column(JSON, nullable=True)

    message = Column(Text, nullable=True)
    internal_notes = Column(Text, nullable=True)

    # Whether every requested product had a price when the request came in
    priced = Column(Boolean, nullable=False, default=False)
    estimated_total = Column(Numeric(26, 9), nullable=True)

    # Totals, written once at send time; the scale holds a 4-decimal price times a 5-decimal tax rate
    subtotal = Column(Numeric(26, 9), nullable=True)
    tax1 = Column(Numeric(26, 9), nullable=True)
    tax2 = Column(Numeric(26, 9), nullable=True)
    total = Column(Numeric(26, 9), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
    sent_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    items = relationship(
        "QuoteItemModel",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuoteItemModel.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Quote(id={self.id}, status={self.status})>"

    @property
    def quote_status(self) -> QuoteStatus:
        """Status as the state machine enum."""
        return QuoteStatus(self.status)

    @property
    def totals(self) -> QuoteTotals | None:
        """Recorded totals, None until the quote is sent."""
        if self.total is None:
            return None
        return QuoteTotals(
            subtotal=self.subtotal,
            tax1=self.tax1,
            tax2=self.tax2,
            total=self.total,
        )

    def record_totals(self, totals: QuoteTotals) -> None:
        """Persist computed totals on the quote."""
        self.subtotal = totals.subtotal
        self.tax1 = totals.tax1
        self.tax2 = totals.tax2
        self.total = totals.total

    def priced_lines(self) -> list[PricedLine]:
        """Items as pricing lines."""
        return [item.to_priced_line() for item in self.items]


class QuoteItemModel(Base):
    """Quote line item.

    Name and image are snapshots taken when the item was added, so later
    product edits do not change the quote.
    """

    __tablename__ = "quote_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    quote_id = Column(
        String(36),
        ForeignKey("quotes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False, default=0)
    product_id = Column(String(36), nullable=True)
    name = Column(String(500), nullable=False)
    image = Column(String(1000), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    # None means "not priced yet", distinct from a free item
    unit_price = Column(Numeric(14, 4), nullable=True)

    # Relationships
    quote = relationship("QuoteModel", back_populates="items")

    def to_priced_line(self) -> PricedLine:
        """Convert to a pricing line."""
        return PricedLine(
            name=self.name,
            quantity=self.quantity,
            unit_price=self.unit_price,
            product_id=self.product_id,
        )
