"""Quote pricing.

Quantity and unit price normalisation plus the tax computation applied to
quotes. GST and QST are both charged on the subtotal (not compounded).
"""

import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from storefront.domain.exceptions import InvalidForSendError

GST_RATE = Decimal("0.05")
QST_RATE = Decimal("0.09975")

# Largest quantity a line can carry
MAX_QUANTITY = 100_000

_NOT_NUMERIC = re.compile(r"[^0-9.,-]")


def normalize_quantity(value: Any) -> int:
    """Coerce a requested quantity to a positive integer.

    Non-integers are floored, anything below 1 or unparsable becomes 1 and
    anything above ``MAX_QUANTITY`` becomes ``MAX_QUANTITY``.

    Examples:
        >>> normalize_quantity("3")
        3
        >>> normalize_quantity(2.7)
        2
        >>> normalize_quantity(0)
        1
        >>> normalize_quantity("1e30")
        100000
    """
    if isinstance(value, bool):
        return 1
    if isinstance(value, int):
        return min(max(1, value), MAX_QUANTITY)
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 1
    if not math.isfinite(number):
        return 1
    return min(max(1, math.floor(number)), MAX_QUANTITY)


def parse_price(value: Any) -> Decimal | None:
    """Parse a unit price typed by a person.

    Accepts numbers and strings such as ``"1 234,50 $"`` or ``"1,234.50"``.
    Whichever of ``,`` and ``.`` appears last is the decimal point and the
    other one is dropped as a thousands separator.

    Returns:
        The price, or None when nothing numeric can be read. None means
        "not priced yet" and is distinct from a price of zero.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        return value if value.is_finite() else None

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        return Decimal(str(value))

    text = _NOT_NUMERIC.sub("", str(value))
    if text in ("", "-"):
        return None

    last_dot = text.rfind(".")
    last_comma = text.rfind(",")
    if last_dot >= 0 or last_comma >= 0:
        decimal_sep = "," if last_comma > last_dot else "."
        thousands_sep = "." if decimal_sep == "," else ","
        text = text.replace(thousands_sep, "").replace(decimal_sep, ".", 1)

    try:
        price = Decimal(text)
    except InvalidOperation:
        return None
    return price if price.is_finite() else None


@dataclass(frozen=True)
class PricedLine:
    """One quote line as seen by the tax computation."""

    name: str
    quantity: int
    unit_price: Decimal | None
    product_id: str | None = None
    raw_unit_price: Any = None

    @property
    def line_total(self) -> Decimal | None:
        """Unit price times quantity, or None when unpriced."""
        if self.unit_price is None:
            return None
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class QuoteTotals:
    """Tax-inclusive totals of a quote.

    Attributes:
        subtotal: Sum of line totals.
        tax1: GST on the subtotal.
        tax2: QST on the subtotal.
        total: subtotal + tax1 + tax2.
    """

    subtotal: Decimal
    tax1: Decimal
    tax2: Decimal
    total: Decimal

    @classmethod
    def from_subtotal(cls, subtotal: Decimal) -> "QuoteTotals":
        """Apply both taxes to a subtotal."""
        tax1 = subtotal * GST_RATE
        tax2 = subtotal * QST_RATE
        return cls(subtotal=subtotal, tax1=tax1, tax2=tax2, total=subtotal + tax1 + tax2)


def unpriced_lines(lines: Iterable[PricedLine]) -> list[dict[str, Any]]:
    """Describe every line that has no resolved unit price."""
    return [
        {
            "index": index,
            "product_id": line.product_id,
            "name": line.name,
            "unit_price": line.raw_unit_price,
        }
        for index, line in enumerate(lines)
        if line.unit_price is None
    ]


def compute_totals(lines: Iterable[PricedLine], quote_id: str | None = None) -> QuoteTotals:
    """Compute subtotal, both taxes and total for fully priced lines.

    Args:
        lines: Quote lines.
        quote_id: Quote ID, reported in the error payload.

    Returns:
        Computed totals.

    Raises:
        InvalidForSendError: If any line lacks a unit price.
    """
    lines = list(lines)
    missing = unpriced_lines(lines)
    if missing:
        raise InvalidForSendError(missing, quote_id=quote_id)

    subtotal = sum((line.line_total for line in lines), Decimal("0"))
    return QuoteTotals.from_subtotal(subtotal)
