"""Tests for quote pricing."""

from decimal import Decimal

import pytest

from storefront.domain.exceptions import InvalidForSendError
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


class TestNormalizeQuantity:
    """Tests for quantity coercion."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (3, 3),
            ("4", 4),
            (2.7, 2),
            ("2.9", 2),
            (0, 1),
            (-5, 1),
            ("abc", 1),
            (None, 1),
            (float("nan"), 1),
            (float("inf"), 1),
            (True, 1),
            ("1e30", MAX_QUANTITY),
            (1e30, MAX_QUANTITY),
            (10**400, MAX_QUANTITY),
            (MAX_QUANTITY + 1, MAX_QUANTITY),
        ],
    )
    def test_normalize_quantity(self, value, expected: int) -> None:
        """Quantities are floored and kept between 1 and MAX_QUANTITY."""
        assert normalize_quantity(value) == expected


class TestParsePrice:
    """Tests for locale tolerant price parsing."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("1 234,50 $", Decimal("1234.50")),
            ("1,234.50", Decimal("1234.50")),
            ("1.234,50", Decimal("1234.50")),
            ("12,5", Decimal("12.5")),
            ("12.5", Decimal("12.5")),
            ("45 $", Decimal("45")),
            ("0", Decimal("0")),
            (19.99, Decimal("19.99")),
            (10, Decimal("10")),
            (Decimal("7.25"), Decimal("7.25")),
        ],
    )
    def test_parses_prices(self, value, expected: Decimal) -> None:
        """The last separator is the decimal point."""
        assert parse_price(value) == expected

    @pytest.mark.parametrize("value", ["abc", "", "   ", "-", None, True, float("nan")])
    def test_unreadable_is_none(self, value) -> None:
        """Unreadable prices are None, not zero."""
        assert parse_price(value) is None

    def test_zero_is_not_none(self) -> None:
        """A free item is priced."""
        assert parse_price("0,00") == Decimal("0")
        assert parse_price("0,00") is not None


class TestComputeTotals:
    """Tests for the tax computation."""

    def test_rates(self) -> None:
        """GST and QST rates."""
        assert GST_RATE == Decimal("0.05")
        assert QST_RATE == Decimal("0.09975")

    def test_totals(self) -> None:
        """Both taxes apply to the subtotal, not compounded."""
        totals = compute_totals(
            [
                PricedLine(name="Chaise", quantity=2, unit_price=Decimal("10.00")),
                PricedLine(name="Nappe", quantity=1, unit_price=Decimal("5.00")),
            ]
        )
        assert totals.subtotal == Decimal("25")
        assert totals.tax1 == Decimal("1.25")
        assert totals.tax2 == Decimal("2.49375")
        assert totals.total == Decimal("28.74375")

    def test_total_is_sum_of_parts(self) -> None:
        """Total equals subtotal plus both taxes."""
        totals = QuoteTotals.from_subtotal(Decimal("123.45"))
        assert totals.total == totals.subtotal + totals.tax1 + totals.tax2

    def test_empty_lines(self) -> None:
        """No lines gives zero totals."""
        totals = compute_totals([])
        assert totals.total == Decimal("0")

    def test_unpriced_line_rejected(self) -> None:
        """Any unpriced line rejects the whole computation."""
        with pytest.raises(InvalidForSendError) as exc_info:
            compute_totals(
                [
                    PricedLine(name="Chaise", quantity=2, unit_price=Decimal("10")),
                    PricedLine(name="Arche", quantity=1, unit_price=None, product_id="p-2"),
                ],
                quote_id="q-1",
            )
        error = exc_info.value
        assert error.error_code == "QUOTE_NOT_PRICED"
        assert error.details["quote_id"] == "q-1"
        assert error.items == [
            {"index": 1, "product_id": "p-2", "name": "Arche", "unit_price": None}
        ]

    def test_line_total(self) -> None:
        """Line total is unit price times quantity."""
        assert PricedLine(name="A", quantity=3, unit_price=Decimal("2.50")).line_total == Decimal("7.50")
        assert PricedLine(name="A", quantity=3, unit_price=None).line_total is None
