"""Email rendering for quotes.

HTML fragments for the quote request notification and the final quote
sent to the customer. Every value coming from a customer or an editor is
escaped before it is inserted.
"""

from dataclasses import dataclass
from decimal import Decimal
from html import escape
from typing import Any, Sequence

from storefront.domain.pricing import QuoteTotals

# Address printed when the customer picks the order up
PICKUP_ADDRESS = "940 Jean-Neveu, Longueuil (Québec) J4G 2M1"

_FONT = "-apple-system, BlinkMacSystemFont, Segoe UI, Roboto, Arial, sans-serif"
_CELL = "padding:8px;border-bottom:1px solid #eee"
_NUMERIC_CELL = f"{_CELL};text-align:right;white-space:nowrap"
_HEADER_CELL = "padding:8px;border-bottom:1px solid #eee"


@dataclass
class EmailLine:
    """One line of an items table."""

    name: str
    quantity: int
    image: str | None = None
    unit_price: Decimal | None = None
    details: str | None = None

    @property
    def line_total(self) -> Decimal | None:
        if self.unit_price is None:
            return None
        return self.unit_price * self.quantity


def format_money(amount: Decimal | None) -> str:
    """Format an amount as ``"12.50 $"``, or a dash when missing."""
    if amount is None:
        return "—"
    return f"{amount:.2f} $"


def _esc(value: Any) -> str:
    return escape("" if value is None else str(value))


def _image_cell(image: str | None) -> str:
    img = ""
    if image:
        img = (
            f'<img src="{_esc(image)}" alt="" '
            'style="width:96px;height:72px;object-fit:cover;border-radius:4px;"/>'
        )
    return f'<td style="{_CELL};vertical-align:top;">{img}</td>'


def _name_cell(line: EmailLine) -> str:
    details = ""
    if line.details:
        details = f'<div style="color:#666;font-size:12px">{_esc(line.details)}</div>'
    return (
        f'<td style="{_CELL};">'
        f'<div style="font-weight:600;color:#111;">{_esc(line.name)}</div>{details}</td>'
    )


def render_items_table(lines: Sequence[EmailLine]) -> str:
    """Items table without prices: image, name and quantity."""
    rows = "".join(
        f"<tr>{_image_cell(line.image)}{_name_cell(line)}"
        f'<td style="{_NUMERIC_CELL};">x {line.quantity}</td></tr>'
        for line in lines
    )
    return f'<table style="width:100%;border-collapse:collapse;margin-top:12px">{rows}</table>'


def render_items_table_with_prices(lines: Sequence[EmailLine]) -> str:
    """Items table with unit price, quantity and line total columns."""
    header = (
        "<thead><tr>"
        f'<th style="text-align:left;{_HEADER_CELL}"></th>'
        f'<th style="text-align:left;{_HEADER_CELL}">Article</th>'
        f'<th style="text-align:right;{_HEADER_CELL}">Prix</th>'
        f'<th style="text-align:right;{_HEADER_CELL}">Qté</th>'
        f'<th style="text-align:right;{_HEADER_CELL}">Ligne</th>'
        "</tr></thead>"
    )
    rows = "".join(
        f"<tr>{_image_cell(line.image)}{_name_cell(line)}"
        f'<td style="{_NUMERIC_CELL};">{format_money(line.unit_price)}</td>'
        f'<td style="{_NUMERIC_CELL};">x {line.quantity}</td>'
        f'<td style="{_NUMERIC_CELL};">{format_money(line.line_total)}</td></tr>'
        for line in lines
    )
    return (
        '<table style="width:100%;border-collapse:collapse;margin-top:12px">'
        f"{header}{rows}</table>"
    )


def render_totals(totals: QuoteTotals) -> str:
    """Totals block: subtotal, GST, QST and total."""
    row = 'style="display:flex;justify-content:space-between"'
    tax_row = 'style="display:flex;justify-content:space-between;color:#555"'
    return (
        '<div style="margin-top:12px;padding-top:8px;border-top:1px solid #eee;'
        'max-width:320px;margin-left:auto">'
        f"<div {row}><span>Sous-total</span><strong>{format_money(totals.subtotal)}</strong></div>"
        f"<div {tax_row}><span>TPS (5%)</span><span>{format_money(totals.tax1)}</span></div>"
        f"<div {tax_row}><span>TVQ (9,975%)</span><span>{format_money(totals.tax2)}</span></div>"
        f'<div style="display:flex;justify-content:space-between;margin-top:6px">'
        f"<span>Total</span><strong>{format_money(totals.total)}</strong></div>"
        "</div>"
    )


def render_delivery(method: str, address: dict[str, Any] | None) -> str:
    """Delivery or pickup paragraph."""
    if method == "delivery":
        address = address or {}
        line2 = f", {address['line2']}" if address.get("line2") else ""
        text = (
            f"{address.get('line1') or ''}{line2}, {address.get('city') or ''}, "
            f"{address.get('province') or ''} {address.get('postal_code') or ''}"
        )
        return f'<p style="margin:8px 0 0 0;color:#333"><strong>Livraison:</strong> {_esc(text.strip())}</p>'
    return f'<p style="margin:8px 0 0 0;color:#333"><strong>Ramassage:</strong> {_esc(PICKUP_ADDRESS)}</p>'


def quote_request_email(
    name: str,
    email: str,
    items_table_html: str,
    phone: str | None = None,
    company: str | None = None,
    message: str | None = None,
    delivery_html: str = "",
    totals_html: str = "",
) -> str:
    """Notification sent to the team when a customer submits a list."""
    contact = f"<strong>{_esc(name)}</strong> ({_esc(email)})"
    if phone:
        contact += f" · {_esc(phone)}"
    if company:
        contact += f" · {_esc(company)}"
    message_html = ""
    if message:
        message_html = f'<p style="margin:0 0 12px 0;color:#333">Message: {_esc(message)}</p>'
    return (
        f'<div style="font:14px/1.4 {_FONT}; color:#111">'
        '<h2 style="margin:0 0 8px 0">Nouvelle demande de soumission</h2>'
        f'<p style="margin:0 0 12px 0; color:#333">Soumise par: {contact}</p>'
        f"{message_html}{delivery_html}{items_table_html}{totals_html}"
        "</div>"
    )


def quote_acknowledgement_email(name: str, items_table_html: str, totals_html: str = "") -> str:
    """Receipt sent to the customer after a list is submitted."""
    return (
        f'<div style="font:14px/1.4 {_FONT}; color:#111">'
        '<h2 style="margin:0 0 8px 0">Votre demande de soumission</h2>'
        f'<p style="margin:0 0 12px 0; color:#333">Bonjour {_esc(name)}, nous avons bien reçu '
        "votre demande. Voici le récapitulatif :</p>"
        f"{items_table_html}{totals_html}"
        '<p style="margin-top:12px;color:#555">Notre équipe vous répondra rapidement. Merci!</p>'
        "</div>"
    )


def final_quote_email(
    to_name: str,
    items_table_html: str,
    totals_html: str = "",
    intro: str | None = None,
    footer_note: str | None = None,
) -> str:
    """Priced quote sent to the customer."""
    intro_html = ""
    if intro:
        intro_html = f'<p style="margin:0 0 12px 0;color:#333">{_esc(intro)}</p>'
    footer_html = ""
    if footer_note:
        footer_html = f'<p style="margin:12px 0 0 0;color:#555">{_esc(footer_note)}</p>'
    return (
        f'<div style="font:14px/1.6 {_FONT}; color:#111">'
        '<h2 style="margin:0 0 8px 0">Votre soumission</h2>'
        f'<p style="margin:0 0 12px 0;color:#333">Bonjour {_esc(to_name)},</p>'
        f"{intro_html}{items_table_html}{totals_html}{footer_html}"
        "</div>"
    )
