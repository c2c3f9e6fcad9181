"""
Delivery note (PDF) builder.

A pure function of the composed order: the same order always renders to
byte-identical PDF output. The only date printed is the order's own date,
and the canvas runs in reportlab's invariant mode (fixed document ID and
creation date) with uncompressed page streams.

Rendering happens in two steps. ``build_layout`` turns the order into a
``DeliveryDocumentLayout`` of display strings (missing optional fields
become ``"N/A"``), and ``render_layout`` draws that layout, starting a new
page whenever the line table runs past the bottom margin.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from reportlab.lib.pagesizes import A4
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from apps.order_service.exceptions import DocumentBuildError
from apps.order_service.schemas import ComposedOrder

logger = logging.getLogger(__name__)

PLACEHOLDER = "N/A"
DOCUMENT_TITLE = "DELIVERY NOTE"

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 50
ROW_HEIGHT = 18
FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

# Table columns: (label, x, align)
_COLUMNS = (
    ("Product", MARGIN, "left"),
    ("Color", 280, "left"),
    ("Qty", 390, "right"),
    ("Unit price", 470, "right"),
    ("Subtotal", PAGE_WIDTH - MARGIN, "right"),
)
_NAME_WIDTH = 220
_COLOR_WIDTH = 95


@dataclass(frozen=True)
class DocumentLine:
    name: str
    color: str
    quantity: str
    unit_price: str
    subtotal: str


@dataclass(frozen=True)
class DeliveryDocumentLayout:
    """Display strings for every block of the delivery note."""

    store_name: str
    title: str
    order_id: int
    detail: tuple[tuple[str, str], ...]
    recipient: tuple[tuple[str, str], ...]
    lines: tuple[DocumentLine, ...]
    total: str


def format_amount(amount: Decimal | None, currency_symbol: str) -> str:
    """
    Examples:
        >>> format_amount(Decimal("29.98"), "€")
        '29.98 €'
        >>> format_amount(None, "€")
        'N/A'
    """
    if amount is None:
        return PLACEHOLDER
    return f"{amount:.2f} {currency_symbol}".strip()


def format_date(value: date | None) -> str:
    if value is None:
        return PLACEHOLDER
    return value.strftime("%d/%m/%Y")


def _or_placeholder(value: str | None) -> str:
    return value if value else PLACEHOLDER


def _city_line(city: str | None, postal_code: str | None) -> str:
    parts = [part for part in (city, postal_code) if part]
    return " ".join(parts) if parts else PLACEHOLDER


def build_layout(
    order: ComposedOrder, *, store_name: str, currency_symbol: str
) -> DeliveryDocumentLayout:
    owner = order.owner
    recipient = (
        ("Name", _or_placeholder(owner.name if owner else None)),
        ("Address", _or_placeholder(owner.address if owner else None)),
        (
            "City",
            _city_line(owner.city, owner.postal_code) if owner else PLACEHOLDER,
        ),
        ("Email", _or_placeholder(owner.email if owner else None)),
    )
    detail = (
        ("Order", f"#{order.id}"),
        ("Date", format_date(order.order_date)),
        ("Total", format_amount(order.total, currency_symbol)),
    )
    lines = tuple(
        DocumentLine(
            name=line.display_name,
            color=_or_placeholder(line.color),
            quantity=str(line.quantity),
            unit_price=format_amount(line.unit_price, currency_symbol),
            subtotal=format_amount(line.subtotal, currency_symbol),
        )
        for line in order.lines
    )
    return DeliveryDocumentLayout(
        store_name=store_name,
        title=DOCUMENT_TITLE,
        order_id=order.id,
        detail=detail,
        recipient=recipient,
        lines=lines,
        total=format_amount(order.total, currency_symbol),
    )


def _fit(text: str, width: float, font: str = FONT, size: int = 9) -> str:
    """Truncate ``text`` with '...' so it fits in ``width`` points."""
    if stringWidth(text, font, size) <= width:
        return text
    while text and stringWidth(text + "...", font, size) > width:
        text = text[:-1]
    return text + "..."


def _draw_cell(pdf: canvas.Canvas, text: str, x: float, y: float, align: str) -> None:
    if align == "right":
        pdf.drawRightString(x, y, text)
    else:
        pdf.drawString(x, y, text)


def _draw_table_header(pdf: canvas.Canvas, y: float) -> float:
    pdf.setFont(FONT_BOLD, 9)
    for label, x, align in _COLUMNS:
        _draw_cell(pdf, label, x, y, align)
    pdf.line(MARGIN, y - 4, PAGE_WIDTH - MARGIN, y - 4)
    return y - ROW_HEIGHT


def _draw_footer(pdf: canvas.Canvas, layout: DeliveryDocumentLayout, page: int) -> None:
    pdf.setFont(FONT, 8)
    pdf.drawCentredString(
        PAGE_WIDTH / 2, MARGIN / 2, f"{layout.store_name} - order #{layout.order_id} - page {page}"
    )


def _draw_key_values(
    pdf: canvas.Canvas, heading: str, rows: tuple[tuple[str, str], ...], x: float, y: float
) -> float:
    pdf.setFont(FONT_BOLD, 11)
    pdf.drawString(x, y, heading)
    y -= 16
    for label, value in rows:
        pdf.setFont(FONT_BOLD, 9)
        pdf.drawString(x, y, f"{label}:")
        pdf.setFont(FONT, 9)
        pdf.drawString(x + 55, y, _fit(value, 180))
        y -= 13
    return y


def render_layout(layout: DeliveryDocumentLayout) -> bytes:
    """Draw ``layout`` onto an A4 PDF and return the document bytes."""
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4, invariant=1, pageCompression=0)
    pdf.setTitle(f"{layout.title} #{layout.order_id}")
    pdf.setAuthor(layout.store_name)

    page = 1
    y = PAGE_HEIGHT - MARGIN

    pdf.setFont(FONT_BOLD, 18)
    pdf.drawString(MARGIN, y, layout.store_name)
    pdf.setFont(FONT_BOLD, 14)
    pdf.drawRightString(PAGE_WIDTH - MARGIN, y, layout.title)
    y -= 18
    pdf.setFont(FONT, 10)
    pdf.drawRightString(PAGE_WIDTH - MARGIN, y, f"Order #{layout.order_id}")
    y -= 30

    detail_bottom = _draw_key_values(pdf, "Order details", layout.detail, MARGIN, y)
    recipient_bottom = _draw_key_values(pdf, "Deliver to", layout.recipient, 310, y)
    y = min(detail_bottom, recipient_bottom) - 20

    y = _draw_table_header(pdf, y)
    for line in layout.lines:
        if y < MARGIN + ROW_HEIGHT * 2:
            _draw_footer(pdf, layout, page)
            pdf.showPage()
            page += 1
            y = _draw_table_header(pdf, PAGE_HEIGHT - MARGIN)

        pdf.setFont(FONT, 9)
        cells = (
            _fit(line.name, _NAME_WIDTH),
            _fit(line.color, _COLOR_WIDTH),
            line.quantity,
            line.unit_price,
            line.subtotal,
        )
        for text, (_, x, align) in zip(cells, _COLUMNS, strict=True):
            _draw_cell(pdf, text, x, y, align)
        y -= ROW_HEIGHT

    if y < MARGIN + ROW_HEIGHT * 2:
        _draw_footer(pdf, layout, page)
        pdf.showPage()
        page += 1
        y = PAGE_HEIGHT - MARGIN

    pdf.line(MARGIN, y + ROW_HEIGHT - 6, PAGE_WIDTH - MARGIN, y + ROW_HEIGHT - 6)
    pdf.setFont(FONT_BOLD, 11)
    pdf.drawRightString(PAGE_WIDTH - MARGIN, y - 4, f"Total: {layout.total}")

    _draw_footer(pdf, layout, page)
    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def build_delivery_document(
    order: ComposedOrder, *, store_name: str = "Storefront", currency_symbol: str = "€"
) -> bytes:
    """
    Render the delivery note for ``order``.

    Args:
        order: Composed order as returned by the transaction coordinator
        store_name: Name printed in the header and footer
        currency_symbol: Symbol appended to amounts

    Returns:
        PDF document bytes

    Raises:
        DocumentBuildError: If the order cannot be laid out (malformed input)
    """
    try:
        layout = build_layout(order, store_name=store_name, currency_symbol=currency_symbol)
        document = render_layout(layout)
    except (AttributeError, TypeError, ValueError) as exc:
        logger.error(
            "Delivery note rendering failed",
            extra={"order_id": getattr(order, "id", None), "error_type": type(exc).__name__},
        )
        raise DocumentBuildError("Delivery note could not be rendered") from exc

    logger.debug(
        "Delivery note rendered",
        extra={"order_id": order.id, "document_bytes": len(document), "lines": len(order.lines)},
    )
    return document


__all__ = [
    "DeliveryDocumentLayout",
    "DocumentLine",
    "PLACEHOLDER",
    "build_delivery_document",
    "build_layout",
    "format_amount",
    "format_date",
    "render_layout",
]
