from __future__ import annotations
import io
from datetime import date, datetime
from typing import Iterable, Optional, Tuple
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, Table, TableStyle

from fieldportal.models.receipt import Receipt

MARGIN = 28
CURRENCY = "€"


# ---------- helpers ----------
def _hr(c: canvas.Canvas, page_w: float, y: float, *, thickness: float = 1,
        color=colors.HexColor("#CFCFCF")) -> None:
    """Draw a horizontal rule across the content width at y."""
    c.saveState()
    c.setStrokeColor(color)
    c.setLineWidth(thickness)
    c.line(MARGIN, y, page_w - MARGIN, y)
    c.restoreState()


def _draw_header(c: canvas.Canvas, page_w: float, page_h: float, title: str, subtitle: str | None = None) -> float:
    """Title, generated timestamp and a separator. Returns the y below it."""
    y = page_h - 45
    c.setFont("Helvetica-Bold", 16)
    c.drawString(MARGIN, y, title)
    c.setFont("Helvetica", 9)
    y -= 15
    if subtitle:
        c.drawString(MARGIN, y, subtitle)
        y -= 12
    c.drawString(MARGIN, y, f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    y -= 12
    _hr(c, page_w, y)
    return y - 15


def _load_image(img_bytes: bytes | None) -> ImageReader | None:
    if not img_bytes:
        return None
    try:
        return ImageReader(io.BytesIO(img_bytes))
    except (OSError, ValueError):
        return None


def _draw_image(c: canvas.Canvas, img: ImageReader, x: float, y: float, max_w: float, max_h: float) -> float:
    """Draw img with its top-left at (x, y), scaled into max_w × max_h. Returns its height."""
    iw, ih = img.getSize()
    scale = min(max_w / iw, max_h / ih)
    w = max(1, iw * scale)
    h = max(1, ih * scale)
    c.drawImage(img, x, y - h, width=w, height=h, preserveAspectRatio=True, mask='auto')
    return h


def _details_table(receipt: Receipt, avail_w: float) -> Table:
    styles = getSampleStyleSheet()
    label_style = ParagraphStyle("label", parent=styles["Normal"], fontName="Helvetica-Bold", fontSize=10)
    value_style = ParagraphStyle("value", parent=styles["Normal"], fontName="Helvetica", fontSize=10, leading=13)

    def _p(txt: str | None, style: ParagraphStyle) -> Paragraph:
        return Paragraph(escape(txt or "-"), style)

    commessa = receipt.commessa or {}
    rows = [
        [Paragraph("Date", label_style), _p(format_date(receipt.date), value_style)],
        [Paragraph("Amount", label_style), _p(format_amount(receipt.amount), value_style)],
        [Paragraph("Notes", label_style), _p(receipt.text or "No notes", value_style)],
        [Paragraph("Project", label_style), _p(commessa.get("code"), value_style)],
        [Paragraph("Description", label_style), _p(commessa.get("description"), value_style)],
    ]
    if receipt.participants:
        rows.append([Paragraph("Also for", label_style), _p(", ".join(receipt.participants), value_style)])

    table = Table(rows, colWidths=[100, avail_w - 100], hAlign="LEFT")
    table.setStyle(TableStyle([
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#B0B0B0")),
        ("BACKGROUND", (0, 0), (0, -1), colors.lightblue),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    return table


def format_date(d: date | None) -> str:
    return d.strftime("%d %B %Y") if d else ""


def format_amount(amount: float) -> str:
    return f"{CURRENCY}{amount:.2f}"


# ---------- documents ----------
def render_receipt_pdf(receipt: Receipt, img_bytes: bytes | None) -> bytes:
    """One page: receipt details table, then the receipt photo centred below."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    page_w, page_h = A4
    avail_w = page_w - 2 * MARGIN

    y = _draw_header(c, page_w, page_h, "Receipt Details")

    table = _details_table(receipt, avail_w)
    _, h = table.wrapOn(c, avail_w, y)
    table.drawOn(c, MARGIN, y - h)
    y -= h + 20

    img = _load_image(img_bytes)
    if img:
        max_w = avail_w * 0.7
        x = (page_w - max_w) / 2
        _draw_image(c, img, x, y, max_w, y - MARGIN)
    else:
        c.setFont("Helvetica", 9)
        c.drawString(MARGIN, y, "Image could not be embedded.")

    c.setFont("Helvetica", 8)
    c.drawRightString(page_w - MARGIN, 18, "Page 1")
    c.showPage()
    c.save()
    return buf.getvalue()


def render_period_report_pdf(
    items: Iterable[Tuple[Receipt, Optional[bytes]]],
    start: date | None,
    end: date | None,
) -> bytes:
    """Expense report: one block per receipt (details left, thumbnail right), paginated."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    page_w, page_h = A4
    thumb_w = 120
    thumb_h = 140
    text_w = page_w - 2 * MARGIN - thumb_w - 15

    period = f"Period: {start.isoformat() if start else '…'} to {end.isoformat() if end else '…'}"
    y = _draw_header(c, page_w, page_h, "Expense Report", period)
    page = 1
    total = 0.0
    count = 0

    def _footer():
        c.setFont("Helvetica", 8)
        c.drawRightString(page_w - MARGIN, 18, f"Page {page}")

    for receipt, img_bytes in items:
        table = _details_table(receipt, text_w)
        _, th = table.wrapOn(c, text_w, y)
        block_h = max(th, thumb_h) + 20

        if y - block_h < MARGIN + 20:
            _footer()
            c.showPage()
            page += 1
            y = page_h - 45

        table.drawOn(c, MARGIN, y - th)
        img = _load_image(img_bytes)
        if img:
            _draw_image(c, img, page_w - MARGIN - thumb_w, y, thumb_w, thumb_h)
        y -= block_h
        _hr(c, page_w, y + 10)

        total += receipt.amount
        count += 1

    if y < MARGIN + 40:
        _footer()
        c.showPage()
        page += 1
        y = page_h - 45
    c.setFont("Helvetica-Bold", 12)
    c.drawString(MARGIN, y - 10, f"Receipts: {count}    Total: {format_amount(total)}")

    _footer()
    c.showPage()
    c.save()
    return buf.getvalue()
