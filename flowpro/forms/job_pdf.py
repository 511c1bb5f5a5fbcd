"""
FlowPro Job PDF Generator
================================
Branded quote / work order / tax invoice / service report PDFs drawn
straight onto a reportlab canvas from a Job record.

Layout (A4, millimetres measured from the top edge):
  - 0-40     colored header band: brand left, document title right
  - 55+      issue date + job number (right), BILLED TO / CLIENT block (left)
  - 85+      line item table, header row repeats on continuation pages
  - then     SCOPE & NOTES (only when the job has notes)
  - then     TOTAL DUE box (quotes and invoices only)
  - 285      italic validity footer on every page

Usage:
    from flowpro.forms.job_pdf import generate_job_pdf
    result = generate_job_pdf(job_row, "invoice")   # {"ok", "path", "filename", ...}
"""

import io
import re
import logging

from reportlab.lib.pagesizes import A4
from reportlab.lib.colors import Color
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from flowpro.core.config import load_config
from flowpro.core.errors import DocumentInputError
from flowpro.core.models import Job, LineItem, check_job_limits
from .doc_types import DocTypeConfig, resolve_doc_type
from .formatting import format_currency, format_date, format_quantity, safe_token
from .delivery import deliver_artifact

log = logging.getLogger("flowpro.job_pdf")

# ── Colors ──
BODY     = Color(40 / 255, 40 / 255, 40 / 255)
LABEL    = Color(100 / 255, 100 / 255, 100 / 255)
MUTED    = Color(150 / 255, 150 / 255, 150 / 255)
GRID     = Color(0.80, 0.80, 0.80)
ALT_ROW  = Color(0.97, 0.97, 0.97)
TOTAL_BG = Color(250 / 255, 250 / 255, 250 / 255)

PAGE_W, PAGE_H = A4  # 595.3 x 841.9 pt (210 x 297 mm)

# ── Geometry (mm, top-origin) ──
MARGIN_L = 14
MARGIN_R = 196
CONTENT_W = MARGIN_R - MARGIN_L      # 182
HEADER_H = 40
TABLE_TOP = 85
AMOUNT_W = 40
DESC_W = CONTENT_W - AMOUNT_W
CELL_PAD = 3
ROW_H = 10
LINE_H = 5
ROW_PAD = ROW_H - LINE_H
CONTINUATION_TOP = 20
BOTTOM_LIMIT = 275                   # keep clear of the footer
NOTES_BREAK_AT = 250
TOTAL_BREAK_AT = 260
FOOTER_Y = 285
MAX_ROW_LINES = int((BOTTOM_LIMIT - CONTINUATION_TOP - ROW_H - ROW_PAD) // LINE_H)

PRIVATE_CLIENT = "Private Client"
FALLBACK_ITEM = "General Service"
FALLBACK_STATUS = "Pending"


def X(x_mm):
    return x_mm * mm


def Y(top_mm):
    """Top-origin mm → reportlab y (bottom-origin points)."""
    return PAGE_H - top_mm * mm


def _rgb(triple):
    r, g, b = triple
    return Color(r / 255, g / 255, b / 255)


def _fit(text, font, size, max_w_mm):
    """Trim text with '...' so it fits max_w_mm."""
    text = str(text)
    max_w = max_w_mm * mm
    if stringWidth(text, font, size) <= max_w:
        return text
    while text and stringWidth(text + "...", font, size) > max_w:
        text = text[:-1]
    return text.rstrip() + "..."


def _wrap(text, font, size, max_w_mm) -> list:
    """simpleSplit, plus hard breaks inside words wider than the column (URLs, part codes)."""
    max_w = max_w_mm * mm
    lines = []
    for line in simpleSplit(text, font, size, max_w):
        if stringWidth(line, font, size) <= max_w:
            lines.append(line)
            continue
        chunk = ""
        for ch in line:
            if chunk and stringWidth(chunk + ch, font, size) > max_w:
                lines.append(chunk)
                chunk = ch
            else:
                chunk += ch
        lines.append(chunk)
    return lines


def _job_no(job: Job) -> str:
    return str(job.job_number) if job.job_number is not None else ""


class _StampedCanvas(canvas.Canvas):
    """Holds finished pages until save() so every page gets the footer."""

    def __init__(self, *args, footer_text="", **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._footer_text = footer_text
        self._saved_page_states = []
        self.page_count = 0

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        num_pages = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(num_pages)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)
        self.page_count = num_pages

    def _draw_footer(self, page_count):
        self.saveState()
        self.setFont("Helvetica-Oblique", 8)
        self.setFillColor(MUTED)
        self.drawCentredString(PAGE_W / 2, Y(FOOTER_Y), self._footer_text)
        if page_count > 1:
            self.setFont("Helvetica", 7)
            self.drawRightString(X(MARGIN_R), Y(FOOTER_Y + 5),
                                 f"Page {self._pageNumber} of {page_count}")
        self.restoreState()


# ═══════════════════════════════════════════════════════════════════════════════
# TABLE DATA
# ═══════════════════════════════════════════════════════════════════════════════

def effective_line_items(job: Job) -> list:
    """Job's line items, or one synthetic item built from title + revenue."""
    if job.line_items:
        return list(job.line_items)
    return [LineItem(description=job.title or FALLBACK_ITEM, quantity=1, unit_price=job.revenue)]


def table_rows(job: Job, config: DocTypeConfig) -> list:
    """[(description cell, second cell)] exactly as drawn in the table."""
    status = job.status or FALLBACK_STATUS
    rows = []
    for item in effective_line_items(job):
        desc = f"{format_quantity(item.quantity)}x {item.description}".rstrip()
        second = f"${format_currency(item.subtotal)}" if config.financial else status
        rows.append((desc, second))
    return rows


def client_lines(job: Job) -> list:
    """Name (or fallback), address, phone, email. Blanks dropped."""
    cust = job.customer
    if not cust:
        return [PRIVATE_CLIENT]
    lines = [cust.name or PRIVATE_CLIENT]
    lines.extend(ln.strip() for ln in cust.address.splitlines())
    lines.extend([cust.phone, cust.email])
    return [ln for ln in lines if ln]


def build_pdf_filename(job: Job, config: DocTypeConfig) -> str:
    """O'Brien & Sons on quote #1042 → QUOTE_1042_O_Brien___Sons.pdf"""
    safe_title = re.sub(r"\s+", "_", config.title)
    client = job.client_name or PRIVATE_CLIENT
    return f"{safe_title}_{_job_no(job) or 'draft'}_{safe_token(client)}.pdf"


# ═══════════════════════════════════════════════════════════════════════════════
# DRAWING
# ═══════════════════════════════════════════════════════════════════════════════

def _new_page(c) -> float:
    c.showPage()
    return CONTINUATION_TOP


def _draw_header(c, config: DocTypeConfig, brand: dict):
    c.setFillColor(_rgb(config.color))
    c.rect(0, Y(HEADER_H), PAGE_W, HEADER_H * mm, fill=1, stroke=0)

    c.setFillColor(_rgb(config.text_color))
    c.setFont("Helvetica-Bold", 28)
    c.drawString(X(MARGIN_L), Y(24), brand.get("name", ""))
    c.setFont("Helvetica", 10)
    c.drawString(X(MARGIN_L), Y(32), brand.get("tagline", ""))

    c.setFont("Helvetica-Bold", 22)
    c.drawRightString(X(MARGIN_R), Y(26), config.title)


def _draw_metadata(c, job: Job, issued: str):
    c.setFillColor(BODY)
    c.setFont("Helvetica", 10)
    c.drawRightString(X(MARGIN_R), Y(55), f"Date Issued: {issued}")

    c.setFont("Helvetica-Bold", 10)
    job_no = _job_no(job)
    c.drawRightString(X(MARGIN_R), Y(62),
                      f"Job Reference: #{job_no}" if job_no else "Job Reference: Draft")

    y = 69
    c.setFont("Helvetica", 9)
    for label, value in (("Ref", job.job_ref), ("Site", job.site_address)):
        if value:
            flat = " ".join(value.split())
            c.drawRightString(X(MARGIN_R), Y(y), _fit(f"{label}: {flat}", "Helvetica", 9, 85))
            y += LINE_H


def _draw_client(c, job: Job) -> float:
    """Returns the y just below the last client line."""
    c.setFont("Helvetica-Bold", 10)
    c.setFillColor(LABEL)
    c.drawString(X(MARGIN_L), Y(55), "BILLED TO / CLIENT:")

    c.setFont("Helvetica", 10)
    c.setFillColor(BODY)
    y = 62
    for line in client_lines(job):
        c.drawString(X(MARGIN_L), Y(y), _fit(line, "Helvetica", 10, 90))
        y += LINE_H
    return y


def _draw_table_header(c, y, config: DocTypeConfig) -> float:
    c.setFillColor(_rgb(config.color))
    c.rect(X(MARGIN_L), Y(y + ROW_H), CONTENT_W * mm, ROW_H * mm, fill=1, stroke=0)
    c.setStrokeColor(GRID)
    c.setLineWidth(0.5)
    c.rect(X(MARGIN_L), Y(y + ROW_H), CONTENT_W * mm, ROW_H * mm, fill=0, stroke=1)

    c.setFillColor(_rgb(config.text_color))
    c.setFont("Helvetica-Bold", 10)
    c.drawString(X(MARGIN_L + CELL_PAD), Y(y + 6.5), "Description")
    c.drawRightString(X(MARGIN_R - CELL_PAD), Y(y + 6.5),
                      "Amount" if config.financial else "Status")
    return y + ROW_H


def _draw_row(c, y, idx, lines, second) -> float:
    row_h = max(ROW_H, len(lines) * LINE_H + ROW_PAD)
    split_x = X(MARGIN_L + DESC_W)

    if idx % 2 == 1:
        c.setFillColor(ALT_ROW)
        c.rect(X(MARGIN_L), Y(y + row_h), CONTENT_W * mm, row_h * mm, fill=1, stroke=0)
    c.setStrokeColor(GRID)
    c.setLineWidth(0.5)
    c.rect(X(MARGIN_L), Y(y + row_h), CONTENT_W * mm, row_h * mm, fill=0, stroke=1)
    c.line(split_x, Y(y), split_x, Y(y + row_h))

    c.setFillColor(BODY)
    c.setFont("Helvetica", 10)
    for i, line in enumerate(lines):
        c.drawString(X(MARGIN_L + CELL_PAD), Y(y + 6.5 + i * LINE_H), line)
    if second:
        c.drawRightString(X(MARGIN_R - CELL_PAD), Y(y + 6.5),
                          _fit(second, "Helvetica", 10, AMOUNT_W - 2 * CELL_PAD))
    return y + row_h


def _draw_line_items(c, y, job: Job, config: DocTypeConfig) -> float:
    y = _draw_table_header(c, y, config)
    for idx, (desc, second) in enumerate(table_rows(job, config)):
        lines = _wrap(desc, "Helvetica", 10, DESC_W - 2 * CELL_PAD) or [""]
        first = True
        while lines:
            room = int((BOTTOM_LIMIT - y - ROW_PAD) // LINE_H)
            # Move the whole row over when it fits on a fresh page
            if room < len(lines) and (len(lines) <= MAX_ROW_LINES or room < 1):
                y = _draw_table_header(c, _new_page(c), config)
                continue
            chunk, lines = lines[:room], lines[room:]
            y = _draw_row(c, y, idx, chunk, second if first else "")
            first = False
    return y


def _draw_notes(c, y, notes: str) -> float:
    if y > NOTES_BREAK_AT:
        y = _new_page(c)

    c.setFont("Helvetica-Bold", 10)
    c.setFillColor(LABEL)
    c.drawString(X(MARGIN_L), Y(y), "SCOPE & NOTES:")

    wrapped = []
    for para in notes.splitlines():
        wrapped.extend(_wrap(para, "Helvetica", 10, CONTENT_W) or [""])

    ly = y + 7
    for line in wrapped:
        if ly > BOTTOM_LIMIT:
            ly = _new_page(c)
        c.setFont("Helvetica", 10)
        c.setFillColor(BODY)
        c.drawString(X(MARGIN_L), Y(ly), line)
        ly += LINE_H
    return ly + 8


def _draw_total(c, y, config: DocTypeConfig, revenue):
    if y > TOTAL_BREAK_AT:
        y = _new_page(c)

    box_x, box_w, box_h = 130, MARGIN_R - 130, 20
    c.setFillColor(TOTAL_BG)
    c.rect(X(box_x), Y(y - 8 + box_h), box_w * mm, box_h * mm, fill=1, stroke=0)
    c.setStrokeColor(_rgb(config.color))
    c.setLineWidth(1 * mm)
    c.line(X(box_x), Y(y - 8), X(MARGIN_R), Y(y - 8))

    c.setFont("Helvetica-Bold", 14)
    c.setFillColor(BODY)
    c.drawString(X(box_x + 5), Y(y + 5), "TOTAL DUE:")
    c.drawRightString(X(MARGIN_R - 5), Y(y + 5), f"${format_currency(revenue)}")
    return y + box_h


def _compose(job: Job, config: DocTypeConfig, issued=None, brand: dict = None):
    brand = brand or load_config()["brand"]
    buf = io.BytesIO()
    c = _StampedCanvas(buf, pagesize=A4, footer_text=brand.get("footer", ""))
    job_no = _job_no(job)
    c.setTitle(f"{config.title} #{job_no}" if job_no else config.title)
    c.setAuthor(brand.get("author", ""))
    c.setSubject(job.title)

    _draw_header(c, config, brand)
    _draw_metadata(c, job, format_date(issued))
    client_bottom = _draw_client(c, job)

    y = _draw_line_items(c, max(TABLE_TOP, client_bottom + 6), job, config)
    y += 15

    if job.notes.strip():
        y = _draw_notes(c, y, job.notes)

    if config.financial:
        _draw_total(c, y, config, job.revenue)

    c.showPage()
    c.save()
    return buf.getvalue(), c.page_count


def compose_job_pdf(job: Job, config: DocTypeConfig, issued=None, brand: dict = None) -> bytes:
    """Draw the document. Pure: no file or network I/O."""
    data, _ = _compose(job, config, issued, brand)
    return data


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════════

def generate_job_pdf(job, doc_type, output_dir: str = None, save: bool = True,
                     issued=None) -> dict:
    """
    Generate a job document PDF.

    job: Job or job row dict ({title, job_number, status, revenue, notes,
         Customers: {...}, LineItems: [...]})
    doc_type: quote | work_order | invoice | report (anything else → work order)

    Returns {"ok": True, "data", "filename", "path", ...} or
    {"ok": False, "error"}. Never raises.
    """
    try:
        cfg_all = load_config()
        job = Job.from_dict(job)
        check_job_limits(job, cfg_all["limits"])
        config = resolve_doc_type(doc_type)

        log.info("Generating %s for job #%s (%s, %d items)",
                 config.title, _job_no(job) or "draft",
                 (job.client_name or PRIVATE_CLIENT)[:40], len(job.line_items),
                 extra={"job_number": job.job_number, "doc_type": config.tag})

        data, pages = _compose(job, config, issued, cfg_all["brand"])
        filename = build_pdf_filename(job, config)
        path = deliver_artifact(data, filename, output_dir) if save else ""
    except Exception as e:
        log.error("PDF generation failed (type=%s): %s", doc_type, e, exc_info=True)
        return {"ok": False, "error": f"PDF generation failed: {e}",
                "rejected": isinstance(e, DocumentInputError)}

    log.info("%s #%s generated: %d page(s), %d bytes → %s",
             config.title, _job_no(job) or "draft", pages, len(data), path or filename,
             extra={"job_number": job.job_number, "doc_type": config.tag,
                    "artifact": filename})
    return {
        "ok": True,
        "data": data,
        "filename": filename,
        "path": path,
        "doc_type": config.tag,
        "title": config.title,
        "pages": pages,
        "job_number": job.job_number,
        "mimetype": "application/pdf",
    }


# ═══════════════════════════════════════════════════════════════════════════════
# SELF-TEST
# ═══════════════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    import tempfile

    sample = {
        "title": "Hot water system replacement",
        "job_number": 1042,
        "status": "Work Order",
        "revenue": 2450.0,
        "notes": "Remove old 250L unit. Install new heat pump unit on existing slab.\n"
                 "Customer to provide access via side gate.",
        "Customers": {"name": "O'Brien & Sons", "phone": "0400 111 222",
                      "email": "accounts@obrien.example", "address": "12 Harbour St\nFremantle WA"},
        "LineItems": [
            {"description": "Heat pump unit 270L", "quantity": 1, "unit_price": 1950},
            {"description": "Labour (hours)", "quantity": 4, "unit_price": 125},
        ],
    }
    out = tempfile.mkdtemp(prefix="flowpro-")
    for t in ("quote", "work_order", "invoice", "report"):
        r = generate_job_pdf(sample, t, output_dir=out)
        print(f"{t:11s} ok={r['ok']} pages={r.get('pages')} → {r.get('path') or r.get('error')}")
