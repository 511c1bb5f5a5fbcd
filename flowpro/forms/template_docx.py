"""
FlowPro DOCX Template Filler
================================
Fills a user-uploaded Word template with job + customer fields.

Templates are stored base64 encoded (usually as a data URI straight from the
browser upload). Placeholders are written in the template as {title},
{job_number}, {revenue}, {costs}, {current_date}, {name}, {email}, {phone},
{address}, {notes}. Word likes to split a placeholder over several runs once
it has been edited or spell-checked, so matching is done on the paragraph's
joined text and the replacement is written back into the runs it came from.
Every paragraph in the package is visited, including those in content
controls, text boxes, headers, footers, footnotes and endnotes.

Usage:
    from flowpro.forms.template_docx import generate_template_document
    result = generate_template_document(template_row, job_row)
"""

import io
import re
import base64
import binascii
import logging
import os

from docx import Document
from docx.opc.oxml import serialize_part_xml
from docx.opc.part import XmlPart
from docx.oxml import OxmlElement, parse_xml
from docx.oxml.ns import qn

from flowpro.core.config import load_config
from flowpro.core.errors import DocumentInputError, TemplateContentError, TemplateRenderError
from flowpro.core.models import DocTemplate, Job, check_job_limits
from .formatting import format_currency, format_date
from .delivery import DOCX_MIME, deliver_artifact

log = logging.getLogger("flowpro.template_docx")

PLACEHOLDERS = (
    "title", "job_number", "revenue", "costs", "current_date",
    "name", "email", "phone", "address", "notes",
)

TOKEN_RE = re.compile(r"\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}")


# ═══════════════════════════════════════════════════════════════════════════════
# DECODE
# ═══════════════════════════════════════════════════════════════════════════════

def decode_template_content(content, max_bytes: int = None) -> bytes:
    """Raw base64 or data:...;base64,<payload> → package bytes."""
    if not isinstance(content, str):
        raise TemplateContentError("Template content is missing or not a valid string.")

    payload = content.split(",", 1)[1] if "," in content else content
    payload = "".join(payload.split())
    if not payload:
        raise TemplateContentError("Template content is empty.")
    if max_bytes and len(payload) * 3 // 4 > max_bytes:
        raise TemplateContentError(
            f"Template is larger than the {max_bytes:,} byte limit.")

    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise TemplateContentError(f"Template content is not valid base64: {e}") from e


# ═══════════════════════════════════════════════════════════════════════════════
# VALUES
# ═══════════════════════════════════════════════════════════════════════════════

def build_template_values(job: Job, today=None) -> dict:
    """Explicit token → text mapping. Missing fields are ""."""
    cust = job.customer
    return {
        "title": job.title,
        "job_number": str(job.job_number) if job.job_number is not None else "",
        "revenue": format_currency(job.revenue),
        "costs": format_currency(job.costs),
        "current_date": format_date(today),
        "name": cust.name if cust else "",
        "email": cust.email if cust else "",
        "phone": cust.phone if cust else "",
        "address": cust.address if cust else "",
        "notes": job.notes,
    }


# ═══════════════════════════════════════════════════════════════════════════════
# SUBSTITUTION
# ═══════════════════════════════════════════════════════════════════════════════

# Package parts that carry document text: main body, headers, footers,
# footnotes and endnotes
_WML_PREFIXES = ("application/vnd.openxmlformats-officedocument.wordprocessingml.",
                 "application/vnd.ms-word.")
_TEXT_PARTS = ("main+xml", "header+xml", "footer+xml", "footnotes+xml", "endnotes+xml")

_W_P = qn("w:p")
_W_T = qn("w:t")
_XML_SPACE = qn("xml:space")


def _own_text_nodes(p) -> list:
    """w:t nodes of this paragraph, across runs, hyperlinks and inline content
    controls. Text of paragraphs nested inside it (text boxes) is left to them."""
    nodes = []
    for t in p.iter(_W_T):
        parent_p = next(t.iterancestors(_W_P), None)
        if parent_p is p:
            nodes.append(t)
    return nodes


def _set_text(t, text: str):
    """Write text into a w:t; newlines become w:br + a fresh w:t in the same run."""
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    t.text = lines[0]
    t.set(_XML_SPACE, "preserve")
    anchor = t
    for line in lines[1:]:
        br = OxmlElement("w:br")
        anchor.addnext(br)
        nt = OxmlElement("w:t")
        nt.text = line
        nt.set(_XML_SPACE, "preserve")
        br.addnext(nt)
        anchor = nt


def _fill_paragraph(p, values: dict, unknown: set) -> int:
    """Replace placeholders in one w:p element. Returns how many were filled.

    The value goes into the text node where the placeholder starts; the rest
    of the placeholder's characters are cut from the following nodes, so the
    surrounding run formatting survives.
    """
    nodes = _own_text_nodes(p)
    texts = [t.text or "" for t in nodes]
    full = "".join(texts)
    matches = list(TOKEN_RE.finditer(full))
    if not matches:
        return 0

    bounds = []
    pos = 0
    for t in texts:
        bounds.append((pos, pos + len(t)))
        pos += len(t)

    new_texts = list(texts)
    # Right to left so offsets of earlier matches stay valid
    for m in reversed(matches):
        key = m.group(1)
        if key in values:
            value = values[key]
        else:
            unknown.add(key)
            value = ""
        start, end = m.span()
        for i, (rs, re_) in enumerate(bounds):
            if re_ <= start or rs >= end:
                continue
            lo, hi = max(start, rs) - rs, min(end, re_) - rs
            t = new_texts[i]
            if rs <= start:
                new_texts[i] = t[:lo] + value + t[hi:]
            else:
                new_texts[i] = t[:lo] + t[hi:]

    for node, old, new in zip(nodes, texts, new_texts):
        if new != old:
            _set_text(node, new)
    return len(matches)


def _fill_element(root, values: dict, unknown: set) -> int:
    """Every paragraph under root: body, tables, content controls, text boxes."""
    return sum(_fill_paragraph(p, values, unknown) for p in list(root.iter(_W_P)))


def _is_text_part(part) -> bool:
    ct = part.content_type or ""
    return ct.startswith(_WML_PREFIXES) and ct.endswith(_TEXT_PARTS)


def render_template(raw: bytes, values: dict) -> bytes:
    """Open the .docx package, fill every placeholder, serialize again."""
    try:
        doc = Document(io.BytesIO(raw))
    except Exception as e:
        raise TemplateRenderError(f"Template is not a valid .docx package: {e}") from e

    unknown = set()
    filled = 0
    try:
        for part in doc.part.package.iter_parts():
            if not _is_text_part(part):
                continue
            if isinstance(part, XmlPart):
                filled += _fill_element(part.element, values, unknown)
            else:
                # Parts python-docx has no class for (footnotes, endnotes) stay raw bytes
                root = parse_xml(part.blob)
                n = _fill_element(root, values, unknown)
                if n:
                    part._blob = serialize_part_xml(root)
                    filled += n
    except Exception as e:
        raise TemplateRenderError(f"Could not fill template: {e}") from e

    if unknown:
        log.debug("Unknown placeholders blanked: %s", ", ".join(sorted(unknown)))

    out = io.BytesIO()
    try:
        doc.save(out)
    except Exception as e:
        raise TemplateRenderError(f"Could not rebuild document: {e}") from e
    log.debug("Filled %d placeholder(s)", filled)
    return out.getvalue()


def build_template_filename(job: Job, template: DocTemplate) -> str:
    """1042_Site Induction.docx. Slashes in the template name become "_"."""
    job_no = str(job.job_number) if job.job_number is not None else "draft"
    name = re.sub(r"[\\/]", "_", template.name or "template")
    if not os.path.splitext(name)[1]:
        name += ".docx"
    return f"{job_no}_{name}"


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════════

def generate_template_document(template, job, output_dir: str = None, save: bool = True,
                               today=None) -> dict:
    """
    Fill a stored template for a job.

    template: DocTemplate or {"name", "content"} (content = base64 / data URI)
    job: Job or job row dict

    Returns {"ok": True, "data", "filename", "path", ...} or
    {"ok": False, "error"}. Never raises or leaves a partial file.
    """
    try:
        cfg = load_config()
        template = DocTemplate.from_dict(template)
        job = Job.from_dict(job)
        check_job_limits(job, cfg["limits"])

        raw = decode_template_content(template.content, cfg["limits"]["max_template_bytes"])
        data = render_template(raw, build_template_values(job, today))
        filename = build_template_filename(job, template)
        path = deliver_artifact(data, filename, output_dir) if save else ""
    except Exception as e:
        log.error("Doc generation error: %s", e, exc_info=True)
        return {"ok": False, "error": f"Error generating document: {e}",
                "rejected": isinstance(e, (DocumentInputError, TemplateContentError))}

    log.info("Template %r filled for job #%s → %s",
             template.name, job.job_number, path or filename,
             extra={"job_number": job.job_number, "artifact": filename})
    return {
        "ok": True,
        "data": data,
        "filename": filename,
        "path": path,
        "template": template.name,
        "job_number": job.job_number,
        "mimetype": DOCX_MIME,
    }
