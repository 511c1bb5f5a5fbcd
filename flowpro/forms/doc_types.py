"""
Document type registry.

Each export picks one of four looks. Quotes and invoices are financial
(amount column + TOTAL DUE box); work orders and service reports are
operational (status column, no money shown). Colors match the dashboard
tabs so a printed work order is the same yellow as its tab.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Tuple

log = logging.getLogger("flowpro.doc_types")

RGB = Tuple[int, int, int]


@dataclass(frozen=True)
class DocTypeConfig:
    tag: str
    title: str
    color: RGB
    text_color: RGB
    financial: bool

    def to_dict(self) -> dict:
        return {
            "type": self.tag,
            "title": self.title,
            "color": list(self.color),
            "text_color": list(self.text_color),
            "financial": self.financial,
        }


DOC_CONFIGS = MappingProxyType({
    "quote": DocTypeConfig("quote", "QUOTE", (239, 68, 68), (255, 255, 255), True),             # red
    "work_order": DocTypeConfig("work_order", "WORK ORDER", (250, 204, 21), (0, 0, 0), False),  # yellow
    "invoice": DocTypeConfig("invoice", "TAX INVOICE", (59, 130, 246), (255, 255, 255), True),  # blue
    "report": DocTypeConfig("report", "SERVICE REPORT", (34, 197, 94), (255, 255, 255), False), # green
})

DEFAULT_DOC_TYPE = "work_order"

# Older dashboard builds sent "workorder"
_ALIASES = {
    "workorder": "work_order",
    "wo": "work_order",
    "tax_invoice": "invoice",
    "service_report": "report",
}


def normalize_doc_type(tag) -> str:
    """Map a loose tag ("Work Order", "work-order", "workorder") to a registry key.
    Returns "" when the tag is not recognised."""
    key = str(tag or "").strip().lower().replace("-", "_").replace(" ", "_")
    key = _ALIASES.get(key, key)
    return key if key in DOC_CONFIGS else ""


def resolve_doc_type(tag) -> DocTypeConfig:
    """Never fails: unknown tags get the work order look."""
    key = normalize_doc_type(tag)
    if not key:
        log.warning("Unknown document type %r, falling back to %s", tag, DEFAULT_DOC_TYPE)
        key = DEFAULT_DOC_TYPE
    return DOC_CONFIGS[key]
