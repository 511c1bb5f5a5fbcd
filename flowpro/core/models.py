"""
Domain records for the document pipeline.

Callers hand us rows the way the hosted database returns them: a job with
its customer joined under ``Customers`` and line items under ``LineItems``.
Plain snake_case keys (``customer``, ``line_items``) are accepted too.
Numbers are parsed leniently: absent or junk values become 0.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import DocumentInputError

# Lifecycle states shown on operational documents. Jobs may carry others.
JOB_STATUSES = ("Quote", "Work Order", "Completed", "Unsuccessful")


def _num(value, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        n = float(str(value).replace(",", "").replace("$", "").strip())
    except (TypeError, ValueError):
        return default
    if math.isnan(n) or math.isinf(n):
        return default
    return n


def _text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _job_number(value) -> Optional[int]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip().lstrip("#"))
    except ValueError:
        return None


@dataclass
class Customer:
    name: str
    phone: str = ""
    email: str = ""
    address: str = ""

    @classmethod
    def from_dict(cls, data) -> Optional["Customer"]:
        """Returns None when there is no usable customer (no name)."""
        if isinstance(data, Customer):
            return data
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, dict):
            return None
        name = _text(data.get("name"))
        if not name:
            return None
        return cls(
            name=name,
            phone=_text(data.get("phone")),
            email=_text(data.get("email")),
            address=_text(data.get("address")),
        )


@dataclass
class LineItem:
    description: str
    quantity: float = 1.0
    unit_price: float = 0.0

    @property
    def subtotal(self) -> float:
        return self.quantity * self.unit_price

    @classmethod
    def from_dict(cls, data) -> "LineItem":
        if isinstance(data, LineItem):
            return data
        data = data or {}
        if not isinstance(data, dict):
            raise DocumentInputError(
                f"Line item must be an object, got {type(data).__name__}")
        return cls(
            description=_text(data.get("description")),
            quantity=_num(data.get("quantity", data.get("qty")), 1.0),
            unit_price=_num(data.get("unit_price", data.get("price"))),
        )


@dataclass
class Job:
    title: str = ""
    job_number: Optional[int] = None
    id: str = ""
    job_ref: str = ""
    site_address: str = ""
    status: str = ""
    revenue: float = 0.0
    costs: float = 0.0
    notes: str = ""
    archived: bool = False
    customer: Optional[Customer] = None
    line_items: List[LineItem] = field(default_factory=list)

    @property
    def client_name(self) -> str:
        return self.customer.name if self.customer else ""

    @classmethod
    def from_dict(cls, data) -> "Job":
        if isinstance(data, Job):
            return data
        if not isinstance(data, dict):
            raise DocumentInputError(
                f"Job must be an object, got {type(data).__name__}")

        customer_raw = data.get("Customers", data.get("customer"))
        items_raw = data.get("LineItems", data.get("line_items")) or []
        if not isinstance(items_raw, list):
            raise DocumentInputError("Job line items must be a list")

        return cls(
            title=_text(data.get("title")),
            job_number=_job_number(data.get("job_number")),
            id=_text(data.get("id")),
            job_ref=_text(data.get("job_ref", data.get("job_reference"))),
            site_address=_text(data.get("site_address")),
            status=_text(data.get("status")),
            revenue=_num(data.get("revenue")),
            costs=_num(data.get("costs")),
            notes=_text(data.get("notes")),
            archived=bool(data.get("archived", data.get("is_archived", False))),
            customer=Customer.from_dict(customer_raw),
            line_items=[LineItem.from_dict(it) for it in items_raw],
        )


@dataclass
class DocTemplate:
    name: str
    content: object = None  # str when well-formed; validated at decode time
    id: str = ""

    @classmethod
    def from_dict(cls, data) -> "DocTemplate":
        if isinstance(data, DocTemplate):
            return data
        if not isinstance(data, dict):
            raise DocumentInputError(
                f"Template must be an object, got {type(data).__name__}")
        return cls(
            name=_text(data.get("name")) or "template.docx",
            content=data.get("content"),
            id=_text(data.get("id")),
        )


def check_job_limits(job: Job, limits: dict):
    """Reject payloads beyond the configured size caps."""
    max_items = int(limits.get("max_line_items", 0) or 0)
    if max_items and len(job.line_items) > max_items:
        raise DocumentInputError(
            f"Job has {len(job.line_items)} line items (limit {max_items})")
    max_notes = int(limits.get("max_notes_chars", 0) or 0)
    if max_notes and len(job.notes) > max_notes:
        raise DocumentInputError(
            f"Job notes are {len(job.notes)} characters (limit {max_notes})")
