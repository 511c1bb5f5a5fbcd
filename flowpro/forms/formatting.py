"""Display formatting shared by the PDF and template generators."""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext

_CENTS = Decimal("0.01")
# Beyond float range counts as infinite, same as float("inf")
_MAX_EXPONENT = 308
_UNSAFE_TOKEN = re.compile(r"[^A-Za-z0-9]")


def format_currency(amount) -> str:
    """1234.5 → "1,234.50". Never raises.

    Anything that is not a finite, non-negative number (None, junk strings,
    NaN, booleans, negatives, anything past float range) renders as "0.00".
    """
    if amount is None or isinstance(amount, bool):
        return "0.00"
    try:
        if isinstance(amount, str):
            d = Decimal(amount.replace(",", "").replace("$", "").strip())
        else:
            d = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        return "0.00"
    if not d.is_finite() or d < 0 or d.adjusted() > _MAX_EXPONENT:
        return "0.00"
    with localcontext() as ctx:
        # Integer digits + cents + carry from rounding
        ctx.prec = max(ctx.prec, d.adjusted() + 4)
        d = d.quantize(_CENTS, rounding=ROUND_HALF_UP)
    if d == 0:
        return "0.00"
    return f"{d:,.2f}"


def format_quantity(qty) -> str:
    """2.0 → "2", 1.5 → "1.5"."""
    try:
        q = float(qty)
    except (TypeError, ValueError):
        return "1"
    if q.is_integer():
        return str(int(q))
    return ("%.4f" % q).rstrip("0").rstrip(".")


def safe_token(text) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return _UNSAFE_TOKEN.sub("_", str(text or ""))


def format_date(value=None) -> str:
    """Issue-date text used on every document: "Oct 19, 2026"."""
    if value is None:
        value = datetime.now()
    if hasattr(value, "strftime"):
        return value.strftime("%b %d, %Y")
    return str(value)
