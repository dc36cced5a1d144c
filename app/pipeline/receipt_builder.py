"""
Receipt assembler – coerces a parsed extraction into a persistable draft.
"""
from __future__ import annotations

import math
import re
from typing import Any, Optional

from app.schemas import MAX_QUANTITY, ItemDraft, ParsedExtraction, ReceiptCreate

# Leading numeric prefix, same acceptance as a JS parseFloat / parseInt
_FLOAT_PREFIX = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"^\s*[+-]?\d+")


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def to_float(value: Any) -> float:
    """Best-effort float; anything without a numeric prefix becomes NaN."""
    if isinstance(value, bool):
        return float("nan")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = _FLOAT_PREFIX.match(value)
        if match:
            return float(match.group(0))
    return float("nan")


def to_quantity(value: Any) -> int:
    """Positive integer quantity; missing, non-numeric or < 1 means 1.

    Capped at ``MAX_QUANTITY``.
    """
    quantity: Optional[int] = None
    if isinstance(value, bool):
        quantity = None
    elif isinstance(value, int):
        quantity = value
    elif isinstance(value, float) and math.isfinite(value):
        quantity = int(value)
    elif isinstance(value, str):
        match = _INT_PREFIX.match(value)
        if match:
            quantity = int(match.group(0))
    if quantity is None or quantity < 1:
        return 1
    return min(quantity, MAX_QUANTITY)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_item(raw: dict[str, Any]) -> ItemDraft:
    name = raw.get("name")
    return ItemDraft(
        name=str(name).strip() if name is not None else None,
        price=to_float(raw.get("price")),
        quantity=to_quantity(raw.get("quantity")),
    )


def build_receipt(parsed: ParsedExtraction, image_url: Optional[str]) -> ReceiptCreate:
    """Assemble a receipt draft. Never fails on malformed item fields."""
    return ReceiptCreate(
        store_name=parsed.store_name,
        date=parsed.date,
        items=[build_item(item) for item in parsed.items],
        total_amount=to_float(parsed.total_amount),
        image_url=image_url,
    )
