"""
Response normalizer.

Turns the free-form structuring output into a ``ParsedExtraction``:
strip fences → strict JSON parse → items check → field defaults.
Failures come back as a ``PipelineError`` value, not an exception.
"""
from __future__ import annotations

import json
import logging
import re
from datetime import date
from typing import Any, Optional

from app.errors import ErrorKind, PipelineError
from app.schemas import ParsedExtraction

logger = logging.getLogger(__name__)

DEFAULT_STORE_NAME = "Unknown Store"

_LEADING_FENCE = re.compile(r"^\s*```[\w+-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```\s*$")


def strip_fences(text: str) -> str:
    """Remove a surrounding ```json / ``` block and outer whitespace."""
    cleaned = _LEADING_FENCE.sub("", text, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def _item_quantity(item: dict[str, Any]) -> Any:
    return item.get("quantity") or 1


def items_total(items: list[dict[str, Any]]) -> float:
    """Σ(price × quantity) with a missing quantity counted as 1."""
    total = 0.0
    for item in items:
        try:
            total += float(item.get("price")) * float(_item_quantity(item))
        except (TypeError, ValueError):
            total = float("nan")
    return total


def apply_defaults(data: dict[str, Any], today: Optional[date] = None) -> ParsedExtraction:
    """Fill in missing store name, date and total.

    Assumes ``data["items"]`` is already known to be a non-empty list.
    Idempotent: feeding the dumped result back in returns the same object.
    """
    today = today or date.today()
    items = data["items"]
    total = data.get("totalAmount") or items_total(items)
    return ParsedExtraction(
        store_name=str(data.get("storeName") or DEFAULT_STORE_NAME),
        date=str(data.get("date") or today.isoformat()),
        items=items,
        total_amount=total,
    )


def normalize(
    output: str, raw_text: str = "", today: Optional[date] = None
) -> ParsedExtraction | PipelineError:
    """Normalize one structuring response.

    Returns the parsed extraction, or a ``MalformedAIResponse`` /
    ``NoItemsExtracted`` error carrying the raw text for diagnosis.
    """
    cleaned = strip_fences(output)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error("JSON parse error: %s", e)
        logger.error("Attempted to parse: %s", cleaned)
        return PipelineError(
            ErrorKind.MALFORMED_AI_RESPONSE,
            "Failed to parse AI response",
            {"details": "AI service returned invalid JSON", "rawResponse": cleaned},
        )

    items = data.get("items") if isinstance(data, dict) else None
    if (
        not isinstance(items, list)
        or not items
        or not all(isinstance(item, dict) for item in items)
    ):
        logger.warning("No items in AI response")
        return PipelineError(
            ErrorKind.NO_ITEMS_EXTRACTED,
            "No items found in receipt",
            {"extractedText": raw_text, "aiResponse": cleaned},
        )

    return apply_defaults(data, today)
