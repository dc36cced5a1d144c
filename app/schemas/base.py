"""
Canonical models for the receipt scanner.

Wire format is camelCase (``storeName``, ``totalAmount``) with ``_id``
identifiers; Python attributes stay snake_case.
"""
from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Upper bound for a line-item quantity; keeps totals and the INTEGER column sane
MAX_QUANTITY = 10_000


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------

class ParsedExtraction(CamelModel):
    """Model output after fence stripping, JSON parsing and defaults.

    Item entries are kept exactly as the model produced them; coercion is
    the assembler's job.
    """
    store_name: str
    date: str = Field(..., description="YYYY-MM-DD as reported, or today")
    items: list[dict[str, Any]] = Field(..., min_length=1)
    total_amount: Any


class ItemDraft(CamelModel):
    name: Optional[str] = None
    price: float
    quantity: int = 1


class ReceiptCreate(CamelModel):
    """A receipt ready to hand to the datastore."""
    store_name: str
    date: str
    items: list[ItemDraft]
    total_amount: float
    image_url: Optional[str] = None


# ---------------------------------------------------------------------------
# Persisted receipt (response shape)
# ---------------------------------------------------------------------------

class LineItem(CamelModel):
    id: str = Field(..., alias="_id")
    name: str
    price: float
    quantity: int = 1


class Receipt(CamelModel):
    id: str = Field(..., alias="_id")
    store_name: str = "Unknown Store"
    date: dt.date
    items: list[LineItem] = Field(default_factory=list)
    total_amount: float
    image_url: Optional[str] = None
    created_at: dt.datetime


# ---------------------------------------------------------------------------
# API request / response envelopes
# ---------------------------------------------------------------------------

class ItemCreate(CamelModel):
    name: str = Field(..., min_length=1)
    price: float = Field(..., allow_inf_nan=False)
    quantity: int = Field(default=1, ge=1, le=MAX_QUANTITY)


class ItemUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    price: Optional[float] = Field(default=None, allow_inf_nan=False)
    quantity: Optional[int] = Field(default=None, ge=1, le=MAX_QUANTITY)


class ReceiptUpdate(CamelModel):
    store_name: Optional[str] = None
    date: Optional[dt.date] = None
    total_amount: Optional[float] = Field(default=None, allow_inf_nan=False)
    image_url: Optional[str] = None
    items: Optional[list[ItemCreate]] = None


class ParseResponse(CamelModel):
    success: bool = True
    receipt: Receipt
    extracted_text: str
    ai_parsed_data: ParsedExtraction


class DeleteResponse(CamelModel):
    message: str
    receipt_id: str


class MonthlyTotal(CamelModel):
    month: str = Field(..., description="YYYY-MM")
    label: str = Field(..., description="e.g. 'May 2024'")
    amount: float
    receipt_count: int


class MonthlySummary(CamelModel):
    months: list[MonthlyTotal] = Field(default_factory=list)
    total_spent: float = 0.0
