from app.schemas.base import (
    MAX_QUANTITY,
    CamelModel,
    DeleteResponse,
    ItemCreate,
    ItemDraft,
    ItemUpdate,
    LineItem,
    MonthlySummary,
    MonthlyTotal,
    ParsedExtraction,
    ParseResponse,
    Receipt,
    ReceiptCreate,
    ReceiptUpdate,
)

__all__ = [
    "MAX_QUANTITY",
    "CamelModel",
    "DeleteResponse",
    "ItemCreate",
    "ItemDraft",
    "ItemUpdate",
    "LineItem",
    "MonthlySummary",
    "MonthlyTotal",
    "ParsedExtraction",
    "ParseResponse",
    "Receipt",
    "ReceiptCreate",
    "ReceiptUpdate",
]
