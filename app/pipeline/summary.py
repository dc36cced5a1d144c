"""
Monthly expenditure: receipt totals grouped by calendar month.
"""
from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable

from app.schemas import MonthlySummary, MonthlyTotal, Receipt


def month_label(key: str) -> str:
    """``"2024-05"`` → ``"May 2024"``."""
    year, month = key.split("-")
    return date(int(year), int(month), 1).strftime("%b %Y")


def monthly_totals(receipts: Iterable[Receipt]) -> MonthlySummary:
    amounts: dict[str, float] = defaultdict(float)
    counts: dict[str, int] = defaultdict(int)
    total = 0.0

    for receipt in receipts:
        key = f"{receipt.date.year:04d}-{receipt.date.month:02d}"
        amounts[key] += receipt.total_amount
        counts[key] += 1
        total += receipt.total_amount

    months = [
        MonthlyTotal(
            month=key,
            label=month_label(key),
            amount=round(amounts[key], 2),
            receipt_count=counts[key],
        )
        for key in sorted(amounts)
    ]
    return MonthlySummary(months=months, total_spent=round(total, 2))
