"""
Receipt datastore.

Create / find / update / delete over receipts and their line items.
Schema rules (dates, finite numbers, required names) are enforced here,
at the storage boundary.
"""
from __future__ import annotations

import logging
import math
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.errors import ErrorKind, NotFoundError, PipelineError
from app.models import ReceiptItemModel, ReceiptModel
from app.schemas import (
    ItemCreate,
    ItemUpdate,
    LineItem,
    Receipt,
    ReceiptCreate,
    ReceiptUpdate,
)

logger = logging.getLogger(__name__)

DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%d.%m.%Y",
    "%m/%d/%y",
    "%d-%m-%Y",
    "%b %d, %Y",
    "%d %b %Y",
)


class StorageValidationError(ValueError):
    """A value the receipt schema cannot hold."""


def parse_receipt_date(value: str | date) -> date:
    """Cast a reported date to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise StorageValidationError(f"Cast to date failed for value {text!r}")


def _finite(value: float, field: str) -> float:
    if value is None or not math.isfinite(value):
        raise StorageValidationError(f"Cast to number failed for {field}: {value!r}")
    return float(value)


def _required_name(value: Optional[str]) -> str:
    if not value or not value.strip():
        raise StorageValidationError("Item name is required")
    return value


def to_schema(model: ReceiptModel) -> Receipt:
    """ReceiptModel → Receipt response."""
    created_at = model.created_at
    if created_at is not None and created_at.tzinfo is None:
        # SQLite drops the offset; rows are always written in UTC
        created_at = created_at.replace(tzinfo=timezone.utc)
    return Receipt(
        id=model.id,
        store_name=model.store_name,
        date=model.date,
        items=[
            LineItem(id=item.id, name=item.name, price=item.price, quantity=item.quantity)
            for item in model.items
        ],
        total_amount=model.total_amount,
        image_url=model.image_url,
        created_at=created_at,
    )


class ReceiptStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    # ── internal ────────────────────────────────────────────────────────
    def _load(self, receipt_id: str) -> ReceiptModel:
        row = (
            self.db.query(ReceiptModel)
            .options(selectinload(ReceiptModel.items))
            .filter(ReceiptModel.id == receipt_id)
            .first()
        )
        if row is None:
            logger.warning("Receipt not found: %s", receipt_id)
            raise NotFoundError("Receipt not found")
        return row

    def _commit(self, row: ReceiptModel) -> Receipt:
        try:
            self.db.commit()
        except (SQLAlchemyError, OverflowError) as e:
            # OverflowError: an integer wider than the column (SQLite INTEGER)
            self.db.rollback()
            logger.error("Database write failed: %s", e)
            raise PipelineError(
                ErrorKind.PERSISTENCE_ERROR,
                "Failed to save receipt",
                {"details": str(e)},
            ) from e
        self.db.refresh(row)
        return to_schema(row)

    @staticmethod
    def _new_item(position: int, name: Optional[str], price: float, quantity: int) -> ReceiptItemModel:
        return ReceiptItemModel(
            position=position,
            name=_required_name(name),
            price=_finite(price, "price"),
            quantity=quantity,
        )

    def _recompute_total(self, row: ReceiptModel) -> None:
        """Recompute from the current items; a non-finite sum is not stored."""
        try:
            _finite(row.recompute_total(), "totalAmount")
        except StorageValidationError as e:
            self.db.rollback()
            logger.error("Receipt validation failed: %s", e)
            raise PipelineError(
                ErrorKind.PERSISTENCE_ERROR,
                "Failed to save receipt",
                {"details": str(e)},
            ) from e

    def _next_position(self, row: ReceiptModel) -> int:
        return max((item.position for item in row.items), default=-1) + 1

    # ── receipts ────────────────────────────────────────────────────────
    def create(self, draft: ReceiptCreate) -> Receipt:
        try:
            row = ReceiptModel(
                store_name=draft.store_name,
                date=parse_receipt_date(draft.date),
                total_amount=_finite(draft.total_amount, "totalAmount"),
                image_url=draft.image_url,
                items=[
                    self._new_item(idx, item.name, item.price, item.quantity)
                    for idx, item in enumerate(draft.items)
                ],
            )
        except StorageValidationError as e:
            logger.error("Receipt validation failed: %s", e)
            raise PipelineError(
                ErrorKind.PERSISTENCE_ERROR,
                "Failed to save receipt",
                {"details": str(e)},
            ) from e
        self.db.add(row)
        receipt = self._commit(row)
        logger.info("Stored receipt %s (%d items)", receipt.id, len(receipt.items))
        return receipt

    def list_receipts(self) -> list[Receipt]:
        rows = (
            self.db.query(ReceiptModel)
            .options(selectinload(ReceiptModel.items))
            .order_by(ReceiptModel.created_at.desc())
            .all()
        )
        logger.info("Found %d receipts in database", len(rows))
        return [to_schema(r) for r in rows]

    def get(self, receipt_id: str) -> Receipt:
        return to_schema(self._load(receipt_id))

    def update(self, receipt_id: str, patch: ReceiptUpdate) -> Receipt:
        """Partial whole-record update; the total is taken as given."""
        row = self._load(receipt_id)
        changes: dict[str, Any] = patch.model_dump(exclude_unset=True)

        items = changes.pop("items", None)
        for field, value in changes.items():
            if value is None and field != "image_url":
                continue
            setattr(row, field, value)
        if items is not None:
            row.items = [
                ReceiptItemModel(
                    position=idx,
                    name=item["name"],
                    price=item["price"],
                    quantity=item["quantity"],
                )
                for idx, item in enumerate(items)
            ]
        receipt = self._commit(row)
        logger.info("Updated receipt %s", receipt_id)
        return receipt

    def delete(self, receipt_id: str) -> None:
        row = self._load(receipt_id)
        self.db.delete(row)
        try:
            self.db.commit()
        except (SQLAlchemyError, OverflowError) as e:
            self.db.rollback()
            raise PipelineError(
                ErrorKind.PERSISTENCE_ERROR, "Failed to delete receipt", {"details": str(e)}
            ) from e
        logger.info("Deleted receipt %s", receipt_id)

    # ── line items ──────────────────────────────────────────────────────
    def add_item(self, receipt_id: str, item: ItemCreate) -> Receipt:
        row = self._load(receipt_id)
        row.items.append(
            ReceiptItemModel(
                position=self._next_position(row),
                name=item.name,
                price=item.price,
                quantity=item.quantity,
            )
        )
        self._recompute_total(row)
        logger.info("Added item %r to receipt %s", item.name, receipt_id)
        return self._commit(row)

    def update_item(self, receipt_id: str, item_id: str, patch: ItemUpdate) -> Receipt:
        row = self._load(receipt_id)
        target = next((i for i in row.items if i.id == item_id), None)
        if target is None:
            logger.warning("Item %s not found on receipt %s", item_id, receipt_id)
            raise NotFoundError("Item not found")
        for field, value in patch.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(target, field, value)
        self._recompute_total(row)
        logger.info("Updated item %s on receipt %s", item_id, receipt_id)
        return self._commit(row)

    def delete_item(self, receipt_id: str, item_id: str) -> Receipt:
        """Remove an item; an unknown item id leaves the items untouched."""
        row = self._load(receipt_id)
        row.items = [i for i in row.items if i.id != item_id]
        self._recompute_total(row)
        logger.info("Deleted item %s from receipt %s", item_id, receipt_id)
        return self._commit(row)
