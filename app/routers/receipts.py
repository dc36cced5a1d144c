"""
Receipt API endpoints.

POST   /api/receipts/parse                    — upload image → OCR → AI → receipt
GET    /api/receipts                          — list receipts, newest first
GET    /api/receipts/summary/monthly          — spend grouped by month
GET    /api/receipts/{id}                     — get one receipt
PUT    /api/receipts/{id}                     — update a receipt
DELETE /api/receipts/{id}                     — delete a receipt
POST   /api/receipts/{id}/items               — add a line item
PUT    /api/receipts/{id}/items/{item_id}     — update a line item
DELETE /api/receipts/{id}/items/{item_id}     — delete a line item
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from app.deps import get_pipeline, get_store, get_upload_storage
from app.errors import ErrorKind, PipelineError
from app.pipeline import ExtractionPipeline
from app.pipeline.summary import monthly_totals
from app.schemas import (
    DeleteResponse,
    ItemCreate,
    ItemUpdate,
    MonthlySummary,
    ParseResponse,
    Receipt,
    ReceiptUpdate,
)
from app.storage import UploadStorage
from app.store import ReceiptStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/receipts")


# ── POST /api/receipts/parse ─────────────────────────────────────────────
@router.post("/parse", response_model=ParseResponse)
def parse_receipt(
    receipt: Optional[UploadFile] = File(None),
    storage: UploadStorage = Depends(get_upload_storage),
    pipeline: ExtractionPipeline = Depends(get_pipeline),
):
    if receipt is None or not receipt.filename:
        raise PipelineError(ErrorKind.NO_FILE_PROVIDED, "No image file uploaded")

    try:
        upload = storage.save(receipt.file, receipt.filename)
    finally:
        receipt.file.close()

    result = pipeline.parse_receipt(upload)
    if isinstance(result, PipelineError):
        raise result

    return ParseResponse(
        success=True,
        receipt=result.receipt,
        extracted_text=result.extracted_text,
        ai_parsed_data=result.parsed,
    )


# ── GET /api/receipts ────────────────────────────────────────────────────
@router.get("", response_model=list[Receipt])
def list_receipts(store: ReceiptStore = Depends(get_store)):
    return store.list_receipts()


# ── GET /api/receipts/summary/monthly ────────────────────────────────────
@router.get("/summary/monthly", response_model=MonthlySummary)
def monthly_summary(store: ReceiptStore = Depends(get_store)):
    return monthly_totals(store.list_receipts())


# ── GET /api/receipts/{receipt_id} ───────────────────────────────────────
@router.get("/{receipt_id}", response_model=Receipt)
def get_receipt(receipt_id: str, store: ReceiptStore = Depends(get_store)):
    logger.info("Fetching receipt: %s", receipt_id)
    return store.get(receipt_id)


# ── PUT /api/receipts/{receipt_id} ───────────────────────────────────────
@router.put("/{receipt_id}", response_model=Receipt)
def update_receipt(
    receipt_id: str, req: ReceiptUpdate, store: ReceiptStore = Depends(get_store)
):
    return store.update(receipt_id, req)


# ── DELETE /api/receipts/{receipt_id} ────────────────────────────────────
@router.delete("/{receipt_id}", response_model=DeleteResponse)
def delete_receipt(receipt_id: str, store: ReceiptStore = Depends(get_store)):
    store.delete(receipt_id)
    return DeleteResponse(message="Receipt deleted successfully", receipt_id=receipt_id)


# ── line items ───────────────────────────────────────────────────────────
@router.post("/{receipt_id}/items", response_model=Receipt)
def add_item(receipt_id: str, req: ItemCreate, store: ReceiptStore = Depends(get_store)):
    return store.add_item(receipt_id, req)


@router.put("/{receipt_id}/items/{item_id}", response_model=Receipt)
def update_item(
    receipt_id: str,
    item_id: str,
    req: ItemUpdate,
    store: ReceiptStore = Depends(get_store),
):
    return store.update_item(receipt_id, item_id, req)


@router.delete("/{receipt_id}/items/{item_id}", response_model=Receipt)
def delete_item(receipt_id: str, item_id: str, store: ReceiptStore = Depends(get_store)):
    return store.delete_item(receipt_id, item_id)
