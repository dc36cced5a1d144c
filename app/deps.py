"""
Request-scoped collaborators, built from settings.

Routes receive these through ``Depends``; tests swap them with
``app.dependency_overrides``.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.pipeline import ExtractionPipeline
from app.pipeline.ocr import TesseractExtractor, TextExtractor
from app.pipeline.structurer import GeminiStructuringClient, StructuringClient
from app.storage import UploadStorage
from app.store import ReceiptStore


def get_store(db: Session = Depends(get_db)) -> ReceiptStore:
    return ReceiptStore(db)


def get_upload_storage() -> UploadStorage:
    return UploadStorage(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX)


def get_text_extractor() -> TextExtractor:
    return TesseractExtractor(
        language=settings.OCR_LANGUAGE,
        timeout=settings.OCR_TIMEOUT_SECONDS,
    )


def get_structuring_client() -> StructuringClient:
    return GeminiStructuringClient(
        api_key=settings.GEMINI_API_KEY,
        model=settings.GEMINI_MODEL,
        timeout=settings.GEMINI_TIMEOUT_SECONDS,
    )


def get_pipeline(
    extractor: TextExtractor = Depends(get_text_extractor),
    structuring_client: StructuringClient = Depends(get_structuring_client),
    store: ReceiptStore = Depends(get_store),
) -> ExtractionPipeline:
    return ExtractionPipeline(extractor, structuring_client, store)
