"""
Receipt extraction pipeline.

Orchestrates: OCR → structure with AI → normalize → assemble → persist.
Each step either hands its result to the next or ends the run with a
``PipelineError``; nothing is retried and nothing is cleaned up.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Optional

from app.errors import ErrorKind, PipelineError, ReceiptAppError
from app.pipeline.normalizer import normalize
from app.pipeline.ocr import TextExtractor
from app.pipeline.receipt_builder import build_receipt
from app.pipeline.structurer import PROMPT_TEMPLATE, StructuringClient
from app.schemas import ParsedExtraction, Receipt
from app.storage import StoredUpload
from app.store import ReceiptStore

logger = logging.getLogger(__name__)


@dataclass
class ParseResult:
    receipt: Receipt
    extracted_text: str
    parsed: ParsedExtraction


def _call_step(kind: ErrorKind, message: str, fn: Callable[..., Any], *args: Any) -> Any:
    """Call one external step; any failure comes back as a PipelineError value."""
    try:
        return fn(*args)
    except PipelineError as e:
        return e
    except ReceiptAppError as e:
        return PipelineError(e.kind, e.message, e.details)
    except Exception as e:
        logger.exception("%s: %s", kind.value, e)
        return PipelineError(kind, message, {"details": str(e)})


class ExtractionPipeline:
    def __init__(
        self,
        extractor: TextExtractor,
        structuring_client: StructuringClient,
        store: ReceiptStore,
        prompt_template: str = PROMPT_TEMPLATE,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.extractor = extractor
        self.structuring_client = structuring_client
        self.store = store
        self.prompt_template = prompt_template
        self.today = today

    def parse_receipt(self, upload: Optional[StoredUpload]) -> ParseResult | PipelineError:
        """Run the full extraction pipeline on one stored upload."""
        if upload is None:
            return PipelineError(ErrorKind.NO_FILE_PROVIDED, "No image file uploaded")

        logger.info("Processing receipt: %s", upload.filename)

        logger.info("Step 1: extracting text")
        text = _call_step(
            ErrorKind.EXTRACTION_ERROR,
            "Failed to extract text from receipt image",
            self.extractor.extract,
            upload.path,
        )
        if isinstance(text, PipelineError):
            return text
        logger.info("Extracted text: %r", text)

        if not text or not text.strip():
            logger.warning("No text recognized in %s", upload.filename)
            return PipelineError(
                ErrorKind.NO_TEXT_FOUND, "Could not extract text from receipt image"
            )

        logger.info("Step 2: structuring with AI")
        output = _call_step(
            ErrorKind.STRUCTURING_SERVICE_ERROR,
            "Failed to parse receipt with AI service",
            self.structuring_client.structure,
            text,
            self.prompt_template,
        )
        if isinstance(output, PipelineError):
            return output

        parsed = normalize(output, raw_text=text, today=self.today())
        if isinstance(parsed, PipelineError):
            return parsed
        logger.info("Parsed receipt data: %s", parsed.model_dump(by_alias=True))

        draft = build_receipt(parsed, upload.url)

        logger.info("Step 3: saving to database")
        receipt = _call_step(
            ErrorKind.PERSISTENCE_ERROR,
            "Failed to save receipt",
            self.store.create,
            draft,
        )
        if isinstance(receipt, PipelineError):
            return receipt

        logger.info("Receipt saved: %s", receipt.id)
        return ParseResult(receipt=receipt, extracted_text=text, parsed=parsed)
