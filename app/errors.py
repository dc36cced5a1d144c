"""
Error taxonomy for the receipt scanner.

Every failure a request can hit is one ``ReceiptAppError`` with a distinct
``kind``.  The exception handler registered in ``app.main`` renders them as
``{"error": ..., "kind": ..., **details}``.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    NO_FILE_PROVIDED = "NoFileProvided"
    EXTRACTION_ERROR = "ExtractionError"
    NO_TEXT_FOUND = "NoTextFound"
    STRUCTURING_SERVICE_ERROR = "StructuringServiceError"
    MALFORMED_AI_RESPONSE = "MalformedAIResponse"
    NO_ITEMS_EXTRACTED = "NoItemsExtracted"
    PERSISTENCE_ERROR = "PersistenceError"
    NOT_FOUND = "NotFound"


STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.NO_FILE_PROVIDED: 400,
    ErrorKind.EXTRACTION_ERROR: 500,
    ErrorKind.NO_TEXT_FOUND: 400,
    ErrorKind.STRUCTURING_SERVICE_ERROR: 502,
    ErrorKind.MALFORMED_AI_RESPONSE: 500,
    ErrorKind.NO_ITEMS_EXTRACTED: 400,
    ErrorKind.PERSISTENCE_ERROR: 500,
    ErrorKind.NOT_FOUND: 404,
}


class ReceiptAppError(Exception):
    """Base error: a kind, a user-facing message and diagnostic details."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details or {}

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "kind": self.kind.value, **self.details}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind.value!r}, {self.message!r})"


class PipelineError(ReceiptAppError):
    """A failure of one step of the extraction pipeline."""


class NotFoundError(ReceiptAppError):
    def __init__(self, message: str = "Receipt not found") -> None:
        super().__init__(ErrorKind.NOT_FOUND, message)


def receipt_error_handler(request: Request, exc: ReceiptAppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.kind.value, exc.message)
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.kind.value, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
