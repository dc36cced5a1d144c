"""
Text extractor: Tesseract OCR over a stored receipt image.
"""
from __future__ import annotations

import logging
from typing import Optional, Protocol

import pytesseract
from PIL import Image, UnidentifiedImageError

from app.errors import ErrorKind, PipelineError

logger = logging.getLogger(__name__)


def configure_tesseract(tesseract_cmd: Optional[str]) -> None:
    """Point pytesseract at a non-default binary. Called once at startup."""
    if tesseract_cmd:
        pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        logger.info("Using tesseract binary: %s", tesseract_cmd)


class TextExtractor(Protocol):
    def extract(self, image_path: str) -> str: ...


class TesseractExtractor:
    """Run Tesseract on an image file and return the raw recognized text."""

    def __init__(self, language: str = "eng", timeout: float = 0) -> None:
        self.language = language
        self.timeout = timeout

    def extract(self, image_path: str) -> str:
        logger.info("OCR start: %s (lang=%s)", image_path, self.language)
        try:
            with Image.open(image_path) as image:
                # Palette / CMYK uploads confuse Tesseract
                if image.mode not in ("RGB", "L", "RGBA"):
                    image = image.convert("RGB")
                text = pytesseract.image_to_string(
                    image, lang=self.language, timeout=self.timeout
                )
        except (
            pytesseract.TesseractError,
            pytesseract.TesseractNotFoundError,
            RuntimeError,
        ) as e:
            # pytesseract raises RuntimeError on timeout
            logger.error("Tesseract failed on %s: %s", image_path, e)
            raise PipelineError(
                ErrorKind.EXTRACTION_ERROR,
                "Failed to extract text from receipt image",
                {"details": str(e)},
            ) from e
        except (UnidentifiedImageError, OSError) as e:
            logger.error("Cannot open image %s: %s", image_path, e)
            raise PipelineError(
                ErrorKind.EXTRACTION_ERROR,
                "Failed to read receipt image",
                {"details": str(e)},
            ) from e

        logger.info("OCR done: %d chars", len(text))
        return text
