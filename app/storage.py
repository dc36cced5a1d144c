"""
Upload storage: writes incoming receipt images under ``UPLOAD_DIR``.
"""
from __future__ import annotations

import logging
import os
import re
import shutil
import time
from dataclasses import dataclass
from typing import BinaryIO

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class StoredUpload:
    path: str  # filesystem path handed to OCR
    url: str  # public path recorded as imageUrl
    filename: str


def safe_filename(original: str) -> str:
    name = os.path.basename(original or "").strip()
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name or "receipt"


class UploadStorage:
    def __init__(self, upload_dir: str, url_prefix: str = "/uploads") -> None:
        self.upload_dir = upload_dir
        self.url_prefix = url_prefix.rstrip("/")

    def save(self, fileobj: BinaryIO, original_filename: str) -> StoredUpload:
        """Save the upload as ``<epoch-ms>-<original name>``."""
        os.makedirs(self.upload_dir, exist_ok=True)
        filename = f"{int(time.time() * 1000)}-{safe_filename(original_filename)}"
        path = os.path.join(self.upload_dir, filename)
        with open(path, "wb") as out:
            shutil.copyfileobj(fileobj, out)
        logger.info("Saved upload %s (%d bytes)", path, os.path.getsize(path))
        return StoredUpload(path=path, url=f"{self.url_prefix}/{filename}", filename=filename)
