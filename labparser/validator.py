"""
Upload Validator
================
Cheap structural checks on an uploaded buffer before any rendering happens.

Two independent checks:
    - Minimum size (a real PDF is never under 1 KB)
    - Magic number (the first four bytes must be ``%PDF``)

Each failure reports what was found and what was expected.
"""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)

MIN_PDF_SIZE = 1024
PDF_MAGIC = b"%PDF"


class UploadValidationError(ValueError):
    """Raised when an upload cannot be a PDF. Maps to HTTP 400."""

    def __init__(self, error: str, details: dict):
        super().__init__(error)
        self.error = error
        self.details = details


def read_magic_number(data: bytes) -> str:
    """Return the first four bytes as ASCII, replacing anything non-ASCII."""
    return data[: len(PDF_MAGIC)].decode("ascii", errors="replace")


def validate_upload(data: bytes, size: Optional[int] = None) -> None:
    """
    Validate an uploaded PDF buffer.

    Args:
        data: Raw bytes of the upload.
        size: Declared size in bytes. Defaults to ``len(data)``.

    Raises:
        UploadValidationError: If the buffer is too small or not a PDF.
    """
    if size is None:
        size = len(data)

    if size < MIN_PDF_SIZE:
        logger.error(f"File too small to be a valid PDF ({size} bytes)")
        raise UploadValidationError(
            "File too small to be a valid PDF",
            {
                "size": size,
                "minimumSize": MIN_PDF_SIZE,
                "message": "PDF files should be at least 1KB in size",
            },
        )

    magic_number = read_magic_number(data)
    logger.info(f"PDF magic number: {magic_number!r}")

    if data[: len(PDF_MAGIC)] != PDF_MAGIC:
        logger.error("Invalid PDF file format")
        raise UploadValidationError(
            "Invalid PDF file format",
            {
                "magicNumber": magic_number,
                "expectedMagicNumber": PDF_MAGIC.decode("ascii"),
                "message": "The file does not appear to be a valid PDF",
            },
        )
