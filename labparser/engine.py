"""
Lab Report Extractor
====================
Orchestrates the full pipeline for one uploaded report.

Usage:
    extractor = LabReportExtractor(PyMuPDFRasterizer(), vision_client)
    result = extractor.extract(pdf_bytes)
    # result is an ExtractionResult with records in page order

Architecture:
    bytes → validate_upload → PageRasterizer → PageImages →
    VisionClient (per page) → extract_json_array → LabTestRecords

Pages are processed one at a time. A page that fails (API error,
unparseable response) contributes no records and does not stop the run.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from pydantic import ValidationError

from .models import ExtractionResult, LabTestRecord, PageImage
from .rasterizer import ConversionError, PageRasterizer
from .response_parser import extract_json_array
from .validator import validate_upload
from .vision import VisionClient

logger = logging.getLogger(__name__)


class LabReportExtractor:
    """Turns PDF bytes into lab test records."""

    def __init__(self, rasterizer: PageRasterizer, vision: VisionClient):
        self.rasterizer = rasterizer
        self.vision = vision

    def extract(
        self,
        pdf_bytes: bytes,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> ExtractionResult:
        """
        Run the pipeline on an uploaded PDF.

        Args:
            pdf_bytes: Raw upload contents.
            progress_callback: Callback(page_num, total_pages) called after each page.

        Returns:
            ExtractionResult with all records that parsed successfully.

        Raises:
            UploadValidationError: If the buffer is not a plausible PDF.
            ConversionError: If the PDF produced no page images.
        """
        start_time = time.time()
        file_size = len(pdf_bytes)

        validate_upload(pdf_bytes, file_size)

        logger.info("Converting PDF to images...")
        pages = self.rasterizer.rasterize(pdf_bytes)
        logger.info(f"Converted PDF to {len(pages)} image(s)")

        if not pages:
            logger.error("No images were generated from the PDF")
            raise ConversionError(
                "Failed to convert PDF to images",
                {
                    "message": (
                        "The PDF could not be converted to images. "
                        "Please ensure it is a valid PDF file."
                    ),
                },
            )

        records: list[LabTestRecord] = []
        pages_failed = 0

        for index, page in enumerate(pages, start=1):
            logger.info(f"Processing page {index}/{len(pages)}")
            page_records = self._extract_page(page)
            if page_records is None:
                pages_failed += 1
            else:
                records.extend(page_records)

            if progress_callback:
                progress_callback(index, len(pages))

        elapsed = time.time() - start_time
        logger.info(
            f"Extraction complete in {elapsed:.2f}s — "
            f"{len(records)} results from {len(pages)} page(s), "
            f"{pages_failed} failed"
        )

        return ExtractionResult(
            records=records,
            file_size=file_size,
            page_count=len(pages),
            pages_failed=pages_failed,
        )

    def _extract_page(self, page: PageImage) -> Optional[list[LabTestRecord]]:
        """Returns the page's records, or None if the page failed."""
        try:
            return self._read_page(page)
        except Exception:
            logger.exception(f"Error processing page {page.page_number}")
            return None

    def _read_page(self, page: PageImage) -> Optional[list[LabTestRecord]]:
        response_text = self.vision.extract(page)

        logger.debug(f"Model response for page {page.page_number}:\n{response_text}")

        parsed = extract_json_array(response_text)
        if not parsed.success:
            logger.error(
                f"Failed to parse JSON from page {page.page_number}: {parsed.error}"
            )
            logger.debug(f"Raw response: {response_text}")
            return None

        page_records = []
        for item in parsed.data:
            if not isinstance(item, dict):
                logger.warning(
                    f"Skipping non-object entry on page {page.page_number}: {item!r}"
                )
                continue
            try:
                page_records.append(LabTestRecord.model_validate(item))
            except ValidationError as e:
                logger.warning(
                    f"Skipping malformed record on page {page.page_number}: {e}"
                )

        logger.info(
            f"Parsed {len(page_records)} test result(s) from page {page.page_number}"
        )
        return page_records
