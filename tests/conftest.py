"""Shared fakes and fixtures for the lab report parser tests."""

from __future__ import annotations

import fitz
import pytest

from labparser.engine import LabReportExtractor
from labparser.models import PageImage

PNG_STUB = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def make_pdf_bytes(pages: int = 1) -> bytes:
    """Build a small real PDF with a few lines of text per page."""
    doc = fitz.open()
    for i in range(pages):
        page = doc.new_page()
        for line in range(20):
            page.insert_text(
                (72, 72 + line * 14),
                f"Page {i + 1} line {line + 1}: Glucose 95 mg/dL (70-99)",
            )
    data = doc.tobytes()
    doc.close()
    return data


def fake_pdf_upload(size: int = 2048) -> bytes:
    """Bytes that pass the upload checks without being a renderable PDF."""
    header = b"%PDF-1.7\n"
    return header + b"0" * (size - len(header))


def record(test: str, **overrides) -> dict:
    data = {
        "test": test,
        "category": "Chemistry",
        "result": "95",
        "reference_min": "70",
        "reference_max": "99",
        "payor_code": "",
        "status": "normal",
        "test_date": "2024-03-01",
    }
    data.update(overrides)
    return data


class FakeRasterizer:
    """Returns a fixed number of stub page images."""

    name = "fake"

    def __init__(self, pages: int = 1, error: Exception = None):
        self.pages = pages
        self.error = error
        self.calls = 0

    def rasterize(self, pdf_bytes: bytes) -> list[PageImage]:
        self.calls += 1
        if self.error:
            raise self.error
        return [
            PageImage(page_number=i + 1, png_bytes=PNG_STUB)
            for i in range(self.pages)
        ]


class FakeVision:
    """
    Returns scripted responses per page number.

    A response that is an Exception instance is raised instead.
    """

    model = "fake-vision"

    def __init__(self, responses: dict):
        self.responses = responses
        self.seen: list[int] = []

    def extract(self, page: PageImage) -> str:
        self.seen.append(page.page_number)
        response = self.responses.get(page.page_number, "[]")
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def make_extractor():
    def _make(pages: int = 1, responses: dict = None, error: Exception = None):
        return LabReportExtractor(
            rasterizer=FakeRasterizer(pages=pages, error=error),
            vision=FakeVision(responses or {}),
        )
    return _make
