"""
Data Models
===========
Pydantic models for lab test records and the HTTP response envelopes.
All models serialize to the JSON shapes returned by the API.
"""

from __future__ import annotations

import base64
from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


# ─── Enums ────────────────────────────────────────────────────────────────────


class ResultStatus(str, Enum):
    """Where a result falls relative to its reference range."""
    NORMAL = "normal"
    HIGH = "high"
    LOW = "low"


# ─── Lab Test Record ─────────────────────────────────────────────────────────


class LabTestRecord(BaseModel):
    """
    One row of a lab report as returned by the vision model.

    Text fields keep the formatting shown on the page. Values the model
    emits as numbers are coerced back to text.
    Extra keys such as ``unit`` or ``notes`` pass through unchanged.
    """
    model_config = ConfigDict(extra="allow")

    test: str = ""
    category: str = ""
    result: str = ""
    reference_min: str = ""
    reference_max: str = ""
    payor_code: Optional[str] = None
    status: Optional[ResultStatus] = None
    test_date: Optional[date] = None

    @field_validator(
        "test", "category", "result", "reference_min", "reference_max",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, bool):
            return str(value).lower()
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("payor_code", mode="before")
    @classmethod
    def _coerce_payor_code(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> Optional[str]:
        if not isinstance(value, str):
            return None
        value = value.strip().lower()
        if value in {s.value for s in ResultStatus}:
            return value
        return None

    @field_validator("test_date", mode="before")
    @classmethod
    def _normalize_date(cls, value: Any) -> Optional[str]:
        # Unreadable dates are dropped rather than failing the whole record
        if not isinstance(value, str) or not value.strip():
            return None
        try:
            return date.fromisoformat(value.strip()[:10]).isoformat()
        except ValueError:
            return None


# ─── Page Image ───────────────────────────────────────────────────────────────


class PageImage(BaseModel):
    """A single rasterized PDF page."""
    page_number: int = Field(ge=1)
    png_bytes: bytes = Field(repr=False)

    @property
    def data_url(self) -> str:
        """Base64 data URL suitable for an ``image_url`` message part."""
        encoded = base64.b64encode(self.png_bytes).decode("ascii")
        return f"data:image/png;base64,{encoded}"


# ─── Extraction Result ────────────────────────────────────────────────────────


class ExtractionResult(BaseModel):
    """Output of one run of the extraction pipeline."""
    records: list[LabTestRecord] = Field(default_factory=list)
    file_size: int = 0
    page_count: int = 0
    pages_failed: int = 0

    @computed_field
    @property
    def total_results(self) -> int:
        return len(self.records)


# ─── Response Envelopes ──────────────────────────────────────────────────────


class FileInfo(BaseModel):
    size: int
    pages: int
    totalResults: int


class DebugInfo(BaseModel):
    fileInfo: FileInfo


class ParseResponse(BaseModel):
    """Successful response body for ``POST /api/parse-pdf``."""
    success: bool = True
    data: list[LabTestRecord] = Field(default_factory=list)
    debug: DebugInfo

    @classmethod
    def from_result(cls, result: ExtractionResult) -> ParseResponse:
        return cls(
            data=result.records,
            debug=DebugInfo(
                fileInfo=FileInfo(
                    size=result.file_size,
                    pages=result.page_count,
                    totalResults=result.total_results,
                )
            ),
        )


class ErrorResponse(BaseModel):
    """Error body. ``success`` is only set on server errors."""
    success: Optional[bool] = None
    error: str
    details: Optional[Any] = None
