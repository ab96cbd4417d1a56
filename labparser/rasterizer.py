"""
Page Rasterizer
===============
Renders PDF pages to PNG images using PyMuPDF (fitz).

Each call works inside its own temporary directory, named with a
millisecond timestamp plus a random suffix so concurrent requests never
collide. The directory is removed on both the success and failure paths.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import fitz  # PyMuPDF

from .models import PageImage

logger = logging.getLogger(__name__)


class ConversionError(RuntimeError):
    """Raised when a PDF yields no page images. Maps to HTTP 400."""

    def __init__(self, error: str, details: Optional[dict] = None):
        super().__init__(error)
        self.error = error
        self.details = details or {}


@contextmanager
def temporary_workspace(prefix: str = "labparser") -> Iterator[Path]:
    """Create a uniquely named temp directory and always remove it afterwards."""
    name = f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
    workdir = Path(tempfile.gettempdir()) / name
    workdir.mkdir(parents=True)
    try:
        yield workdir
    finally:
        if workdir.exists():
            shutil.rmtree(workdir)
            logger.debug(f"Removed temp workspace: {workdir}")


def collect_page_images(out_dir: Path) -> list[PageImage]:
    """Read ``page-N.png`` files back, ordered by page number rather than name."""
    numbered = sorted(
        (int(p.stem.split("-")[1]), p) for p in out_dir.glob("page-*.png")
    )
    return [
        PageImage(page_number=number, png_bytes=path.read_bytes())
        for number, path in numbered
    ]


class PageRasterizer:
    """
    Converts a PDF byte buffer into ordered page images.

    Subclasses implement :meth:`rasterize`. The returned list follows
    the PDF's page order.
    """

    name = "base"

    def rasterize(self, pdf_bytes: bytes) -> list[PageImage]:
        raise NotImplementedError


class PyMuPDFRasterizer(PageRasterizer):
    """Production rasterizer backed by PyMuPDF."""

    name = "pymupdf"

    def __init__(self, dpi: int = 150):
        self.dpi = dpi

    def rasterize(self, pdf_bytes: bytes) -> list[PageImage]:
        with temporary_workspace() as workdir:
            pdf_path = workdir / "input.pdf"
            pdf_path.write_bytes(pdf_bytes)

            out_dir = workdir / "pages"
            out_dir.mkdir()

            with fitz.open(str(pdf_path)) as doc:
                logger.info(
                    f"Rendering {doc.page_count} page(s) at {self.dpi} DPI"
                )
                for page in doc:
                    pix = page.get_pixmap(dpi=self.dpi)
                    pix.save(str(out_dir / f"page-{page.number + 1:04d}.png"))

            return collect_page_images(out_dir)
