"""PyMuPDF (fitz) implementation of :class:`IPDFRenderer`.

Pages are rasterised with ``page.get_pixmap(matrix=fitz.Matrix(s, s))``
where ``s`` is the render scale (1.0 = 72 dpi), without an alpha channel,
and returned as PNG bytes.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from src.interfaces.pdf_renderer import IPDFRenderer
from src.utils.errors import PDFProcessingError

logger = structlog.get_logger(logger_name=__name__)


class PyMuPDFRenderer(IPDFRenderer):
    """Renders PDF pages to PNG with PyMuPDF."""

    def _open(self, pdf_path: Path) -> fitz.Document:
        if not pdf_path.is_file():
            raise PDFProcessingError(
                message=f"PDF not found: {pdf_path}",
                provider_name=self.get_provider_name(),
            )
        try:
            return fitz.open(str(pdf_path))
        except (fitz.FileDataError, RuntimeError) as exc:
            logger.error("pdf_open_failed", pdf_path=str(pdf_path), error=str(exc))
            raise PDFProcessingError(
                message=f"Cannot open PDF {pdf_path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def page_count(self, pdf_path: Path) -> int:
        doc = self._open(pdf_path)
        try:
            return len(doc)
        finally:
            doc.close()

    def render_pages(self, pdf_path: Path, scale: float) -> Iterator[bytes]:
        """Yield one PNG per physical page, closing the document when done."""
        doc = self._open(pdf_path)
        matrix = fitz.Matrix(scale, scale)
        try:
            for page_index in range(len(doc)):
                try:
                    pixmap = doc[page_index].get_pixmap(matrix=matrix, alpha=False)
                    png = pixmap.tobytes("png")
                except RuntimeError as exc:
                    raise PDFProcessingError(
                        message=f"Failed to render page {page_index + 1} of {pdf_path}: {exc}",
                        provider_name=self.get_provider_name(),
                    ) from exc
                logger.debug(
                    "pdf_page_rendered",
                    pdf_path=str(pdf_path),
                    pdf_page=page_index + 1,
                    width=pixmap.width,
                    height=pixmap.height,
                )
                yield png
        finally:
            doc.close()

    def get_provider_name(self) -> str:
        return "pymupdf"
