"""Abstract base class for PDF rasterizers.

The PDF processor only needs two things from a PDF library: how many
pages a document has, and a PNG bitmap for each page at a given scale.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path


# Concrete implementation: PyMuPDFRenderer (src/providers/pdf/)
class IPDFRenderer(ABC):
    """Contract for turning PDF pages into PNG bitmaps."""

    @abstractmethod
    def page_count(self, pdf_path: Path) -> int:
        """Return the number of physical pages in the PDF.

        Raises
        ------
        src.utils.errors.PDFProcessingError
            If the file is missing or not a readable PDF.
        """

    @abstractmethod
    def render_pages(self, pdf_path: Path, scale: float) -> Iterator[bytes]:
        """Yield one PNG image per physical page, in document order.

        Parameters
        ----------
        pdf_path:
            Absolute path of the PDF.
        scale:
            Zoom factor applied to the page's native size (1.0 = 72 dpi).

        Raises
        ------
        src.utils.errors.PDFProcessingError
            If the document cannot be opened or a page fails to render.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier such as ``"pymupdf"``."""
