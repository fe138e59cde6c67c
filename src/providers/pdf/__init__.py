"""PDF rasterizer implementations.

    - PyMuPDFRenderer — renders pages to PNG with PyMuPDF (fitz).
"""

from src.providers.pdf.pymupdf_renderer import PyMuPDFRenderer

__all__ = ["PyMuPDFRenderer"]
