"""OCR provider implementations for magazine page text extraction.

    - TesseractOCRProvider — Google Tesseract via pytesseract, one pass per page.
"""

from src.providers.ocr.tesseract_provider import TesseractOCRProvider

__all__ = ["TesseractOCRProvider"]
