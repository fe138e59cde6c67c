"""Abstract base class for OCR service providers.

Defines the contract for any OCR engine used to read rendered magazine
pages.  The PDF processor drives a single provider instance sequentially
across every logical page of an issue.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.pages import OCRResult, PageImage


# Concrete implementation: TesseractOCRProvider (src/providers/ocr/)
class IOCRProvider(ABC):
    """Contract for OCR services that extract text from page images."""

    @abstractmethod
    async def extract_text(self, image: PageImage) -> OCRResult:
        """Run OCR on *image* and return the extraction result.

        Parameters
        ----------
        image:
            One logical page; ``image.image_data`` holds PNG bytes.

        Returns
        -------
        OCRResult
            Raw text (may be empty for photo-only pages), mean word
            confidence and processing time.

        Raises
        ------
        src.utils.errors.OCRExtractionError
            If the OCR engine fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier such as ``"tesseract"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the OCR engine binary is installed."""
