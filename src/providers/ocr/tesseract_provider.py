"""Tesseract OCR provider for magazine page text extraction.

Wraps pytesseract.  Magazine pages are mostly clean print, so a single
``image_to_data`` pass per page is enough; raw text is reconstructed from
the word-level output with paragraph breaks preserved, and the mean word
confidence is reported on a 0–1 scale.
"""

from __future__ import annotations

import io
import time

import pytesseract
from PIL import Image

from src.interfaces.ocr_provider import IOCRProvider
from src.models.pages import OCRResult, PageImage
from src.utils.errors import OCRExtractionError
from src.utils.logging import get_logger


class TesseractOCRProvider(IOCRProvider):
    """OCR provider backed by Google Tesseract via pytesseract."""

    def __init__(self, language: str = "eng", config: str = "") -> None:
        self._language = language
        self._config = config
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # IOCRProvider interface
    # ------------------------------------------------------------------

    async def extract_text(self, image: PageImage) -> OCRResult:
        """Extract text from one logical page.

        A page with no recognisable words (a full-bleed photo, a blank
        back cover) is not an error: it yields empty text with confidence 0.
        """
        start = time.perf_counter()
        try:
            page = Image.open(io.BytesIO(image.image_data)).convert("RGB")
            raw_text, confidence = self._run_tesseract(page)
        except Exception as exc:
            elapsed = time.perf_counter() - start
            self._logger.error(
                "ocr_extraction_failed",
                provider="tesseract",
                page_number=image.page_number,
                error=str(exc),
                processing_time=round(elapsed, 3),
            )
            raise OCRExtractionError(
                f"Tesseract OCR failed on page {image.page_number}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        elapsed = time.perf_counter() - start
        self._logger.debug(
            "ocr_page_complete",
            provider="tesseract",
            page_number=image.page_number,
            confidence=round(confidence, 4),
            characters=len(raw_text),
            processing_time=round(elapsed, 3),
        )
        return OCRResult(
            raw_text=raw_text,
            confidence=confidence,
            provider_used=self.get_provider_name(),
            processing_time=elapsed,
        )

    def get_provider_name(self) -> str:
        return "tesseract"

    def is_available(self) -> bool:
        """Check that the Tesseract binary is installed."""
        try:
            pytesseract.get_tesseract_version()
            return True
        except pytesseract.TesseractNotFoundError:
            return False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _run_tesseract(self, image: Image.Image) -> tuple[str, float]:
        """Run Tesseract once and return ``(text, mean_confidence)``.

        Uses only ``image_to_data`` (not ``image_to_string``) to avoid
        running Tesseract twice on the same image.
        """
        data = pytesseract.image_to_data(
            image,
            lang=self._language,
            config=self._config,
            output_type=pytesseract.Output.DICT,
        )

        confidences: list[float] = []
        text_parts: list[str] = []
        prev_block = -1
        prev_par = -1

        for i in range(len(data["text"])):
            word = data["text"][i].strip()
            conf = float(data["conf"][i])
            # conf == -1 marks layout rows, not words
            if not word or conf < 0:
                continue

            block_num = data["block_num"][i]
            par_num = data["par_num"][i]
            if text_parts and (block_num != prev_block or par_num != prev_par):
                text_parts.append("\n")
            prev_block = block_num
            prev_par = par_num

            confidences.append(conf)
            text_parts.append(word)

        if not text_parts:
            return "", 0.0

        raw_text = " ".join(text_parts).replace(" \n ", "\n").strip()
        avg_confidence = sum(confidences) / len(confidences) / 100.0
        return raw_text, max(0.0, min(1.0, avg_confidence))
