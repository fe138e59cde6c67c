"""Page-processing models: rendered page images, OCR output and run results.

These are the values that flow through PDF ingestion:

    PDF page ──render──→ bitmap ──split──→ PageImage(s) ──OCR──→ OCRResult
                                                         └──save──→ PageResult

A two-page spread yields two ``PageImage`` values tagged ``left`` and
``right`` with consecutive logical page numbers.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SpreadHalf(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    LEFT = "left"
    RIGHT = "right"


class PageImage(BaseModel):
    """One logical page bitmap (PNG bytes) ready for OCR."""

    model_config = ConfigDict(frozen=True)

    page_number: int = Field(ge=1)
    image_data: bytes = Field(repr=False)
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    spread_half: SpreadHalf | None = None


class OCRResult(BaseModel):
    """Text recovered from one page image."""

    model_config = ConfigDict(frozen=True)

    raw_text: str
    confidence: float = Field(ge=0.0, le=1.0)
    provider_used: str
    processing_time: float = Field(ge=0.0)


class PageResult(BaseModel):
    """A processed page as stored in the catalog."""

    model_config = ConfigDict(frozen=True)

    page_number: int = Field(ge=1)
    image_path: str
    text: str
    spread_half: SpreadHalf | None = None
    ocr_confidence: float | None = None


class ProcessingResult(BaseModel):
    """Outcome of converting one PDF into logical pages."""

    model_config = ConfigDict(frozen=True)

    magazine_id: int
    pdf_path: str
    pdf_page_count: int
    pages: list[PageResult] = Field(default_factory=list)

    @property
    def total_pages(self) -> int:
        """Logical page count (spreads count twice)."""
        return len(self.pages)

    @property
    def spread_count(self) -> int:
        return sum(1 for page in self.pages if page.spread_half == SpreadHalf.LEFT)
