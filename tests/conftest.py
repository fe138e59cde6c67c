"""Shared pytest fixtures for the skate magazine archive test suite."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from PIL import Image

from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.ocr_provider import IOCRProvider
from src.models.pages import OCRResult, PageImage
from src.providers.catalog.sqlite_catalog_provider import SQLiteCatalogProvider


# ---------------------------------------------------------------------------
# Image helpers
# ---------------------------------------------------------------------------


def make_png(width: int, height: int, color: tuple[int, int, int] = (200, 200, 200)) -> bytes:
    """Return PNG bytes for a solid-colour image of the given size."""
    img = Image.new("RGB", (width, height), color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class FakeRenderer:
    """IPDFRenderer stand-in that 'renders' a fixed list of page sizes."""

    def __init__(self, sizes: list[tuple[int, int]]) -> None:
        self._sizes = sizes
        self.rendered_scales: list[float] = []

    def page_count(self, pdf_path: Path) -> int:
        return len(self._sizes)

    def render_pages(self, pdf_path: Path, scale: float):
        self.rendered_scales.append(scale)
        for width, height in self._sizes:
            yield make_png(width, height)

    def get_provider_name(self) -> str:
        return "fake-renderer"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def mock_config(tmp_path: Path) -> dict[str, Any]:
    """Resolved configuration pointing every path into ``tmp_path``."""
    return {
        "app": {"env": "development"},
        "pdf": {
            "render_scale": 1.5,
            "spread_threshold": 1.2,
            "pages_subdir": "pages",
            "ocr_language": "eng",
        },
        "extraction": {
            "concurrency": 3,
            "vision_concurrency": 2,
            "confidence": 0.8,
            "max_tokens": 2048,
            "temperature": 0.2,
        },
        "duplicates": {"threshold": 0.7},
        "geocoding": {
            "delay_seconds": 0.0,
            "timeout_seconds": 5.0,
            "url": "https://nominatim.test/search",
            "user_agent": "SkateMagArchive/1.0 (tests)",
        },
        "storage": {
            "database_path": str(tmp_path / "data" / "skate-mag.db"),
            "public_dir": str(tmp_path / "public"),
        },
        "llm": {"anthropic_model": "claude-3-5-haiku-20241022", "available_providers": []},
        "logging": {"level": "WARNING"},
    }


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def catalog(tmp_path: Path) -> SQLiteCatalogProvider:
    """A fresh, initialized SQLite catalog in a temp directory."""
    provider = SQLiteCatalogProvider(db_path=tmp_path / "catalog.db")
    await provider.initialize()
    return provider


@pytest.fixture
def public_dir(tmp_path: Path) -> Path:
    path = tmp_path / "public"
    path.mkdir()
    return path


# ---------------------------------------------------------------------------
# Mock providers
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """Mock ILLMProvider returning an empty extraction by default.

    Override with ``mock_llm_provider.complete.return_value = "..."`` or
    ``.side_effect = [...]`` for specific tests.
    """
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    mock.supports_vision.return_value = True
    mock.validate_credentials = AsyncMock(return_value=True)
    mock.complete = AsyncMock(return_value="{}")
    mock.vision_extract = AsyncMock(return_value="{}")
    return mock


@pytest.fixture
def mock_ocr_provider() -> IOCRProvider:
    """Mock IOCRProvider that reads 'page <n>' off every image."""

    async def _extract(image: PageImage) -> OCRResult:
        return OCRResult(
            raw_text=f"  page {image.page_number} text \n",
            confidence=0.9,
            provider_used="mock-ocr",
            processing_time=0.01,
        )

    mock = MagicMock(spec=IOCRProvider)
    mock.get_provider_name.return_value = "mock-ocr"
    mock.is_available.return_value = True
    mock.extract_text = AsyncMock(side_effect=_extract)
    return mock
