"""PDF-to-page conversion service for magazine scans.

Turns one magazine PDF into numbered logical pages on disk plus their OCR
text:

    PDF ──render──→ PNG per physical page
        ──spread check──→ 1 page, or 2 halves (left, right)
        ──save──→ <public>/<pages_subdir>/<magazine_id>/page-NNN.png
        ──OCR──→ text

Logical page numbers start at 1 and run contiguously across the whole
issue; a spread consumes two numbers, left half first.  OCR runs
sequentially through a single engine instance.  Any render, image or OCR
failure aborts the run: there is no partial resume, and the orchestrator
decides what to do with the magazine's status.
"""

from __future__ import annotations

import inspect
import io
from collections.abc import Callable
from pathlib import Path
from typing import Any

from PIL import Image, UnidentifiedImageError

from src.interfaces.ocr_provider import IOCRProvider
from src.interfaces.pdf_renderer import IPDFRenderer
from src.models.pages import OCRResult, PageImage, PageResult, ProcessingResult, SpreadHalf
from src.utils.errors import PDFProcessingError
from src.utils.logging import get_logger
from src.utils.page_images import (
    DEFAULT_SPREAD_THRESHOLD,
    is_spread,
    page_filename,
    page_web_path,
    split_spread,
    to_png_bytes,
)

# (page, total, status); page is the physical PDF page being worked on.
# The callback may be sync or async.
ProgressCallback = Callable[[int, int, str], Any]

_DEFAULT_RENDER_SCALE = 1.5


class PDFProcessor:
    """Renders, splits, stores and OCRs the pages of a magazine PDF.

    Parameters
    ----------
    renderer:
        PDF rasterizer (PyMuPDF in production).
    ocr_provider:
        OCR engine used for every page of the run.
    public_dir:
        Web root.  Page images land under ``<public_dir>/<pages_subdir>``
        and PDF paths starting with ``/`` are resolved against it.
    render_scale:
        Zoom factor for rendering (1.0 = 72 dpi).
    spread_threshold:
        Width/height ratio above which a page is a two-page spread.
    pages_subdir:
        Directory under the web root that holds page images.
    """

    def __init__(
        self,
        renderer: IPDFRenderer,
        ocr_provider: IOCRProvider,
        public_dir: str | Path = "public",
        render_scale: float = _DEFAULT_RENDER_SCALE,
        spread_threshold: float = DEFAULT_SPREAD_THRESHOLD,
        pages_subdir: str = "pages",
    ) -> None:
        self._renderer = renderer
        self._ocr = ocr_provider
        self._public_dir = Path(public_dir)
        self._render_scale = render_scale
        self._spread_threshold = spread_threshold
        self._pages_subdir = pages_subdir
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve_pdf_path(self, pdf_path: str) -> Path:
        """Map a stored PDF path to a filesystem path.

        ``/pdfs/thrasher-1983-03.pdf`` is relative to the web root; any
        other value is used as given.
        """
        if pdf_path.startswith("/"):
            return self._public_dir / pdf_path.lstrip("/")
        return Path(pdf_path)

    def output_dir(self, magazine_id: int) -> Path:
        return self._public_dir / self._pages_subdir / str(magazine_id)

    def split_page(self, png_bytes: bytes, first_page_number: int) -> list[PageImage]:
        """Turn one rendered PDF page into one or two logical pages.

        Parameters
        ----------
        png_bytes:
            The rendered physical page.
        first_page_number:
            Logical number to give the (left) page.

        Returns
        -------
        list[PageImage]
            One image for a single page; two (left then right) for a spread.
        """
        try:
            image = Image.open(io.BytesIO(png_bytes))
            image.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise PDFProcessingError(
                message=f"Rendered page {first_page_number} is not a readable image: {exc}",
                provider_name=self._renderer.get_provider_name(),
            ) from exc

        width, height = image.size
        if not is_spread(width, height, self._spread_threshold):
            return [
                PageImage(
                    page_number=first_page_number,
                    image_data=png_bytes,
                    width=width,
                    height=height,
                )
            ]

        left, right = split_spread(image)
        return [
            PageImage(
                page_number=first_page_number,
                image_data=to_png_bytes(left),
                width=left.width,
                height=left.height,
                spread_half=SpreadHalf.LEFT,
            ),
            PageImage(
                page_number=first_page_number + 1,
                image_data=to_png_bytes(right),
                width=right.width,
                height=right.height,
                spread_half=SpreadHalf.RIGHT,
            ),
        ]

    async def process_pdf(
        self,
        magazine_id: int,
        pdf_path: str,
        progress_callback: ProgressCallback | None = None,
    ) -> ProcessingResult:
        """Convert a magazine PDF into stored, OCR'd logical pages.

        Parameters
        ----------
        magazine_id:
            Issue the pages belong to; names the output directory.
        pdf_path:
            Stored PDF path (see :meth:`resolve_pdf_path`).
        progress_callback:
            Optional ``(page, total, status)`` listener.

        Returns
        -------
        ProcessingResult
            Every logical page with its web path and OCR text.

        Raises
        ------
        PDFProcessingError
            If the PDF cannot be read, a page cannot be rendered or an
            image cannot be written.
        OCRExtractionError
            If the OCR engine fails on any page.
        """
        resolved = self.resolve_pdf_path(pdf_path)
        total = self._renderer.page_count(resolved)
        out_dir = self.output_dir(magazine_id)
        try:
            out_dir.mkdir(parents=True, exist_ok=True)
            # A re-run may produce fewer logical pages than the last one.
            for stale in out_dir.glob("page-*.png"):
                stale.unlink()
        except OSError as exc:
            raise PDFProcessingError(
                message=f"Cannot create page directory {out_dir}: {exc}",
            ) from exc

        self._logger.info(
            "pdf_processing_start",
            magazine_id=magazine_id,
            pdf_path=str(resolved),
            pdf_pages=total,
            scale=self._render_scale,
        )

        results: list[PageResult] = []
        next_page_number = 1
        for pdf_page, png_bytes in enumerate(
            self._renderer.render_pages(resolved, self._render_scale), start=1
        ):
            await self._notify(progress_callback, pdf_page, total, "rendering")
            page_images = self.split_page(png_bytes, next_page_number)
            next_page_number += len(page_images)

            await self._notify(progress_callback, pdf_page, total, "ocr")
            for page_image in page_images:
                self._save_image(out_dir, page_image)
                ocr = await self._ocr.extract_text(page_image)
                results.append(
                    PageResult(
                        page_number=page_image.page_number,
                        image_path=page_web_path(
                            self._pages_subdir, magazine_id, page_image.page_number
                        ),
                        text=ocr.raw_text.strip(),
                        spread_half=page_image.spread_half,
                        ocr_confidence=ocr.confidence,
                    )
                )
            await self._notify(progress_callback, pdf_page, total, "done")

        result = ProcessingResult(
            magazine_id=magazine_id,
            pdf_path=str(resolved),
            pdf_page_count=total,
            pages=results,
        )
        self._logger.info(
            "pdf_processing_complete",
            magazine_id=magazine_id,
            pdf_pages=total,
            logical_pages=result.total_pages,
            spreads=result.spread_count,
        )
        return result

    async def process_page(self, image_path: str | Path) -> OCRResult:
        """OCR a single existing page image (used to re-read one page)."""
        path = Path(image_path)
        if isinstance(image_path, str) and image_path.startswith("/"):
            candidate = self._public_dir / image_path.lstrip("/")
            if candidate.is_file():
                path = candidate
        try:
            data = path.read_bytes()
            with Image.open(io.BytesIO(data)) as image:
                width, height = image.size
        except (UnidentifiedImageError, OSError) as exc:
            raise PDFProcessingError(
                message=f"Cannot read page image {path}: {exc}",
            ) from exc

        result = await self._ocr.extract_text(
            PageImage(page_number=1, image_data=data, width=width, height=height)
        )
        return result.model_copy(update={"raw_text": result.raw_text.strip()})

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _save_image(self, out_dir: Path, page_image: PageImage) -> None:
        target = out_dir / page_filename(page_image.page_number)
        try:
            target.write_bytes(page_image.image_data)
        except OSError as exc:
            raise PDFProcessingError(
                message=f"Cannot write page image {target}: {exc}",
            ) from exc

    async def _notify(
        self,
        callback: ProgressCallback | None,
        page: int,
        total: int,
        status: str,
    ) -> None:
        self._logger.debug("pdf_page_progress", page=page, total=total, status=status)
        if callback is not None:
            outcome = callback(page, total, status)
            if inspect.isawaitable(outcome):
                await outcome
