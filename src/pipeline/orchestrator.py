"""Central orchestrator for the magazine ingestion and extraction runs.

Two independent runs exist per issue, each reported through the injected
:class:`ProgressTracker`:

    run_ocr(id)          QUEUED → OCR → COMPLETE
        status: pending/… → processing → review
        PDF → logical pages (images + OCR text) → catalog pages,
        cover = first page image, completeness = full

    run_extraction(id)   QUEUED → EXTRACTION → SAVING → COMPLETE
        pages → batched LLM extraction → de-duplicated entities
        → catalog entities + appearances + trick mentions, status = review

A failed OCR run puts the issue back in ``pending`` so it can be retried.
A failed extraction leaves the catalog untouched: previous appearances are
only replaced once the new result is ready to be saved.
"""

from __future__ import annotations

import structlog

from src.interfaces.catalog_provider import ICatalogProvider
from src.models.catalog import MagazineStatus
from src.models.extraction import ExtractionResult
from src.models.pages import ProcessingResult
from src.models.pipeline import PipelinePhase
from src.pipeline.progress_tracker import ProgressTracker
from src.services.extraction_saver import ExtractionSaver
from src.services.extraction_service import ExtractionService
from src.services.pdf_processor import PDFProcessor
from src.utils.errors import PipelineError
from src.utils.logging import get_logger


class MagazinePipeline:
    """Runs PDF ingestion and entity extraction for magazine issues.

    All services are injected; the orchestrator never creates them.
    """

    def __init__(
        self,
        catalog: ICatalogProvider,
        pdf_processor: PDFProcessor | None,
        extraction_service: ExtractionService | None,
        extraction_saver: ExtractionSaver,
        progress_tracker: ProgressTracker | None = None,
    ) -> None:
        self._catalog = catalog
        self._pdf_processor = pdf_processor
        self._extraction_service = extraction_service
        self._saver = extraction_saver
        self._tracker = progress_tracker or ProgressTracker()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def progress_tracker(self) -> ProgressTracker:
        return self._tracker

    # ------------------------------------------------------------------
    # PDF → pages
    # ------------------------------------------------------------------

    async def run_ocr(self, magazine_id: int) -> ProcessingResult:
        """Convert an issue's PDF into catalog pages.

        Raises
        ------
        PipelineError
            If the issue or its PDF is missing, or any processing step
            fails.  The issue's status is back to ``pending`` in every case.
        """
        if self._pdf_processor is None:
            raise PipelineError(message="No PDF processor configured")

        magazine = await self._catalog.get_magazine(magazine_id)
        if magazine is None:
            raise PipelineError(message=f"Magazine {magazine_id} not found")

        await self._catalog.set_magazine_status(magazine_id, MagazineStatus.PROCESSING)
        await self._tracker.update(magazine_id, PipelinePhase.QUEUED, 0.0, "Starting OCR run")

        if not magazine.pdf_path:
            await self._fail(magazine_id, "Magazine has no PDF")
            raise PipelineError(message=f"Magazine {magazine_id} has no PDF path")

        async def _on_page(page: int, total: int, status: str) -> None:
            progress = (page - 1 + (1.0 if status == "done" else 0.5)) / max(total, 1) * 100
            await self._tracker.update(
                magazine_id, PipelinePhase.OCR, progress, f"Page {page}/{total}: {status}",
            )

        try:
            result = await self._pdf_processor.process_pdf(
                magazine_id, magazine.pdf_path, progress_callback=_on_page,
            )
            await self._catalog.replace_pages(magazine_id, result.pages)
            cover = result.pages[0].image_path if result.pages else None
            await self._catalog.mark_pages_processed(magazine_id, cover, result.total_pages)
        except Exception as exc:
            self._logger.error(
                "ocr_run_failed", magazine_id=magazine_id, error=str(exc),
                error_type=type(exc).__name__,
            )
            await self._fail(magazine_id, str(exc))
            raise PipelineError(message=f"OCR run for magazine {magazine_id} failed: {exc}") from exc

        await self._tracker.update(
            magazine_id, PipelinePhase.COMPLETE, 100.0, f"{result.total_pages} pages ready for review",
        )
        self._logger.info(
            "ocr_run_complete",
            magazine_id=magazine_id,
            pages=result.total_pages,
            spreads=result.spread_count,
        )
        return result

    # ------------------------------------------------------------------
    # Pages → entities
    # ------------------------------------------------------------------

    async def run_extraction(
        self,
        magazine_id: int,
        use_vision: bool = False,
        max_pages: int | None = None,
    ) -> ExtractionResult:
        """Extract entities from an issue's pages and save them.

        Previous appearances and trick mentions of the issue are replaced.

        Raises
        ------
        EntityExtractionError
            If the issue is unknown or has no pages.
        LLMError
            If a provider call fails.
        """
        if self._extraction_service is None:
            raise PipelineError(message="No extraction service configured")

        await self._tracker.update(magazine_id, PipelinePhase.QUEUED, 0.0, "Starting extraction")

        async def _on_window(done: int, total: int) -> None:
            await self._tracker.update(
                magazine_id, PipelinePhase.EXTRACTION, done / total * 90,
                f"Extracted {done}/{total} pages",
            )

        try:
            result = await self._extraction_service.extract_magazine(
                magazine_id,
                use_vision=use_vision,
                max_pages=max_pages,
                progress_callback=_on_window,
            )
            await self._tracker.update(magazine_id, PipelinePhase.SAVING, 90.0, "Saving entities")
            summary = await self._saver.save(magazine_id, result)
        except Exception as exc:
            await self._tracker.update(magazine_id, PipelinePhase.FAILED, 0.0, str(exc))
            raise

        await self._tracker.update(
            magazine_id, PipelinePhase.COMPLETE, 100.0,
            f"Saved {summary.total_appearances} appearances",
        )
        return result

    async def _fail(self, magazine_id: int, message: str) -> None:
        await self._catalog.set_magazine_status(magazine_id, MagazineStatus.PENDING)
        await self._tracker.update(magazine_id, PipelinePhase.FAILED, 0.0, message)
