"""Issue-level entity extraction: pages → batched LLM calls → one result.

Loads an issue's pages from the catalog, sorts them by page number,
optionally keeps only the first ``max_pages``, and runs the per-page
extractor in fixed windows (``concurrency`` pages at a time, smaller for
vision calls).  Page results are merged into the aggregator after each
window completes.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from pathlib import Path
from typing import Any

from src.interfaces.catalog_provider import ICatalogProvider
from src.models.catalog import Magazine, MagazinePage
from src.models.extraction import FIELD_BY_TYPE, ExtractionResult, PageExtraction
from src.services.entity_aggregator import EntityAggregator
from src.services.entity_extractor import EntityExtractor
from src.utils.concurrency import gather_in_batches
from src.utils.errors import EntityExtractionError
from src.utils.logging import get_logger

# (pages_done, pages_total); may be sync or async.
BatchCallback = Callable[[int, int], Any]

_DEFAULT_CONCURRENCY = 3
_DEFAULT_VISION_CONCURRENCY = 2


class ExtractionService:
    """Runs entity extraction over every page of a magazine issue.

    Parameters
    ----------
    catalog:
        Source of the issue and its pages.
    extractor:
        Per-page LLM extractor.
    public_dir:
        Web root the pages' ``image_path`` values are relative to.
    concurrency, vision_concurrency:
        Window sizes for text and vision mode.
    """

    def __init__(
        self,
        catalog: ICatalogProvider,
        extractor: EntityExtractor,
        public_dir: str | Path = "public",
        concurrency: int = _DEFAULT_CONCURRENCY,
        vision_concurrency: int = _DEFAULT_VISION_CONCURRENCY,
    ) -> None:
        self._catalog = catalog
        self._extractor = extractor
        self._public_dir = Path(public_dir)
        self._concurrency = concurrency
        self._vision_concurrency = vision_concurrency
        self._logger = get_logger(__name__)

    async def extract_magazine(
        self,
        magazine_id: int,
        use_vision: bool = False,
        max_pages: int | None = None,
        progress_callback: BatchCallback | None = None,
    ) -> ExtractionResult:
        """Extract and de-duplicate entities across an issue's pages.

        Parameters
        ----------
        magazine_id:
            Issue to extract.
        use_vision:
            Send page images (plus OCR text) instead of text alone.
        max_pages:
            When positive, only the first *max_pages* pages are sent.
        progress_callback:
            Called with ``(pages_done, pages_total)`` after each window.

        Returns
        -------
        ExtractionResult
            Issue-level entities with the pages each appears on.

        Raises
        ------
        EntityExtractionError
            If the issue does not exist or has no pages.
        LLMError
            If a provider call fails; the run is aborted.
        """
        magazine = await self._catalog.get_magazine(magazine_id)
        if magazine is None:
            raise EntityExtractionError(message=f"Magazine {magazine_id} not found")

        pages = sorted(await self._catalog.get_pages(magazine_id), key=lambda p: p.page_number)
        if max_pages is not None and max_pages > 0:
            pages = pages[:max_pages]
        if not pages:
            raise EntityExtractionError(message=f"No pages found for magazine {magazine_id}")

        window = self._vision_concurrency if use_vision else self._concurrency
        self._logger.info(
            "magazine_extraction_start",
            magazine_id=magazine_id,
            title=magazine.title,
            pages=len(pages),
            mode="vision" if use_vision else "text",
            concurrency=window,
        )

        aggregator = EntityAggregator()

        async def _merge_window(
            page_results: list[PageExtraction], done: int, total: int,
        ) -> None:
            aggregator.add_all(page_results)
            self._logger.info(
                "extraction_window_complete", magazine_id=magazine_id, done=done, total=total,
            )
            if progress_callback is not None:
                outcome = progress_callback(done, total)
                if inspect.isawaitable(outcome):
                    await outcome

        await gather_in_batches(
            lambda page: self._extract_one(magazine, page, use_vision),
            pages,
            batch_size=window,
            on_batch_done=_merge_window,
        )

        result = aggregator.result()
        self._logger.info(
            "magazine_extraction_complete",
            magazine_id=magazine_id,
            **{FIELD_BY_TYPE[entity_type]: count for entity_type, count in result.counts().items()},
        )
        return result

    async def _extract_one(
        self, magazine: Magazine, page: MagazinePage, use_vision: bool,
    ) -> PageExtraction:
        text = page.text_content or ""
        if not use_vision:
            result = await self._extractor.extract_page(
                magazine.title, magazine.year, page.page_number, text,
            )
            return PageExtraction(page_number=page.page_number, result=result)

        image_bytes = self._read_page_image(page)
        if image_bytes is None:
            return PageExtraction(page_number=page.page_number)
        result = await self._extractor.extract_page_with_vision(
            magazine.title, magazine.year, page.page_number, image_bytes, text,
        )
        return PageExtraction(page_number=page.page_number, result=result)

    def _read_page_image(self, page: MagazinePage) -> bytes | None:
        if not page.image_path:
            self._logger.warning(
                "page_image_missing", magazine_id=page.magazine_id, page_number=page.page_number,
            )
            return None
        path = self._public_dir / page.image_path.lstrip("/")
        try:
            return path.read_bytes()
        except OSError as exc:
            self._logger.warning(
                "page_image_unreadable",
                magazine_id=page.magazine_id,
                page_number=page.page_number,
                image_path=str(path),
                error=str(exc),
            )
            return None
