"""Cross-page deduplication of extracted entities.

Page results are merged per entity type on the exact key
``name.strip().lower()``: the first occurrence (lowest page) keeps its
name spelling and attributes, later occurrences only add their page
number.  No fuzzy matching happens here; near-duplicates like "Trasher"
and "Thrasher" are left for the curation tools.
"""

from __future__ import annotations

from collections.abc import Iterable

from src.models.catalog import EntityType
from src.models.extraction import (
    FIELD_BY_TYPE,
    ExtractedEntity,
    ExtractionResult,
    PageExtraction,
)


class EntityAggregator:
    """Accumulates page extractions into one issue-level result.

    Pages may be added in several calls (one per batch window).  Calls
    should come in page order so the lowest page supplies each entity's
    spelling; :meth:`result` always lists page numbers in ascending order.
    """

    def __init__(self) -> None:
        self._seen: dict[EntityType, dict[str, ExtractedEntity]] = {t: {} for t in EntityType}
        self._pages: dict[EntityType, dict[str, set[int]]] = {t: {} for t in EntityType}

    def add(self, page: PageExtraction) -> None:
        for entity_type in EntityType:
            seen = self._seen[entity_type]
            pages = self._pages[entity_type]
            for entity in page.result.entities_of(entity_type):
                key = entity.key
                if not key:
                    continue
                if key not in seen:
                    seen[key] = entity
                    pages[key] = set()
                pages[key].add(page.page_number)
                pages[key].update(entity.page_numbers)

    def add_all(self, pages: Iterable[PageExtraction]) -> None:
        for page in sorted(pages, key=lambda p: p.page_number):
            self.add(page)

    def result(self) -> ExtractionResult:
        fields: dict[str, list[ExtractedEntity]] = {}
        for entity_type in EntityType:
            pages = self._pages[entity_type]
            fields[FIELD_BY_TYPE[entity_type]] = [
                entity.model_copy(update={"page_numbers": sorted(pages[key])})
                for key, entity in self._seen[entity_type].items()
            ]
        return ExtractionResult(**fields)


def aggregate_pages(pages: Iterable[PageExtraction]) -> ExtractionResult:
    """Merge page extractions into one de-duplicated result."""
    aggregator = EntityAggregator()
    aggregator.add_all(pages)
    return aggregator.result()
