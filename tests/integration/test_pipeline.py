"""Integration tests: add an issue, process its PDF, extract, then curate.

Runs the real services against a real SQLite catalog and real page files;
only the PDF renderer, the OCR engine, the LLM and the geocoder are faked.
"""

from __future__ import annotations

import json
import re
from pathlib import Path

import pytest

from src.interfaces.geocoding_provider import IGeocodingProvider
from src.models.catalog import AppearanceContext, EntityType, MagazineStatus
from src.models.curation import GeocodeResult
from src.pipeline.orchestrator import MagazinePipeline
from src.services.duplicate_detector import DuplicateDetector
from src.services.entity_extractor import EntityExtractor
from src.services.extraction_saver import ExtractionSaver
from src.services.extraction_service import ExtractionService
from src.services.geocoding_service import GeocodingService
from src.services.pdf_processor import PDFProcessor
from src.services.review_service import ReviewService
from tests.conftest import FakeRenderer


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

# Physical pages: single, spread, single  ->  logical pages 1, 2-3, 4.
_PDF_PAGES = [(100, 150), (300, 150), (100, 150)]

_PAGE_RESPONSES = {
    1: {
        "skaters": [{"name": "Tony Hawk", "context": "cover"}],
        "photographers": [{"name": "J. Grant Brittain"}],
    },
    2: {
        "skaters": [{"name": "Tony Hawke", "context": "photo"}],
        "spots": [{
            "name": "Del Mar Skate Ranch",
            "city": "Del Mar",
            "state": "CA",
            "type": "park",
            "streetName": "Via de la Valle",
            "streetNumber": "2201",
        }],
        "tricks": [{"name": "540", "performedBy": "Tony Hawk", "location": "Del Mar Skate Ranch"}],
    },
    3: {
        "skaters": [{"name": "tony hawk", "context": "interview"}],
        "tricks": [{"name": "540", "performedBy": "Tony Hawk"}],
    },
    4: {
        "brands": [{"name": "Powell Peralta", "category": "decks", "context": "ad"}],
    },
}


async def _complete(system_prompt, user_prompt, temperature, max_tokens) -> str:
    page = int(re.search(r"Page: (\d+)", user_prompt).group(1))
    return json.dumps(_PAGE_RESPONSES.get(page, {}))


class _StaticGeocoder(IGeocodingProvider):
    async def geocode(self, query: str) -> GeocodeResult | None:
        return GeocodeResult(latitude=32.97, longitude=-117.25, display_name=query)

    def get_provider_name(self) -> str:
        return "static"

    async def close(self) -> None:
        pass


@pytest.fixture
def pipeline(catalog, public_dir, mock_ocr_provider, mock_llm_provider) -> MagazinePipeline:
    mock_llm_provider.complete.side_effect = _complete
    return MagazinePipeline(
        catalog=catalog,
        pdf_processor=PDFProcessor(FakeRenderer(_PDF_PAGES), mock_ocr_provider, public_dir=public_dir),
        extraction_service=ExtractionService(
            catalog, EntityExtractor(mock_llm_provider), public_dir=public_dir,
        ),
        extraction_saver=ExtractionSaver(catalog),
    )


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_issue_lifecycle(catalog, pipeline, public_dir: Path) -> None:
    magazine = await catalog.create_magazine(
        title="Transworld Skateboarding", year=1984, month=6, pdf_path="/magazines/tws.pdf",
    )
    assert magazine.status == MagazineStatus.PENDING

    # PDF -> pages
    processed = await pipeline.run_ocr(magazine.id)
    assert processed.total_pages == 4
    assert processed.spread_count == 1
    for number in range(1, 5):
        assert (public_dir / "pages" / str(magazine.id) / f"page-{number:03d}.png").is_file()

    # Pages -> entities
    await pipeline.run_extraction(magazine.id)
    appearances = await catalog.list_appearances(magazine.id)
    by_type: dict[EntityType, list] = {}
    for appearance in appearances:
        by_type.setdefault(appearance.entity_type, []).append(appearance)

    assert len(by_type[EntityType.SKATER]) == 2  # "Tony Hawk" and the "Tony Hawke" typo
    hawk_id = await catalog.find_entity_id(EntityType.SKATER, "Tony Hawk")
    hawk = next(a for a in by_type[EntityType.SKATER] if a.entity_id == hawk_id)
    assert hawk.page_numbers == [1, 3]
    assert hawk.context == AppearanceContext.COVER
    assert by_type[EntityType.PHOTOGRAPHER][0].context == AppearanceContext.PHOTO
    assert by_type[EntityType.BRAND][0].context == AppearanceContext.AD
    # The spot's street address becomes a linked location without an appearance.
    assert EntityType.LOCATION not in by_type
    addresses = await catalog.list_geocode_targets(EntityType.LOCATION)
    assert [a.name for a in addresses] == ["2201 Via de la Valle"]

    mentions = await catalog.list_trick_mentions(magazine.id)
    assert sorted(m.page_number for m in mentions) == [2, 3]
    assert all(m.skater_id == hawk_id for m in mentions)
    assert (await catalog.get_magazine(magazine.id)).status == MagazineStatus.REVIEW

    # Curation: merge the typo, verify, publish
    detector = DuplicateDetector(catalog)
    groups = await detector.scan(EntityType.SKATER)
    assert len(groups) == 1
    typo_id = next(c.id for c in groups[0].entities if c.id != hawk_id)
    await detector.merge(EntityType.SKATER, hawk_id, [typo_id])

    skater_appearances = [
        a for a in await catalog.list_appearances(magazine.id)
        if a.entity_type == EntityType.SKATER
    ]
    assert len(skater_appearances) == 1
    assert skater_appearances[0].page_numbers == [1, 2, 3]

    review = ReviewService(catalog)
    assert await review.verify_all(magazine.id) == len(await catalog.list_appearances(magazine.id))
    await review.set_status(magazine.id, MagazineStatus.PUBLISHED)
    assert (await catalog.get_magazine(magazine.id)).status == MagazineStatus.PUBLISHED

    # Geocoding
    report = await GeocodingService(catalog, _StaticGeocoder(), delay_seconds=0).geocode_all()
    assert report.total_geocoded == 2
    assert await catalog.list_geocode_targets(EntityType.SPOT) == []


@pytest.mark.asyncio
async def test_reextraction_replaces_previous_rows(catalog, pipeline) -> None:
    magazine = await catalog.create_magazine(title="Thrasher", year=1983, pdf_path="/magazines/t.pdf")
    await pipeline.run_ocr(magazine.id)

    await pipeline.run_extraction(magazine.id)
    first = await catalog.list_appearances(magazine.id)
    first_mentions = await catalog.list_trick_mentions(magazine.id)

    await pipeline.run_extraction(magazine.id)

    assert len(await catalog.list_appearances(magazine.id)) == len(first)
    assert len(await catalog.list_trick_mentions(magazine.id)) == len(first_mentions)


@pytest.mark.asyncio
async def test_deleting_issue_leaves_entities_for_cleanup(catalog, pipeline) -> None:
    magazine = await catalog.create_magazine(title="Thrasher", year=1983, pdf_path="/magazines/t.pdf")
    await pipeline.run_ocr(magazine.id)
    await pipeline.run_extraction(magazine.id)

    review = ReviewService(catalog)
    await review.delete_magazine(magazine.id)
    report = await review.cleanup_unused()

    assert report.deleted[EntityType.SKATER] == 2
    assert report.deleted[EntityType.SPOT] == 1
    assert report.deleted[EntityType.LOCATION] == 1
    assert await catalog.list_entities(EntityType.TRICK) == []
    assert await catalog.get_pages(magazine.id) == []
