"""Unit tests for ExtractionService — batching, max_pages, vision mode."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.models.pages import PageResult
from src.services.entity_extractor import EntityExtractor
from src.services.extraction_service import ExtractionService
from src.utils.errors import EntityExtractionError, LLMError
from tests.conftest import make_png


async def _magazine_with_pages(catalog, texts: list[str]) -> int:
    magazine = await catalog.create_magazine(title="Thrasher", year=1983, pdf_path="/m/t.pdf")
    await catalog.replace_pages(
        magazine.id,
        [
            PageResult(
                page_number=n,
                image_path=f"/pages/{magazine.id}/page-{n:03d}.png",
                text=text,
            )
            for n, text in enumerate(texts, start=1)
        ],
    )
    return magazine.id


def _skaters_response(*names: str) -> str:
    return json.dumps({"skaters": [{"name": name, "context": "photo"} for name in names]})


class TestExtractMagazine:
    @pytest.mark.asyncio
    async def test_entities_merged_across_pages(self, catalog, mock_llm_provider) -> None:
        magazine_id = await _magazine_with_pages(catalog, ["p1", "p2", "p3", "p4"])
        responses = {
            "p1": _skaters_response("Tony Hawk"),
            "p2": _skaters_response("tony hawk", "Mike McGill"),
            "p3": "not json",
            "p4": _skaters_response("Mike McGill"),
        }

        async def _complete(system_prompt, user_prompt, temperature, max_tokens):
            text = user_prompt.split("OCR text:\n", 1)[1].split("\n", 1)[0]
            return responses[text]

        mock_llm_provider.complete.side_effect = _complete
        service = ExtractionService(catalog, EntityExtractor(mock_llm_provider))

        result = await service.extract_magazine(magazine_id)

        assert {s.name: s.page_numbers for s in result.skaters} == {
            "Tony Hawk": [1, 2],
            "Mike McGill": [2, 4],
        }
        assert mock_llm_provider.complete.await_count == 4

    @pytest.mark.asyncio
    async def test_max_pages_limits_calls(self, catalog, mock_llm_provider) -> None:
        magazine_id = await _magazine_with_pages(catalog, ["a", "b", "c", "d", "e"])
        service = ExtractionService(catalog, EntityExtractor(mock_llm_provider))

        await service.extract_magazine(magazine_id, max_pages=2)

        assert mock_llm_provider.complete.await_count == 2
        prompts = [c.kwargs["user_prompt"] for c in mock_llm_provider.complete.call_args_list]
        assert "Page: 1" in prompts[0]
        assert "Page: 2" in prompts[1]

    @pytest.mark.asyncio
    async def test_progress_reported_per_window(self, catalog, mock_llm_provider) -> None:
        magazine_id = await _magazine_with_pages(catalog, ["a"] * 7)
        service = ExtractionService(catalog, EntityExtractor(mock_llm_provider), concurrency=3)
        progress: list[tuple[int, int]] = []

        await service.extract_magazine(
            magazine_id, progress_callback=lambda done, total: progress.append((done, total)),
        )
        assert progress == [(3, 7), (6, 7), (7, 7)]

    @pytest.mark.asyncio
    async def test_every_entity_type_counted(self, catalog, mock_llm_provider) -> None:
        magazine_id = await _magazine_with_pages(catalog, ["p1"])
        mock_llm_provider.complete.return_value = json.dumps({
            "skaters": [{"name": "Tony Hawk"}],
            "spots": [{"name": "Del Mar Skate Ranch"}],
            "photographers": [{"name": "J. Grant Brittain"}],
            "brands": [{"name": "Powell Peralta"}],
            "tricks": [{"name": "McTwist"}],
            "events": [{"name": "Del Mar Pro-Am"}],
            "locations": [{"name": "Del Mar"}],
        })
        service = ExtractionService(catalog, EntityExtractor(mock_llm_provider))

        result = await service.extract_magazine(magazine_id)

        assert result.total == 7
        assert all(count == 1 for count in result.counts().values())

    @pytest.mark.asyncio
    async def test_unknown_magazine(self, catalog, mock_llm_provider) -> None:
        service = ExtractionService(catalog, EntityExtractor(mock_llm_provider))
        with pytest.raises(EntityExtractionError, match="not found"):
            await service.extract_magazine(999)

    @pytest.mark.asyncio
    async def test_magazine_without_pages(self, catalog, mock_llm_provider) -> None:
        magazine = await catalog.create_magazine(title="Poweredge", year=1987)
        service = ExtractionService(catalog, EntityExtractor(mock_llm_provider))
        with pytest.raises(EntityExtractionError, match="No pages"):
            await service.extract_magazine(magazine.id)

    @pytest.mark.asyncio
    async def test_llm_error_aborts_run(self, catalog, mock_llm_provider) -> None:
        magazine_id = await _magazine_with_pages(catalog, ["a", "b"])
        mock_llm_provider.complete.side_effect = LLMError("quota", provider_name="mock-llm")
        service = ExtractionService(catalog, EntityExtractor(mock_llm_provider))
        with pytest.raises(LLMError):
            await service.extract_magazine(magazine_id)


class TestVisionMode:
    @pytest.mark.asyncio
    async def test_reads_page_images(self, catalog, mock_llm_provider, tmp_path: Path) -> None:
        magazine_id = await _magazine_with_pages(catalog, ["cover text", "inside"])
        pages_dir = tmp_path / "public" / "pages" / str(magazine_id)
        pages_dir.mkdir(parents=True)
        png = make_png(60, 80)
        (pages_dir / "page-001.png").write_bytes(png)
        (pages_dir / "page-002.png").write_bytes(png)
        mock_llm_provider.vision_extract.return_value = _skaters_response("Lance Mountain")

        service = ExtractionService(
            catalog, EntityExtractor(mock_llm_provider), public_dir=tmp_path / "public",
        )
        result = await service.extract_magazine(magazine_id, use_vision=True)

        assert result.skaters[0].page_numbers == [1, 2]
        first = mock_llm_provider.vision_extract.call_args_list[0].kwargs
        assert first["image_bytes"] == png
        assert "cover text" in first["prompt"]
        mock_llm_provider.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_image_skips_page(self, catalog, mock_llm_provider, tmp_path: Path) -> None:
        magazine_id = await _magazine_with_pages(catalog, ["a", "b"])
        pages_dir = tmp_path / "public" / "pages" / str(magazine_id)
        pages_dir.mkdir(parents=True)
        (pages_dir / "page-002.png").write_bytes(make_png(60, 80))
        mock_llm_provider.vision_extract.return_value = _skaters_response("Neil Blender")

        service = ExtractionService(
            catalog, EntityExtractor(mock_llm_provider), public_dir=tmp_path / "public",
        )
        result = await service.extract_magazine(magazine_id, use_vision=True)

        assert mock_llm_provider.vision_extract.await_count == 1
        assert result.skaters[0].page_numbers == [2]
