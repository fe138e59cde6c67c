"""Unit tests for EntityExtractor — prompts, response parsing, model mapping."""

from __future__ import annotations

import json

import pytest

from src.models.catalog import AppearanceContext
from src.models.extraction import BrandCategory, LocationType, SpotType
from src.services.entity_extractor import EntityExtractor
from src.utils.errors import LLMError

_FULL_RESPONSE = {
    "skaters": [
        {"name": "Tony Hawk", "context": "cover"},
        {"name": "Lance Mountain", "context": "sidebar"},
    ],
    "spots": [
        {
            "name": "Del Mar Skate Ranch",
            "city": "Del Mar",
            "state": "CA",
            "type": "park",
            "address": None,
            "streetNumber": 2052,
            "streetName": "Jimmy Durante Blvd",
            "zipcode": 92014,
            "phone": "null",
        }
    ],
    "photographers": [{"name": "J. Grant Brittain"}],
    "brands": [
        {"name": "Powell Peralta", "category": "decks", "context": "ad"},
        {"name": "Vans", "category": "sneakers", "context": "cover"},
    ],
    "tricks": [{"name": "Frontside Air", "performedBy": "Tony Hawk", "location": "Del Mar Skate Ranch"}],
    "events": [{"name": "Del Mar Pro-Am", "date": "1983-06", "location": "Del Mar"}],
    "locations": [{"name": "Del Mar", "type": "city", "state": "CA", "country": "USA"}],
}


# ======================================================================
# Prompt construction
# ======================================================================


class TestPrompts:
    def test_text_prompt_carries_context(self) -> None:
        prompt = EntityExtractor.build_text_prompt("Thrasher", 1983, 12, "SKATE AND DESTROY")
        assert "Thrasher (1983)" in prompt
        assert "Page: 12" in prompt
        assert "SKATE AND DESTROY" in prompt
        assert '"skaters"' in prompt
        assert '"performedBy"' in prompt

    def test_empty_text_placeholder(self) -> None:
        prompt = EntityExtractor.build_text_prompt("Thrasher", 1983, 1, "   ")
        assert "(no text content)" in prompt

    def test_vision_prompt_empty_ocr_placeholder(self) -> None:
        prompt = EntityExtractor.build_vision_prompt("TransWorld", 1984, 3, "")
        assert "(no OCR text available)" in prompt
        assert "TransWorld (1984)" in prompt


# ======================================================================
# Response parsing
# ======================================================================


class TestParseLLMResponse:
    def test_plain_json(self) -> None:
        assert EntityExtractor.parse_llm_response('{"skaters": []}') == {"skaters": []}

    def test_fenced_json(self) -> None:
        text = 'Here you go:\n```json\n{"brands": [{"name": "Vision"}]}\n```'
        assert EntityExtractor.parse_llm_response(text) == {"brands": [{"name": "Vision"}]}

    def test_json_with_commentary(self) -> None:
        text = 'Sure! {"photographers": [{"name": "Spike Jonze"}]} Hope that helps.'
        assert EntityExtractor.parse_llm_response(text)["photographers"][0]["name"] == "Spike Jonze"

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(json.JSONDecodeError):
            EntityExtractor.parse_llm_response("no entities on this page")

    def test_non_object_raises(self) -> None:
        with pytest.raises(ValueError):
            EntityExtractor.parse_llm_response("[1, 2, 3]")


# ======================================================================
# Model mapping
# ======================================================================


class TestBuildResult:
    def test_full_response_maps_every_type(self, mock_llm_provider) -> None:
        result = EntityExtractor(mock_llm_provider).build_result(_FULL_RESPONSE, 1)

        assert [s.name for s in result.skaters] == ["Tony Hawk", "Lance Mountain"]
        assert result.skaters[0].context == AppearanceContext.COVER
        assert result.skaters[1].context == AppearanceContext.MENTION

        spot = result.spots[0]
        assert spot.type == SpotType.PARK
        assert spot.street_number == "2052"
        assert spot.zipcode == "92014"
        assert spot.phone is None
        assert spot.has_address
        assert spot.address_label == "2052 Jimmy Durante Blvd"

        assert result.brands[0].category == BrandCategory.DECKS
        assert result.brands[0].context == AppearanceContext.AD
        assert result.brands[1].category is None
        assert result.brands[1].context == AppearanceContext.MENTION

        assert result.tricks[0].performed_by == "Tony Hawk"
        assert result.tricks[0].location == "Del Mar Skate Ranch"
        assert result.events[0].date == "1983-06"
        assert result.locations[0].type == LocationType.CITY
        assert result.total == 9

    def test_items_without_name_are_dropped(self, mock_llm_provider) -> None:
        parsed = {"skaters": [{"name": ""}, {"context": "cover"}, "Tony Hawk", {"name": "Hosoi"}]}
        result = EntityExtractor(mock_llm_provider).build_result(parsed)
        assert [s.name for s in result.skaters] == ["Hosoi"]

    def test_non_list_field_ignored(self, mock_llm_provider) -> None:
        result = EntityExtractor(mock_llm_provider).build_result({"skaters": {"name": "Hosoi"}})
        assert result.skaters == []

    def test_missing_fields_default_empty(self, mock_llm_provider) -> None:
        result = EntityExtractor(mock_llm_provider).build_result({"tricks": [{"name": "ollie"}]})
        assert result.total == 1
        assert result.skaters == []


# ======================================================================
# LLM calls
# ======================================================================


class TestExtractPage:
    @pytest.mark.asyncio
    async def test_text_mode_calls_complete(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = json.dumps(_FULL_RESPONSE)
        extractor = EntityExtractor(mock_llm_provider, max_tokens=1000, temperature=0.1)

        result = await extractor.extract_page("Thrasher", 1983, 4, "Tony Hawk frontside air")

        assert result.total == 9
        kwargs = mock_llm_provider.complete.call_args.kwargs
        assert kwargs["max_tokens"] == 1000
        assert kwargs["temperature"] == 0.1
        assert "Tony Hawk frontside air" in kwargs["user_prompt"]
        mock_llm_provider.vision_extract.assert_not_called()

    @pytest.mark.asyncio
    async def test_vision_mode_sends_image(self, mock_llm_provider) -> None:
        mock_llm_provider.vision_extract.return_value = '{"skaters": [{"name": "Hosoi"}]}'
        extractor = EntityExtractor(mock_llm_provider)

        result = await extractor.extract_page_with_vision("Thrasher", 1983, 2, b"\x89PNG", "hosoi")

        assert [s.name for s in result.skaters] == ["Hosoi"]
        kwargs = mock_llm_provider.vision_extract.call_args.kwargs
        assert kwargs["image_bytes"] == b"\x89PNG"
        assert "hosoi" in kwargs["prompt"]

    @pytest.mark.asyncio
    async def test_malformed_response_yields_empty_result(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = "I could not find any entities."
        result = await EntityExtractor(mock_llm_provider).extract_page("Thrasher", 1983, 1, "text")
        assert result.total == 0

    @pytest.mark.asyncio
    async def test_provider_error_propagates(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.side_effect = LLMError("down", provider_name="mock-llm")
        with pytest.raises(LLMError):
            await EntityExtractor(mock_llm_provider).extract_page("Thrasher", 1983, 1, "text")
