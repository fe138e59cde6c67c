"""LLM-based entity extraction for a single magazine page.

Sends one page's OCR text (or its scanned image plus the OCR text) to an
LLM provider with a prompt that lists the seven entity kinds of the
archive and the exact JSON shape to return.  The JSON response is parsed
and mapped into immutable Pydantic models.

Architecture: LLM-as-Parser, one page per call
-----------------------------------------------
Magazine OCR is noisy (columns run together, photo credits sit in the
gutter, ads are set in display faces), so rule-based extraction is not
practical.  Each page is parsed independently; cross-page merging is the
aggregator's job (:mod:`src.services.entity_aggregator`).

Two modes share the same JSON contract:
  - **Text mode** sends only the OCR text.
  - **Vision mode** sends the page image with the OCR text as a hint, for
    stylised or photo-heavy layouts the OCR mangles.

A malformed response is **not** retried: the page contributes an empty
result and a warning is logged, so one bad page never sinks an issue.
Transport failures (:class:`LLMError`) do propagate.
"""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import ValidationError

from src.interfaces.llm_provider import ILLMProvider
from src.models.extraction import ENTITY_MODELS, ExtractedEntity, ExtractionResult
from src.utils.logging import get_logger

# Matches markdown code fences (```json ... ``` or ``` ... ```) that LLMs
# frequently wrap around JSON output despite being asked not to.
_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)

_EMPTY_TEXT = "(no text content)"
_EMPTY_OCR_HINT = "(no OCR text available)"

_ENTITY_GUIDE = (
    "Entity kinds to look for:\n"
    "- SKATERS: people named on the page, full names where given.\n"
    "- TRICKS: skateboard manoeuvres (ollie, kickflip, grinds, inverts, airs, slides...).\n"
    "- SPOTS: particular places people skate: parks, pools, ditches, plazas, ramps.\n"
    "- PHOTOGRAPHERS: usually in photo credits (\"Photo:\", \"Ph:\") or bylines.\n"
    "- BRANDS: board, truck, wheel, shoe and clothing companies and skate shops, "
    "ads especially.\n"
    "- EVENTS: contests, demos, tours and sessions with a name.\n"
    "- LOCATIONS: any place reference: cities, states, countries, neighbourhoods, "
    "streets, addresses, zip codes, even loose ones like \"downtown\".\n"
)

_JSON_CONTRACT = (
    "Reply with a single JSON object and nothing else, shaped like this "
    "(use null for anything the page does not say):\n"
    "{\n"
    '  "skaters": [{"name": "...", "context": '
    '"cover|feature|interview|photo|ad|contest_results|mention|other"}],\n'
    '  "spots": [{"name": "...", "city": "...", "state": "...", '
    '"type": "street|park|pool|ditch|vert|other", "address": "...", '
    '"streetNumber": "...", "streetName": "...", "zipcode": "...", "phone": "..."}],\n'
    '  "photographers": [{"name": "..."}],\n'
    '  "brands": [{"name": "...", "category": '
    '"decks|trucks|wheels|bearings|shoes|clothing|accessories|shop|other", '
    '"context": "ad|feature|mention|other"}],\n'
    '  "tricks": [{"name": "...", "performedBy": "skater name", "location": "spot name"}],\n'
    '  "events": [{"name": "...", "date": "YYYY-MM", "location": "..."}],\n'
    '  "locations": [{"name": "...", "type": '
    '"city|state|country|region|neighborhood|street|address|zipcode|other", '
    '"city": "...", "state": "...", "country": "...", "neighborhood": "...", '
    '"streetName": "...", "address": "...", "zipcode": "..."}]\n'
    "}\n"
)


class EntityExtractor:
    """Extracts catalog entities from one magazine page using an LLM.

    Parameters
    ----------
    llm_provider:
        The LLM backend; vision mode requires ``supports_vision()``.
    max_tokens:
        Response budget per page.
    temperature:
        Sampling temperature for text mode.
    """

    def __init__(
        self,
        llm_provider: ILLMProvider,
        max_tokens: int = 2048,
        temperature: float = 0.2,
    ) -> None:
        self._llm = llm_provider
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def extract_page(
        self,
        title: str,
        year: int,
        page_number: int,
        text: str,
    ) -> ExtractionResult:
        """Extract entities from a page's OCR text.

        Parameters
        ----------
        title, year:
            Magazine title and publication year, given to the model as context.
        page_number:
            Logical page number being parsed.
        text:
            The page's OCR text; may be empty.

        Returns
        -------
        ExtractionResult
            Entities found on the page (``page_numbers`` left empty).

        Raises
        ------
        LLMError
            If the provider call itself fails.
        """
        prompt = self.build_text_prompt(title, year, page_number, text)
        response = await self._llm.complete(
            system_prompt=self._system_prompt(),
            user_prompt=prompt,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        return self._to_result(response, page_number)

    async def extract_page_with_vision(
        self,
        title: str,
        year: int,
        page_number: int,
        image_bytes: bytes,
        ocr_text: str,
    ) -> ExtractionResult:
        """Extract entities from a page image, with OCR text as a hint."""
        prompt = self.build_vision_prompt(title, year, page_number, ocr_text)
        response = await self._llm.vision_extract(
            image_bytes=image_bytes,
            prompt=prompt,
            max_tokens=self._max_tokens,
        )
        return self._to_result(response, page_number)

    # ------------------------------------------------------------------
    # Prompt construction
    # ------------------------------------------------------------------

    @staticmethod
    def _system_prompt() -> str:
        return (
            "You catalogue vintage skateboarding magazines.  You read one "
            "page at a time and list every skater, trick, spot, photographer, "
            "brand, event and place it mentions, as strict JSON."
        )

    @staticmethod
    def build_text_prompt(title: str, year: int, page_number: int, text: str) -> str:
        """Build the text-mode prompt for one page."""
        body = text.strip() or _EMPTY_TEXT
        return (
            "Below is the OCR text of a single page from a skateboard magazine.  "
            "List every entity it names, including ones mentioned only once.\n"
            "\n"
            f"{_ENTITY_GUIDE}"
            "\n"
            f"Magazine: {title} ({year})\n"
            f"Page: {page_number}\n"
            "\n"
            "OCR text:\n"
            f"{body}\n"
            "\n"
            f"{_JSON_CONTRACT}"
        )

    @staticmethod
    def build_vision_prompt(title: str, year: int, page_number: int, ocr_text: str) -> str:
        """Build the vision-mode prompt for one page."""
        hint = ocr_text.strip() or _EMPTY_OCR_HINT
        return (
            "The attached image is a single page from a skateboard magazine.  "
            "Use both sources below and list every entity the page names.\n"
            "\n"
            "1. The page image: read headlines, captions, photo credits, ads "
            "and any text set over photos.\n"
            "2. The OCR text: a machine reading of the same page.  It can be "
            "wrong or out of order, so trust the image where they disagree.\n"
            "\n"
            f"{_ENTITY_GUIDE}"
            "\n"
            f"Magazine: {title} ({year})\n"
            f"Page: {page_number}\n"
            "\n"
            "OCR text:\n"
            f"{hint}\n"
            "\n"
            f"{_JSON_CONTRACT}"
        )

    # ------------------------------------------------------------------
    # Response parsing
    # ------------------------------------------------------------------

    @staticmethod
    def parse_llm_response(response: str) -> dict[str, Any]:
        """Extract the JSON object from an LLM response string.

        Handles markdown code fences and leading or trailing commentary
        around the object.

        Raises
        ------
        json.JSONDecodeError
            If no valid JSON can be extracted.
        ValueError
            If the JSON is not an object.
        """
        text = response.strip()

        fence_match = _JSON_FENCE_RE.search(text)
        if fence_match:
            text = fence_match.group(1).strip()

        if not text.startswith("{"):
            brace_start = text.find("{")
            brace_end = text.rfind("}")
            if brace_start != -1 and brace_end > brace_start:
                text = text[brace_start : brace_end + 1]

        parsed = json.loads(text)
        if not isinstance(parsed, dict):
            raise ValueError("LLM response is not a JSON object")
        return parsed

    def build_result(self, parsed: dict[str, Any], page_number: int | None = None) -> ExtractionResult:
        """Validate each item of a parsed response into its entity model.

        Items that are not objects or have no usable name are dropped;
        out-of-range enum values are coerced by the models themselves.
        """
        fields: dict[str, list[ExtractedEntity]] = {}
        for key, model in ENTITY_MODELS.items():
            raw_items = parsed.get(key) or []
            if not isinstance(raw_items, list):
                self._logger.warning(
                    "extraction_field_not_list", field=key, page_number=page_number,
                )
                raw_items = []

            items: list[ExtractedEntity] = []
            for raw in raw_items:
                if not isinstance(raw, dict):
                    continue
                raw = {k: v for k, v in raw.items() if k != "page_numbers"}
                try:
                    items.append(model.model_validate(raw))
                except ValidationError:
                    self._logger.debug(
                        "extraction_item_dropped",
                        field=key,
                        page_number=page_number,
                        item=str(raw)[:120],
                    )
            fields[key] = items
        return ExtractionResult(**fields)

    def _to_result(self, response: str, page_number: int) -> ExtractionResult:
        try:
            parsed = self.parse_llm_response(response)
        except (json.JSONDecodeError, ValueError) as exc:
            self._logger.warning(
                "page_extraction_unparseable",
                page_number=page_number,
                provider=self._llm.get_provider_name(),
                error=str(exc),
            )
            return ExtractionResult()

        result = self.build_result(parsed, page_number)
        self._logger.debug(
            "page_extraction_complete",
            page_number=page_number,
            skaters=len(result.skaters),
            tricks=len(result.tricks),
            photographers=len(result.photographers),
            total=result.total,
        )
        return result
