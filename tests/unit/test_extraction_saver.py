"""Unit tests for ExtractionSaver — get-or-create, provenance, re-runs."""

from __future__ import annotations

import pytest

from src.models.catalog import AppearanceContext, EntityType, MagazineStatus
from src.models.extraction import (
    ExtractedBrand,
    ExtractedLocation,
    ExtractedPhotographer,
    ExtractedSkater,
    ExtractedSpot,
    ExtractedTrick,
    ExtractionResult,
)
from src.services.extraction_saver import ExtractionSaver
from src.utils.errors import CatalogError


def _result() -> ExtractionResult:
    return ExtractionResult(
        skaters=[ExtractedSkater(name="Tony Hawk", context="cover", page_numbers=[1, 4])],
        spots=[
            ExtractedSpot(
                name="Del Mar Skate Ranch",
                city="Del Mar",
                state="CA",
                type="park",
                streetNumber="2052",
                streetName="Jimmy Durante Blvd",
                phone="555-0101",
                page_numbers=[4],
            )
        ],
        photographers=[ExtractedPhotographer(name="J. Grant Brittain", page_numbers=[4])],
        brands=[ExtractedBrand(name="Powell Peralta", category="decks", context="ad", page_numbers=[2])],
        tricks=[
            ExtractedTrick(
                name="Frontside Air",
                performedBy="Tony Hawk",
                location="Del Mar Skate Ranch",
                page_numbers=[4, 5],
            ),
            ExtractedTrick(name="Ollie", page_numbers=[7]),
        ],
        locations=[ExtractedLocation(name="Del Mar", type="city", page_numbers=[4])],
    )


async def _appearance_map(catalog, magazine_id: int) -> dict[EntityType, list]:
    by_type: dict[EntityType, list] = {}
    for appearance in await catalog.list_appearances(magazine_id):
        by_type.setdefault(appearance.entity_type, []).append(appearance)
    return by_type


class TestSave:
    @pytest.mark.asyncio
    async def test_appearances_and_contexts(self, catalog) -> None:
        magazine = await catalog.create_magazine(title="TransWorld", year=1984)
        summary = await ExtractionSaver(catalog).save(magazine.id, _result())

        appearances = await _appearance_map(catalog, magazine.id)
        assert appearances[EntityType.SKATER][0].context == AppearanceContext.COVER
        assert appearances[EntityType.SKATER][0].page_numbers == [1, 4]
        assert appearances[EntityType.SPOT][0].context == AppearanceContext.FEATURE
        assert appearances[EntityType.PHOTOGRAPHER][0].context == AppearanceContext.PHOTO
        assert appearances[EntityType.BRAND][0].context == AppearanceContext.AD
        assert {a.context for a in appearances[EntityType.TRICK]} == {AppearanceContext.FEATURE}
        assert appearances[EntityType.LOCATION][0].context == AppearanceContext.MENTION
        assert all(a.confidence_score == 0.8 for group in appearances.values() for a in group)
        assert all(not a.verified for group in appearances.values() for a in group)

        assert summary.total_appearances == 7
        assert summary.appearances[EntityType.TRICK] == 2
        assert summary.addresses_linked == 1

    @pytest.mark.asyncio
    async def test_trick_mentions_resolve_skater_and_spot(self, catalog) -> None:
        magazine = await catalog.create_magazine(title="TransWorld", year=1984)
        summary = await ExtractionSaver(catalog).save(magazine.id, _result())

        mentions = await catalog.list_trick_mentions(magazine.id)
        skater_id = await catalog.find_entity_id(EntityType.SKATER, "Tony Hawk")
        spot_id = await catalog.find_entity_id(EntityType.SPOT, "Del Mar Skate Ranch")
        trick_id = await catalog.find_entity_id(EntityType.TRICK, "frontside air")

        assert summary.trick_mentions == 2
        assert [m.page_number for m in mentions] == [4, 5]
        assert {(m.trick_id, m.skater_id, m.spot_id) for m in mentions} == {
            (trick_id, skater_id, spot_id)
        }

    @pytest.mark.asyncio
    async def test_spot_address_becomes_linked_location(self, catalog) -> None:
        magazine = await catalog.create_magazine(title="TransWorld", year=1984)
        await ExtractionSaver(catalog).save(magazine.id, _result())

        location_id = await catalog.find_entity_id(EntityType.LOCATION, "2052 Jimmy Durante Blvd")
        assert location_id is not None
        targets = await catalog.list_geocode_targets(EntityType.LOCATION)
        address = next(t for t in targets if t.id == location_id)
        assert address.street_name == "Jimmy Durante Blvd"
        assert address.city == "Del Mar"
        assert address.country == "USA"

    @pytest.mark.asyncio
    async def test_status_set_to_review(self, catalog) -> None:
        magazine = await catalog.create_magazine(title="TransWorld", year=1984)
        await catalog.set_magazine_status(magazine.id, MagazineStatus.PUBLISHED)
        await ExtractionSaver(catalog).save(magazine.id, ExtractionResult())
        assert (await catalog.get_magazine(magazine.id)).status == MagazineStatus.REVIEW

    @pytest.mark.asyncio
    async def test_rerun_replaces_previous_rows(self, catalog) -> None:
        magazine = await catalog.create_magazine(title="TransWorld", year=1984)
        saver = ExtractionSaver(catalog)
        await saver.save(magazine.id, _result())

        second = ExtractionResult(
            skaters=[ExtractedSkater(name="Tony Hawk", page_numbers=[9])],
        )
        summary = await saver.save(magazine.id, second)

        appearances = await catalog.list_appearances(magazine.id)
        assert len(appearances) == 1
        assert appearances[0].page_numbers == [9]
        assert await catalog.list_trick_mentions(magazine.id) == []
        assert summary.appearances_replaced == 7
        assert summary.trick_mentions_replaced == 2

    @pytest.mark.asyncio
    async def test_entities_shared_between_issues(self, catalog) -> None:
        first = await catalog.create_magazine(title="Thrasher", year=1983)
        second = await catalog.create_magazine(title="Thrasher", year=1984)
        saver = ExtractionSaver(catalog)
        await saver.save(first.id, ExtractionResult(skaters=[ExtractedSkater(name="Hosoi", page_numbers=[1])]))
        await saver.save(second.id, ExtractionResult(skaters=[ExtractedSkater(name="Hosoi", page_numbers=[3])]))

        skaters = await catalog.list_entities(EntityType.SKATER)
        assert len(skaters) == 1
        assert skaters[0].appearance_count == 2

    @pytest.mark.asyncio
    async def test_custom_confidence(self, catalog) -> None:
        magazine = await catalog.create_magazine(title="TransWorld", year=1984)
        await ExtractionSaver(catalog, confidence_score=0.5).save(
            magazine.id, ExtractionResult(tricks=[ExtractedTrick(name="ollie", page_numbers=[1])]),
        )
        assert (await catalog.list_appearances(magazine.id))[0].confidence_score == 0.5

    @pytest.mark.asyncio
    async def test_unknown_magazine(self, catalog) -> None:
        with pytest.raises(CatalogError):
            await ExtractionSaver(catalog).save(404, ExtractionResult())
