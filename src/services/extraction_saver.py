"""Persists an issue-level extraction into the catalog with provenance.

For every extracted entity the saver get-or-creates the catalog row and
upserts one appearance for the issue.  Appearance context depends on the
entity type:

    skater, brand        → context reported by the model
    spot, trick, event   → feature
    photographer         → photo
    location             → mention

Tricks naming a performer or a place also produce one trick mention per
page, with the skater and spot resolved by exact name.  Skaters and spots
are therefore saved before tricks.

A save always starts by deleting the issue's previous appearances and
trick mentions, so re-running extraction replaces rather than duplicates.
The issue ends in ``review`` status.
"""

from __future__ import annotations

from typing import Any

from src.interfaces.catalog_provider import ICatalogProvider
from src.models.catalog import AppearanceContext, EntityType, MagazineStatus
from src.models.extraction import (
    ExtractedBrand,
    ExtractedEntity,
    ExtractedEvent,
    ExtractedLocation,
    ExtractedSkater,
    ExtractedSpot,
    ExtractedTrick,
    ExtractionResult,
    SaveSummary,
)
from src.utils.errors import CatalogError
from src.utils.logging import get_logger

_DEFAULT_CONFIDENCE = 0.8

# None means "use the context the model reported".
_APPEARANCE_CONTEXT: dict[EntityType, AppearanceContext | None] = {
    EntityType.SKATER: None,
    EntityType.SPOT: AppearanceContext.FEATURE,
    EntityType.PHOTOGRAPHER: AppearanceContext.PHOTO,
    EntityType.BRAND: None,
    EntityType.TRICK: AppearanceContext.FEATURE,
    EntityType.EVENT: AppearanceContext.FEATURE,
    EntityType.LOCATION: AppearanceContext.MENTION,
}

# Save order: tricks resolve skaters and spots by name.
_SAVE_ORDER = (
    EntityType.SKATER,
    EntityType.SPOT,
    EntityType.PHOTOGRAPHER,
    EntityType.BRAND,
    EntityType.TRICK,
    EntityType.EVENT,
    EntityType.LOCATION,
)


def _entity_attributes(entity: ExtractedEntity) -> dict[str, Any]:
    """Catalog columns set when the entity row is first created."""
    if isinstance(entity, ExtractedSpot):
        return {
            "city": entity.city,
            "state": entity.state,
            "type": entity.type,
            "phone": entity.phone,
        }
    if isinstance(entity, ExtractedBrand):
        return {"category": entity.category}
    if isinstance(entity, ExtractedEvent):
        return {"date": entity.date, "location": entity.location}
    if isinstance(entity, ExtractedLocation):
        return {
            "type": entity.type,
            "street_name": entity.street_name,
            "street_number": entity.street_number,
            "address": entity.address,
            "zipcode": entity.zipcode,
            "neighborhood": entity.neighborhood,
            "city": entity.city,
            "state": entity.state,
            "country": entity.country,
        }
    return {}


def _appearance_context(entity: ExtractedEntity) -> AppearanceContext | None:
    fixed = _APPEARANCE_CONTEXT[entity.entity_type]
    if fixed is not None:
        return fixed
    if isinstance(entity, (ExtractedSkater, ExtractedBrand)):
        return entity.context
    return AppearanceContext.MENTION


class ExtractionSaver:
    """Writes an :class:`ExtractionResult` for one issue into the catalog.

    Parameters
    ----------
    catalog:
        The catalog store.
    confidence_score:
        Confidence recorded on every appearance and trick mention.
    """

    def __init__(
        self,
        catalog: ICatalogProvider,
        confidence_score: float = _DEFAULT_CONFIDENCE,
    ) -> None:
        self._catalog = catalog
        self._confidence = confidence_score
        self._logger = get_logger(__name__)

    async def save(self, magazine_id: int, result: ExtractionResult) -> SaveSummary:
        """Replace the issue's provenance rows with *result*.

        Raises
        ------
        CatalogError
            If the issue does not exist.
        """
        if await self._catalog.get_magazine(magazine_id) is None:
            raise CatalogError(f"Magazine {magazine_id} not found")

        cleared_appearances, cleared_mentions = await self._catalog.clear_extraction(magazine_id)
        if cleared_appearances or cleared_mentions:
            self._logger.info(
                "previous_extraction_cleared",
                magazine_id=magazine_id,
                appearances=cleared_appearances,
                trick_mentions=cleared_mentions,
            )

        appearances: dict[EntityType, int] = {}
        mentions = 0
        addresses = 0
        for entity_type in _SAVE_ORDER:
            saved = 0
            for entity in result.entities_of(entity_type):
                entity_id = await self._catalog.get_or_create_entity(
                    entity_type, entity.name, _entity_attributes(entity),
                )
                if isinstance(entity, ExtractedSpot) and entity.has_address:
                    if await self._link_address(entity_id, entity) is not None:
                        addresses += 1

                await self._catalog.upsert_appearance(
                    magazine_id=magazine_id,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    page_numbers=entity.page_numbers,
                    context=_appearance_context(entity),
                    confidence_score=self._confidence,
                )
                saved += 1

                if isinstance(entity, ExtractedTrick):
                    mentions += await self._save_trick_mentions(magazine_id, entity_id, entity)
            appearances[entity_type] = saved

        await self._catalog.set_magazine_status(magazine_id, MagazineStatus.REVIEW)

        summary = SaveSummary(
            magazine_id=magazine_id,
            appearances=appearances,
            trick_mentions=mentions,
            addresses_linked=addresses,
            appearances_replaced=cleared_appearances,
            trick_mentions_replaced=cleared_mentions,
        )
        self._logger.info(
            "extraction_saved",
            magazine_id=magazine_id,
            appearances=summary.total_appearances,
            trick_mentions=mentions,
            addresses_linked=addresses,
        )
        return summary

    async def _link_address(self, spot_id: int, spot: ExtractedSpot) -> int | None:
        return await self._catalog.attach_spot_address(
            spot_id,
            spot.address_label,
            {
                "address": spot.address,
                "street_number": spot.street_number,
                "street_name": spot.street_name,
                "zipcode": spot.zipcode,
                "city": spot.city,
                "state": spot.state,
            },
            phone=spot.phone,
        )

    async def _save_trick_mentions(
        self, magazine_id: int, trick_id: int, trick: ExtractedTrick,
    ) -> int:
        if not trick.performed_by and not trick.location:
            return 0

        skater_id = None
        if trick.performed_by:
            skater_id = await self._catalog.find_entity_id(EntityType.SKATER, trick.performed_by)
        spot_id = None
        if trick.location:
            spot_id = await self._catalog.find_entity_id(EntityType.SPOT, trick.location)

        for page_number in trick.page_numbers:
            await self._catalog.add_trick_mention(
                magazine_id=magazine_id,
                trick_id=trick_id,
                page_number=page_number,
                skater_id=skater_id,
                spot_id=spot_id,
                confidence_score=self._confidence,
            )
        return len(trick.page_numbers)
