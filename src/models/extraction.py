"""Entity extraction models for the skate magazine archive.

These models describe what the LLM pulls out of a magazine page and what
the aggregator hands to the catalog writer:

    1. The LLM returns JSON for one page   → ExtractionResult (page_numbers empty)
    2. Each page result is tagged          → PageExtraction
    3. Page results are merged by name     → ExtractionResult (page_numbers filled)

The per-type models accept the camelCase keys of the LLM's JSON contract
(``performedBy``, ``streetNumber``) as aliases and coerce values outside
the closed enums to a safe default instead of passing them through.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.models.catalog import AppearanceContext, EntityType
from src.utils.text_normalizer import clean_optional, normalize_entity_key


class SpotType(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    STREET = "street"
    PARK = "park"
    POOL = "pool"
    DITCH = "ditch"
    VERT = "vert"
    OTHER = "other"


class BrandCategory(str, Enum):  # noqa: UP042
    DECKS = "decks"
    TRUCKS = "trucks"
    WHEELS = "wheels"
    BEARINGS = "bearings"
    SHOES = "shoes"
    CLOTHING = "clothing"
    ACCESSORIES = "accessories"
    SHOP = "shop"
    OTHER = "other"


class LocationType(str, Enum):  # noqa: UP042
    CITY = "city"
    STATE = "state"
    COUNTRY = "country"
    REGION = "region"
    NEIGHBORHOOD = "neighborhood"
    STREET = "street"
    ADDRESS = "address"
    ZIPCODE = "zipcode"
    OTHER = "other"


# Brands only ever appear in these contexts.
_BRAND_CONTEXTS = frozenset({
    AppearanceContext.AD,
    AppearanceContext.FEATURE,
    AppearanceContext.MENTION,
    AppearanceContext.OTHER,
})


def _coerce_enum(enum_cls: type[Enum], value: Any, default: Any) -> Any:
    """Map *value* onto *enum_cls*, returning *default* when it does not fit."""
    if value is None:
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# Per-type extracted entities
# ---------------------------------------------------------------------------
class ExtractedEntity(BaseModel):
    """Fields shared by every extracted entity.

    ``page_numbers`` is empty for a single-page result and holds the
    ordered, de-duplicated page list once results are aggregated.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    entity_type: ClassVar[EntityType]

    name: str = Field(min_length=1)
    page_numbers: list[int] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _clean_raw_values(cls, data: Any) -> Any:
        # LLMs return numbers for zipcodes and "null" strings for blanks.
        if not isinstance(data, dict):
            return data
        cleaned: dict[str, Any] = {}
        for key, value in data.items():
            if key == "page_numbers":
                cleaned[key] = value
                continue
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                value = str(value)
            if isinstance(value, str):
                value = clean_optional(value)
            cleaned[key] = value
        return cleaned

    @property
    def key(self) -> str:
        """Dedupe key: the trimmed, lower-cased name."""
        return normalize_entity_key(self.name)


class ExtractedSkater(ExtractedEntity):
    entity_type: ClassVar[EntityType] = EntityType.SKATER

    context: AppearanceContext = AppearanceContext.MENTION

    @field_validator("context", mode="before")
    @classmethod
    def _coerce_context(cls, value: Any) -> Any:
        return _coerce_enum(AppearanceContext, value, AppearanceContext.MENTION)


class ExtractedSpot(ExtractedEntity):
    entity_type: ClassVar[EntityType] = EntityType.SPOT

    city: str | None = None
    state: str | None = None
    type: SpotType | None = None
    address: str | None = None
    street_number: str | None = Field(default=None, alias="streetNumber")
    street_name: str | None = Field(default=None, alias="streetName")
    zipcode: str | None = None
    phone: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> Any:
        return _coerce_enum(SpotType, value, None)

    @property
    def has_address(self) -> bool:
        """True when the spot carries enough detail for a linked address location."""
        return bool(self.address or self.street_name or self.zipcode)

    @property
    def address_label(self) -> str:
        """Name for the linked address location."""
        if self.address:
            return self.address
        if self.street_name:
            return f"{self.street_number or ''} {self.street_name}".strip()
        return f"{self.name} Address"


class ExtractedPhotographer(ExtractedEntity):
    entity_type: ClassVar[EntityType] = EntityType.PHOTOGRAPHER


class ExtractedBrand(ExtractedEntity):
    entity_type: ClassVar[EntityType] = EntityType.BRAND

    category: BrandCategory | None = None
    context: AppearanceContext = AppearanceContext.MENTION

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> Any:
        return _coerce_enum(BrandCategory, value, None)

    @field_validator("context", mode="before")
    @classmethod
    def _coerce_context(cls, value: Any) -> Any:
        context = _coerce_enum(AppearanceContext, value, AppearanceContext.MENTION)
        return context if context in _BRAND_CONTEXTS else AppearanceContext.MENTION


class ExtractedTrick(ExtractedEntity):
    entity_type: ClassVar[EntityType] = EntityType.TRICK

    performed_by: str | None = Field(default=None, alias="performedBy")
    location: str | None = None


class ExtractedEvent(ExtractedEntity):
    entity_type: ClassVar[EntityType] = EntityType.EVENT

    date: str | None = None
    location: str | None = None


class ExtractedLocation(ExtractedEntity):
    entity_type: ClassVar[EntityType] = EntityType.LOCATION

    type: LocationType | None = None
    street_name: str | None = Field(default=None, alias="streetName")
    street_number: str | None = Field(default=None, alias="streetNumber")
    address: str | None = None
    zipcode: str | None = None
    neighborhood: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> Any:
        return _coerce_enum(LocationType, value, None)


# JSON key in the LLM contract → (entity type, model class).
ENTITY_MODELS: dict[str, type[ExtractedEntity]] = {
    "skaters": ExtractedSkater,
    "spots": ExtractedSpot,
    "photographers": ExtractedPhotographer,
    "brands": ExtractedBrand,
    "tricks": ExtractedTrick,
    "events": ExtractedEvent,
    "locations": ExtractedLocation,
}

FIELD_BY_TYPE: dict[EntityType, str] = {
    model.entity_type: field for field, model in ENTITY_MODELS.items()
}


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------
class ExtractionResult(BaseModel):
    """Entities found on one page, or merged across a whole issue."""

    model_config = ConfigDict(frozen=True)

    skaters: list[ExtractedSkater] = Field(default_factory=list)
    spots: list[ExtractedSpot] = Field(default_factory=list)
    photographers: list[ExtractedPhotographer] = Field(default_factory=list)
    brands: list[ExtractedBrand] = Field(default_factory=list)
    tricks: list[ExtractedTrick] = Field(default_factory=list)
    events: list[ExtractedEvent] = Field(default_factory=list)
    locations: list[ExtractedLocation] = Field(default_factory=list)

    def entities_of(self, entity_type: EntityType) -> list[ExtractedEntity]:
        return list(getattr(self, FIELD_BY_TYPE[entity_type]))

    def counts(self) -> dict[EntityType, int]:
        return {entity_type: len(self.entities_of(entity_type)) for entity_type in EntityType}

    @property
    def total(self) -> int:
        return sum(self.counts().values())


class PageExtraction(BaseModel):
    """The extraction result for a single logical page."""

    model_config = ConfigDict(frozen=True)

    page_number: int = Field(ge=1)
    result: ExtractionResult = Field(default_factory=ExtractionResult)


class SaveSummary(BaseModel):
    """What one save of an issue-level extraction wrote to the catalog."""

    model_config = ConfigDict(frozen=True)

    magazine_id: int
    appearances: dict[EntityType, int] = Field(default_factory=dict)
    trick_mentions: int = 0
    addresses_linked: int = 0
    appearances_replaced: int = 0
    trick_mentions_replaced: int = 0

    @property
    def total_appearances(self) -> int:
        return sum(self.appearances.values())
