"""Curation models: duplicate groups, merges, cleanup and geocoding reports."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from src.models.catalog import EntityType


class DuplicateCandidate(BaseModel):
    """An entity considered for duplicate grouping."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    appearance_count: int = 0


class DuplicateGroup(BaseModel):
    """Entities whose names are similar enough to be the same thing.

    ``entities[0]`` is the seed the others were compared against.
    """

    model_config = ConfigDict(frozen=True)

    entity_type: EntityType
    entities: list[DuplicateCandidate] = Field(min_length=2)
    similarity_score: float = Field(ge=0.0, le=1.0)


class MergeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    entity_type: EntityType
    keep_id: int
    merged_ids: list[int]
    appearances_moved: int = 0
    appearances_combined: int = 0


class CleanupReport(BaseModel):
    """Per-type counts of entities deleted for having no appearances."""

    model_config = ConfigDict(frozen=True)

    deleted: dict[EntityType, int] = Field(default_factory=dict)
    trick_mentions_deleted: int = 0

    @property
    def total(self) -> int:
        return sum(self.deleted.values())


class GeocodeTarget(BaseModel):
    """A location or spot that still lacks coordinates."""

    model_config = ConfigDict(frozen=True)

    entity_type: EntityType
    id: int
    name: str
    address: str | None = None
    street_name: str | None = None
    street_number: str | None = None
    neighborhood: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    zipcode: str | None = None


class GeocodeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    display_name: str = ""


class GeocodeReport(BaseModel):
    """Summary of one geocoding sweep."""

    model_config = ConfigDict(frozen=True)

    locations_geocoded: int = 0
    locations_failed: int = 0
    spots_geocoded: int = 0
    spots_failed: int = 0

    @property
    def total_geocoded(self) -> int:
        return self.locations_geocoded + self.spots_geocoded
