"""Abstract base class for the magazine catalog store.

The catalog holds magazines, their pages, the seven entity tables and the
provenance rows (appearances, trick mentions) that link them.  Entity
writes follow **get-or-create** semantics keyed on the exact name, backed
by a uniqueness constraint, so concurrent or repeated runs never create two
rows for the same name.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.models.catalog import (
    Appearance,
    AppearanceContext,
    Completeness,
    EntityType,
    Magazine,
    MagazinePage,
    MagazineStatus,
    TrickMention,
)
from src.models.curation import CleanupReport, DuplicateCandidate, GeocodeTarget, MergeResult
from src.models.pages import PageResult


# Concrete implementation: SQLiteCatalogProvider (src/providers/catalog/)
class ICatalogProvider(ABC):
    """Contract for catalog persistence."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables and indices if they do not exist."""

    # -- Magazines -------------------------------------------------------

    @abstractmethod
    async def create_magazine(
        self,
        title: str,
        year: int,
        volume: int | None = None,
        issue: int | None = None,
        month: int | None = None,
        pdf_path: str | None = None,
        completeness: Completeness = Completeness.METADATA,
    ) -> Magazine:
        """Insert a new issue in ``pending`` status and return it."""

    @abstractmethod
    async def get_magazine(self, magazine_id: int) -> Magazine | None:
        """Return the issue or ``None`` when it does not exist."""

    @abstractmethod
    async def list_magazines(self, status: MagazineStatus | None = None) -> list[Magazine]:
        """Return issues ordered by year, volume and issue number."""

    @abstractmethod
    async def set_magazine_status(self, magazine_id: int, status: MagazineStatus) -> bool:
        """Set the lifecycle status; returns ``False`` for an unknown issue."""

    @abstractmethod
    async def mark_pages_processed(
        self, magazine_id: int, cover_image: str | None, page_count: int,
    ) -> None:
        """Record a finished OCR run: ``review`` status, cover, full completeness."""

    @abstractmethod
    async def delete_magazine(self, magazine_id: int) -> bool:
        """Delete the issue with its pages, appearances and trick mentions."""

    # -- Pages -----------------------------------------------------------

    @abstractmethod
    async def replace_pages(self, magazine_id: int, pages: list[PageResult]) -> int:
        """Delete every page of the issue, then insert *pages*.  Returns the count."""

    @abstractmethod
    async def get_pages(self, magazine_id: int) -> list[MagazinePage]:
        """Return the issue's pages ordered by page number."""

    @abstractmethod
    async def update_page_text(self, magazine_id: int, page_number: int, text: str) -> bool:
        """Replace one page's OCR text; returns ``False`` when the page is missing."""

    # -- Entities --------------------------------------------------------

    @abstractmethod
    async def get_or_create_entity(
        self,
        entity_type: EntityType,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> int:
        """Return the id of the entity named exactly *name*, creating it if needed.

        *attributes* only apply on creation; an existing row is not updated.
        """

    @abstractmethod
    async def find_entity_id(self, entity_type: EntityType, name: str) -> int | None:
        """Exact-name lookup."""

    @abstractmethod
    async def attach_spot_address(
        self,
        spot_id: int,
        address_name: str,
        location_attributes: dict[str, Any],
        phone: str | None = None,
    ) -> int | None:
        """Link an ``address`` location to a spot that has none yet.

        Returns the linked location id, or ``None`` when the spot already
        had a location.
        """

    @abstractmethod
    async def rename_entity(self, entity_type: EntityType, entity_id: int, new_name: str) -> bool:
        """Rename an entity.

        Raises
        ------
        src.utils.errors.CatalogError
            If another entity of the same type already has *new_name*.
        """

    @abstractmethod
    async def list_entities(self, entity_type: EntityType) -> list[DuplicateCandidate]:
        """Return every entity of the type with its appearance count."""

    @abstractmethod
    async def merge_entities(
        self, entity_type: EntityType, keep_id: int, merge_ids: list[int],
    ) -> MergeResult:
        """Repoint every reference from *merge_ids* to *keep_id*, then delete them."""

    @abstractmethod
    async def delete_unused_entities(self) -> CleanupReport:
        """Delete entities that have no appearances in any issue."""

    # -- Provenance ------------------------------------------------------

    @abstractmethod
    async def upsert_appearance(
        self,
        magazine_id: int,
        entity_type: EntityType,
        entity_id: int,
        page_numbers: list[int],
        context: AppearanceContext | None,
        confidence_score: float,
    ) -> int:
        """Insert an appearance, or union *page_numbers* into the existing one."""

    @abstractmethod
    async def list_appearances(
        self, magazine_id: int, verified: bool | None = None,
    ) -> list[Appearance]:
        """Return the issue's appearances, optionally filtered by verification."""

    @abstractmethod
    async def add_trick_mention(
        self,
        magazine_id: int,
        trick_id: int,
        page_number: int | None,
        skater_id: int | None = None,
        spot_id: int | None = None,
        confidence_score: float | None = None,
    ) -> int:
        """Insert one trick mention and return its id."""

    @abstractmethod
    async def list_trick_mentions(self, magazine_id: int) -> list[TrickMention]:
        """Return the issue's trick mentions ordered by page."""

    @abstractmethod
    async def clear_extraction(self, magazine_id: int) -> tuple[int, int]:
        """Delete the issue's appearances and trick mentions.

        Returns ``(appearances_deleted, trick_mentions_deleted)``.
        """

    @abstractmethod
    async def set_appearance_verified(self, appearance_id: int, verified: bool = True) -> bool:
        """Mark one appearance verified; ``False`` when it does not exist."""

    @abstractmethod
    async def delete_appearance(self, appearance_id: int) -> bool:
        """Remove one appearance (a rejected extraction)."""

    @abstractmethod
    async def verify_all_appearances(self, magazine_id: int) -> int:
        """Mark every appearance of the issue verified; returns rows changed."""

    # -- Geocoding -------------------------------------------------------

    @abstractmethod
    async def list_geocode_targets(self, entity_type: EntityType) -> list[GeocodeTarget]:
        """Return locations or spots that still have no latitude."""

    @abstractmethod
    async def set_coordinates(
        self, entity_type: EntityType, entity_id: int, latitude: float, longitude: float,
    ) -> None:
        """Store coordinates on a location or spot."""
