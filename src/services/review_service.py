"""Human review of extracted data.

After extraction an issue sits in ``review``: every appearance is
unverified until a curator confirms it.  This service is the write side of
that workflow, plus the housekeeping that goes with it (renaming an
entity, correcting a page's OCR text, deleting an issue, and sweeping away
entities no issue refers to any more).
"""

from __future__ import annotations

from src.interfaces.catalog_provider import ICatalogProvider
from src.models.catalog import EntityType, MagazineStatus
from src.models.curation import CleanupReport
from src.utils.errors import CatalogError
from src.utils.logging import get_logger


class ReviewService:
    """Verify, reject and correct catalog data for one or more issues."""

    def __init__(self, catalog: ICatalogProvider) -> None:
        self._catalog = catalog
        self._logger = get_logger(__name__)

    # -- Appearances -----------------------------------------------------

    async def verify(self, appearance_id: int) -> bool:
        """Confirm one appearance.  Returns ``False`` if it does not exist."""
        verified = await self._catalog.set_appearance_verified(appearance_id, True)
        self._logger.info("appearance_verified", appearance_id=appearance_id, found=verified)
        return verified

    async def reject(self, appearance_id: int) -> bool:
        """Delete one wrongly extracted appearance."""
        deleted = await self._catalog.delete_appearance(appearance_id)
        self._logger.info("appearance_rejected", appearance_id=appearance_id, found=deleted)
        return deleted

    async def verify_all(self, magazine_id: int) -> int:
        """Confirm every appearance of an issue; returns how many changed."""
        count = await self._catalog.verify_all_appearances(magazine_id)
        self._logger.info("appearances_verified", magazine_id=magazine_id, count=count)
        return count

    # -- Entities and issues ---------------------------------------------

    async def rename(self, entity_type: EntityType, entity_id: int, new_name: str) -> bool:
        """Correct an entity's name.

        Raises
        ------
        CatalogError
            If the name is blank or already taken (merge the two instead).
        """
        if not new_name.strip():
            raise CatalogError("Entity name cannot be empty")
        return await self._catalog.rename_entity(entity_type, entity_id, new_name)

    async def set_status(self, magazine_id: int, status: MagazineStatus) -> bool:
        updated = await self._catalog.set_magazine_status(magazine_id, status)
        self._logger.info(
            "magazine_status_set", magazine_id=magazine_id, status=status.value, found=updated,
        )
        return updated

    async def update_page_text(self, magazine_id: int, page_number: int, text: str) -> bool:
        """Replace a page's OCR text with a corrected version."""
        return await self._catalog.update_page_text(magazine_id, page_number, text)

    async def delete_magazine(self, magazine_id: int) -> bool:
        """Delete an issue together with its pages and provenance rows.

        Page image files are left on disk.
        """
        deleted = await self._catalog.delete_magazine(magazine_id)
        self._logger.info("magazine_deleted", magazine_id=magazine_id, found=deleted)
        return deleted

    async def cleanup_unused(self) -> CleanupReport:
        """Delete every entity that no longer appears in any issue."""
        report = await self._catalog.delete_unused_entities()
        self._logger.info("cleanup_complete", total=report.total)
        return report
