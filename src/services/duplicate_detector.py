"""Fuzzy duplicate detection and merging for catalog entities.

Extraction only collapses names that differ in case or whitespace, so OCR
and model misspellings ("Trasher" for "Thrasher", "Tony Hawk" vs "Tony
Hawk's") survive into the catalog as separate rows.  This service finds
those near-duplicates for a human to confirm and merges the confirmed ones.

Grouping is greedy and quadratic: each entity not yet grouped seeds a
group containing every later ungrouped entity whose similarity *to the
seed* reaches the threshold.  Similarity is not transitive, so the result
depends on input order; the catalog lists entities by name then id,
which makes repeated scans stable.
"""

from __future__ import annotations

from src.interfaces.catalog_provider import ICatalogProvider
from src.models.catalog import EntityType
from src.models.curation import DuplicateCandidate, DuplicateGroup, MergeResult
from src.utils.logging import get_logger
from src.utils.text_normalizer import name_similarity

_DEFAULT_THRESHOLD = 0.7


def find_duplicates(
    entity_type: EntityType,
    entities: list[DuplicateCandidate],
    threshold: float = _DEFAULT_THRESHOLD,
) -> list[DuplicateGroup]:
    """Group entities whose names are at least *threshold* similar.

    Parameters
    ----------
    entity_type:
        Type tag copied onto each group.
    entities:
        Candidates in a stable order.
    threshold:
        Minimum similarity to the group's seed, inclusive.

    Returns
    -------
    list[DuplicateGroup]
        Groups with two or more members, most similar first.  A group's
        score is the highest similarity between its seed and a member.
    """
    grouped: set[int] = set()
    groups: list[DuplicateGroup] = []

    for i, seed in enumerate(entities):
        if seed.id in grouped:
            continue
        members = [seed]
        best = 0.0
        for other in entities[i + 1:]:
            if other.id in grouped:
                continue
            score = name_similarity(seed.name, other.name)
            if score >= threshold:
                members.append(other)
                best = max(best, score)

        if len(members) > 1:
            grouped.update(member.id for member in members)
            groups.append(
                DuplicateGroup(entity_type=entity_type, entities=members, similarity_score=best)
            )

    groups.sort(key=lambda group: group.similarity_score, reverse=True)
    return groups


class DuplicateDetector:
    """Scans the catalog for near-duplicate names and merges them."""

    def __init__(
        self,
        catalog: ICatalogProvider,
        threshold: float = _DEFAULT_THRESHOLD,
    ) -> None:
        self._catalog = catalog
        self._threshold = threshold
        self._logger = get_logger(__name__)

    async def scan(self, entity_type: EntityType) -> list[DuplicateGroup]:
        """Find duplicate groups within one entity type."""
        entities = await self._catalog.list_entities(entity_type)
        groups = find_duplicates(entity_type, entities, self._threshold)
        self._logger.info(
            "duplicate_scan_complete",
            entity_type=entity_type.value,
            entities=len(entities),
            groups=len(groups),
        )
        return groups

    async def scan_all(self) -> dict[EntityType, list[DuplicateGroup]]:
        """Find duplicate groups in every entity type."""
        return {entity_type: await self.scan(entity_type) for entity_type in EntityType}

    async def merge(
        self, entity_type: EntityType, keep_id: int, merge_ids: list[int],
    ) -> MergeResult:
        """Fold *merge_ids* into *keep_id*.

        Raises
        ------
        ValueError
            If *merge_ids* is empty or contains *keep_id*.
        CatalogError
            If *keep_id* does not exist.
        """
        if not merge_ids:
            raise ValueError("merge_ids must name at least one entity")
        if keep_id in merge_ids:
            raise ValueError(f"keep_id {keep_id} cannot also be merged away")

        return await self._catalog.merge_entities(
            entity_type, keep_id, list(dict.fromkeys(merge_ids)),
        )
