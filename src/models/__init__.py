"""Skate magazine archive domain models — re-exports all public model classes.

The models are organized across five submodules by concern:
    - catalog.py    — Magazines, pages, appearances, trick mentions, enums
    - extraction.py — Per-type extracted entities and their containers
    - pages.py      — Page images, OCR output and PDF processing results
    - curation.py   — Duplicate groups, merges, cleanup and geocoding
    - pipeline.py   — Pipeline phases reported by the progress tracker
"""

from __future__ import annotations

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
from src.models.curation import (
    CleanupReport,
    DuplicateCandidate,
    DuplicateGroup,
    GeocodeReport,
    GeocodeResult,
    GeocodeTarget,
    MergeResult,
)
from src.models.extraction import (
    BrandCategory,
    ExtractedBrand,
    ExtractedEntity,
    ExtractedEvent,
    ExtractedLocation,
    ExtractedPhotographer,
    ExtractedSkater,
    ExtractedSpot,
    ExtractedTrick,
    ExtractionResult,
    LocationType,
    PageExtraction,
    SaveSummary,
    SpotType,
)
from src.models.pages import (
    OCRResult,
    PageImage,
    PageResult,
    ProcessingResult,
    SpreadHalf,
)
from src.models.pipeline import PipelinePhase

__all__ = [
    "Appearance",
    "AppearanceContext",
    "BrandCategory",
    "CleanupReport",
    "Completeness",
    "DuplicateCandidate",
    "DuplicateGroup",
    "EntityType",
    "ExtractedBrand",
    "ExtractedEntity",
    "ExtractedEvent",
    "ExtractedLocation",
    "ExtractedPhotographer",
    "ExtractedSkater",
    "ExtractedSpot",
    "ExtractedTrick",
    "ExtractionResult",
    "GeocodeReport",
    "GeocodeResult",
    "GeocodeTarget",
    "LocationType",
    "Magazine",
    "MagazinePage",
    "MagazineStatus",
    "MergeResult",
    "OCRResult",
    "PageExtraction",
    "PageImage",
    "PageResult",
    "PipelinePhase",
    "ProcessingResult",
    "SaveSummary",
    "SpotType",
    "SpreadHalf",
    "TrickMention",
]
