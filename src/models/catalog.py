"""Catalog models for the skate magazine archive.

Defines Pydantic v2 models for the rows the SQLite catalog hands back:
magazines, their pages, and the provenance records (appearances and trick
mentions) that tie extracted entities to specific issues and pages.

The closed enums here are also the values persisted in the database, so
they use lower-case string values that match the stored text.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MagazineStatus(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    """Lifecycle of a magazine issue.

    ``pending → processing → review → published``.  A failed OCR run sends
    the issue back to ``pending``.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    REVIEW = "review"
    PUBLISHED = "published"


class Completeness(str, Enum):  # noqa: UP042
    """Whether an issue has page scans or only catalog metadata."""

    FULL = "full"
    METADATA = "metadata"


class EntityType(str, Enum):  # noqa: UP042
    """Tag for the seven extracted entity kinds.

    Every per-type dispatch (tables, contexts, merge rewrites) is a mapping
    keyed by this enum.
    """

    SKATER = "skater"
    SPOT = "spot"
    PHOTOGRAPHER = "photographer"
    BRAND = "brand"
    TRICK = "trick"
    EVENT = "event"
    LOCATION = "location"


class AppearanceContext(str, Enum):  # noqa: UP042
    """How an entity appears in an issue."""

    COVER = "cover"
    FEATURE = "feature"
    INTERVIEW = "interview"
    PHOTO = "photo"
    AD = "ad"
    CONTEST_RESULTS = "contest_results"
    MENTION = "mention"
    OTHER = "other"


class Magazine(BaseModel):
    """A single magazine issue."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    volume: int | None = None
    issue: int | None = None
    year: int
    month: int | None = Field(default=None, ge=1, le=12)
    cover_image: str | None = None
    pdf_path: str | None = None
    status: MagazineStatus = MagazineStatus.PENDING
    completeness: Completeness = Completeness.METADATA
    page_count: int | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def display_name(self) -> str:
        """Human label such as ``Thrasher Vol.3 #4 (1983)``."""
        parts = [self.title]
        if self.volume is not None:
            parts.append(f"Vol.{self.volume}")
        if self.issue is not None:
            parts.append(f"#{self.issue}")
        parts.append(f"({self.year})")
        return " ".join(parts)


class MagazinePage(BaseModel):
    """One logical page of an issue (a spread contributes two)."""

    model_config = ConfigDict(frozen=True)

    id: int
    magazine_id: int
    page_number: int = Field(ge=1)
    image_path: str | None = None
    text_content: str | None = None


class Appearance(BaseModel):
    """Provenance link: entity X appears in magazine M on pages P."""

    model_config = ConfigDict(frozen=True)

    id: int
    magazine_id: int
    entity_type: EntityType
    entity_id: int
    page_numbers: list[int] = Field(default_factory=list)
    context: AppearanceContext | None = None
    confidence_score: float | None = Field(default=None, ge=0.0, le=1.0)
    verified: bool = False


class TrickMention(BaseModel):
    """A trick seen on a specific page, optionally tied to a skater and spot."""

    model_config = ConfigDict(frozen=True)

    id: int
    magazine_id: int
    trick_id: int
    skater_id: int | None = None
    spot_id: int | None = None
    page_number: int | None = None
    notes: str | None = None
    confidence_score: float | None = Field(default=None, ge=0.0, le=1.0)
    verified: bool = False
