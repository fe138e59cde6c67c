"""Utility modules for the skate magazine archive.

Available utility modules (all re-exported here for convenience):

- **errors** -- Domain-specific exception hierarchy rooted at
  SkateArchiveError; each pipeline stage raises its own subclass so callers
  can handle failures granularly without broad ``except Exception`` blocks.
- **concurrency** -- fixed-window asyncio fan-out used to keep LLM calls
  under provider rate limits.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **page_images** -- spread detection and splitting, PNG encoding and the
  page-file naming scheme.
- **text_normalizer** -- entity name keys, trick-name cleanup and fuzzy
  name similarity for duplicate detection.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    CatalogError,
    ConfigurationError,
    EntityExtractionError,
    GeocodingError,
    LLMError,
    OCRExtractionError,
    PDFProcessingError,
    PipelineError,
    ProviderUnavailableError,
    RateLimitError,
    SkateArchiveError,
)

# -- Async concurrency helpers ---------------------------------------------
from src.utils.concurrency import batched, gather_in_batches

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

# -- Page image helpers -----------------------------------------------------
from src.utils.page_images import is_spread, page_filename, page_web_path, split_spread

# -- Text normalization (entity keys, trick names, similarity) -------------
from src.utils.text_normalizer import name_similarity, normalize_entity_key, normalize_trick_name

__all__ = [
    "CatalogError",
    "ConfigurationError",
    "EntityExtractionError",
    "GeocodingError",
    "LLMError",
    "OCRExtractionError",
    "PDFProcessingError",
    "PipelineError",
    "ProviderUnavailableError",
    "RateLimitError",
    "SkateArchiveError",
    "batched",
    "configure_logging",
    "gather_in_batches",
    "get_logger",
    "is_spread",
    "name_similarity",
    "normalize_entity_key",
    "normalize_trick_name",
    "page_filename",
    "page_web_path",
    "split_spread",
]
