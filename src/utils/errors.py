"""Custom exception hierarchy for the skate magazine archive.

All application exceptions inherit from :class:`SkateArchiveError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "anthropic", "tesseract", "nominatim") caused the
failure.

The hierarchy is organized by pipeline stage:

    SkateArchiveError  (base -- catch-all for any archive error)
    +-- PDFProcessingError       (PDF rendering / page splitting)
    +-- OCRExtractionError       (page image-to-text extraction)
    +-- EntityExtractionError    (LLM entity parsing / batching)
    +-- CatalogError             (SQLite catalog reads and writes)
    +-- GeocodingError           (Nominatim lookups)
    +-- PipelineError            (orchestration / status transitions)
    +-- ConfigurationError       (startup / missing config)
    +-- LLMError                 (any LLM API call failure)
    +-- RateLimitError           (provider rate-limit exceeded)
    +-- ProviderUnavailableError (external service down / unreachable)

Callers handle errors at the level they care about: the OCR run aborts
and reverts magazine status on any ``SkateArchiveError``, the CLIs turn
``ConfigurationError`` into exit code 1, and the geocoder logs
``GeocodingError`` per location and moves on.
"""


class SkateArchiveError(Exception):
    """Base exception for all archive errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[anthropic] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class PDFProcessingError(SkateArchiveError):
    """Raised when a PDF cannot be opened, rendered or split into pages."""

    def __init__(
        self,
        message: str = "PDF processing failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class OCRExtractionError(SkateArchiveError):
    """Raised when OCR text extraction fails for a page image."""

    def __init__(
        self,
        message: str = "OCR text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EntityExtractionError(SkateArchiveError):
    """Raised when an extraction run cannot start or complete."""

    def __init__(
        self,
        message: str = "Entity extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Storage / curation errors
# ---------------------------------------------------------------------------

class CatalogError(SkateArchiveError):
    """Raised when a catalog operation fails (missing row, constraint clash)."""

    def __init__(
        self,
        message: str = "Catalog operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class GeocodingError(SkateArchiveError):
    """Raised when a geocoding lookup fails at the transport level."""

    def __init__(
        self,
        message: str = "Geocoding failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------

class ProviderUnavailableError(SkateArchiveError):
    """Raised when an external service or provider is unreachable."""

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(SkateArchiveError):
    """Raised when an API rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(SkateArchiveError):
    """Raised when an LLM API call fails or returns no usable content."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Orchestration / configuration errors
# ---------------------------------------------------------------------------

class PipelineError(SkateArchiveError):
    """Raised when a magazine pipeline run fails (status already reverted)."""

    def __init__(
        self,
        message: str = "Pipeline orchestration failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(SkateArchiveError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
