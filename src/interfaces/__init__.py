"""Public interface definitions for all external service providers.

Every external tool or service the archive touches (LLM APIs, Tesseract,
the PDF renderer, Nominatim, the SQLite catalog) is accessed exclusively
through the abstract base classes defined in this package.  Concrete
adapters implement these interfaces and are injected at runtime, so
services never import a vendor SDK directly and unit tests can pass in
mocks or fakes.

CONCRETE PROVIDER MAP:
    Interface           →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────
    ILLMProvider        →  AnthropicLLMProvider, OpenAILLMProvider
    IOCRProvider        →  TesseractOCRProvider
    IPDFRenderer        →  PyMuPDFRenderer
    IGeocodingProvider  →  NominatimGeocodingProvider
    ICatalogProvider    →  SQLiteCatalogProvider

Re-exports
----------
ILLMProvider
    LLM completion and vision contract.
IOCRProvider
    Page image-to-text contract.
IPDFRenderer
    PDF page count and page rendering contract.
IGeocodingProvider
    Free-text address to coordinates contract.
ICatalogProvider
    Magazine, page, entity and appearance persistence contract.
"""

from src.interfaces.catalog_provider import ICatalogProvider
from src.interfaces.geocoding_provider import IGeocodingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.ocr_provider import IOCRProvider
from src.interfaces.pdf_renderer import IPDFRenderer

__all__ = [
    "ICatalogProvider",
    "IGeocodingProvider",
    "ILLMProvider",
    "IOCRProvider",
    "IPDFRenderer",
]
