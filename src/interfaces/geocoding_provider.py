"""Abstract base class for geocoding services."""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.curation import GeocodeResult


# Concrete implementation: NominatimGeocodingProvider (src/providers/geocoding/)
class IGeocodingProvider(ABC):
    """Contract for free-text address → coordinates lookup."""

    @abstractmethod
    async def geocode(self, query: str) -> GeocodeResult | None:
        """Resolve *query* to its best match.

        Returns
        -------
        GeocodeResult or None
            ``None`` when the service has no match for the query.

        Raises
        ------
        src.utils.errors.GeocodingError
            On transport failures or non-2xx responses.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier such as ``"nominatim"``."""

    @abstractmethod
    async def close(self) -> None:
        """Release any pooled HTTP connections."""
