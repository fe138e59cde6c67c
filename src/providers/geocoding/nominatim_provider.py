"""OpenStreetMap Nominatim geocoding provider.

Nominatim's usage policy requires an identifying User-Agent and at most one
request per second; the pacing between requests is the caller's job (see
:class:`src.services.geocoding_service.GeocodingService`).  Each lookup
asks for a single best match with address details.
"""

from __future__ import annotations

import httpx
import structlog

from src.interfaces.geocoding_provider import IGeocodingProvider
from src.models.curation import GeocodeResult
from src.utils.errors import GeocodingError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_URL = "https://nominatim.openstreetmap.org/search"
_DEFAULT_USER_AGENT = "SkateMagArchive/1.0 (geocoding locations)"
_DEFAULT_TIMEOUT = 10.0


class NominatimGeocodingProvider(IGeocodingProvider):
    """Free-text geocoding against a Nominatim ``/search`` endpoint.

    The ``httpx.AsyncClient`` may be injected for testability; a client
    created here is closed by :meth:`close`.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = _DEFAULT_URL,
        user_agent: str = _DEFAULT_USER_AGENT,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self._base_url = base_url
        self._headers = {"User-Agent": user_agent}

    async def geocode(self, query: str) -> GeocodeResult | None:
        try:
            response = await self._client.get(
                self._base_url,
                params={
                    "q": query,
                    "format": "json",
                    "limit": 1,
                    "addressdetails": 1,
                },
                headers=self._headers,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise GeocodingError(
                message=f"Nominatim lookup failed for '{query}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not isinstance(data, list) or not data:
            logger.debug("nominatim_no_match", query=query)
            return None

        best = data[0]
        try:
            return GeocodeResult(
                latitude=float(best["lat"]),
                longitude=float(best["lon"]),
                display_name=best.get("display_name", ""),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise GeocodingError(
                message=f"Unexpected Nominatim payload for '{query}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_provider_name(self) -> str:
        return "nominatim"

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
