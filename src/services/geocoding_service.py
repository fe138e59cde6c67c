"""Geocoding of catalog locations and spots.

Every location or spot still missing a latitude is looked up through the
geocoding provider, one request at a time, with a fixed delay between
requests (Nominatim allows one request per second).  A failed or empty
lookup is logged and counted; it never stops the sweep.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from src.interfaces.catalog_provider import ICatalogProvider
from src.interfaces.geocoding_provider import IGeocodingProvider
from src.models.catalog import EntityType
from src.models.curation import GeocodeReport, GeocodeTarget
from src.utils.errors import GeocodingError
from src.utils.logging import get_logger

_DEFAULT_DELAY_SECONDS = 1.1
_DEFAULT_COUNTRY = "USA"


def build_search_query(target: GeocodeTarget) -> str:
    """Build the most specific free-text query the target's fields allow.

    Street detail comes first (full address, else "number street", else
    the street alone), then city and state.  A country other than the USA
    is appended as is; otherwise "USA" is appended whenever anything else
    was found.  With no components at all the bare name is used.
    """
    parts: list[str] = []
    if target.address:
        parts.append(target.address)
    elif target.street_number and target.street_name:
        parts.append(f"{target.street_number} {target.street_name}")
    elif target.street_name:
        parts.append(target.street_name)

    if target.city:
        parts.append(target.city)
    if target.state:
        parts.append(target.state)
    if target.country and target.country != _DEFAULT_COUNTRY:
        parts.append(target.country)
    elif parts:
        parts.append(_DEFAULT_COUNTRY)

    return ", ".join(parts) if parts else target.name


class GeocodingService:
    """Fills in coordinates for locations and spots.

    Parameters
    ----------
    catalog:
        Source of targets and sink for coordinates.
    provider:
        Geocoding backend (Nominatim in production).
    delay_seconds:
        Pause between consecutive requests.
    sleep:
        Awaitable sleep function; injectable for tests.
    """

    def __init__(
        self,
        catalog: ICatalogProvider,
        provider: IGeocodingProvider,
        delay_seconds: float = _DEFAULT_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._catalog = catalog
        self._provider = provider
        self._delay = delay_seconds
        self._sleep = sleep
        self._requests = 0
        self._logger = get_logger(__name__)

    async def geocode_all(self) -> GeocodeReport:
        """Geocode every location, then every spot, that lacks coordinates."""
        loc_ok, loc_failed = await self._geocode_type(EntityType.LOCATION)
        spot_ok, spot_failed = await self._geocode_type(EntityType.SPOT)
        report = GeocodeReport(
            locations_geocoded=loc_ok,
            locations_failed=loc_failed,
            spots_geocoded=spot_ok,
            spots_failed=spot_failed,
        )
        self._logger.info(
            "geocoding_complete",
            geocoded=report.total_geocoded,
            locations_failed=loc_failed,
            spots_failed=spot_failed,
        )
        return report

    async def geocode_target(self, target: GeocodeTarget) -> bool:
        """Look up one target and store its coordinates; ``True`` on success."""
        query = build_search_query(target)
        if self._requests and self._delay > 0:
            await self._sleep(self._delay)
        self._requests += 1

        try:
            result = await self._provider.geocode(query)
        except GeocodingError as exc:
            self._logger.warning(
                "geocode_failed",
                entity_type=target.entity_type.value,
                entity_id=target.id,
                query=query,
                error=str(exc),
            )
            return False

        if result is None:
            self._logger.info(
                "geocode_no_result",
                entity_type=target.entity_type.value,
                entity_id=target.id,
                query=query,
            )
            return False

        await self._catalog.set_coordinates(
            target.entity_type, target.id, result.latitude, result.longitude,
        )
        self._logger.info(
            "geocoded",
            entity_type=target.entity_type.value,
            entity_id=target.id,
            name=target.name,
            latitude=result.latitude,
            longitude=result.longitude,
        )
        return True

    async def _geocode_type(self, entity_type: EntityType) -> tuple[int, int]:
        targets = await self._catalog.list_geocode_targets(entity_type)
        self._logger.info("geocode_targets", entity_type=entity_type.value, count=len(targets))
        succeeded = 0
        failed = 0
        for target in targets:
            if await self.geocode_target(target):
                succeeded += 1
            else:
                failed += 1
        return succeeded, failed
