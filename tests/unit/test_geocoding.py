"""Unit tests for geocoding — query building, request pacing, Nominatim client."""

from __future__ import annotations

import httpx
import pytest

from src.interfaces.geocoding_provider import IGeocodingProvider
from src.models.catalog import EntityType
from src.models.curation import GeocodeResult, GeocodeTarget
from src.providers.geocoding.nominatim_provider import NominatimGeocodingProvider
from src.services.geocoding_service import GeocodingService, build_search_query
from src.utils.errors import GeocodingError


def _location(**fields) -> GeocodeTarget:
    return GeocodeTarget(entity_type=EntityType.LOCATION, id=1, name="Somewhere", **fields)


class FakeGeocoder(IGeocodingProvider):
    """Answers from a dict of query -> result (or exception)."""

    def __init__(self, answers: dict | None = None) -> None:
        self.answers = answers or {}
        self.queries: list[str] = []

    async def geocode(self, query: str) -> GeocodeResult | None:
        self.queries.append(query)
        answer = self.answers.get(query)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def get_provider_name(self) -> str:
        return "fake-geocoder"

    async def close(self) -> None:
        pass


# ======================================================================
# build_search_query
# ======================================================================


class TestBuildSearchQuery:
    def test_full_address_wins(self) -> None:
        target = _location(
            address="1 Embarcadero", street_name="Main St", street_number="5",
            city="San Francisco", state="CA",
        )
        assert build_search_query(target) == "1 Embarcadero, San Francisco, CA, USA"

    def test_number_and_street(self) -> None:
        target = _location(street_number="500", street_name="Venice Blvd", city="Los Angeles")
        assert build_search_query(target) == "500 Venice Blvd, Los Angeles, USA"

    def test_street_without_number(self) -> None:
        assert build_search_query(_location(street_name="Venice Blvd")) == "Venice Blvd, USA"

    def test_city_and_state(self) -> None:
        target = _location(city="Del Mar", state="CA", country="USA")
        assert build_search_query(target) == "Del Mar, CA, USA"

    def test_foreign_country_appended(self) -> None:
        target = _location(city="London", country="England")
        assert build_search_query(target) == "London, England"

    def test_falls_back_to_name(self) -> None:
        assert build_search_query(_location(country="USA")) == "Somewhere"


# ======================================================================
# GeocodingService
# ======================================================================


class TestGeocodingService:
    @pytest.mark.asyncio
    async def test_sleeps_between_requests_only(self, catalog) -> None:
        for city in ("Oceanside", "Encinitas", "Carlsbad"):
            await catalog.get_or_create_entity(
                EntityType.LOCATION, f"{city} park", {"city": city, "state": "CA"},
            )
        sleeps: list[float] = []

        async def _sleep(seconds: float) -> None:
            sleeps.append(seconds)

        service = GeocodingService(catalog, FakeGeocoder(), delay_seconds=1.1, sleep=_sleep)
        await service.geocode_all()

        assert sleeps == [1.1, 1.1]

    @pytest.mark.asyncio
    async def test_locations_before_spots_and_coordinates_stored(self, catalog) -> None:
        await catalog.get_or_create_entity(EntityType.SPOT, "Pipeline", {"city": "Upland", "state": "CA"})
        await catalog.get_or_create_entity(
            EntityType.LOCATION, "Venice", {"city": "Los Angeles", "state": "CA"},
        )
        geocoder = FakeGeocoder({
            "Los Angeles, CA, USA": GeocodeResult(latitude=33.98, longitude=-118.47),
            "Upland, CA, USA": GeocodeResult(latitude=34.1, longitude=-117.65),
        })

        report = await GeocodingService(catalog, geocoder, delay_seconds=0).geocode_all()

        assert geocoder.queries == ["Los Angeles, CA, USA", "Upland, CA, USA"]
        assert report.locations_geocoded == 1
        assert report.spots_geocoded == 1
        assert report.total_geocoded == 2
        assert await catalog.list_geocode_targets(EntityType.LOCATION) == []
        assert await catalog.list_geocode_targets(EntityType.SPOT) == []

    @pytest.mark.asyncio
    async def test_failures_are_counted_not_raised(self, catalog) -> None:
        await catalog.get_or_create_entity(EntityType.SPOT, "Nowhere Ditch")
        await catalog.get_or_create_entity(EntityType.SPOT, "Broken Pool", {"city": "Fresno"})
        geocoder = FakeGeocoder({"Fresno, USA": GeocodingError("HTTP 503")})

        report = await GeocodingService(catalog, geocoder, delay_seconds=0).geocode_all()

        assert report.spots_failed == 2
        assert report.total_geocoded == 0
        assert len(await catalog.list_geocode_targets(EntityType.SPOT)) == 2


# ======================================================================
# NominatimGeocodingProvider
# ======================================================================


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestNominatimProvider:
    @pytest.mark.asyncio
    async def test_request_shape_and_result(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200, json=[{"lat": "32.7157", "lon": "-117.1611", "display_name": "San Diego"}],
            )

        provider = NominatimGeocodingProvider(
            http_client=_client(handler),
            base_url="https://nominatim.test/search",
            user_agent="SkateMagArchive/1.0 (tests)",
        )
        result = await provider.geocode("San Diego, CA, USA")

        assert result == GeocodeResult(latitude=32.7157, longitude=-117.1611, display_name="San Diego")
        request = seen[0]
        assert request.url.host == "nominatim.test"
        assert request.url.params["q"] == "San Diego, CA, USA"
        assert request.url.params["format"] == "json"
        assert request.url.params["limit"] == "1"
        assert request.url.params["addressdetails"] == "1"
        assert request.headers["User-Agent"] == "SkateMagArchive/1.0 (tests)"

    @pytest.mark.asyncio
    async def test_no_match_returns_none(self) -> None:
        provider = NominatimGeocodingProvider(
            http_client=_client(lambda request: httpx.Response(200, json=[])),
        )
        assert await provider.geocode("Atlantis") is None

    @pytest.mark.asyncio
    async def test_http_error_raises(self) -> None:
        provider = NominatimGeocodingProvider(
            http_client=_client(lambda request: httpx.Response(500, text="boom")),
        )
        with pytest.raises(GeocodingError) as exc_info:
            await provider.geocode("Anywhere")
        assert exc_info.value.provider_name == "nominatim"

    @pytest.mark.asyncio
    async def test_malformed_payload_raises(self) -> None:
        provider = NominatimGeocodingProvider(
            http_client=_client(lambda request: httpx.Response(200, json=[{"lat": "north"}])),
        )
        with pytest.raises(GeocodingError):
            await provider.geocode("Anywhere")

    @pytest.mark.asyncio
    async def test_injected_client_left_open(self) -> None:
        client = _client(lambda request: httpx.Response(200, json=[]))
        provider = NominatimGeocodingProvider(http_client=client)
        await provider.close()
        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_own_client_closed(self) -> None:
        provider = NominatimGeocodingProvider()
        await provider.close()
        assert provider._client.is_closed
