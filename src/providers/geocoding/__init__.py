"""Geocoding provider implementations.

    - NominatimGeocodingProvider — OpenStreetMap Nominatim over httpx.
"""

from src.providers.geocoding.nominatim_provider import NominatimGeocodingProvider

__all__ = ["NominatimGeocodingProvider"]
