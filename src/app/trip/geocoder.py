import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

import httpx

from core.config import configs

logger = logging.getLogger(__name__)


class ReverseGeocoder(ABC):
    @abstractmethod
    async def address_for(self, lat: float, lng: float) -> Optional[str]:
        """Short human-readable place name for a coordinate, or None."""
        raise NotImplementedError()


class NominatimGeocoder(ReverseGeocoder):
    """
    Reverse geocoding against an OpenStreetMap Nominatim endpoint.

    Answers are cached per ~1 km cell, so repeated trips to the same place cost
    one request. An answer without a usable address is cached as None; failed
    requests are not cached.
    """

    def __init__(
        self,
        base_url: str = configs.GEOCODER_URL,
        language: str = configs.GEOCODER_LANGUAGE,
        timeout: float = configs.HTTP_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.language = language
        self.timeout = timeout
        self._client = client
        self._cache: Dict[str, Optional[str]] = {}

    async def address_for(self, lat: float, lng: float) -> Optional[str]:
        if lat == 0.0 and lng == 0.0:
            return None

        cache_key = f"{lat:.2f},{lng:.2f}"
        if cache_key in self._cache:
            return self._cache[cache_key]

        params = {
            "format": "json",
            "lat": lat,
            "lon": lng,
            "zoom": 10,
            "accept-language": self.language,
        }
        try:
            payload = await self._get_json(f"{self.base_url}/reverse", params)
        except (httpx.HTTPError, ValueError) as e:
            # Not cached: the next lookup of this cell tries again.
            logger.warning(f"Failed to reverse geocode ({lat}, {lng}): {e}")
            return None

        name = build_location_name(payload)
        self._cache[cache_key] = name
        logger.debug(f"Geocoded ({lat}, {lng}) -> {name}")
        return name

    async def _get_json(self, url: str, params: dict) -> dict:
        headers = {"User-Agent": configs.GEOCODER_USER_AGENT}
        if self._client is not None:
            response = await self._client.get(url, params=params, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            return response.json()

        async with httpx.AsyncClient() as client:
            response = await client.get(url, params=params, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            return response.json()


def build_location_name(payload: Optional[dict]) -> Optional[str]:
    """'City, Country' from a Nominatim response; city falls back to town, village, county, state."""
    address = (payload or {}).get("address")
    if not address:
        return None

    city = (
        address.get("city")
        or address.get("town")
        or address.get("village")
        or address.get("county")
        or address.get("state")
    )
    country = address.get("country")

    if city and country and city != country:
        return f"{city}, {country}"
    return city or country or None
