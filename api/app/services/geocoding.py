"""
Geocoding Service - LocationIQ forward geocoding & place autocomplete
https://docs.locationiq.com/reference/search
"""
from dataclasses import dataclass, asdict
from typing import List, Optional, Dict, Any
import hashlib
import logging

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.config import settings
from app.utils.redis import CacheService, get_redis

logger = logging.getLogger(__name__)

AUTOCOMPLETE_MIN_LENGTH = 2


@dataclass
class GeocodingResult:
    """Best match for a free-text place name"""
    lat: str
    lon: str
    display_name: str


class GeocodingError(Exception):
    """LocationIQ answered with an error status or an unreadable body"""


def _cache_key(kind: str, query: str) -> str:
    digest = hashlib.sha1(query.strip().lower().encode("utf-8")).hexdigest()
    return f"geocode:{kind}:{digest}"


class GeocodingService:
    """
    Thin LocationIQ client. Lookups are cached in Redis; with no API key
    configured every lookup returns nothing.
    """

    @staticmethod
    def is_configured() -> bool:
        return bool(settings.LOCATIONIQ_API_KEY)

    @staticmethod
    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        reraise=True,
    )
    async def _get(path: str, params: Dict[str, Any]) -> Any:
        async with httpx.AsyncClient() as client:
            response = await client.get(
                f"{settings.LOCATIONIQ_BASE_URL}/{path}",
                params={"key": settings.LOCATIONIQ_API_KEY, "format": "json", **params},
                timeout=10.0,
            )
        # LocationIQ answers 404 for "no match"
        if response.status_code == 404:
            return []
        if response.status_code >= 400:
            raise GeocodingError(f"LocationIQ {path} failed with status {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise GeocodingError(f"LocationIQ {path} returned a non-JSON body") from e

    @staticmethod
    async def geocode(destination: str) -> Optional[GeocodingResult]:
        """
        Resolve a place name to coordinates.

        Returns None when the query is empty, geocoding is not configured,
        nothing matches, or LocationIQ fails.
        """
        if not destination or not destination.strip() or not GeocodingService.is_configured():
            return None

        cache = CacheService(await get_redis())
        key = _cache_key("search", destination)
        cached = await cache.get(key)
        if cached:
            return GeocodingResult(**cached)

        try:
            data = await GeocodingService._get("search", {"q": destination, "limit": 1})
        except (GeocodingError, httpx.HTTPError) as e:
            logger.error(f"Geocoding failed for '{destination}': {e}")
            return None

        if not isinstance(data, list) or not data:
            logger.info(f"No geocoding results for '{destination}'")
            return None

        try:
            first = data[0]
            result = GeocodingResult(
                lat=str(first["lat"]),
                lon=str(first["lon"]),
                display_name=first.get("display_name", destination),
            )
            float(result.lat), float(result.lon)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error(f"Unexpected geocoding result for '{destination}': {e!r}")
            return None

        await cache.set(key, asdict(result), settings.CACHE_TTL_GEOCODE)

        logger.debug(f"Geocoded '{destination}' -> {result.lat}, {result.lon}")
        return result

    @staticmethod
    async def autocomplete(query: str, limit: int = 5) -> List[Dict[str, Any]]:
        """Place suggestions for a partially typed location"""
        query = (query or "").strip()
        if len(query) < AUTOCOMPLETE_MIN_LENGTH or not GeocodingService.is_configured():
            return []

        async def fetch():
            data = await GeocodingService._get(
                "autocomplete", {"q": query, "limit": limit, "dedupe": 1}
            )
            return [
                {
                    "placeId": item.get("place_id"),
                    "displayName": item.get("display_name"),
                    "displayPlace": item.get("display_place"),
                    "displayAddress": item.get("display_address"),
                    "lat": item.get("lat"),
                    "lon": item.get("lon"),
                }
                for item in data
            ]

        cache = CacheService(await get_redis())
        return await cache.get_or_set(
            _cache_key(f"autocomplete:{limit}", query), fetch, settings.CACHE_TTL_GEOCODE
        )
