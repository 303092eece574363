"""Address geocoding proxy: Nominatim with a Google Places fallback."""

import logging
import re
from typing import Any, Optional

import httpx

from winetrail.config import settings
from winetrail.config.schema import GeocodingConfig
from winetrail.services.errors import GeocodingError

logger = logging.getLogger(__name__)

HOUSE_NUMBER = re.compile(r"^\d+")


def split_house_number(query: str) -> tuple[Optional[str], str]:
    """Split "123 Main St" into ("123", "Main St").

    Returns (None, query) when the query does not start with a number
    followed by more words.
    """
    words = query.split(" ")
    if len(words) > 1 and HOUSE_NUMBER.match(words[0]):
        return words[0], " ".join(words[1:])
    return None, query


def with_house_number(results: list[dict[str, Any]], number: str) -> list[dict[str, Any]]:
    enhanced = []
    for result in results:
        address = dict(result.get("address") or {})
        address["house_number"] = number
        enhanced.append(
            {**result, "display_name": f"{number} {result.get('display_name', '')}", "address": address}
        )
    return enhanced


class GeocodingService:
    """Looks addresses up on Nominatim and, when configured, Google Places.

    Args:
        client: Optional shared ``httpx.AsyncClient`` (tests pass one
            backed by ``httpx.MockTransport``).
        config: Geocoding configuration, defaults to settings.
        google_api_key: Server-side Places key, defaults to settings.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        config: Optional[GeocodingConfig] = None,
        google_api_key: Optional[str] = None,
    ):
        self.config = config or settings.geocoding
        self.google_api_key = google_api_key if google_api_key is not None else settings.google_places_api_key
        self._client = client

    async def _get_json(self, url: str, params: dict[str, str]) -> Any:
        headers = {"User-Agent": self.config.nominatim_user_agent}
        try:
            if self._client is not None:
                resp = await self._client.get(url, params=params, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
                    resp = await client.get(url, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("Geocoding request to %s failed: %s", url, e)
            raise GeocodingError("Address lookup service temporarily unavailable") from e

        if resp.status_code >= 400:
            logger.warning("Geocoding API error %s: %s", resp.status_code, resp.text[:200])
            raise GeocodingError("Address lookup service temporarily unavailable")
        try:
            return resp.json()
        except ValueError as e:
            logger.warning("Geocoding API returned non-JSON body: %s", resp.text[:200])
            raise GeocodingError("Address lookup service temporarily unavailable") from e

    # Nominatim

    async def nominatim_search(self, query: str) -> list[dict[str, Any]]:
        params = {
            "format": "json",
            "q": query,
            "countrycodes": self.config.country_codes,
            "addressdetails": "1",
            "limit": str(self.config.result_limit),
            "dedupe": "1",
        }
        data = await self._get_json(f"{self.config.nominatim_base_url}/search", params)
        return data if isinstance(data, list) else []

    async def reverse(self, lat: float, lon: float) -> dict[str, Any]:
        params = {
            "format": "json",
            "lat": str(lat),
            "lon": str(lon),
            "addressdetails": "1",
        }
        data = await self._get_json(f"{self.config.nominatim_base_url}/reverse", params)
        return data if isinstance(data, dict) else {}

    # Google Places

    def google_available(self) -> bool:
        return bool(self.google_api_key)

    async def google_search(self, query: str) -> list[dict[str, Any]]:
        """Autocomplete suggestions as ``{source, place_id, display_name}``."""
        if not self.google_available():
            return []

        params = {
            "input": query,
            "types": "address",
            "components": f"country:{self.config.country_codes}",
            "key": self.google_api_key,
        }
        data = await self._get_json(f"{self.config.google_places_base_url}/autocomplete/json", params)
        if data.get("status") not in ("OK", "ZERO_RESULTS"):
            logger.warning("Google Places search returned status %s", data.get("status"))
        return [
            {
                "source": "google",
                "place_id": prediction["place_id"],
                "display_name": prediction.get("description", ""),
            }
            for prediction in data.get("predictions", [])
            if prediction.get("place_id")
        ]

    async def google_geocode(self, place_id: str) -> Optional[dict[str, Any]]:
        """Coordinates of a place as ``{lat, lon, address}``, or None."""
        if not self.google_available():
            return None

        params = {
            "place_id": place_id,
            "fields": "geometry,formatted_address",
            "key": self.google_api_key,
        }
        data = await self._get_json(f"{self.config.google_places_base_url}/details/json", params)
        result = data.get("result") or {}
        location = (result.get("geometry") or {}).get("location") or {}
        if "lat" not in location or "lng" not in location:
            return None
        return {
            "lat": location["lat"],
            "lon": location["lng"],
            "address": result.get("formatted_address", ""),
        }

    # Hybrid lookups

    async def suggest(self, query: str) -> list[dict[str, Any]]:
        """Address suggestions, trying Nominatim before Google.

        Nominatim often drops the house number; when the query starts
        with one and no result carries it, it is put back on each result.
        """
        query = query.strip()
        if not query:
            return []

        results = await self.nominatim_search(query)
        number, rest = split_house_number(query)

        if number is not None:
            has_number = any(number.lower() in r.get("display_name", "").lower() for r in results)
            if results and not has_number:
                return with_house_number(results, number)
            if not results:
                google = await self.google_search(query)
                if google:
                    return google
                return with_house_number(await self.nominatim_search(rest), number)

        if results:
            return results
        return await self.google_search(query)

    async def manual_geocode(self, address: str) -> dict[str, Any]:
        """Best-effort coordinates for a typed address.

        Falls back from Nominatim to Google to a broader Nominatim query
        without the first word; the typed address is kept with (0, 0)
        when nothing matches.
        """
        address = address.strip()

        results = await self.nominatim_search(address)
        if results:
            first = results[0]
            return {
                "lat": float(first["lat"]),
                "lon": float(first["lon"]),
                "address": first.get("display_name", address),
            }

        google = await self.google_search(address)
        if google:
            geocoded = await self.google_geocode(google[0]["place_id"])
            if geocoded and geocoded["lat"] and geocoded["lon"]:
                return geocoded

        words = address.split(" ")
        if len(words) > 1:
            broader = await self.nominatim_search(" ".join(words[1:]))
            if broader:
                return {
                    "lat": float(broader[0]["lat"]),
                    "lon": float(broader[0]["lon"]),
                    "address": address,
                }

        logger.info("No geocoding match for address %r", address)
        return {"lat": 0.0, "lon": 0.0, "address": address}


def get_geocoding_service() -> GeocodingService:
    return GeocodingService()
