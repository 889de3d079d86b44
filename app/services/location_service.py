"""
app/services/location_service.py

Purpose: PIN code to location lookup

- Queries PostPin (primary) and data.gov.in India Post (fallback)
- Static table for major metro PIN codes when both providers fail
- In-memory TTL cache of resolved PIN codes
"""

import time
from typing import Any, Dict, Optional, Tuple

import httpx

from app.core.config import settings
from app.core.exceptions import LocationServiceUnavailableError, ValidationError
from app.core.logging import get_logger
from utils.validation_utils import validate_pincode

logger = get_logger(__name__)

USER_AGENT = "Udyam-Registration-Replica/1.0.0"

FALLBACK_LOCATIONS: Dict[str, Dict[str, str]] = {
    "110001": {"city": "New Delhi", "state": "Delhi", "district": "Central Delhi", "country": "India"},
    "400001": {"city": "Mumbai", "state": "Maharashtra", "district": "Mumbai City", "country": "India"},
    "560001": {"city": "Bangalore", "state": "Karnataka", "district": "Bangalore Urban", "country": "India"},
    "600001": {"city": "Chennai", "state": "Tamil Nadu", "district": "Chennai", "country": "India"},
    "700001": {"city": "Kolkata", "state": "West Bengal", "district": "Kolkata", "country": "India"},
    "500001": {"city": "Hyderabad", "state": "Telangana", "district": "Hyderabad", "country": "India"},
    "411001": {"city": "Pune", "state": "Maharashtra", "district": "Pune", "country": "India"},
    "380001": {"city": "Ahmedabad", "state": "Gujarat", "district": "Ahmedabad", "country": "India"},
}


class LocationLookupError(Exception):
    """A single provider could not resolve a PIN code."""
    pass


class LocationService:
    """
    Resolves Indian PIN codes to city/state/district.
    """

    def __init__(
        self,
        cache_ttl_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cache_ttl = (
            cache_ttl_seconds
            if cache_ttl_seconds is not None
            else settings.LOCATION_CACHE_TTL_HOURS * 60 * 60
        )
        self._cache: Dict[str, Tuple[Dict[str, Any], float]] = {}
        self._transport = transport
        self._timeout = settings.LOCATION_SERVICE_TIMEOUT

    def _client(self, base_url: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=base_url,
            timeout=self._timeout,
            headers={"User-Agent": USER_AGENT},
            transport=self._transport,
        )

    # ------------------------------------------------------------------ cache

    def get_cached_location(self, pincode: str) -> Optional[Dict[str, Any]]:
        cached = self._cache.get(pincode)
        if not cached:
            return None

        data, stored_at = cached
        if time.monotonic() - stored_at > self.cache_ttl:
            del self._cache[pincode]
            return None

        logger.debug("Cache hit for PIN code", extra={"pincode": pincode})
        return data

    def set_cached_location(self, pincode: str, data: Dict[str, Any]):
        self._cache[pincode] = (data, time.monotonic())
        logger.debug("Cached location data for PIN code", extra={"pincode": pincode})

    def clear_expired_cache(self) -> int:
        """
        Drops expired entries.

        Returns:
            Number of entries removed
        """
        now = time.monotonic()
        expired = [p for p, (_, stored_at) in self._cache.items() if now - stored_at > self.cache_ttl]
        for pincode in expired:
            del self._cache[pincode]

        if expired:
            logger.info(f"Cleared {len(expired)} expired cache entries")
        return len(expired)

    def get_cache_stats(self) -> Dict[str, Any]:
        now = time.monotonic()
        expired = sum(1 for _, stored_at in self._cache.values() if now - stored_at > self.cache_ttl)
        return {
            "total_entries": len(self._cache),
            "valid_entries": len(self._cache) - expired,
            "expired_entries": expired,
            "cache_ttl_hours": self.cache_ttl / 3600,
        }

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    # -------------------------------------------------------------- providers

    async def fetch_from_postpin(self, pincode: str) -> Dict[str, Any]:
        """
        Queries api.postalpincode.in.

        Raises:
            LocationLookupError: On HTTP failure or an empty answer
        """
        try:
            async with self._client(settings.POSTPIN_BASE_URL) as client:
                response = await client.get(f"/pincode/{pincode}")
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"PostPin API request failed: {e}", extra={"pincode": pincode})
            raise LocationLookupError(str(e)) from e

        if isinstance(data, list) and data and data[0].get("Status") == "Success":
            offices = data[0].get("PostOffice") or []
            if offices:
                office = offices[0]
                return {
                    "city": office.get("District") or office.get("Name"),
                    "state": office.get("State"),
                    "district": office.get("District"),
                    "country": office.get("Country") or "India",
                    "pincode": pincode,
                }

        raise LocationLookupError("No data found in PostPin API response")

    async def fetch_from_india_post(self, pincode: str) -> Dict[str, Any]:
        """
        Queries the data.gov.in India Post directory.

        Raises:
            LocationLookupError: On HTTP failure or an empty answer
        """
        params = {
            "api-key": settings.INDIA_POST_API_KEY,
            "format": "json",
            "filters[pincode]": pincode,
            "limit": 1,
        }
        try:
            async with self._client(settings.INDIA_POST_BASE_URL) as client:
                response = await client.get("", params=params)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"India Post API request failed: {e}", extra={"pincode": pincode})
            raise LocationLookupError(str(e)) from e

        records = data.get("records") if isinstance(data, dict) else None
        if records:
            record = records[0]
            return {
                "city": record.get("districtname") or record.get("officename"),
                "state": record.get("statename"),
                "district": record.get("districtname"),
                "country": "India",
                "pincode": pincode,
            }

        raise LocationLookupError("No data found in India Post API response")

    @staticmethod
    def get_fallback_location(pincode: str) -> Optional[Dict[str, Any]]:
        fallback = FALLBACK_LOCATIONS.get(pincode)
        if fallback:
            return {**fallback, "pincode": pincode}
        return None

    # ----------------------------------------------------------------- lookup

    async def get_location_by_pincode(self, pincode: str) -> Dict[str, Any]:
        """
        Resolves a PIN code: cache, PostPin, India Post, static table.

        Args:
            pincode: 6-digit PIN code

        Returns:
            Dict with city, state, district, country and pincode

        Raises:
            ValidationError: If the PIN code is not 6 digits
            LocationServiceUnavailableError: If every source failed
        """
        if not validate_pincode(pincode):
            raise ValidationError("Invalid PIN code format. PIN code must be exactly 6 digits.")

        cached = self.get_cached_location(pincode)
        if cached:
            return cached

        last_error: Optional[Exception] = None
        for source, fetch in (
            ("PostPin API", self.fetch_from_postpin),
            ("India Post API", self.fetch_from_india_post),
        ):
            try:
                location = await fetch(pincode)
            except LocationLookupError as e:
                last_error = e
                continue

            self.set_cached_location(pincode, location)
            logger.info(f"Location fetched from {source}", extra={"pincode": pincode})
            return location

        location = self.get_fallback_location(pincode)
        if location:
            self.set_cached_location(pincode, location)
            logger.info("Location fetched from static fallback", extra={"pincode": pincode})
            return location

        logger.error(
            f"All location lookup methods failed: {last_error}",
            extra={"pincode": pincode}
        )
        raise LocationServiceUnavailableError(details={"pincode": pincode})

    async def validate_pincode_exists(self, pincode: str) -> bool:
        """
        Lightweight existence check.

        Malformed PIN codes are False; when the providers are down the PIN
        code is given the benefit of the doubt.
        """
        try:
            await self.get_location_by_pincode(pincode)
        except ValidationError:
            return False
        except LocationServiceUnavailableError:
            return True
        return True


# Global location service instance
location_service = LocationService()


def get_location_service() -> LocationService:
    return location_service
