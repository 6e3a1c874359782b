import logging
from typing import Optional, Tuple

import httpx

from app.config import settings
from app.core.exceptions import UnavailableError

logger = logging.getLogger(__name__)


class GeocodingService:
    """Resolve a street address to coordinates via the configured provider."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    async def geocode(self, address: str) -> Optional[Tuple[float, float]]:
        if settings.GEOCODER_PROVIDER == "none":
            return None
        elif settings.GEOCODER_PROVIDER == "nominatim":
            return await self._geocode_nominatim(address)
        else:
            logger.warning(f"Unknown geocoder provider: {settings.GEOCODER_PROVIDER}")
            return None

    async def _geocode_nominatim(self, address: str) -> Optional[Tuple[float, float]]:
        try:
            async with httpx.AsyncClient(
                timeout=settings.GEOCODER_TIMEOUT_SECONDS, transport=self.transport
            ) as client:
                response = await client.get(
                    settings.GEOCODER_URL,
                    params={"q": address, "format": "json", "limit": 1},
                    headers={"User-Agent": settings.GEOCODER_USER_AGENT},
                )
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.error(f"Geocoder timed out for address: {address}")
            raise UnavailableError("geocoder") from exc
        except httpx.HTTPError as exc:
            logger.error(f"Geocoder error: {exc}")
            raise UnavailableError("geocoder") from exc

        results = response.json()
        if not results:
            logger.info(f"No geocoding result for address: {address}")
            return None
        return float(results[0]["lat"]), float(results[0]["lon"])


geocoding_service = GeocodingService()
