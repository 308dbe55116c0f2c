import asyncio
import logging
import random
from typing import Iterable, List, Optional

from routemate.core.exceptions import GeocodingBatchError
from routemate.models.location import BoundingBox
from routemate.models.stops import Address
from routemate.repositories.maps.google_maps import GoogleMapsRepository, MapsServiceError

logger = logging.getLogger(__name__)


class GeocodingService:
    """Attach coordinates to stops, one Google call at a time.

    In simulation mode (no repository, or ``simulate=True``) every stop gets
    a random point inside ``fallback_box``. In live mode a stop whose lookup
    fails gets the same kind of point; the rest of the batch is unaffected.
    """

    def __init__(
        self,
        maps_repository: Optional[GoogleMapsRepository],
        fallback_box: BoundingBox,
        delay_seconds: float = 0.2,
        simulate: bool = False,
        rng: Optional[random.Random] = None,
    ):
        self.maps_repository = maps_repository
        self.fallback_box = fallback_box
        self.delay_seconds = delay_seconds
        self.simulate = simulate or maps_repository is None
        self.rng = rng or random.Random()
        if self.simulate:
            logger.warning("Geocoding runs in simulation mode; stops get synthetic coordinates")

    def _fallback(self, address: Address) -> Address:
        lat, lng = self.fallback_box.random_point(self.rng)
        return address.model_copy(update={"lat": lat, "lng": lng})

    async def geocode_address(self, address: Address) -> Address:
        """Geocode a single stop; never raises for a bad address."""
        if self.simulate:
            return self._fallback(address)
        try:
            location = await self.maps_repository.geocode(address.address)
        except MapsServiceError as e:
            logger.warning(f"Geocoding failed for '{address.address}', using fallback coordinate: {e}")
            return self._fallback(address)
        lat, lng = location.as_text()
        return address.model_copy(update={"lat": lat, "lng": lng})

    async def geocode_addresses(self, addresses: Iterable[Address]) -> List[Address]:
        """Geocode stops sequentially, pausing between calls to respect rate limits."""
        try:
            pending = list(addresses)
        except TypeError as e:
            raise GeocodingBatchError(f"Cannot iterate addresses to geocode: {e}") from e

        logger.info(f"Geocoding {len(pending)} addresses (simulated={self.simulate})")
        geocoded = []
        for address in pending:
            geocoded.append(await self.geocode_address(address))
            if not self.simulate and self.delay_seconds > 0:
                await asyncio.sleep(self.delay_seconds)
        return geocoded
